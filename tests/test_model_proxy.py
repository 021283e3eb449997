"""ModelProxy build phase, queueing and combinator semantics."""

import asyncio

import httpx
import pytest

from modelproxy.core.errors import (
    ConfigurationError,
    CookieRequiredError,
    ParamsDerivationError,
    ParseError,
    TransportError,
)
from modelproxy.core.model_proxy import ModelProxy, normalize_profile
from modelproxy.core.task_types import Failure

from conftest import make_profile


def url(interface_id):
    return f"http://api.test/{interface_id}"


# ── Build phase ────────────────────────────────────────────────────────────

class TestBuild:

    def test_mapping_profile(self, factory, registry):
        registry.add(make_profile("Search.getItems"))
        model = ModelProxy({"items": "Search.getItems"})
        assert model.items.interface_id == "Search.getItems"
        assert model.items.dispatcher is factory.create("Search.getItems")

    def test_single_id_profile(self, factory, registry):
        registry.add(make_profile("Cart.getCart"))
        model = ModelProxy("Cart.getCart")
        assert list(model.methods) == ["getCart"]

    def test_prefix_profile(self, factory, registry):
        registry.add(make_profile("Search.getItems"))
        registry.add(make_profile("Search.suggest"))
        registry.add(make_profile("Cart.getCart"))
        model = ModelProxy("Search.*")
        assert sorted(model.methods) == ["getItems", "suggest"]

    def test_list_collision_falls_back_to_underscored_id(self, factory):
        mapping = normalize_profile(["Shop.get", "Cart.get", "Cart.list"], factory)
        assert mapping == {"list": "Cart.list", "get": "Cart.get", "Shop_get": "Shop.get"}

    def test_explicit_factory_overrides_default(self, factory, registry):
        registry.add(make_profile("Cart.getCart"))
        model = ModelProxy.create(["Cart.getCart"], factory=factory)
        assert model.getCart.dispatcher is factory.create("Cart.getCart")

    def test_reserved_method_name_is_rejected(self, factory, registry):
        registry.add(make_profile("Report.all"))
        with pytest.raises(ConfigurationError):
            ModelProxy("Report.all")

    def test_unknown_interface_fails_build(self, factory):
        with pytest.raises(ConfigurationError):
            ModelProxy({"x": "Nope.nothing"})


# ── Queueing ───────────────────────────────────────────────────────────────

class TestQueue:

    def test_calls_append_tasks_in_order_without_dispatch(self, factory, registry, transport):
        for name in ("A.one", "A.two", "A.three"):
            registry.add(make_profile(name))
        model = ModelProxy("A.*")

        returned = model.three({"n": 3}).one().two({"n": 2})

        assert returned is model
        assert [t.interface_id for t in model.pending_tasks] == ["A.three", "A.one", "A.two"]
        assert model.pending_tasks[1].params == {}
        assert transport.requests == []

    def test_mock_calls_are_not_generated_while_queueing(self, factory, registry, transport, fake_engine):
        registry.add(make_profile("A.mocked", status="mock"), rule={"response": {"a": 1}, "responseError": {}})
        registry.add(make_profile("A.live"))
        model = ModelProxy("A.*")

        model.mocked().live().mocked()

        assert len(model.pending_tasks) == 3
        assert registry.rule_calls == []
        assert fake_engine.calls == []
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_empty_queue_paral_and_series_return_empty_list(self, factory, registry, transport):
        registry.add(make_profile("A.one"))
        model = ModelProxy("A.one")

        assert await model.paral() == []
        assert await model.series() == []
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_combinator_drains_queue_once(self, factory, registry, transport):
        registry.add(make_profile("A.one"))
        transport.add(url("A.one"), json_body={"ok": 1})
        model = ModelProxy("A.one")

        first = await model.one().all()
        second = await model.all()

        assert first == [{"ok": 1}]
        assert second == []
        assert model.pending_tasks == ()

    @pytest.mark.asyncio
    async def test_cookie_shared_by_all_tasks_then_cleared(self, factory, registry, transport):
        registry.add(make_profile("A.one"))
        registry.add(make_profile("A.two"))
        transport.add(url("A.one"), json_body={})
        transport.add(url("A.two"), json_body={})
        model = ModelProxy("A.*")

        await model.one().two().with_cookie("sid=9").all()
        await model.one().all()

        cookies = [r.headers.get("Cookie") for r in transport.requests]
        assert cookies == ["sid=9", "sid=9", None]


# ── then ───────────────────────────────────────────────────────────────────

class TestThen:

    @pytest.mark.asyncio
    async def test_empty_queue_calls_on_value_without_arguments(self, factory, transport):
        model = ModelProxy()
        calls = []

        returned = await model.then(lambda *args: calls.append(args))

        assert calls == [()]
        assert returned is model
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_only_first_task_is_dispatched(self, factory, registry, transport):
        registry.add(make_profile("A.one"))
        registry.add(make_profile("A.two"))
        transport.add(url("A.one"), json_body={"id": 1})
        transport.add(url("A.two"), json_body={"id": 2})
        model = ModelProxy("A.*")

        value = await model.one(transform=lambda v: v["id"] * 10).two().then(lambda v: v + 1)

        assert value == 11
        assert [r.url for r in transport.requests] == [url("A.one")]

    @pytest.mark.asyncio
    async def test_failure_goes_to_on_error(self, factory, registry, transport):
        registry.add(make_profile("A.one"))
        transport.add(url("A.one"), body=b"broken")
        model = ModelProxy("A.one")

        outcome = await model.one().then(lambda v: "value", lambda e: type(e).__name__)

        assert outcome == "ParseError"

    @pytest.mark.asyncio
    async def test_failure_raises_without_on_error(self, factory, registry, transport):
        registry.add(make_profile("A.one"))
        transport.add(url("A.one"), body=b"broken")
        model = ModelProxy("A.one")

        with pytest.raises(ParseError):
            await model.one().then(lambda v: v)

    @pytest.mark.asyncio
    async def test_catch_handles_failure(self, factory, registry, transport):
        registry.add(make_profile("A.one"))
        transport.add(url("A.one"), error=httpx.ConnectError("down"))
        model = ModelProxy("A.one")

        outcome = await model.one().catch(lambda e: isinstance(e, TransportError))

        assert outcome is True


# ── all ────────────────────────────────────────────────────────────────────

class TestAll:

    def setup_profiles(self, registry, transport):
        registry.add(make_profile("A.first"))
        registry.add(make_profile("A.second"))
        transport.add(url("A.first"), json_body={"ok": 1}, delay=0.05)
        transport.add(url("A.second"), json_body={"ok": 2})

    @pytest.mark.asyncio
    async def test_results_follow_enqueue_order(self, factory, registry, transport):
        self.setup_profiles(registry, transport)
        model = ModelProxy("A.*")

        results = await model.first({"a": 1}).second({"b": 2}).all()

        assert results == [{"ok": 1}, {"ok": 2}]
        assert transport.events.index(("end", url("A.second"))) < transport.events.index(("end", url("A.first")))
        assert [r.params for r in transport.requests] == [{"a": 1}, {"b": 2}]

    @pytest.mark.asyncio
    async def test_every_task_starts_before_any_completes(self, factory, registry, transport):
        self.setup_profiles(registry, transport)
        model = ModelProxy("A.*")

        await model.first().second().all()

        assert transport.events[:2] == [("start", url("A.first")), ("start", url("A.second"))]

    @pytest.mark.asyncio
    async def test_one_failure_rejects_whole_result(self, factory, registry, transport):
        registry.add(make_profile("A.first"))
        registry.add(make_profile("A.second"))
        transport.add(url("A.first"), json_body={"ok": 1})
        transport.add(url("A.second"), error=httpx.ConnectError("down"))
        model = ModelProxy("A.*")

        with pytest.raises(TransportError) as info:
            await model.first().second().all()

        assert info.value.url == url("A.second")

    @pytest.mark.asyncio
    async def test_transform_failure_rejects(self, factory, registry, transport):
        self.setup_profiles(registry, transport)
        model = ModelProxy("A.*")
        rejection = ValueError("empty cart")

        with pytest.raises(ValueError, match="empty cart"):
            await model.first().second(transform=lambda v: Failure(rejection)).all()

    @pytest.mark.asyncio
    async def test_transformed_values_are_returned(self, factory, registry, transport):
        self.setup_profiles(registry, transport)
        model = ModelProxy("A.*")

        results = await model.first(transform=lambda v: v["ok"]).second().all()

        assert results == [1, {"ok": 2}]


# ── paral ──────────────────────────────────────────────────────────────────

class TestParal:

    def setup_profiles(self, registry, transport):
        registry.add(make_profile("A.good"))
        registry.add(make_profile("A.bad"))
        transport.add(url("A.good"), json_body={"ok": 1})
        transport.add(url("A.bad"), error=httpx.ConnectError("down"))

    @pytest.mark.asyncio
    async def test_failures_are_replaced_by_fallback(self, factory, registry, transport):
        self.setup_profiles(registry, transport)
        model = ModelProxy("A.*")

        results = await model.good().bad().paral(lambda e: "fallback")

        assert results == [{"ok": 1}, "fallback"]

    @pytest.mark.asyncio
    async def test_raw_error_fills_slot_without_handler(self, factory, registry, transport):
        self.setup_profiles(registry, transport)
        model = ModelProxy("A.*")

        results = await model.bad().good().paral()

        assert isinstance(results[0], TransportError)
        assert results[1] == {"ok": 1}

    @pytest.mark.asyncio
    async def test_transform_failure_is_recovered(self, factory, registry, transport):
        self.setup_profiles(registry, transport)
        model = ModelProxy("A.*")

        results = await model.good(transform=lambda v: Failure(KeyError("x"))).paral(lambda e: type(e).__name__)

        assert results == ["KeyError"]

    @pytest.mark.asyncio
    async def test_missing_cookie_still_raises(self, factory, registry, transport):
        registry.add(make_profile("User.info", is_cookie_needed=True))
        model = ModelProxy("User.info")

        with pytest.raises(CookieRequiredError):
            await model.info().paral(lambda e: None)


# ── series ─────────────────────────────────────────────────────────────────

class TestSeries:

    def setup_profiles(self, registry, transport):
        registry.add(make_profile("Item.get"))
        registry.add(make_profile("Item.detail"))
        transport.add(url("Item.get"), json_body={"id": 42}, delay=0.02)
        transport.add(url("Item.detail"), json_body={"name": "phone"})

    @pytest.mark.asyncio
    async def test_params_derived_from_previous_result(self, factory, registry, transport):
        self.setup_profiles(registry, transport)
        model = ModelProxy("Item.*")

        results = await model.get({"q": "x"}).detail(lambda prev: {"id": prev["id"]}).series()

        assert results == [{"id": 42}, {"name": "phone"}]
        assert transport.requests[1].params == {"id": 42}

    @pytest.mark.asyncio
    async def test_tasks_run_strictly_in_order(self, factory, registry, transport):
        self.setup_profiles(registry, transport)
        model = ModelProxy("Item.*")

        await model.get().detail().series()

        assert transport.events == [
            ("start", url("Item.get")),
            ("end", url("Item.get")),
            ("start", url("Item.detail")),
            ("end", url("Item.detail")),
        ]

    @pytest.mark.asyncio
    async def test_params_callable_receives_accumulated_results(self, factory, registry, transport):
        self.setup_profiles(registry, transport)
        model = ModelProxy("Item.*")
        seen = []

        def derive(prev, results):
            seen.append((prev, results))
            return {}

        await model.get().detail(derive).series()

        assert seen == [({"id": 42}, [{"id": 42}])]

    @pytest.mark.asyncio
    async def test_non_mapping_params_reject_before_dispatch(self, factory, registry, transport):
        registry.add(make_profile("Item.get"))
        registry.add(make_profile("Item.detail"))
        transport.add(url("Item.get"), json_body=[1, 2, 3])
        transport.add(url("Item.detail"), json_body={})
        model = ModelProxy("Item.*")

        with pytest.raises(ParamsDerivationError) as info:
            await model.get().detail(lambda prev, results: prev).series()

        assert info.value.interface_id == "Item.detail"
        assert [r.url for r in transport.requests] == [url("Item.get")]

    @pytest.mark.asyncio
    async def test_literal_non_mapping_params_reject_without_dispatch(self, factory, registry, transport):
        self.setup_profiles(registry, transport)
        model = ModelProxy("Item.*")

        with pytest.raises(ParamsDerivationError) as info:
            await model.get(["q", "x"]).detail().series()

        assert info.value.interface_id == "Item.get"
        assert transport.requests == []

    @pytest.mark.asyncio
    async def test_params_callable_without_arguments(self, factory, registry, transport):
        self.setup_profiles(registry, transport)
        model = ModelProxy("Item.*")

        results = await model.get().detail(lambda: {"id": 7}).series()

        assert results == [{"id": 42}, {"name": "phone"}]
        assert transport.requests[1].params == {"id": 7}

    @pytest.mark.asyncio
    async def test_transform_returning_exception_rejects(self, factory, registry, transport):
        self.setup_profiles(registry, transport)
        model = ModelProxy("Item.*")

        with pytest.raises(LookupError, match="gone"):
            await model.get(transform=lambda v: LookupError("gone")).detail().series()

        assert [r.url for r in transport.requests] == [url("Item.get")]

    @pytest.mark.asyncio
    async def test_transform_failure_stops_pipeline(self, factory, registry, transport):
        self.setup_profiles(registry, transport)
        model = ModelProxy("Item.*")

        with pytest.raises(LookupError):
            await model.get(transform=lambda v: Failure(LookupError("no item"))).detail().series()

        assert [r.url for r in transport.requests] == [url("Item.get")]

    @pytest.mark.asyncio
    async def test_transform_replaces_result(self, factory, registry, transport):
        self.setup_profiles(registry, transport)
        model = ModelProxy("Item.*")

        results = await model.get(transform=lambda v: v["id"]).detail(lambda prev: {"id": prev}).series()

        assert results == [42, {"name": "phone"}]
        assert transport.requests[1].params == {"id": 42}

    @pytest.mark.asyncio
    async def test_dispatch_failure_rejects(self, factory, registry, transport):
        registry.add(make_profile("Item.get"))
        transport.add(url("Item.get"), error=asyncio.TimeoutError())
        model = ModelProxy("Item.get")

        with pytest.raises(TransportError):
            await model.get().series()


# ── Mock substitution through a model ─────────────────────────────────────

class TestMockThroughModel:

    @pytest.mark.asyncio
    async def test_mock_and_live_interfaces_mix(self, factory, registry, transport):
        registry.add(
            make_profile("Mix.mocked", status="mock", is_rule_static=True),
            rule={"response": {"source": "mock"}, "responseError": {}},
        )
        registry.add(make_profile("Mix.live"))
        transport.add(url("Mix.live"), json_body={"source": "live"})
        model = ModelProxy("Mix.*")

        results = await model.mocked().live().all()

        assert results == [{"source": "mock"}, {"source": "live"}]
        assert [r.url for r in transport.requests] == [url("Mix.live")]
