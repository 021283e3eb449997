"""Declarative interface models with queue-draining combinators.

Architectural role:
    Turns a profile (mapping, list, single id or `Pkg.*` prefix) into a model
    object whose methods queue interface calls, then executes the queue with
    one of four combinators.

Control-flow model:
    1. Build: one `BoundMethod` per name, each holding its resolved dispatcher.
    2. Queue: calling a bound method appends a `RequestTask` and returns the
       model, so calls can be chained.
    3. Drain: awaiting `then`, `all`, `paral` or `series` takes the queue and
       cookie context in one step and dispatches the tasks.

Combinator semantics:
    - `then`: first queued task only; value/error continuations.
    - `all`: concurrent; list in enqueue order; raises the first failure to
      settle. Precedence among simultaneous failures is not deterministic.
    - `paral`: concurrent; never raises for dispatch failures, each failure is
      replaced by `on_error(error)` or the error itself.
    - `series`: one at a time; callable params receive
      `(previous_result, results)`, only `previous_result`, or nothing,
      depending on how many arguments they accept.

Side effects:
    None until a combinator runs; building a model only constructs (or reuses)
    dispatchers.
"""

import asyncio
import inspect
import logging
import re
from collections.abc import Mapping
from typing import Any, Callable

from modelproxy.core.errors import ConfigurationError, ParamsDerivationError
from modelproxy.core.proxy_factory import ProxyFactory, get_default_factory
from modelproxy.core.task_types import (
    Failure,
    OrchestrationQueue,
    RequestTask,
    Success,
    apply_transform,
)

logger = logging.getLogger(__name__)

_PREFIX_PATTERN = re.compile(r"^(\w+\.)+\*$")


def derive_params(params_fn: Callable[..., Any], previous: Any, results: list[Any]) -> Any:
    """Call a series params function with `(previous, results)`, `(previous)` or `()`."""
    try:
        signature = inspect.signature(params_fn)
    except ValueError:
        return params_fn(previous, results)
    for args in ((previous, results), (previous,), ()):
        try:
            signature.bind(*args)
        except TypeError:
            continue
        return params_fn(*args)
    return params_fn(previous, results)


def normalize_profile(profile, factory: ProxyFactory) -> dict[str, str]:
    """Normalize any accepted profile form to a `{method_name: interface_id}` map.

    Naming rule for lists:
        Ids are processed last to first. The method name is the last dot
        segment; if it is already taken, the full id with dots replaced by
        underscores is used instead. Collisions between underscore names are
        not detected.
    """
    if isinstance(profile, str):
        if _PREFIX_PATTERN.match(profile):
            profile = factory.get_interface_ids_by_prefix(profile[:-1])
        else:
            profile = [profile]

    if isinstance(profile, Mapping):
        return dict(profile)

    mapping: dict[str, str] = {}
    for interface_id in reversed(list(profile)):
        method_name = interface_id[interface_id.rfind(".") + 1:]
        if method_name in mapping:
            method_name = interface_id.replace(".", "_")
        mapping[method_name] = interface_id
    return mapping


class BoundMethod:
    """Model method that queues calls to one interface."""

    def __init__(self, owner: "ModelProxy", name: str, interface_id: str, dispatcher) -> None:
        self.owner = owner
        self.name = name
        self.interface_id = interface_id
        self.dispatcher = dispatcher

    def __call__(self, params: Any = None, transform: Callable[[Any], Any] | None = None) -> "ModelProxy":
        """Queue a call and return the owning model for chaining.

        Args:
            params: Request params (default `{}`), or for `series` a callable
                `(previous_result, results) -> params`.
            transform: Optional callback applied to this call's value. Return a
                `Failure` to reject the value.
        """
        self.owner._queue.tasks.append(
            RequestTask(
                params=params if params is not None else {},
                dispatcher=self.dispatcher,
                transform=transform,
            )
        )
        return self.owner

    def __repr__(self) -> str:
        return f"<BoundMethod {self.name} -> {self.interface_id}>"


class ModelProxy:
    """Model built from interface ids, executed through combinators.

    Examples:
        model = ModelProxy({"getItems": "Search.getItems", "getCart": "Cart.getCart"})
        items, cart = await model.getItems({"q": "phone"}).getCart().all()
    """

    def __init__(self, profile=None, factory: ProxyFactory | None = None) -> None:
        self._queue = OrchestrationQueue()
        self._methods: dict[str, BoundMethod] = {}

        if not profile:
            return

        self._factory = factory if factory is not None else get_default_factory()
        for name, interface_id in normalize_profile(profile, self._factory).items():
            if hasattr(type(self), name) or name in self.__dict__:
                raise ConfigurationError(
                    f"Method name {name} of interface {interface_id} conflicts with a ModelProxy attribute"
                )
            method = BoundMethod(self, name, interface_id, self._factory.create(interface_id))
            self._methods[name] = method
            setattr(self, name, method)

    @classmethod
    def create(cls, profile, factory: ProxyFactory | None = None) -> "ModelProxy":
        return cls(profile, factory)

    @property
    def methods(self) -> dict[str, BoundMethod]:
        return dict(self._methods)

    @property
    def pending_tasks(self) -> tuple[RequestTask, ...]:
        return tuple(self._queue.tasks)

    def with_cookie(self, cookie: str | None) -> "ModelProxy":
        """Attach a cookie shared by every queued call of the next combinator."""
        self._queue.cookie = cookie
        return self

    async def then(self, on_value: Callable[..., Any] | None = None, on_error: Callable[[BaseException], Any] | None = None):
        """Dispatch the first queued call.

        Returns:
            - The model itself when the queue is empty (`on_value()` is called
              without arguments).
            - `on_value(value)` or the value on success.
            - `on_error(error)` on failure.

        Raises:
            The task's error when it fails and `on_error` is not given.
        """
        tasks, cookie = self._queue.drain()

        if not tasks:
            if on_value is not None:
                on_value()
            return self

        task = tasks[0]
        result = await self._run(task, task.params, cookie)

        if isinstance(result, Failure):
            if on_error is None:
                raise result.error
            return on_error(result.error)
        return on_value(result.value) if on_value is not None else result.value

    async def catch(self, on_error: Callable[[BaseException], Any]):
        return await self.then(None, on_error)

    async def all(self) -> list[Any]:
        """Dispatch every queued call concurrently; fail on the first failure."""
        tasks, cookie = self._queue.drain()
        if not tasks:
            return []

        async def run(task: RequestTask) -> Any:
            result = await self._run(task, task.params, cookie)
            if isinstance(result, Failure):
                raise result.error
            return result.value

        return list(await asyncio.gather(*(run(task) for task in tasks)))

    async def paral(self, on_error: Callable[[BaseException], Any] | None = None) -> list[Any]:
        """Dispatch every queued call concurrently, recovering each failure."""
        tasks, cookie = self._queue.drain()
        if not tasks:
            return []

        async def run(task: RequestTask) -> Any:
            result = await self._run(task, task.params, cookie)
            if isinstance(result, Failure):
                logger.debug("Recovering failed call to %s: %s", task.interface_id, result.error)
                return on_error(result.error) if on_error is not None else result.error
            return result.value

        return list(await asyncio.gather(*(run(task) for task in tasks)))

    async def series(self) -> list[Any]:
        """Dispatch queued calls one at a time in enqueue order.

        Raises:
            ParamsDerivationError: Params (or what a params callable returned)
                are not a mapping; the call is not dispatched.
            The first task error, after which no further call is started.
        """
        tasks, cookie = self._queue.drain()
        results: list[Any] = []

        for task in tasks:
            params = task.params
            if callable(params):
                params = derive_params(params, results[-1] if results else None, list(results))
            if not isinstance(params, Mapping):
                raise ParamsDerivationError(task.interface_id, params)

            result = await self._run(task, dict(params), cookie)
            if isinstance(result, Failure):
                raise result.error
            results.append(result.value)

        return results

    @staticmethod
    async def _run(task: RequestTask, params: Any, cookie: str | None):
        result = await task.dispatcher.execute(params, cookie)
        if isinstance(result, Success):
            return apply_transform(task, result.value)
        return result

    def __repr__(self) -> str:
        return f"<ModelProxy methods={sorted(self._methods)} pending={len(self._queue.tasks)}>"
