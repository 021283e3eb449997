"""Per-interface request dispatcher.

Architectural role:
    Executes calls for exactly one interface profile, choosing between a live
    transport request and a mock engine lookup, and normalizes the outcome into
    a tagged `Success`/`Failure` result.

State model:
    The state is fixed at construction from the profile status:
    - `LIVE`: endpoint resolved from `profile.urls[profile.status]`.
    - `MOCK_SUCCESS` (`mock`): serves the rule's `response` fixture.
    - `MOCK_ERROR` (`mockerr`): serves the rule's `responseError` fixture.

Live request flow:
    cookie check -> transport request (query string for GET, form body for
    POST, `Cookie` header when given) -> raw passthrough or charset decode ->
    JSON parse for `json` data type -> `Success(value, set_cookie)`.

Failure handling model:
    - Missing cookie on a cookie-required profile raises `CookieRequiredError`
      before any other work, in every state.
    - Transport, parse and mock failures become `Failure` results and reach the
      caller's error callback in `request`.
    - `request` without an error callback logs and swallows the failure.
"""

import enum
import json
import logging
from typing import Any, Callable

from modelproxy.core.errors import (
    ConfigurationError,
    CookieRequiredError,
    MockEngineError,
    ParseError,
    TransportError,
)
from modelproxy.core.task_types import Failure, Result, Success
from modelproxy.mock.engines import load_engine, run_engine
from modelproxy.registry.profile import ENCODING_RAW, STATUS_MOCK, STATUS_MOCK_ERR
from modelproxy.transport.client import TransportRequest

logger = logging.getLogger(__name__)


class DispatchState(enum.Enum):
    LIVE = "live"
    MOCK_SUCCESS = STATUS_MOCK
    MOCK_ERROR = STATUS_MOCK_ERR


def _log_error(error: BaseException) -> None:
    """Default error callback for direct dispatcher use."""
    logger.error("Unhandled interface error: %s", error)


class Dispatcher:
    """Executor bound to one interface profile.

    Args:
        profile: Interface profile to dispatch for.
        registry: Registry used to resolve the mock rule lazily.
        transport: Async transport for live requests.
        engine_name: Mock engine name from the interface configuration.

    Raises:
        ConfigurationError: Live status with no endpoint for it.
    """

    def __init__(self, profile, registry, transport, engine_name: str) -> None:
        self._profile = profile
        self._registry = registry
        self._transport = transport
        self._engine_name = engine_name
        self._rule: dict[str, Any] | None = None
        self.url: str | None = None
        self.method = (profile.method or "GET").upper()

        if profile.status == STATUS_MOCK:
            self.state = DispatchState.MOCK_SUCCESS
            return
        if profile.status == STATUS_MOCK_ERR:
            self.state = DispatchState.MOCK_ERROR
            return

        url = (profile.urls or {}).get(profile.status)
        if not url:
            raise ConfigurationError(
                f"No endpoint can be resolved for interface {profile.id} with status {profile.status}"
            )
        self.state = DispatchState.LIVE
        self.url = url

    @property
    def interface_id(self) -> str:
        return self._profile.id

    @property
    def profile(self):
        return self._profile

    def get_option(self, name: str) -> Any:
        return getattr(self._profile, name, None)

    async def request(
        self,
        params: dict[str, Any] | None = None,
        on_success: Callable[..., Any] | None = None,
        on_error: Callable[[BaseException], Any] | None = None,
        cookie: str | None = None,
    ) -> Result:
        """Dispatch one call and report it through callbacks.

        Args:
            params: Request params.
            on_success: Called as `on_success(value, set_cookie)`.
            on_error: Called with the error; defaults to logging it.
            cookie: Cookie header value.

        Returns:
            The settled `Success` or `Failure`.

        Raises:
            CookieRequiredError: Cookie-required profile called without cookie.
        """
        result = await self.execute(params, cookie)
        if isinstance(result, Failure):
            (on_error or _log_error)(result.error)
        elif on_success is not None:
            on_success(result.value, result.set_cookie)
        return result

    async def execute(self, params: dict[str, Any] | None = None, cookie: str | None = None) -> Result:
        """Dispatch one call and return its tagged result."""
        if self._profile.is_cookie_needed and cookie is None:
            raise CookieRequiredError(self.interface_id)

        if self.state is not DispatchState.LIVE:
            return self._mock_request()

        return await self._live_request(params or {}, cookie)

    async def _live_request(self, params: dict[str, Any], cookie: str | None) -> Result:
        headers = {}
        if cookie:
            headers["Cookie"] = cookie

        request = TransportRequest(
            url=self.url,
            method=self.method,
            timeout=self._profile.timeout,
            params=params if self.method != "POST" else None,
            form=params if self.method == "POST" else None,
            headers=headers,
        )

        try:
            response = await self._transport.send(request)
        except Exception as exc:
            error = TransportError(self.url, params, exc)
            error.__cause__ = exc
            return Failure(error)

        return self._normalize(response, params)

    def _normalize(self, response, params: dict[str, Any]) -> Result:
        """Decode and parse a completed response per the profile settings."""
        body = response.body
        if self._profile.encoding == ENCODING_RAW:
            return Success(body)

        try:
            text = body.decode(self._profile.encoding, errors="replace")
        except LookupError as exc:
            return Failure(ParseError(self.url, params, body, exc))

        if self._profile.data_type == "json":
            try:
                return Success(json.loads(text), response.set_cookie)
            except ValueError as exc:
                return Failure(ParseError(self.url, params, text, exc))

        return Success(text, response.set_cookie)

    def _mock_request(self) -> Result:
        fixture_key = "response" if self.state is DispatchState.MOCK_SUCCESS else "responseError"
        try:
            if self._rule is None:
                self._rule = self._registry.get_rule(self.interface_id)

            if self._profile.is_rule_static:
                return Success(self._rule.get(fixture_key))

            engine = load_engine(self._engine_name)
            return Success(run_engine(self._engine_name, engine, self._rule, fixture_key))
        except Exception as exc:
            logger.debug("Mock request failed for %s", self.interface_id, exc_info=True)
            error = MockEngineError(self.interface_id, exc)
            error.__cause__ = exc
            return Failure(error)
