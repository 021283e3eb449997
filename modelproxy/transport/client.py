"""HTTP transport adapters used by live dispatchers.

Architectural role:
    Executes one outbound request described by `TransportRequest` and returns
    the raw body plus headers. Encoding, parsing and error wrapping are left to
    `modelproxy.core.dispatcher`.

Transport choices:
    - `HttpxTransport` (default): native async via `httpx.AsyncClient`.
    - `RequestsTransport`: blocking `requests` call run in a worker thread via
      `asyncio.to_thread`, for deployments that standardize on `requests`.

Retry behavior:
    No retry loop is implemented. Each request is attempted once with the
    profile's timeout.

Status codes:
    HTTP error statuses are not raised. The body of any completed response is
    returned to the dispatcher as-is.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx
import requests

from modelproxy.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransportRequest:
    """Outbound request shape built by the dispatcher.

    Attributes:
        url: Target endpoint.
        method: Uppercase HTTP method.
        timeout: Timeout in milliseconds.
        params: Query-string params (GET).
        form: Form-encoded body params (POST).
        headers: Extra request headers, for example `Cookie`.
    """

    url: str
    method: str = "GET"
    timeout: int | None = None
    params: dict[str, Any] | None = None
    form: dict[str, Any] | None = None
    headers: dict[str, str] = field(default_factory=dict)

    @property
    def timeout_seconds(self) -> float | None:
        return self.timeout / 1000 if self.timeout else None


@dataclass(frozen=True)
class TransportResponse:
    """Completed response: raw body bytes and headers."""

    body: bytes
    status_code: int = 200
    headers: dict[str, str] = field(default_factory=dict)
    set_cookie: list[str] | None = None


class Transport(Protocol):
    """Async capability consumed by `Dispatcher`."""

    async def send(self, request: TransportRequest) -> TransportResponse:
        ...


class HttpxTransport:
    """Async transport on `httpx`.

    A client is opened per request, mirroring the single-shot request pattern
    of the dispatcher. A custom `httpx` transport can be injected for tests.
    """

    def __init__(self, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    async def send(self, request: TransportRequest) -> TransportResponse:
        async with httpx.AsyncClient(
            timeout=request.timeout_seconds,
            follow_redirects=True,
            transport=self._transport,
        ) as client:
            response = await client.request(
                request.method,
                request.url,
                params=request.params,
                data=request.form,
                headers=request.headers,
            )

        set_cookie = response.headers.get_list("set-cookie") or None
        return TransportResponse(
            body=response.content,
            status_code=response.status_code,
            headers=dict(response.headers),
            set_cookie=set_cookie,
        )


class RequestsTransport:
    """Blocking `requests` transport executed off the event loop."""

    def __init__(self, session: requests.Session | None = None) -> None:
        self._session = session

    def _send_blocking(self, request: TransportRequest) -> TransportResponse:
        sender = self._session.request if self._session is not None else requests.request
        response = sender(
            request.method,
            request.url,
            params=request.params,
            data=request.form,
            headers=request.headers,
            timeout=request.timeout_seconds,
        )

        set_cookie = None
        raw_headers = getattr(response.raw, "headers", None)
        if raw_headers is not None and hasattr(raw_headers, "getlist"):
            set_cookie = raw_headers.getlist("Set-Cookie") or None
        elif response.headers.get("set-cookie"):
            set_cookie = [response.headers["set-cookie"]]

        return TransportResponse(
            body=response.content,
            status_code=response.status_code,
            headers=dict(response.headers),
            set_cookie=set_cookie,
        )

    async def send(self, request: TransportRequest) -> TransportResponse:
        return await asyncio.to_thread(self._send_blocking, request)


TRANSPORTS = {
    "httpx": HttpxTransport,
    "requests": RequestsTransport,
}


def build_transport(name: str | None = None) -> Transport:
    """Instantiate a transport by name (`httpx` when omitted).

    Raises:
        ConfigurationError: Unknown transport name.
    """
    key = (name or "httpx").strip().lower()
    transport_cls = TRANSPORTS.get(key)
    if transport_cls is None:
        raise ConfigurationError(f"Unsupported transport: {name}")
    logger.debug("Using %s transport", key)
    return transport_cls()
