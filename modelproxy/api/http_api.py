"""
HTTP API adapter exposing registered interfaces.

Architectural role:
- Lets browser or remote clients call registered interfaces through the same
  live/mock dispatch used in-process.
- Delegates every call to `Dispatcher.execute`; no orchestration happens here.

Endpoint responsibilities:
- `GET /interfaces`: list interface ids (optional `prefix` query) with status.
- `GET /interfaces/{interface_id}`: return one normalized profile.
- `POST /interfaces/{interface_id}`: invoke one interface with
  `{"params": {...}, "cookie": "..."}`.

Cookie handling:
- The body `cookie` wins; otherwise the incoming `Cookie` header is forwarded.
- `set-cookie` values from live responses are forwarded to the client.

Error handling strategy:
- Unknown interface id -> HTTP 404.
- Missing cookie on a cookie-required interface -> HTTP 400.
- Configuration failure (no endpoint for status) -> HTTP 500.
- Transport/parse/mock failures -> HTTP 502 with error type and message.

Side effects:
- Without an explicit factory, the first request loads the interface file
  named by `MODELPROXY_INTERFACE_PATH` (with `MODELPROXY_STATUS` and
  `MODELPROXY_TRANSPORT`) and installs it as the process default.
- Emits request debug logs only when `MODELPROXY_DEBUG == "true"`.
"""

import logging
import threading
from typing import Any

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel

import modelproxy
from modelproxy.core.errors import ConfigurationError, CookieRequiredError
from modelproxy.core.proxy_factory import ProxyFactory, get_default_factory
from modelproxy.core.task_types import Failure
from modelproxy.proxy_config import ProxyConfig

logger = logging.getLogger(__name__)


class InvokeRequest(BaseModel):
    """Payload of `POST /interfaces/{interface_id}`."""

    params: dict[str, Any] = {}
    cookie: str | None = None


def _error(status_code: int, error: BaseException) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": str(error), "type": type(error).__name__},
    )


def create_app(factory: ProxyFactory | None = None, config: ProxyConfig | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        factory: Factory to dispatch through. When omitted, the process
            default is used; if none is installed yet, one is built from
            `config` on first request.
        config: Adapter settings. Read from the environment on first request
            when omitted.
    """
    app = FastAPI(title="modelproxy")
    init_lock = threading.Lock()

    def settings() -> ProxyConfig:
        return config if config is not None else ProxyConfig()

    def resolve_factory() -> ProxyFactory:
        if factory is not None:
            return factory
        with init_lock:
            try:
                return get_default_factory()
            except ConfigurationError:
                current = settings()
                logger.info("Loading interfaces from %s", current.interface_path)
                return modelproxy.init(
                    current.interface_path,
                    status=current.status,
                    transport=current.transport,
                )

    @app.get("/interfaces")
    def list_interfaces(prefix: str | None = None):
        registry = resolve_factory().registry
        ids = registry.get_interface_ids_by_prefix(prefix) if prefix else registry.get_interface_ids()
        return {
            "status": registry.get_status(),
            "engine": registry.get_engine(),
            "data": [
                {"id": interface_id, "status": registry.get_profile(interface_id).status}
                for interface_id in ids
            ],
        }

    @app.get("/interfaces/{interface_id}")
    def get_interface(interface_id: str):
        profile = resolve_factory().registry.get_profile(interface_id)
        if profile is None:
            return _error(404, ConfigurationError(f"Invalid interface id: {interface_id}"))
        return profile.to_dict()

    @app.post("/interfaces/{interface_id}")
    async def invoke_interface(interface_id: str, payload: InvokeRequest, request: Request):
        proxy_factory = resolve_factory()
        if not proxy_factory.registry.is_profile_existed(interface_id):
            return _error(404, ConfigurationError(f"Invalid interface id: {interface_id}"))

        cookie = payload.cookie if payload.cookie is not None else request.headers.get("cookie")

        if settings().debug:
            logger.info("Invoking %s params=%r cookie=%s", interface_id, payload.params, bool(cookie))

        try:
            dispatcher = proxy_factory.create(interface_id)
            result = await dispatcher.execute(payload.params, cookie)
        except CookieRequiredError as exc:
            return _error(400, exc)
        except ConfigurationError as exc:
            logger.exception("Interface %s is misconfigured", interface_id)
            return _error(500, exc)

        if isinstance(result, Failure):
            logger.warning("Interface %s failed: %s", interface_id, result.error)
            return _error(502, result.error)

        if isinstance(result.value, bytes):
            response = Response(content=result.value, media_type="application/octet-stream")
        else:
            response = JSONResponse(content={"data": result.value})

        for value in result.set_cookie or []:
            response.headers.append("set-cookie", value)
        return response

    return app


app = create_app()
