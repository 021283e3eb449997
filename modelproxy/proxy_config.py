"""Runtime configuration for modelproxy.

Architectural role:
    Centralizes environment-driven settings consumed by `modelproxy.init`, the
    CLI and the HTTP adapter.

Relevant environment variables:
    - `MODELPROXY_INTERFACE_PATH`: interface configuration file.
    - `MODELPROXY_STATUS`: global status override (for example `mock`).
    - `MODELPROXY_TRANSPORT`: `httpx` (default) or `requests`.
    - `MODELPROXY_DEBUG`: `true` enables verbose adapter logging.

Determinism:
    Values are resolved when `ProxyConfig()` is instantiated, after `.env`
    has been loaded at import time.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


@dataclass(frozen=True)
class ProxyConfig:
    """Settings for building the default `ProxyFactory`."""

    interface_path: str = field(default_factory=lambda: _env("MODELPROXY_INTERFACE_PATH", "interface.json"))
    status: str | None = field(default_factory=lambda: _env("MODELPROXY_STATUS"))
    transport: str = field(default_factory=lambda: _env("MODELPROXY_TRANSPORT", "httpx").lower())
    debug: bool = field(default_factory=lambda: _env("MODELPROXY_DEBUG", "") == "true")
