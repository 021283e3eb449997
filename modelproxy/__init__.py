"""modelproxy: declarative backend interface models with mock substitution.

Typical use:
    import modelproxy

    modelproxy.init("interface.json")
    model = modelproxy.ModelProxy("Search.*")
    items, suggestions = await model.getItems({"q": "phone"}).suggest().all()

Interfaces whose status is `mock` or `mockerr` are served from their rule files
without touching the network, so the calling code does not change between
design-time and live environments.
"""

from modelproxy.core.errors import (
    ConfigurationError,
    CookieRequiredError,
    MockEngineError,
    ModelProxyError,
    ParamsDerivationError,
    ParseError,
    TransportError,
)
from modelproxy.core.model_proxy import ModelProxy
from modelproxy.core.proxy_factory import ProxyFactory, get_default_factory, set_default_factory
from modelproxy.core.task_types import Failure, Success
from modelproxy.registry.interface_manager import InterfaceManager
from modelproxy.transport.client import build_transport

__version__ = "1.0.0"


def init(source, status: str | None = None, transport=None) -> ProxyFactory:
    """Load interface configuration and install the default factory.

    Args:
        source: Interface JSON path or equivalent mapping.
        status: Global status override.
        transport: Transport instance or name (`httpx`, `requests`).

    Returns:
        The installed `ProxyFactory`.
    """
    if transport is None or isinstance(transport, str):
        transport = build_transport(transport)
    factory = ProxyFactory(InterfaceManager(source, status=status), transport=transport)
    set_default_factory(factory)
    return factory


__all__ = [
    "ConfigurationError",
    "CookieRequiredError",
    "Failure",
    "InterfaceManager",
    "MockEngineError",
    "ModelProxy",
    "ModelProxyError",
    "ParamsDerivationError",
    "ParseError",
    "ProxyFactory",
    "Success",
    "TransportError",
    "get_default_factory",
    "init",
    "set_default_factory",
]
