"""Memoizing dispatcher factory.

Architectural role:
    Owns the interface registry, the transport and the per-id dispatcher cache.
    A `ModelProxy` resolves each of its interface ids through a factory at
    build time.

Lifecycle:
    A factory is created once (usually by `modelproxy.init`) and either passed
    explicitly or installed as the process default with `set_default_factory`.
    `reset()` empties the dispatcher cache, which tests use between cases.

Thread safety:
    Construction and caching happen under a lock, so concurrent first requests
    for one id still produce a single dispatcher. Failed constructions are
    never cached.
"""

import logging
import threading

from modelproxy.core.dispatcher import Dispatcher
from modelproxy.core.errors import ConfigurationError
from modelproxy.transport.client import build_transport

logger = logging.getLogger(__name__)


class ProxyFactory:
    """Create and memoize one `Dispatcher` per interface id."""

    def __init__(self, registry, transport=None) -> None:
        self.registry = registry
        self.transport = transport if transport is not None else build_transport()
        self._engine_name = registry.get_engine()
        self._dispatchers: dict[str, Dispatcher] = {}
        self._lock = threading.Lock()

    @property
    def engine_name(self) -> str:
        return self._engine_name

    def create(self, interface_id: str) -> Dispatcher:
        """Return the dispatcher for `interface_id`, constructing it once.

        Raises:
            ConfigurationError: Unknown id, or no endpoint for a live status.
        """
        dispatcher = self._dispatchers.get(interface_id)
        if dispatcher is not None:
            return dispatcher

        with self._lock:
            dispatcher = self._dispatchers.get(interface_id)
            if dispatcher is not None:
                return dispatcher

            profile = self.registry.get_profile(interface_id)
            if profile is None:
                raise ConfigurationError(f"Invalid interface id: {interface_id}")

            dispatcher = Dispatcher(profile, self.registry, self.transport, self._engine_name)
            self._dispatchers[interface_id] = dispatcher
            logger.debug("Dispatcher for %s created in %s state", interface_id, dispatcher.state.value)
            return dispatcher

    def get_interface_ids_by_prefix(self, prefix: str) -> list[str]:
        return self.registry.get_interface_ids_by_prefix(prefix)

    def is_cached(self, interface_id: str) -> bool:
        return interface_id in self._dispatchers

    def reset(self) -> None:
        with self._lock:
            self._dispatchers.clear()


_DEFAULT_FACTORY: ProxyFactory | None = None


def set_default_factory(factory: ProxyFactory | None) -> None:
    """Install or clear the factory used when a model is built without one."""
    global _DEFAULT_FACTORY
    _DEFAULT_FACTORY = factory


def get_default_factory() -> ProxyFactory:
    """Return the process default factory.

    Raises:
        ConfigurationError: `modelproxy.init` (or `set_default_factory`) has
            not been called.
    """
    if _DEFAULT_FACTORY is None:
        raise ConfigurationError("ModelProxy is not initialized. Call modelproxy.init(path) first.")
    return _DEFAULT_FACTORY
