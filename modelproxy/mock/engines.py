"""Mock engine resolution.

Architectural role:
    Resolves the mock generation engine named in the interface configuration
    and exposes a single `run_engine` entry point to the dispatcher.

Resolution order:
    1. Engines registered in-process via `register_engine` (the built-in
       `mockjs` template engine is registered at import).
    2. A module importable under the engine name (dashes mapped to
       underscores), used as the engine object itself.

Engine capability:
    Engines expose `generate(spec)`. The `river-mock` engine is the single
    exception and exposes `spec_to_mock(rule)`, receiving the whole rule.
    Selection is by exact name, not by probing for capabilities.
"""

import importlib
import logging
from typing import Any, Protocol

from modelproxy.core.errors import ConfigurationError
from modelproxy.mock.template import TemplateEngine

logger = logging.getLogger(__name__)

RIVER_MOCK = "river-mock"


class MockEngine(Protocol):
    def generate(self, spec: Any) -> Any:
        ...


_ENGINES: dict[str, Any] = {}


def register_engine(name: str, engine: Any) -> None:
    """Register (or replace) an engine under `name`."""
    _ENGINES[name] = engine


def unregister_engine(name: str) -> None:
    _ENGINES.pop(name, None)


def load_engine(name: str) -> Any:
    """Return the engine registered or importable under `name`.

    Raises:
        ConfigurationError: No engine can be found for the name.
    """
    if name in _ENGINES:
        return _ENGINES[name]

    module_name = name.replace("-", "_")
    try:
        engine = importlib.import_module(module_name)
    except ImportError as exc:
        raise ConfigurationError(f"Mock engine {name} can not be loaded: {exc}") from exc

    logger.debug("Loaded mock engine %s from module %s", name, module_name)
    _ENGINES[name] = engine
    return engine


def run_engine(name: str, engine: Any, rule: dict[str, Any], fixture_key: str) -> Any:
    """Generate mock data for a rule with the named engine.

    Args:
        name: Engine name from the interface configuration.
        engine: Engine object returned by `load_engine`.
        rule: Whole mock rule (`response`/`responseError`).
        fixture_key: Rule key to generate from for `generate`-style engines.
    """
    if name == RIVER_MOCK:
        return engine.spec_to_mock(rule)
    return engine.generate(rule.get(fixture_key))


register_engine("mockjs", TemplateEngine())
