"""Error taxonomy for interface dispatch and orchestration.

Architectural role:
    Every failure produced by the registry, the dispatchers, or the model
    combinators is an instance of `ModelProxyError`, so callers can catch the
    whole family at once or single out one failure kind.

Propagation model:
    - Dispatcher failures are reported through error callbacks or `Failure`
      results, never returned as plain values.
    - `CookieRequiredError` is raised directly at call time.
    - Combinators other than `paral` re-raise task failures to the awaiting
      caller.
"""

from urllib.parse import urlencode


def serialize_params(params) -> str:
    """Render request params as a query string for diagnostics."""
    if not params:
        return ""
    try:
        return urlencode(params, doseq=True)
    except (TypeError, ValueError):
        return repr(params)


class ModelProxyError(RuntimeError):
    """Base class of all modelproxy failures."""


class ConfigurationError(ModelProxyError):
    """Interface configuration cannot satisfy a request.

    Raised for unknown interface ids, profiles without an endpoint for their
    active status, and unreadable interface/rule files.
    """


class CookieRequiredError(ModelProxyError):
    """A cookie-required interface was invoked without a cookie."""

    def __init__(self, interface_id: str):
        super().__init__(
            "This request is cookie needed, you must set a cookie for it "
            f"before request. id = {interface_id}"
        )
        self.interface_id = interface_id


class TransportError(ModelProxyError):
    """Network-layer failure while calling a live endpoint."""

    def __init__(self, url: str, params, cause: BaseException):
        self.url = url
        self.params = serialize_params(params)
        self.cause = cause
        super().__init__(
            f"Request service error, url:{url}; params:{self.params}; error:{cause!r}"
        )


class ParseError(ModelProxyError):
    """Response body could not be decoded or parsed as declared."""

    def __init__(self, url: str, params, body, cause: BaseException):
        self.url = url
        self.params = serialize_params(params)
        self.body = body
        self.cause = cause
        super().__init__(
            f"Request return value parse fail, url:{url}; params:{self.params}; "
            f"returnValue:{body!r}; error:{cause!r}"
        )


class MockEngineError(ModelProxyError):
    """Mock rule resolution or mock generation failed."""

    def __init__(self, interface_id: str, cause: BaseException):
        self.interface_id = interface_id
        self.cause = cause
        super().__init__(f"Mock request failed for interface {interface_id}: {cause}")


class ParamsDerivationError(ModelProxyError):
    """A series step computed params that are not a key-value mapping."""

    def __init__(self, interface_id: str, params):
        self.interface_id = interface_id
        self.params = params
        super().__init__(
            f"Request params derivation failed, interfaceId:{interface_id}; "
            f"got {type(params).__name__}"
        )
