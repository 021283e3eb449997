"""modelproxy adapter package.

Architectural role:
- Defines the external interaction boundary for HTTP and CLI interfaces.
- Performs transport-level validation and response shaping.
- Delegates dispatch to the core layer.

Scope:
- `http_api`: FastAPI application exposing registered interfaces.
- `cli`: `modelproxy` command line entrypoint.
"""
