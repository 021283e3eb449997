"""Core orchestration package.

Architectural role:
    Implements the request-orchestration engine between application code and
    the interface registry, transport and mock engines.

Composition:
    - `errors`: failure taxonomy.
    - `task_types`: `Success`/`Failure` results and queued `RequestTask`s.
    - `dispatcher`: per-interface live/mock executor.
    - `proxy_factory`: memoized dispatcher construction and process default.
    - `model_proxy`: declarative models and their combinators.
"""
