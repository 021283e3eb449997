"""Mock data generation package.

Scope:
    Provides the engine lookup used by dispatchers in `mock`/`mockerr` status
    and the built-in `mockjs` template engine.

Non-goals:
    - No rule file loading (owned by the interface registry).
    - No caching of generated data.
"""
