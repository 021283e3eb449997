"""Interface registry package.

Architectural role:
    Owns the declarative interface configuration consumed by the dispatch
    layer.

Module split:
    - `profile`: immutable `InterfaceProfile` schema and status constants.
    - `interface_manager`: configuration loading and profile/rule lookup.
"""
