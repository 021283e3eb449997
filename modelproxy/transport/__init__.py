"""HTTP transport package.

Architectural role:
    Provides the outbound request/response contracts and the transport adapters
    that live dispatchers send requests through.

Module split:
    - `client`: `TransportRequest`/`TransportResponse`, `HttpxTransport`,
      `RequestsTransport` and `build_transport`.
"""
