"""
Command line adapter for modelproxy.

Architectural role:
- Loads the interface configuration described by `ProxyConfig` (or flags).
- Lists registered interfaces or invokes a single one, printing JSON.
- Delegates dispatch to the same `ProxyFactory`/`Dispatcher` path used by
  application code.

Commands:
- `list [prefix]`: interface ids with their active status.
- `call <interface_id> [--param key=value ...] [--cookie COOKIE]`.

Error handling strategy:
- Configuration and dispatch failures are printed to stderr with exit code 1.
- Argument shape errors are reported through `argparse`.
"""

import argparse
import asyncio
import json
import logging
import sys

import modelproxy
from modelproxy.core.errors import ModelProxyError
from modelproxy.core.task_types import Failure
from modelproxy.proxy_config import ProxyConfig

logger = logging.getLogger(__name__)


def parse_params(pairs: list[str] | None) -> dict[str, str]:
    """Turn repeated `key=value` flags into a params mapping."""
    params: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise ValueError(f"Invalid --param value: {pair!r} (expected key=value)")
        params[key] = value
    return params


def _dump(value) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return json.dumps(value, ensure_ascii=False, indent=2)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="modelproxy", description="Call backend interfaces or their mocks")
    parser.add_argument("--config", default=None, help="Interface configuration file")
    parser.add_argument("--status", default=None, help="Global status override, for example mock")
    parser.add_argument("--transport", default=None, help="httpx | requests")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    commands = parser.add_subparsers(dest="command", required=True)

    list_cmd = commands.add_parser("list", help="List registered interfaces")
    list_cmd.add_argument("prefix", nargs="?", default=None)

    call_cmd = commands.add_parser("call", help="Invoke one interface")
    call_cmd.add_argument("interface_id")
    call_cmd.add_argument("--param", action="append", default=[], help="key=value request param")
    call_cmd.add_argument("--cookie", default=None)

    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint.

    Returns:
        Process exit code (0 on success, 1 on any modelproxy failure).
    """
    parser = build_parser()
    args = parser.parse_args(argv)
    config = ProxyConfig()

    logging.basicConfig(
        level=logging.DEBUG if (args.verbose or config.debug) else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        factory = modelproxy.init(
            args.config or config.interface_path,
            status=args.status or config.status,
            transport=args.transport or config.transport,
        )
    except ModelProxyError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.command == "list":
        registry = factory.registry
        ids = registry.get_interface_ids_by_prefix(args.prefix) if args.prefix else registry.get_interface_ids()
        for interface_id in ids:
            print(f"{interface_id}\t{registry.get_profile(interface_id).status}")
        return 0

    try:
        params = parse_params(args.param)
    except ValueError as exc:
        parser.error(str(exc))

    try:
        dispatcher = factory.create(args.interface_id)
        result = asyncio.run(dispatcher.execute(params, args.cookie))
    except ModelProxyError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if isinstance(result, Failure):
        print(f"error: {result.error}", file=sys.stderr)
        return 1

    print(_dump(result.value))
    return 0


if __name__ == "__main__":
    sys.exit(main())
