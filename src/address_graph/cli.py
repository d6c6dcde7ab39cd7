"""CLI entry point for address history reconstruction."""

from __future__ import annotations

import signal
import sys
from pathlib import Path

from loguru import logger

from address_graph.client import Client
from address_graph.config import ClientConfig
from address_graph.errors import AddressGraphError
from address_graph.output import print_history_summary, save_history


def handle_interrupt(signum, frame):  # type: ignore[override]
    """Exit quietly on Ctrl+C."""

    logger.warning("Interrupt received (Ctrl+C)")
    sys.exit(130)


def configure_logger(verbose: bool = False) -> None:
    """Log to stderr; verbose mode adds DEBUG records and their origin."""

    origin = "<cyan>{name}:{line}</cyan> | " if verbose else ""
    logger.remove()
    logger.add(
        sys.stderr,
        format=(
            "<green>{time:HH:mm:ss}</green> | <level>{level: <8}</level> | " + origin + "{message}"
        ),
        level="DEBUG" if verbose else "INFO",
    )


def run(client: Client, address_id: str, validate_only: bool, output: Path | None) -> int:
    """Validate ``address_id`` and, unless asked not to, rebuild its history."""

    try:
        if not client.is_valid_address(address_id):
            logger.error(f"Invalid address: {address_id}")
            return 1
        logger.success(f"✓ {address_id} is a valid address")
        if validate_only:
            return 0

        address = client.get_address(address_id)
        transactions = client.get_transactions(address)

        print_history_summary(address, transactions)
        if output is not None:
            save_history(address, transactions, output)
        return 0

    except AddressGraphError as exc:
        logger.error(f"History reconstruction failed: {exc}")
        return 1
    except Exception as exc:  # noqa: BLE001
        logger.exception(f"Unexpected failure for {address_id}: {exc}")
        return 1


def main(argv: list[str] | None = None) -> int:
    """CLI entry point."""

    import argparse

    parser = argparse.ArgumentParser(
        prog="address-graph",
        description="Rebuild the confirmed transaction history of a Bitcoin address",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  address-graph 1A1zP1eP5QGefi2DMPTfTL5SLmv7DivfNa --rpc-user alice --rpc-password secret
  address-graph <address> --validate-only
  address-graph <address> --output history.json

Unset options fall back to ADDRESS_GRAPH_* environment variables.
        """,
    )
    parser.add_argument("address", help="Address to inspect")
    parser.add_argument("--rpc-url", metavar="URL", help="bitcoind JSON-RPC URL")
    parser.add_argument("--rpc-user", metavar="USER", help="bitcoind RPC username")
    parser.add_argument("--rpc-password", metavar="PASSWORD", help="bitcoind RPC password")
    parser.add_argument("--history-url", metavar="URL", help="Address history base URL")
    parser.add_argument("--limit", type=int, metavar="N", help="Page size (default: 50)")
    parser.add_argument("--buffer", type=int, metavar="N", help="Page overlap (default: 3)")
    parser.add_argument(
        "--insecure",
        action="store_true",
        help="Do not verify TLS certificates of the address history service",
    )
    parser.add_argument(
        "--validate-only", action="store_true", help="Only check the address with the node"
    )
    parser.add_argument("--output", type=Path, metavar="PATH", help="Write history as JSON")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")

    args = parser.parse_args(argv)

    configure_logger(args.verbose)
    signal.signal(signal.SIGINT, handle_interrupt)

    try:
        config = ClientConfig.from_env(
            rpc_url=args.rpc_url,
            rpc_username=args.rpc_user,
            rpc_password=args.rpc_password,
            history_url=args.history_url,
            page_limit=args.limit,
            page_buffer=args.buffer,
            verify_tls=False if args.insecure else None,
        )
    except AddressGraphError as exc:
        logger.error(f"Invalid configuration: {exc}")
        return 1

    with Client(config) as client:
        return run(client, args.address, args.validate_only, args.output)


if __name__ == "__main__":
    sys.exit(main())
