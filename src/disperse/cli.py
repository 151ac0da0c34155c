"""
Command-line interface for disperse.

Plans bulk transfers from a JSON file and prints the resulting bundles.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

import structlog

from disperse import __version__
from disperse.config import DisperseConfig, NetworkType, set_config
from disperse.core.bundle import OrchestrationResult
from disperse.core.errors import ConfigurationError, DisperseError
from disperse.engine.orchestrator import DisperseOrchestrator, DisperseRequest, coerce_request
from disperse.ledger.cardano import CardanoLedgerClient
from disperse.ledger.interface import LedgerConnectionError


def setup_logging(level: str = "INFO", json_format: bool = False) -> None:
    """Configure structured logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.processors.JSONRenderer() if json_format
            else structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="disperse",
        description="Plan bulk ledger transfers as bounded transaction bundles",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    plan_parser = subparsers.add_parser("plan", help="Plan provisioning and transfer bundles")
    plan_parser.add_argument(
        "transfers_file",
        help='JSON file with {"transfers": [...]} or {"recipients": [...], "fixed_amount": N}',
    )
    plan_parser.add_argument(
        "--sender",
        required=True,
        help="Sender address (pays for provisioning, signs the annotation)",
    )
    plan_parser.add_argument(
        "--asset",
        dest="resource_id",
        help="Native asset unit (policy id hex + asset name hex); lovelace if omitted",
    )
    plan_parser.add_argument(
        "--network",
        choices=["mainnet", "preprod", "preview"],
        default="preprod",
        help="Cardano network (default: preprod)",
    )
    plan_parser.add_argument(
        "--blockfrost-project-id",
        help="Blockfrost project ID (needed for account lookups)",
    )
    plan_parser.add_argument(
        "--provisioning-capacity",
        type=int,
        help="Provisioning operations per bundle (default: 12)",
    )
    plan_parser.add_argument(
        "--transfer-capacity",
        type=int,
        help="Transfer operations per bundle (default: 18)",
    )
    plan_parser.add_argument(
        "--memo",
        dest="annotation_text",
        help="Message attached to every transfer bundle",
    )
    plan_parser.add_argument(
        "--skip-provisioning",
        action="store_true",
        help="Plan transfer bundles only, without account lookups",
    )
    plan_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the plan as JSON",
    )
    plan_parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default="WARNING",
        help="Logging level (default: WARNING)",
    )
    plan_parser.add_argument(
        "--log-json",
        action="store_true",
        help="Output logs in JSON format",
    )

    return parser


def load_request(args: argparse.Namespace) -> DisperseRequest:
    """Build a DisperseRequest from the transfers file and CLI options."""
    try:
        data = json.loads(Path(args.transfers_file).read_text(encoding="utf-8"))
    except OSError as e:
        raise DisperseError(f"cannot read transfers file: {e}") from e
    except json.JSONDecodeError as e:
        raise DisperseError(f"transfers file is not valid JSON: {e}") from e

    if not isinstance(data, dict):
        raise DisperseError("transfers file must contain a JSON object")

    return coerce_request({
        "sender": args.sender,
        "resource_id": args.resource_id,
        "transfers": data.get("transfers"),
        "recipients": data.get("recipients"),
        "fixed_amount": data.get("fixed_amount"),
        "provisioning_capacity": args.provisioning_capacity,
        "transfer_capacity": args.transfer_capacity,
        "annotation_text": args.annotation_text,
    })


def print_bundles(title: str, bundles: list) -> None:
    print(f"{title}: {len(bundles)} bundle(s)")
    for bundle in bundles:
        marker = " + annotation" if bundle.has_marker else ""
        print(f"  #{bundle.index}: {bundle.size} operation(s){marker}")
    print()


async def plan_command(args: argparse.Namespace) -> int:
    """Plan bundles and print them."""
    config = DisperseConfig(
        network=NetworkType(args.network),
        blockfrost_project_id=args.blockfrost_project_id,
    )
    set_config(config)

    request = load_request(args)
    try:
        client = CardanoLedgerClient(config, resource_id=args.resource_id)
    except ValueError as e:
        raise ConfigurationError(f"invalid asset unit: {e}") from e
    orchestrator = DisperseOrchestrator(client, config=config)

    try:
        if args.skip_provisioning:
            result = OrchestrationResult(transfer_bundles=orchestrator.plan_transfers(request))
        else:
            result = await orchestrator.plan(request)
    finally:
        await client.disconnect()

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
        return 0

    print_bundles("Provisioning", result.provisioning_bundles)
    print_bundles("Transfers", result.transfer_bundles)
    return 0


def main() -> None:
    """Main entry point."""
    parser = create_parser()
    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        sys.exit(1)

    setup_logging(args.log_level, args.log_json)

    if args.command == "plan":
        try:
            sys.exit(asyncio.run(plan_command(args)))
        except (DisperseError, LedgerConnectionError) as e:
            print(f"error: {e}", file=sys.stderr)
            sys.exit(2)


if __name__ == "__main__":
    main()
