"""Command line entry point."""

import argparse
import json
import logging
import sys
from typing import List, Optional

from holder_sleuth.config.settings import settings
from holder_sleuth.core.exceptions import HolderSleuthError
from holder_sleuth.pipeline.orchestrator import IngestionOrchestrator
from holder_sleuth.storage.database import Database
from holder_sleuth.utils.logging import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="holder-sleuth",
        description="Track token holder balances from Transfer and Mint logs",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        help="Logging level (default: INFO)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    process = subparsers.add_parser(
        "process-logs", help="Ingest logs up to the chain head"
    )
    process.add_argument(
        "--schema",
        help="Path to the event schema JSON file",
        default=None,
    )
    process.add_argument(
        "--token-address",
        help="Token contract address (defaults to TOKEN_ADDRESS)",
        default=None,
    )

    subparsers.add_parser("init-db", help="Create the checkpoint and holder tables")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.log_level)

    try:
        if args.command == "init-db":
            Database(settings.database.get_connection_url()).create_tables()
            return 0

        if args.schema:
            settings.ingestion.event_schema_path = args.schema
        if args.token_address:
            settings.node.token_address = args.token_address

        result = IngestionOrchestrator.from_settings(settings).run()
    except HolderSleuthError as e:
        logger.error(f"{args.command} failed: {e}")
        return 1

    print(json.dumps(result.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
