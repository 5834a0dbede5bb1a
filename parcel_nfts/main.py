"""
Command line entry point.

Offers the parts of the minting workflows that need no wallet: checking a
collection directory before minting, and inspecting or resetting the
progress ledger of a campaign.
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from parcel_nfts.config import settings
from parcel_nfts.core.files import index_by_name, load_directory
from parcel_nfts.core.ledger import ProgressLedger
from parcel_nfts.core.manifest import DOCUMENTATION, MANIFEST_FILENAME, validate_manifest
from parcel_nfts.exceptions import ValidationErrors
from parcel_nfts.utils.logging_config import init_logging

logger = logging.getLogger(__name__)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="parcel_nfts",
        description="Parcel NFTs - resumable minting workflows for escrow-backed NFT collections",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m parcel_nfts validate ./my-collection     # Check a collection before minting
  python -m parcel_nfts manifest-docs               # Print the manifest format
  python -m parcel_nfts ledger list                 # List campaigns with recorded progress
  python -m parcel_nfts ledger show '["Title","SYM"]'
        """
    )

    parser.add_argument(
        "--log-level",
        default=None,
        help=f"Logging level (default: {settings.log_level})"
    )
    parser.add_argument(
        "--db-path",
        default=None,
        help=f"Progress ledger database (default: {settings.ledger.db_path})"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    validate = subparsers.add_parser("validate", help="Validate a collection directory")
    validate.add_argument("directory", type=Path, help="Directory holding manifest.json and its files")

    subparsers.add_parser("manifest-docs", help="Print the manifest format")

    ledger = subparsers.add_parser("ledger", help="Inspect or reset workflow progress")
    ledger_actions = ledger.add_subparsers(dest="action", required=True)
    ledger_actions.add_parser("list", help="List namespaces with recorded progress")
    show = ledger_actions.add_parser("show", help="Show the entries of a namespace")
    show.add_argument("namespace")
    reset = ledger_actions.add_parser("reset", help="Delete the entries of a namespace")
    reset.add_argument("namespace")

    return parser.parse_args(argv)


def validate_directory(directory: Path) -> int:
    """Print every problem with a collection directory. Returns the exit code."""
    if not directory.is_dir():
        print(f"{directory} is not a directory", file=sys.stderr)
        return 2

    by_name = index_by_name(load_directory(directory))
    manifest_file = by_name.get(MANIFEST_FILENAME)
    if manifest_file is None:
        print(f"Missing {MANIFEST_FILENAME}", file=sys.stderr)
        return 1

    try:
        manifest = validate_manifest(manifest_file.data, by_name.keys())
    except ValidationErrors as e:
        for error in e.validation_errors:
            print(error, file=sys.stderr)
        return 1

    print(f"{manifest.title} ({manifest.symbol}): {manifest.collection_size} items, manifest is valid")
    return 0


async def run_ledger_command(ledger: ProgressLedger, action: str, namespace: Optional[str]) -> int:
    if action == "list":
        for name in await ledger.namespaces():
            print(name)
        return 0

    if action == "show":
        print(json.dumps(await ledger.entries(namespace), indent=2))
        return 0

    removed = await ledger.clear(namespace)
    print(f"removed {removed} entries")
    return 0


async def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_arguments(argv)
    init_logging(args.log_level)

    if args.command == "validate":
        return validate_directory(args.directory)

    if args.command == "manifest-docs":
        print(DOCUMENTATION)
        return 0

    ledger = ProgressLedger(args.db_path)
    return await run_ledger_command(ledger, args.action, getattr(args, "namespace", None))


def cli() -> None:
    sys.exit(asyncio.run(main()))
