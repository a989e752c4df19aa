# main.py

"""Entry point for the pricelist_intel pipeline."""

import argparse
import asyncio
import logging
import sys
from datetime import date

from src.config.logging_config import setup_logging
from src.config.settings import Settings

logger = logging.getLogger("pricelist_intel.main")


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid date '{value}', expected YYYY-MM-DD"
        ) from None


def _build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for the CLI."""
    valid_ids = ", ".join(b["id"] for b in Settings.BRANDS)

    parser = argparse.ArgumentParser(
        prog="pricelist_intel",
        description="Vehicle price-list collection and market analytics.",
        epilog=f"Available brands: {valid_ids}",
    )
    parser.add_argument(
        "-d",
        "--data-dir",
        default=None,
        dest="data_dir",
        help="Data directory (default: data/ or $PRICELIST_DATA_DIR).",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    collect = commands.add_parser(
        "collect", help="Collect today's price lists."
    )
    collect.add_argument(
        "--date",
        type=_parse_date,
        default=None,
        dest="run_date",
        help="Snapshot date (default: today).",
    )
    collect.add_argument(
        "-b",
        "--brands",
        default=None,
        help="Comma-separated brand ids (default: all).",
    )

    generate = commands.add_parser(
        "generate", help="Regenerate derived artifacts."
    )
    generate.add_argument(
        "--only",
        default=None,
        help="Comma-separated generator names (default: all).",
    )

    health = commands.add_parser(
        "health", help="Check stored data health."
    )
    health.add_argument(
        "--probe",
        action="store_true",
        default=False,
        help="Also probe vendor homepages for connectivity.",
    )
    return parser


def main() -> None:
    log_file = setup_logging()
    logger.info("pricelist_intel starting, log file: %s", log_file)

    args = _build_parser().parse_args()

    from src.cli.runner import run_collect, run_generate, run_health

    try:
        if args.command == "collect":
            exit_code = run_collect(args.brands, args.run_date, args.data_dir)
        elif args.command == "generate":
            exit_code = asyncio.run(run_generate(args.only, args.data_dir))
        else:
            exit_code = asyncio.run(run_health(args.probe, args.data_dir))
    except Exception:
        logger.critical("Fatal error during %s", args.command, exc_info=True)
        raise
    finally:
        logger.info("pricelist_intel %s finished", args.command)
    sys.exit(exit_code)


if __name__ == "__main__":
    main()
