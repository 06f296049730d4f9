"""Command-line entry point: categorize a grocery list by store aisle."""

import argparse
import asyncio
import json
import sys
from typing import Optional

import structlog
from pydantic import ValidationError as SettingsValidationError

from grocery_sorter.config import get_settings
from grocery_sorter.llm.exceptions import ConfigurationError
from grocery_sorter.logging_config import configure_logging
from grocery_sorter.models.items import CategorizedItem
from grocery_sorter.orchestrator import create_orchestrator

logger = structlog.get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="grocery-sorter",
        description="Group grocery list items by supermarket aisle using a local Ollama model",
    )
    parser.add_argument(
        "items",
        nargs="*",
        help="Items such as '2 milk' (read one per line from stdin when omitted)",
    )
    parser.add_argument("--json", action="store_true", help="Print results as JSON")
    parser.add_argument(
        "--simple",
        action="store_true",
        help="Skip the model and put every item in the default aisle",
    )
    parser.add_argument(
        "--check",
        action="store_true",
        help="Test the Ollama connection before categorizing",
    )
    return parser


def read_items(args: argparse.Namespace, stdin=None) -> list[str]:
    if args.items:
        return [item for item in args.items if item.strip()]
    stream = stdin if stdin is not None else sys.stdin
    return [line.strip() for line in stream if line.strip()]


def render_table(results: list[CategorizedItem]) -> str:
    """Group results by aisle, aisles in first-seen order."""
    grouped: dict[str, list[CategorizedItem]] = {}
    for item in results:
        grouped.setdefault(item.aisle, []).append(item)
    lines = []
    for aisle, items in grouped.items():
        lines.append(f"{aisle}:")
        lines.extend(f"  - {item.product} ({item.notes})" for item in items)
    return "\n".join(lines)


async def run(args: argparse.Namespace, items: list[str]) -> list[CategorizedItem]:
    async with create_orchestrator() as orchestrator:
        if args.simple:
            return orchestrator.categorize_simple(items)
        if args.check and not await orchestrator.check_connection():
            print("Ollama is not reachable, results will use fallback rules", file=sys.stderr)
        return await orchestrator.categorize_batch(
            items, on_progress=lambda message: print(message, file=sys.stderr)
        )


def main(argv: Optional[list[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
    except SettingsValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 2
    configure_logging(settings.LOG_LEVEL, settings.ENVIRONMENT, stream=sys.stderr)

    items = read_items(args)
    if not items:
        parser.print_usage(sys.stderr)
        return 1

    try:
        results = asyncio.run(run(args, items))
    except ConfigurationError as e:
        logger.error("Configuration error", error=e.message, details=e.details)
        print(f"Configuration error: {e.message}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps([item.model_dump() for item in results], indent=2, ensure_ascii=False))
    else:
        print(render_table(results))
    return 0


if __name__ == "__main__":
    sys.exit(main())
