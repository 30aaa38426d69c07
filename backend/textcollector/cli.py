"""
TextCollector — Command Line Entry Point
=========================================

What:  `textcollector` console script: the "Add Snippet" automation command
       plus a few maintenance commands that share the API's data file.
How:   argparse sub-commands; each one opens its own Database, runs one
       async operation with asyncio.run() and disposes the store.

    textcollector add TEXT [--source S] [--category C] [--tags "a, b"] [--favorite]
    textcollector seed
    textcollector stats
    textcollector export [-o FILE]
    textcollector import FILE
    textcollector serve [--host H] [--port P]

Exit codes:
    0  success
    1  the operation failed (message on stderr, or the Add Snippet failure message)
    2  the data file could not be opened
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession

from textcollector.config import Settings, settings as default_settings
from textcollector.database import Database
from textcollector.exceptions import StoreUnavailableError, TextCollectorError
from textcollector.logging_config import setup_logging
from textcollector.schemas.snippet import ShortcutRequest
from textcollector.services import create_snippet_service, sample_data, shortcut_service, transfer_service
from textcollector.services.snippet_service import SnippetService

logger = logging.getLogger("textcollector.cli")

T = TypeVar("T")

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_STORE_UNAVAILABLE = 2


async def _with_store(
    settings: Settings,
    operation: Callable[[AsyncSession, SnippetService], Awaitable[T]],
) -> T:
    database = Database(settings.resolved_database_url, busy_timeout=settings.db_busy_timeout)
    await database.init()
    try:
        service = create_snippet_service()
        async with database.session() as session:
            return await operation(session, service)
    finally:
        await database.dispose()


# ── Commands ──────────────────────────────────────────────────────────────

def cmd_add(args: argparse.Namespace, settings: Settings) -> int:
    if not args.text:
        print("Error: text cannot be empty", file=sys.stderr)
        return EXIT_FAILED

    request = ShortcutRequest(
        text=args.text,
        source=args.source,
        category=args.category,
        tags=args.tags,
        is_favorite=args.favorite,
    )
    result = asyncio.run(
        _with_store(
            settings,
            lambda db, service: shortcut_service.add_snippet(
                db, service, request, default_category=settings.category_default
            ),
        )
    )
    print(result.message)
    return EXIT_OK if result.success else EXIT_FAILED


def cmd_seed(args: argparse.Namespace, settings: Settings) -> int:
    created = asyncio.run(_with_store(settings, sample_data.seed_sample_snippets))
    print(f"Added {len(created)} sample snippet(s)")
    return EXIT_OK


def cmd_stats(args: argparse.Namespace, settings: Settings) -> int:
    stats = asyncio.run(_with_store(settings, lambda db, service: service.statistics(db)))
    print(f"Total Snippets:    {stats.total_snippets}")
    print(f"Favorite Snippets: {stats.favorite_snippets}")
    print(f"Tags:              {stats.total_tags}")
    print(f"Storage:           {stats.storage} ({settings.data_file})")
    return EXIT_OK


def cmd_export(args: argparse.Namespace, settings: Settings) -> int:
    document = asyncio.run(_with_store(settings, transfer_service.export_snippets))
    output_text = document.model_dump_json(indent=2)

    if args.output:
        Path(args.output).write_text(output_text, encoding="utf-8")
        print(f"Exported {len(document.snippets)} snippet(s) to {args.output}")
    else:
        print(output_text)
    return EXIT_OK


def cmd_import(args: argparse.Namespace, settings: Settings) -> int:
    try:
        raw = Path(args.file).read_bytes()
    except OSError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return EXIT_FAILED

    document = transfer_service.parse_document(raw)
    imported = asyncio.run(
        _with_store(
            settings,
            lambda db, service: transfer_service.import_snippets(db, service, document),
        )
    )
    print(f"Imported {imported} snippet(s)")
    return EXIT_OK


def cmd_serve(args: argparse.Namespace, settings: Settings) -> int:
    import uvicorn

    from textcollector.main import create_app

    uvicorn.run(
        create_app(settings=settings),
        host=args.host or settings.host,
        port=args.port or settings.port,
        log_config=None,
    )
    return EXIT_OK


# ── Parser ────────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="textcollector",
        description="Collect and organize text snippets",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    add = subparsers.add_parser("add", help="Save a snippet (the Add Snippet command)")
    add.add_argument("text", help="The text content to save")
    add.add_argument("--source", help="Where the text came from")
    add.add_argument("--category", help="Category to organize the snippet")
    add.add_argument("--tags", help='Comma-separated tags, e.g. "work, ideas"')
    add.add_argument(
        "--favorite",
        action="store_true",
        help="Mark as favorite (default: not a favorite)",
    )
    add.set_defaults(handler=cmd_add)

    seed = subparsers.add_parser("seed", help="Add the sample snippets")
    seed.set_defaults(handler=cmd_seed)

    stats = subparsers.add_parser("stats", help="Show snippet and tag counts")
    stats.set_defaults(handler=cmd_stats)

    export = subparsers.add_parser("export", help="Export all snippets as JSON")
    export.add_argument(
        "--output",
        "-o",
        type=str,
        help="Output file path (if not specified, prints to stdout)",
    )
    export.set_defaults(handler=cmd_export)

    import_ = subparsers.add_parser("import", help="Import snippets from a JSON export")
    import_.add_argument("file", help="Path to a file written by `textcollector export`")
    import_.set_defaults(handler=cmd_import)

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", help="Bind address (default: TEXTCOLLECTOR_HOST)")
    serve.add_argument("--port", type=int, help="Port (default: TEXTCOLLECTOR_PORT)")
    serve.set_defaults(handler=cmd_serve)

    return parser


def main(argv: Optional[List[str]] = None, settings: Optional[Settings] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = settings or default_settings
    setup_logging(settings.log_level)

    try:
        return args.handler(args, settings)
    except StoreUnavailableError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return EXIT_STORE_UNAVAILABLE
    except TextCollectorError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return EXIT_FAILED
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return EXIT_FAILED


def run() -> None:
    sys.exit(main())


if __name__ == "__main__":
    run()
