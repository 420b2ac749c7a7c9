"""CLI entry point for OCR Image Search."""

import argparse
import sys

import structlog

from .config import get_settings
from .context import AppContext
from .logging_config import configure_logging

logger = structlog.get_logger(__name__)


def scan(folder: str) -> int:
    """Scan a folder into the configured store and report the count."""
    context = AppContext.from_settings(get_settings())
    try:
        results = context.scan(folder)
    except (FileNotFoundError, NotADirectoryError) as e:
        print(f"Cannot scan {folder}: {e}", file=sys.stderr)
        return 1
    finally:
        context.close()

    new = sum(1 for outcome in results if not outcome.existed)
    print(f"Processed {len(results)} images ({new} new)")
    return 0


def search(query: str) -> int:
    """Search the configured store and list the matches."""
    context = AppContext.from_settings(get_settings())
    try:
        response = context.engine.search(query)
    finally:
        context.close()

    print(f'Found {response.total_results} results for "{query}" ({response.tier} tier):')
    for result in response.results:
        print(f"- {result.filename} ({result.path})")
    return 0


def serve() -> int:
    """Run the HTTP server."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "ocr_image_search.main:app",
        host=settings.host,
        port=settings.port,
        log_level=settings.log_level.lower(),
    )
    return 0


def main(argv=None) -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="ocr-image-search",
        description="Catalog images by their recognized text and search them",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    scan_parser = subparsers.add_parser("scan", help="Recognize and catalog images under a folder")
    scan_parser.add_argument("folder", help="Folder to scan recursively")

    search_parser = subparsers.add_parser("search", help="Search cataloged images")
    search_parser.add_argument("query", help="Free-text query")

    subparsers.add_parser("serve", help="Run the HTTP API and web frontend")

    args = parser.parse_args(argv)
    configure_logging(get_settings())

    if args.command == "scan":
        sys.exit(scan(args.folder))
    elif args.command == "search":
        sys.exit(search(args.query))
    elif args.command == "serve":
        sys.exit(serve())


if __name__ == "__main__":
    main()
