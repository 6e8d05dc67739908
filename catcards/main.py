"""catcards - render catalogue product cards from the command line."""

import argparse
import asyncio
import json
import sys
from datetime import datetime
from pathlib import Path

from .config import settings
from .utils import get_logger, setup_logging

logger = get_logger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="catcards - Render shareable product cards for every catalogue",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m catcards.main --products products.json
  python -m catcards.main --products products.json --theme glass
  python -m catcards.main --products products.json --catalogues catalogues.json
  python -m catcards.main --products products.json --resume   # Continue an interrupted batch
  python -m catcards.main --products products.json --debug
        """,
    )

    parser.add_argument(
        "--products",
        type=Path,
        required=True,
        help="JSON file with a list of products",
    )
    parser.add_argument(
        "--catalogues",
        type=Path,
        default=None,
        help="JSON file with catalogue definitions (default: CATALOGUES_CONFIG_PATH or Master only)",
    )
    parser.add_argument(
        "--fields",
        type=Path,
        default=None,
        help="JSON file with field configuration (default: FIELDS_CONFIG_PATH or built-in fields)",
    )
    parser.add_argument(
        "--theme",
        choices=["classic", "glass"],
        default="classic",
        help="Card theme",
    )
    parser.add_argument(
        "--price-position",
        choices=["top", "bottom"],
        default=None,
        help="Where the classic theme draws the price bar",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Output directory (default: OUTPUT_DIR)",
    )
    parser.add_argument(
        "--resume",
        action="store_true",
        help="Resume an interrupted batch if one was saved recently",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging",
    )

    return parser.parse_args()


def load_products(path: Path) -> list:
    """Read products from a JSON list (or ``{"products": [...]}``)."""
    from .models import Product

    data = json.loads(path.read_text())
    if isinstance(data, dict):
        data = data.get("products", [])
    return [Product.from_dict(item) for item in data]


def run_batch(args: argparse.Namespace) -> int:
    """
    Render all products for all catalogues.

    Args:
        args: Parsed command line arguments

    Returns:
        Exit code (0 for success or partial success)
    """
    from .card_renderer import CardRenderer
    from .encoder import RenderedImageStore
    from .fields import load_catalogues, load_field_configs
    from .orchestrator import BatchRenderOrchestrator, CallbackObserver, CompletionStatus
    from .storage import JsonFileStore

    start_time = datetime.now()

    if args.output_dir:
        settings.output_dir = args.output_dir
    settings.ensure_directories()

    try:
        products = load_products(args.products)
    except (OSError, json.JSONDecodeError, KeyError, TypeError) as e:
        logger.error(f"Failed to read products from {args.products}: {e}")
        return 1

    catalogues = load_catalogues(args.catalogues)
    store = JsonFileStore(settings.state_dir)
    renderer = CardRenderer(
        theme=args.theme,
        image_store=RenderedImageStore(store, settings.output_dir),
        field_configs=load_field_configs(args.fields),
        price_position=args.price_position,
    )
    orchestrator = BatchRenderOrchestrator(store, item_renderer=renderer.render_item)

    completion = {}
    observer = CallbackObserver(
        on_progress=lambda e: logger.info(
            f"[{e.percentage:5.1f}%] {e.product_name}" + (f" ({e.catalogue_label})" if e.catalogue_label else " (skipped)")
        ),
        on_complete=lambda e: completion.update(event=e),
        on_error=lambda e: logger.error(f"Batch error: {e.message}"),
    )

    logger.info(f"Rendering {len(products)} products x {len(catalogues)} catalogues ({args.theme})")

    if args.resume:
        resumed = asyncio.run(orchestrator.resume(products, catalogues, observer))
        if not resumed:
            logger.info("Nothing to resume, starting a new batch")
            asyncio.run(orchestrator.start(products, catalogues, observer))
    else:
        asyncio.run(orchestrator.start(products, catalogues, observer))

    event = completion.get("event")
    elapsed = (datetime.now() - start_time).total_seconds()
    if event is None:
        logger.error("Batch ended without a result")
        return 1

    logger.info(f"{event.message} ({elapsed:.1f}s)")
    print()
    print(event.message)
    print(f"Output: {settings.output_dir.absolute()}")

    if event.status in (CompletionStatus.SUCCESS, CompletionStatus.PARTIAL):
        return 0
    return 1


def main() -> int:
    """Main entry point."""
    args = parse_args()

    # Setup logging
    log_level = "DEBUG" if args.debug else settings.log_level
    setup_logging(level=log_level, gcp_project_id=settings.gcp_project_id, log_file=settings.log_file)

    logger.info(f"Arguments: {args}")

    return run_batch(args)


if __name__ == "__main__":
    sys.exit(main())
