"""
Command line entry point.

    vrain -b 01 -f 1 -t 3 -c
    python -m vrain -b 01 --generate-bg --bg-output canvas/01_bamboo.jpg
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from vrain import __version__
from vrain.controller import BuildConfig, BuildError, build_book, generate_background
from vrain.core.errors import VrainError

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="vrain",
        description="Vertical Chinese typesetting of plain text into PDF",
    )
    parser.add_argument("-b", "--book", dest="book_id", required=True, help="Book id (books/<id>/)")
    parser.add_argument("-f", "--from", dest="from_entry", type=int, default=1, help="First text entry (default 1)")
    parser.add_argument("-t", "--to", dest="to_entry", type=int, help="Last text entry, inclusive (default: --from)")
    parser.add_argument("-z", "--test-pages", dest="test_pages", type=int, help="Stop after this many pages")
    parser.add_argument("-c", "--compress", action="store_true", help="Also write <name>_compressed.pdf")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging, one line per placed glyph")
    parser.add_argument("--books-dir", type=Path, default=Path("books"), help="Books root (default: books)")
    parser.add_argument("--canvas-dir", type=Path, default=Path("canvas"), help="Canvas root (default: canvas)")
    parser.add_argument("--fonts-dir", type=Path, default=Path("fonts"), help="Fonts root (default: fonts)")
    parser.add_argument("--db-dir", type=Path, default=Path("db"), help="Numeral table root (default: db)")
    parser.add_argument("--generate-bg", action="store_true", help="Only generate a background image and exit")
    parser.add_argument("--bg-output", type=Path, help="Background output path (default: canvas/<canvas_id>.jpg)")
    parser.add_argument("--debug-plan", type=Path, help="Write the document plan as JSON")
    parser.add_argument("--seed", type=int, default=0, help="Noise seed for generated backgrounds")
    parser.add_argument("--workers", type=int, default=4, help="Page preparation threads (default 4)")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def config_from_args(args: argparse.Namespace) -> BuildConfig:
    return BuildConfig(
        book_id=args.book_id,
        books_dir=args.books_dir,
        canvas_dir=args.canvas_dir,
        fonts_dir=args.fonts_dir,
        db_dir=args.db_dir,
        from_entry=args.from_entry,
        to_entry=args.to_entry,
        test_pages=args.test_pages,
        compress=args.compress,
        verbose=args.verbose,
        generate_bg=args.generate_bg,
        bg_output=args.bg_output,
        debug_plan=args.debug_plan,
        seed=args.seed,
        workers=args.workers,
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(message)s',
    )

    try:
        config = config_from_args(args)
        if config.generate_bg:
            path = generate_background(config)
            logger.info(f"Generated background saved to {path}")
            return 0
        result = build_book(config)
    except (BuildError, VrainError) as e:
        logger.error(f"Error: {e}")
        return 1

    logger.info(f"Wrote {result.page_count} pages to {result.pdf_path}")
    if result.compressed_path:
        logger.info(f"Compressed PDF saved to {result.compressed_path}")
    if result.warnings:
        logger.info(f"Finished with {len(result.warnings)} warning(s)")
    return 0


if __name__ == "__main__":
    sys.exit(main())
