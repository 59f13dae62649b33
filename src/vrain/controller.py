"""
Module: vrain.controller

Purpose:
    Orchestrate one typesetting run.
    Config → Grid → Corpus → Layout → Seals → Assemble → Render → Compress

Key Functions:
    - build_book(): Produce the PDF for an entry range of a book
    - generate_background(): Write a procedural background and stop

Key Classes:
    - BuildConfig: Run options (mirrors the CLI)
    - BuildResult: Paths, page count, warnings and metadata
    - BuildError: Wraps every fatal error of a run

Dependencies:
    - vrain.config, vrain.grid, vrain.typeset, vrain.seals,
      vrain.background, vrain.output

Used By:
    - vrain.cli
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from PIL import Image, UnidentifiedImageError

from vrain import __version__
from vrain.background import BackgroundGenerator, save_background
from vrain.config import BookConfig, CanvasConfig, load_book_config, load_canvas_config
from vrain.core.errors import ConfigError, PlanValidationError, RunWarning, VrainError, WarningLog
from vrain.core.models import DocumentPlan
from vrain.grid import GridModel
from vrain.output import PageAssembler, PdfPageSink, compress_pdf, export_plan
from vrain.seals import SealCompositor, StampCache, load_seal_lines
from vrain.typeset import (
    GlyphClassifier,
    LayoutEngine,
    NumeralMap,
    ScriptVariants,
    TTFontCatalog,
    Typesetter,
    TypesetOptions,
    load_corpus,
)

logger = logging.getLogger(__name__)

NUMERAL_TABLE = "num2zh_jid.txt"
SEAL_CONFIG = "yins.cfg"
SEAL_DIR = "yins"
IMAGE_SUFFIXES = (".jpg", ".png")


class BuildError(Exception):
    """Error during a typesetting run."""
    pass


@dataclass(frozen=True)
class BuildConfig:
    """
    Options of one run (immutable).

    Attributes:
        book_id: Directory name under ``books_dir``
        books_dir: Holds ``<id>/book.cfg`` and ``<id>/text/``
        canvas_dir: Holds ``<canvas_id>.cfg`` and optional background images
        fonts_dir: Font files referenced by ``book.cfg``
        db_dir: Holds the numeral table
        from_entry: First text entry
        to_entry: Last text entry (inclusive); defaults to ``from_entry``
        test_pages: Stop after this many pages
        compress: Also write ``<stem>_compressed.pdf``
        verbose: Log every placed glyph
        generate_bg: Only write a generated background image
        bg_output: Target of ``generate_bg`` (default ``canvas/<id>.jpg``)
        debug_plan: Write the document plan JSON here
        seed: Noise seed for generated backgrounds
        workers: Threads preparing page drawing operations

    Example:
        >>> config = BuildConfig(book_id="01", from_entry=1, to_entry=3)
        >>> config.output_name("史記")
        '《史記》文本1至3'
    """
    book_id: str
    books_dir: Path = Path("books")
    canvas_dir: Path = Path("canvas")
    fonts_dir: Path = Path("fonts")
    db_dir: Path = Path("db")
    from_entry: int = 1
    to_entry: Optional[int] = None
    test_pages: Optional[int] = None
    compress: bool = False
    verbose: bool = False
    generate_bg: bool = False
    bg_output: Optional[Path] = None
    debug_plan: Optional[Path] = None
    seed: int = 0
    workers: int = 4

    def __post_init__(self) -> None:
        if not self.book_id:
            raise ConfigError("book_id is required")
        if self.from_entry < 0:
            raise ConfigError(f"--from must not be negative: {self.from_entry}")
        if self.to_entry is not None and self.to_entry < self.from_entry:
            raise ConfigError("--to must be >= --from")
        if self.test_pages is not None and self.test_pages <= 0:
            raise ConfigError(f"--test-pages must be positive: {self.test_pages}")
        if self.workers < 1:
            raise ConfigError(f"--workers must be at least 1: {self.workers}")

    @property
    def last_entry(self) -> int:
        return self.to_entry if self.to_entry is not None else self.from_entry

    @property
    def book_dir(self) -> Path:
        return self.books_dir / self.book_id

    @property
    def text_dir(self) -> Path:
        return self.book_dir / "text"

    def output_name(self, title: str) -> str:
        return f"《{title}》文本{self.from_entry}至{self.last_entry}"


@dataclass(frozen=True)
class BuildResult:
    """
    Result of a run (immutable).

    Attributes:
        pdf_path: Rendered PDF
        compressed_path: Compressed copy, if requested and successful
        page_count: Text pages (the cover is not counted)
        plan: Document plan that was rendered
        warnings: Non-fatal conditions of the run
        metadata: Run summary for logging and tooling
    """
    pdf_path: Path
    compressed_path: Optional[Path]
    page_count: int
    plan: DocumentPlan
    warnings: Tuple[RunWarning, ...]
    metadata: dict


def build_book(config: BuildConfig) -> BuildResult:
    """
    Typeset an entry range of a book into a PDF.

    Raises:
        BuildError: Configuration, layout or output failure
    """
    try:
        return _build(config)
    except VrainError as e:
        raise BuildError(str(e)) from e


def generate_background(config: BuildConfig) -> Path:
    """
    Write a procedural background for the book's canvas.

    Raises:
        BuildError: Configuration or write failure
    """
    try:
        book, canvas = _load_configs(config)
        target = config.bg_output or config.canvas_dir / f"{book.canvas_id}.jpg"
        image = BackgroundGenerator().generate(canvas, seed=config.seed)
        return save_background(image, target)
    except VrainError as e:
        raise BuildError(str(e)) from e
    except OSError as e:
        raise BuildError(f"Failed to write background: {e}") from e


def _build(config: BuildConfig) -> BuildResult:
    start_time = time.perf_counter()
    warnings = WarningLog()

    # 1. Configuration and grid
    book, canvas = _load_configs(config)
    grid = GridModel.build(canvas)
    logger.info(
        f"Layout: {canvas.columns} columns x {canvas.row_num} rows "
        f"({grid.capacity} glyphs/page, {grid.bands} band(s))"
    )

    # 2. Capabilities and text
    fonts = TTFontCatalog.load(book.fonts, config.fonts_dir)
    numerals = NumeralMap.load(config.db_dir / NUMERAL_TABLE)
    corpus = load_corpus(config.text_dir, book)

    # 3. Images
    background_path, background = _load_first_image(config.canvas_dir, book.canvas_id)
    if background is None:
        logger.info(f"No background image for canvas {book.canvas_id}, generating one")
        background = BackgroundGenerator().generate(canvas, seed=config.seed)
    cover_path, cover_image = _load_first_image(config.book_dir, "cover")

    # 4. Layout
    engine = LayoutEngine(
        book,
        grid,
        GlyphClassifier.from_book(book),
        fonts,
        numerals,
        variants=ScriptVariants() if book.try_st else None,
        warnings=warnings,
        verbose=config.verbose,
    )
    typesetter = Typesetter(book, engine, numerals, corpus)
    plan = typesetter.build_plan(TypesetOptions(
        first_entry=config.from_entry,
        last_entry=config.last_entry,
        max_pages=config.test_pages,
        cover_image=cover_path,
    ))
    output_name = config.output_name(book.title)
    if config.debug_plan:
        _export_debug_plan(plan, config, output_name, warnings)

    # 5. Seals
    stamps = StampCache(config.book_dir / SEAL_DIR)
    rules = load_seal_lines(config.book_dir / SEAL_CONFIG)
    overlays = SealCompositor(grid, stamps, warnings).resolve(rules, output_name, plan.last_page_number)

    # 6. Assemble and render
    pdf_path = config.book_dir / f"{output_name}.pdf"
    logger.info(f"Rendering PDF to {pdf_path}")
    sink = PdfPageSink(
        pdf_path,
        book,
        canvas,
        fonts,
        background=background,
        cover_image=cover_image,
        workers=config.workers,
    )
    sink.add_outlines(plan.outlines)
    sink.write_cover()
    pages = PageAssembler(grid).assemble_all(plan.pages, background, overlays)
    sink.write_pages(pages)
    sink.close()

    # 7. Compression
    compressed = compress_pdf(pdf_path) if config.compress else None

    elapsed = time.perf_counter() - start_time
    logger.info(f"Typesetting completed in {elapsed:.2f}s")
    if len(warnings):
        logger.info(f"{len(warnings)} warning(s) during the run")

    metadata = _build_metadata(
        config, book, canvas, plan, warnings,
        seals=sum(len(p) for p in overlays.values()),
        background_path=background_path,
        elapsed=elapsed,
    )
    return BuildResult(
        pdf_path=pdf_path,
        compressed_path=compressed,
        page_count=plan.page_count,
        plan=plan,
        warnings=warnings.as_tuple(),
        metadata=metadata,
    )


def _load_configs(config: BuildConfig) -> Tuple[BookConfig, CanvasConfig]:
    if not config.book_dir.is_dir():
        raise ConfigError(f"Book directory not found: {config.book_dir}")
    book = load_book_config(config.book_dir / "book.cfg")
    canvas = load_canvas_config(config.canvas_dir / f"{book.canvas_id}.cfg", book)
    logger.info(f"Loaded '{book.title}' by {book.author} (canvas {book.canvas_id})")
    return book, canvas


def _load_first_image(directory: Path, stem: str) -> Tuple[Optional[Path], Optional[Image.Image]]:
    """First readable ``<stem>.jpg`` / ``<stem>.png`` in ``directory``."""
    candidates: Sequence[Path] = [directory / f"{stem}{suffix}" for suffix in IMAGE_SUFFIXES]
    for path in candidates:
        if not path.is_file():
            continue
        try:
            with Image.open(path) as img:
                image = img.convert("RGB")
        except (OSError, UnidentifiedImageError) as exc:
            logger.warning(f"Skipping unreadable image {path}: {exc}")
            continue
        logger.info(f"Using image {path}")
        return path, image
    return None, None


def _export_debug_plan(plan: DocumentPlan, config: BuildConfig, output_name: str, warnings: WarningLog) -> None:
    try:
        export_plan(plan, config.debug_plan, book_id=config.book_id, output_name=output_name)
    except (PlanValidationError, OSError) as e:
        warnings.record(RunWarning(f"Failed to write plan debug JSON ({config.debug_plan}): {e}"))


def _build_metadata(
    config: BuildConfig,
    book: BookConfig,
    canvas: CanvasConfig,
    plan: DocumentPlan,
    warnings: WarningLog,
    *,
    seals: int,
    background_path: Optional[Path],
    elapsed: float,
) -> dict:
    """
    Summary of a run.

    Example:
        >>> metadata['page_count']
        12
    """
    kinds: dict = {}
    for warning in warnings:
        kinds[warning.kind] = kinds.get(warning.kind, 0) + 1
    entries: List[int] = list(range(config.from_entry, config.last_entry + 1))
    return {
        "generated_at": datetime.now().isoformat(timespec="seconds"),
        "vrain_version": __version__,
        "book_id": config.book_id,
        "title": book.title,
        "author": book.author,
        "canvas_id": canvas.canvas_id or book.canvas_id,
        "entries": entries,
        "page_count": plan.page_count,
        "glyph_count": sum(len(page.glyphs) for page in plan.pages),
        "cover": plan.cover.value,
        "background": str(background_path) if background_path else "generated",
        "seal_count": seals,
        "warnings": kinds,
        "elapsed_seconds": round(elapsed, 3),
    }
