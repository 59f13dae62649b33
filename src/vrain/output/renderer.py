"""
Module: vrain.output.renderer

Purpose:
    Write assembled pages to PDF using ReportLab. One canvas unit is one
    PDF point, so the page size equals the configured canvas size and
    glyph origins are used as-is.

    Output order: cover page first, then one PDF page per Page in
    page_index order. Drawing operations for each page are prepared on
    a thread pool and replayed on the canvas sequentially.

Key Classes:
    - PageSink: Protocol for page consumers
    - PdfPageSink: ReportLab implementation

Dependencies:
    - reportlab: PDF generation
    - PIL: Background, cover and stamp images

Used By:
    - vrain.controller
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Tuple, Union

from PIL import Image
from reportlab.lib.utils import ImageReader
from reportlab.pdfgen.canvas import Canvas

from vrain import __version__
from vrain.config.book import BookConfig
from vrain.config.canvas import CanvasConfig
from vrain.core.models import Color, OutlineEntry, Page, PlacedGlyph, SideLine, StampAsset
from vrain.typeset.fonts import TTFontCatalog

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 4
COVER_LINE_SPACING = 1.2
WAVE_STEP = 12.0
WAVE_MIN_LENGTH = 20.0
WAVE_AMPLITUDE = 0.05
WAVE_SAMPLES = 4


class PageSink(Protocol):
    """Consumer of assembled pages, in increasing page_index order."""

    def write_cover(self) -> None: ...

    def write_page(self, page: Page) -> None: ...

    def close(self) -> Path: ...


# Drawing operations ---------------------------------------------------------

@dataclass(frozen=True)
class TextOp:
    text: str
    font: str
    size: float
    x: float
    y: float
    color: Color
    rotation: float = 0.0


@dataclass(frozen=True)
class ImageOp:
    source: Union[StampAsset, Image.Image]
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class PathOp:
    points: Tuple[Tuple[float, float], ...]
    width: float
    color: Color


DrawOp = Union[TextOp, ImageOp, PathOp]


@dataclass(frozen=True)
class PageOps:
    """Prepared drawing operations of one page."""
    page_index: int
    number: int
    ops: Tuple[DrawOp, ...]


def wave_points(line: SideLine) -> Tuple[Tuple[float, float], ...]:
    """
    Polyline for a side line; a sine wave along x when the line is wavy.

    Example:
        >>> pts = wave_points(SideLine(x=10, y1=0, y2=100, width=1))
        >>> pts[0], pts[-1]
        ((10.0, 0.0), (10.0, 100.0))
    """
    if not line.wavy:
        return ((line.x, line.y1), (line.x, line.y2))
    length = abs(line.y2 - line.y1)
    periods = math.ceil(max(length, WAVE_MIN_LENGTH) / WAVE_STEP)
    amplitude = max(length, 1.0) * WAVE_AMPLITUDE
    samples = periods * WAVE_SAMPLES
    points = []
    for i in range(samples + 1):
        t = i / samples
        y = line.y1 + (line.y2 - line.y1) * t
        x = line.x + amplitude * math.sin(2 * math.pi * periods * t)
        points.append((round(x, 3), round(y, 3)))
    return tuple(points)


class PdfPageSink:
    """
    PDF writer for one output file.

    Usage:
        sink = PdfPageSink(path, book, canvas, fonts, background=bg)
        sink.add_outlines(plan.outlines)
        sink.write_cover()
        sink.write_pages(pages)
        sink.close()
    """

    def __init__(
        self,
        output_path: Path,
        book: BookConfig,
        canvas: CanvasConfig,
        fonts: TTFontCatalog,
        *,
        background: Optional[Image.Image] = None,
        cover_image: Optional[Image.Image] = None,
        workers: int = DEFAULT_WORKERS,
    ):
        self.output_path = output_path
        self.book = book
        self.canvas_config = canvas
        self.fonts = fonts
        self.background = background
        self.cover_image = cover_image
        self.workers = max(1, workers)
        self.pages_written = 0

        self._title_font = fonts.font_name(book.fonts.text_stack[0])
        # id(image) -> (image, reader); the image is held so ids stay unique
        self._readers: Dict[int, Tuple[Image.Image, ImageReader]] = {}
        self._outlines: Dict[int, List[str]] = {}

        output_path.parent.mkdir(parents=True, exist_ok=True)
        self._canvas = Canvas(
            str(output_path),
            pagesize=(canvas.canvas_width, canvas.canvas_height),
        )
        self._canvas.setTitle(book.title)
        self._canvas.setAuthor(book.author)
        self._canvas.setCreator(f"vrain {__version__}")
        self._canvas.setSubject(f"{book.title} / {canvas.canvas_id}")

    def add_outlines(self, outlines: Iterable[OutlineEntry]) -> None:
        """Register bookmarks; honoured only when ``title_directory`` is set."""
        if not self.book.title_style.directory:
            return
        for entry in outlines:
            self._outlines.setdefault(entry.page_number, []).append(entry.title)

    def write_cover(self) -> None:
        c = self._canvas
        if self.cover_image is not None:
            self._replay([self._cover_image_op(self.cover_image)])
        else:
            ops: List[DrawOp] = []
            if self.background is not None:
                ops.append(self._background_op())
            ops.extend(self._cover_text_ops())
            self._replay(ops)
        c.showPage()
        logger.debug("Wrote cover page")

    def write_page(self, page: Page) -> None:
        self._write(self.prepare(page))

    def write_pages(self, pages: Iterable[Page]) -> int:
        """Prepare pages in parallel, write them in order. Returns the count."""
        count = 0
        with ThreadPoolExecutor(max_workers=self.workers) as executor:
            for prepared in executor.map(self.prepare, pages):
                self._write(prepared)
                count += 1
        return count

    def prepare(self, page: Page) -> PageOps:
        """Drawing operations of one page. Safe to call from worker threads."""
        layout = page.layout
        ops: List[DrawOp] = []
        background = page.background if page.background is not None else self.background
        if background is not None:
            ops.append(self._background_op(background))
        for overlay in page.overlays:
            box = overlay.box
            ops.append(ImageOp(overlay.stamp, box.x, box.y, box.width, box.height))
        ops.extend(self._title_ops(layout.title))
        ops.extend(self._number_ops(layout.number_text))
        ops.extend(self._logo_ops())
        for line in layout.lines:
            ops.append(PathOp(wave_points(line), line.width, line.color))
        ops.extend(self._glyph_op(glyph) for glyph in layout.glyphs)
        return PageOps(layout.page_index, layout.number, tuple(ops))

    def close(self) -> Path:
        if self._outlines:
            self._canvas.showOutline()
        self._canvas.save()
        logger.info(f"Rendered {self.pages_written} pages to {self.output_path}")
        return self.output_path

    # Operation builders ----------------------------------------------------

    def _background_op(self, image: Optional[Image.Image] = None) -> ImageOp:
        c = self.canvas_config
        if image is None:
            image = self.background
        return ImageOp(image, 0.0, 0.0, c.canvas_width, c.canvas_height)

    def _cover_image_op(self, image: Image.Image) -> ImageOp:
        """Cover image fitted into the left half leaf, centred."""
        c = self.canvas_config
        half = c.canvas_width / 2
        scale = min(half / image.width, c.canvas_height / image.height)
        width = image.width * scale
        height = image.height * scale
        return ImageOp(image, (half - width) / 2, (c.canvas_height - height) / 2, width, height)

    def _cover_text_ops(self) -> List[TextOp]:
        cover = self.book.cover
        height = self.canvas_config.canvas_height
        ops = []
        for idx, ch in enumerate(self.book.title):
            y = height - cover.title_y - idx * cover.title_font_size * COVER_LINE_SPACING
            ops.append(TextOp(ch, self._title_font, cover.title_font_size, cover.title_font_size, y, cover.color))
        for idx, ch in enumerate(self.book.author):
            y = height - cover.author_y - idx * cover.author_font_size * COVER_LINE_SPACING
            ops.append(TextOp(ch, self._title_font, cover.author_font_size, cover.author_font_size / 2, y, cover.color))
        return ops

    def _title_ops(self, title: str) -> List[TextOp]:
        style = self.book.title_style
        x = self.canvas_config.canvas_width / 2 - style.font_size / 2 if style.center else 0.0
        return [
            TextOp(ch, self._title_font, style.font_size, x, style.y - style.font_size * idx * style.y_dis, style.color)
            for idx, ch in enumerate(title)
        ]

    def _number_ops(self, number_text: str) -> List[TextOp]:
        pager = self.book.pager_style
        step = pager.font_size * self.book.title_style.y_dis
        x = self.canvas_config.canvas_width / 2 - pager.font_size / 2
        return [
            TextOp(ch, self._title_font, pager.font_size, x, pager.y - step * idx, pager.color)
            for idx, ch in enumerate(number_text)
        ]

    def _logo_ops(self) -> List[TextOp]:
        """Logo text at the foot of the centre fold, reading downwards."""
        logo = self.canvas_config.logo_text
        if not logo:
            return []
        pager = self.book.pager_style
        step = pager.font_size * self.book.title_style.y_dis
        x = self.canvas_config.canvas_width / 2 - pager.font_size / 2
        bottom = self.canvas_config.margins_bottom
        return [
            TextOp(ch, self._title_font, pager.font_size, x, bottom + step * (len(logo) - 1 - idx), pager.color)
            for idx, ch in enumerate(logo)
        ]

    def _glyph_op(self, glyph: PlacedGlyph) -> TextOp:
        return TextOp(
            glyph.char,
            self.fonts.font_name(glyph.font_slot),
            glyph.font_size,
            glyph.x,
            glyph.y,
            glyph.color,
            glyph.rotation,
        )

    # Canvas output ---------------------------------------------------------

    def _write(self, prepared: PageOps) -> None:
        c = self._canvas
        self._replay(prepared.ops)
        for idx, title in enumerate(self._outlines.get(prepared.number, ())):
            key = f"page-{prepared.number}-{idx}"
            c.bookmarkPage(key)
            c.addOutlineEntry(title, key, level=0)
        c.showPage()
        self.pages_written += 1

    def _replay(self, ops: Iterable[DrawOp]) -> None:
        c = self._canvas
        for op in ops:
            if isinstance(op, TextOp):
                self._draw_text(op)
            elif isinstance(op, ImageOp):
                c.drawImage(self._reader(op.source), op.x, op.y, op.width, op.height, mask="auto")
            else:
                self._draw_path(op)

    def _draw_text(self, op: TextOp) -> None:
        c = self._canvas
        r, g, b = op.color
        c.setFillColorRGB(r / 255, g / 255, b / 255)
        c.setFont(op.font, op.size)
        if op.rotation:
            c.saveState()
            c.translate(op.x, op.y)
            c.rotate(op.rotation)
            c.drawString(0, 0, op.text)
            c.restoreState()
        else:
            c.drawString(op.x, op.y, op.text)

    def _draw_path(self, op: PathOp) -> None:
        c = self._canvas
        r, g, b = op.color
        c.setStrokeColorRGB(r / 255, g / 255, b / 255)
        c.setLineWidth(op.width)
        path = c.beginPath()
        path.moveTo(*op.points[0])
        for point in op.points[1:]:
            path.lineTo(*point)
        c.drawPath(path, stroke=1, fill=0)

    def _reader(self, source: Union[StampAsset, Image.Image]) -> ImageReader:
        """One ImageReader per image object so ReportLab embeds it once."""
        image = source.image if isinstance(source, StampAsset) else source
        key = id(image)
        if key not in self._readers:
            self._readers[key] = (image, ImageReader(image))
        return self._readers[key][1]
