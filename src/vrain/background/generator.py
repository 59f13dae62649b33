"""
Module: vrain.background.generator

Purpose:
    Procedural bamboo-slip background for canvases that ship no
    background image. One slip is drawn behind every grid column, with
    binding straps above and below, vertical fibre lines across each slip
    and a seeded paper-grain noise over the whole page.

    All geometry is derived from the canvas and grid dimensions, so the
    texture scales with the configured page size. Geometry is expressed
    in image pixels (top-left origin, 1 px per canvas unit).

Key Classes:
    - BackgroundGeometry: Slip, strap, cord and fibre positions
    - BackgroundGenerator: generate() the image

Dependencies:
    - numpy: Noise field
    - PIL: Drawing and resampling

Used By:
    - vrain.controller
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

import numpy as np
from PIL import Image, ImageDraw

from vrain.config.canvas import CanvasConfig
from vrain.core.models import Color
from vrain.grid.model import GridModel

logger = logging.getLogger(__name__)

BASE_TONE: Color = (210, 200, 190)
SLIP_TONE: Color = (233, 189, 96)
STRAP_TONE: Color = (148, 112, 55)
SHADE_TONE: Color = (210, 210, 210)

SLIP_INSET = 0.05
STRAP_OVERHANG = 0.02
STRAP_RATIO = 0.1
MIN_STRAP_HEIGHT = 4.0
CORD_STEPS = 10
FIBERS_PER_SLIP = 30
NOISE_MAGNITUDE = 0.03
NOISE_CELL = 64

Box = Tuple[float, float, float, float]
Segment = Tuple[float, float, float, float]


@dataclass(frozen=True)
class Fiber:
    x: float
    top: float
    bottom: float
    gray: int


@dataclass(frozen=True)
class BackgroundGeometry:
    """
    Shapes of a generated background.

    Attributes:
        width: Image width in pixels
        height: Image height in pixels
        slips: (x0, y0, x1, y1) per column, right-to-left
        straps: (x0, y0, x1, y1) binding straps, two per slip
        cords: (x0, y0, x1, y1) diagonal cord strokes across the straps
        fibers: Vertical fibre lines
    """
    width: int
    height: int
    slips: Tuple[Box, ...]
    straps: Tuple[Box, ...]
    cords: Tuple[Segment, ...]
    fibers: Tuple[Fiber, ...]

    @classmethod
    def from_grid(cls, grid: GridModel) -> "BackgroundGeometry":
        canvas = grid.canvas
        width = max(int(canvas.canvas_width), 1)
        height = max(int(canvas.canvas_height), 1)
        cw = grid.cell_width
        top = canvas.margins_top
        bottom = canvas.canvas_height - canvas.margins_bottom
        strap_height = max(cw * STRAP_RATIO, MIN_STRAP_HEIGHT)
        overhang = cw * STRAP_OVERHANG
        step = cw / CORD_STEPS

        slips, straps, cords, fibers = [], [], [], []
        for column in range(grid.columns):
            left = grid.column_x(column)
            x0 = left + cw * SLIP_INSET
            x1 = left + cw - cw * SLIP_INSET
            slips.append((x0, top, x1, bottom))
            straps.append((x0 - overhang, top - strap_height, x1 + overhang, top))
            straps.append((x0 - overhang, bottom, x1 + overhang, bottom + strap_height))

            for j in range(CORD_STEPS):
                if j == CORD_STEPS // 2:
                    continue
                lx = x0 - overhang + step * j
                cords.append((lx, top - strap_height, lx + step, top))
                cords.append((lx, bottom, lx + step, bottom + strap_height))

            span = (bottom - top) * 0.01
            for k in range(FIBERS_PER_SLIP):
                t = _hash_noise(column, k) / 255.0
                fibers.append(Fiber(
                    x=x0 + cw * 0.1 + cw * 0.8 * (k / FIBERS_PER_SLIP),
                    top=top + span * t,
                    bottom=bottom - span * t,
                    gray=int(210 + 40 * t),
                ))

        return cls(width, height, tuple(slips), tuple(straps), tuple(cords), tuple(fibers))


class BackgroundGenerator:
    """
    Draw bamboo-slip backgrounds.

    The output is fully determined by the canvas and the seed; the seed
    only changes the noise, never the geometry.

    Example:
        >>> image = BackgroundGenerator().generate(canvas, seed=7)
        >>> image.size == (int(canvas.canvas_width), int(canvas.canvas_height))
        True
    """

    def __init__(self, noise_magnitude: float = NOISE_MAGNITUDE):
        self.noise_magnitude = noise_magnitude

    def geometry(self, canvas: CanvasConfig) -> BackgroundGeometry:
        return BackgroundGeometry.from_grid(GridModel.build(canvas))

    def generate(self, canvas: CanvasConfig, seed: int = 0) -> Image.Image:
        geometry = self.geometry(canvas)
        image = Image.new("RGB", (geometry.width, geometry.height), BASE_TONE)
        draw = ImageDraw.Draw(image)
        shade_width = max(int(round(canvas.line_width)), 1)

        for x0, y0, x1, y1 in geometry.slips:
            draw.rectangle((x0, y0, x1, y1), fill=SLIP_TONE)
            draw.line((x1, y0, x1, y1), fill=SHADE_TONE, width=shade_width)
            draw.line((x0, y1, x1, y1), fill=SHADE_TONE, width=shade_width)
        for box in geometry.straps:
            draw.rectangle(box, fill=STRAP_TONE)
        for segment in geometry.cords:
            draw.line(segment, fill=STRAP_TONE, width=2)
        for fiber in geometry.fibers:
            gray = (fiber.gray, fiber.gray, fiber.gray)
            draw.line((fiber.x, fiber.top, fiber.x, fiber.bottom), fill=gray, width=1)

        image = self._apply_noise(image, seed)
        logger.info(
            f"Generated background {geometry.width}x{geometry.height} "
            f"with {len(geometry.slips)} slips (seed={seed})"
        )
        return image

    def _apply_noise(self, image: Image.Image, seed: int) -> Image.Image:
        """Low-frequency blotches from an upsampled coarse field plus fine grain."""
        width, height = image.size
        rng = np.random.default_rng(seed)
        coarse = rng.random((height // NOISE_CELL + 2, width // NOISE_CELL + 2))
        coarse_img = Image.fromarray((coarse * 255).astype(np.uint8))
        low = np.asarray(coarse_img.resize((width, height), Image.Resampling.BICUBIC), dtype=np.float32) / 255.0
        fine = rng.random((height, width), dtype=np.float32)

        noise = 0.6 * low + 0.4 * fine
        delta = (noise - 0.5) * self.noise_magnitude * 255.0
        pixels = np.asarray(image, dtype=np.float32) + delta[..., None]
        return Image.fromarray(np.clip(pixels, 0, 255).astype(np.uint8))


def save_background(image: Image.Image, path: Path, quality: Optional[int] = 90) -> Path:
    """Write a generated background; JPEG quality applies to .jpg targets only."""
    path.parent.mkdir(parents=True, exist_ok=True)
    if path.suffix.lower() in (".jpg", ".jpeg"):
        image.save(path, quality=quality)
    else:
        image.save(path)
    logger.info(f"Saved background to {path}")
    return path


def _hash_noise(x: int, y: int) -> int:
    """Repeatable 8-bit hash of two integers."""
    v = ((x * 73856093) ^ (y * 19349663)) & 0xFFFFFFFF
    v ^= v >> 13
    v = (v * 0x85EBCA6B) & 0xFFFFFFFF
    return (v >> 8) & 0xFF
