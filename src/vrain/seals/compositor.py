"""
Module: vrain.seals.compositor

Purpose:
    Resolve seal rules (``yins.cfg``) into per-page overlay placements.

    Rule line format: ``name|page,column,row,span|file``
    - ``name`` is the output file stem or ``*`` for every output
    - ``page``/``column``/``row`` are 1-based; columns count right to
      left, rows top to bottom, both in the primary band
    - ``span`` is the number of consecutive columns covered

    The target rectangle is the union of the addressed cells. The stamp
    is scaled to the target height, reduced further if it would be wider
    than the target, and centred inside it.

    Bad rules never stop a run: they become SealWarnings and are skipped.

Key Classes:
    - StampCache: Loads each stamp image once
    - SealCompositor: resolve() rules for one output

Key Functions:
    - parse_seal_rule(): Parse one rule line
    - load_seal_lines(): Read rule lines from a yins.cfg file

Dependencies:
    - PIL: Stamp decoding
    - vrain.grid: Cell rectangles

Used By:
    - vrain.controller
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

from PIL import Image, UnidentifiedImageError

from vrain.core.errors import OutOfBounds, SealWarning, WarningLog
from vrain.core.models import OverlayPlacement, Rect, SealRule, StampAsset
from vrain.grid.model import GridModel

logger = logging.getLogger(__name__)

PRIMARY_BAND = 0

RuleSource = Union[SealRule, str, Tuple[int, str]]


class SealRuleError(ValueError):
    """A seal rule line cannot be parsed."""
    pass


def parse_seal_rule(line: str, line_number: Optional[int] = None) -> SealRule:
    """
    Parse ``name|page,col,row,span|file``.

    Raises:
        SealRuleError: Wrong field count or non-numeric position values

    Example:
        >>> parse_seal_rule("book|2,3,1,4|chop.png").column_span
        4
    """
    fields = [part.strip() for part in line.strip().split("|")]
    if len(fields) != 3 or not fields[0] or not fields[2]:
        raise SealRuleError(f"Expected name|page,col,row,span|file, got {line!r}")
    name, position, stamp_file = fields
    values = [value.strip() for value in position.split(",")]
    if len(values) != 4:
        raise SealRuleError(f"Expected 4 position values, got {position!r}")
    try:
        page, column, row, span = (int(value) for value in values)
    except ValueError:
        raise SealRuleError(f"Non-numeric position values in {position!r}") from None
    return SealRule(name, page, column, row, span, stamp_file, line_number)


def load_seal_lines(path: Path) -> List[Tuple[int, str]]:
    """Rule lines of a ``yins.cfg`` with their 1-based line numbers."""
    if not path.exists():
        return []
    lines = []
    for number, line in enumerate(path.read_text(encoding="utf-8").splitlines(), start=1):
        stripped = line.strip()
        if stripped and not stripped.startswith("#"):
            lines.append((number, stripped))
    return lines


class StampCache:
    """
    Decoded stamp images keyed by file name.

    Each file is read at most once per run; a missing or unreadable file
    is remembered as None.
    """

    def __init__(self, stamp_dir: Path):
        self.stamp_dir = stamp_dir
        self._assets: Dict[str, Optional[StampAsset]] = {}

    def get(self, stamp_file: str) -> Optional[StampAsset]:
        if stamp_file not in self._assets:
            self._assets[stamp_file] = self._load(stamp_file)
        return self._assets[stamp_file]

    def _load(self, stamp_file: str) -> Optional[StampAsset]:
        path = self.stamp_dir / stamp_file
        if not path.is_file():
            return None
        try:
            with Image.open(path) as img:
                image = img.convert("RGBA")
        except (OSError, UnidentifiedImageError) as exc:
            logger.error(f"Cannot read stamp {path}: {exc}")
            return None
        logger.debug(f"Loaded stamp {path.name} ({image.width}x{image.height})")
        return StampAsset(path=path, image=image)


class SealCompositor:
    """
    Resolve seal rules against a grid.

    Usage:
        compositor = SealCompositor(grid, StampCache(book_dir / "yins"), warnings)
        overlays = compositor.resolve(rules, "《史記》文本1至1", page_count=12)
        overlays[1]  # placements for the second page
    """

    def __init__(self, grid: GridModel, stamps: StampCache, warnings: Optional[WarningLog] = None):
        self.grid = grid
        self.stamps = stamps
        self.warnings = warnings if warnings is not None else WarningLog()

    def resolve(
        self,
        rules: Iterable[RuleSource],
        output_name: str,
        page_count: int,
    ) -> Dict[int, List[OverlayPlacement]]:
        """
        Map page_index (0-based) to its placements, in rule order.

        Args:
            rules: SealRule objects, raw rule lines, or (line_number, line)
            output_name: Output file stem matched against rule names
            page_count: Highest printed page number; rules may target 1..page_count
        """
        placements: Dict[int, List[OverlayPlacement]] = {}
        for source in rules:
            rule = self._as_rule(source, output_name)
            if rule is None or not rule.matches(output_name):
                continue
            placement = self._place(rule, page_count)
            if placement is not None:
                placements.setdefault(rule.page_number - 1, []).append(placement)
        total = sum(len(p) for p in placements.values())
        if total:
            logger.info(f"Resolved {total} seal placements for {output_name}")
        return placements

    def target_rect(self, rule: SealRule) -> Rect:
        """
        Union of the cells a rule covers.

        Raises:
            OutOfBounds: Column or row outside the primary band
        """
        first = rule.start_column - 1
        rect = self.grid.cell_rect(PRIMARY_BAND, first, rule.start_row - 1)
        for column in range(first + 1, first + rule.column_span):
            rect = rect.union(self.grid.cell_rect(PRIMARY_BAND, column, rule.start_row - 1))
        return rect

    def _as_rule(self, source: RuleSource, output_name: str) -> Optional[SealRule]:
        if isinstance(source, SealRule):
            return source
        line_number = None
        if isinstance(source, tuple):
            line_number, source = source
        name = source.split("|", 1)[0].strip()
        if name and name != SealRule.WILDCARD and name != output_name:
            return None
        try:
            return parse_seal_rule(source, line_number)
        except SealRuleError as exc:
            self._warn(str(exc), source, line_number)
            return None

    def _place(self, rule: SealRule, page_count: int) -> Optional[OverlayPlacement]:
        if rule.column_span < 1:
            self._warn(f"Column span must be at least 1, got {rule.column_span}", rule)
            return None
        if not 1 <= rule.page_number <= page_count:
            self._warn(f"Page {rule.page_number} outside 1..{page_count}", rule)
            return None
        try:
            target = self.target_rect(rule)
        except OutOfBounds as exc:
            self._warn(f"Seal position outside the grid: {exc}", rule)
            return None

        stamp = self.stamps.get(rule.stamp_file)
        if stamp is None:
            self._warn(f"Stamp file not found: {self.stamps.stamp_dir / rule.stamp_file}", rule)
            return None
        return OverlayPlacement(rule=rule, target=target, box=fit_box(target, stamp), stamp=stamp)

    def _warn(self, message: str, rule: Union[SealRule, str], line_number: Optional[int] = None) -> None:
        if isinstance(rule, SealRule):
            line_number = rule.line_number
        self.warnings.record(SealWarning(message, rule=str(rule), line_number=line_number))


def fit_box(target: Rect, stamp: StampAsset) -> Rect:
    """Aspect-preserving box: target height, clamped to target width, centred."""
    scale = target.height / stamp.height
    if stamp.width * scale > target.width:
        scale = target.width / stamp.width
    width = stamp.width * scale
    height = stamp.height * scale
    return Rect(
        target.x + (target.width - width) / 2,
        target.y + (target.height - height) / 2,
        width,
        height,
    )


def resolve(
    rules: Iterable[RuleSource],
    output_name: str,
    page_count: int,
    grid: GridModel,
    stamps: StampCache,
    warnings: Optional[WarningLog] = None,
) -> Dict[int, List[OverlayPlacement]]:
    """Functional form of SealCompositor.resolve()."""
    return SealCompositor(grid, stamps, warnings).resolve(rules, output_name, page_count)
