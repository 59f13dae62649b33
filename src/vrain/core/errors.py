"""
Module: vrain.core.errors

Purpose:
    Error taxonomy and structured non-fatal warnings for a render run.
    Fatal problems raise exceptions; recoverable ones are recorded as
    frozen warning records in a WarningLog so callers and tests can
    inspect them after the run.

Key Classes:
    - VrainError: Base class for all fatal errors
    - ConfigError: Invalid canvas/book/grid configuration
    - OutOfBounds: Grid address outside the configured counts
    - NumberMappingError: Numeral table has no entry for a value
    - PlanValidationError: Document plan failed schema validation
    - RunWarning: Base record for non-fatal conditions
    - SealWarning, GlyphFallbackWarning, BandSkipWarning
    - WarningLog: Collector that also logs each record

Dependencies:
    - logging (std)
    - dataclasses (std)

Used By:
    - Every vrain subpackage
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple, Type, TypeVar

logger = logging.getLogger(__name__)


class VrainError(Exception):
    """Base class for fatal vrain errors."""
    pass


class ConfigError(VrainError, ValueError):
    """Invalid configuration (dimensions, margins, fonts, keys)."""
    pass


class OutOfBounds(VrainError, IndexError):
    """A band/column/row address lies outside the grid."""

    def __init__(self, message: str, address: Optional[tuple] = None):
        super().__init__(message)
        self.address = address


class NumberMappingError(VrainError):
    """The numeral table cannot render the requested value."""

    def __init__(self, value: int):
        super().__init__(f"No numeral mapping for value {value}")
        self.value = value


class PlanValidationError(VrainError):
    """Raised when an exported document plan fails schema validation."""

    def __init__(self, message: str, errors: list[str] | None = None):
        super().__init__(message)
        self.errors = errors or []


@dataclass(frozen=True)
class RunWarning:
    """
    Non-fatal condition recorded during a run (immutable).

    Attributes:
        message: Human readable description
    """
    message: str

    @property
    def kind(self) -> str:
        return type(self).__name__

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


@dataclass(frozen=True)
class SealWarning(RunWarning):
    """A seal rule was malformed, out of range, or its stamp was missing."""
    rule: str = ""
    line_number: Optional[int] = None


@dataclass(frozen=True)
class GlyphFallbackWarning(RunWarning):
    """A character was replaced by a script variant or the placeholder glyph."""
    char: str = ""
    substitute: str = ""


@dataclass(frozen=True)
class BandSkipWarning(RunWarning):
    """Band-skip control seen while multirows is disabled."""
    page_index: int = 0
    slot: int = 0


W = TypeVar("W", bound=RunWarning)


class WarningLog:
    """
    Ordered collector for RunWarning records.

    Every recorded warning is also emitted through ``logging`` so that
    console output and the structured list never disagree.

    Usage:
        log = WarningLog()
        log.record(SealWarning("bad span", rule="x|1,1,1,0|a.png"))
        assert len(log.of_type(SealWarning)) == 1
    """

    def __init__(self) -> None:
        self._records: List[RunWarning] = []

    def record(self, warning: RunWarning) -> None:
        self._records.append(warning)
        logger.warning(str(warning))

    def extend(self, warnings) -> None:
        for warning in warnings:
            self.record(warning)

    def of_type(self, cls: Type[W]) -> Tuple[W, ...]:
        return tuple(w for w in self._records if isinstance(w, cls))

    def as_tuple(self) -> Tuple[RunWarning, ...]:
        return tuple(self._records)

    def clear(self) -> None:
        self._records.clear()

    def __iter__(self) -> Iterator[RunWarning]:
        return iter(list(self._records))

    def __len__(self) -> int:
        return len(self._records)
