"""
Page grid geometry.

Exports GridModel and BandSegment.
"""

from .model import BandSegment, GridModel

__all__ = ["BandSegment", "GridModel"]
