"""
Procedural page backgrounds.
"""

from .generator import BackgroundGenerator, BackgroundGeometry, Fiber, save_background

__all__ = [
    "BackgroundGenerator",
    "BackgroundGeometry",
    "Fiber",
    "save_background",
]
