"""Top-level package for vrain, the vertical classical Chinese typesetter.

Provides subpackages:
- vrain.core – errors, warning log and immutable page models
- vrain.config – book/canvas/seal configuration files
- vrain.grid – page grid and band geometry
- vrain.typeset – glyph classification and the pagination state machine
- vrain.seals – seal stamp placement
- vrain.background – procedural bamboo-slip background
- vrain.output – page assembly and PDF output
"""

def _get_version() -> str:
    """Get version from pyproject.toml (dev) or importlib.metadata (installed)."""
    from pathlib import Path

    pyproject = Path(__file__).resolve().parent.parent.parent / "pyproject.toml"
    if pyproject.exists():
        for line in pyproject.read_text(encoding="utf-8").splitlines():
            if line.strip().startswith("version"):
                # Parse: version = "0.3.0"
                return line.split("=")[1].strip().strip('"').strip("'")

    from importlib.metadata import PackageNotFoundError, version as pkg_version
    try:
        return pkg_version("vrain")
    except PackageNotFoundError:
        return "0.0.0"

__version__ = _get_version()
__all__: list[str] = ["__version__"]
