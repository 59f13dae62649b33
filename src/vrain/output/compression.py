"""
Module: vrain.output.compression

Purpose:
    Produce ``<stem>_compressed.pdf`` next to a rendered PDF. Ghostscript
    is used when it is on PATH, otherwise PyMuPDF re-saves the file with
    garbage collection and stream deflation.

    Compression is best-effort: failures are logged and the uncompressed
    PDF stays the primary artifact.

Key Functions:
    - compressed_path(): Target path for a PDF
    - compress_pdf(): Run the compression

Dependencies:
    - fitz (PyMuPDF): Fallback compressor
"""

from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Optional

import fitz

logger = logging.getLogger(__name__)

GHOSTSCRIPT_NAMES = ("gs", "gswin64c", "gswin32c")


def compressed_path(pdf_path: Path) -> Path:
    return pdf_path.with_name(f"{pdf_path.stem}_compressed.pdf")


def find_ghostscript() -> Optional[str]:
    for name in GHOSTSCRIPT_NAMES:
        found = shutil.which(name)
        if found:
            return found
    return None


def compress_pdf(pdf_path: Path, *, use_ghostscript: bool = True) -> Optional[Path]:
    """
    Compress ``pdf_path``.

    Args:
        pdf_path: Rendered PDF
        use_ghostscript: Try Ghostscript before PyMuPDF

    Returns:
        Path of the compressed file, or None if every method failed
    """
    target = compressed_path(pdf_path)
    gs = find_ghostscript() if use_ghostscript else None
    if gs and _compress_with_ghostscript(gs, pdf_path, target):
        return target
    if _compress_with_pymupdf(pdf_path, target):
        return target
    logger.error(f"Could not compress {pdf_path}")
    return None


def _compress_with_ghostscript(gs: str, source: Path, target: Path) -> bool:
    command = [
        gs,
        "-sDEVICE=pdfwrite",
        "-dCompatibilityLevel=1.4",
        "-dPDFSETTINGS=/ebook",
        "-dNOPAUSE",
        "-dQUIET",
        "-dBATCH",
        f"-sOutputFile={target}",
        str(source),
    ]
    try:
        subprocess.run(command, check=True, capture_output=True)
    except (OSError, subprocess.CalledProcessError) as exc:
        logger.warning(f"Ghostscript compression failed: {exc}")
        return False
    _log_ratio(source, target, "ghostscript")
    return True


def _compress_with_pymupdf(source: Path, target: Path) -> bool:
    try:
        with fitz.open(source) as doc:
            doc.save(target, garbage=4, deflate=True, clean=True)
    except (RuntimeError, ValueError, OSError) as exc:
        logger.warning(f"PyMuPDF compression failed: {exc}")
        return False
    _log_ratio(source, target, "pymupdf")
    return True


def _log_ratio(source: Path, target: Path, method: str) -> None:
    before = source.stat().st_size
    after = target.stat().st_size
    ratio = after / before if before else 1.0
    logger.info(f"Compressed {source.name} with {method}: {before} -> {after} bytes ({ratio:.0%})")
