"""
Module: vrain.output

Purpose:
    Page assembly and document output: PDF rendering with ReportLab,
    optional compression and the debug plan export.

Key Functions:
    - PageAssembler.assemble(): Merge layout, background and seals
    - PdfPageSink: Write pages to PDF
    - compress_pdf(): Secondary compressed artifact
    - export_plan(): Schema-checked JSON dump of a DocumentPlan

Used By:
    - vrain.controller
"""

from .assembler import PageAssembler, assemble
from .compression import compress_pdf, compressed_path
from .plan_export import export_plan, plan_to_dict, validate_plan
from .renderer import PageSink, PdfPageSink, wave_points

__all__ = [
    "PageAssembler",
    "assemble",
    "compress_pdf",
    "compressed_path",
    "export_plan",
    "plan_to_dict",
    "validate_plan",
    "PageSink",
    "PdfPageSink",
    "wave_points",
]
