"""
Debug export of a DocumentPlan as JSON.

The document is validated against ``schemas/plan.schema.json`` before
it is written, so a dump can be trusted by tooling that reads it.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import jsonschema

from vrain.core.errors import PlanValidationError
from vrain.core.models import DocumentPlan

logger = logging.getLogger(__name__)

PLAN_SCHEMA_VERSION = 1
_SCHEMA_PATH = Path(__file__).resolve().parent.parent / "schemas" / "plan.schema.json"
_SCHEMA: dict[str, Any] = {}


def load_plan_schema() -> dict[str, Any]:
    """Load the bundled plan schema once."""
    if not _SCHEMA:
        with open(_SCHEMA_PATH, "r", encoding="utf-8") as f:
            _SCHEMA.update(json.load(f))
    return _SCHEMA


def plan_to_dict(plan: DocumentPlan, **extra: Any) -> dict[str, Any]:
    data = {"schema_version": PLAN_SCHEMA_VERSION, **plan.to_dict()}
    data.update(extra)
    return data


def validate_plan(data: dict[str, Any]) -> None:
    """
    Raises:
        PlanValidationError: Data does not match the plan schema
    """
    validator = jsonschema.Draft202012Validator(load_plan_schema())
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))
    if errors:
        messages = [
            f"{'.'.join(str(p) for p in e.absolute_path) or '<root>'}: {e.message}"
            for e in errors
        ]
        raise PlanValidationError(
            f"Plan failed schema validation: {messages[0]}",
            errors=messages,
        )


def export_plan(plan: DocumentPlan, path: Path, **extra: Any) -> Path:
    """
    Write ``plan`` as indented UTF-8 JSON.

    Args:
        plan: Document plan to dump
        path: Target file
        **extra: Additional top-level keys (book id, output name, ...)
    """
    data = plan_to_dict(plan, **extra)
    validate_plan(data)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    logger.info(f"Wrote document plan ({plan.page_count} pages) to {path}")
    return path
