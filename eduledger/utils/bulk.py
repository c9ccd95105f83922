# eduledger/utils/bulk.py
"""Helpers for reporting skipped rows in bulk requests."""
from typing import Any, Optional
from pydantic import ValidationError


def raw_student_id(raw: Any) -> Optional[str]:
    """Best-effort student id from an unvalidated row, for error reporting only"""
    if not isinstance(raw, dict):
        return None
    value = raw.get("studentId", raw.get("student_id"))
    return str(value) if value is not None else None


def describe_row_error(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "row"
        parts.append(f"{location}: {item.get('msg', 'invalid value')}")
    return "; ".join(parts)
