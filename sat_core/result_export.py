"""Helpers to export scored results in JSON/CSV formats."""
from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Any, Dict, List
import csv
import io

from .types import TestResult

_FIELDS: tuple[str, ...] = (
    "question_id",
    "section_id",
    "topic",
    "skill",
    "answered",
    "correct",
    "points_awarded",
    "points_possible",
    "time_spent",
)


def _to_basic(x: Any) -> Any:
    if isinstance(x, datetime):
        return x.isoformat()
    if isinstance(x, dict):
        return {str(k): _to_basic(v) for k, v in x.items()}
    if isinstance(x, (list, tuple)):
        return [_to_basic(v) for v in x]
    return x


def result_to_dict(result: TestResult) -> Dict[str, Any]:
    """Return a JSON-safe payload for a scored result."""

    return _to_basic(asdict(result))


def _normalize_row(row: Dict[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key in _FIELDS:
        val = row.get(key)
        if key in {"answered", "correct"}:
            out[key] = int(bool(val))
        elif key in {"points_awarded", "points_possible", "time_spent"}:
            try:
                out[key] = float(val)
            except (TypeError, ValueError):
                out[key] = 0.0
        else:
            out[key] = "" if val is None else str(val)
    return out


def outcomes_to_csv(outcomes: List[Dict[str, Any]]) -> str:
    """Render per-question outcomes (as stored in a result dict) as CSV with a fixed header."""

    buf = io.StringIO()
    writer = csv.DictWriter(buf, fieldnames=_FIELDS)
    writer.writeheader()
    for row in outcomes:
        writer.writerow(_normalize_row(row or {}))
    return buf.getvalue()


__all__ = ["result_to_dict", "outcomes_to_csv"]
