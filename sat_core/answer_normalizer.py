"""Canonical forms for student answers.

Every comparison between a submitted answer and an answer key goes through
:func:`answers_match`, so the client may send option letters, option indices
or free-typed grid-in values and still be graded the same way.
"""
from __future__ import annotations

import math
import re
from fractions import Fraction
from typing import Any, Iterable, List, Optional, Union

from . import config

_CHOICE_RX = re.compile(r"^(?:option|choice|answer)?\s*\(?\s*([a-z])\s*[).:]?$")
_GRID_IN_RX = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:/\d+)?")


def _first(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _as_list(expected: Any) -> List[Any]:
    if isinstance(expected, (list, tuple, set, frozenset)):
        return list(expected)
    return [expected]


def normalize_answer(value: Any) -> str:
    """Lower-cased, trimmed text form of ``value``; lists collapse to their first entry."""
    value = _first(value)
    if value is None:
        return ""
    return str(value).strip().lower()


def normalize_choice(value: Any) -> str:
    """Option letter for a multiple-choice answer, or ``""`` when there is none.

    "B", " b ", "(b)", "Option B" and the index 1 all normalize to "b".
    """
    value = _first(value)
    if value is None or isinstance(value, bool):
        return ""
    if isinstance(value, int):
        return config.MCQ_LETTERS[value] if 0 <= value < len(config.MCQ_LETTERS) else ""
    text = normalize_answer(value)
    if text.isdecimal():
        idx = int(text)
        return config.MCQ_LETTERS[idx] if idx < len(config.MCQ_LETTERS) else ""
    m = _CHOICE_RX.match(text)
    if not m or m.group(1) not in config.MCQ_LETTERS:
        return ""
    return m.group(1)


def parse_grid_in(value: Any) -> Optional[float]:
    """Numeric value of a grid-in entry ("1/2", ".5", "-3.25", 7), or None if malformed."""
    value = _first(value)
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        try:
            num = float(value)
        except OverflowError:
            return None
        return num if math.isfinite(num) else None
    text = str(value).strip()
    # decimals and fractions only, no exponents
    if len(text) > config.GRID_IN_MAX_CHARS or not _GRID_IN_RX.fullmatch(text):
        return None
    try:
        num = float(Fraction(text))
    except (ValueError, ZeroDivisionError, OverflowError):
        return None
    return num if math.isfinite(num) else None


def _structural(value: Any) -> Any:
    if isinstance(value, str):
        return value.strip().lower()
    return value


def _match_choice(accepted: Iterable[Any], submitted: Any) -> bool:
    got = normalize_choice(submitted)
    if not got:
        return False
    return any(got == normalize_choice(exp) for exp in accepted)


def _match_grid_in(accepted: Iterable[Any], submitted: Any) -> bool:
    got = parse_grid_in(submitted)
    if got is None:
        return False
    for exp in accepted:
        want = parse_grid_in(exp)
        if want is not None and abs(got - want) < config.GRID_IN_TOLERANCE:
            return True
    return False


def answers_match(expected: Any, submitted: Any, question_type: str) -> bool:
    """True when ``submitted`` matches ``expected`` (one value or a collection of equivalents).

    Malformed or missing input is never an error, only a non-match.
    """
    if submitted is None:
        return False
    accepted = [exp for exp in _as_list(expected) if exp is not None]
    if not accepted:
        return False
    try:
        if question_type == "multiple-choice":
            return _match_choice(accepted, submitted)
        if question_type == "grid-in":
            return _match_grid_in(accepted, submitted)
        got = _structural(submitted)
        return any(got == _structural(exp) for exp in accepted)
    except Exception:
        return False


def normalize_for_storage(value: Any, question_type: str) -> Union[str, float]:
    if value is None:
        return ""
    if question_type == "multiple-choice":
        letter = normalize_choice(value)
        return letter.upper() if letter else ""
    if question_type == "grid-in":
        num = parse_grid_in(value)
        return num if num is not None else ""
    return ""


__all__ = [
    "answers_match",
    "normalize_answer",
    "normalize_choice",
    "normalize_for_storage",
    "parse_grid_in",
]
