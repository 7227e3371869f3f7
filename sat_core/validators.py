from __future__ import annotations
import math
from collections import Counter
from typing import Any, Optional

from . import config
from .answer_normalizer import normalize_choice, parse_grid_in
from .types import (
    ATTEMPT_STATUSES,
    QUESTION_TYPES,
    Question,
    Section,
    Test,
    TestAttempt,
    ValidationResult,
)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        num = float(value)
    except OverflowError:
        return None
    return num if math.isfinite(num) else None


def _check_correct_answer(q: Question, res: ValidationResult) -> None:
    accepted = q.accepted_answers()
    if not accepted or all(_blank(a) for a in accepted):
        res.add("MISSING_CORRECT_ANSWER", f"Question {q.id} has no correct answer", ref=q.id, field="correct_answer")
        return
    if q.type == "multiple-choice":
        option_ids = {normalize_choice(o.id) for o in (q.options or [])}
        for a in accepted:
            letter = normalize_choice(a)
            if not letter or (option_ids and letter not in option_ids):
                res.add(
                    "INVALID_CORRECT_ANSWER",
                    f"Question {q.id} correct answer {a!r} is not one of its options",
                    ref=q.id, field="correct_answer",
                )
    elif q.type == "grid-in":
        for a in accepted:
            if parse_grid_in(a) is None:
                res.add(
                    "INVALID_CORRECT_ANSWER",
                    f"Question {q.id} grid-in answer {a!r} is not a number",
                    ref=q.id, field="correct_answer",
                )


def _check_options(q: Question, res: ValidationResult) -> None:
    opts = q.options or []
    if not opts:
        return
    if len(opts) < config.MCQ_MIN_OPTIONS:
        res.add("INSUFFICIENT_OPTIONS", f"Question {q.id} needs at least {config.MCQ_MIN_OPTIONS} options",
                ref=q.id, field="options")
    if len(opts) > config.MCQ_MAX_OPTIONS:
        res.add("TOO_MANY_OPTIONS", f"Question {q.id} cannot have more than {config.MCQ_MAX_OPTIONS} options",
                ref=q.id, field="options")
    ids = [normalize_choice(o.id) or o.id for o in opts]
    if len(ids) != len(set(ids)):
        res.add("DUPLICATE_OPTION_IDS", f"Question {q.id} has duplicate option ids", ref=q.id, field="options")
    flagged = sum(1 for o in opts if o.is_correct)
    if flagged > 1:
        res.add("INVALID_CORRECT_ANSWER_COUNT", f"Question {q.id} marks {flagged} options correct",
                ref=q.id, field="options")


def validate_question(q: Question) -> ValidationResult:
    res = ValidationResult()
    if _blank(q.id):
        res.add("REQUIRED", "Question id is required", field="id")
    if q.type not in QUESTION_TYPES:
        res.add("INVALID_TYPE", f"Question {q.id} has unknown type {q.type!r}", ref=q.id, field="type")
        return res
    if q.type == "multiple-choice":
        _check_options(q, res)
    _check_correct_answer(q, res)
    pts = _number(q.points)
    if pts is None or pts < 0 or pts > config.MAX_QUESTION_POINTS:
        res.add("INVALID_RANGE", f"Question {q.id} points must be between 0 and {config.MAX_QUESTION_POINTS:g}",
                ref=q.id, field="points")
    if q.estimated_time is not None and (_number(q.estimated_time) is None or q.estimated_time < 0):
        res.add("INVALID_VALUE", f"Question {q.id} estimated time must be a non-negative number",
                ref=q.id, field="estimated_time")
    return res


def _check_scale_table(s: Section, res: ValidationResult) -> None:
    table = s.scale_table
    if not table:
        return
    if not isinstance(table, (list, tuple)) or any(_number(v) is None for v in table):
        res.add("INVALID_VALUE", f"Section {s.id} scale table must be a list of numbers",
                ref=s.id, field="scale_table")
        return
    points = [_number(q.points) for q in s.questions]
    if all(p is not None for p in points):
        expected = int(sum(points)) + 1
        if len(table) != expected:
            res.add("SCALE_TABLE_LENGTH",
                    f"Section {s.id} scale table has {len(table)} entries, expected {expected}",
                    ref=s.id, field="scale_table")
    if any(b < a for a, b in zip(table, table[1:])):
        res.add("SCALE_TABLE_ORDER", f"Section {s.id} scale table must not decrease",
                ref=s.id, field="scale_table")


def validate_section(s: Section) -> ValidationResult:
    res = ValidationResult()
    if _blank(s.id):
        res.add("REQUIRED", "Section id is required", field="id")
    if not s.questions:
        res.add("SECTION_EMPTY", f"Section {s.id} has no questions", ref=s.id, field="questions")
    limit = _number(s.time_limit)
    if limit is None or limit <= 0:
        res.add("INVALID_TIME_LIMIT", f"Section {s.id} time limit must be greater than 0",
                ref=s.id, field="time_limit")
    elif limit > config.MAX_SECTION_SECONDS:
        res.add("MAX_VALUE", f"Section {s.id} time limit cannot exceed {config.MAX_SECTION_SECONDS} seconds",
                ref=s.id, field="time_limit")
    for i, q in enumerate(s.questions):
        res.extend(validate_question(q), prefix=f"questions[{i}]")
    _check_scale_table(s, res)
    return res


def validate_test(test: Test) -> ValidationResult:
    """Structural checks over a whole test; every problem is reported, none raised."""
    res = ValidationResult()
    if _blank(test.id):
        res.add("REQUIRED", "Test id is required", field="id")
    if not test.sections:
        res.add("TEST_NO_SECTIONS", "Test must have at least one section", ref=test.id, field="sections")
        return res

    for i, s in enumerate(test.sections):
        res.extend(validate_section(s), prefix=f"sections[{i}]")

    for sid, n in Counter(s.id for s in test.sections).items():
        if n > 1:
            res.add("DUPLICATE_SECTION_ID", f"Section id {sid} appears {n} times", ref=sid, field="sections")

    for qid, n in Counter(q.id for q in test.questions()).items():
        if n > 1:
            res.add("DUPLICATE_QUESTION_ID", f"Question id {qid} appears {n} times", ref=qid, field="sections")
    return res


def validate_test_attempt(test: Test, attempt: TestAttempt) -> ValidationResult:
    """Checks a submitted attempt against the test it claims to answer."""
    res = ValidationResult()
    if attempt.test_id != test.id:
        res.add("TEST_MISMATCH", f"Attempt is for test {attempt.test_id}, not {test.id}",
                ref=attempt.id, field="test_id")
    if attempt.status not in ATTEMPT_STATUSES:
        res.add("INVALID_STATUS", f"Attempt status {attempt.status!r} is not recognised",
                ref=attempt.id, field="status")
    elif attempt.status != "submitted":
        res.add("NOT_SUBMITTED", f"Attempt {attempt.id} is {attempt.status}, not submitted",
                ref=attempt.id, field="status")

    known = test.question_index()
    seen: Counter = Counter()
    for i, ans in enumerate(attempt.answers):
        path = f"answers[{i}]"
        if _blank(ans.question_id):
            res.add("REQUIRED", "Answer question id is required", field=f"{path}.question_id")
            continue
        seen[ans.question_id] += 1
        if seen[ans.question_id] == 2:
            res.add("DUPLICATE_ANSWER", f"Question {ans.question_id} is answered more than once",
                    ref=ans.question_id, field=path)
        if ans.question_id not in known:
            res.add("UNKNOWN_QUESTION", f"Question {ans.question_id} does not exist in test {test.id}",
                    ref=ans.question_id, field=f"{path}.question_id")
        if ans.time_spent is not None and (_number(ans.time_spent) is None or ans.time_spent < 0):
            res.add("INVALID_VALUE", "Time spent must be a non-negative number",
                    ref=ans.question_id, field=f"{path}.time_spent")
    if _number(attempt.total_time_spent) is None or attempt.total_time_spent < 0:
        res.add("INVALID_VALUE", "Total time spent cannot be negative", ref=attempt.id, field="total_time_spent")
    return res
