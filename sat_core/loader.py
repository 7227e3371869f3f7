from __future__ import annotations
import json, importlib.resources as ir
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from .types import (
    InvalidInput,
    Question,
    QuestionOption,
    Section,
    StudentAnswer,
    Test,
    TestAttempt,
)

SAMPLE_TEST = "data/sample_test.json"


def _get(d: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    # snake_case first, then the camelCase the web client sends
    for k in keys:
        if k in d and d[k] is not None:
            return d[k]
    return default


def _dt(raw: Any) -> Optional[datetime]:
    if raw is None or isinstance(raw, datetime):
        return raw
    try:
        return datetime.fromisoformat(str(raw).replace("Z", "+00:00"))
    except ValueError:
        raise InvalidInput(f"invalid timestamp {raw!r}")


def _first_tag(d: Dict[str, Any], key: str, tags_key: str) -> str:
    val = _get(d, key)
    if val:
        return str(val)
    tags = _get(d, tags_key, f"{key}_tags", default=[])
    return str(tags[0]) if tags else "general"


def _options(raw: Any) -> Optional[List[QuestionOption]]:
    if not raw:
        return None
    out: List[QuestionOption] = []
    for i, opt in enumerate(raw):
        if isinstance(opt, dict):
            out.append(QuestionOption(
                id=str(_get(opt, "id", default=chr(65 + i))),
                text=str(_get(opt, "text", default="")),
                is_correct=bool(_get(opt, "is_correct", "isCorrect", default=False)),
            ))
        else:
            out.append(QuestionOption(id=chr(65 + i), text=str(opt)))
    return out


def question_from_dict(d: Dict[str, Any]) -> Question:
    return Question(
        id=str(d["id"]),
        type=d["type"],
        correct_answer=_get(d, "correct_answer", "correctAnswer"),
        topic=_first_tag(d, "topic", "topicTags"),
        skill=_first_tag(d, "skill", "skillTags"),
        points=float(_get(d, "points", default=1)),
        difficulty=_get(d, "difficulty", default="medium"),
        options=_options(_get(d, "options")),
        text=str(_get(d, "text", "questionText", default="")),
        explanation=str(_get(d, "explanation", default="")),
        estimated_time=_get(d, "estimated_time", "estimatedTime"),
    )


def section_from_dict(d: Dict[str, Any], questions: Optional[List[Question]] = None) -> Section:
    if questions is None:
        questions = [question_from_dict(q) for q in _get(d, "questions", default=[])]
    return Section(
        id=str(d["id"]),
        subject=_get(d, "subject", default="math"),
        questions=questions,
        time_limit=float(_get(d, "time_limit", "timeLimit", default=0)),
        number=int(_get(d, "number", "sectionNumber", default=1)),
        name=str(_get(d, "name", default="")),
        scale_table=_get(d, "scale_table", "scaleTable"),
    )


def test_from_dict(d: Dict[str, Any]) -> Test:
    """Build a :class:`Test` from its JSON form.

    Questions are either embedded in each section or listed once at the top
    level with a ``sectionNumber``, the way the web client stores them.
    """
    try:
        flat = _get(d, "questions")
        by_number: Dict[int, List[Question]] = {}
        if flat:
            for q in flat:
                n = int(_get(q, "section_number", "sectionNumber", default=1))
                by_number.setdefault(n, []).append(question_from_dict(q))
        sections = []
        for i, s in enumerate(_get(d, "sections", default=[])):
            number = int(_get(s, "number", "sectionNumber", default=i + 1))
            embedded = None if not flat or _get(s, "questions") else by_number.get(number, [])
            sections.append(section_from_dict({**s, "number": number}, embedded))
        return Test(
            id=str(d["id"]),
            title=str(_get(d, "title", default="")),
            sections=sections,
            difficulty=_get(d, "difficulty", default="intermediate"),
            tags=list(_get(d, "tags", default=[])),
            version=str(_get(d, "version", default="1.0.0")),
            status=_get(d, "status", default="published"),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise InvalidInput(f"malformed test definition: {e}")


def answer_from_dict(d: Dict[str, Any]) -> StudentAnswer:
    if not isinstance(d, dict):
        raise InvalidInput(f"answer must be an object, got {type(d).__name__}")
    return StudentAnswer(
        question_id=str(_get(d, "question_id", "questionId", default="")),
        value=_get(d, "value", "answer"),
        time_spent=float(_get(d, "time_spent", "timeSpent", default=0.0)),
        skipped=bool(_get(d, "skipped", default=False)),
        flagged=bool(_get(d, "flagged", default=False)),
        answered_at=_dt(_get(d, "answered_at", "answeredAt")),
    )


def attempt_from_dict(d: Dict[str, Any]) -> TestAttempt:
    try:
        return TestAttempt(
            id=str(d["id"]),
            test_id=str(_get(d, "test_id", "testId", default="")),
            user_id=str(_get(d, "user_id", "userId", default="")),
            answers=[answer_from_dict(a) for a in _get(d, "answers", default=[])],
            status=_get(d, "status", default="in-progress"),
            started_at=_dt(_get(d, "started_at", "startedAt")),
            submitted_at=_dt(_get(d, "submitted_at", "submittedAt")),
            total_time_spent=float(_get(d, "total_time_spent", "totalTimeSpent", default=0.0)),
        )
    except (KeyError, TypeError, ValueError, AttributeError) as e:
        raise InvalidInput(f"malformed attempt: {e}")


def load_test(path: str | Path) -> Test:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    return test_from_dict(raw)


def load_attempt(path: str | Path) -> TestAttempt:
    raw = json.loads(Path(path).read_text(encoding="utf-8"))
    return attempt_from_dict(raw)


def load_sample_test() -> Test:
    data = ir.files(__package__).joinpath(SAMPLE_TEST).read_text(encoding="utf-8")
    return test_from_dict(json.loads(data))
