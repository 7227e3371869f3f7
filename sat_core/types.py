from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Tuple

QuestionType = Literal["multiple-choice", "grid-in", "essay"]
Subject = Literal["reading", "writing", "reading-writing", "math", "math-calculator", "math-no-calculator"]
Difficulty = Literal["easy", "medium", "hard"]
TestStatus = Literal["draft", "published", "archived"]
TestDifficulty = Literal["beginner", "intermediate", "advanced", "expert"]
AttemptStatus = Literal["not-started", "in-progress", "paused", "submitted", "expired", "abandoned"]

QUESTION_TYPES: Tuple[str, ...] = ("multiple-choice", "grid-in", "essay")
ATTEMPT_STATUSES: Tuple[str, ...] = ("not-started", "in-progress", "paused", "submitted", "expired", "abandoned")


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    INVALID_INPUT = "invalid_input"
    UPSTREAM_FAILURE = "upstream_failure"


class ScoringError(Exception):
    """Base for every error the core raises; ``kind`` is one of :class:`ErrorKind`."""

    kind: ErrorKind = ErrorKind.INVALID_INPUT

    def __init__(self, message: str, ref: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.ref = ref

    def to_dict(self) -> Dict[str, Any]:
        return {"kind": self.kind.value, "message": self.message, "ref": self.ref}


class InvalidInput(ScoringError):
    kind = ErrorKind.INVALID_INPUT


class MissingQuestionReference(InvalidInput):
    pass


class UpstreamFailure(ScoringError):
    kind = ErrorKind.UPSTREAM_FAILURE


@dataclass
class QuestionOption:
    id: str; text: str = ""; is_correct: bool = False


@dataclass
class Question:
    id: str
    type: QuestionType
    correct_answer: Any = None
    topic: str = "general"
    skill: str = "general"
    points: float = 1.0
    difficulty: Difficulty = "medium"
    options: Optional[List[QuestionOption]] = None
    text: str = ""
    explanation: str = ""
    estimated_time: Optional[float] = None

    def accepted_answers(self) -> List[Any]:
        """Acceptable answers for this question.

        A multiple-choice option flagged ``is_correct`` wins over a
        ``correct_answer`` field that disagrees with it.
        """
        if self.type == "multiple-choice" and self.options:
            flagged = [opt.id for opt in self.options if opt.is_correct]
            if len(flagged) == 1:
                return flagged
        if self.correct_answer is None:
            return []
        if isinstance(self.correct_answer, (list, tuple, set, frozenset)):
            return list(self.correct_answer)
        return [self.correct_answer]


@dataclass
class Section:
    id: str
    subject: Subject
    questions: List[Question] = field(default_factory=list)
    time_limit: float = 0
    number: int = 1
    name: str = ""
    scale_table: Optional[List[int]] = None

    @property
    def max_points(self) -> float:
        return float(sum(q.points for q in self.questions))


@dataclass
class Test:
    __test__ = False

    id: str
    title: str = ""
    sections: List[Section] = field(default_factory=list)
    difficulty: TestDifficulty = "intermediate"
    tags: List[str] = field(default_factory=list)
    version: str = "1.0.0"
    status: TestStatus = "published"

    def questions(self) -> List[Question]:
        return [q for s in self.sections for q in s.questions]

    def question_index(self) -> Dict[str, Question]:
        return {q.id: q for q in self.questions()}

    @property
    def total_points(self) -> float:
        return float(sum(s.max_points for s in self.sections))


@dataclass
class StudentAnswer:
    question_id: str
    value: Any = None
    time_spent: float = 0.0
    skipped: bool = False
    flagged: bool = False
    answered_at: Optional[datetime] = None


@dataclass
class TestAttempt:
    __test__ = False

    id: str
    test_id: str
    user_id: str = ""
    answers: List[StudentAnswer] = field(default_factory=list)
    status: AttemptStatus = "in-progress"
    started_at: Optional[datetime] = None
    submitted_at: Optional[datetime] = None
    total_time_spent: float = 0.0

    def answer_map(self) -> Dict[str, StudentAnswer]:
        # first answer wins; duplicates are a validation error upstream
        out: Dict[str, StudentAnswer] = {}
        for ans in self.answers:
            out.setdefault(ans.question_id, ans)
        return out


@dataclass(frozen=True)
class QuestionOutcome:
    question_id: str
    section_id: str
    topic: str
    skill: str
    answered: bool
    correct: bool
    points_awarded: float
    points_possible: float
    time_spent: float = 0.0


@dataclass(frozen=True)
class SectionScore:
    section_id: str
    section_number: int
    section_name: str
    subject: str
    questions_answered: int
    questions_correct: int
    questions_incorrect: int
    questions_skipped: int
    raw_score: float
    max_score: float
    percentage: float
    scaled_score: int
    time_spent: float = 0.0
    average_time_per_question: float = 0.0
    easy_correct: int = 0
    easy_total: int = 0
    medium_correct: int = 0
    medium_total: int = 0
    hard_correct: int = 0
    hard_total: int = 0


@dataclass(frozen=True)
class TopicPerformance:
    topic: str
    questions_total: int
    questions_attempted: int
    questions_correct: int
    points_earned: float
    points_possible: float
    percentage: float
    accuracy: float


@dataclass(frozen=True)
class SkillPerformance:
    skill: str
    questions_total: int
    questions_attempted: int
    questions_correct: int
    points_earned: float
    points_possible: float
    percentage: float
    accuracy: float


@dataclass(frozen=True)
class TestResult:
    __test__ = False

    test_id: str
    test_title: str
    attempt_id: str
    user_id: str
    total_score: float
    max_score: float
    percentage: float
    scaled_score: int
    section_scores: Tuple[SectionScore, ...]
    topic_performance: Dict[str, TopicPerformance]
    skill_performance: Dict[str, SkillPerformance]
    question_outcomes: Tuple[QuestionOutcome, ...]
    questions_answered: int
    questions_correct: int
    questions_incorrect: int
    questions_skipped: int
    total_time_spent: float = 0.0
    average_time_per_question: float = 0.0
    time_efficiency: float = 0.0
    strengths: Tuple[str, ...] = ()
    weaknesses: Tuple[str, ...] = ()
    recommendations: Tuple[str, ...] = ()
    submitted_at: Optional[datetime] = None


@dataclass(frozen=True)
class ValidationError:
    code: str
    message: str
    ref: Optional[str] = None
    field: str = ""


@dataclass
class ValidationResult:
    errors: List[ValidationError] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def add(self, code: str, message: str, ref: Optional[str] = None, field: str = "") -> None:
        self.errors.append(ValidationError(code=code, message=message, ref=ref, field=field))

    def extend(self, other: "ValidationResult", prefix: str = "") -> None:
        for err in other.errors:
            path = f"{prefix}.{err.field}" if prefix and err.field else (prefix or err.field)
            self.errors.append(ValidationError(code=err.code, message=err.message, ref=err.ref, field=path))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [
                {"code": e.code, "message": e.message, "ref": e.ref, "field": e.field}
                for e in self.errors
            ],
        }
