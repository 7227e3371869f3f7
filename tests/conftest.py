from __future__ import annotations

from datetime import datetime, timezone

import pytest

from sat_core.types import Question, QuestionOption, Section, StudentAnswer, Test, TestAttempt

SUBMITTED_AT = datetime(2025, 3, 8, 12, 0, tzinfo=timezone.utc)


def mcq(qid: str, correct: str, *, topic: str = "algebra", skill: str = "problem-solving",
        points: float = 1.0, difficulty: str = "medium") -> Question:
    return Question(
        id=qid,
        type="multiple-choice",
        correct_answer=correct,
        topic=topic,
        skill=skill,
        points=points,
        difficulty=difficulty,
        options=[QuestionOption(id=letter, text=f"choice {letter}") for letter in "ABCD"],
    )


def grid_in(qid: str, correct, *, topic: str = "algebra", skill: str = "problem-solving",
            points: float = 1.0, difficulty: str = "medium") -> Question:
    return Question(id=qid, type="grid-in", correct_answer=correct, topic=topic, skill=skill,
                    points=points, difficulty=difficulty)


def build_two_question_test(test_id: str = "t1") -> Test:
    """One math section: Q1 multiple-choice (B), Q2 grid-in (1/2)."""

    return Test(
        id=test_id,
        title="Two question test",
        sections=[
            Section(
                id="s1",
                subject="math",
                name="Math",
                time_limit=600,
                questions=[mcq("Q1", "B"), grid_in("Q2", "1/2", topic="fractions", skill="computation")],
            )
        ],
    )


def build_full_test(test_id: str = "full") -> Test:
    """Two sections with mixed topics, skills, points and difficulties."""

    rw = Section(
        id="rw",
        number=1,
        subject="reading-writing",
        name="Reading and Writing",
        time_limit=1920,
        questions=[
            mcq("rw1", "A", topic="vocabulary", skill="craft", difficulty="easy"),
            mcq("rw2", "C", topic="vocabulary", skill="craft", difficulty="medium"),
            mcq("rw3", "D", topic="vocabulary", skill="craft", difficulty="hard"),
            mcq("rw4", "B", topic="grammar", skill="conventions", difficulty="easy"),
            mcq("rw5", "A", topic="grammar", skill="conventions", difficulty="medium"),
        ],
    )
    math = Section(
        id="m",
        number=2,
        subject="math",
        name="Math",
        time_limit=2100,
        questions=[
            mcq("m1", "B", topic="linear-equations", skill="algebra", difficulty="easy"),
            grid_in("m2", ["1/2", "0.5"], topic="linear-equations", skill="algebra", points=2.0),
            grid_in("m3", "6", topic="circles", skill="geometry", difficulty="hard"),
            mcq("m4", "C", topic="circles", skill="geometry", points=2.0, difficulty="hard"),
        ],
    )
    return Test(id=test_id, title="Full practice", sections=[rw, math], tags=["practice"])


def submitted(test: Test, answers, *, attempt_id: str = "a1", **kw) -> TestAttempt:
    """A submitted attempt; ``answers`` is a list of (question_id, value) pairs."""

    return TestAttempt(
        id=attempt_id,
        test_id=test.id,
        user_id=kw.pop("user_id", "u1"),
        answers=[StudentAnswer(question_id=qid, value=val, time_spent=kw.get("time_each", 30.0))
                 for qid, val in answers],
        status=kw.get("status", "submitted"),
        submitted_at=SUBMITTED_AT,
    )


@pytest.fixture
def two_question_test() -> Test:
    return build_two_question_test()


@pytest.fixture
def full_test() -> Test:
    return build_full_test()
