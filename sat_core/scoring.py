"""SAT-style scoring of a submitted attempt.

The calculator assumes the test and the attempt already passed
:mod:`sat_core.validators`. It still refuses input that breaks referential
integrity, raising :class:`InvalidInput`, because a silently wrong score is
worse than a failed request.
"""
from __future__ import annotations

import logging
from collections import Counter
from typing import Dict, List, Optional

from . import insights
from .answer_normalizer import answers_match
from .scaling import section_scaled_score, total_scaled_score
from .types import (
    InvalidInput,
    MissingQuestionReference,
    Question,
    QuestionOutcome,
    Section,
    SectionScore,
    SkillPerformance,
    StudentAnswer,
    Test,
    TestAttempt,
    TestResult,
    TopicPerformance,
)

log = logging.getLogger(__name__)


def _pct(part: float, whole: float) -> float:
    return round(part / whole * 100.0, 2) if whole > 0 else 0.0


def _is_answered(answer: Optional[StudentAnswer]) -> bool:
    if answer is None or answer.skipped or answer.value is None:
        return False
    if isinstance(answer.value, str) and not answer.value.strip():
        return False
    return True


def score_question(question: Question, answer: Optional[StudentAnswer], section_id: str = "") -> QuestionOutcome:
    answered = _is_answered(answer)
    correct = answered and answers_match(question.accepted_answers(), answer.value, question.type)
    possible = float(question.points)
    return QuestionOutcome(
        question_id=question.id,
        section_id=section_id,
        topic=question.topic,
        skill=question.skill,
        answered=answered,
        correct=correct,
        points_awarded=possible if correct else 0.0,
        points_possible=possible,
        time_spent=float(answer.time_spent or 0.0) if answered else 0.0,
    )


def _check_references(test: Test, attempt: TestAttempt) -> None:
    if attempt.test_id != test.id:
        raise InvalidInput(f"attempt {attempt.id} belongs to test {attempt.test_id}, not {test.id}", ref=attempt.id)
    known = test.question_index()
    counts = Counter(a.question_id for a in attempt.answers)
    for qid, n in counts.items():
        if qid not in known:
            raise MissingQuestionReference(f"answer references unknown question {qid}", ref=qid)
        if n > 1:
            raise InvalidInput(f"question {qid} answered {n} times", ref=qid)
    for q in known.values():
        if q.points < 0:
            raise InvalidInput(f"question {q.id} has negative points", ref=q.id)


def _section_score(section: Section, outcomes: List[QuestionOutcome]) -> SectionScore:
    by_difficulty = {lvl: [0, 0] for lvl in ("easy", "medium", "hard")}
    for q, o in zip(section.questions, outcomes):
        if o.answered and q.difficulty in by_difficulty:
            by_difficulty[q.difficulty][1] += 1
            if o.correct:
                by_difficulty[q.difficulty][0] += 1

    answered = sum(1 for o in outcomes if o.answered)
    correct = sum(1 for o in outcomes if o.correct)
    earned = sum(o.points_awarded for o in outcomes)
    possible = sum(o.points_possible for o in outcomes)
    spent = sum(o.time_spent for o in outcomes)
    return SectionScore(
        section_id=section.id,
        section_number=section.number,
        section_name=section.name,
        subject=section.subject,
        questions_answered=answered,
        questions_correct=correct,
        questions_incorrect=answered - correct,
        questions_skipped=len(outcomes) - answered,
        raw_score=earned,
        max_score=possible,
        percentage=_pct(earned, possible),
        scaled_score=section_scaled_score(earned, possible, section.scale_table),
        time_spent=spent,
        average_time_per_question=round(spent / answered, 2) if answered else 0.0,
        easy_correct=by_difficulty["easy"][0],
        easy_total=by_difficulty["easy"][1],
        medium_correct=by_difficulty["medium"][0],
        medium_total=by_difficulty["medium"][1],
        hard_correct=by_difficulty["hard"][0],
        hard_total=by_difficulty["hard"][1],
    )


def _buckets(outcomes: List[QuestionOutcome], key: str) -> Dict[str, Dict[str, float]]:
    out: Dict[str, Dict[str, float]] = {}
    for o in outcomes:
        b = out.setdefault(getattr(o, key), {"total": 0, "attempted": 0, "correct": 0, "earned": 0.0, "possible": 0.0})
        b["total"] += 1
        b["possible"] += o.points_possible
        if o.answered:
            b["attempted"] += 1
        if o.correct:
            b["correct"] += 1
            b["earned"] += o.points_awarded
    return out


def _topic_performance(outcomes: List[QuestionOutcome]) -> Dict[str, TopicPerformance]:
    return {
        tag: TopicPerformance(
            topic=tag,
            questions_total=int(b["total"]),
            questions_attempted=int(b["attempted"]),
            questions_correct=int(b["correct"]),
            points_earned=b["earned"],
            points_possible=b["possible"],
            percentage=_pct(b["earned"], b["possible"]),
            accuracy=_pct(b["correct"], b["attempted"]),
        )
        for tag, b in _buckets(outcomes, "topic").items()
    }


def _skill_performance(outcomes: List[QuestionOutcome]) -> Dict[str, SkillPerformance]:
    return {
        tag: SkillPerformance(
            skill=tag,
            questions_total=int(b["total"]),
            questions_attempted=int(b["attempted"]),
            questions_correct=int(b["correct"]),
            points_earned=b["earned"],
            points_possible=b["possible"],
            percentage=_pct(b["earned"], b["possible"]),
            accuracy=_pct(b["correct"], b["attempted"]),
        )
        for tag, b in _buckets(outcomes, "skill").items()
    }


def score_attempt(test: Test, attempt: TestAttempt) -> TestResult:
    """Score ``attempt`` against ``test``.

    A question without an answer earns nothing; it is never an error.
    The result depends only on the two arguments: no clock, no randomness.
    """
    _check_references(test, attempt)
    answers = attempt.answer_map()

    outcomes: List[QuestionOutcome] = []
    section_scores: List[SectionScore] = []
    for section in test.sections:
        sec_outcomes = [score_question(q, answers.get(q.id), section.id) for q in section.questions]
        section_scores.append(_section_score(section, sec_outcomes))
        outcomes.extend(sec_outcomes)

    total = sum(s.raw_score for s in section_scores)
    possible = sum(s.max_score for s in section_scores)
    answered = sum(s.questions_answered for s in section_scores)
    correct = sum(s.questions_correct for s in section_scores)
    skipped = sum(s.questions_skipped for s in section_scores)

    spent = float(attempt.total_time_spent or 0.0) or sum(o.time_spent for o in outcomes)
    avg_time = round(spent / answered, 2) if answered else 0.0
    # points per minute
    efficiency = round(total / spent * 60, 2) if spent > 0 else 0.0

    topics = _topic_performance(outcomes)
    strong = insights.strengths(topics)
    weak = insights.weaknesses(topics)

    result = TestResult(
        test_id=test.id,
        test_title=test.title,
        attempt_id=attempt.id,
        user_id=attempt.user_id,
        total_score=total,
        max_score=possible,
        percentage=_pct(total, possible),
        scaled_score=total_scaled_score(total, possible),
        section_scores=tuple(section_scores),
        topic_performance=topics,
        skill_performance=_skill_performance(outcomes),
        question_outcomes=tuple(outcomes),
        questions_answered=answered,
        questions_correct=correct,
        questions_incorrect=answered - correct,
        questions_skipped=skipped,
        total_time_spent=spent,
        average_time_per_question=avg_time,
        time_efficiency=efficiency,
        strengths=tuple(strong),
        weaknesses=tuple(weak),
        recommendations=tuple(insights.recommendations(strong, weak, skipped, len(outcomes), avg_time)),
        submitted_at=attempt.submitted_at,
    )
    log.debug("scored attempt=%s test=%s total=%s/%s scaled=%s",
              attempt.id, test.id, total, possible, result.scaled_score)
    return result
