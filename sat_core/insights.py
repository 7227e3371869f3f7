# sat_core/insights.py
from __future__ import annotations
from typing import Dict, List

from . import config
from .types import TopicPerformance


def strengths(topics: Dict[str, TopicPerformance], cap: int | None = None) -> List[str]:
    rows = [t for t in topics.values()
            if t.accuracy >= config.STRENGTH_ACCURACY and t.questions_attempted >= config.STRENGTH_MIN_ATTEMPTS]
    # stable on ties, so output follows question order
    rows.sort(key=lambda t: t.accuracy, reverse=True)
    return [t.topic for t in rows][: cap or config.INSIGHT_CAP]


def weaknesses(topics: Dict[str, TopicPerformance], cap: int | None = None) -> List[str]:
    rows = [t for t in topics.values()
            if t.accuracy < config.WEAKNESS_ACCURACY and t.questions_attempted >= config.WEAKNESS_MIN_ATTEMPTS]
    rows.sort(key=lambda t: t.accuracy)
    return [t.topic for t in rows][: cap or config.INSIGHT_CAP]


def recommendations(
    strong: List[str],
    weak: List[str],
    skipped: int,
    total_questions: int,
    avg_time_per_question: float,
) -> List[str]:
    out: List[str] = []
    if weak:
        out.append(f"Focus on improving: {', '.join(weak[:3])}")
    if total_questions and skipped > total_questions * config.SKIP_RATIO_WARN:
        out.append("Try to answer all questions - even guessing can help!")
    if avg_time_per_question > config.PACING_LIMIT_SEC:
        out.append("Practice time management to improve your pacing")
    if strong:
        out.append(f"Great work on: {', '.join(strong[:2])}!")
    return out
