from __future__ import annotations
import os


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


GRID_IN_TOLERANCE: float = 0.001
GRID_IN_MAX_CHARS: int = 16

MCQ_MIN_OPTIONS: int = 2
MCQ_MAX_OPTIONS: int = 5
MCQ_LETTERS: str = "abcde"

MAX_QUESTION_POINTS: float = 10.0
MAX_SECTION_SECONDS: int = 3600

SECTION_SCALE_MIN: int = 200
SECTION_SCALE_MAX: int = 800
TOTAL_SCALE_MIN: int = 400
TOTAL_SCALE_MAX: int = 1600
SCALE_STEP: int = 10

STRENGTH_ACCURACY: float = 80.0
STRENGTH_MIN_ATTEMPTS: int = 3
WEAKNESS_ACCURACY: float = 60.0
WEAKNESS_MIN_ATTEMPTS: int = 2
INSIGHT_CAP: int = 5
SKIP_RATIO_WARN: float = 0.10
PACING_LIMIT_SEC: float = 120.0

RESULT_EXPORT_ENABLED: bool = True

# // env overrides for staging/ops; defaults follow the published SAT scale.
GRID_IN_TOLERANCE = _env_float("GRID_IN_TOLERANCE", GRID_IN_TOLERANCE)
MAX_SECTION_SECONDS = _env_int("MAX_SECTION_SECONDS", MAX_SECTION_SECONDS)
SCALE_STEP = max(1, _env_int("SCALE_STEP", SCALE_STEP))
PACING_LIMIT_SEC = _env_float("PACING_LIMIT_SEC", PACING_LIMIT_SEC)
RESULT_EXPORT_ENABLED = _env_bool("RESULT_EXPORT_ENABLED", RESULT_EXPORT_ENABLED)
