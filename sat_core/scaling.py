# sat_core/scaling.py
from __future__ import annotations
from typing import Optional, Sequence

from . import config


def round_to_step(value: float, step: int | None = None) -> int:
    s = int(step or config.SCALE_STEP)
    # half-up, so 205 -> 210 like the published score reports
    return int((float(value) + s / 2.0) // s) * s


def _ratio(earned: float, possible: float) -> float:
    if possible <= 0: return 0.0
    return max(0.0, min(1.0, float(earned) / float(possible)))


def linear_scale(earned: float, possible: float, lo: int, hi: int) -> int:
    scaled = lo + _ratio(earned, possible) * (hi - lo)
    return max(lo, min(hi, round_to_step(scaled)))


def section_scaled_score(earned: float, possible: float, table: Optional[Sequence[int]] = None) -> int:
    """Scaled 200-800 section score.

    An explicit ``table`` maps whole raw points to scaled scores
    (``table[raw]``); without one the raw ratio is mapped linearly.
    """
    if table:
        idx = int(max(0.0, min(float(earned), float(len(table) - 1))))
        return int(table[idx])
    return linear_scale(earned, possible, config.SECTION_SCALE_MIN, config.SECTION_SCALE_MAX)


def total_scaled_score(earned: float, possible: float) -> int:
    return linear_scale(earned, possible, config.TOTAL_SCALE_MIN, config.TOTAL_SCALE_MAX)
