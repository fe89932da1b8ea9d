"""
Forgetting curve - recall probability as a function of elapsed time.

Power-law decay calibrated so that R(S, S) = 0.9:

    R(t, S) = (1 + FACTOR * t / S) ** DECAY

Solving for t gives the interval that lands on a target retention, which is
what long-interval scheduling uses.
"""

import math
import random

from sprout.domain.constants import (
    DECAY,
    DEFAULT_MAXIMUM_INTERVAL,
    FACTOR,
    FUZZ_MIN_INTERVAL,
    FUZZ_RANGES,
    MS_DAY,
)
from sprout.domain.scheduling.models import CardStage, CardState, CurvePoint


def retrievability(elapsed_days: float, stability_days: float) -> float:
    """
    Probability of recall after `elapsed_days` for a memory of `stability_days`.

    A card that was never reviewed (S <= 0) has no retained memory. Negative
    elapsed time (clock skew in a log) is treated as an immediate review.
    """
    if stability_days <= 0:
        return 0.0
    t = max(0.0, elapsed_days)
    return (1.0 + FACTOR * t / stability_days) ** DECAY


def interval_days(
    stability_days: float,
    target_retention: float,
    maximum_interval_days: int = DEFAULT_MAXIMUM_INTERVAL,
) -> int:
    """
    Whole days until retrievability falls to `target_retention`.

    Clamped to [1, maximum_interval_days].
    """
    if stability_days <= 0:
        return 1
    raw = stability_days / FACTOR * (target_retention ** (1.0 / DECAY) - 1.0)
    # Halves round up, not to even; 1e-9 absorbs float noise from the inversion.
    return int(max(1, min(maximum_interval_days, math.floor(raw + 0.5 + 1e-9))))


def fuzz_interval(interval: int, seed: str, maximum_interval_days: int) -> int:
    """
    Jitter an interval so cards graded together don't stay clustered.

    The jitter is drawn from a generator seeded with `seed`, which callers
    build from the card's own history, so the result is reproducible.
    """
    if interval < FUZZ_MIN_INTERVAL:
        return interval

    delta = 1.0
    for start, end, factor in FUZZ_RANGES:
        delta += factor * max(min(interval, end) - start, 0.0)

    lo = max(2, round(interval - delta))
    hi = min(round(interval + delta), maximum_interval_days)
    lo = min(lo, hi)

    rng = random.Random(seed)
    fuzzed = math.floor(rng.random() * (hi - lo + 1) + lo)
    return int(min(fuzzed, maximum_interval_days))


def elapsed_days_between(start_ms: int | None, end_ms: int) -> float:
    """Fractional days from `start_ms` to `end_ms`, never negative."""
    if start_ms is None:
        return 0.0
    return max(0.0, (end_ms - start_ms) / MS_DAY)


def current_retrievability(state: CardState, now: int) -> float | None:
    """
    Recall probability of a card right now, or None if it has no memory yet.
    """
    if state.stage is CardStage.NEW or state.last_reviewed is None:
        return None
    if state.stability_days <= 0:
        return None
    return retrievability(elapsed_days_between(state.last_reviewed, now), state.stability_days)


def project_curve(stability_days: float, start: int, days: int) -> list[CurvePoint]:
    """
    Daily retrievability points from `start` for `days` days (inclusive of day 0).
    """
    return [
        CurvePoint(day=d, at=start + d * MS_DAY, retrievability=retrievability(d, stability_days))
        for d in range(max(0, days) + 1)
    ]
