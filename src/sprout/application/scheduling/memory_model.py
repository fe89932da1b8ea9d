"""
Difficulty and stability update rules (FSRS-5).

Pure functions mapping the current memory parameters, the rating just given
and, for spaced reviews, the retrievability at review time onto the next
(stability, difficulty) pair.

Key principles:
- Harder first ratings start with lower stability and higher difficulty
- Recalling an item that was close to being forgotten grows stability most
- A lapse shrinks stability through its own post-lapse formula
- Difficulty drifts back toward the "easy" baseline over time
"""

import math

from sprout.domain.constants import D_MAX, D_MIN, S_MIN
from sprout.domain.scheduling.models import Rating


def clamp_difficulty(difficulty: float) -> float:
    return max(D_MIN, min(D_MAX, difficulty))


def clamp_stability(stability: float) -> float:
    return max(S_MIN, stability)


def init_stability(rating: Rating, w: tuple[float, ...]) -> float:
    """
    Stability after the very first grading.

    Formula: S0(G) = w[G-1]
    """
    return clamp_stability(w[rating - 1])


def _raw_init_difficulty(rating: Rating, w: tuple[float, ...]) -> float:
    return w[4] - math.exp(w[5] * (rating - 1)) + 1


def init_difficulty(rating: Rating, w: tuple[float, ...]) -> float:
    """
    Difficulty after the very first grading.

    Formula: D0(G) = w4 - exp(w5 * (G - 1)) + 1, clipped to [1, 10]
    """
    return clamp_difficulty(_raw_init_difficulty(rating, w))


def next_difficulty(difficulty: float, rating: Rating, w: tuple[float, ...]) -> float:
    """
    Update difficulty after any grading past the first.

    Formula:
        delta  = -w6 * (G - 3)
        D'     = D + delta * (10 - D) / 9        (linear damping near the ceiling)
        D''    = w7 * D0(EASY) + (1 - w7) * D'   (mean reversion)

    Hard raises difficulty, Good keeps it nearly flat and Easy lowers it.
    """
    delta = -w[6] * (rating - 3)
    damped = difficulty + delta * (D_MAX - difficulty) / 9.0
    reverted = w[7] * _raw_init_difficulty(Rating.EASY, w) + (1 - w[7]) * damped
    return clamp_difficulty(reverted)


def next_recall_stability(
    difficulty: float,
    stability: float,
    retrievability: float,
    rating: Rating,
    w: tuple[float, ...],
) -> float:
    """
    Stability after a successful spaced review (Hard/Good/Easy).

    Formula:
        S' = S * (1 + e^w8 * (11 - D) * S^-w9 * (e^(w10 * (1 - R)) - 1) * hard * easy)

    Where hard = w15 for Hard and easy = w16 for Easy (1 otherwise). The
    lower R was at review time, the larger the gain.
    """
    if rating == Rating.AGAIN:
        raise ValueError("Use next_forget_stability for AGAIN")

    hard_penalty = w[15] if rating == Rating.HARD else 1.0
    easy_bonus = w[16] if rating == Rating.EASY else 1.0

    growth = (
        math.exp(w[8])
        * (11 - difficulty)
        * math.pow(stability, -w[9])
        * (math.exp(w[10] * (1 - retrievability)) - 1)
        * hard_penalty
        * easy_bonus
    )
    return clamp_stability(stability * (1 + growth))


def next_forget_stability(
    difficulty: float,
    stability: float,
    retrievability: float,
    w: tuple[float, ...],
) -> float:
    """
    Stability after a lapse.

    Formula:
        S_f = w11 * D^-w12 * ((S + 1)^w13 - 1) * e^(w14 * (1 - R))

    Capped so the post-lapse stability never exceeds S / e^(w17 * w18), and
    therefore never exceeds the stability before the lapse.
    """
    forgotten = (
        w[11]
        * math.pow(difficulty, -w[12])
        * (math.pow(stability + 1, w[13]) - 1)
        * math.exp(w[14] * (1 - retrievability))
    )
    ceiling = stability / math.exp(w[17] * w[18])
    return clamp_stability(min(forgotten, ceiling, stability))


def next_short_term_stability(stability: float, rating: Rating, w: tuple[float, ...]) -> float:
    """
    Stability after a same-day grading (learning steps or a review < 1 day old).

    Formula: S' = S * e^(w17 * (G - 3 + w18))

    Good and Easy never lower stability.
    """
    factor = math.exp(w[17] * (rating - 3 + w[18]))
    if rating >= Rating.GOOD:
        factor = max(factor, 1.0)
    return clamp_stability(stability * factor)


def apply_initial_exposure(rating: Rating, w: tuple[float, ...]) -> tuple[float, float]:
    """(stability, difficulty) for a card graded for the first time."""
    return init_stability(rating, w), init_difficulty(rating, w)


def apply_review(
    stability: float,
    difficulty: float,
    retrievability: float,
    rating: Rating,
    w: tuple[float, ...],
) -> tuple[float, float]:
    """
    Apply the spaced-review rules and return (new_stability, new_difficulty).

    Stability uses the difficulty *before* this review, as in FSRS.
    """
    if rating == Rating.AGAIN:
        new_stability = next_forget_stability(difficulty, stability, retrievability, w)
    else:
        new_stability = next_recall_stability(difficulty, stability, retrievability, rating, w)
    return new_stability, next_difficulty(difficulty, rating, w)


def apply_short_term(
    stability: float,
    difficulty: float,
    rating: Rating,
    w: tuple[float, ...],
) -> tuple[float, float]:
    """Apply the same-day rules and return (new_stability, new_difficulty)."""
    return next_short_term_stability(stability, rating, w), next_difficulty(difficulty, rating, w)
