"""
State transition engine - one state-machine step per grading.

Pure scheduling logic (no I/O, no wall clock):
1. Normalize the rating
2. Sanitize the incoming state (clamp instead of failing)
3. Measure retrievability at `now`
4. Update stability/difficulty and walk the learning ramp
5. Return the new CardState plus the schedule decision

Caller is responsible for:
1. Loading the card state
2. Persisting the returned state before grading the same card again
3. Writing the review log
"""

import logging
import math
from dataclasses import replace
from typing import Any

from sprout.application.config import SchedulerSettings
from sprout.domain.constants import MS_DAY, MS_MINUTE, S_MIN, SUSPEND_FAR_DAYS
from sprout.domain.scheduling.models import (
    STEPPING_STAGES,
    BinaryGrade,
    CardStage,
    CardState,
    GradeMetrics,
    GradeResult,
    Rating,
    StepOutcome,
)

from . import memory_model
from .forgetting_curve import (
    elapsed_days_between,
    fuzz_interval,
    interval_days,
    retrievability,
)
from .grades import parse_rating, require_rating
from .steps import advance_step

logger = logging.getLogger(__name__)

DEFAULT_DIFFICULTY = 5.0


def grade(
    state: CardState,
    rating: Any,
    now: int,
    settings: SchedulerSettings,
    pass_rating: Rating = Rating.GOOD,
) -> GradeResult:
    """
    Grade a card and return its next state and schedule.

    Args:
        state: Current card state (never mutated).
        rating: Four-level rating or pass/fail, as enum, string or 1-4.
        now: Grading time in epoch ms, supplied by the caller.
        settings: Validated scheduler settings.
        pass_rating: Rating a binary "pass" stands for.

    Returns:
        GradeResult with the new state, chosen interval and due timestamp.

    Raises:
        ValueError: If `rating` can't be parsed. Nothing else fails.
    """
    normalized = require_rating(rating, pass_rating)

    if state.is_suspended:
        return _unchanged(state)

    w = settings.parameters.weights
    card = sanitize_state(state, now)
    stage_before = card.stage

    elapsed = 0.0
    r_now: float | None = None
    if stage_before is not CardStage.NEW:
        elapsed = elapsed_days_between(card.last_reviewed, now)
        r_now = retrievability(elapsed, card.stability_days)

    lapses = card.lapses

    if stage_before is CardStage.NEW:
        stability, difficulty = memory_model.apply_initial_exposure(normalized, w)
        outcome = advance_step(
            CardStage.LEARNING, 0, settings.effective_learning_steps, normalized
        )
    elif stage_before in STEPPING_STAGES:
        stability, difficulty = memory_model.apply_short_term(
            card.stability_days, card.difficulty, normalized, w
        )
        steps = (
            settings.effective_relearning_steps
            if stage_before is CardStage.RELEARNING
            else settings.effective_learning_steps
        )
        outcome = advance_step(stage_before, card.learning_step_index, steps, normalized)
    else:
        if elapsed < 1.0:
            # Same-day review: spacing effect hasn't kicked in yet.
            stability, difficulty = memory_model.apply_short_term(
                card.stability_days, card.difficulty, normalized, w
            )
        else:
            stability, difficulty = memory_model.apply_review(
                card.stability_days, card.difficulty, r_now or 0.0, normalized, w
            )

        if normalized == Rating.AGAIN:
            lapses += 1
            outcome = advance_step(
                CardStage.RELEARNING, 0, settings.effective_relearning_steps, normalized
            )
        else:
            outcome = StepOutcome(graduated=True, next_stage=CardStage.REVIEW, next_step_index=0)

    reps = card.reps + 1

    if outcome.graduated:
        days = interval_days(stability, settings.request_retention, settings.maximum_interval_days)
        if settings.enable_fuzz:
            seed = f"{now}_{reps}_{difficulty * stability}"
            days = fuzz_interval(days, seed, settings.maximum_interval_days)
        scheduled_days = days
        chosen_interval = float(days)
        due = now + days * MS_DAY
    else:
        minutes = outcome.due_in_minutes or 0
        scheduled_days = 0
        chosen_interval = minutes / (MS_DAY / MS_MINUTE)
        due = now + minutes * MS_MINUTE

    next_state = replace(
        card,
        stage=outcome.next_stage,
        due=due,
        reps=reps,
        lapses=lapses,
        learning_step_index=outcome.next_step_index,
        scheduled_days=scheduled_days,
        stability_days=stability,
        difficulty=difficulty,
        retrievability=r_now if r_now is not None else 0.0,
        last_reviewed=now,
    )

    metrics = GradeMetrics(
        retrievability_now=r_now,
        retrievability_target=retrievability(chosen_interval, stability),
        elapsed_days=elapsed,
        stability_days=stability,
        difficulty=difficulty,
        stage_before=stage_before,
        stage_after=next_state.stage,
    )
    _log_grade(card.card_id, normalized, metrics, due)

    return GradeResult(
        next_state=next_state,
        interval_days=chosen_interval,
        due_at=due,
        prev_due=state.due,
        metrics=metrics,
    )


# Hosts that think of grading as a state-machine step call it by that name.
step = grade


def grade_rating(
    state: CardState,
    rating: Rating | str,
    now: int,
    settings: SchedulerSettings,
) -> GradeResult:
    """Four-button entry point."""
    parsed = parse_rating(rating)
    if not isinstance(parsed, Rating):
        raise ValueError(f"Expected again/hard/good/easy, got {rating!r}")
    return grade(state, parsed, now, settings)


def grade_pass_fail(
    state: CardState,
    result: BinaryGrade | str,
    now: int,
    settings: SchedulerSettings,
    pass_rating: Rating = Rating.GOOD,
) -> GradeResult:
    """
    Two-button entry point. pass -> GOOD by default; pass_rating=Rating.EASY
    makes a pass behave like the four-button Easy.
    """
    parsed = parse_rating(result)
    if not isinstance(parsed, BinaryGrade):
        raise ValueError(f"Expected pass/fail, got {result!r}")
    return grade(state, parsed, now, settings, pass_rating=pass_rating)


def sanitize_state(state: CardState, now: int) -> CardState:
    """
    Bring externally edited state back inside the engine's invariants.

    - difficulty clamped to [1, 10] (missing -> 5)
    - stability floored at 0.1 for graded cards, falling back to scheduled_days
    - last_reviewed in the future is dropped
    - a graded stage with no review history is treated as NEW
    """
    stage = state.stage
    last_reviewed = state.last_reviewed
    if last_reviewed is not None and last_reviewed > now:
        last_reviewed = None

    if stage is not CardStage.NEW and last_reviewed is None:
        stage = CardStage.NEW

    if stage is CardStage.NEW:
        return replace(
            state,
            stage=CardStage.NEW,
            reps=max(0, state.reps),
            lapses=max(0, state.lapses),
            learning_step_index=0,
            scheduled_days=0,
            stability_days=0.0,
            difficulty=0.0,
            retrievability=0.0,
            last_reviewed=None,
        )

    difficulty = state.difficulty
    if not math.isfinite(difficulty) or difficulty <= 0:
        difficulty = DEFAULT_DIFFICULTY
    difficulty = memory_model.clamp_difficulty(difficulty)

    stability = state.stability_days
    if not math.isfinite(stability) or stability <= 0:
        stability = float(state.scheduled_days) if state.scheduled_days > 0 else S_MIN
    stability = memory_model.clamp_stability(stability)

    r = state.retrievability
    r = min(1.0, max(0.0, r)) if math.isfinite(r) else 0.0

    return replace(
        state,
        stage=stage,
        reps=max(0, state.reps),
        lapses=max(0, state.lapses),
        learning_step_index=max(0, state.learning_step_index),
        scheduled_days=max(0, state.scheduled_days),
        stability_days=stability,
        difficulty=difficulty,
        retrievability=r,
        last_reviewed=last_reviewed,
    )


def suspend_card(state: CardState, now: int) -> CardState:
    """
    Take a card out of rotation without touching its memory state.

    The prior due and stage are kept so unsuspend_card restores them exactly.
    Due is pushed ~100 years out so due-based queues never pick it up.
    """
    if state.is_suspended:
        return state
    return replace(
        state,
        stage=CardStage.SUSPENDED,
        suspended_due=state.due,
        suspended_stage=state.stage,
        due=now + SUSPEND_FAR_DAYS * MS_DAY,
    )


def unsuspend_card(state: CardState, now: int) -> CardState:
    """Undo suspend_card. A card that isn't suspended is returned as-is."""
    if not state.is_suspended:
        return state

    stage = state.suspended_stage
    if stage is None or stage is CardStage.SUSPENDED:
        stage = CardStage.REVIEW if state.last_reviewed else CardStage.NEW

    return replace(
        state,
        stage=stage,
        due=state.suspended_due if state.suspended_due is not None else now,
        suspended_due=None,
        suspended_stage=None,
    )


def bury_card(state: CardState, now: int) -> CardState:
    """Hide a card until the start of the next UTC day."""
    tomorrow = (now // MS_DAY + 1) * MS_DAY
    return replace(state, due=max(state.due, tomorrow))


def reset_card(state: CardState, now: int) -> CardState:
    """Forget all scheduling history; only the card id survives."""
    return CardState.new_card(state.card_id, now)


def _unchanged(state: CardState) -> GradeResult:
    return GradeResult(
        next_state=state,
        interval_days=0.0,
        due_at=state.due,
        prev_due=state.due,
        metrics=GradeMetrics(
            retrievability_now=None,
            retrievability_target=None,
            elapsed_days=0.0,
            stability_days=state.stability_days,
            difficulty=state.difficulty,
            stage_before=state.stage,
            stage_after=state.stage,
        ),
    )


def _log_grade(card_id: str, rating: Rating, metrics: GradeMetrics, due: int) -> None:
    if not logger.isEnabledFor(logging.DEBUG):
        return
    r_now = f"{metrics.retrievability_now:.4f}" if metrics.retrievability_now is not None else "-"
    r_target = (
        f"{metrics.retrievability_target:.4f}"
        if metrics.retrievability_target is not None
        else "-"
    )
    logger.debug(
        f"FSRS: card {card_id} rating={rating.name.lower()} "
        f"state={metrics.stage_before.label}→{metrics.stage_after.label} "
        f"R_now={r_now} R_target={r_target} elapsed={metrics.elapsed_days:.2f}d "
        f"S={metrics.stability_days:.2f}d D={metrics.difficulty:.2f} due={due}"
    )
