"""
Step scheduler for the short, fixed-minute learning and relearning ramps.

`step_index` counts the steps a card has already cleared. Clearing step i
schedules a wait of steps[i] minutes; clearing the last step graduates the
card to interval-based review.
"""

from collections.abc import Sequence

from sprout.domain.scheduling.models import CardStage, Rating, StepOutcome


def advance_step(
    stage: CardStage,
    step_index: int,
    steps: Sequence[int],
    rating: Rating,
) -> StepOutcome:
    """
    Decide the next position in a ramp for one grading.

    Args:
        stage: LEARNING or RELEARNING (NEW is treated as LEARNING).
        step_index: Steps already cleared; clamped into [0, len(steps)].
        steps: Ramp delays in minutes. Empty means graduate immediately.
        rating: Normalized rating.

    Returns:
        StepOutcome. When `graduated` is True the caller schedules the card
        with the memory model instead of a fixed delay.
    """
    ramp_stage = CardStage.RELEARNING if stage is CardStage.RELEARNING else CardStage.LEARNING

    if not steps:
        return _graduate()

    index = max(0, min(step_index, len(steps)))

    if rating == Rating.AGAIN:
        return StepOutcome(
            graduated=False,
            next_stage=ramp_stage,
            next_step_index=0,
            due_in_minutes=steps[0],
        )

    if rating == Rating.HARD:
        # Repeat the delay the card is currently waiting on.
        return StepOutcome(
            graduated=False,
            next_stage=ramp_stage,
            next_step_index=index,
            due_in_minutes=steps[min(max(index - 1, 0), len(steps) - 1)],
        )

    if rating == Rating.GOOD and index + 1 < len(steps):
        return StepOutcome(
            graduated=False,
            next_stage=ramp_stage,
            next_step_index=index + 1,
            due_in_minutes=steps[index],
        )

    # EASY, or GOOD on the final step
    return _graduate()


def _graduate() -> StepOutcome:
    return StepOutcome(graduated=True, next_stage=CardStage.REVIEW, next_step_index=0)
