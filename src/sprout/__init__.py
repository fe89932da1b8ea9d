"""
Sprout - FSRS spaced-repetition scheduling engine.

Quick start:
    from sprout import CardState, SchedulerSettings, grade

    settings = SchedulerSettings(learning_steps_minutes=[10, 1440])
    card = CardState.new_card("card-1", now)
    result = grade(card, "good", now, settings)
"""

from sprout.application.config import MemoryParameters, SchedulerSettings
from sprout.application.scheduling import (
    bury_card,
    grade,
    grade_pass_fail,
    grade_rating,
    replay,
    reset_card,
    retrievability,
    step,
    suspend_card,
    unsuspend_card,
)
from sprout.consts import VERSION
from sprout.domain.scheduling import (
    BinaryGrade,
    CardStage,
    CardState,
    GradeResult,
    Rating,
    ReviewLogEntry,
    Snapshot,
)

__version__ = VERSION

__all__ = [
    "BinaryGrade",
    "CardStage",
    "CardState",
    "GradeResult",
    "MemoryParameters",
    "Rating",
    "ReviewLogEntry",
    "SchedulerSettings",
    "Snapshot",
    "bury_card",
    "grade",
    "grade_pass_fail",
    "grade_rating",
    "replay",
    "reset_card",
    "retrievability",
    "step",
    "suspend_card",
    "unsuspend_card",
]
