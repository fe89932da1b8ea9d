# Application Scheduling Package
from .engine import (
    bury_card,
    grade,
    grade_pass_fail,
    grade_rating,
    reset_card,
    sanitize_state,
    step,
    suspend_card,
    unsuspend_card,
)
from .forgetting_curve import (
    current_retrievability,
    interval_days,
    project_curve,
    retrievability,
)
from .grades import normalize, parse_rating
from .replay import replay, replay_final_state, replay_many, stability_timeline
from .steps import advance_step

__all__ = [
    "advance_step",
    "bury_card",
    "current_retrievability",
    "grade",
    "grade_pass_fail",
    "grade_rating",
    "interval_days",
    "normalize",
    "parse_rating",
    "project_curve",
    "replay",
    "replay_final_state",
    "replay_many",
    "reset_card",
    "retrievability",
    "sanitize_state",
    "stability_timeline",
    "step",
    "suspend_card",
    "unsuspend_card",
]
