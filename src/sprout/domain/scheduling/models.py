"""
Domain models for spaced-repetition scheduling.

These are pure data structures with no I/O or external dependencies.
"""

from dataclasses import asdict, dataclass, field
from enum import Enum, IntEnum
from typing import Any


class CardStage(str, Enum):
    """Lifecycle stage a card can be in."""

    NEW = "new"
    LEARNING = "learning"
    REVIEW = "review"
    RELEARNING = "relearning"
    SUSPENDED = "suspended"

    @property
    def label(self) -> str:
        return self.value.capitalize()


class Rating(IntEnum):
    """Four-button rating. Values match the Anki/FSRS grade numbers."""

    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4


class BinaryGrade(str, Enum):
    """Two-button outcome used by the quick review surface."""

    PASS = "pass"
    FAIL = "fail"


# Stages that can be left by grading the card.
STEPPING_STAGES = (CardStage.LEARNING, CardStage.RELEARNING)


@dataclass
class CardState:
    """
    Scheduling state for a single card.

    Owned by the host store. The engine never mutates an instance; every
    transition returns a new value built with dataclasses.replace().

    Attributes:
        card_id: Opaque card identifier.
        stage: Lifecycle stage.
        due: Next due timestamp (epoch ms). Meaningless while suspended.
        reps: Number of completed gradings.
        lapses: Number of "again" gradings received while in review.
        learning_step_index: Steps already cleared in the active ramp.
        scheduled_days: Interval chosen at the latest graduation/review.
        stability_days: Days until recall probability drops to 90%.
        difficulty: Item hardness on the 1-10 scale (0 while untouched).
        retrievability: Recall probability measured at the latest grading.
        last_reviewed: Epoch ms of the latest grading.
        suspended_due: Due value stored on suspend, restored on unsuspend.
        suspended_stage: Stage stored on suspend, restored on unsuspend.
    """

    card_id: str
    stage: CardStage = CardStage.NEW
    due: int = 0
    reps: int = 0
    lapses: int = 0
    learning_step_index: int = 0
    scheduled_days: int = 0
    stability_days: float = 0.0
    difficulty: float = 0.0
    retrievability: float = 0.0
    last_reviewed: int | None = None
    suspended_due: int | None = None
    suspended_stage: CardStage | None = None

    @classmethod
    def new_card(cls, card_id: str, now: int) -> "CardState":
        """Build the zeroed state of a card that just entered the system."""
        return cls(card_id=card_id, stage=CardStage.NEW, due=now)

    @property
    def is_suspended(self) -> bool:
        return self.stage is CardStage.SUSPENDED

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["stage"] = self.stage.value
        data["suspended_stage"] = self.suspended_stage.value if self.suspended_stage else None
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CardState":
        """
        Build a CardState from a stored mapping.

        Accepts both snake_case and camelCase keys. Missing numeric fields fall
        back to their zero defaults; range invariants are enforced later by the
        engine, which clamps rather than rejects.
        """
        normalized = {_SNAKE_KEYS.get(k, k): v for k, v in data.items()}
        if "card_id" not in normalized and "id" in normalized:
            normalized["card_id"] = normalized.pop("id")

        known = {f for f in cls.__dataclass_fields__}
        kwargs = {k: v for k, v in normalized.items() if k in known and v is not None}

        if "stage" in kwargs:
            kwargs["stage"] = CardStage(str(kwargs["stage"]).lower())
        if "suspended_stage" in kwargs:
            kwargs["suspended_stage"] = CardStage(str(kwargs["suspended_stage"]).lower())
        kwargs["card_id"] = str(kwargs.get("card_id", ""))
        return cls(**kwargs)


_SNAKE_KEYS = {
    "cardId": "card_id",
    "learningStepIndex": "learning_step_index",
    "scheduledDays": "scheduled_days",
    "stabilityDays": "stability_days",
    "lastReviewed": "last_reviewed",
    "suspendedDue": "suspended_due",
    "suspendedStage": "suspended_stage",
}


@dataclass(frozen=True)
class ReviewLogEntry:
    """
    A single grading event from the host's append-only review log.

    Attributes:
        card_id: The card that was graded.
        at: Epoch ms of the grading.
        rating: Raw rating, either four-level or pass/fail. May be unparseable.
    """

    card_id: str
    at: int
    rating: Any


@dataclass(frozen=True)
class GradeMetrics:
    """Diagnostics captured while grading, used for logging and analytics."""

    retrievability_now: float | None
    retrievability_target: float | None
    elapsed_days: float
    stability_days: float
    difficulty: float
    stage_before: CardStage
    stage_after: CardStage


@dataclass(frozen=True)
class GradeResult:
    """Result of one state-machine step."""

    next_state: CardState
    interval_days: float
    due_at: int
    prev_due: int
    metrics: GradeMetrics


@dataclass(frozen=True)
class StepOutcome:
    """Decision taken by the step scheduler for one grading inside a ramp."""

    graduated: bool
    next_stage: CardStage
    next_step_index: int
    due_in_minutes: int | None = None


@dataclass(frozen=True)
class Snapshot:
    """State of a card right after one replayed grading."""

    at: int
    rating: Rating
    state: CardState


@dataclass
class CurvePoint:
    """One day of a projected forgetting curve."""

    day: int
    at: int
    retrievability: float


@dataclass
class CardTimeline:
    """Replayed history of a card, ready for charting."""

    card_id: str
    snapshots: list[Snapshot] = field(default_factory=list)

    @property
    def final_state(self) -> CardState | None:
        return self.snapshots[-1].state if self.snapshots else None

    @property
    def first_review_at(self) -> int | None:
        return self.snapshots[0].at if self.snapshots else None
