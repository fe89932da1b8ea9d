"""
Metrics calculator for deriving insights from replayed card state.

This is a pure computation module with no I/O.
"""

from dataclasses import dataclass

from sprout.application.scheduling.forgetting_curve import current_retrievability
from sprout.domain.constants import MS_DAY, VOLATILITY_WINDOW
from sprout.domain.scheduling.models import CardStage, CardState, Snapshot


@dataclass
class EnrichedStats:
    """
    Card state enriched with computed metrics.
    """

    # Replayed state
    card_id: str
    stage: CardStage
    reps: int
    lapses: int
    due: int
    scheduled_days: int

    # Memory model
    stability: float | None
    difficulty: float | None

    # Computed metrics
    current_retrievability: float | None
    lapse_rate: float | None  # lapses / reps
    volatility: float | None  # Interval variance over recent reviews
    days_overdue: int | None  # Negative if not yet due


class MetricsCalculator:
    """
    Computes derived metrics from CardState and its replay history.

    Stateless and side-effect free; `now` is always passed in.
    """

    def enrich(
        self,
        state: CardState,
        now: int,
        snapshots: list[Snapshot] | None = None,
    ) -> EnrichedStats:
        """
        Enrich a card's state with computed metrics.
        """
        graded = state.stage is not CardStage.NEW and state.last_reviewed is not None

        return EnrichedStats(
            card_id=state.card_id,
            stage=state.stage,
            reps=state.reps,
            lapses=state.lapses,
            due=state.due,
            scheduled_days=state.scheduled_days,
            stability=state.stability_days if graded else None,
            difficulty=state.difficulty if graded else None,
            current_retrievability=current_retrievability(state, now),
            lapse_rate=self._compute_lapse_rate(state),
            volatility=self._compute_volatility(snapshots or []),
            days_overdue=self._compute_days_overdue(state, now),
        )

    def _compute_lapse_rate(self, state: CardState) -> float | None:
        """
        Compute lapse rate as lapses / total gradings.
        """
        if state.reps == 0:
            return None
        return state.lapses / state.reps

    def _compute_volatility(self, snapshots: list[Snapshot]) -> float | None:
        """
        Compute variance in scheduled intervals over recent reviews.

        High volatility indicates unstable learning.
        """
        if len(snapshots) < 3:
            return None

        recent = snapshots[-VOLATILITY_WINDOW:]
        intervals = [s.state.scheduled_days for s in recent if s.state.scheduled_days > 0]

        if len(intervals) < 2:
            return None

        mean = sum(intervals) / len(intervals)
        return sum((i - mean) ** 2 for i in intervals) / len(intervals)

    def _compute_days_overdue(self, state: CardState, now: int) -> int | None:
        """
        Whole days past due (negative if not yet due).

        Only review cards have a day-scale due date worth reporting.
        """
        if state.stage is not CardStage.REVIEW or state.scheduled_days == 0:
            return None
        return int((now - state.due) / MS_DAY)
