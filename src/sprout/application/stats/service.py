"""
Review Stats Service - Application layer orchestrator.

Coordinates reading the review log from the repository, replaying it through
the scheduler and enriching the reconstructed state with computed metrics.
"""

import logging

from sprout.application.config import SchedulerSettings
from sprout.application.queue_builder import QueueItem
from sprout.application.scheduling.forgetting_curve import project_curve
from sprout.application.scheduling.replay import replay, replay_many
from sprout.domain.constants import WEAK_RETRIEVABILITY, WEAK_STABILITY_DAYS
from sprout.domain.scheduling.models import CardTimeline, CurvePoint, Rating
from sprout.domain.scheduling.ports import ReviewLogRepository

from .metrics_calculator import EnrichedStats, MetricsCalculator

logger = logging.getLogger(__name__)


class ReviewStatsService:
    """
    Application service for replay-based card analytics.

    Follows Dependency Inversion: depends on the ReviewLogRepository
    abstraction, not a concrete log format. State is always recomputed from
    the log, never read from a cache.
    """

    def __init__(
        self,
        log_repo: ReviewLogRepository,
        settings: SchedulerSettings | None = None,
        calculator: MetricsCalculator | None = None,
        pass_rating: Rating = Rating.GOOD,
    ):
        """
        Args:
            log_repo: The repository (port) for reading review logs.
            settings: Scheduler settings used for replay; fuzz is forced off.
            calculator: Optional custom calculator; uses default if not provided.
            pass_rating: Rating a binary "pass" stands for.
        """
        self._repo = log_repo
        self._settings = (settings or SchedulerSettings()).with_overrides(enable_fuzz=False)
        self._calc = calculator or MetricsCalculator()
        self._pass_rating = pass_rating

    async def get_timeline(self, card_id: str) -> CardTimeline:
        """
        Replay one card's log into a timeline of snapshots.
        """
        entries = await self._repo.get_entries([card_id])
        snapshots = replay(card_id, entries, self._settings, self._pass_rating)
        return CardTimeline(card_id=card_id, snapshots=snapshots)

    async def get_timelines(self, card_ids: list[str] | None = None) -> list[CardTimeline]:
        """
        Replay every requested card (all cards when None).
        """
        entries = await self._repo.get_entries(card_ids)
        replayed = replay_many(entries, self._settings, self._pass_rating)
        return [CardTimeline(card_id=cid, snapshots=snaps) for cid, snaps in replayed.items()]

    async def get_enriched_stats(
        self, now: int, card_ids: list[str] | None = None
    ) -> list[EnrichedStats]:
        """
        Replay the log and enrich each card's final state with metrics.

        Args:
            now: Reference time in epoch ms for retrievability and overdue days.
            card_ids: Cards to include. None means every card in the log.

        Returns:
            One EnrichedStats per card with at least one applicable entry.
        """
        if card_ids is not None and not card_ids:
            return []

        enriched: list[EnrichedStats] = []
        for timeline in await self.get_timelines(card_ids):
            state = timeline.final_state
            if state is None:
                logger.debug(f"No applicable log entries for {timeline.card_id}")
                continue
            enriched.append(self._calc.enrich(state, now, timeline.snapshots))
        return enriched

    async def get_due_cards(self, now: int) -> list[QueueItem]:
        """
        Cards whose replayed state is due at `now`, oldest due first.

        Suspended cards are never due.
        """
        due: list[QueueItem] = []
        for timeline in await self.get_timelines():
            state = timeline.final_state
            if state is None or state.is_suspended or state.due > now:
                continue
            due.append(QueueItem(card_id=state.card_id, due=state.due))
        return sorted(due, key=lambda item: item.due)

    async def get_forgetting_curve(self, card_id: str, days: int = 30) -> list[CurvePoint]:
        """
        Project retrievability from the card's last review forward `days` days.

        Returns an empty list when the card has no usable history.
        """
        timeline = await self.get_timeline(card_id)
        state = timeline.final_state
        if state is None or state.last_reviewed is None:
            return []
        return project_curve(state.stability_days, state.last_reviewed, days)

    async def get_weak_cards(
        self,
        now: int,
        card_ids: list[str] | None = None,
        stability_threshold: float = WEAK_STABILITY_DAYS,
        lapse_threshold: int = 1,
    ) -> list[EnrichedStats]:
        """
        Identify cards that are "weak" based on configurable thresholds.

        A card is weak if:
        - stability < threshold, OR
        - lapses >= lapse_threshold, OR
        - retrievability < 0.7

        Args:
            now: Reference time in epoch ms.
            card_ids: Cards to check. None means every card in the log.
            stability_threshold: Stability below this is considered weak.
            lapse_threshold: Minimum lapses to be considered weak.

        Returns:
            List of EnrichedStats for weak cards.
        """
        enriched = await self.get_enriched_stats(now, card_ids)
        weak = []

        for card in enriched:
            is_weak = False

            # Low stability
            if card.stability is not None and card.stability < stability_threshold:
                is_weak = True

            # Has lapses
            if card.lapses >= lapse_threshold:
                is_weak = True

            # Low retrievability
            if (
                card.current_retrievability is not None
                and card.current_retrievability < WEAK_RETRIEVABILITY
            ):
                is_weak = True

            if is_weak:
                weak.append(card)

        return weak
