"""
History replayer - rebuilds card state from the review log.

Replaying a log through the engine is the definition of "reconstructible
state": starting from a fresh card at the first entry and applying every
grading in time order must give exactly the trajectory that live grading
produced. Analytics and audit tooling rely on this instead of cached state.
"""

import logging
from collections.abc import Iterable

from sprout.application.config import SchedulerSettings
from sprout.domain.scheduling.models import (
    CardState,
    Rating,
    ReviewLogEntry,
    Snapshot,
)

from .engine import grade
from .grades import normalize, parse_rating

logger = logging.getLogger(__name__)


def sort_entries(entries: Iterable[ReviewLogEntry]) -> list[ReviewLogEntry]:
    """Ascending by timestamp; ties keep log insertion order (sorted() is stable)."""
    return sorted(entries, key=lambda e: e.at)


def replay(
    card_id: str,
    entries: Iterable[ReviewLogEntry],
    settings: SchedulerSettings,
    pass_rating: Rating = Rating.GOOD,
) -> list[Snapshot]:
    """
    Reconstruct a card's state after each grading in its log.

    Args:
        card_id: Card to rebuild. Entries for other cards are ignored.
        entries: Log entries in insertion order.
        settings: Scheduler settings. Use enable_fuzz=False for audits;
            fuzz is seeded from the card's history, so it also replays
            identically, but it no longer matches an unfuzzed live run.
        pass_rating: Rating a binary "pass" stands for.

    Returns:
        One Snapshot per applied entry, in time order. Entries whose rating
        can't be parsed are skipped and don't advance the state.
    """
    ordered = sort_entries(e for e in entries if e.card_id == card_id)
    if not ordered:
        return []

    start = ordered[0].at
    state = CardState.new_card(card_id, start)

    snapshots: list[Snapshot] = []
    for entry in ordered:
        parsed = parse_rating(entry.rating)
        if parsed is None:
            logger.debug(f"Skipping unparseable rating {entry.rating!r} for {card_id} at {entry.at}")
            continue

        rating = normalize(parsed, pass_rating)
        state = grade(state, rating, entry.at, settings).next_state
        snapshots.append(Snapshot(at=entry.at, rating=rating, state=state))

    return snapshots


def replay_final_state(
    card_id: str,
    entries: Iterable[ReviewLogEntry],
    settings: SchedulerSettings,
    pass_rating: Rating = Rating.GOOD,
) -> CardState | None:
    """Current state implied by the log, or None if nothing could be applied."""
    snapshots = replay(card_id, entries, settings, pass_rating)
    return snapshots[-1].state if snapshots else None


def replay_many(
    entries: Iterable[ReviewLogEntry],
    settings: SchedulerSettings,
    pass_rating: Rating = Rating.GOOD,
) -> dict[str, list[Snapshot]]:
    """
    Replay every card present in the log.

    Cards are independent; the result preserves first-seen card order.
    """
    by_card: dict[str, list[ReviewLogEntry]] = {}
    for entry in entries:
        by_card.setdefault(entry.card_id, []).append(entry)

    return {
        card_id: replay(card_id, card_entries, settings, pass_rating)
        for card_id, card_entries in by_card.items()
    }


def stability_timeline(
    card_id: str,
    entries: Iterable[ReviewLogEntry],
    settings: SchedulerSettings,
    pass_rating: Rating = Rating.GOOD,
) -> list[tuple[int, float]]:
    """(at, stability_days) pairs, the series forgetting-curve charts plot."""
    return [
        (snap.at, snap.state.stability_days)
        for snap in replay(card_id, entries, settings, pass_rating)
    ]
