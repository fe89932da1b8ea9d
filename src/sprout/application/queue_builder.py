"""
Queue builder for study sessions.

Orders due cards so that:
1. Cards keep their rough due order (grouped into time windows)
2. Cards inside one window are shuffled
3. Sibling cards (same parent note) are not presented back-to-back
"""

import logging
import random
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol, TypeVar

from sprout.domain.constants import DEFAULT_TIMELINE_WINDOW_MINUTES, MS_MINUTE

logger = logging.getLogger(__name__)

DEFAULT_WINDOW_MS = DEFAULT_TIMELINE_WINDOW_MINUTES * MS_MINUTE


class QueueCard(Protocol):
    @property
    def due(self) -> int: ...


T = TypeVar("T", bound=QueueCard)


@dataclass
class QueueItem:
    """Minimal queue entry; hosts may pass their own objects instead."""

    card_id: str
    due: int
    parent_id: str | None = None


def group_into_windows(cards: Sequence[T], window_ms: int = DEFAULT_WINDOW_MS) -> list[list[T]]:
    """
    Sort by due and bucket cards whose due falls within `window_ms` of the
    bucket's first card.
    """
    windows: list[list[T]] = []
    current: list[T] = []
    window_start: int | None = None

    for card in sorted(cards, key=lambda c: c.due):
        if window_start is None or card.due - window_start > window_ms:
            if current:
                windows.append(current)
            window_start = card.due
            current = [card]
        else:
            current.append(card)

    if current:
        windows.append(current)
    return windows


def shuffle_within_time_window(
    cards: Sequence[T],
    window_ms: int = DEFAULT_WINDOW_MS,
    rng: random.Random | None = None,
) -> list[T]:
    """
    Shuffle cards inside each due-time window, keeping windows in order.

    Args:
        cards: Objects exposing a `due` timestamp (epoch ms).
        window_ms: Width of a window (default: 30 minutes).
        rng: Random source; pass a seeded Random for reproducible queues.

    Returns:
        A new list; the input is left untouched.
    """
    if len(cards) <= 1:
        return list(cards)

    rng = rng or random.Random()
    result: list[T] = []
    for window in group_into_windows(cards, window_ms):
        shuffled = list(window)
        rng.shuffle(shuffled)
        result.extend(shuffled)
    return result


def shuffle_with_parent_awareness(
    cards: Sequence[T],
    window_ms: int = DEFAULT_WINDOW_MS,
    rng: random.Random | None = None,
) -> list[T]:
    """
    Like shuffle_within_time_window, but breaks up runs of sibling cards.

    Inside a window, cards are grouped by `parent_id` (cards without one form
    their own group), each group is shuffled, and groups are interleaved
    round-robin.
    """
    if len(cards) <= 1:
        return list(cards)

    rng = rng or random.Random()
    result: list[T] = []

    for window in group_into_windows(cards, window_ms):
        if len(window) <= 1:
            result.extend(window)
            continue

        parent_groups: dict[str, list[T]] = {}
        loose: list[T] = []
        for card in window:
            parent_id = getattr(card, "parent_id", None)
            if parent_id:
                parent_groups.setdefault(parent_id, []).append(card)
            else:
                loose.append(card)

        # A single family and nothing else: nothing to interleave.
        if len(parent_groups) <= 1 and not loose:
            shuffled = list(window)
            rng.shuffle(shuffled)
            result.extend(shuffled)
            continue

        groups = list(parent_groups.values())
        if loose:
            groups.append(loose)
        for group in groups:
            rng.shuffle(group)

        longest = max(len(g) for g in groups)
        for i in range(longest):
            for group in groups:
                if i < len(group):
                    result.append(group[i])

    logger.debug(f"Built queue of {len(result)} cards")
    return result
