"""
Ports (interfaces) for review-log retrieval.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod

from .models import ReviewLogEntry


class ReviewLogRepository(ABC):
    """
    Port for reading the host's append-only review log.

    Implementations:
        - YamlReviewLogRepository: Reads a YAML or JSON document from disk.
    """

    @abstractmethod
    async def get_card_ids(self) -> list[str]:
        """
        List every card that has at least one log entry.

        Returns:
            Card IDs in first-seen order.
        """
        pass

    @abstractmethod
    async def get_entries(self, card_ids: list[str] | None = None) -> list[ReviewLogEntry]:
        """
        Fetch log entries, optionally restricted to the given cards.

        Args:
            card_ids: Cards to include. None means every card.

        Returns:
            Entries in log insertion order (not necessarily sorted by time).
        """
        pass
