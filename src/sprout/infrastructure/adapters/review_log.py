"""
YAML Review Log Repository - Infrastructure adapter for review-log files.

Implements ReviewLogRepository over a YAML or JSON file (JSON is a subset of
YAML, so one loader covers both). The file holds either a top-level list of
entries or a mapping with an ``entries`` list:

    entries:
      - {cardId: c1, at: 1700000000000, rating: good}
      - {card_id: c1, at: 1700000600000, result: pass}
"""

import logging
from pathlib import Path
from typing import Any

import yaml

from sprout.domain.scheduling.models import ReviewLogEntry
from sprout.domain.scheduling.ports import ReviewLogRepository

logger = logging.getLogger(__name__)

_CARD_KEYS = ("cardId", "card_id", "id")
_RATING_KEYS = ("rating", "result")


def _first(record: dict[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if record.get(key) is not None:
            return record[key]
    return None


def parse_entry(record: Any) -> ReviewLogEntry | None:
    """
    Turn one raw record into a ReviewLogEntry.

    Returns None when the record lacks a card id or a usable timestamp.
    Ratings are kept raw; the replayer decides what it can parse.
    """
    if not isinstance(record, dict):
        return None

    card_id = _first(record, _CARD_KEYS)
    at = record.get("at")
    rating = _first(record, _RATING_KEYS)

    if card_id is None or rating is None:
        return None
    if isinstance(at, bool):
        return None
    try:
        at = int(at)
    except (TypeError, ValueError):
        return None

    return ReviewLogEntry(card_id=str(card_id), at=at, rating=rating)


class YamlReviewLogRepository(ReviewLogRepository):
    """
    Reads a review log from disk on every call.

    The file is never written; hosts own the log and append to it themselves.
    """

    def __init__(self, path: Path | str):
        self.path = Path(path)

    def _load(self) -> list[ReviewLogEntry]:
        if not self.path.exists():
            raise FileNotFoundError(f"Review log not found: {self.path}")

        with open(self.path, encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if data is None:
            return []
        if isinstance(data, dict):
            data = data.get("entries") or []
        if not isinstance(data, list):
            logger.warning(f"Review log {self.path} is not a list of entries; ignoring it")
            return []

        entries: list[ReviewLogEntry] = []
        for i, record in enumerate(data):
            entry = parse_entry(record)
            if entry is None:
                logger.warning(f"Skipping malformed review log record #{i} in {self.path}")
                continue
            entries.append(entry)

        logger.debug(f"Loaded {len(entries)} review log entries from {self.path}")
        return entries

    async def get_card_ids(self) -> list[str]:
        """
        Distinct card ids in first-seen order.
        """
        seen: dict[str, None] = {}
        for entry in self._load():
            seen.setdefault(entry.card_id, None)
        return list(seen)

    async def get_entries(self, card_ids: list[str] | None = None) -> list[ReviewLogEntry]:
        """
        Entries in file order, optionally restricted to `card_ids`.
        """
        entries = self._load()
        if card_ids is None:
            return entries
        wanted = set(card_ids)
        return [e for e in entries if e.card_id in wanted]
