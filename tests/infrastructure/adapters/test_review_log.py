import json
import logging

import pytest

from sprout.domain.scheduling.models import ReviewLogEntry
from sprout.infrastructure.adapters.review_log import YamlReviewLogRepository, parse_entry

YAML_LOG = """\
entries:
  - {cardId: c1, at: 1700000000000, rating: good}
  - {card_id: c2, at: 1700000060000, result: fail}
  - {id: c1, at: "1700000600000", rating: 3}
"""


@pytest.fixture
def yaml_log(tmp_path):
    path = tmp_path / "log.yaml"
    path.write_text(YAML_LOG)
    return path


@pytest.mark.asyncio
async def test_reads_yaml_log(yaml_log):
    repo = YamlReviewLogRepository(yaml_log)
    entries = await repo.get_entries()
    assert entries == [
        ReviewLogEntry("c1", 1700000000000, "good"),
        ReviewLogEntry("c2", 1700000060000, "fail"),
        ReviewLogEntry("c1", 1700000600000, 3),
    ]


@pytest.mark.asyncio
async def test_reads_json_list(tmp_path):
    path = tmp_path / "log.json"
    path.write_text(json.dumps([{"cardId": "x", "at": 5, "rating": "easy"}]))
    repo = YamlReviewLogRepository(path)
    assert await repo.get_entries() == [ReviewLogEntry("x", 5, "easy")]


@pytest.mark.asyncio
async def test_filters_by_card(yaml_log):
    repo = YamlReviewLogRepository(str(yaml_log))
    entries = await repo.get_entries(["c2"])
    assert [e.card_id for e in entries] == ["c2"]


@pytest.mark.asyncio
async def test_card_ids_first_seen_order(yaml_log):
    repo = YamlReviewLogRepository(yaml_log)
    assert await repo.get_card_ids() == ["c1", "c2"]


@pytest.mark.asyncio
async def test_skips_malformed_records(tmp_path, caplog):
    path = tmp_path / "log.yaml"
    path.write_text(
        "- {cardId: c1, at: 1, rating: good}\n"
        "- {cardId: c1, rating: good}\n"
        "- {at: 3, rating: good}\n"
        "- {cardId: c1, at: soon, rating: good}\n"
        "- just a string\n"
        "- {cardId: c1, at: 4, rating: whatever}\n"
    )
    repo = YamlReviewLogRepository(path)

    with caplog.at_level(logging.WARNING):
        entries = await repo.get_entries()

    # Unparseable ratings are kept; the replayer decides what to skip
    assert [e.at for e in entries] == [1, 4]
    assert caplog.text.count("Skipping malformed review log record") == 4


@pytest.mark.asyncio
async def test_empty_file(tmp_path):
    path = tmp_path / "log.yaml"
    path.write_text("")
    assert await YamlReviewLogRepository(path).get_entries() == []


@pytest.mark.asyncio
async def test_missing_file_raises(tmp_path):
    repo = YamlReviewLogRepository(tmp_path / "absent.yaml")
    with pytest.raises(FileNotFoundError):
        await repo.get_entries()


def test_parse_entry_rejects_bool_timestamp():
    assert parse_entry({"cardId": "c", "at": True, "rating": "good"}) is None
    assert parse_entry({"cardId": 7, "at": 1, "rating": "good"}) == ReviewLogEntry("7", 1, "good")
