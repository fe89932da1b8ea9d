import pytest

from sprout.application.scheduling.steps import advance_step
from sprout.domain.scheduling.models import CardStage, Rating

STEPS = (10, 1440)


def test_good_moves_to_next_step():
    outcome = advance_step(CardStage.LEARNING, 0, STEPS, Rating.GOOD)
    assert not outcome.graduated
    assert outcome.next_stage is CardStage.LEARNING
    assert outcome.next_step_index == 1
    assert outcome.due_in_minutes == 10


def test_good_on_last_step_graduates():
    outcome = advance_step(CardStage.LEARNING, 1, STEPS, Rating.GOOD)
    assert outcome.graduated
    assert outcome.next_stage is CardStage.REVIEW
    assert outcome.next_step_index == 0


def test_again_restarts_ramp():
    outcome = advance_step(CardStage.LEARNING, 1, STEPS, Rating.AGAIN)
    assert outcome.next_step_index == 0
    assert outcome.due_in_minutes == 10
    assert not outcome.graduated


def test_hard_repeats_current_delay():
    first = advance_step(CardStage.LEARNING, 0, STEPS, Rating.HARD)
    assert first.next_step_index == 0
    assert first.due_in_minutes == 10

    second = advance_step(CardStage.LEARNING, 1, STEPS, Rating.HARD)
    assert second.next_step_index == 1
    assert second.due_in_minutes == 10


def test_easy_graduates_from_anywhere():
    assert advance_step(CardStage.LEARNING, 0, STEPS, Rating.EASY).graduated
    assert advance_step(CardStage.RELEARNING, 0, (10,), Rating.EASY).graduated


@pytest.mark.parametrize("rating", list(Rating))
def test_empty_steps_graduate_immediately(rating):
    outcome = advance_step(CardStage.LEARNING, 0, (), rating)
    assert outcome.graduated
    assert outcome.next_stage is CardStage.REVIEW


def test_relearning_stage_is_kept():
    outcome = advance_step(CardStage.RELEARNING, 0, (10, 60), Rating.GOOD)
    assert outcome.next_stage is CardStage.RELEARNING
    assert outcome.due_in_minutes == 10


def test_out_of_range_index_is_clamped():
    outcome = advance_step(CardStage.LEARNING, 99, STEPS, Rating.GOOD)
    assert outcome.graduated
    outcome = advance_step(CardStage.LEARNING, -3, STEPS, Rating.GOOD)
    assert outcome.next_step_index == 1
