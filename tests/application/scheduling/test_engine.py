import logging
import random
from dataclasses import replace

import pytest

from sprout.application.config import SchedulerSettings
from sprout.application.scheduling.engine import (
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
from sprout.domain.constants import MS_DAY, MS_MINUTE
from sprout.domain.scheduling.models import BinaryGrade, CardStage, CardState, Rating


def review_card(now, stability=10.0, difficulty=5.0, elapsed_days=10):
    return CardState(
        card_id="r1",
        stage=CardStage.REVIEW,
        due=now,
        reps=5,
        scheduled_days=elapsed_days,
        stability_days=stability,
        difficulty=difficulty,
        last_reviewed=now - elapsed_days * MS_DAY,
    )


# --- Worked examples ---


def test_new_card_through_learning_ramp(now):
    settings = SchedulerSettings(learning_steps_minutes=[10, 1440])
    card = CardState.new_card("c1", now)

    first = grade(card, Rating.GOOD, now, settings)
    s1 = first.next_state
    assert s1.stage is CardStage.LEARNING
    assert s1.learning_step_index == 1
    assert first.due_at == now + 10 * MS_MINUTE
    assert s1.reps == 1
    assert s1.stability_days == pytest.approx(3.173)
    assert s1.difficulty == pytest.approx(5.2825, abs=1e-3)
    assert s1.last_reviewed == now

    t2 = first.due_at
    second = grade(s1, Rating.GOOD, t2, settings)
    s2 = second.next_state
    assert s2.stage is CardStage.REVIEW
    assert s2.stability_days == pytest.approx(4.467, abs=1e-3)
    assert s2.scheduled_days == 4
    assert second.due_at == t2 + 4 * MS_DAY
    assert s2.reps == 2

    t3 = second.due_at
    third = grade(s2, Rating.GOOD, t3, settings)
    s3 = third.next_state
    assert s3.stage is CardStage.REVIEW
    assert s3.stability_days > s2.stability_days
    assert s3.scheduled_days == 14
    assert third.metrics.retrievability_now == pytest.approx(0.909, abs=1e-3)


def test_lapse_sends_card_to_relearning(now, settings):
    card = review_card(now)
    result = grade(card, Rating.AGAIN, now, settings)
    nxt = result.next_state

    assert nxt.stage is CardStage.RELEARNING
    assert nxt.learning_step_index == 0
    assert nxt.lapses == card.lapses + 1
    assert nxt.stability_days < card.stability_days
    assert result.due_at == now + 10 * MS_MINUTE
    assert nxt.scheduled_days == 0


def test_relearning_good_returns_to_review(now, settings):
    lapsed = grade(review_card(now), Rating.AGAIN, now, settings).next_state
    t = now + 10 * MS_MINUTE
    back = grade(lapsed, Rating.GOOD, t, settings).next_state
    assert back.stage is CardStage.REVIEW
    assert back.scheduled_days >= 1
    assert back.lapses == 1


def test_review_success_does_not_count_lapse(now, settings):
    card = review_card(now)
    for rating in (Rating.HARD, Rating.GOOD, Rating.EASY):
        nxt = grade(card, rating, now, settings).next_state
        assert nxt.stage is CardStage.REVIEW
        assert nxt.lapses == card.lapses
        assert nxt.stability_days > card.stability_days


def test_review_intervals_order_by_rating(now, settings):
    card = review_card(now)
    days = [grade(card, r, now, settings).interval_days for r in (Rating.HARD, Rating.GOOD, Rating.EASY)]
    assert days[0] <= days[1] <= days[2]


def test_same_day_review_uses_short_term_rule(now, settings):
    card = review_card(now, stability=20.0, elapsed_days=0)
    card = replace(card, last_reviewed=now - 2 * 60 * MS_MINUTE)
    result = grade(card, Rating.GOOD, now, settings)
    assert result.metrics.elapsed_days < 1
    # Short-term growth factor e^(w17 * w18) is about 1.41
    assert result.next_state.stability_days == pytest.approx(20.0 * 1.4078, rel=1e-3)


# --- Invariants ---


def test_memory_state_stays_bounded(now, settings):
    rng = random.Random(7)
    card = CardState.new_card("b1", now)
    t = now
    for _ in range(300):
        rating = rng.choice(list(Rating))
        result = grade(card, rating, t, settings)
        card = result.next_state
        assert 1.0 <= card.difficulty <= 10.0
        assert card.stability_days >= 0.1
        assert result.due_at >= t
        assert card.scheduled_days <= settings.maximum_interval_days
        t = result.due_at + rng.randint(0, 3) * MS_DAY


def test_grading_is_pure(now, settings):
    card = review_card(now)
    before = replace(card)
    a = grade(card, Rating.GOOD, now, settings)
    b = grade(card, Rating.GOOD, now, settings)
    assert card == before
    assert a == b


def test_retention_shapes_interval(now):
    card = review_card(now, stability=30.0)
    low = grade(card, Rating.GOOD, now, SchedulerSettings(request_retention=0.8))
    high = grade(card, Rating.GOOD, now, SchedulerSettings(request_retention=0.95))
    assert low.interval_days > high.interval_days


def test_maximum_interval_is_respected(now):
    settings = SchedulerSettings(maximum_interval_days=30)
    card = review_card(now, stability=1000.0, elapsed_days=900)
    assert grade(card, Rating.EASY, now, settings).interval_days == 30


# --- Steps configuration ---


@pytest.mark.parametrize("rating", [Rating.HARD, Rating.GOOD, Rating.EASY])
def test_empty_learning_steps_graduate_immediately(now, rating):
    settings = SchedulerSettings(learning_steps_minutes=[])
    result = grade(CardState.new_card("e1", now), rating, now, settings)
    assert result.next_state.stage is CardStage.REVIEW
    assert result.interval_days >= 1
    assert result.due_at >= now + MS_DAY


def test_empty_relearning_steps_fall_back_to_first_learning_step(now):
    settings = SchedulerSettings(learning_steps_minutes=[5, 60], relearning_steps_minutes=[])
    result = grade(review_card(now), Rating.AGAIN, now, settings)
    assert result.next_state.stage is CardStage.RELEARNING
    assert result.due_at == now + 5 * MS_MINUTE


# --- Rating surfaces ---


def test_pass_fail_maps_onto_ratings(now, settings):
    card = review_card(now)
    assert grade_pass_fail(card, "pass", now, settings) == grade(card, Rating.GOOD, now, settings)
    assert grade_pass_fail(card, BinaryGrade.FAIL, now, settings) == grade(
        card, Rating.AGAIN, now, settings
    )
    assert grade_pass_fail(card, "pass", now, settings, pass_rating=Rating.EASY) == grade(
        card, Rating.EASY, now, settings
    )


def test_surface_entry_points_reject_the_other_surface(now, settings):
    card = review_card(now)
    with pytest.raises(ValueError):
        grade_pass_fail(card, "good", now, settings)
    with pytest.raises(ValueError):
        grade_rating(card, "pass", now, settings)
    assert grade_rating(card, "easy", now, settings).next_state.stage is CardStage.REVIEW


def test_unparseable_rating_raises(now, settings):
    with pytest.raises(ValueError):
        grade(CardState.new_card("x", now), "meh", now, settings)


def test_step_is_grade():
    assert step is grade


# --- Suspension, bury, reset ---


def test_suspended_card_is_not_changed_by_grading(now, settings):
    card = suspend_card(review_card(now), now)
    result = grade(card, Rating.GOOD, now + MS_DAY, settings)
    assert result.next_state == card
    assert result.next_state.reps == card.reps


def test_suspend_round_trip(now):
    card = review_card(now)
    suspended = suspend_card(card, now)
    assert suspended.stage is CardStage.SUSPENDED
    assert suspended.due > now + 365 * MS_DAY
    assert suspended.stability_days == card.stability_days
    assert suspend_card(suspended, now) is suspended

    restored = unsuspend_card(suspended, now + MS_DAY)
    assert restored == card
    assert unsuspend_card(card, now) is card


def test_bury_moves_due_to_next_utc_day(now):
    card = review_card(now)
    buried = bury_card(card, now)
    assert buried.due % MS_DAY == 0
    assert now < buried.due <= now + MS_DAY


def test_bury_keeps_later_due(now):
    card = replace(review_card(now), due=now + 5 * MS_DAY)
    assert bury_card(card, now).due == now + 5 * MS_DAY


def test_reset_forgets_history(now):
    reset = reset_card(review_card(now), now)
    assert reset == CardState.new_card("r1", now)


# --- Sanitizing external state ---


def test_sanitize_clamps_out_of_range_values(now):
    card = replace(review_card(now), difficulty=42.0, stability_days=-3.0, scheduled_days=6)
    clean = sanitize_state(card, now)
    assert clean.difficulty == 10.0
    assert clean.stability_days == 6.0


def test_sanitize_defaults_missing_difficulty(now):
    clean = sanitize_state(replace(review_card(now), difficulty=0.0), now)
    assert clean.difficulty == 5.0


def test_sanitize_demotes_card_without_history(now):
    card = replace(review_card(now), last_reviewed=None)
    assert sanitize_state(card, now).stage is CardStage.NEW


def test_sanitize_drops_future_review_time(now):
    card = replace(review_card(now), last_reviewed=now + MS_DAY)
    assert sanitize_state(card, now).stage is CardStage.NEW


def test_corrupt_state_still_grades(now, settings):
    card = replace(review_card(now), difficulty=float("nan"), stability_days=0.0, scheduled_days=0)
    result = grade(card, Rating.GOOD, now, settings)
    assert 1.0 <= result.next_state.difficulty <= 10.0
    assert result.next_state.stability_days >= 0.1


# --- Logging ---


def test_grading_logs_debug_line(now, settings, caplog):
    with caplog.at_level(logging.DEBUG, logger="sprout.application.scheduling.engine"):
        grade(CardState.new_card("log-me", now), "good", now, settings)
    assert "FSRS: card log-me rating=good state=New→Learning" in caplog.text
