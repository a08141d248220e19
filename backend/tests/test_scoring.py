import pytest

from quizlive.services.game import rules, scoring


def test_correct_choice_at_zero_latency_scores_maximum():
    assert scoring.score_choice(2, 2, 0) == 1000


def test_correct_choice_at_window_end_hits_floor():
    assert scoring.score_choice(1, 1, 15000) == 100


def test_correct_choice_long_after_window_keeps_floor():
    assert scoring.score_choice(0, 0, 60000) == 100


@pytest.mark.parametrize('latency', [0, 3000, 15000])
def test_wrong_choice_scores_zero(latency):
    assert scoring.score_choice(0, 2, latency) == 0


def test_correct_choice_decays_with_latency():
    # 1000 - 3000/15 = 800
    assert scoring.score_choice(2, 2, 3000) == 800
    # 1000 - 7.5/15 = 999.5 rounds half up
    assert scoring.score_choice(2, 2, 7.5) == 1000


def test_estimate_exact_match_earns_time_bonus():
    assert scoring.score_estimate(50, 0, 100, 50, 0) == 1000
    assert scoring.score_estimate(50, 0, 100, 50, 3000) == 800


@pytest.mark.parametrize('submitted', [0, 100])
def test_estimate_at_range_edge_with_full_span_error_scores_zero(submitted):
    # correct value at the opposite edge: error equals the span
    correct = 100 if submitted == 0 else 0
    assert scoring.estimate_accuracy(submitted, 0, 100, correct) == 0.0
    assert scoring.score_estimate(submitted, 0, 100, correct, 0) == 0


def test_estimate_edge_miss_with_centered_answer_scores_zero():
    assert scoring.estimate_accuracy(0, 0, 100, 50) == 0.0
    assert scoring.score_estimate(0, 0, 100, 50, 0) == 0
    assert scoring.score_estimate(100, 0, 100, 50, 0) == 0


def test_estimate_partial_accuracy():
    # error 25 of a possible 50
    assert scoring.score_estimate(25, 0, 100, 50, 0) == 500


def test_estimate_low_accuracy_can_score_below_floor():
    # accuracy 0.05 scales the time bonus down past 100
    assert scoring.score_estimate(5, 0, 100, 100, 0) == 50


def test_estimate_outside_range_goes_negative_by_default():
    assert scoring.score_estimate(250, 0, 100, 0, 0) == -1500


def test_estimate_clamp_zero_policy():
    assert scoring.score_estimate(250, 0, 100, 0, 0, policy=scoring.POLICY_CLAMP_ZERO) == 0
    assert scoring.score_estimate(50, 0, 100, 50, 0, policy=scoring.POLICY_CLAMP_ZERO) == 1000


def test_estimate_floor_applies_before_accuracy_scaling():
    # time bonus floored at 100, then scaled by 0.5
    assert scoring.score_estimate(75, 0, 100, 50, 15000) == 50


def test_score_answer_dispatches_on_type():
    assert scoring.score_answer('multiple_choice', 2, 2, 0) == 1000
    assert scoring.score_answer('true_false', 0, 1, 0) == 0
    assert scoring.score_answer('estimate', ('0', '100', '50'), 50.0, 0) == 1000


def test_latency_defaults_to_full_window_without_start_time():
    assert scoring.latency_ms(None, 1234.0) == 15000
    assert scoring.score_choice(1, 1, scoring.latency_ms(None, 1234.0)) == 100


def test_latency_is_measured_in_milliseconds():
    assert scoring.latency_ms(1000.0, 1003.0) == 3000
    # clock skew never produces a negative latency
    assert scoring.latency_ms(1000.0, 999.0) == 0


def test_reveal_due_on_timeout_or_when_everyone_answered():
    assert rules.reveal_due('playing', False, 100.0, 3, 0, 115.0)
    assert not rules.reveal_due('playing', False, 100.0, 3, 2, 114.9)
    assert rules.reveal_due('playing', False, 100.0, 3, 3, 101.0)
    assert not rules.reveal_due('playing', True, 100.0, 3, 3, 200.0)
    assert not rules.reveal_due('lobby', False, None, 0, 0, 200.0)


def test_empty_roster_is_never_all_answered():
    assert not rules.all_answered(0, 0)


def test_advance_due_after_hold():
    assert not rules.advance_due('playing', True, 100.0, 104.9)
    assert rules.advance_due('playing', True, 100.0, 105.0)
    assert not rules.advance_due('playing', False, 100.0, 200.0)
    assert not rules.advance_due('finished', True, 100.0, 200.0)


def test_seconds_remaining_is_clamped():
    assert rules.seconds_remaining(100.0, 100.0) == 15
    assert rules.seconds_remaining(100.0, 103.7) == 12
    assert rules.seconds_remaining(100.0, 130.0) == 0
    # client clock behind the server: never more than the window
    assert rules.seconds_remaining(100.0, 98.0) == 15
