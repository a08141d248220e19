import math
from typing import Optional, Sequence, Union

ANSWER_WINDOW_MS = 15000
MAX_POINTS = 1000
MIN_TIME_BONUS = 100
# Points lost per millisecond of response latency
DECAY_DIVISOR = 15

POLICY_ALLOW_NEGATIVE = 'allow_negative'
POLICY_CLAMP_ZERO = 'clamp_zero'
ESTIMATE_POLICIES = (POLICY_ALLOW_NEGATIVE, POLICY_CLAMP_ZERO)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def latency_ms(question_start_time: Optional[float], now: float, window_ms: int = ANSWER_WINDOW_MS) -> int:
    """Milliseconds since the question opened; the full window when the start is unknown."""
    if question_start_time is None:
        return window_ms
    return max(0, round_half_up((now - question_start_time) * 1000.0))


def time_bonus(response_ms: float) -> float:
    """Speed component before rounding, floored at MIN_TIME_BONUS."""
    return max(MIN_TIME_BONUS, MAX_POINTS - response_ms / DECAY_DIVISOR)


def estimate_accuracy(submitted: float, low: float, high: float, correct: float) -> float:
    """1.0 for an exact hit, 0.0 at the largest error possible inside [low, high].

    The error is divided by ``max(correct - low, high - correct)`` rather than
    ``high - low``, so that guessing either range edge scores 0 wherever the
    correct value sits (0 for a guess of 0 when the answer is 50 in [0, 100]).
    Both divisors agree when the correct value is on an edge. Keep it this way.

    Submissions outside the range go below zero.
    """
    span = max(correct - low, high - correct)
    if span <= 0:
        return 1.0 if submitted == correct else 0.0
    return 1.0 - abs(submitted - correct) / span


def score_choice(submitted_index: int, correct_index: int, response_ms: float) -> int:
    if submitted_index != correct_index:
        return 0
    return max(MIN_TIME_BONUS, round_half_up(MAX_POINTS - response_ms / DECAY_DIVISOR))


def score_estimate(
    submitted: float,
    low: float,
    high: float,
    correct: float,
    response_ms: float,
    policy: str = POLICY_ALLOW_NEGATIVE,
) -> int:
    points = round_half_up(estimate_accuracy(submitted, low, high, correct) * time_bonus(response_ms))
    if policy == POLICY_CLAMP_ZERO:
        return max(0, points)
    return points


def score_answer(
    question_type: str,
    correct: Union[int, Sequence[float]],
    submitted: Union[int, float],
    response_ms: float,
    policy: str = POLICY_ALLOW_NEGATIVE,
) -> int:
    """Points for one submission.

    ``correct`` is the correct option index for choice questions and the
    ``(min, max, correct_value)`` triple for estimates.
    """
    if question_type == 'estimate':
        low, high, value = correct
        return score_estimate(float(submitted), float(low), float(high), float(value), response_ms, policy)
    return score_choice(int(submitted), int(correct), response_ms)
