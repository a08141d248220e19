"""Auto-progress decisions shared by the server timer and the host client.

Both sides feed the same primitive values in, so the host loop and the
server-side timer always agree on when a question is due to close.
"""
import math
from typing import Optional

ANSWER_WINDOW_SEC = 15
REVEAL_HOLD_SEC = 5


def all_answered(player_count: int, answer_count: int) -> bool:
    return player_count > 0 and answer_count >= player_count


def answer_window_elapsed(question_start_time: Optional[float], now: float,
                          window_sec: float = ANSWER_WINDOW_SEC) -> bool:
    if question_start_time is None:
        return True
    return now - question_start_time >= window_sec


def reveal_due(status: str, answer_revealed: bool, question_start_time: Optional[float],
               player_count: int, answer_count: int, now: float,
               window_sec: float = ANSWER_WINDOW_SEC) -> bool:
    if status != 'playing' or answer_revealed:
        return False
    return (answer_window_elapsed(question_start_time, now, window_sec)
            or all_answered(player_count, answer_count))


def advance_due(status: str, answer_revealed: bool, revealed_at: Optional[float], now: float,
                hold_sec: float = REVEAL_HOLD_SEC) -> bool:
    if status != 'playing' or not answer_revealed:
        return False
    if revealed_at is None:
        return True
    return now - revealed_at >= hold_sec


def seconds_remaining(question_start_time: Optional[float], now: float,
                      window_sec: int = ANSWER_WINDOW_SEC) -> int:
    """Whole seconds left on the question timer, clamped to [0, window]."""
    if question_start_time is None:
        return 0
    elapsed = math.floor(now - question_start_time)
    return max(0, min(window_sec, window_sec - elapsed))
