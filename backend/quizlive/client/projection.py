import time
from typing import Optional

from quizlive.services.game import rules


class SessionProjection:
    """Client-side copy of one session, reconciled against every poll.

    The fetched state always wins. The only locally owned state is the
    per-question answer UI (selected answer, has-answered flag), which is
    reset when the fetched question index differs from the remembered one,
    or when the server reports no answer on record and no write is pending.
    """

    def __init__(self, player_id: Optional[int] = None, answer_window_sec: int = rules.ANSWER_WINDOW_SEC):
        self.player_id = player_id
        self.answer_window_sec = answer_window_sec
        self.state: Optional[dict] = None
        self.last_question_index: Optional[int] = None
        self.selected_answer = None
        self.has_answered = False
        self.write_pending = False
        self._before_write = (None, False)
        self.ranks: dict = {}
        self.rank_changes: dict = {}

    def apply(self, state: dict) -> bool:
        """Merge a fetched state; returns True when the question changed."""
        index = state['session']['current_question_index']
        question_changed = index != self.last_question_index
        if question_changed:
            self.selected_answer = None
            self.has_answered = False
            self.last_question_index = index

        mine = state.get('my_answer')
        if mine is not None:
            self.has_answered = True
            self.selected_answer = mine['value']
        elif 'my_answer' in state and not self.write_pending:
            # server has no answer on record for this question
            self.has_answered = False
            self.selected_answer = None

        window = (state.get('timing') or {}).get('answer_window_sec')
        if window:
            self.answer_window_sec = int(window)
        self._update_ranks(state.get('players') or [])
        self.state = state
        return question_changed

    def mark_answered(self, value) -> None:
        """Optimistic local update before the write is confirmed."""
        self._before_write = (self.selected_answer, self.has_answered)
        self.write_pending = True
        self.selected_answer = value
        self.has_answered = True

    def settle(self) -> None:
        self.write_pending = False

    def rollback(self) -> None:
        """Undo mark_answered after the server refused the write."""
        self.selected_answer, self.has_answered = self._before_write
        self.write_pending = False

    def _update_ranks(self, players) -> None:
        ordered = sorted(players, key=lambda p: (-p['score'], p['id']))
        ranks = {p['id']: position for position, p in enumerate(ordered, start=1)}
        # Positive delta means the player moved up the leaderboard
        self.rank_changes = {
            pid: self.ranks[pid] - rank for pid, rank in ranks.items() if pid in self.ranks
        }
        self.ranks = ranks

    @property
    def session(self) -> Optional[dict]:
        return self.state['session'] if self.state else None

    @property
    def players(self) -> list:
        return self.state['players'] if self.state else []

    @property
    def current_question(self) -> Optional[dict]:
        return self.state.get('current_question') if self.state else None

    @property
    def me(self) -> Optional[dict]:
        for p in self.players:
            if p['id'] == self.player_id:
                return p
        return None

    @property
    def phase(self) -> Optional[str]:
        session = self.session
        if session is None:
            return None
        if session['status'] in ('lobby', 'finished'):
            return session['status']
        if session['answer_revealed']:
            return 'revealed'
        return 'waiting' if self.has_answered else 'answering'

    def seconds_remaining(self, now: Optional[float] = None) -> int:
        session = self.session
        if not session or session['status'] != 'playing' or session['answer_revealed']:
            return 0
        now = time.time() if now is None else now
        return rules.seconds_remaining(session['question_start_time'], now, self.answer_window_sec)
