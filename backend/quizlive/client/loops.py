import logging
import threading
import time
from typing import Callable, Optional

from quizlive.services.game import rules
from .projection import SessionProjection
from .transport import HttpTransport, RequestRejected, TransportError

logger = logging.getLogger(__name__)


class SyncLoop:
    """Fixed-interval poller that keeps a SessionProjection current."""

    def __init__(self, transport: HttpTransport, join_code: str, interval: float = 1.0,
                 clock: Callable[[], float] = time.time, player_id: Optional[int] = None):
        self.transport = transport
        self.join_code = join_code.upper()
        self.interval = interval
        self.clock = clock
        self.projection = SessionProjection(player_id=player_id)

    def fetch(self) -> dict:
        return self.transport.get_state(self.join_code)

    def poll_once(self) -> Optional[dict]:
        """One poll. Transport failures are logged and left to the next poll."""
        try:
            state = self.fetch()
        except TransportError as exc:
            logger.warning("[poll-failed] code=%s %s", self.join_code, exc)
            return None
        self.projection.apply(state)
        self.after_poll(state)
        return state

    def after_poll(self, state: dict) -> None:
        pass

    def run(self, stop_event: Optional[threading.Event] = None, max_polls: Optional[int] = None) -> None:
        """Poll until the session finishes, ``stop_event`` is set or ``max_polls`` is reached.

        SessionNotFound propagates: a vanished session is not retried.
        """
        stop_event = stop_event or threading.Event()
        polls = 0
        while not stop_event.is_set():
            self.poll_once()
            polls += 1
            if self.projection.phase == 'finished':
                break
            if max_polls is not None and polls >= max_polls:
                break
            stop_event.wait(self.interval)


class PlayerSyncLoop(SyncLoop):

    def fetch(self) -> dict:
        return self.transport.get_state(self.join_code, player_id=self.projection.player_id)

    def join(self, nickname: str) -> dict:
        player = self.transport.join(self.join_code, nickname)
        self.projection.player_id = player['id']
        logger.info("[joined] code=%s player=%s", self.join_code, player['id'])
        return player

    def submit_answer(self, value) -> Optional[dict]:
        """Submit for the current question; None when there is nothing to answer.

        A failed write is never blindly repeated: the state is re-fetched and
        the retry only happens if the server has no answer on record.
        """
        projection = self.projection
        question = projection.current_question
        if question is None or projection.phase != 'answering':
            return None
        projection.mark_answered(value)
        try:
            return self._send_answer(value, question['id'], projection.last_question_index)
        except RequestRejected:
            projection.rollback()
            raise
        finally:
            projection.settle()

    def _send_answer(self, value, question_id: int, index: int) -> Optional[dict]:
        projection = self.projection
        try:
            return self.transport.submit_answer(self.join_code, projection.player_id, value, question_id)
        except TransportError:
            state = self.poll_once()
            if state is None:
                raise
            if state['session']['current_question_index'] != index:
                return None
            if state.get('my_answer') is not None:
                mine = state['my_answer']
                return {'accepted': False, 'status': 'already_answered',
                        'points': mine['points_earned'], 'answer': mine}
            logger.info("[answer-retry] code=%s player=%s", self.join_code, projection.player_id)
            return self.transport.submit_answer(self.join_code, projection.player_id, value, question_id)


class HostSyncLoop(SyncLoop):
    """Host poller that also drives auto-reveal and auto-advance."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.last_action: Optional[str] = None

    def decide(self, state: dict, now: float) -> Optional[str]:
        session = state['session']
        timing = state.get('timing') or {}
        if rules.reveal_due(
            session['status'],
            session['answer_revealed'],
            session['question_start_time'],
            state.get('player_count', 0),
            state.get('answer_count', 0),
            now,
            timing.get('answer_window_sec', rules.ANSWER_WINDOW_SEC),
        ):
            return 'reveal'
        if rules.advance_due(
            session['status'],
            session['answer_revealed'],
            session.get('revealed_at'),
            now,
            timing.get('reveal_hold_sec', rules.REVEAL_HOLD_SEC),
        ):
            return 'advance'
        return None

    def after_poll(self, state: dict) -> None:
        self.last_action = None
        action = self.decide(state, self.clock())
        if action is None:
            return
        index = state['session']['current_question_index']
        try:
            result = self.transport.control(self.join_code, action, expected_index=index)
        except TransportError as exc:
            logger.warning("[auto-%s-failed] code=%s index=%s %s", action, self.join_code, index, exc)
            return
        if result.get('changed'):
            self.last_action = action
            logger.info("[auto-%s] code=%s index=%s", action, self.join_code, index)

    def start(self) -> dict:
        return self.transport.control(self.join_code, 'start')

    def next(self) -> dict:
        return self.transport.control(self.join_code, 'next')

    def end(self) -> dict:
        return self.transport.control(self.join_code, 'end')
