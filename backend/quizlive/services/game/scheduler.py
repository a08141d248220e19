import time
from typing import Set, Tuple

from quizlive import db, socketio
from quizlive.models import GameSession
from . import engine


_scheduled_keys: Set[Tuple[int, str, int]] = set()


def broadcast_state(join_code: str) -> None:
    """Hint connected clients to refetch; polling stays the source of truth."""
    socketio.emit('state_update', {'join_code': join_code}, to=f"session:{join_code}", namespace='/ws')


def schedule_session_timer(app, session_id: int) -> None:
    """Schedule the automatic transition for the session's current phase.

    - No-ops in TESTING mode unless ENABLE_SCHEDULER_IN_TESTS is set
    - answering: reveal once the answer window has elapsed
    - revealed: advance once the reveal hold has elapsed
    - Ensures a single timer per (session_id, phase, question index)
    """
    if app.config.get('TESTING') and not app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return

    with app.app_context():
        game_session = db.session.get(GameSession, session_id)
        if not game_session or game_session.status != 'playing':
            return

        phase = 'revealed' if game_session.answer_revealed else 'answering'
        idx = int(game_session.current_question_index or 0)
        key = (game_session.id, phase, idx)

        if phase == 'answering':
            started = game_session.question_start_time or time.time()
            deadline = started + int(app.config.get('ANSWER_WINDOW_SEC', 15))
        else:
            revealed = game_session.revealed_at or time.time()
            deadline = revealed + int(app.config.get('REVEAL_HOLD_SEC', 5))
        delay = max(0.0, deadline - time.time())

        if key in _scheduled_keys:
            app.logger.info(f"[timer-skip] session={session_id} phase={phase} index={idx} already scheduled")
            return
        _scheduled_keys.add(key)
        app.logger.info(f"[timer-set] session={session_id} phase={phase} index={idx} delay={delay:.1f}s")

    def _worker(expected_phase: str, sid: int, expected_index: int, delay: float):
        hb = int(app.config.get('TIMER_HEARTBEAT_SEC', 0) or 0)
        if hb > 0:
            slept = 0.0
            while slept < delay:
                step = min(hb, delay - slept)
                time.sleep(step)
                slept += step
                app.logger.info(
                    f"[timer-heartbeat] session={sid} phase={expected_phase} index={expected_index} "
                    f"remaining={max(0.0, delay - slept):.1f}s"
                )
        else:
            time.sleep(delay)
        with app.app_context():
            _scheduled_keys.discard((sid, expected_phase, expected_index))
            gs = db.session.get(GameSession, sid)
            if not gs:
                return
            app.logger.info(
                f"[timer-fire] session={sid} expected_phase={expected_phase} expected_index={expected_index} "
                f"status={gs.status} index={gs.current_question_index} revealed={gs.answer_revealed}"
            )
            # Guarded transitions: a manual or host-loop action that already
            # happened turns these into no-ops
            if expected_phase == 'answering':
                changed = engine.reveal_answer(gs, expected_index, source='timer')
            else:
                changed = engine.advance_question(gs, expected_index, source='timer')
            if not changed:
                app.logger.info(f"[timer-abort] session={sid} phase={expected_phase} already moved on")
                return
            broadcast_state(gs.join_code)
            if gs.status == 'playing':
                schedule_session_timer(app, sid)

    if app.config.get('TESTING'):
        _worker(phase, session_id, idx, delay)
    else:
        socketio.start_background_task(_worker, phase, session_id, idx, delay)
