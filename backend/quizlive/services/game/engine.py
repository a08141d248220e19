import time
from typing import Optional

from flask import current_app

from quizlive import db
from quizlive.models import GameSession, Player, PlayerAnswer
from . import rules


def _transition(game_session: GameSession, guard: dict, values: dict) -> bool:
    """Compare-and-set update of the session row.

    Returns True when this call changed the row. Concurrent callers racing on
    the same guard see zero affected rows and become no-ops.
    """
    updated = (
        GameSession.query
        .filter_by(id=game_session.id, **guard)
        .update(values, synchronize_session=False)
    )
    db.session.commit()
    return updated == 1


def player_count(game_session: GameSession) -> int:
    return Player.query.filter_by(session_id=game_session.id).count()


def count_answers(game_session: GameSession, question=None) -> int:
    """Answers recorded for ``question`` (default: current) by this session's players."""
    question = question or game_session.current_question
    if question is None:
        return 0
    return (
        PlayerAnswer.query
        .join(Player, Player.id == PlayerAnswer.player_id)
        .filter(Player.session_id == game_session.id, PlayerAnswer.question_id == question.id)
        .count()
    )


def start_session(game_session: GameSession, now: Optional[float] = None) -> bool:
    """lobby -> playing. Silent no-op without players or questions."""
    now = time.time() if now is None else now
    if game_session.status != 'lobby':
        return False
    if player_count(game_session) == 0 or not game_session.questions:
        current_app.logger.info(f"[start-skip] session={game_session.id} empty roster or quiz")
        return False
    changed = _transition(
        game_session,
        {'status': 'lobby'},
        {
            'status': 'playing',
            'current_question_index': 0,
            'question_start_time': now,
            'answer_revealed': False,
            'revealed_at': None,
        },
    )
    if changed:
        current_app.logger.info(f"[start] session={game_session.id} code={game_session.join_code}")
    return changed


def reveal_answer(game_session: GameSession, expected_index: Optional[int] = None,
                  now: Optional[float] = None, source: str = 'manual') -> bool:
    """answering -> revealed. Idempotent."""
    now = time.time() if now is None else now
    guard = {'status': 'playing', 'answer_revealed': False}
    if expected_index is not None:
        guard['current_question_index'] = expected_index
    changed = _transition(game_session, guard, {'answer_revealed': True, 'revealed_at': now})
    if changed:
        current_app.logger.info(
            f"[reveal] session={game_session.id} index={game_session.current_question_index} source={source}"
        )
    return changed


def advance_question(game_session: GameSession, expected_index: Optional[int] = None,
                     now: Optional[float] = None, source: str = 'manual') -> bool:
    """revealed -> next question, or finished after the last one."""
    now = time.time() if now is None else now
    if game_session.status != 'playing':
        return False
    idx = game_session.current_question_index if expected_index is None else expected_index
    guard = {'status': 'playing', 'answer_revealed': True, 'current_question_index': idx}
    if idx + 1 >= len(game_session.questions):
        values = {'status': 'finished', 'finished_at': now}
    else:
        values = {
            'current_question_index': idx + 1,
            'question_start_time': now,
            'answer_revealed': False,
            'revealed_at': None,
        }
    changed = _transition(game_session, guard, values)
    if changed:
        if values.get('status') == 'finished':
            current_app.logger.info(f"[finish] session={game_session.id} after index={idx} source={source}")
        else:
            current_app.logger.info(
                f"[advance] session={game_session.id} index {idx} -> {idx + 1} source={source}"
            )
    return changed


def next_step(game_session: GameSession, now: Optional[float] = None) -> Optional[str]:
    """Host's manual "next" button: reveal first, advance on the second press."""
    if game_session.status != 'playing':
        return None
    idx = game_session.current_question_index
    if not game_session.answer_revealed:
        return 'reveal' if reveal_answer(game_session, idx, now=now) else None
    return 'advance' if advance_question(game_session, idx, now=now) else None


def end_session(game_session: GameSession, now: Optional[float] = None) -> bool:
    """Host override: any state -> finished."""
    now = time.time() if now is None else now
    updated = (
        GameSession.query
        .filter(GameSession.id == game_session.id, GameSession.status != 'finished')
        .update({'status': 'finished', 'finished_at': now}, synchronize_session=False)
    )
    db.session.commit()
    if updated:
        current_app.logger.info(f"[end] session={game_session.id} ended by host")
    return updated == 1


def auto_progress(game_session: GameSession, now: Optional[float] = None, source: str = 'auto') -> Optional[str]:
    """Apply whichever automatic transition is due right now, if any."""
    now = time.time() if now is None else now
    cfg = current_app.config
    if game_session.status != 'playing':
        return None
    idx = game_session.current_question_index
    if rules.reveal_due(
        game_session.status,
        game_session.answer_revealed,
        game_session.question_start_time,
        player_count(game_session),
        count_answers(game_session),
        now,
        cfg.get('ANSWER_WINDOW_SEC', rules.ANSWER_WINDOW_SEC),
    ):
        return 'reveal' if reveal_answer(game_session, idx, now=now, source=source) else None
    if rules.advance_due(
        game_session.status,
        game_session.answer_revealed,
        game_session.revealed_at,
        now,
        cfg.get('REVEAL_HOLD_SEC', rules.REVEAL_HOLD_SEC),
    ):
        return 'advance' if advance_question(game_session, idx, now=now, source=source) else None
    return None
