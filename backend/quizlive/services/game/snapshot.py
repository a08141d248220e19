import time
from typing import Optional

from flask import current_app

from quizlive.models import GameSession, Player
from . import engine, ledger, rules


def ranked_players(game_session: GameSession):
    """Roster ordered by score descending, ties by join order."""
    return (
        Player.query
        .filter_by(session_id=game_session.id)
        .order_by(Player.score.desc(), Player.id.asc())
        .all()
    )


def _answer_visible(game_session: GameSession, index: int) -> bool:
    if game_session.status == 'finished':
        return True
    if game_session.status != 'playing':
        return False
    if index < game_session.current_question_index:
        return True
    return index == game_session.current_question_index and game_session.answer_revealed


def build_state(game_session: GameSession, player: Optional[Player] = None,
                for_host: bool = False, now: Optional[float] = None) -> dict:
    """Everything one poll needs: session row, questions, roster, answer progress."""
    now = time.time() if now is None else now
    cfg = current_app.config
    window = int(cfg.get('ANSWER_WINDOW_SEC', rules.ANSWER_WINDOW_SEC))
    questions = game_session.questions
    players = ranked_players(game_session)
    current = game_session.current_question

    payload = {
        'session': game_session.to_dict(),
        'questions': [
            q.to_dict(include_answer=for_host or _answer_visible(game_session, i))
            for i, q in enumerate(questions)
        ],
        'current_question': None,
        'players': [p.to_dict() for p in players],
        'player_count': len(players),
        'answer_count': engine.count_answers(game_session, current) if current else 0,
        'seconds_remaining': (
            rules.seconds_remaining(game_session.question_start_time, now, window)
            if current and not game_session.answer_revealed else 0
        ),
        'timing': {
            'answer_window_sec': window,
            'reveal_hold_sec': cfg.get('REVEAL_HOLD_SEC', rules.REVEAL_HOLD_SEC),
            'poll_interval_sec': cfg.get('POLL_INTERVAL_SEC', 1),
        },
        'server_time': now,
    }
    if current is not None:
        payload['current_question'] = payload['questions'][game_session.current_question_index]
    if player is not None:
        payload['player'] = player.to_dict()
        mine = ledger.find_answer(player.id, current.id) if current else None
        payload['my_answer'] = mine.to_dict() if mine else None
    return payload
