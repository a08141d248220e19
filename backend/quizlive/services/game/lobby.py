from flask import current_app
from sqlalchemy.exc import IntegrityError

from quizlive import db
from quizlive.errors import ValidationError
from quizlive.models import GameSession, Player, Quiz, generate_join_code


class JoinCodeExhausted(RuntimeError):
    pass


class SessionClosed(Exception):
    pass


def find_session(join_code: str):
    if not join_code:
        return None
    return GameSession.query.filter_by(join_code=join_code.strip().upper()).first()


def create_session(quiz: Quiz, host_id: str) -> GameSession:
    """Open a lobby for ``quiz``; retries when the drawn code is already taken."""
    cfg = current_app.config
    length = int(cfg.get('JOIN_CODE_LENGTH', 6))
    attempts = int(cfg.get('JOIN_CODE_ATTEMPTS', 10))
    for attempt in range(1, attempts + 1):
        game_session = GameSession(
            quiz_id=quiz.id,
            host_id=str(host_id),
            join_code=generate_join_code(length),
            status='lobby',
            current_question_index=0,
            answer_revealed=False,
        )
        db.session.add(game_session)
        try:
            db.session.commit()
        except IntegrityError:
            db.session.rollback()
            current_app.logger.info(f"[join-code-retry] quiz={quiz.id} attempt={attempt}")
            continue
        current_app.logger.info(
            f"[session-created] session={game_session.id} quiz={quiz.id} code={game_session.join_code}"
        )
        return game_session
    raise JoinCodeExhausted(f'Could not allocate a join code after {attempts} attempts')


def validate_nickname(nickname) -> str:
    max_length = int(current_app.config.get('NICKNAME_MAX_LENGTH', 20))
    if nickname is not None and not isinstance(nickname, str):
        raise ValidationError('Nickname must be text')
    nickname = (nickname or '').strip()
    if not nickname:
        raise ValidationError('Nickname is required')
    if len(nickname) > max_length:
        raise ValidationError(f'Nickname must be at most {max_length} characters')
    return nickname


def join_session(game_session: GameSession, nickname) -> Player:
    """Add a player to the roster. Late joins while playing are allowed."""
    nickname = validate_nickname(nickname)
    if game_session.status == 'finished':
        raise SessionClosed('This game has already finished')
    player = Player(session_id=game_session.id, nickname=nickname, score=0)
    db.session.add(player)
    db.session.commit()
    current_app.logger.info(f"[join] session={game_session.id} player={player.id}")
    return player
