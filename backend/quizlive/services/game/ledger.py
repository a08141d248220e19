import math
import time
from dataclasses import dataclass
from typing import Optional

from flask import current_app
from sqlalchemy.exc import IntegrityError

from quizlive import db
from quizlive.errors import ValidationError
from quizlive.models import GameSession, Player, PlayerAnswer
from . import scoring

ACCEPTED = 'accepted'
ALREADY_ANSWERED = 'already_answered'
CLOSED = 'closed'
STALE = 'stale'


@dataclass
class SubmitResult:
    status: str
    points: int = 0
    answer: Optional[PlayerAnswer] = None

    @property
    def accepted(self) -> bool:
        return self.status == ACCEPTED

    def to_dict(self):
        return {
            'accepted': self.accepted,
            'status': self.status,
            'points': self.points,
            'answer': self.answer.to_dict() if self.answer else None,
        }


def find_answer(player_id: int, question_id: int) -> Optional[PlayerAnswer]:
    return PlayerAnswer.query.filter_by(player_id=player_id, question_id=question_id).first()


def _coerce_value(question, value):
    if isinstance(value, bool):
        raise ValidationError('Answer value must be a number')
    if question.is_estimate:
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValidationError('Estimate must be a number')
        if not math.isfinite(number):
            raise ValidationError('Estimate must be a finite number')
        return number
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError('Answer index must be an integer')
    try:
        index = int(value)
    except (TypeError, ValueError):
        raise ValidationError('Answer index must be an integer')
    if not 0 <= index < len(question.options):
        raise ValidationError('Answer index out of range')
    return index


def submit_answer(game_session: GameSession, player: Player, value,
                  question_id: Optional[int] = None, now: Optional[float] = None) -> SubmitResult:
    """Record one player's answer to the current question and credit the points.

    At most one answer per (player, question) is ever stored; a repeated or
    concurrent submission returns the stored outcome without touching the score.
    """
    now = time.time() if now is None else now
    if player.session_id != game_session.id:
        raise ValidationError('Player does not belong to this session')
    question = game_session.current_question
    if question is None or game_session.answer_revealed:
        return SubmitResult(CLOSED)
    if question_id is not None:
        try:
            question_id = int(question_id)
        except (TypeError, ValueError):
            raise ValidationError('question_id must be an integer')
        if question_id != question.id:
            return SubmitResult(STALE)

    existing = find_answer(player.id, question.id)
    if existing is not None:
        return SubmitResult(ALREADY_ANSWERED, existing.points_earned, existing)

    submitted = _coerce_value(question, value)
    cfg = current_app.config
    window_ms = int(cfg.get('ANSWER_WINDOW_SEC', 15)) * 1000
    response_ms = scoring.latency_ms(game_session.question_start_time, now, window_ms)
    correct = question.estimate_range() if question.is_estimate else question.correct_index
    points = scoring.score_answer(
        question.question_type, correct, submitted, response_ms,
        policy=cfg.get('ESTIMATE_SCORE_POLICY', scoring.POLICY_ALLOW_NEGATIVE),
    )

    answer = PlayerAnswer(
        player_id=player.id,
        question_id=question.id,
        answer_index=None if question.is_estimate else submitted,
        estimate_value=submitted if question.is_estimate else None,
        response_time_ms=response_ms,
        points_earned=points,
    )
    try:
        db.session.add(answer)
        db.session.flush()
        # Atomic increment; never a read-modify-write of the score
        Player.query.filter_by(id=player.id).update(
            {Player.score: Player.score + points}, synchronize_session=False
        )
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        existing = find_answer(player.id, question.id)
        current_app.logger.info(
            f"[answer-dup] session={game_session.id} player={player.id} question={question.id}"
        )
        return SubmitResult(ALREADY_ANSWERED, existing.points_earned if existing else 0, existing)

    current_app.logger.info(
        f"[answer] session={game_session.id} player={player.id} question={question.id} "
        f"latency={response_ms}ms points={points}"
    )
    return SubmitResult(ACCEPTED, points, answer)
