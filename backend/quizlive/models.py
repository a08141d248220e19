from quizlive import db, bcrypt
from flask_login import UserMixin
import json
import string
import secrets
import time

QUESTION_TYPES = ('multiple_choice', 'true_false', 'estimate')
SESSION_STATUSES = ('lobby', 'playing', 'finished')
JOIN_CODE_ALPHABET = string.ascii_uppercase + string.digits


class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), unique=True, nullable=False, index=True)
    password_hash = db.Column(db.String(256), nullable=False)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'username': self.username,
        }


class Quiz(db.Model):
    __tablename__ = 'quiz'
    id = db.Column(db.Integer, primary_key=True)
    owner_id = db.Column(db.String(64), nullable=False, index=True)
    title = db.Column(db.String(200), nullable=False)
    gamification = db.Column(db.Boolean, default=False, nullable=False)
    created_at = db.Column(db.Float, default=time.time, nullable=False)
    questions = db.relationship(
        'Question', back_populates='quiz', order_by='Question.order_index',
        cascade='all, delete-orphan',
    )
    sessions = db.relationship('GameSession', back_populates='quiz', cascade='all, delete-orphan')

    def to_dict(self, include_questions=True, include_answers=True):
        data = {
            'id': self.id,
            'owner_id': self.owner_id,
            'title': self.title,
            'gamification': self.gamification,
            'created_at': self.created_at,
            'question_count': len(self.questions),
        }
        if include_questions:
            data['questions'] = [q.to_dict(include_answer=include_answers) for q in self.questions]
        return data


class Question(db.Model):
    __tablename__ = 'question'
    __table_args__ = (
        db.UniqueConstraint('quiz_id', 'order_index', name='uq_question_quiz_order'),
    )
    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey('quiz.id', ondelete='CASCADE'), nullable=False, index=True)
    order_index = db.Column(db.Integer, nullable=False)
    text = db.Column(db.Text, nullable=False)
    question_type = db.Column(db.String(32), nullable=False, default='multiple_choice')
    # JSON list: option labels, or [min, max, correct] numeric strings for estimates
    answers = db.Column(db.Text, nullable=False)
    correct_index = db.Column(db.Integer, nullable=True)
    quiz = db.relationship('Quiz', back_populates='questions')

    @property
    def options(self):
        return json.loads(self.answers) if self.answers else []

    @property
    def is_estimate(self):
        return self.question_type == 'estimate'

    def estimate_range(self):
        """Return (min, max, correct_value) as floats for an estimate question."""
        low, high, correct = self.options
        return float(low), float(high), float(correct)

    def to_dict(self, include_answer=True):
        data = {
            'id': self.id,
            'quiz_id': self.quiz_id,
            'order_index': self.order_index,
            'text': self.text,
            'type': self.question_type,
        }
        if self.is_estimate:
            low, high, _ = self.options
            data['min'] = low
            data['max'] = high
            data['correct_value'] = self.options[2] if include_answer else None
        else:
            data['answers'] = self.options
            data['correct_index'] = self.correct_index if include_answer else None
        return data


def generate_join_code(length=6):
    """Random uppercase alphanumeric code; uniqueness is enforced by the column."""
    return ''.join(secrets.choice(JOIN_CODE_ALPHABET) for _ in range(length))


class GameSession(db.Model):
    __tablename__ = 'game_session'
    id = db.Column(db.Integer, primary_key=True)
    quiz_id = db.Column(db.Integer, db.ForeignKey('quiz.id', ondelete='CASCADE'), nullable=False, index=True)
    host_id = db.Column(db.String(64), nullable=False, index=True)
    join_code = db.Column(db.String(6), unique=True, nullable=False, index=True)
    status = db.Column(db.String(16), default='lobby', nullable=False)  # lobby, playing, finished
    current_question_index = db.Column(db.Integer, default=0, nullable=False)
    question_start_time = db.Column(db.Float, nullable=True)
    answer_revealed = db.Column(db.Boolean, default=False, nullable=False)
    revealed_at = db.Column(db.Float, nullable=True)
    created_at = db.Column(db.Float, default=time.time, nullable=False)
    finished_at = db.Column(db.Float, nullable=True)
    quiz = db.relationship('Quiz', back_populates='sessions')
    players = db.relationship(
        'Player', back_populates='session', order_by='Player.id',
        cascade='all, delete-orphan',
    )

    @property
    def questions(self):
        return self.quiz.questions if self.quiz else []

    @property
    def current_question(self):
        questions = self.questions
        idx = self.current_question_index or 0
        if self.status != 'playing' or not 0 <= idx < len(questions):
            return None
        return questions[idx]

    def to_dict(self):
        return {
            'id': self.id,
            'quiz_id': self.quiz_id,
            'host_id': self.host_id,
            'join_code': self.join_code,
            'status': self.status,
            'current_question_index': self.current_question_index,
            'question_start_time': self.question_start_time,
            'answer_revealed': self.answer_revealed,
            'revealed_at': self.revealed_at,
            'question_count': len(self.questions),
            'created_at': self.created_at,
            'finished_at': self.finished_at,
        }


class Player(db.Model):
    __tablename__ = 'player'
    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(db.Integer, db.ForeignKey('game_session.id', ondelete='CASCADE'), nullable=False, index=True)
    nickname = db.Column(db.String(20), nullable=False)
    score = db.Column(db.Integer, default=0, nullable=False)
    joined_at = db.Column(db.Float, default=time.time, nullable=False)
    session = db.relationship('GameSession', back_populates='players')
    answers = db.relationship('PlayerAnswer', back_populates='player', cascade='all, delete-orphan')

    def to_dict(self):
        return {
            'id': self.id,
            'session_id': self.session_id,
            'nickname': self.nickname,
            'score': self.score,
        }


class PlayerAnswer(db.Model):
    __tablename__ = 'player_answer'
    __table_args__ = (
        db.UniqueConstraint('player_id', 'question_id', name='uq_player_answer_player_question'),
    )
    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id', ondelete='CASCADE'), nullable=False, index=True)
    question_id = db.Column(db.Integer, db.ForeignKey('question.id', ondelete='CASCADE'), nullable=False, index=True)
    answer_index = db.Column(db.Integer, nullable=True)
    estimate_value = db.Column(db.Float, nullable=True)
    response_time_ms = db.Column(db.Integer, nullable=False)
    points_earned = db.Column(db.Integer, default=0, nullable=False)
    created_at = db.Column(db.Float, default=time.time, nullable=False)
    player = db.relationship('Player', back_populates='answers')
    question = db.relationship('Question')

    @property
    def value(self):
        return self.estimate_value if self.answer_index is None else self.answer_index

    def to_dict(self):
        return {
            'id': self.id,
            'player_id': self.player_id,
            'question_id': self.question_id,
            'value': self.value,
            'response_time_ms': self.response_time_ms,
            'points_earned': self.points_earned,
        }
