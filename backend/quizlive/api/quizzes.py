from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user

from quizlive.errors import ValidationError
from quizlive.models import GameSession, Quiz
from quizlive.services.quizzes import create_quiz, delete_quiz


quizzes = Blueprint('quizzes', __name__)


@quizzes.errorhandler(ValidationError)
def handle_validation_error(exc):
    return jsonify({'error': str(exc)}), 400


def _owned_quiz_or_404(quiz_id):
    return Quiz.query.filter_by(id=quiz_id, owner_id=str(current_user.get_id())).first_or_404()


@quizzes.route('/', methods=['POST'])
@login_required
def create():
    quiz = create_quiz(current_user.get_id(), request.get_json(silent=True))
    current_app.logger.info(f"[quiz-created] quiz={quiz.id} owner={quiz.owner_id} questions={len(quiz.questions)}")
    return jsonify(quiz.to_dict()), 201


@quizzes.route('/', methods=['GET'])
@login_required
def list_quizzes():
    items = (
        Quiz.query
        .filter_by(owner_id=str(current_user.get_id()))
        .order_by(Quiz.created_at.desc(), Quiz.id.desc())
        .all()
    )
    return jsonify([q.to_dict(include_questions=False) for q in items])


@quizzes.route('/<int:quiz_id>', methods=['GET'])
@login_required
def get_quiz(quiz_id):
    return jsonify(_owned_quiz_or_404(quiz_id).to_dict())


@quizzes.route('/<int:quiz_id>', methods=['DELETE'])
@login_required
def remove(quiz_id):
    quiz = _owned_quiz_or_404(quiz_id)
    open_sessions = (
        GameSession.query
        .filter(GameSession.quiz_id == quiz.id, GameSession.status != 'finished')
        .count()
    )
    if open_sessions:
        return jsonify({'error': 'Quiz is in use by a session that has not finished'}), 409
    delete_quiz(quiz)
    current_app.logger.info(f"[quiz-deleted] quiz={quiz_id}")
    return '', 204
