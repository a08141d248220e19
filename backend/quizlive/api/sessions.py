from flask import Blueprint, jsonify, request, current_app
from flask_login import login_required, current_user

from quizlive import db
from quizlive.errors import ValidationError
from quizlive.models import GameSession, Player, Quiz
from quizlive.services.game import engine, ledger, lobby, snapshot
from quizlive.services.game.scheduler import broadcast_state, schedule_session_timer


sessions = Blueprint('sessions', __name__)


@sessions.errorhandler(ValidationError)
def handle_validation_error(exc):
    return jsonify({'error': str(exc)}), 400


def _session_or_404(join_code) -> GameSession:
    return GameSession.query.filter_by(join_code=join_code.upper()).first_or_404()


def _hosted_session(join_code):
    """Return (session, None) for the host, or (None, error response)."""
    game_session = _session_or_404(join_code)
    if game_session.host_id != str(current_user.get_id()):
        return None, (jsonify({'error': 'Only the host may control this session'}), 403)
    return game_session, None


def _expected_index():
    data = request.get_json(silent=True) or {}
    value = data.get('expected_index')
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError('expected_index must be an integer')
    return value


def _after_transition(game_session: GameSession, changed: bool):
    if changed:
        broadcast_state(game_session.join_code)
        schedule_session_timer(current_app._get_current_object(), game_session.id)
    # timers may have moved the row on in their own session
    db.session.refresh(game_session)
    return jsonify({'changed': changed, 'session': game_session.to_dict()})


@sessions.route('/create', methods=['POST'])
@login_required
def create_session():
    data = request.get_json(silent=True) or {}
    quiz_id = data.get('quiz_id')
    if quiz_id is None:
        return jsonify({'error': 'quiz_id is required'}), 400
    quiz = Quiz.query.filter_by(id=quiz_id, owner_id=str(current_user.get_id())).first()
    if not quiz:
        return jsonify({'error': 'Quiz not found'}), 404
    try:
        game_session = lobby.create_session(quiz, current_user.get_id())
    except lobby.JoinCodeExhausted as exc:
        current_app.logger.error(f"[session-create-failed] quiz={quiz.id} {exc}")
        return jsonify({'error': 'Could not allocate a join code, try again'}), 503
    return jsonify(game_session.to_dict()), 201


@sessions.route('/join', methods=['POST'])
def join_session():
    data = request.get_json(silent=True) or {}
    join_code = data.get('join_code')
    if not join_code:
        return jsonify({'error': 'Join code is required'}), 400
    game_session = lobby.find_session(join_code)
    if not game_session:
        return jsonify({'error': 'Game not found'}), 404
    try:
        player = lobby.join_session(game_session, data.get('nickname'))
    except lobby.SessionClosed as exc:
        return jsonify({'error': str(exc)}), 409
    broadcast_state(game_session.join_code)
    return jsonify(player.to_dict()), 201


@sessions.route('/<string:join_code>/state', methods=['GET'])
def get_state(join_code):
    game_session = _session_or_404(join_code)
    player = None
    player_id = request.args.get('player_id', type=int)
    if player_id is not None:
        player = Player.query.filter_by(id=player_id, session_id=game_session.id).first()
        if not player:
            return jsonify({'error': 'Player not found in this session'}), 404
    for_host = (
        current_user.is_authenticated
        and game_session.host_id == str(current_user.get_id())
    )
    return jsonify(snapshot.build_state(game_session, player=player, for_host=for_host))


@sessions.route('/<string:join_code>/start', methods=['POST'])
@login_required
def start(join_code):
    game_session, error = _hosted_session(join_code)
    if error:
        return error
    return _after_transition(game_session, engine.start_session(game_session))


@sessions.route('/<string:join_code>/reveal', methods=['POST'])
@login_required
def reveal(join_code):
    game_session, error = _hosted_session(join_code)
    if error:
        return error
    return _after_transition(game_session, engine.reveal_answer(game_session, _expected_index()))


@sessions.route('/<string:join_code>/advance', methods=['POST'])
@login_required
def advance(join_code):
    game_session, error = _hosted_session(join_code)
    if error:
        return error
    return _after_transition(game_session, engine.advance_question(game_session, _expected_index()))


@sessions.route('/<string:join_code>/next', methods=['POST'])
@login_required
def next_step(join_code):
    game_session, error = _hosted_session(join_code)
    if error:
        return error
    return _after_transition(game_session, engine.next_step(game_session) is not None)


@sessions.route('/<string:join_code>/end', methods=['POST'])
@login_required
def end(join_code):
    game_session, error = _hosted_session(join_code)
    if error:
        return error
    return _after_transition(game_session, engine.end_session(game_session))


@sessions.route('/<string:join_code>/answer', methods=['POST'])
def submit_answer(join_code):
    data = request.get_json(silent=True) or {}
    game_session = _session_or_404(join_code)
    player_id = data.get('player_id')
    if player_id is None or 'value' not in data:
        return jsonify({'error': 'player_id and value are required'}), 400
    player = Player.query.filter_by(id=player_id, session_id=game_session.id).first()
    if not player:
        return jsonify({'error': 'Player not found in this session'}), 404

    result = ledger.submit_answer(game_session, player, data.get('value'), question_id=data.get('question_id'))
    if result.status in (ledger.CLOSED, ledger.STALE):
        return jsonify(result.to_dict()), 409
    if result.accepted:
        broadcast_state(game_session.join_code)
    return jsonify(result.to_dict())
