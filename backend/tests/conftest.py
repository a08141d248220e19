import os
import sys
import pytest

# Ensure the backend root (containing the `quizlive` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from quizlive import create_app, db, socketio


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    ANSWER_WINDOW_SEC = 15
    REVEAL_HOLD_SEC = 5
    ESTIMATE_SCORE_POLICY = 'allow_negative'
    BCRYPT_LOG_ROUNDS = 4


MC_QUESTION = {
    'text': 'Which planet is closest to the sun?',
    'type': 'multiple_choice',
    'answers': ['Venus', 'Earth', 'Mercury', 'Mars'],
    'correct_index': 2,
}


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import quizlive.models  # noqa: F401
        db.create_all()
    # Requests get their own app context (and so their own db session and g)
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def app_ctx(flask_app):
    """Pushed app context for tests that call services directly."""
    with flask_app.app_context():
        yield flask_app
        db.session.remove()


@pytest.fixture()
def client(flask_app):
    """Anonymous client, as used by players."""
    return flask_app.test_client()


@pytest.fixture()
def host_client(flask_app):
    """Client logged in as a registered host."""
    test_client = flask_app.test_client()
    res = test_client.post('/api/auth/register', json={'username': 'host', 'password': 'secret'})
    assert res.status_code == 201
    return test_client


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def make_quiz(host_client):
    def _make(questions=None, title='Test quiz'):
        res = host_client.post('/api/quizzes/', json={
            'title': title,
            'questions': questions or [MC_QUESTION],
        })
        assert res.status_code == 201, res.get_json()
        return res.get_json()
    return _make


@pytest.fixture()
def open_session(host_client, make_quiz):
    """Create a quiz and a lobby for it; returns the session payload."""
    def _open(questions=None):
        quiz = make_quiz(questions)
        res = host_client.post('/api/sessions/create', json={'quiz_id': quiz['id']})
        assert res.status_code == 201, res.get_json()
        return res.get_json()
    return _open


@pytest.fixture()
def game_factory(app_ctx):
    """Build sessions directly through the services, bypassing HTTP."""
    from quizlive.services.quizzes import create_quiz
    from quizlive.services.game import lobby

    def _factory(questions=None, nicknames=('Alice', 'Bob'), host_id='host-1'):
        quiz = create_quiz(host_id, {'title': 'Engine quiz', 'questions': questions or [MC_QUESTION]})
        game_session = lobby.create_session(quiz, host_id)
        players = [lobby.join_session(game_session, name) for name in nicknames]
        return game_session, players
    return _factory
