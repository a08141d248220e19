from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

REQUIRED_SETTINGS = ('SECRET_KEY', 'SQLALCHEMY_DATABASE_URI')


def _check_required_settings(flask_app):
    missing = [key for key in REQUIRED_SETTINGS if not flask_app.config.get(key)]
    if missing:
        raise RuntimeError(f"Missing required configuration: {', '.join(missing)}")


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    _check_required_settings(flask_app)

    origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=origins)
    socketio.init_app(flask_app, cors_allowed_origins=origins)

    from quizlive.routes import main
    flask_app.register_blueprint(main, url_prefix='/api/auth')

    from quizlive.api.quizzes import quizzes
    flask_app.register_blueprint(quizzes, url_prefix='/api/quizzes')

    from quizlive.api.sessions import sessions
    flask_app.register_blueprint(sessions, url_prefix='/api/sessions')

    from quizlive.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    from quizlive.models import User

    @login_manager.user_loader
    def load_user(user_id):
        return db.session.get(User, int(user_id))

    @login_manager.unauthorized_handler
    def unauthorized():
        return jsonify({'error': 'Login required'}), 401

    @flask_app.route('/healthz')
    def healthz():
        return jsonify({'status': 'ok'})

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from quizlive.services.quizzes import create_quiz
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            host = User(username='host')
            host.set_password('password')
            db.session.add(host)
            db.session.commit()

            create_quiz(str(host.id), {
                'title': 'Demo quiz',
                'questions': [
                    {
                        'text': 'Which planet is closest to the sun?',
                        'type': 'multiple_choice',
                        'answers': ['Venus', 'Earth', 'Mercury', 'Mars'],
                        'correct_index': 2,
                    },
                    {
                        'text': 'Python lists are immutable.',
                        'type': 'true_false',
                        'correct_index': 1,
                    },
                    {
                        'text': 'In which year did the first moon landing happen?',
                        'type': 'estimate',
                        'answers': ['1900', '2000', '1969'],
                    },
                ],
            })
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
