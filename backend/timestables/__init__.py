from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
allowed_origins = [
    "http://localhost:5173",
    "http://127.0.0.1:5173",
    "http://localhost:5174",
    "http://127.0.0.1:5174",
]
socketio = SocketIO(cors_allowed_origins=allowed_origins, async_mode=None)


def build_scheduler(flask_app):
    """Real timers in production; a hand-advanced clock under TESTING."""
    from timestables.services.quiz.timers import ManualScheduler, SocketIOScheduler
    if flask_app.config.get('TESTING') and not flask_app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
        return ManualScheduler()
    return SocketIOScheduler(flask_app, socketio)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from timestables.routes import main
    flask_app.register_blueprint(main)

    from timestables.api.leaderboard import leaderboard
    flask_app.register_blueprint(leaderboard, url_prefix='/api/leaderboard')

    from timestables.api.quiz import quiz
    flask_app.register_blueprint(quiz, url_prefix='/api/quiz')

    from timestables.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    from timestables.services.leaderboard.stores import build_leaderboard_store
    flask_app.extensions['leaderboard_store'] = build_leaderboard_store(flask_app)
    flask_app.extensions['quiz_scheduler'] = build_scheduler(flask_app)

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the leaderboard tables."""
        import timestables.models  # noqa: F401
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            print('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
