import os
import sys
import random
import pytest

# Ensure the backend root (containing the `timestables` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from timestables import create_app, db, socketio
from timestables.services.audio import AudioCues
from timestables.services.leaderboard.stores import LeaderboardError, LeaderboardStore
from timestables.services.presentation import Presenter
from timestables.services.quiz.controller import QuizController, QuizSettings
from timestables.services.quiz.timers import ManualScheduler


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    REMOTE_LEADERBOARD_URL = None
    LEADERBOARD_SIZE = 10


class RecordingPresenter(Presenter):
    def __init__(self):
        self.events = []

    def emit(self, event, payload):
        self.events.append((event, payload))

    def named(self, event):
        return [p for e, p in self.events if e == event]

    def last(self, event):
        found = self.named(event)
        return found[-1] if found else None


class RecordingAudio(AudioCues):
    def __init__(self):
        super().__init__()
        self.cues = []

    def send(self, cue):
        self.cues.append(cue)


class MemoryStore(LeaderboardStore):
    """In-memory store; flip the flags to simulate an unavailable backend."""

    def __init__(self):
        self.saved = []
        self.fail_save = False
        self.fail_fetch = False

    def save_score(self, name, score, difficulty):
        if self.fail_save:
            raise LeaderboardError('save unavailable')
        self.saved.append((name, score, difficulty))

    def fetch_top(self, difficulty, limit=10):
        if self.fail_fetch:
            raise LeaderboardError('fetch unavailable')
        return []


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import timestables.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()
    from timestables import socketio_events
    socketio_events._controllers.clear()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def scheduler(flask_app):
    return flask_app.extensions['quiz_scheduler']


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
def presenter():
    return RecordingPresenter()


@pytest.fixture()
def audio():
    return RecordingAudio()


@pytest.fixture()
def memory_store():
    return MemoryStore()


@pytest.fixture()
def manual_scheduler():
    return ManualScheduler()


@pytest.fixture()
def make_controller(presenter, audio, memory_store, manual_scheduler):
    def _make(**overrides):
        kwargs = dict(
            presenter=presenter,
            audio=audio,
            store=memory_store,
            scheduler=manual_scheduler,
            settings=QuizSettings(),
            rng=random.Random(1234),
        )
        kwargs.update(overrides)
        return QuizController(**kwargs)
    return _make
