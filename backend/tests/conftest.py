import os
import random
import sys
import pytest

# Ensure the backend root (containing the `guesswho` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from guesswho import create_app, db, socketio
from guesswho.services.rooms import RoomRegistry
from guesswho.services.server import GameServer
from guesswho.services.session import CharacterCatalog


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = ['http://localhost:3000']
    ROOM_CODE_LENGTH = 6
    DISCONNECT_POLICY = 'forfeit'
    ROOM_IDLE_TIMEOUT_SEC = 0
    ROOM_SWEEP_INTERVAL_SEC = 30
    LOG_LEVEL = 'DEBUG'


CHARACTERS = [
    {'id': i, 'name': name, 'features': {'hasHat': i % 2 == 0, 'hairColor': hair}}
    for i, (name, hair) in enumerate(
        [('Alex', 'black'), ('Emma', 'blonde'), ('Michael', 'brown'), ('Sophia', 'red')], start=1)
]


@pytest.fixture()
def catalog():
    return CharacterCatalog(CHARACTERS)


class RecordingEmitter:
    """Stands in for socketio.emit and remembers every delivery."""

    def __init__(self):
        self.sent = []

    def __call__(self, event, payload, to=None, namespace=None):
        self.sent.append({'event': event, 'payload': payload, 'to': to, 'namespace': namespace})

    def received(self, sid, event=None):
        return [m['payload'] for m in self.sent
                if m['to'] == sid and (event is None or m['event'] == event)]

    def events_for(self, sid):
        return [m['event'] for m in self.sent if m['to'] == sid]

    def clear(self):
        self.sent.clear()


@pytest.fixture()
def emitter():
    return RecordingEmitter()


@pytest.fixture()
def game_server(emitter, catalog):
    server = GameServer(
        emit=emitter,
        catalog_loader=lambda: catalog,
        registry=RoomRegistry(rng=random.Random(7)),
    )
    server.start()
    yield server
    server.stop()


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        from guesswho.models import seed_characters
        db.create_all()
        seed_characters()
        yield application
        application.extensions['guesswho'].stop()
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_sio_client(flask_app):
    clients = []

    def _make():
        test_client = socketio.test_client(flask_app, namespace='/ws')
        test_client.get_received('/ws')  # drop the connect greeting
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        try:
            if test_client.is_connected('/ws'):
                test_client.disconnect(namespace='/ws')
        except Exception:
            pass
