import os
import sys
import pytest

# Ensure the backend root (containing the `tabletop` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from tabletop import create_app, db, socketio
from tabletop.models import User, Game, GameParticipant, Token, ROLE_CREATOR, ROLE_PLAYER


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = ['http://localhost:5173']
    ASSET_HOST = 'local'
    UPLOAD_FOLDER = None
    MAP_AUTO_CREATE_ON_SAVE = True


def auth(uid):
    return {'X-User-Id': uid}


@pytest.fixture()
def flask_app(tmp_path):
    class _Config(TestConfig):
        UPLOAD_FOLDER = str(tmp_path / 'uploads')

    application = create_app(_Config)
    # No app context stays pushed during the test: each request and socket
    # event gets its own, so the signed-in user is resolved per call.
    # In-memory SQLite keeps one shared connection across contexts.
    with application.app_context():
        db.create_all()
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def app_ctx(flask_app):
    with flask_app.app_context():
        yield flask_app
        db.session.remove()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def seeded(flask_app):
    """Two games: G1 run by 'gm' with an accepted and a pending player, G2 run by 'other'."""
    with flask_app.app_context():
        users = {}
        for name in ['gm', 'player', 'pending', 'outsider', 'other']:
            users[name] = User(external_uid=f'uid-{name}', username=name)
            db.session.add(users[name])
        db.session.flush()

        g1 = Game(name='G1', description='first', creator_id=users['gm'].id)
        g2 = Game(name='G2', description='second', creator_id=users['other'].id)
        db.session.add_all([g1, g2])
        db.session.flush()
        db.session.add_all([
            GameParticipant(game_id=g1.id, user_id=users['gm'].id, role=ROLE_CREATOR, is_accepted=True),
            GameParticipant(game_id=g1.id, user_id=users['player'].id, role=ROLE_PLAYER, is_accepted=True),
            GameParticipant(game_id=g1.id, user_id=users['pending'].id, role=ROLE_PLAYER, is_accepted=False),
            GameParticipant(game_id=g2.id, user_id=users['other'].id, role=ROLE_CREATOR, is_accepted=True),
        ])
        db.session.add_all([
            Token(name='Warrior', is_custom=False),
            Token(name='Goblin', is_custom=False),
            Token(name='G1 Boss', is_custom=True, game_id=g1.id),
            Token(name='G2 Boss', is_custom=True, game_id=g2.id),
        ])
        db.session.commit()
        seeded_ids = {
            'users': {name: user.id for name, user in users.items()},
            'g1': g1.id,
            'g2': g2.id,
        }
        db.session.remove()
    return seeded_ids


@pytest.fixture()
def make_sio_client(flask_app):
    clients = []

    def _make(uid):
        test_client = socketio.test_client(flask_app, namespace='/ws', headers=auth(uid))
        test_client.get_received('/ws')  # flush 'connected'
        clients.append(test_client)
        return test_client

    yield _make
    for c in clients:
        try:
            if c.is_connected('/ws'):
                c.disconnect(namespace='/ws')
        except Exception:
            pass
