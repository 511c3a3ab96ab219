from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

# Header carrying the identity provider's subject for the calling user
USER_HEADER = 'X-User-Id'


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Map services live on the app so each app owns its viewer registry
    from tabletop.services.maps import MapBroadcaster, MapCoordinator
    from tabletop.services.maps.assets import asset_host_from_config
    flask_app.extensions['map_coordinator'] = MapCoordinator(
        MapBroadcaster(logger=flask_app.logger),
        asset_host_from_config(flask_app.config),
        auto_create_on_save=flask_app.config.get('MAP_AUTO_CREATE_ON_SAVE', True),
    )

    from tabletop.main import main
    flask_app.register_blueprint(main)

    from tabletop.api.maps import maps
    flask_app.register_blueprint(maps, url_prefix='/api/maps')

    from tabletop.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    from tabletop.models import User

    @login_manager.request_loader
    def load_user_from_request(request):
        # Identity is vouched for upstream; we only map the subject to a row
        external_uid = request.headers.get(USER_HEADER)
        if not external_uid:
            return None
        return User.query.filter_by(external_uid=external_uid).first()

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from tabletop.models import Game, GameParticipant, Token, ROLE_CREATOR, ROLE_PLAYER
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            # Seed users
            users = {}
            for u in ['gamemaster', 'player1', 'player2']:
                users[u] = User(external_uid=f'seed-{u}', username=u)
                db.session.add(users[u])
            db.session.flush()

            game = Game(name='Lost Mine', description='Seeded campaign', creator_id=users['gamemaster'].id)
            db.session.add(game)
            db.session.flush()
            db.session.add(GameParticipant(game_id=game.id, user_id=users['gamemaster'].id, role=ROLE_CREATOR, is_accepted=True))
            db.session.add(GameParticipant(game_id=game.id, user_id=users['player1'].id, role=ROLE_PLAYER, is_accepted=True))
            db.session.add(GameParticipant(game_id=game.id, user_id=users['player2'].id, role=ROLE_PLAYER, is_accepted=False))

            # Seed shared tokens
            for name in ['Warrior', 'Wizard', 'Goblin', 'Dragon']:
                db.session.add(Token(name=name, is_custom=False))

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
