from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    flask_app.logger.setLevel(flask_app.config.get('LOG_LEVEL', 'INFO'))

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from guesswho.main import main
    flask_app.register_blueprint(main)

    from guesswho.api.catalog import catalog
    flask_app.register_blueprint(catalog, url_prefix='/api')

    from guesswho.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    # One GameServer per app; handlers reach it through current_app.extensions
    from guesswho.models import load_catalog
    from guesswho.services.rooms import RoomRegistry
    from guesswho.services.server import GameServer
    server = GameServer(
        emit=socketio.emit,
        catalog_loader=load_catalog,
        registry=RoomRegistry(code_length=int(flask_app.config.get('ROOM_CODE_LENGTH', 6))),
        logger=flask_app.logger,
        disconnect_policy=flask_app.config.get('DISCONNECT_POLICY', 'forfeit'),
        idle_timeout=int(flask_app.config.get('ROOM_IDLE_TIMEOUT_SEC', 0)),
        sweep_interval=int(flask_app.config.get('ROOM_SWEEP_INTERVAL_SEC', 30)),
        start_background_task=socketio.start_background_task,
        sleep=socketio.sleep,
    )
    flask_app.extensions['guesswho'] = server

    from guesswho.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    server.start()

    @click.command('seed-characters')
    def seed_characters_command():
        """Seeds the default character catalog if it is empty."""
        from guesswho.models import seed_characters
        with flask_app.app_context():
            count = seed_characters()
            print(f'Character catalog holds {count} characters.')

    @click.command('catalog-reset')
    def catalog_reset_command():
        """Drops, recreates, and seeds the database."""
        from guesswho.models import seed_characters
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            seed_characters()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(seed_characters_command)
    flask_app.cli.add_command(catalog_reset_command)

    return flask_app
