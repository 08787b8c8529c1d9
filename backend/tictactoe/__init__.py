from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
migrate = Migrate()
socketio = SocketIO(async_mode=None)


def get_store():
    return current_app.extensions['game_store']


def get_directory():
    return current_app.extensions['room_directory']


def get_sessions():
    return current_app.extensions['session_registry']


def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    # Ensure models are registered with the metadata
    from tictactoe import models  # noqa: F401

    # Game services live on the app so each app (and each test) gets its own registry
    from tictactoe.services.games.directory import RoomDirectory
    from tictactoe.services.games.scoring import ScoringPolicy
    from tictactoe.services.games.sql_store import SqlAlchemyGameStore
    from tictactoe.socketio_events import SessionRegistry

    store = SqlAlchemyGameStore()
    flask_app.extensions['game_store'] = store
    flask_app.extensions['room_directory'] = RoomDirectory(
        store,
        scoring=ScoringPolicy.from_config(flask_app.config),
        idle_ttl_sec=int(flask_app.config.get('ROOM_IDLE_TTL_SEC', 0)),
    )
    flask_app.extensions['session_registry'] = SessionRegistry()

    from tictactoe.api.onboarding import onboarding
    flask_app.register_blueprint(onboarding)

    # Register Socket.IO event handlers on the initialized socketio instance
    from tictactoe.socketio_events import register_socketio_handlers
    register_socketio_handlers()

    @click.command('db-reset')
    def db_reset_command():
        """Drops and recreates the database tables."""
        with flask_app.app_context():
            db.drop_all()
            db.create_all()
            flask_app.extensions['room_directory'].close()
            print('Database has been reset!')

    flask_app.cli.add_command(db_reset_command)

    flask_app.logger.info(f"[startup] cors_origins={allowed_origins}")
    return flask_app
