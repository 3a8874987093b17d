from flask import Flask, current_app
from flask_cors import CORS
from flask_socketio import SocketIO
import logging
from config import Config

socketio = SocketIO(async_mode=None)


def current_registry():
    """The room registry owned by the running app."""
    return current_app.extensions['room_registry']


def _configure_logging(flask_app):
    # Flask's app logger is the "tunerace" logger, so domain module loggers
    # propagate into it and share its handler
    level_name = str(flask_app.config.get('LOG_LEVEL', 'INFO')).upper()
    flask_app.logger.setLevel(getattr(logging, level_name, logging.INFO))


def create_app(config_class=Config, registry=None):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    _configure_logging(flask_app)

    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []
    CORS(flask_app, supports_credentials=True, origins=allowed_origins)

    # Initialize Socket.IO after app is created
    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    if registry is None:
        from tunerace.catalog import StaticCatalog
        from tunerace.services.game.registry import RoomRegistry
        from tunerace.services.game.room import RoomRules
        registry = RoomRegistry(
            StaticCatalog(),
            rules=RoomRules.from_config(flask_app.config),
            id_length=int(flask_app.config.get('ROOM_ID_LENGTH', 6)),
        )
    flask_app.extensions['room_registry'] = registry

    # Import and register blueprints here
    from tunerace.main import main
    flask_app.register_blueprint(main)

    from tunerace.api.rooms import rooms
    flask_app.register_blueprint(rooms, url_prefix='/api/rooms')

    # Register Socket.IO event handlers against this app's registry
    from tunerace.socketio_events import SessionGateway
    gateway = SessionGateway(
        socketio,
        registry,
        namespace=flask_app.config.get('SOCKETIO_NAMESPACE', '/ws'),
    )
    gateway.register()
    flask_app.extensions['session_gateway'] = gateway

    flask_app.logger.info(f"[startup] namespace={gateway.namespace} origins={allowed_origins}")
    return flask_app
