from flask import Flask
from medibot.extensions import db, migrate, jwt, limiter, cors, socketio
from medibot.utils.encryption_util import encryptor
from medibot.utils.error_handlers import register_error_handlers
from medibot.commands import register_commands
from config import config


def create_app(config_name='default'):
    app = Flask(__name__)
    config_class = config[config_name]
    app.config.from_object(config_class)

    # Initialize extensions
    db.init_app(app)
    migrate.init_app(app, db)
    jwt.init_app(app)
    limiter.init_app(app)
    cors.init_app(
        app,
        origins=app.config['ALLOWED_ORIGINS'],
        supports_credentials=True,
        allow_headers=['Content-Type', 'Authorization', 'X-Requested-With'],
        methods=['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS']
    )

    # Socket handlers must be registered before init_app so every app's server gets them
    from medibot.socket_handlers import call_handler

    # Initialize SocketIO with threading (no eventlet)
    socketio.init_app(app, cors_allowed_origins=app.config['ALLOWED_ORIGINS'], async_mode='threading')

    # Initialize custom utilities
    encryptor.init_app(app)

    # Initialize app with config
    config_class.init_app(app)

    # Models must be imported before db.create_all() or a migration sees the metadata
    from medibot.models import (
        appointment_models, doctor_models, system_models, user_models, video_room_models, vital_models
    )

    # Register blueprints
    from medibot.api import api_bp
    app.register_blueprint(api_bp, url_prefix='/api')

    # Register error handlers and commands
    register_error_handlers(app)
    register_commands(app)

    return app
