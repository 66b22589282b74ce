"""
QuietPlay Main Application
Flask JSON API in front of the playback engine
"""

import logging
import os

from flask import Flask, Response
from flask_compress import Compress

from .routes import (health_bp, playback_bp, schedules_bp, settings_bp,
                     tracks_bp)
from .routes.errors import register_error_handlers
from .services.service_manager import get_service_manager
from .utils.logger import setup_logger, setup_logging
from .utils.rate_limiting import add_rate_limit_headers, get_rate_limiter


def _configure_compression(app: Flask) -> None:
    app.config.setdefault('COMPRESS_REGISTER', True)
    app.config.setdefault('COMPRESS_ALGORITHM', os.getenv('QUIETPLAY_COMPRESS_ALGO', 'gzip'))
    app.config.setdefault('COMPRESS_MIMETYPES', ('application/json', 'text/plain'))
    try:
        app.config['COMPRESS_LEVEL'] = max(1, min(9, int(os.getenv('QUIETPLAY_COMPRESS_LEVEL', '6'))))
    except ValueError:
        app.config['COMPRESS_LEVEL'] = 6
    try:
        app.config['COMPRESS_MIN_SIZE'] = max(256, int(os.getenv('QUIETPLAY_COMPRESS_MIN_BYTES', '1024')))
    except ValueError:
        app.config['COMPRESS_MIN_SIZE'] = 1024
    Compress().init_app(app)


def create_app() -> Flask:
    """Build the Flask app, register blueprints and initialize services.

    The playback ticker is not started here; ``run.py`` starts it so tests
    and tooling can import the app without a background thread.
    """
    setup_logging()
    logger = setup_logger("quietplay")

    app = Flask(__name__)
    _configure_compression(app)

    get_rate_limiter()
    get_service_manager()

    for blueprint in (health_bp, playback_bp, schedules_bp, settings_bp, tracks_bp):
        app.register_blueprint(blueprint)
    register_error_handlers(app)

    @app.after_request
    def after_request(response: Response):
        response.headers['Access-Control-Allow-Origin'] = os.getenv('QUIETPLAY_CORS_ORIGIN', '*')
        response.headers['Access-Control-Allow-Headers'] = 'Content-Type'
        response.headers['Access-Control-Allow-Methods'] = 'GET,PUT,POST,DELETE,OPTIONS'
        try:
            return add_rate_limit_headers(response)
        except RuntimeError as exc:
            logging.debug(f"Rate limit headers skipped: {exc}")
            return response

    logger.info("🎵 QuietPlay app created")
    return app


app = create_app()
