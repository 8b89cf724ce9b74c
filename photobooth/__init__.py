"""
Photo Booth - Flask Application Factory
Virtual instant-print camera: develop photos into framed prints and scatter them on a desk
"""

import os
import random
from pathlib import Path
from flask import Flask
from loguru import logger
from dotenv import load_dotenv

from .config import load_config
from .framer import create_framer
from .lifecycle import LifecycleManager
from .spatial import SpatialModel


def create_app(config_overrides=None, config_name=None):
    """Flask application factory"""

    load_dotenv()

    app = Flask(__name__)

    environment = config_name or os.getenv('FLASK_ENV', 'development')
    config = load_config(environment, config_overrides)
    app.config.update(config.model_dump())

    setup_logging(app)

    app.extensions['photobooth'] = create_booth(app.config)

    from . import routes
    app.register_blueprint(routes.bp)

    logger.info(f"Photo Booth initialized in {environment} mode")

    return app


def create_booth(config) -> LifecycleManager:
    """Wire the framer, spatial model and lifecycle from app config"""
    seed = config.get('RANDOM_SEED')
    rng = random.Random(seed) if seed is not None else random.Random()

    return LifecycleManager(
        framer=create_framer(config.get('CAPTION_FONT_PATH')),
        spatial=SpatialModel(rng),
        frame_width=config.get('FRAME_WIDTH', 600),
        feed_delay=config.get('FEED_DELAY', 0.0),
        pacing_delay=config.get('PACING_DELAY', 0.0),
        surface_size=(config.get('SURFACE_WIDTH_DEFAULT', 300), config.get('SURFACE_HEIGHT_DEFAULT', 500)),
    )


def setup_logging(app):
    """Configure loguru logging"""
    log_level = app.config.get('LOG_LEVEL', 'INFO')
    log_file = app.config.get('LOG_FILE', 'logs/app.log')

    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    app.extensions['log_sink_id'] = logger.add(
        log_file,
        rotation="1 day",
        retention="30 days",
        level=log_level,
        format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{function}:{line} | {message}"
    )
