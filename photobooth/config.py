"""
Configuration management for the Photo Booth
Loads settings from YAML files with environment variable overrides
"""

import os
import yaml
from pathlib import Path
from typing import Any, Dict, List, Optional
from pydantic import BaseModel, Field
from loguru import logger


class AppConfig(BaseModel):
    """Main application configuration"""

    # Flask settings
    SECRET_KEY: str = Field(default_factory=lambda: os.urandom(24).hex())
    FLASK_ENV: str = "development"
    DEBUG: bool = True
    TESTING: bool = False

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/app.log"

    # Framing
    FRAME_WIDTH: int = Field(default=600, gt=0)
    CAPTION_MAX_LENGTH: int = 25
    CAPTION_FONT_PATH: Optional[str] = "assets/fonts/Caveat-Regular.ttf"

    # Develop pacing (seconds); presentational only
    FEED_DELAY: float = Field(default=0.8, ge=0)
    PACING_DELAY: float = Field(default=0.6, ge=0)

    # Surface used when the presentation layer does not report its size
    SURFACE_WIDTH_DEFAULT: int = 300
    SURFACE_HEIGHT_DEFAULT: int = 500
    RANDOM_SEED: Optional[int] = None

    # Uploads
    MAX_UPLOAD_SIZE: int = 20 * 1024 * 1024  # 20MB
    ALLOWED_EXTENSIONS: List[str] = [".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp"]


def load_yaml_config(file_path: str) -> Dict:
    """Load configuration from YAML file"""
    path = Path(file_path)
    if not path.exists():
        logger.warning(f"Config file not found: {file_path}")
        return {}

    try:
        with open(path, 'r', encoding='utf-8') as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading config file {file_path}: {e}")
        return {}


def load_config(environment: str = "development", overrides: Dict[str, Any] = None) -> AppConfig:
    """Load configuration with environment-specific overrides"""

    base_config = load_yaml_config("config/settings.yaml")
    env_config = load_yaml_config(f"config/settings_{environment}.yaml")

    # env file overrides base
    config_dict = {**base_config, **env_config}

    env_overrides = {
        'FLASK_ENV': os.getenv('FLASK_ENV', environment),
        'LOG_LEVEL': os.getenv('LOG_LEVEL'),
        'SECRET_KEY': os.getenv('SECRET_KEY'),
        'CAPTION_FONT_PATH': os.getenv('CAPTION_FONT_PATH'),
    }
    env_overrides = {k: v for k, v in env_overrides.items() if v is not None}
    config_dict.update(env_overrides)

    if 'FLASK_ENV' in config_dict:
        config_dict['DEBUG'] = config_dict['FLASK_ENV'] == 'development'

    if overrides:
        config_dict.update(overrides)

    try:
        return AppConfig(**config_dict)
    except ValueError as e:
        logger.error(f"Configuration validation error: {e}")
        return AppConfig()

