"""
Pytest configuration and fixtures for the Photo Booth tests.

Provides Pillow-generated source photos, a deterministic booth and a
Flask test client shared across the test modules.
"""

import io
import random
import shutil
import tempfile
import time
from pathlib import Path

import pytest
from loguru import logger
from PIL import Image

from photobooth import create_app
from photobooth.framer import Framer
from photobooth.lifecycle import LifecycleManager
from photobooth.models import SourceImage
from photobooth.spatial import SpatialModel


RED = (220, 30, 30)
GREEN = (30, 200, 60)
BLUE = (30, 60, 220)


def make_image_bytes(width: int, height: int, color=(120, 150, 200), fmt: str = 'PNG') -> bytes:
    """Encode a flat-colored image."""
    buffer = io.BytesIO()
    Image.new('RGB', (width, height), color).save(buffer, format=fmt)
    return buffer.getvalue()


def make_striped_bytes(width: int, height: int) -> bytes:
    """
    Encode an image whose centered square is green.

    Landscape images get red/blue strips left and right, portrait images
    get them top and bottom, each exactly as wide as a centered square
    crop should trim away.
    """
    img = Image.new('RGB', (width, height), GREEN)
    if width > height:
        trim = (width - height) // 2
        img.paste(RED, (0, 0, trim, height))
        img.paste(BLUE, (width - trim, 0, width, height))
    else:
        trim = (height - width) // 2
        img.paste(RED, (0, 0, width, trim))
        img.paste(BLUE, (0, height - trim, width, height))

    buffer = io.BytesIO()
    img.save(buffer, format='PNG')
    return buffer.getvalue()


def open_png(data: bytes) -> Image.Image:
    img = Image.open(io.BytesIO(data))
    img.load()
    return img


class SlowFramer(Framer):
    """Framer whose decode step takes a while, to hold a develop run open."""

    def __init__(self, delay: float = 0.05):
        super().__init__()
        self.delay = delay

    def decode(self, source, source_id=None):
        time.sleep(self.delay)
        return super().decode(source, source_id)


@pytest.fixture
def framer():
    return Framer()


@pytest.fixture
def seeded_rng():
    return random.Random(42)


@pytest.fixture
def spatial(seeded_rng):
    return SpatialModel(seeded_rng)


@pytest.fixture
def manager(framer, spatial):
    """Booth with no pacing delays and a seeded placement source."""
    return LifecycleManager(framer=framer, spatial=spatial, frame_width=200)


@pytest.fixture
def landscape_source():
    return SourceImage.from_bytes(make_image_bytes(800, 400), caption="A")


@pytest.fixture
def portrait_source():
    return SourceImage.from_bytes(make_image_bytes(400, 800), caption="C")


@pytest.fixture
def broken_source():
    return SourceImage(data=b'definitely not an image', caption="broken")


@pytest.fixture
def temp_work_dir():
    temp_dir = Path(tempfile.mkdtemp())
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def app(temp_work_dir):
    """Create and configure a test Flask application."""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-key',
        'LOG_FILE': str(temp_work_dir / 'logs' / 'app.log'),
        'FRAME_WIDTH': 200,
        'FEED_DELAY': 0,
        'PACING_DELAY': 0,
        'RANDOM_SEED': 7,
        'CAPTION_FONT_PATH': None,
    }, config_name='testing')

    yield app

    logger.remove(app.extensions['log_sink_id'])


@pytest.fixture
def client(app):
    """Create a test client for the Flask application."""
    return app.test_client()
