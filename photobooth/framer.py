"""
Framer module for the Photo Booth.

This module handles:
- Decoding uploaded and captured photos into pixel data
- Center-cropping the photo to a square and fitting it into the print opening
- Drawing the paper, depth shading and inner border of the instant print
- Burning the handwritten caption into the bottom band
- Encoding the composed print as PNG
"""

import io
import math
from pathlib import Path
from typing import Dict, Tuple, Union

from PIL import Image, ImageDraw, ImageFont, ImageOps, UnidentifiedImageError
from loguru import logger

from photobooth.errors import DecodeError, SurfaceError, ValidationError
from photobooth.models import FramedArtifact, SourceImage


FRAME_HEIGHT_RATIO = 1.25
PADDING_RATIO = 0.08
FONT_SIZE_RATIO = 0.1

PAPER_COLOR = (255, 255, 255)
DEPTH_COLOR = (240, 240, 240)
BORDER_COLOR = (229, 229, 229)
INK_COLOR = (55, 65, 81)

# Largest surface a browser canvas will hand out
MAX_SURFACE_SIDE = 32767
MAX_SURFACE_AREA = 268_435_456

ELLIPSIS = "..."

SourceLike = Union[bytes, bytearray, str, Path, SourceImage, Image.Image]


class FrameGeometry:
    """Proportions of an instant print for a given output width."""

    def __init__(self, width: int):
        self.width = width
        self.height = round(width * FRAME_HEIGHT_RATIO)
        self.padding = width * PADDING_RATIO
        self.photo_size = width - 2 * self.padding

    @classmethod
    def for_width(cls, width: int) -> "FrameGeometry":
        return cls(width)

    @property
    def photo_box(self) -> Tuple[float, float, float, float]:
        """Exact square opening as (left, top, right, bottom)."""
        return (self.padding, self.padding,
                self.padding + self.photo_size, self.padding + self.photo_size)

    @property
    def pixel_photo_box(self) -> Tuple[int, int, int, int]:
        """Photo opening snapped to whole pixels; always square."""
        left = round(self.padding)
        right = max(left + 1, round(self.padding + self.photo_size))
        return (left, left, right, right)

    @property
    def caption_band(self) -> Tuple[float, float]:
        """Vertical extent of the blank strip below the photo."""
        return (self.padding + self.photo_size, float(self.height))

    @property
    def font_size(self) -> int:
        return math.floor(self.width * FONT_SIZE_RATIO)

    @property
    def caption_max_width(self) -> float:
        return self.width - 2 * self.padding

    def __repr__(self) -> str:
        return f"FrameGeometry({self.width}x{self.height}, padding={self.padding:.2f})"


def compute_crop_box(source_width: int, source_height: int) -> Tuple[float, float, float, float]:
    """
    Centered square crop of the source as (left, top, right, bottom).

    Landscape sources lose equal strips on the left and right; portrait
    and square sources lose equal strips on the top and bottom.
    """
    if source_width > source_height:
        left = (source_width - source_height) / 2
        return (left, 0.0, left + source_height, float(source_height))

    top = (source_height - source_width) / 2
    return (0.0, top, float(source_width), top + source_width)


class Framer:
    """Turns a photo plus caption into a framed instant print."""

    def __init__(self, font_path: str = None):
        self.font_path = font_path
        self._fonts: Dict[int, ImageFont.ImageFont] = {}
        self._font_warning_logged = False

    def decode(self, source: SourceLike, source_id: str = None) -> Image.Image:
        """Decode a source into a fully loaded, upright PIL image."""
        if isinstance(source, Image.Image):
            return source

        if isinstance(source, SourceImage):
            source_id = source_id or source.id
            data = source.data
        elif isinstance(source, (bytes, bytearray)):
            data = bytes(source)
        else:
            try:
                data = Path(source).read_bytes()
            except (OSError, TypeError) as e:
                raise DecodeError(source_id, f"Could not read source: {e}") from e

        try:
            image = Image.open(io.BytesIO(data))
            image.load()
            image = ImageOps.exif_transpose(image)
        except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
            raise DecodeError(source_id, str(e)) from e

        logger.debug(f"Decoded source {source_id or ''}: {image.size} {image.mode}")
        return image

    def frame(self, source: SourceLike, caption: str = "", target_width: int = 600) -> bytes:
        """Decode, compose and encode a framed print."""
        image = self.decode(source)
        return self.encode(self.compose(image, caption, target_width))

    def build_artifact(self, source: SourceImage, image: Image.Image, target_width: int) -> FramedArtifact:
        """Compose an already decoded source into an immutable artifact."""
        canvas = self.compose(image, source.caption, target_width)
        return FramedArtifact(
            id=source.id,
            png=self.encode(canvas),
            width=canvas.width,
            height=canvas.height,
            caption=(source.caption or "").strip(),
            source_size=image.size,
        )

    def compose(self, image: Image.Image, caption: str = "", target_width: int = 600) -> Image.Image:
        """Lay the photo and caption out on a fresh print canvas."""
        if isinstance(target_width, bool) or not isinstance(target_width, int) or target_width <= 0:
            raise ValidationError(
                f"Frame width must be a positive integer, got {target_width!r}",
                details={'target_width': target_width}
            )

        geometry = FrameGeometry.for_width(target_width)
        canvas = self.create_canvas(geometry)
        draw = ImageDraw.Draw(canvas)

        left, top, right, bottom = geometry.pixel_photo_box
        draw.rectangle([left, top, right - 1, bottom - 1], fill=DEPTH_COLOR)

        photo = image if image.mode == 'RGBA' else image.convert('RGBA')
        photo = photo.resize((right - left, bottom - top), Image.Resampling.LANCZOS,
                             box=compute_crop_box(*image.size))
        canvas.paste(photo, (left, top), photo)

        draw.rectangle([left, top, right - 1, bottom - 1], outline=BORDER_COLOR, width=1)

        if caption and caption.strip():
            self._draw_caption(draw, caption.strip(), geometry)

        logger.debug(f"Composed print {geometry} from source {image.size}")
        return canvas

    def create_canvas(self, geometry: FrameGeometry) -> Image.Image:
        """Allocate the white paper the print is drawn on."""
        width, height = geometry.width, geometry.height
        if width > MAX_SURFACE_SIDE or height > MAX_SURFACE_SIDE or width * height > MAX_SURFACE_AREA:
            raise SurfaceError(width, height, "exceeds maximum surface size")

        try:
            return Image.new('RGB', (width, height), PAPER_COLOR)
        except (MemoryError, ValueError, OverflowError) as e:
            raise SurfaceError(width, height, str(e)) from e

    def encode(self, canvas: Image.Image) -> bytes:
        buffer = io.BytesIO()
        canvas.save(buffer, format='PNG', compress_level=6)
        return buffer.getvalue()

    def load_font(self, size: int) -> ImageFont.ImageFont:
        """Caption font at the given size, falling back to Pillow's default face."""
        if size in self._fonts:
            return self._fonts[size]

        font = None
        if self.font_path:
            try:
                font = ImageFont.truetype(self.font_path, size)
            except OSError as e:
                if not self._font_warning_logged:
                    logger.warning(f"Caption font {self.font_path} unavailable ({e}), using default font")
                    self._font_warning_logged = True

        if font is None:
            font = ImageFont.load_default(size=size)

        self._fonts[size] = font
        return font

    def _draw_caption(self, draw: ImageDraw.ImageDraw, text: str, geometry: FrameGeometry):
        """Center the caption in the bottom band, shrinking then truncating to fit."""
        font_size = geometry.font_size
        if font_size < 1:
            logger.debug(f"Print too narrow for a caption: {geometry}")
            return

        max_width = geometry.caption_max_width
        min_size = max(1, font_size // 2)
        font = self.load_font(font_size)
        while draw.textlength(text, font=font) > max_width and font_size > min_size:
            font_size -= 1
            font = self.load_font(font_size)

        text = fit_text(draw, text, font, max_width)
        if not text:
            return

        band_top, band_bottom = geometry.caption_band
        center_x = geometry.width / 2
        center_y = band_top + (band_bottom - band_top) / 2 + font_size * 0.1

        bbox = draw.textbbox((0, 0), text, font=font)
        text_width = bbox[2] - bbox[0]
        text_height = bbox[3] - bbox[1]
        draw.text((center_x - text_width / 2 - bbox[0], center_y - text_height / 2 - bbox[1]),
                  text, fill=INK_COLOR, font=font)


def fit_text(draw: ImageDraw.ImageDraw, text: str, font, max_width: float) -> str:
    """Truncate text with an ellipsis until it fits within max_width."""
    if draw.textlength(text, font=font) <= max_width:
        return text

    while text and draw.textlength(text + ELLIPSIS, font=font) > max_width:
        text = text[:-1]
    return text + ELLIPSIS if text else ""


def create_framer(font_path: str = None) -> Framer:
    """Factory function to create a Framer instance."""
    return Framer(font_path)
