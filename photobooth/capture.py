"""
Input adapters for the Photo Booth
Turns uploaded files and captured camera frames into SourceImage objects
"""

import base64
import binascii
import re
from pathlib import Path
from typing import List

from loguru import logger
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from .errors import CaptureError, FileTooLargeError, InvalidImageFormatError, ValidationError
from .models import SourceImage


DATA_URL_PATTERN = re.compile(r'^data:(?P<mime>image/[\w.+-]+)?(?P<base64>;base64)?,(?P<payload>.*)$', re.DOTALL)


def validate_upload(filename: str, size: int, allowed_extensions: List[str], max_size: int):
    """Reject uploads with an unsupported extension or over the size limit"""
    suffix = Path(filename).suffix.lower()
    if suffix not in allowed_extensions:
        raise InvalidImageFormatError(filename, suffix or None)

    if size > max_size:
        raise FileTooLargeError(filename, size / (1024 * 1024), max_size / (1024 * 1024))


def source_from_upload(upload: FileStorage, allowed_extensions: List[str], max_size: int) -> SourceImage:
    """Build a SourceImage from a multipart file upload"""
    if upload is None or not upload.filename:
        raise ValidationError("No photo file selected")

    # secure_filename drops non-ASCII stems along with their dot, so the
    # extension is judged on the name the browser sent
    suffix = Path(upload.filename).suffix.lower()
    filename = secure_filename(upload.filename)
    if Path(filename).suffix.lower() != suffix:
        filename = f"photo{suffix}"

    upload.seek(0, 2)
    size = upload.tell()
    upload.seek(0)
    validate_upload(upload.filename, size, allowed_extensions, max_size)

    data = upload.read()
    source = SourceImage.from_bytes(data, filename=filename)
    if source.size is None:
        raise InvalidImageFormatError(filename, upload.mimetype)

    logger.info(f"Accepted upload {filename} as {source.id} ({source.width}x{source.height})")
    return source


def source_from_data_url(data_url: str, max_size: int) -> SourceImage:
    """
    Build a SourceImage from a frame grabbed by the browser camera.

    The presentation layer snaps the frame to a canvas and posts it as a
    ``data:image/jpeg;base64,...`` URL. Anything that does not decode to
    an image is a capture failure and never reaches the booth.
    """
    if not data_url or not isinstance(data_url, str):
        raise CaptureError("no frame was received from the camera")

    match = DATA_URL_PATTERN.match(data_url.strip())
    if not match or not match.group('base64'):
        raise CaptureError("frame is not a base64 image data URL")

    try:
        data = base64.b64decode(match.group('payload'), validate=True)
    except (binascii.Error, ValueError) as e:
        raise CaptureError(f"frame payload is not valid base64 ({e})") from e

    if len(data) > max_size:
        raise FileTooLargeError("camera frame", len(data) / (1024 * 1024), max_size / (1024 * 1024))

    source = SourceImage.from_bytes(data, filename="capture")
    if source.size is None:
        raise CaptureError("frame data is not a readable image")

    logger.info(f"Accepted camera frame as {source.id} ({source.width}x{source.height})")
    return source
