"""
Unit tests for the input adapters.

Tests turning file uploads and camera data URLs into source photos.
"""

import base64
import io

import pytest
from werkzeug.datastructures import FileStorage

from photobooth.capture import source_from_data_url, source_from_upload, validate_upload
from photobooth.errors import (
    CaptureError, FileTooLargeError, InvalidImageFormatError, ValidationError
)
from photobooth.models import SourceImage
from tests.conftest import make_image_bytes


ALLOWED = [".jpg", ".jpeg", ".png"]
LIMIT = 1024 * 1024


def as_upload(data: bytes, filename: str) -> FileStorage:
    return FileStorage(stream=io.BytesIO(data), filename=filename, content_type='image/png')


def as_data_url(data: bytes, mime: str = 'image/jpeg') -> str:
    return f"data:{mime};base64," + base64.b64encode(data).decode('ascii')


class TestUploads:
    """Test file uploads."""

    def test_upload_becomes_source_with_dimensions(self):
        source = source_from_upload(as_upload(make_image_bytes(320, 240), "Holiday Pic.PNG"), ALLOWED, LIMIT)

        assert isinstance(source, SourceImage)
        assert source.size == (320, 240)
        assert source.caption == ""
        assert source.filename == "Holiday_Pic.PNG"
        assert len(source.id) == 9

    def test_each_upload_gets_its_own_id(self):
        data = make_image_bytes(10, 10)
        first = source_from_upload(as_upload(data, "a.png"), ALLOWED, LIMIT)
        second = source_from_upload(as_upload(data, "a.png"), ALLOWED, LIMIT)

        assert first.id != second.id

    def test_unsupported_extension_is_rejected(self):
        with pytest.raises(InvalidImageFormatError) as exc_info:
            source_from_upload(as_upload(b'hello', "notes.txt"), ALLOWED, LIMIT)

        assert exc_info.value.details['detected_type'] == '.txt'

    def test_unreadable_image_is_rejected(self):
        with pytest.raises(InvalidImageFormatError):
            source_from_upload(as_upload(b'not really a png', "fake.png"), ALLOWED, LIMIT)

    def test_oversized_upload_is_rejected(self):
        with pytest.raises(FileTooLargeError):
            validate_upload("big.png", LIMIT + 1, ALLOWED, LIMIT)

    def test_oversized_upload_is_measured_before_reading(self):
        class TrackedStream(io.BytesIO):
            reads = 0

            def read(self, *args):
                TrackedStream.reads += 1
                return super().read(*args)

        upload = FileStorage(stream=TrackedStream(b'\0' * (LIMIT + 1)), filename="big.png")

        with pytest.raises(FileTooLargeError) as exc_info:
            source_from_upload(upload, ALLOWED, LIMIT)

        assert exc_info.value.details['filename'] == "big.png"
        assert TrackedStream.reads == 0

    def test_unicode_filename_keeps_its_extension(self):
        source = source_from_upload(as_upload(make_image_bytes(40, 30), "写真.jpg"), ALLOWED, LIMIT)

        assert source.size == (40, 30)
        assert source.filename == "photo.jpg"

    def test_unicode_filename_with_bad_extension_is_rejected(self):
        with pytest.raises(InvalidImageFormatError) as exc_info:
            source_from_upload(as_upload(b'hello', "メモ.txt"), ALLOWED, LIMIT)

        assert exc_info.value.details['detected_type'] == '.txt'

    def test_missing_filename_is_rejected(self):
        with pytest.raises(ValidationError):
            source_from_upload(as_upload(b'', ""), ALLOWED, LIMIT)


class TestCameraFrames:
    """Test captured camera frames."""

    def test_jpeg_data_url_becomes_source(self):
        source = source_from_data_url(as_data_url(make_image_bytes(64, 48, fmt='JPEG')), LIMIT)

        assert source.size == (64, 48)
        assert source.filename == "capture"

    @pytest.mark.parametrize("payload", [
        None,
        "",
        "http://example.com/cat.jpg",
        "data:image/jpeg,rawnotbase64",
        "data:image/jpeg;base64,@@@not-base64@@@",
        "data:image/jpeg;base64," + base64.b64encode(b'not an image').decode('ascii'),
    ])
    def test_bad_frames_raise_capture_error(self, payload):
        with pytest.raises(CaptureError):
            source_from_data_url(payload, LIMIT)

    def test_oversized_frame_is_rejected(self):
        data = make_image_bytes(64, 48)
        with pytest.raises(FileTooLargeError):
            source_from_data_url(as_data_url(data, 'image/png'), len(data) - 1)
