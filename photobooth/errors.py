"""
Error handling for the Photo Booth.

Provides specific exception types for the failure modes of framing,
capture and upload validation, with enough context for logging and
for the JSON error payloads returned to the presentation layer.
"""

from typing import Dict, List, Any


class PhotoBoothError(Exception):
    """Base exception for all Photo Booth errors."""

    def __init__(self, message: str, details: Dict[str, Any] = None, suggestions: List[str] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.suggestions = suggestions or []

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for JSON serialization."""
        return {
            'error_type': self.__class__.__name__,
            'message': self.message,
            'details': self.details,
            'suggestions': self.suggestions
        }


class ValidationError(PhotoBoothError):
    """Raised when user input validation fails."""
    pass


class FramingError(PhotoBoothError):
    """Raised when turning a source image into a framed print fails."""
    pass


class DecodeError(FramingError):
    """Raised when a source image cannot be decoded into pixel data."""

    def __init__(self, source_id: str = None, reason: str = None):
        super().__init__(
            "Source image could not be decoded",
            details={
                'source_id': source_id,
                'reason': reason
            },
            suggestions=[
                "Check that the file is a JPG, PNG or other common image format",
                "Ensure the file is not truncated or corrupted",
                "Try taking the photo again"
            ]
        )


class SurfaceError(FramingError):
    """Raised when a drawing surface of the required size cannot be allocated."""

    def __init__(self, width: int, height: int, reason: str = None):
        super().__init__(
            f"Could not allocate a {width}x{height} drawing surface",
            details={
                'width': width,
                'height': height,
                'reason': reason
            },
            suggestions=[
                "Use a smaller frame width",
                "Close other applications to free memory"
            ]
        )


class CaptureError(PhotoBoothError):
    """Raised when a live capture frame is missing or unusable."""

    def __init__(self, reason: str):
        super().__init__(
            f"Capture failed: {reason}",
            details={'reason': reason},
            suggestions=[
                "Check that the browser has permission to use the camera",
                "Close other applications that may be using the camera",
                "Upload a photo from disk instead"
            ]
        )


class InvalidImageFormatError(ValidationError):
    """Raised when an uploaded image format is invalid."""

    def __init__(self, filename: str, detected_type: str = None):
        super().__init__(
            f"Invalid image format: {filename}",
            details={
                'filename': filename,
                'detected_type': detected_type
            },
            suggestions=[
                "Use JPG, PNG, GIF, WEBP or BMP images",
                "Convert the file to a supported format",
                "Ensure the file is not corrupted"
            ]
        )


class FileTooLargeError(ValidationError):
    """Raised when an uploaded file exceeds the size limit."""

    def __init__(self, filename: str, size_mb: float, limit_mb: float):
        super().__init__(
            f"File too large: {filename} ({size_mb:.1f}MB exceeds {limit_mb:.1f}MB limit)",
            details={
                'filename': filename,
                'size_mb': size_mb,
                'limit_mb': limit_mb
            },
            suggestions=[
                f"Reduce file size to under {limit_mb:.1f}MB",
                "Resize the photo before uploading"
            ]
        )


def create_error_recovery_suggestions(error: Exception = None, context: Dict[str, Any] = None) -> List[str]:
    """Generate contextual recovery suggestions for any error."""
    suggestions = []

    if isinstance(error, PhotoBoothError):
        suggestions.extend(error.suggestions)

    if context:
        if context.get('failed_count', 0) > 0:
            suggestions.append("Re-upload the photos that did not come out of the camera")

        if context.get('queue_depth', 0) > 0:
            suggestions.append(f"{context['queue_depth']} print(s) are waiting in the camera; release them onto the desk")

    if not suggestions:
        suggestions = [
            "Try the action again",
            "Reload the page if the problem persists"
        ]

    return suggestions
