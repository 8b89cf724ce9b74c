"""
Data model for the Photo Booth
Source images, framed prints and the items placed on the surface
"""

import base64
import io
import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from PIL import Image, UnidentifiedImageError
from loguru import logger


def new_item_id() -> str:
    """Short random id for a freshly uploaded or captured photo"""
    return uuid.uuid4().hex[:9]


class ItemState(str, Enum):
    """Where a photo currently sits in the booth"""
    PENDING = "pending"
    QUEUED = "queued"
    PLACED = "placed"
    REMOVED = "removed"


@dataclass
class SourceImage:
    """An uploaded or captured photo waiting to be developed"""
    data: bytes
    caption: str = ""
    id: str = field(default_factory=new_item_id)
    width: Optional[int] = None
    height: Optional[int] = None
    filename: Optional[str] = None

    @classmethod
    def from_bytes(cls, data: bytes, caption: str = "", filename: str = None) -> "SourceImage":
        """Build a source and probe its dimensions from the image header.

        Dimensions stay ``None`` when the header cannot be read; decoding
        problems surface later, when the photo is developed.
        """
        width = height = None
        try:
            with Image.open(io.BytesIO(data)) as probe:
                width, height = probe.size
        except (UnidentifiedImageError, OSError, ValueError, Image.DecompressionBombError) as e:
            logger.debug(f"Could not probe image header for {filename or 'upload'}: {e}")
        return cls(data=data, caption=caption, width=width, height=height, filename=filename)

    @classmethod
    def from_path(cls, path, caption: str = "") -> "SourceImage":
        path = Path(path)
        return cls.from_bytes(path.read_bytes(), caption=caption, filename=path.name)

    @property
    def size(self) -> Optional[Tuple[int, int]]:
        if self.width is None or self.height is None:
            return None
        return (self.width, self.height)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'caption': self.caption,
            'width': self.width,
            'height': self.height,
            'filename': self.filename,
        }


@dataclass(frozen=True)
class FramedArtifact:
    """A developed instant print: the framed, caption-burned PNG"""
    id: str
    png: bytes
    width: int
    height: int
    caption: str = ""
    source_size: Optional[Tuple[int, int]] = None

    @property
    def data_url(self) -> str:
        return "data:image/png;base64," + base64.b64encode(self.png).decode('ascii')


@dataclass
class PlacedItem:
    """A released print lying on the surface"""
    artifact: FramedArtifact
    x: float
    y: float
    rotation: float
    z_index: int
    scale: float = 1.0
    exclude_from_export: bool = False

    @property
    def id(self) -> str:
        return self.artifact.id

    def to_dict(self, include_bitmap: bool = False) -> Dict[str, Any]:
        result = {
            'id': self.id,
            'x': self.x,
            'y': self.y,
            'rotation': self.rotation,
            'z_index': self.z_index,
            'scale': self.scale,
            'width': self.artifact.width,
            'height': self.artifact.height,
            'caption': self.artifact.caption,
            'image_url': f"/api/placed/{self.id}/image.png",
            'exclude_from_export': self.exclude_from_export,
        }
        if include_bitmap:
            result['data_url'] = self.artifact.data_url
        return result


@dataclass
class DevelopResult:
    """Outcome of one develop run"""
    status: str  # 'completed', 'busy' or 'empty'
    queued: List[str] = field(default_factory=list)
    failed: Dict[str, str] = field(default_factory=dict)

    @property
    def started(self) -> bool:
        return self.status == 'completed'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'status': self.status,
            'queued': list(self.queued),
            'failed': dict(self.failed),
        }


@dataclass
class BoothSnapshot:
    """Read-only view of the booth for the presentation layer"""
    pending: List[SourceImage]
    queue_depth: int
    placed: List[PlacedItem]
    is_developing: bool
    progress: float

    @property
    def progress_percent(self) -> float:
        return self.progress * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pending': [source.to_dict() for source in self.pending],
            'queue_depth': self.queue_depth,
            'placed': [item.to_dict() for item in self.placed],
            'is_developing': self.is_developing,
            'progress': self.progress_percent,
        }
