"""
Photo lifecycle for the Photo Booth.

Every photo moves through the booth in one direction:

    PENDING  -> uploaded or captured, caption still editable
    QUEUED   -> developed into a print, waiting inside the camera
    PLACED   -> released onto the surface
    REMOVED  -> thrown away (from PENDING or PLACED)

The LifecycleManager owns the three collections and is the only thing
allowed to move photos between them. Everything it hands out is a copy;
changes go through its methods.
"""

import asyncio
import threading
from collections import deque
from dataclasses import replace
from typing import Callable, Deque, Dict, List, Optional

from loguru import logger

from photobooth.errors import FramingError
from photobooth.framer import Framer
from photobooth.models import (
    BoothSnapshot, DevelopResult, FramedArtifact, ItemState, PlacedItem, SourceImage
)
from photobooth.spatial import SpatialModel


ProgressCallback = Callable[[float], None]


class LifecycleManager:
    """State machine over pending uploads, the release queue and placed prints."""

    def __init__(self,
                 framer: Framer = None,
                 spatial: SpatialModel = None,
                 frame_width: int = 600,
                 feed_delay: float = 0.0,
                 pacing_delay: float = 0.0,
                 surface_size: tuple = (300, 500)):
        self.framer = framer or Framer()
        self.spatial = spatial or SpatialModel()
        self.frame_width = frame_width
        self.feed_delay = feed_delay
        self.pacing_delay = pacing_delay
        self.surface_size = surface_size

        self._pending: List[SourceImage] = []
        self._queued: Deque[FramedArtifact] = deque()
        self._placed: Dict[str, PlacedItem] = {}
        self._states: Dict[str, ItemState] = {}

        self._developing = False
        self._progress = 0.0

        # Request threads share one booth; never held across an await
        self._lock = threading.RLock()

    # Read access

    @property
    def pending(self) -> List[SourceImage]:
        with self._lock:
            return [replace(source) for source in self._pending]

    @property
    def queued(self) -> List[FramedArtifact]:
        with self._lock:
            return list(self._queued)

    @property
    def queue_depth(self) -> int:
        with self._lock:
            return len(self._queued)

    @property
    def placed(self) -> List[PlacedItem]:
        """Placed prints, bottom of the stack first."""
        with self._lock:
            items = sorted(self._placed.values(), key=lambda item: item.z_index)
            return [replace(item) for item in items]

    @property
    def is_developing(self) -> bool:
        return self._developing

    @property
    def progress(self) -> float:
        """Fraction of the current develop run that has been processed."""
        return self._progress

    def state_of(self, item_id: str) -> Optional[ItemState]:
        with self._lock:
            return self._states.get(item_id)

    def get_placed(self, item_id: str) -> Optional[PlacedItem]:
        with self._lock:
            item = self._placed.get(item_id)
            return replace(item) if item is not None else None

    def snapshot(self) -> BoothSnapshot:
        with self._lock:
            return BoothSnapshot(
                pending=self.pending,
                queue_depth=len(self._queued),
                placed=self.placed,
                is_developing=self._developing,
                progress=self._progress,
            )

    def export_items(self) -> List[PlacedItem]:
        """Placed prints in stacking order, minus anything flagged UI-only."""
        return [item for item in self.placed if not item.exclude_from_export]

    # Pending uploads

    def add_pending(self, source: SourceImage) -> SourceImage:
        stored = replace(source)
        with self._lock:
            self._pending.append(stored)
            self._states[stored.id] = ItemState.PENDING
            count = len(self._pending)
        logger.debug(f"Added pending photo {stored.id} ({count} pending)")
        return replace(stored)

    def update_caption(self, item_id: str, text: str) -> bool:
        with self._lock:
            source = self._find_pending(item_id)
            if source is None:
                return False
            source.caption = text
            return True

    def remove_pending(self, item_id: str) -> bool:
        with self._lock:
            source = self._find_pending(item_id)
            if source is None:
                return False
            self._pending.remove(source)
            self._states[item_id] = ItemState.REMOVED
        logger.debug(f"Removed pending photo {item_id}")
        return True

    def _find_pending(self, item_id: str) -> Optional[SourceImage]:
        for source in self._pending:
            if source.id == item_id:
                return source
        return None

    # Develop

    async def develop(self, on_progress: ProgressCallback = None) -> DevelopResult:
        """
        Develop every photo pending at call time into a queued print.

        Photos are handled one at a time in arrival order. A photo that
        fails to decode or frame is logged and dropped; the rest of the
        batch carries on. A second call while a run is in flight is
        rejected rather than queued, even from another thread.
        """
        with self._lock:
            if self._developing:
                busy = True
            elif not self._pending:
                return DevelopResult(status='empty')
            else:
                busy = False
                self._developing = True
                batch = list(self._pending)

        if busy:
            logger.warning("Develop requested while a develop run is in flight; ignoring")
            return DevelopResult(status='busy')

        self._set_progress(0.0, on_progress)
        total = len(batch)
        result = DevelopResult(status='completed')
        logger.info(f"Developing {total} photo(s)")

        try:
            if self.feed_delay:
                await asyncio.sleep(self.feed_delay)

            for index, source in enumerate(batch):
                if self.state_of(source.id) is ItemState.PENDING:
                    artifact = await self._develop_one(source, result)
                    if artifact is not None:
                        self._enqueue(artifact, result)
                else:
                    logger.debug(f"Skipping {source.id}: removed before it was developed")

                self._set_progress((index + 1) / total, on_progress)

                if self.pacing_delay:
                    await asyncio.sleep(self.pacing_delay)
        finally:
            with self._lock:
                developed = {source.id for source in batch}
                self._pending[:] = [source for source in self._pending if source.id not in developed]
                for source in batch:
                    if self._states.get(source.id) is ItemState.PENDING:
                        self._states[source.id] = ItemState.REMOVED
                self._developing = False
            self._set_progress(0.0, on_progress)

        logger.info(f"Develop finished: {len(result.queued)} queued, {len(result.failed)} failed")
        return result

    async def _develop_one(self, source: SourceImage, result: DevelopResult) -> Optional[FramedArtifact]:
        try:
            image = await asyncio.to_thread(self.framer.decode, source)
            with self._lock:
                caption = source.caption
            return self.framer.build_artifact(replace(source, caption=caption), image, self.frame_width)
        except FramingError as e:
            logger.error(f"Failed to frame photo {source.id}: {e.message} {e.details}")
            result.failed[source.id] = e.message
            return None
        except Exception as e:
            logger.exception(f"Unexpected error framing photo {source.id}: {e}")
            result.failed[source.id] = str(e)
            return None

    def _enqueue(self, artifact: FramedArtifact, result: DevelopResult):
        with self._lock:
            # removal may land while the decode is awaited
            if self._states.get(artifact.id) is not ItemState.PENDING:
                return
            self._queued.append(artifact)
            self._states[artifact.id] = ItemState.QUEUED
        result.queued.append(artifact.id)

    def _set_progress(self, value: float, on_progress: ProgressCallback = None):
        self._progress = value
        if on_progress is not None:
            on_progress(value)

    # Release and the surface

    def release(self, surface_width: float = None, surface_height: float = None) -> Optional[PlacedItem]:
        """Eject the oldest queued print onto the surface."""
        default_width, default_height = self.surface_size
        with self._lock:
            if not self._queued:
                return None

            artifact = self._queued.popleft()
            item = self.spatial.place(artifact,
                                      surface_width or default_width,
                                      surface_height or default_height)
            self._placed[artifact.id] = item
            self._states[artifact.id] = ItemState.PLACED
            remaining = len(self._queued)
        logger.info(f"Released print {artifact.id} ({remaining} left in queue)")
        return replace(item)

    def remove_placed(self, item_id: str) -> bool:
        with self._lock:
            item = self._placed.pop(item_id, None)
            if item is None:
                return False
            self._states[item_id] = ItemState.REMOVED
        logger.debug(f"Removed placed print {item_id}")
        return True

    def bring_to_front(self, item_id: str) -> Optional[int]:
        with self._lock:
            item = self._placed.get(item_id)
            if item is None:
                return None
            return self.spatial.bring_to_front(item)

    def rescale(self, item_id: str, delta: float) -> Optional[float]:
        with self._lock:
            item = self._placed.get(item_id)
            if item is None:
                return None
            return self.spatial.rescale(item, delta)

    def move_placed(self, item_id: str, x: float, y: float) -> bool:
        with self._lock:
            item = self._placed.get(item_id)
            if item is None:
                return False
            self.spatial.move(item, x, y)
            return True

    def set_export_excluded(self, item_id: str, excluded: bool = True) -> bool:
        """Flag a placed print as UI-only so export snapshots leave it out."""
        with self._lock:
            item = self._placed.get(item_id)
            if item is None:
                return False
            item.exclude_from_export = excluded
            return True
