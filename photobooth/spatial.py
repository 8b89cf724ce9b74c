"""
Spatial model for the Photo Booth surface.

This module handles:
- Scattering freshly released prints across the surface
- The stacking counter that decides which print lies on top
- Keeping print zoom within its allowed range
"""

import random
from typing import Optional

from loguru import logger

from photobooth.models import FramedArtifact, PlacedItem


SURFACE_PADDING = 50
ITEM_FOOTPRINT = (150, 200)
MAX_ROTATION = 20.0

MIN_SCALE = 0.5
MAX_SCALE = 2.5
DEFAULT_SCALE = 1.0


def clamp_scale(scale: float) -> float:
    return max(MIN_SCALE, min(MAX_SCALE, scale))


class SpatialModel:
    """Places prints on the surface and owns the stacking counter."""

    def __init__(self, rng: Optional[random.Random] = None):
        self.rng = rng or random.Random()
        self._top_index = 0

    @property
    def top_index(self) -> int:
        """Highest stacking index issued so far."""
        return self._top_index

    def next_index(self) -> int:
        self._top_index += 1
        return self._top_index

    def place(self, artifact: FramedArtifact, surface_width: float, surface_height: float) -> PlacedItem:
        """
        Scatter a print somewhere on the surface.

        The print's footprint stays clear of every edge by the surface
        padding; on a surface too small for that the print sits at the
        padding offset.
        """
        item_width, item_height = ITEM_FOOTPRINT
        span_x = max(0.0, surface_width - item_width - SURFACE_PADDING * 2)
        span_y = max(0.0, surface_height - item_height - SURFACE_PADDING * 2)

        item = PlacedItem(
            artifact=artifact,
            x=self.rng.random() * span_x + SURFACE_PADDING,
            y=self.rng.random() * span_y + SURFACE_PADDING,
            rotation=self.rng.random() * MAX_ROTATION * 2 - MAX_ROTATION,
            z_index=self.next_index(),
            scale=DEFAULT_SCALE,
        )
        logger.debug(f"Placed {artifact.id} at ({item.x:.1f}, {item.y:.1f}) "
                     f"rot={item.rotation:.1f} z={item.z_index}")
        return item

    def bring_to_front(self, item: PlacedItem) -> int:
        item.z_index = self.next_index()
        return item.z_index

    def rescale(self, item: PlacedItem, delta: float) -> float:
        item.scale = clamp_scale(item.scale + delta)
        return item.scale

    def move(self, item: PlacedItem, x: float, y: float):
        # Dragging is free-form; only the initial placement is bounded
        item.x = x
        item.y = y
