"""
FrameData model for frames handed to the inference pipeline.
"""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Optional, Tuple

import numpy as np

from .geometry import BoundingBox


@dataclass
class FrameData:
    """
    A frame plus the metadata the pipeline carries alongside it.

    Attributes:
        frame: The raw image as a numpy array (BGR, HWC).
        width: Frame width in pixels.
        height: Frame height in pixels.
        timestamp: Unix timestamp when the frame was produced.
        frame_index: Sequential frame number since start.
        source: Identifier of the input the frame came from.
    """
    frame: np.ndarray
    width: int
    height: int
    timestamp: float = field(default_factory=time.time)
    frame_index: int = 0
    source: Optional[str] = None

    @classmethod
    def from_numpy(
        cls,
        frame: np.ndarray,
        timestamp: Optional[float] = None,
        frame_index: int = 0,
        source: Optional[str] = None,
    ) -> "FrameData":
        """Create FrameData from a numpy array."""
        h, w = frame.shape[:2]
        return cls(
            frame=frame,
            width=w,
            height=h,
            timestamp=timestamp if timestamp is not None else time.time(),
            frame_index=frame_index,
            source=source,
        )

    @property
    def size(self) -> Tuple[int, int]:
        """Return (width, height)."""
        return (self.width, self.height)

    @property
    def bounds(self) -> BoundingBox:
        """Box covering the whole frame."""
        return BoundingBox(x1=0, y1=0, x2=self.width, y2=self.height)
