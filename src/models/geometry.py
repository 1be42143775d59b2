"""
Rectangle geometry shared by inference units and results.

All boxes are pixel rectangles in the coordinate space of the frame they
were taken from.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple

import numpy as np


@dataclass(frozen=True)
class BoundingBox:
    """
    A bounding box in pixel coordinates.

    Attributes:
        x1: Left edge x coordinate.
        y1: Top edge y coordinate.
        x2: Right edge x coordinate.
        y2: Bottom edge y coordinate.
    """
    x1: float
    y1: float
    x2: float
    y2: float

    @property
    def width(self) -> float:
        return self.x2 - self.x1

    @property
    def height(self) -> float:
        return self.y2 - self.y1

    @property
    def center(self) -> Tuple[float, float]:
        return ((self.x1 + self.x2) / 2, (self.y1 + self.y2) / 2)

    @property
    def area(self) -> float:
        return self.width * self.height

    @property
    def is_degenerate(self) -> bool:
        """True when the box has no positive area."""
        return self.width <= 0 or self.height <= 0

    def within(self, width: int, height: int) -> bool:
        """Whether the box lies fully inside a frame of the given size."""
        return (
            self.x1 >= 0
            and self.y1 >= 0
            and self.x2 <= width
            and self.y2 <= height
        )

    def crop(self, frame: np.ndarray) -> np.ndarray:
        """Return the view of `frame` covered by this box (no copy)."""
        x1, y1, x2, y2 = self.as_int_tuple()
        return frame[y1:y2, x1:x2]

    def from_normalized(
        self, nx1: float, ny1: float, nx2: float, ny2: float
    ) -> "BoundingBox":
        """
        Map a box given in [0, 1] coordinates relative to this box back into
        the coordinate space this box lives in.

        Coordinates outside [0, 1] are clipped to the edges of this box.
        """
        nx1, ny1, nx2, ny2 = (min(max(v, 0.0), 1.0) for v in (nx1, ny1, nx2, ny2))
        return BoundingBox(
            x1=self.x1 + nx1 * self.width,
            y1=self.y1 + ny1 * self.height,
            x2=self.x1 + nx2 * self.width,
            y2=self.y1 + ny2 * self.height,
        )

    def as_tuple(self) -> Tuple[float, float, float, float]:
        """Return as (x1, y1, x2, y2) tuple."""
        return (self.x1, self.y1, self.x2, self.y2)

    def as_int_tuple(self) -> Tuple[int, int, int, int]:
        """Return as integer (x1, y1, x2, y2) tuple."""
        return (int(self.x1), int(self.y1), int(self.x2), int(self.y2))

    def as_xywh(self) -> Tuple[float, float, float, float]:
        """Return as (x, y, width, height) tuple."""
        return (self.x1, self.y1, self.width, self.height)

    @classmethod
    def from_tuple(cls, t: Tuple[float, float, float, float]) -> "BoundingBox":
        """Create from (x1, y1, x2, y2) tuple."""
        return cls(x1=t[0], y1=t[1], x2=t[2], y2=t[3])

    @classmethod
    def from_xywh(cls, x: float, y: float, w: float, h: float) -> "BoundingBox":
        """Create from (x, y, width, height) format."""
        return cls(x1=x, y1=y, x2=x + w, y2=y + h)

    @classmethod
    def full_frame(cls, frame: np.ndarray) -> "BoundingBox":
        """The box covering the whole of `frame`."""
        h, w = frame.shape[:2]
        return cls(x1=0, y1=0, x2=w, y2=h)
