"""
Output sink interface.

Per frame the pipeline calls:
    1. feed_frame(frame_data)
    2. accept(source, results) once per inference fetch (via observe_output)
    3. handle_output() to publish and reset for the next frame
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence

from inference.base import Result
from models.frame import FrameData


class BaseOutput(ABC):
    """Receives results read-only; never reaches back into inference units."""

    def __init__(self):
        self._frame: Optional[FrameData] = None
        self._results: Dict[str, List[Result]] = {}

    def feed_frame(self, frame_data: FrameData) -> None:
        """Set the frame the following results belong to."""
        self._frame = frame_data
        self._results = {}

    def accept(self, source: str, results: Sequence[Result]) -> None:
        """Collect results produced by the inference unit named `source`."""
        self._results.setdefault(source, []).extend(results)

    def handle_output(self) -> None:
        """Publish what was collected for the current frame, then reset."""
        try:
            self._publish(self._frame, self._results)
        finally:
            self._frame = None
            self._results = {}

    @abstractmethod
    def _publish(self, frame_data: Optional[FrameData], results: Dict[str, List[Result]]) -> None:
        pass
