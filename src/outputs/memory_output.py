"""
Output sink that keeps the latest results in memory.

Lets another thread (a web handler, a test) read what the pipeline last
produced without touching the inference units.
"""

from __future__ import annotations

import threading
from typing import Dict, List, Optional

from inference.base import Result
from models.frame import FrameData
from .base import BaseOutput


class MemoryOutput(BaseOutput):
    def __init__(self):
        super().__init__()
        self._lock = threading.Lock()
        self._latest: Dict[str, List[Result]] = {}
        self._latest_frame_index: Optional[int] = None
        self.frames_handled = 0

    def _publish(self, frame_data: Optional[FrameData], results: Dict[str, List[Result]]) -> None:
        with self._lock:
            self._latest = {source: list(items) for source, items in results.items()}
            self._latest_frame_index = frame_data.frame_index if frame_data is not None else None
            self.frames_handled += 1

    def get_latest(self) -> Dict[str, List[Result]]:
        """Return a copy of the last published results, keyed by source."""
        with self._lock:
            return {source: list(items) for source, items in self._latest.items()}

    @property
    def latest_frame_index(self) -> Optional[int]:
        with self._lock:
            return self._latest_frame_index
