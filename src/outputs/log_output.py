"""
Output sink that writes results to the log.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional

from inference.base import Result
from models.frame import FrameData
from .base import BaseOutput


class LogOutput(BaseOutput):
    def __init__(self, level: str = "INFO"):
        super().__init__()
        self.level = getattr(logging, level.upper())

    def _publish(self, frame_data: Optional[FrameData], results: Dict[str, List[Result]]) -> None:
        frame_index = frame_data.frame_index if frame_data is not None else -1
        total = sum(len(r) for r in results.values())
        logging.log(self.level, f"[OUTPUT] frame={frame_index} results={total}")
        for source, items in results.items():
            for result in items:
                logging.log(self.level, f"[OUTPUT] {source}: {result.to_dict()}")
