"""
Head pose estimation on face crops.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

import numpy as np

from networks.attributes import HeadPoseModel
from .base import BaseInference, PendingRegion, Result


@dataclass(frozen=True)
class HeadPoseResult(Result):
    """
    Head pose of one face, in degrees.

    Angles stay at -1 until decoded from the network output.
    """
    angle_y: float = -1.0
    angle_p: float = -1.0
    angle_r: float = -1.0

    def get_angle_y(self) -> float:
        """Yaw."""
        return self.angle_y

    def get_angle_p(self) -> float:
        """Pitch."""
        return self.angle_p

    def get_angle_r(self) -> float:
        """Roll."""
        return self.angle_r


class HeadPoseDetection(BaseInference):
    """One HeadPoseResult per enqueued face, located at the face itself."""

    name = "head_pose"
    model_class = HeadPoseModel
    num_outputs = 3

    def _decode(
        self,
        region: PendingRegion,
        outputs: Dict[str, np.ndarray],
        batch_index: int,
    ) -> List[Result]:
        return [
            HeadPoseResult(
                location=region.roi,
                sequence=region.sequence,
                angle_y=float(self._slot(outputs, self._model.output_angle_y, batch_index)[0]),
                angle_p=float(self._slot(outputs, self._model.output_angle_p, batch_index)[0]),
                angle_r=float(self._slot(outputs, self._model.output_angle_r, batch_index)[0]),
            )
        ]
