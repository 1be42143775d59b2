"""
Emotion classification on face crops.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

import numpy as np

from networks.attributes import EmotionsModel
from .base import BaseInference, PendingRegion, Result


@dataclass(frozen=True)
class EmotionsResult(Result):
    label: str = ""
    confidence: float = -1.0

    def get_label(self) -> str:
        return self.label


class EmotionsDetection(BaseInference):
    name = "emotions"
    model_class = EmotionsModel
    num_outputs = 1

    def _decode(
        self,
        region: PendingRegion,
        outputs: Dict[str, np.ndarray],
        batch_index: int,
    ) -> List[Result]:
        probs = self._slot(outputs, self._model.output_name, batch_index)
        if len(probs) != len(self._model.labels):
            raise ValueError(
                f"{len(probs)} emotion scores for {len(self._model.labels)} labels"
            )
        best = int(np.argmax(probs))
        return [
            EmotionsResult(
                location=region.roi,
                sequence=region.sequence,
                label=self._model.labels[best],
                confidence=float(probs[best]),
            )
        ]
