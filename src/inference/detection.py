"""
SSD-style detectors: faces and generic objects.

Output rows are (image_id, label, confidence, xmin, ymin, xmax, ymax) with
coordinates normalized to the region that was fed in. A row with a negative
image_id terminates the list.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional

import numpy as np

from networks.detection import FaceDetectionModel, ObjectDetectionModel
from .base import BaseInference, PendingRegion, Result


@dataclass(frozen=True)
class FaceDetectionResult(Result):
    confidence: float = -1.0

    def get_confidence(self) -> float:
        return self.confidence


@dataclass(frozen=True)
class ObjectDetectionResult(Result):
    confidence: float = -1.0
    class_id: int = -1
    label: Optional[str] = None

    def get_confidence(self) -> float:
        return self.confidence

    def get_label(self) -> Optional[str]:
        return self.label


class FaceDetection(BaseInference):
    """Finds faces in a region; any number of results per region."""

    name = "face_detection"
    model_class = FaceDetectionModel
    num_outputs = 1

    def _rows(self, outputs: Dict[str, np.ndarray], batch_index: int):
        """Yield (row, box) for rows of this slot that pass the threshold."""
        blob = outputs[self._model.output_name]
        if blob.shape[-1] != FaceDetectionModel.object_size:
            raise ValueError(
                f"expected {FaceDetectionModel.object_size} values per detection, got {blob.shape[-1]}"
            )
        for row in blob.reshape(-1, FaceDetectionModel.object_size):
            image_id = int(row[0])
            if image_id < 0:
                break
            if image_id != batch_index:
                continue
            if float(row[2]) < self._model.confidence_threshold:
                continue
            yield row

    def _locate(self, region: PendingRegion, row: np.ndarray):
        box = region.roi.from_normalized(
            float(row[3]), float(row[4]), float(row[5]), float(row[6])
        )
        return None if box.is_degenerate else box

    def _decode(
        self,
        region: PendingRegion,
        outputs: Dict[str, np.ndarray],
        batch_index: int,
    ) -> List[Result]:
        results: List[Result] = []
        for row in self._rows(outputs, batch_index):
            box = self._locate(region, row)
            if box is None:
                continue
            results.append(
                FaceDetectionResult(
                    location=box,
                    sequence=region.sequence,
                    confidence=float(row[2]),
                )
            )
        return results


class ObjectDetection(FaceDetection):
    """Generic SSD detector that also reports class ids and labels."""

    name = "object_detection"
    model_class = ObjectDetectionModel

    def _decode(
        self,
        region: PendingRegion,
        outputs: Dict[str, np.ndarray],
        batch_index: int,
    ) -> List[Result]:
        results: List[Result] = []
        for row in self._rows(outputs, batch_index):
            box = self._locate(region, row)
            if box is None:
                continue
            class_id = int(row[1])
            results.append(
                ObjectDetectionResult(
                    location=box,
                    sequence=region.sequence,
                    confidence=float(row[2]),
                    class_id=class_id,
                    label=self._model.label_for(class_id),
                )
            )
        return results
