"""
SSD-style detector models.

Both families produce a single output of shape [1, 1, N, 7] where every row
is (image_id, label, confidence, xmin, ymin, xmax, ymax) with normalized
coordinates.
"""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

from models.config import ModelConfig
from .base import BaseModel, load_labels


class FaceDetectionModel(BaseModel):
    family = "face_detection"
    default_output_names = ("detection_out",)
    default_input_dims = (3, 300, 300)
    object_size = 7

    def __init__(
        self,
        model_path: str,
        weights_path: Optional[str] = None,
        input_name: Optional[str] = None,
        output_names: Optional[Sequence[str]] = None,
        input_dims: Optional[Tuple[int, int, int]] = None,
        max_batch_size: int = 1,
        labels: Optional[Sequence[str]] = None,
        confidence_threshold: float = 0.5,
    ):
        super().__init__(
            model_path,
            weights_path=weights_path,
            input_name=input_name,
            output_names=output_names,
            input_dims=input_dims,
            max_batch_size=max_batch_size,
            labels=labels,
        )
        if not 0.0 <= confidence_threshold <= 1.0:
            raise ValueError(f"confidence_threshold must be in [0, 1], got {confidence_threshold}")
        self.confidence_threshold = confidence_threshold

    @property
    def output_name(self) -> str:
        return self.output_names[0]

    @classmethod
    def from_config(cls, cfg: ModelConfig) -> "FaceDetectionModel":
        return cls(
            model_path=cfg.model,
            weights_path=cfg.weights,
            input_name=cfg.input_name,
            output_names=cfg.output_names,
            max_batch_size=cfg.max_batch_size,
            labels=cfg.labels or load_labels(cfg.labels_file),
            confidence_threshold=cfg.confidence_threshold,
        )


class ObjectDetectionModel(FaceDetectionModel):
    family = "object_detection"
