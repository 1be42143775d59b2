"""
Model adapters.

A model describes one network: where its files live, the names of its input
and output layers, the input dimensions it expects and how many regions a
single request may carry. It also owns the preprocessing that turns a
region crop into an input tensor, so inference units never resize or
normalize on their own.
"""

from __future__ import annotations

import logging
import os
from typing import ClassVar, List, Optional, Sequence, Tuple

import cv2
import numpy as np

from models.config import ModelConfig


class BaseModel:
    """
    Static description of a network, bound once to an inference unit.

    Subclasses set the class-level defaults for their family; any of them can
    be overridden per instance (and therefore from config).
    """

    family: ClassVar[str] = "base"
    default_input_name: ClassVar[str] = "data"
    default_output_names: ClassVar[Tuple[str, ...]] = ()
    default_input_dims: ClassVar[Tuple[int, int, int]] = (3, 300, 300)
    default_labels: ClassVar[Tuple[str, ...]] = ()

    def __init__(
        self,
        model_path: str,
        weights_path: Optional[str] = None,
        input_name: Optional[str] = None,
        output_names: Optional[Sequence[str]] = None,
        input_dims: Optional[Tuple[int, int, int]] = None,
        max_batch_size: int = 1,
        labels: Optional[Sequence[str]] = None,
    ):
        if max_batch_size < 1:
            raise ValueError(f"max_batch_size must be >= 1, got {max_batch_size}")
        self.model_path = model_path
        self.weights_path = weights_path
        self.input_name = input_name or self.default_input_name
        self.output_names: Tuple[str, ...] = tuple(
            output_names if output_names is not None else self.default_output_names
        )
        self.input_dims: Tuple[int, int, int] = tuple(input_dims or self.default_input_dims)
        self.max_batch_size = max_batch_size
        self.labels: Tuple[str, ...] = tuple(labels if labels else self.default_labels)

    @property
    def input_channels(self) -> int:
        return self.input_dims[0]

    @property
    def input_height(self) -> int:
        return self.input_dims[1]

    @property
    def input_width(self) -> int:
        return self.input_dims[2]

    def preprocess(self, crop: np.ndarray) -> np.ndarray:
        """
        Turn a BGR HWC crop into a CHW float32 tensor of the input size.
        """
        if crop.shape[1] != self.input_width or crop.shape[0] != self.input_height:
            crop = cv2.resize(crop, (self.input_width, self.input_height))
        if crop.ndim == 2:
            crop = crop[:, :, np.newaxis]
        return np.ascontiguousarray(crop.transpose(2, 0, 1), dtype=np.float32)

    def label_for(self, class_id: int) -> str:
        """Label of `class_id`, or its string form when unknown."""
        if 0 <= class_id < len(self.labels):
            return self.labels[class_id]
        return str(class_id)

    @classmethod
    def from_config(cls, cfg: ModelConfig) -> "BaseModel":
        """Adapter: Create a model from its config entry."""
        return cls(
            model_path=cfg.model,
            weights_path=cfg.weights,
            input_name=cfg.input_name,
            output_names=cfg.output_names,
            max_batch_size=cfg.max_batch_size,
            labels=cfg.labels or load_labels(cfg.labels_file),
        )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(model_path={self.model_path!r}, "
            f"inputs={self.input_name!r}, outputs={list(self.output_names)!r}, "
            f"max_batch_size={self.max_batch_size})"
        )


def load_labels(path: Optional[str]) -> List[str]:
    """Read one label per line. Missing or unset paths give no labels."""
    if not path:
        return []
    if not os.path.exists(path):
        logging.warning(f"Labels file not found: {path}")
        return []
    with open(path, "r") as f:
        return [line.strip() for line in f if line.strip()]
