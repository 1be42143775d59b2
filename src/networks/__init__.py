"""
Model adapters describing the networks each inference unit runs.
"""

from typing import Dict, Type

from models.config import ModelConfig
from .base import BaseModel, load_labels
from .detection import FaceDetectionModel, ObjectDetectionModel
from .attributes import AgeGenderModel, EmotionsModel, HeadPoseModel

MODEL_TYPES: Dict[str, Type[BaseModel]] = {
    cls.family: cls
    for cls in (
        FaceDetectionModel,
        ObjectDetectionModel,
        HeadPoseModel,
        AgeGenderModel,
        EmotionsModel,
    )
}


def create_model(cfg: ModelConfig) -> BaseModel:
    """Build the model adapter named by `cfg.type`."""
    try:
        model_cls = MODEL_TYPES[cfg.type]
    except KeyError:
        raise ValueError(
            f"Unknown model type '{cfg.type}'. Expected one of: {', '.join(sorted(MODEL_TYPES))}"
        ) from None
    return model_cls.from_config(cfg)


__all__ = [
    "BaseModel",
    "FaceDetectionModel",
    "ObjectDetectionModel",
    "HeadPoseModel",
    "AgeGenderModel",
    "EmotionsModel",
    "MODEL_TYPES",
    "create_model",
    "load_labels",
]
