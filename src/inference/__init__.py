"""
Inference units and the engine interface they drive.

Every unit implements the same enqueue -> submit_request -> fetch_results
cycle (see base.BaseInference); units are selected by name when a pipeline
is built.
"""

from typing import Dict, Optional, Type

from models.config import EngineConfig
from .base import BaseInference, PendingRegion, Result, UnitState
from .engine import Engine, InferRequest, RequestStatus
from .errors import (
    CapacityError,
    DecodeError,
    EngineBusyError,
    EngineError,
    GeometryError,
    InferenceError,
    ModelMismatchError,
    StateError,
)
from .detection import FaceDetection, FaceDetectionResult, ObjectDetection, ObjectDetectionResult
from .head_pose import HeadPoseDetection, HeadPoseResult
from .age_gender import AgeGenderDetection, AgeGenderResult
from .emotions import EmotionsDetection, EmotionsResult
from .opencv_engine import OpenCVEngine, OpenCVEngineConfig

INFERENCE_TYPES: Dict[str, Type[BaseInference]] = {
    cls.name: cls
    for cls in (
        FaceDetection,
        ObjectDetection,
        HeadPoseDetection,
        AgeGenderDetection,
        EmotionsDetection,
    )
}

DETECTOR_TYPES = ("face_detection", "object_detection")


def create_inference(
    name: str, engine: Engine, fetch_timeout: Optional[float] = None
) -> BaseInference:
    """Instantiate the inference unit registered under `name`."""
    try:
        unit_cls = INFERENCE_TYPES[name]
    except KeyError:
        raise ValueError(
            f"Unknown inference '{name}'. Expected one of: {', '.join(sorted(INFERENCE_TYPES))}"
        ) from None
    return unit_cls(engine, fetch_timeout=fetch_timeout)


def create_engine(cfg: EngineConfig) -> Engine:
    """Build the engine named by `cfg.backend`."""
    if cfg.backend == "opencv":
        return OpenCVEngine(OpenCVEngineConfig.from_engine_config(cfg))
    raise ValueError(f"Unknown engine backend '{cfg.backend}'. Expected one of: opencv")


__all__ = [
    "BaseInference",
    "PendingRegion",
    "Result",
    "UnitState",
    "Engine",
    "InferRequest",
    "RequestStatus",
    "InferenceError",
    "CapacityError",
    "StateError",
    "GeometryError",
    "EngineError",
    "EngineBusyError",
    "DecodeError",
    "ModelMismatchError",
    "FaceDetection",
    "FaceDetectionResult",
    "ObjectDetection",
    "ObjectDetectionResult",
    "HeadPoseDetection",
    "HeadPoseResult",
    "AgeGenderDetection",
    "AgeGenderResult",
    "EmotionsDetection",
    "EmotionsResult",
    "OpenCVEngine",
    "OpenCVEngineConfig",
    "INFERENCE_TYPES",
    "DETECTOR_TYPES",
    "create_inference",
    "create_engine",
]
