"""
Typed models shared across the pipeline: geometry, frames and configuration.
"""

from .geometry import BoundingBox
from .frame import FrameData
from .config import (
    Config,
    EngineConfig,
    ModelConfig,
    OutputConfig,
    PipelineSettings,
)

__all__ = [
    # Geometry
    "BoundingBox",
    # Frame
    "FrameData",
    # Config
    "Config",
    "EngineConfig",
    "ModelConfig",
    "OutputConfig",
    "PipelineSettings",
]
