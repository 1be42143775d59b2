"""
Pipeline module.

The pipeline runs a detector over each frame, feeds the detections to the
attribute units and hands everything to the output sinks.
"""

from .pipeline import InferencePipeline, PipelineStats
from .builder import build_pipeline

__all__ = [
    "InferencePipeline",
    "PipelineStats",
    "build_pipeline",
]
