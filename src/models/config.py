"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class EngineConfig:
    """Engine (device context) configuration."""
    backend: str = "opencv"
    device: str = "CPU"
    batching: bool = True
    max_pending_requests: int = 4

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "EngineConfig":
        """Adapter: Create from config dictionary."""
        return cls(
            backend=d.get("backend", "opencv"),
            device=d.get("device", "CPU"),
            batching=d.get("batching", True),
            max_pending_requests=d.get("max_pending_requests", 4),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "backend": self.backend,
            "device": self.device,
            "batching": self.batching,
            "max_pending_requests": self.max_pending_requests,
        }


@dataclass
class ModelConfig:
    """
    One inference unit and the network it runs.

    Attributes:
        type: Model family (face_detection, object_detection, head_pose,
            age_gender, emotions).
        model: Path to the network description (e.g. .xml, .onnx).
        weights: Optional path to the weights file (e.g. .bin).
        max_batch_size: Regions a single request may carry.
        confidence_threshold: Minimum score kept by detectors.
        input_name: Override for the input layer name.
        output_names: Override for the output layer names.
        labels: Class labels, in output order.
        labels_file: File with one label per line; used when labels is empty.
    """
    type: str
    model: str
    weights: Optional[str] = None
    max_batch_size: int = 1
    confidence_threshold: float = 0.5
    input_name: Optional[str] = None
    output_names: Optional[List[str]] = None
    labels: List[str] = field(default_factory=list)
    labels_file: Optional[str] = None

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModelConfig":
        return cls(
            type=d["type"],
            model=d["model"],
            weights=d.get("weights"),
            max_batch_size=d.get("max_batch_size", 1),
            confidence_threshold=d.get("confidence_threshold", 0.5),
            input_name=d.get("input_name"),
            output_names=d.get("output_names"),
            labels=list(d.get("labels") or []),
            labels_file=d.get("labels_file"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "type": self.type,
            "model": self.model,
            "max_batch_size": self.max_batch_size,
            "confidence_threshold": self.confidence_threshold,
        }
        if self.weights is not None:
            d["weights"] = self.weights
        if self.input_name is not None:
            d["input_name"] = self.input_name
        if self.output_names is not None:
            d["output_names"] = list(self.output_names)
        if self.labels:
            d["labels"] = list(self.labels)
        if self.labels_file is not None:
            d["labels_file"] = self.labels_file
        return d


@dataclass
class OutputConfig:
    """Output sink selection."""
    type: str = "log"
    options: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "OutputConfig":
        options = {k: v for k, v in d.items() if k != "type"}
        return cls(type=d.get("type", "log"), options=options)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, **self.options}


@dataclass
class PipelineSettings:
    """Pipeline driver tuning."""
    fetch_timeout: Optional[float] = 1.0
    stats_log_interval: float = 60.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "PipelineSettings":
        return cls(
            fetch_timeout=d.get("fetch_timeout", 1.0),
            stats_log_interval=d.get("stats_log_interval", 60.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fetch_timeout": self.fetch_timeout,
            "stats_log_interval": self.stats_log_interval,
        }


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    engine: EngineConfig = field(default_factory=EngineConfig)
    inferences: List[ModelConfig] = field(default_factory=list)
    outputs: List[OutputConfig] = field(default_factory=list)
    pipeline: PipelineSettings = field(default_factory=PipelineSettings)
    log_path: Optional[str] = "logs/pipeline.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        return cls(
            engine=EngineConfig.from_dict(d.get("engine", {}) or {}),
            inferences=[ModelConfig.from_dict(i) for i in d.get("inferences", []) or []],
            outputs=[OutputConfig.from_dict(o) for o in d.get("outputs", []) or []],
            pipeline=PipelineSettings.from_dict(d.get("pipeline", {}) or {}),
            log_path=d.get("log_path", "logs/pipeline.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert back to dictionary."""
        return {
            "engine": self.engine.to_dict(),
            "inferences": [i.to_dict() for i in self.inferences],
            "outputs": [o.to_dict() for o in self.outputs],
            "pipeline": self.pipeline.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
