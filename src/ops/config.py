"""
Configuration loading and validation.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional, Tuple

import yaml

from inference import DETECTOR_TYPES, INFERENCE_TYPES
from outputs import OUTPUT_TYPES

VALID_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
VALID_ENGINE_BACKENDS = ["opencv"]


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `default.yaml` next to `config_path` (checked in)
    - `config.yaml` next to `config_path` (local overrides)
    - `config_path` itself, when it is neither of the above

    Raises:
        OSError, yaml.YAMLError: If a present file cannot be read or parsed.
    """
    config_dir = os.path.dirname(config_path)
    base_path = os.path.join(config_dir, "default.yaml")
    local_path = os.path.join(config_dir, "config.yaml")
    try:
        merged: Dict[str, Any] = {}
        for path in (base_path, local_path):
            if os.path.exists(path):
                merged = _deep_merge(merged, _read_yaml(path))

        explicit = os.path.abspath(config_path)
        if os.path.exists(config_path) and explicit not in (
            os.path.abspath(base_path),
            os.path.abspath(local_path),
        ):
            merged = _deep_merge(merged, _read_yaml(config_path))
        return merged
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        raise


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ["engine", "inferences", "outputs", "log_path", "log_level"]
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    engine = config.get("engine") or {}
    if not isinstance(engine, dict):
        return False, "engine must be a mapping"
    if engine.get("backend", "opencv") not in VALID_ENGINE_BACKENDS:
        return False, f"engine.backend must be one of: {', '.join(VALID_ENGINE_BACKENDS)}"
    if "batching" in engine and not isinstance(engine["batching"], bool):
        return False, "engine.batching must be true or false"
    if "max_pending_requests" in engine:
        mpr = engine["max_pending_requests"]
        if not isinstance(mpr, int) or mpr <= 0:
            return False, "engine.max_pending_requests must be a positive integer"

    inferences = config.get("inferences")
    if not isinstance(inferences, list) or not inferences:
        return False, "inferences must be a non-empty list"
    for i, inf in enumerate(inferences):
        where = f"inferences[{i}]"
        if not isinstance(inf, dict):
            return False, f"{where} must be a mapping"
        if inf.get("type") not in INFERENCE_TYPES:
            return False, f"{where}.type must be one of: {', '.join(sorted(INFERENCE_TYPES))}"
        if not isinstance(inf.get("model"), str) or not inf.get("model"):
            return False, f"{where}.model is required"
        if "max_batch_size" in inf:
            mbs = inf["max_batch_size"]
            if not isinstance(mbs, int) or mbs <= 0:
                return False, f"{where}.max_batch_size must be a positive integer"
        if "confidence_threshold" in inf:
            ct = inf["confidence_threshold"]
            if not isinstance(ct, (int, float)) or not (0 <= ct <= 1):
                return False, f"{where}.confidence_threshold must be between 0 and 1"
    if inferences[0].get("type") not in DETECTOR_TYPES:
        return False, f"inferences[0].type must be a detector: {', '.join(DETECTOR_TYPES)}"

    outputs = config.get("outputs")
    if not isinstance(outputs, list):
        return False, "outputs must be a list"
    for i, out in enumerate(outputs):
        if not isinstance(out, dict) or out.get("type") not in OUTPUT_TYPES:
            return False, f"outputs[{i}].type must be one of: {', '.join(sorted(OUTPUT_TYPES))}"

    pipeline = config.get("pipeline") or {}
    if "fetch_timeout" in pipeline:
        ft = pipeline["fetch_timeout"]
        if ft is not None and (not isinstance(ft, (int, float)) or ft < 0):
            return False, "pipeline.fetch_timeout must be a non-negative number or null"

    if config["log_level"] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None
