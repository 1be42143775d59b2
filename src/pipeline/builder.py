"""
Build an InferencePipeline from configuration.

Config shape (see config/default.yaml):

    engine:      {backend, device, batching, max_pending_requests}
    pipeline:    {fetch_timeout, stats_log_interval}
    inferences:  [{type, model, weights, max_batch_size, ...}, ...]
    outputs:     [{type, ...options}, ...]

The first inference must be a detector; the rest run on its detections.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from inference import DETECTOR_TYPES, create_engine, create_inference
from inference.engine import Engine
from models.config import Config
from networks import create_model
from outputs import create_output
from .pipeline import InferencePipeline


def build_pipeline(config: Dict[str, Any], engine: Optional[Engine] = None) -> InferencePipeline:
    """
    Create engine, models, units and sinks named by `config`.

    Args:
        config: Configuration dict (e.g. from load_config).
        engine: Engine to share between all units. Built from
            `config["engine"]` when not given.

    Raises:
        ValueError: On unknown names or an invalid unit order.
        ModelMismatchError: If a model does not fit its unit.
    """
    cfg = Config.from_dict(config)
    if not cfg.inferences:
        raise ValueError("At least one inference is required")
    if cfg.inferences[0].type not in DETECTOR_TYPES:
        raise ValueError(
            f"The first inference must be one of: {', '.join(DETECTOR_TYPES)} "
            f"(got '{cfg.inferences[0].type}')"
        )

    if engine is None:
        engine = create_engine(cfg.engine)

    units = []
    for model_cfg in cfg.inferences:
        unit = create_inference(model_cfg.type, engine, fetch_timeout=cfg.pipeline.fetch_timeout)
        unit.load_network(create_model(model_cfg))
        units.append(unit)

    outputs = [create_output(o.type, **o.options) for o in cfg.outputs]
    logging.info(
        f"Pipeline built: {' -> '.join(u.get_name() for u in units)}, "
        f"outputs={[o.type for o in cfg.outputs]}"
    )
    return InferencePipeline(units[0], units[1:], outputs, cfg.pipeline)
