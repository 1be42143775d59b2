"""
Output sinks that receive finished results from inference units.
"""

from typing import Any, Dict, Type

from .base import BaseOutput
from .log_output import LogOutput
from .memory_output import MemoryOutput

OUTPUT_TYPES: Dict[str, Type[BaseOutput]] = {
    "log": LogOutput,
    "memory": MemoryOutput,
}


def create_output(output_type: str, **options: Any) -> BaseOutput:
    try:
        output_cls = OUTPUT_TYPES[output_type]
    except KeyError:
        raise ValueError(
            f"Unknown output type '{output_type}'. Expected one of: {', '.join(sorted(OUTPUT_TYPES))}"
        ) from None
    return output_cls(**options)


__all__ = ["BaseOutput", "LogOutput", "MemoryOutput", "OUTPUT_TYPES", "create_output"]
