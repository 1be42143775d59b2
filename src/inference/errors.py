"""
Error taxonomy for inference units.

Cycle operations (enqueue / submit_request / fetch_results) raise these
internally and report them as a False return value. Only
ModelMismatchError escapes, from load_network.
"""

from __future__ import annotations


class InferenceError(Exception):
    """Base class for inference unit errors."""


class CapacityError(InferenceError):
    """The pending buffer is at the model's maximum batch size."""


class StateError(InferenceError):
    """An operation was called outside its valid unit state."""


class GeometryError(InferenceError):
    """A region is degenerate or not inside its frame."""


class EngineError(InferenceError):
    """The engine rejected, failed or timed out a request."""


class EngineBusyError(EngineError):
    """The engine has no room for another outstanding request."""


class DecodeError(EngineError):
    """An output tensor did not have the layout the unit decodes."""


class ModelMismatchError(InferenceError, ValueError):
    """A model does not match the inference unit it is loaded into."""
