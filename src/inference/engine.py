"""
Engine adapter interface.

An engine owns the device context that actually executes networks. Inference
units borrow it: they load their model once, then create one request per
submitted batch (or per region when the engine cannot batch), feed named
input tensors, start the request and later wait for it.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Optional

import numpy as np

from .errors import EngineError

if TYPE_CHECKING:
    from networks.base import BaseModel


class RequestStatus(Enum):
    """Completion status reported by InferRequest.wait()."""
    READY = "ready"
    TIMEOUT = "timeout"
    FAILED = "failed"
    CANCELLED = "cancelled"


class InferRequest(ABC):
    """
    One inference request against a loaded network.

    Lifecycle:
        1. set_input() for every network input
        2. start_async() (or infer() to run synchronously)
        3. wait() until READY
        4. get_output() for every network output
    """

    @abstractmethod
    def set_input(self, name: str, tensor: np.ndarray) -> None:
        """Bind an input blob by layer name."""
        pass

    @abstractmethod
    def start_async(self) -> None:
        """
        Queue the request on the device and return without waiting.

        Raises:
            EngineBusyError: If the device cannot take another request.
            EngineError: If the request cannot be started.
        """
        pass

    def infer(self) -> None:
        """Run the request to completion on the calling thread."""
        self.start_async()
        status = self.wait(None)
        if status is not RequestStatus.READY:
            raise EngineError(f"Synchronous inference finished with status {status.value}")

    @abstractmethod
    def wait(self, timeout: Optional[float] = None) -> RequestStatus:
        """
        Block until the request completes or `timeout` seconds pass.

        A timeout of None waits indefinitely; 0 polls.
        """
        pass

    @abstractmethod
    def get_output(self, name: str) -> np.ndarray:
        """Return an output blob by layer name. Only valid after READY."""
        pass

    @abstractmethod
    def cancel(self) -> None:
        """Abandon the request. Safe to call more than once."""
        pass


class Engine(ABC):
    """Device context that runs compiled networks."""

    @property
    def supports_batching(self) -> bool:
        """Whether one request may carry several regions as a batch."""
        return True

    @abstractmethod
    def load(self, model: "BaseModel") -> None:
        """Compile/load the model's network so requests can be created for it."""
        pass

    @abstractmethod
    def create_request(self, model: "BaseModel") -> InferRequest:
        """Create a fresh request for a previously loaded model."""
        pass
