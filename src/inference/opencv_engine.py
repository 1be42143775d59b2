"""
OpenCV DNN engine.

Loads networks with cv2.dnn (OpenVINO IR, ONNX, Caffe, TensorFlow, ...) and
runs forward passes on a single worker thread, which stands in for the
device queue: requests start immediately and are waited on later.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import CancelledError, Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

import cv2
import numpy as np

from models.config import EngineConfig
from networks.base import BaseModel
from .engine import Engine, InferRequest, RequestStatus
from .errors import EngineBusyError, EngineError


@dataclass(frozen=True)
class OpenCVEngineConfig:
    device: str = "CPU"
    batching: bool = True
    max_pending_requests: int = 4

    @classmethod
    def from_engine_config(cls, cfg: EngineConfig) -> "OpenCVEngineConfig":
        return cls(
            device=cfg.device,
            batching=cfg.batching,
            max_pending_requests=cfg.max_pending_requests,
        )


# device name -> (backend attr, target attr) on cv2.dnn
_DEVICES = {
    "CPU": ("DNN_BACKEND_OPENCV", "DNN_TARGET_CPU"),
    "OPENCL": ("DNN_BACKEND_OPENCV", "DNN_TARGET_OPENCL"),
    "OPENCL_FP16": ("DNN_BACKEND_OPENCV", "DNN_TARGET_OPENCL_FP16"),
    "MYRIAD": ("DNN_BACKEND_INFERENCE_ENGINE", "DNN_TARGET_MYRIAD"),
    "CUDA": ("DNN_BACKEND_CUDA", "DNN_TARGET_CUDA"),
}


def resolve_device(device: str) -> Tuple[int, int]:
    """Map a device name to cv2.dnn (backend, target) constants."""
    try:
        backend_name, target_name = _DEVICES[device.upper()]
    except KeyError:
        raise ValueError(
            f"Unsupported device '{device}'. Expected one of: {', '.join(_DEVICES)}"
        ) from None
    return getattr(cv2.dnn, backend_name), getattr(cv2.dnn, target_name)


class OpenCVInferRequest(InferRequest):
    def __init__(self, engine: "OpenCVEngine", net, output_names: Sequence[str]):
        self._engine = engine
        self._net = net
        self._output_names = list(output_names)
        self._inputs: Dict[str, np.ndarray] = {}
        self._outputs: Dict[str, np.ndarray] = {}
        self._future: Optional[Future] = None

    def set_input(self, name: str, tensor: np.ndarray) -> None:
        self._inputs[name] = tensor

    def start_async(self) -> None:
        if self._future is not None:
            raise EngineError("request already started")
        self._future = self._engine.submit(self._run)

    def _run(self) -> Dict[str, np.ndarray]:
        for name, blob in self._inputs.items():
            self._net.setInput(blob, name)
        outs = self._net.forward(self._output_names)
        return dict(zip(self._output_names, outs))

    def wait(self, timeout: Optional[float] = None) -> RequestStatus:
        if self._future is None:
            return RequestStatus.FAILED
        try:
            self._outputs = self._future.result(timeout=timeout)
        except FutureTimeoutError:
            return RequestStatus.TIMEOUT
        except CancelledError:
            return RequestStatus.CANCELLED
        except cv2.error as e:
            logging.error(f"Forward pass failed: {e}")
            return RequestStatus.FAILED
        except Exception as e:
            logging.error(f"Forward pass failed: {type(e).__name__}: {e}")
            return RequestStatus.FAILED
        return RequestStatus.READY

    def get_output(self, name: str) -> np.ndarray:
        try:
            return self._outputs[name]
        except KeyError:
            raise EngineError(f"no output named '{name}'") from None

    def cancel(self) -> None:
        if self._future is not None:
            self._future.cancel()


class OpenCVEngine(Engine):
    """
    cv2.dnn backed engine.

    One engine is one device context: networks loaded into it share its
    worker thread, so at most one forward pass runs at a time and at most
    `max_pending_requests` requests may be queued or running.
    """

    def __init__(self, cfg: OpenCVEngineConfig):
        self.cfg = cfg
        self._backend, self._target = resolve_device(cfg.device)
        self._networks: Dict[Tuple[str, str], object] = {}
        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="opencv-engine")
        self._pending = 0
        self._pending_lock = threading.Lock()

    @property
    def supports_batching(self) -> bool:
        return self.cfg.batching

    @staticmethod
    def _key(model: BaseModel) -> Tuple[str, str]:
        return (model.model_path, model.weights_path or "")

    def load(self, model: BaseModel) -> None:
        key = self._key(model)
        if key in self._networks:
            return
        try:
            net = cv2.dnn.readNet(model.model_path, model.weights_path or "")
        except cv2.error as e:
            raise EngineError(f"Failed to load network {model.model_path}: {e}") from e
        net.setPreferableBackend(self._backend)
        net.setPreferableTarget(self._target)
        self._networks[key] = net
        logging.info(f"Loaded network {model.model_path} on {self.cfg.device}")

    def create_request(self, model: BaseModel) -> InferRequest:
        net = self._networks.get(self._key(model))
        if net is None:
            raise EngineError(f"network {model.model_path} is not loaded")
        return OpenCVInferRequest(self, net, model.output_names)

    def submit(self, fn) -> Future:
        """Queue `fn` on the worker thread, respecting max_pending_requests."""
        with self._pending_lock:
            if self._pending >= self.cfg.max_pending_requests:
                raise EngineBusyError(
                    f"{self._pending} requests already pending on {self.cfg.device}"
                )
            self._pending += 1
        future = self._executor.submit(fn)
        future.add_done_callback(self._release)
        return future

    def _release(self, _future: Future) -> None:
        with self._pending_lock:
            self._pending -= 1

    @property
    def pending_requests(self) -> int:
        with self._pending_lock:
            return self._pending

    def close(self) -> None:
        """Stop the worker thread, dropping queued requests."""
        self._executor.shutdown(wait=True, cancel_futures=True)

    def __enter__(self) -> "OpenCVEngine":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
