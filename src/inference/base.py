"""
Base inference contract shared by every model family.

A unit runs one cycle at a time:

    enqueue(frame, roi) ...   buffer regions, no engine work
    submit_request()          hand the buffer to the engine, do not wait
    fetch_results(timeout)    wait, decode, re-anchor to frame coordinates

Results are correlated with their regions through a per-cycle sequence
number assigned at enqueue time, so ordering survives batching as well as
one-request-per-region submission.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import TYPE_CHECKING, Any, ClassVar, Dict, List, Optional, Tuple, Type

import cv2
import numpy as np

from models.geometry import BoundingBox
from networks.base import BaseModel
from .engine import Engine, InferRequest, RequestStatus
from .errors import (
    CapacityError,
    DecodeError,
    EngineError,
    GeometryError,
    InferenceError,
    ModelMismatchError,
    StateError,
)

if TYPE_CHECKING:
    from outputs.base import BaseOutput

# Pixel types cv2.resize accepts
RESIZABLE_DTYPES = frozenset(
    np.dtype(t) for t in (np.uint8, np.uint16, np.int16, np.float32, np.float64)
)


class UnitState(Enum):
    IDLE = "idle"
    BUFFERING = "buffering"
    SUBMITTED = "submitted"


@dataclass(frozen=True)
class Result:
    """
    One decoded entity, anchored to the frame its region was cropped from.

    Attributes:
        location: Box in original frame coordinates.
        sequence: Position of the source region within its cycle.
    """
    location: BoundingBox
    sequence: int = -1

    def to_dict(self) -> Dict[str, Any]:
        d = {f.name: getattr(self, f.name) for f in fields(self)}
        d["location"] = list(self.location.as_tuple())
        return d


@dataclass(frozen=True, eq=False)
class PendingRegion:
    """A (frame, roi) pair waiting for its request to be decoded."""
    sequence: int
    frame: np.ndarray
    roi: BoundingBox


@dataclass
class _Submission:
    request: InferRequest
    regions: List[PendingRegion] = field(default_factory=list)


class BaseInference(ABC):
    """
    Abstract inference unit.

    Subclasses set `name`, `model_class` and `num_outputs`, and implement
    `_decode()` for their output layout. Everything else (state machine,
    capacity and geometry checks, batching, waiting, correlation) lives here.

    The unit is not thread-safe; drive it from one pipeline thread.
    """

    name: ClassVar[str] = "base"
    model_class: ClassVar[Type[BaseModel]] = BaseModel
    num_outputs: ClassVar[int] = 0

    def __init__(self, engine: Engine, fetch_timeout: Optional[float] = None):
        self._engine = engine
        self.fetch_timeout = fetch_timeout
        self._model: Optional[BaseModel] = None
        self._state = UnitState.IDLE
        self._pending: List[PendingRegion] = []
        self._submissions: List[_Submission] = []
        self._results: Tuple[Result, ...] = ()

    @property
    def model(self) -> Optional[BaseModel]:
        return self._model

    @property
    def state(self) -> UnitState:
        return self._state

    @property
    def max_batch_size(self) -> int:
        return self._model.max_batch_size if self._model is not None else 0

    def get_enqueued_num(self) -> int:
        """Regions buffered or in flight for the current cycle."""
        return len(self._pending)

    def load_network(self, model: BaseModel) -> None:
        """
        Bind `model` to this unit. Can only be done once.

        Raises:
            ModelMismatchError: If the model is of another family or declares
                a different number of outputs than this unit decodes.
            StateError: If a network is already loaded.
        """
        if self._model is not None:
            raise StateError(f"[{self.get_name()}] a network is already loaded")
        if not isinstance(model, self.model_class) or model.family != self.model_class.family:
            raise ModelMismatchError(
                f"[{self.get_name()}] expected a {self.model_class.__name__} "
                f"({self.model_class.family}), got {type(model).__name__} ({model.family})"
            )
        if len(model.output_names) != self.num_outputs:
            raise ModelMismatchError(
                f"[{self.get_name()}] network declares {len(model.output_names)} outputs "
                f"{list(model.output_names)}, expected {self.num_outputs}"
            )
        self._engine.load(model)
        self._model = model
        logging.info(f"[{self.get_name()}] loaded network {model!r}")

    def enqueue(self, frame: np.ndarray, roi: BoundingBox) -> bool:
        """
        Buffer one region of `frame` for the next request.

        Returns False when the buffer is full, the region is degenerate or
        outside the frame, the frame's channels or dtype do not suit the
        network, or a request is still outstanding.
        """
        try:
            self._check_state("enqueue", UnitState.IDLE, UnitState.BUFFERING)
            if len(self._pending) >= self._model.max_batch_size:
                raise CapacityError(
                    f"buffer full ({self._model.max_batch_size} regions)"
                )
            self._check_region(frame, roi)
        except InferenceError as e:
            self._report("enqueue", e)
            return False

        self._pending.append(PendingRegion(sequence=len(self._pending), frame=frame, roi=roi))
        self._state = UnitState.BUFFERING
        return True

    def submit_request(self) -> bool:
        """
        Start inference for every buffered region without waiting.

        With a batching engine all regions go out as one request; otherwise
        each region gets its own request. If the engine rejects any of them
        the ones already started are cancelled and the buffer is kept.
        """
        submissions: List[_Submission] = []
        try:
            self._check_state("submit_request", UnitState.BUFFERING)
            try:
                tensors = [self._model.preprocess(r.roi.crop(r.frame)) for r in self._pending]
                if self._engine.supports_batching:
                    batches = [(list(self._pending), np.stack(tensors))]
                else:
                    batches = [([r], t[np.newaxis]) for r, t in zip(self._pending, tensors)]
            except (cv2.error, ValueError) as e:
                raise EngineError(f"preprocessing failed: {e}") from e

            try:
                for regions, blob in batches:
                    request = self._engine.create_request(self._model)
                    request.set_input(self._model.input_name, blob)
                    request.start_async()
                    submissions.append(_Submission(request=request, regions=regions))
            except EngineError:
                for s in submissions:
                    s.request.cancel()
                raise
        except InferenceError as e:
            self._report("submit_request", e)
            return False

        self._submissions = submissions
        self._state = UnitState.SUBMITTED
        logging.debug(
            f"[{self.get_name()}] submitted {len(self._pending)} region(s) "
            f"in {len(submissions)} request(s)"
        )
        return True

    def fetch_results(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the outstanding request(s) and decode them.

        `timeout` (seconds) falls back to `fetch_timeout`; None waits
        indefinitely. On success the result buffer is replaced and the unit
        returns to IDLE. On timeout or engine failure the requests are
        cancelled, the result buffer is emptied and the unit returns to IDLE.
        Called with no outstanding request it returns False and leaves the
        result buffer as it was.
        """
        if self._state is not UnitState.SUBMITTED:
            self._report(
                "fetch_results",
                StateError(f"no outstanding request (state={self._state.value})"),
            )
            return False

        if timeout is None:
            timeout = self.fetch_timeout
        try:
            self._wait_all(timeout)
            results = self._decode_all()
        except EngineError as e:
            self._report("fetch_results", e)
            self.reset()
            self._results = ()
            return False

        self._results = tuple(results)
        self._submissions = []
        self._pending = []
        self._state = UnitState.IDLE
        return True

    def reset(self) -> None:
        """Cancel outstanding requests and drop buffered regions."""
        for s in self._submissions:
            s.request.cancel()
        self._submissions = []
        self._pending = []
        self._state = UnitState.IDLE

    def get_results_length(self) -> int:
        return len(self._results)

    def get_location_result(self, idx: int) -> Result:
        """
        Result at `idx`. Valid until the next successful or failed fetch.

        Raises:
            IndexError: If `idx` is out of range.
        """
        if not 0 <= idx < len(self._results):
            raise IndexError(
                f"[{self.get_name()}] result index {idx} out of range ({len(self._results)} results)"
            )
        return self._results[idx]

    def get_results(self) -> Tuple[Result, ...]:
        return self._results

    def get_name(self) -> str:
        return self.name

    def observe_output(self, output: "BaseOutput") -> None:
        """Push the current results to an output sink."""
        output.accept(self.get_name(), self._results)

    @abstractmethod
    def _decode(
        self,
        region: PendingRegion,
        outputs: Dict[str, np.ndarray],
        batch_index: int,
    ) -> List[Result]:
        """
        Decode the results belonging to one region.

        Args:
            region: The region as it was enqueued.
            outputs: Output tensors of the request that carried the region.
            batch_index: Slot of the region within that request.
        """
        pass

    def _check_state(self, op: str, *valid: UnitState) -> None:
        if self._model is None:
            raise StateError(f"{op} called before load_network")
        if self._state not in valid:
            raise StateError(
                f"{op} called in state {self._state.value} "
                f"(valid: {', '.join(s.value for s in valid)})"
            )

    def _check_region(self, frame: np.ndarray, roi: BoundingBox) -> None:
        if not isinstance(frame, np.ndarray) or frame.ndim not in (2, 3):
            raise GeometryError("frame must be an image array")
        if frame.dtype not in RESIZABLE_DTYPES:
            raise GeometryError(f"unsupported frame dtype {frame.dtype}")
        channels = frame.shape[2] if frame.ndim == 3 else 1
        if channels != self._model.input_channels:
            raise GeometryError(
                f"frame has {channels} channel(s), network expects {self._model.input_channels}"
            )
        h, w = frame.shape[:2]
        if roi.is_degenerate:
            raise GeometryError(f"degenerate region {roi.as_tuple()}")
        if not roi.within(w, h):
            raise GeometryError(f"region {roi.as_tuple()} is outside the {w}x{h} frame")
        if roi.crop(frame).size == 0:
            raise GeometryError(f"region {roi.as_tuple()} covers no whole pixel")

    def _wait_all(self, timeout: Optional[float]) -> None:
        deadline = None if timeout is None else time.monotonic() + timeout
        for s in self._submissions:
            remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
            status = s.request.wait(remaining)
            if status is RequestStatus.TIMEOUT:
                raise EngineError(f"request timed out after {timeout}s")
            if status is not RequestStatus.READY:
                raise EngineError(f"request finished with status {status.value}")

    def _decode_all(self) -> List[Result]:
        decoded: Dict[int, List[Result]] = {}
        try:
            for s in self._submissions:
                outputs = {
                    name: np.asarray(s.request.get_output(name))
                    for name in self._model.output_names
                }
                for batch_index, region in enumerate(s.regions):
                    decoded[region.sequence] = self._decode(region, outputs, batch_index)
        except (KeyError, IndexError, ValueError) as e:
            raise DecodeError(f"malformed output: {e}") from e
        return [r for seq in sorted(decoded) for r in decoded[seq]]

    @staticmethod
    def _slot(outputs: Dict[str, np.ndarray], name: str, batch_index: int) -> np.ndarray:
        """Flattened values of output `name` for one batch slot."""
        blob = outputs[name]
        return blob.reshape(blob.shape[0], -1)[batch_index]

    def _report(self, op: str, error: InferenceError) -> None:
        if isinstance(error, (CapacityError, GeometryError)):
            logging.warning(f"[{self.get_name()}] {op} rejected: {error}")
        else:
            logging.error(f"[{self.get_name()}] {op} failed: {error}")
