"""
Pytest configuration and shared fixtures.
"""

import os
import sys

import numpy as np
import pytest

# Add src to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from inference.engine import Engine, InferRequest, RequestStatus
from inference.errors import EngineBusyError
from models.geometry import BoundingBox
from networks import AgeGenderModel, EmotionsModel, FaceDetectionModel, HeadPoseModel


def head_pose_outputs(model, batch):
    """Angles derived from each slot's mean intensity, so slots are traceable."""
    means = batch.reshape(batch.shape[0], -1).mean(axis=1)
    return {
        model.output_angle_y: means.reshape(-1, 1),
        model.output_angle_p: (-means).reshape(-1, 1),
        model.output_angle_r: (means / 2).reshape(-1, 1),
    }


def age_gender_outputs(model, batch):
    n = batch.shape[0]
    means = batch.reshape(n, -1).mean(axis=1)
    return {
        model.output_age: (means / 1000.0).reshape(n, 1, 1, 1),
        model.output_gender: np.tile(np.array([0.2, 0.8]).reshape(1, 2, 1, 1), (n, 1, 1, 1)),
    }


def emotions_outputs(model, batch):
    n = batch.shape[0]
    probs = np.tile(np.array([0.05, 0.7, 0.1, 0.1, 0.05]).reshape(1, 5, 1, 1), (n, 1, 1, 1))
    return {model.output_name: probs}


class FakeRequest(InferRequest):
    """Request whose outcome is scripted by its FakeEngine."""

    def __init__(self, engine, model):
        self.engine = engine
        self.model = model
        self.inputs = {}
        self.started = False
        self.cancelled = False
        self._outputs = {}

    def set_input(self, name, tensor):
        self.inputs[name] = tensor

    def start_async(self):
        if self.engine.reject_starts > 0:
            self.engine.reject_starts -= 1
            raise EngineBusyError("device busy")
        if self.engine.accept_starts is not None:
            if self.engine.accept_starts == 0:
                raise EngineBusyError("device busy")
            self.engine.accept_starts -= 1
        self.started = True

    def wait(self, timeout=None):
        self.engine.wait_timeouts.append(timeout)
        family = self.model.family
        if self.cancelled:
            return RequestStatus.CANCELLED
        if family in self.engine.hang:
            return RequestStatus.TIMEOUT
        if family in self.engine.fail:
            return RequestStatus.FAILED
        self._outputs = self.engine.respond(self.model, self.inputs[self.model.input_name])
        return RequestStatus.READY

    def get_output(self, name):
        return self._outputs[name]

    def cancel(self):
        self.cancelled = True


class FakeEngine(Engine):
    """
    In-process engine for tests.

    Attributes:
        face_rows: SSD rows (image_id, label, conf, xmin, ymin, xmax, ymax)
            returned by detector requests.
        hang / fail: model families whose requests time out / fail.
        reject_starts: number of upcoming start_async() calls to reject.
        accept_starts: when set, start_async() calls accepted before every
            further one is rejected.
    """

    def __init__(self, supports_batching=True, face_rows=None):
        self._batching = supports_batching
        self.face_rows = list(face_rows or [])
        self.loaded = []
        self.requests = []
        self.wait_timeouts = []
        self.hang = set()
        self.fail = set()
        self.reject_starts = 0
        self.accept_starts = None
        self.responders = {
            "head_pose": head_pose_outputs,
            "age_gender": age_gender_outputs,
            "emotions": emotions_outputs,
            "face_detection": self._detection_outputs,
            "object_detection": self._detection_outputs,
        }

    @property
    def supports_batching(self):
        return self._batching

    def load(self, model):
        self.loaded.append(model)

    def create_request(self, model):
        request = FakeRequest(self, model)
        self.requests.append(request)
        return request

    def respond(self, model, batch):
        return self.responders[model.family](model, batch)

    def _detection_outputs(self, model, batch):
        rows = self.face_rows + [(-1, 0, 0, 0, 0, 0, 0)]
        return {model.output_name: np.array(rows, dtype=np.float32).reshape(1, 1, -1, 7)}


R1 = BoundingBox.from_xywh(10, 10, 50, 50)
R2 = BoundingBox.from_xywh(100, 20, 40, 40)


@pytest.fixture
def temp_config_dir(tmp_path):
    """Create a temporary config directory with default.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()

    default_yaml = config_dir / "default.yaml"
    default_yaml.write_text("""
engine:
  backend: "opencv"
  device: "CPU"
  batching: true
  max_pending_requests: 4

pipeline:
  fetch_timeout: 1.0

inferences:
  - type: "face_detection"
    model: "models/face.xml"
    confidence_threshold: 0.5
  - type: "head_pose"
    model: "models/head-pose.xml"
    max_batch_size: 8

outputs:
  - type: "log"

log_path: "logs/pipeline.log"
log_level: "INFO"
""")
    return config_dir


@pytest.fixture
def frame():
    """480x640 frame with R1 painted 40 and R2 painted 200."""
    img = np.zeros((480, 640, 3), dtype=np.uint8)
    for roi, value in ((R1, 40), (R2, 200)):
        x1, y1, x2, y2 = roi.as_int_tuple()
        img[y1:y2, x1:x2] = value
    return img


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def head_pose_model():
    return HeadPoseModel("head-pose.xml", "head-pose.bin", max_batch_size=2)


@pytest.fixture
def face_model():
    return FaceDetectionModel("face.xml", "face.bin", max_batch_size=1, confidence_threshold=0.5)


@pytest.fixture
def age_gender_model():
    return AgeGenderModel("age-gender.xml", max_batch_size=4)


@pytest.fixture
def emotions_model():
    return EmotionsModel("emotions.xml", max_batch_size=4)


@pytest.fixture
def valid_config():
    """Return a valid configuration dictionary."""
    return {
        "engine": {
            "backend": "opencv",
            "device": "CPU",
            "batching": True,
            "max_pending_requests": 4,
        },
        "pipeline": {
            "fetch_timeout": 1.0,
        },
        "inferences": [
            {
                "type": "face_detection",
                "model": "models/face.xml",
                "weights": "models/face.bin",
                "confidence_threshold": 0.5,
            },
            {
                "type": "head_pose",
                "model": "models/head-pose.xml",
                "max_batch_size": 2,
            },
        ],
        "outputs": [
            {"type": "memory"},
        ],
        "log_path": "logs/test.log",
        "log_level": "INFO",
    }
