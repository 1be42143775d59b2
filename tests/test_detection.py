"""
Tests for SSD-style detectors and coordinate remapping.
"""

import numpy as np
import pytest

from conftest import FakeEngine
from inference.detection import (
    FaceDetection,
    FaceDetectionResult,
    ObjectDetection,
    ObjectDetectionResult,
)
from inference.errors import ModelMismatchError
from models.geometry import BoundingBox
from networks import FaceDetectionModel, ObjectDetectionModel


def boxes(unit):
    return [r.location.as_tuple() for r in unit.get_results()]


@pytest.fixture
def image():
    return np.zeros((480, 640, 3), dtype=np.uint8)


def detector(face_rows, model=None, unit_cls=FaceDetection):
    engine = FakeEngine(face_rows=face_rows)
    unit = unit_cls(engine)
    unit.load_network(model or FaceDetectionModel("face.xml", confidence_threshold=0.5))
    return unit, engine


class TestFaceDetection:
    def test_full_frame_remap(self, image):
        unit, _ = detector([(0, 1, 0.9, 0.1, 0.2, 0.3, 0.4)])
        assert unit.enqueue(image, BoundingBox.full_frame(image))
        assert unit.submit_request()
        assert unit.fetch_results()

        assert unit.get_results_length() == 1
        result = unit.get_location_result(0)
        assert isinstance(result, FaceDetectionResult)
        assert result.location.as_tuple() == pytest.approx((64, 96, 192, 192), abs=1e-3)
        assert result.get_confidence() == pytest.approx(0.9)

    def test_sub_region_remap(self, image):
        unit, _ = detector([(0, 1, 0.9, 0.5, 0.5, 1.0, 1.0)])
        roi = BoundingBox.from_xywh(100, 50, 200, 100)
        assert unit.enqueue(image, roi)
        assert unit.submit_request()
        assert unit.fetch_results()
        assert boxes(unit)[0] == pytest.approx((200, 100, 300, 150), abs=1e-3)

    def test_multiple_detections_per_region(self, image):
        unit, _ = detector([
            (0, 1, 0.9, 0.0, 0.0, 0.5, 0.5),
            (0, 1, 0.8, 0.5, 0.5, 1.0, 1.0),
        ])
        unit.enqueue(image, BoundingBox.full_frame(image))
        unit.submit_request()
        assert unit.fetch_results()
        assert unit.get_results_length() == 2
        assert boxes(unit)[0] == pytest.approx((0, 0, 320, 240))
        assert boxes(unit)[1] == pytest.approx((320, 240, 640, 480))

    def test_threshold(self, image):
        unit, _ = detector([
            (0, 1, 0.3, 0.1, 0.1, 0.2, 0.2),
            (0, 1, 0.5, 0.3, 0.3, 0.4, 0.4),
        ])
        unit.enqueue(image, BoundingBox.full_frame(image))
        unit.submit_request()
        assert unit.fetch_results()
        assert unit.get_results_length() == 1
        assert unit.get_location_result(0).confidence == pytest.approx(0.5)

    def test_terminator_row(self, image):
        unit, _ = detector([
            (0, 1, 0.9, 0.1, 0.1, 0.2, 0.2),
            (-1, 0, 0, 0, 0, 0, 0),
            (0, 1, 0.9, 0.3, 0.3, 0.4, 0.4),
        ])
        unit.enqueue(image, BoundingBox.full_frame(image))
        unit.submit_request()
        assert unit.fetch_results()
        assert unit.get_results_length() == 1

    def test_coordinates_clipped_to_region(self, image):
        unit, _ = detector([(0, 1, 0.9, -0.2, 0.5, 1.3, 1.1)])
        roi = BoundingBox.from_xywh(100, 100, 100, 100)
        unit.enqueue(image, roi)
        unit.submit_request()
        assert unit.fetch_results()
        assert boxes(unit)[0] == pytest.approx((100, 150, 200, 200))

    def test_degenerate_detection_dropped(self, image):
        unit, _ = detector([(0, 1, 0.9, 0.4, 0.4, 0.4, 0.6)])
        unit.enqueue(image, BoundingBox.full_frame(image))
        unit.submit_request()
        assert unit.fetch_results()
        assert unit.get_results_length() == 0

    def test_no_detections_is_success(self, image):
        unit, _ = detector([])
        unit.enqueue(image, BoundingBox.full_frame(image))
        unit.submit_request()
        assert unit.fetch_results() is True
        assert unit.get_results_length() == 0

    def test_batch_slots_map_to_regions(self, image):
        model = FaceDetectionModel("face.xml", max_batch_size=2)
        unit, _ = detector(
            [
                (1, 1, 0.9, 0.0, 0.0, 1.0, 1.0),
                (0, 1, 0.8, 0.0, 0.0, 0.5, 0.5),
            ],
            model=model,
        )
        left = BoundingBox.from_xywh(0, 0, 100, 100)
        right = BoundingBox.from_xywh(300, 0, 100, 100)
        unit.enqueue(image, left)
        unit.enqueue(image, right)
        unit.submit_request()
        assert unit.fetch_results()

        results = unit.get_results()
        assert [r.sequence for r in results] == [0, 1]
        assert results[0].location.as_tuple() == pytest.approx((0, 0, 50, 50))
        assert results[1].location.as_tuple() == pytest.approx((300, 0, 400, 100))

    def test_wrong_row_size_fails_cycle(self, image):
        unit, engine = detector([])
        engine.responders["face_detection"] = lambda model, batch: {
            model.output_name: np.zeros((1, 1, 4, 5), dtype=np.float32)
        }
        unit.enqueue(image, BoundingBox.full_frame(image))
        unit.submit_request()
        assert unit.fetch_results() is False
        assert unit.get_results_length() == 0

    def test_input_tensor_resized_to_model(self, image):
        unit, engine = detector([])
        unit.enqueue(image, BoundingBox.full_frame(image))
        unit.submit_request()
        assert engine.requests[0].inputs["data"].shape == (1, 3, 300, 300)


class TestObjectDetection:
    def test_labels(self, image):
        model = ObjectDetectionModel(
            "ssd.xml",
            labels=["background", "person", "car"],
            confidence_threshold=0.4,
        )
        unit, _ = detector(
            [
                (0, 2, 0.9, 0.0, 0.0, 0.5, 0.5),
                (0, 7, 0.6, 0.5, 0.5, 1.0, 1.0),
            ],
            model=model,
            unit_cls=ObjectDetection,
        )
        assert unit.get_name() == "object_detection"
        unit.enqueue(image, BoundingBox.full_frame(image))
        unit.submit_request()
        assert unit.fetch_results()

        first, second = unit.get_results()
        assert isinstance(first, ObjectDetectionResult)
        assert first.class_id == 2
        assert first.get_label() == "car"
        assert second.class_id == 7
        assert second.label == "7"

    def test_face_model_rejected_by_object_detection(self):
        unit = ObjectDetection(FakeEngine())
        with pytest.raises(ModelMismatchError):
            unit.load_network(FaceDetectionModel("face.xml"))

    def test_object_model_rejected_by_face_detection(self):
        unit = FaceDetection(FakeEngine())
        with pytest.raises(ModelMismatchError):
            unit.load_network(ObjectDetectionModel("ssd.xml"))
        assert unit.model is None
