"""
Tests for the age/gender and emotions classifiers.
"""

import numpy as np
import pytest

from conftest import R1, R2
from inference.age_gender import AgeGenderDetection, AgeGenderResult
from inference.emotions import EmotionsDetection, EmotionsResult
from networks import EmotionsModel


class TestAgeGender:
    def test_decode(self, engine, age_gender_model, frame):
        unit = AgeGenderDetection(engine)
        unit.load_network(age_gender_model)
        assert unit.enqueue(frame, R1)
        assert unit.enqueue(frame, R2)
        assert unit.submit_request()
        assert unit.fetch_results()

        first, second = unit.get_results()
        assert first.location == R1
        assert second.location == R2
        # age_conv3 is age / 100; the fake reports mean / 1000
        assert first.get_age() == pytest.approx(4.0)
        assert second.get_age() == pytest.approx(20.0)
        assert first.get_male_probability() == pytest.approx(0.8)
        assert first.is_male

    def test_sentinels(self):
        result = AgeGenderResult(location=R1)
        assert result.age == -1
        assert result.male_prob == -1
        assert not result.is_male

    def test_name_and_input_size(self, engine, age_gender_model, frame):
        unit = AgeGenderDetection(engine)
        unit.load_network(age_gender_model)
        unit.enqueue(frame, R1)
        unit.submit_request()
        assert unit.get_name() == "age_gender"
        assert engine.requests[0].inputs["data"].shape == (1, 3, 62, 62)


class TestEmotions:
    def test_decode(self, engine, emotions_model, frame):
        unit = EmotionsDetection(engine)
        unit.load_network(emotions_model)
        assert unit.enqueue(frame, R2)
        assert unit.submit_request()
        assert unit.fetch_results()

        result = unit.get_location_result(0)
        assert isinstance(result, EmotionsResult)
        assert result.location == R2
        assert result.get_label() == "happy"
        assert result.confidence == pytest.approx(0.7)

    def test_custom_labels(self, engine, frame):
        model = EmotionsModel("emotions.xml", labels=["a", "b", "c", "d", "e"])
        unit = EmotionsDetection(engine)
        unit.load_network(model)
        unit.enqueue(frame, R1)
        unit.submit_request()
        assert unit.fetch_results()
        assert unit.get_location_result(0).label == "b"

    def test_label_count_mismatch_fails_cycle(self, engine, frame):
        model = EmotionsModel("emotions.xml", labels=["neutral", "happy"])
        unit = EmotionsDetection(engine)
        unit.load_network(model)
        unit.enqueue(frame, R1)
        unit.submit_request()
        assert unit.fetch_results() is False
        assert unit.get_results_length() == 0

    def test_sentinels(self):
        result = EmotionsResult(location=R1)
        assert result.label == ""
        assert result.confidence == -1

    def test_observe_output_does_not_mutate(self, engine, emotions_model, frame):
        received = []

        class Sink:
            def accept(self, source, results):
                received.append((source, results))

        unit = EmotionsDetection(engine)
        unit.load_network(emotions_model)
        unit.enqueue(frame, R1)
        unit.submit_request()
        unit.fetch_results()

        unit.observe_output(Sink())
        unit.observe_output(Sink())
        assert received[0] == received[1]
        assert received[0][0] == "emotions"
        assert unit.get_results_length() == 1
        assert np.isclose(received[0][1][0].confidence, 0.7)
