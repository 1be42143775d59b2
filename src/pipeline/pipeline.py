"""
Pipeline driver.

Runs one detector over each frame and feeds every detected location to the
attribute units (head pose, age/gender, emotions, ...), one
enqueue/submit/fetch cycle per chunk of `max_batch_size` regions. A failed
cycle is logged and the unit reset, so a bad frame yields fewer results
rather than stopping the pipeline.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence

import numpy as np

from inference.base import BaseInference, Result
from inference import DETECTOR_TYPES
from models.config import PipelineSettings
from models.frame import FrameData
from models.geometry import BoundingBox
from outputs.base import BaseOutput


@dataclass
class PipelineStats:
    """Runtime statistics for the pipeline."""
    frame_count: int = 0
    failed_cycles: int = 0
    rejected_regions: int = 0
    result_count: Dict[str, int] = field(default_factory=dict)
    start_time: float = field(default_factory=time.time)
    last_stats_log_time: float = field(default_factory=time.time)


class InferencePipeline:
    """
    Detector -> attribute units -> output sinks.

    Example:
        engine = OpenCVEngine(OpenCVEngineConfig())
        faces = FaceDetection(engine)
        faces.load_network(FaceDetectionModel("face.xml", "face.bin"))
        pose = HeadPoseDetection(engine)
        pose.load_network(HeadPoseModel("pose.xml", "pose.bin", max_batch_size=8))
        pipeline = InferencePipeline(faces, [pose], [LogOutput()])
        results = pipeline.process_frame(FrameData.from_numpy(image))
    """

    def __init__(
        self,
        detector: BaseInference,
        attribute_units: Sequence[BaseInference] = (),
        outputs: Sequence[BaseOutput] = (),
        settings: Optional[PipelineSettings] = None,
    ):
        if detector.get_name() not in DETECTOR_TYPES:
            raise ValueError(
                f"The first inference must be a detector, got '{detector.get_name()}'"
            )
        self.detector = detector
        self.attribute_units = list(attribute_units)
        self.outputs = list(outputs)
        self.settings = settings or PipelineSettings()
        self.stats = PipelineStats()
        self._running = False
        self._callbacks: List[Callable[[FrameData, Dict[str, List[Result]]], None]] = []

    @property
    def units(self) -> List[BaseInference]:
        return [self.detector] + self.attribute_units

    def add_callback(self, callback: Callable[[FrameData, Dict[str, List[Result]]], None]) -> None:
        """
        Add a callback to be called after each frame is processed.

        Args:
            callback: Function taking (frame_data, results) as arguments.
        """
        self._callbacks.append(callback)

    def process_frame(self, frame_data: FrameData) -> Dict[str, List[Result]]:
        """
        Run every unit over one frame.

        Returns results keyed by unit name; detector results first.
        """
        frame = frame_data.frame
        self.stats.frame_count += 1

        for output in self.outputs:
            output.feed_frame(frame_data)

        results: Dict[str, List[Result]] = {}
        detections = self._run_cycles(self.detector, frame, [frame_data.bounds])
        results[self.detector.get_name()] = detections

        rois = [d.location for d in detections]
        for unit in self.attribute_units:
            results[unit.get_name()] = self._run_cycles(unit, frame, rois) if rois else []

        for name, items in results.items():
            self.stats.result_count[name] = self.stats.result_count.get(name, 0) + len(items)

        for output in self.outputs:
            output.handle_output()

        for callback in self._callbacks:
            try:
                callback(frame_data, results)
            except Exception as e:
                logging.warning(f"Callback error: {e}")

        self._handle_periodic_tasks()
        return results

    def run(self, frames: Iterable[FrameData]) -> None:
        """Process frames until the iterable is exhausted or stop() is called."""
        self._running = True
        self.stats = PipelineStats()
        try:
            logging.info(f"Pipeline started: units={[u.get_name() for u in self.units]}")
            for frame_data in frames:
                if not self._running:
                    break
                self.process_frame(frame_data)
        except KeyboardInterrupt:
            logging.info("Pipeline interrupted by user")
        finally:
            self._running = False
            for unit in self.units:
                unit.reset()
            logging.info(
                f"Pipeline stopped: frames={self.stats.frame_count}, "
                f"failed_cycles={self.stats.failed_cycles}"
            )

    def stop(self) -> None:
        """Signal the pipeline to stop after the current frame."""
        self._running = False

    def _run_cycles(
        self, unit: BaseInference, frame: np.ndarray, rois: List[BoundingBox]
    ) -> List[Result]:
        if unit.model is None:
            logging.error(f"[{unit.get_name()}] skipped: no network loaded")
            return []

        collected: List[Result] = []
        queue = list(rois)
        while queue:
            while queue and unit.get_enqueued_num() < unit.max_batch_size:
                if not unit.enqueue(frame, queue.pop(0)):
                    self.stats.rejected_regions += 1
            if unit.get_enqueued_num() == 0:
                continue

            if not (unit.submit_request() and unit.fetch_results(self.settings.fetch_timeout)):
                self.stats.failed_cycles += 1
                logging.warning(f"[{unit.get_name()}] cycle failed, dropping its regions")
                unit.reset()
                continue

            collected.extend(unit.get_results())
            for output in self.outputs:
                unit.observe_output(output)
        return collected

    def _handle_periodic_tasks(self) -> None:
        now = time.time()
        if now - self.stats.last_stats_log_time >= self.settings.stats_log_interval:
            elapsed = max(now - self.stats.start_time, 1e-6)
            logging.info(
                f"Pipeline stats: frames={self.stats.frame_count}, "
                f"fps={self.stats.frame_count / elapsed:.1f}, "
                f"failed_cycles={self.stats.failed_cycles}, "
                f"results={self.stats.result_count}"
            )
            self.stats.last_stats_log_time = now
