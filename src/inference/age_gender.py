"""
Age and gender classification on face crops.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List

import numpy as np

from networks.attributes import AgeGenderModel
from .base import BaseInference, PendingRegion, Result


@dataclass(frozen=True)
class AgeGenderResult(Result):
    age: float = -1.0
    male_prob: float = -1.0

    def get_age(self) -> float:
        return self.age

    def get_male_probability(self) -> float:
        return self.male_prob

    @property
    def is_male(self) -> bool:
        return self.male_prob > 0.5


class AgeGenderDetection(BaseInference):
    name = "age_gender"
    model_class = AgeGenderModel
    num_outputs = 2

    def _decode(
        self,
        region: PendingRegion,
        outputs: Dict[str, np.ndarray],
        batch_index: int,
    ) -> List[Result]:
        age = self._slot(outputs, self._model.output_age, batch_index)[0]
        # [female, male]
        gender = self._slot(outputs, self._model.output_gender, batch_index)
        return [
            AgeGenderResult(
                location=region.roi,
                sequence=region.sequence,
                age=float(age) * 100.0,
                male_prob=float(gender[1]),
            )
        ]
