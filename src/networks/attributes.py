"""
Attribute models run on face crops: head pose, age/gender and emotions.
"""

from __future__ import annotations

from .base import BaseModel


class HeadPoseModel(BaseModel):
    """Yaw, pitch and roll in degrees, one scalar output each."""
    family = "head_pose"
    default_output_names = ("angle_y_fc", "angle_p_fc", "angle_r_fc")
    default_input_dims = (3, 60, 60)

    @property
    def output_angle_y(self) -> str:
        return self.output_names[0]

    @property
    def output_angle_p(self) -> str:
        return self.output_names[1]

    @property
    def output_angle_r(self) -> str:
        return self.output_names[2]


class AgeGenderModel(BaseModel):
    """Age divided by 100, and [female, male] probabilities."""
    family = "age_gender"
    default_output_names = ("age_conv3", "prob")
    default_input_dims = (3, 62, 62)

    @property
    def output_age(self) -> str:
        return self.output_names[0]

    @property
    def output_gender(self) -> str:
        return self.output_names[1]


class EmotionsModel(BaseModel):
    family = "emotions"
    default_output_names = ("prob_emotion",)
    default_input_dims = (3, 64, 64)
    default_labels = ("neutral", "happy", "sad", "surprise", "anger")

    @property
    def output_name(self) -> str:
        return self.output_names[0]
