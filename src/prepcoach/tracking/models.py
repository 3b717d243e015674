"""Data models for clients and their daily logs."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

VALID_GENDERS = ("male", "female")
VALID_GOAL_TYPES = ("cut", "bulk", "maintain")
REST_DAY = "rest"

# Plausible measurement ranges: field -> (min, max)
BODY_COMPOSITION_RANGES = {
    "height": (100.0, 250.0),       # cm
    "weight": (20.0, 300.0),        # kg
    "body_fat": (0.0, 100.0),       # %
    "muscle_mass": (0.0, 200.0),    # kg
    "visceral_fat": (1.0, 30.0),    # level
    "bmi": (10.0, 50.0),
}


@dataclass
class ClientProfile:
    """A coached client with their goal and current nutrition targets."""

    client_id: str
    name: str
    gender: str  # 'male' or 'female'
    goal_type: str  # 'cut', 'bulk' or 'maintain'
    diet_start_date: Optional[date] = None
    target_weight: Optional[float] = None
    competition_date: Optional[date] = None
    calories_target: Optional[float] = None
    protein_target: Optional[float] = None
    carbs_target: Optional[float] = None
    fat_target: Optional[float] = None
    carbs_training_day: Optional[float] = None
    carbs_rest_day: Optional[float] = None
    created_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        if not self.client_id:
            raise ValueError("client_id must not be empty")
        if self.gender not in VALID_GENDERS:
            raise ValueError(f"gender must be one of {VALID_GENDERS}, got '{self.gender}'")
        if self.goal_type not in VALID_GOAL_TYPES:
            raise ValueError(
                f"goal_type must be one of {VALID_GOAL_TYPES}, got '{self.goal_type}'"
            )
        for name in (
            "calories_target",
            "protein_target",
            "carbs_target",
            "fat_target",
            "carbs_training_day",
            "carbs_rest_day",
        ):
            value = getattr(self, name)
            if value is not None and value < 0:
                raise ValueError(f"{name} must not be negative, got {value}")

    @property
    def carbs_cycling_enabled(self) -> bool:
        return self.carbs_training_day is not None and self.carbs_rest_day is not None


@dataclass
class BodyCompositionEntry:
    """A body composition measurement. Any metric may be absent."""

    client_id: str
    date: date
    height: Optional[float] = None
    weight: Optional[float] = None
    body_fat: Optional[float] = None
    muscle_mass: Optional[float] = None
    visceral_fat: Optional[float] = None
    bmi: Optional[float] = None
    record_id: Optional[int] = None

    def __post_init__(self) -> None:
        for name, (low, high) in BODY_COMPOSITION_RANGES.items():
            value = getattr(self, name)
            if value is None:
                continue
            if not low <= value <= high:
                raise ValueError(f"{name} must be between {low:g} and {high:g}, got {value}")

        if self.bmi is None and self.height is not None and self.weight is not None:
            self.bmi = round(self.weight / (self.height / 100) ** 2, 1)

    def to_dict(self) -> dict[str, Any]:
        return {
            "recordId": self.record_id,
            "clientId": self.client_id,
            "date": self.date.isoformat(),
            "height": self.height,
            "weight": self.weight,
            "bodyFat": self.body_fat,
            "muscleMass": self.muscle_mass,
            "visceralFat": self.visceral_fat,
            "bmi": self.bmi,
        }


@dataclass
class NutritionLogEntry:
    """One day of nutrition adherence and intake."""

    client_id: str
    date: date
    compliant: Optional[bool] = None
    calories: Optional[float] = None
    protein_grams: Optional[float] = None
    carbs_grams: Optional[float] = None
    fat_grams: Optional[float] = None
    log_id: Optional[int] = None


@dataclass
class TrainingLogEntry:
    """One training session; ``training_type == 'rest'`` marks a rest day."""

    client_id: str
    date: date
    training_type: str
    log_id: Optional[int] = None

    @property
    def is_training_day(self) -> bool:
        return self.training_type != REST_DAY
