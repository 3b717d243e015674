"""Pure nutrition suggestion engine."""

from prepcoach.engine.engine import generate_nutrition_suggestion, insufficient_data_suggestion
from prepcoach.engine.errors import EngineError, InsufficientDataError, InvalidInputError
from prepcoach.engine.models import (
    MISSING,
    DeadlineInfo,
    Gender,
    GoalType,
    NutritionInput,
    PeakWeekDay,
    Phase,
    SafetyLevel,
    Status,
    StatusReason,
    Suggestion,
    WeeklyAverage,
    WeightSample,
)

__all__ = [
    "MISSING",
    "DeadlineInfo",
    "EngineError",
    "Gender",
    "GoalType",
    "InsufficientDataError",
    "InvalidInputError",
    "NutritionInput",
    "PeakWeekDay",
    "Phase",
    "SafetyLevel",
    "Status",
    "StatusReason",
    "Suggestion",
    "WeeklyAverage",
    "WeightSample",
    "generate_nutrition_suggestion",
    "insufficient_data_suggestion",
]
