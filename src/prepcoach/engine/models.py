"""Input and output models for the nutrition suggestion engine.

Optional numeric inputs are three-state:

- ``MISSING``: the caller did not provide the field at all
- ``None``: the caller explicitly said there is no value ("not yet set")
- a number: a real value, including ``0``

``MISSING`` and ``None`` both mean "no value" for arithmetic, but only a
number is ever treated as a current target, so "not set" and "set to zero"
cannot be confused.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import date, datetime
from enum import Enum
from typing import Any, Optional, Union

from prepcoach.engine.errors import InvalidInputError

# Plausible body weight range (kg) for any sample or target
MIN_BODY_WEIGHT_KG = 20.0
MAX_BODY_WEIGHT_KG = 300.0


class _Missing:
    """Sentinel type for a field that was never provided."""

    _instance: Optional["_Missing"] = None

    def __new__(cls) -> "_Missing":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

Maybe = Union[float, None, _Missing]
MaybeDate = Union[date, None, _Missing]


def is_set(value: Any) -> bool:
    """Return True if an optional value carries a real value."""
    return value is not None and value is not MISSING


def value_or_none(value: Any) -> Any:
    """Collapse MISSING and None to None."""
    return value if is_set(value) else None


class Gender(Enum):
    """Client gender, used for minimum safe calorie floors."""
    MALE = "male"
    FEMALE = "female"


class GoalType(Enum):
    """Body composition goal."""
    CUT = "cut"
    BULK = "bulk"
    MAINTAIN = "maintain"


class Status(Enum):
    """Trajectory status relative to the goal."""
    INSUFFICIENT_DATA = "insufficient_data"
    ON_TRACK = "on_track"
    PLATEAU = "plateau"
    OFF_TRACK = "off_track"


class StatusReason(Enum):
    """Finer-grained cause behind a status."""
    NOT_ENOUGH_WEEKS = "not_enough_weeks"
    IN_RANGE = "in_range"
    MONITORING = "monitoring"      # near-zero rate, not yet confirmed over 2 weeks
    STALLED = "stalled"
    TOO_FAST = "too_fast"
    WRONG_DIRECTION = "wrong_direction"
    DRIFTING = "drifting"          # maintenance goal, outside the band


class SafetyLevel(Enum):
    """Aggressiveness of a required daily deficit."""
    NORMAL = "normal"
    AGGRESSIVE = "aggressive"
    EXTREME = "extreme"

    @property
    def severity(self) -> int:
        return _SAFETY_SEVERITY[self]


_SAFETY_SEVERITY = {
    SafetyLevel.NORMAL: 0,
    SafetyLevel.AGGRESSIVE: 1,
    SafetyLevel.EXTREME: 2,
}


class Phase(Enum):
    """Peak-week phases, in their fixed order."""
    DEPLETION = "depletion"
    FAT_LOAD = "fat_load"
    CARB_LOAD = "carb_load"
    TAPER = "taper"
    SHOW_DAY = "show_day"


_GENDER_ALIASES = {
    "male": Gender.MALE,
    "m": Gender.MALE,
    "female": Gender.FEMALE,
    "f": Gender.FEMALE,
}


def parse_date(value: Any, field_name: str) -> date:
    """Parse a date from a date, datetime, or ISO string.

    Raises:
        InvalidInputError: If the value cannot be interpreted as a date
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            if len(text) > 10:
                return datetime.fromisoformat(text.replace("Z", "+00:00")).date()
            return date.fromisoformat(text)
        except ValueError:
            raise InvalidInputError(field_name, f"unparseable date '{value}'") from None
    raise InvalidInputError(field_name, f"expected a date, got {type(value).__name__}")


def _parse_optional_date(value: Any, field_name: str) -> MaybeDate:
    if not is_set(value):
        return value
    return parse_date(value, field_name)


def _check_number(value: Any, field_name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidInputError(field_name, f"expected a number, got {value!r}")
    if value != value:  # NaN
        raise InvalidInputError(field_name, "value is NaN")
    return float(value)


def _check_body_weight(value: Any, field_name: str) -> float:
    weight = _check_number(value, field_name)
    if not MIN_BODY_WEIGHT_KG <= weight <= MAX_BODY_WEIGHT_KG:
        raise InvalidInputError(
            field_name,
            f"weight {weight} kg outside {MIN_BODY_WEIGHT_KG:.0f}-{MAX_BODY_WEIGHT_KG:.0f} kg",
        )
    return weight


def _check_non_negative(value: Any, field_name: str) -> Maybe:
    if not is_set(value):
        return value
    number = _check_number(value, field_name)
    if number < 0:
        raise InvalidInputError(field_name, f"must not be negative, got {number}")
    return number


@dataclass(frozen=True)
class WeightSample:
    """A single dated body-weight measurement (kg)."""

    date: date
    weight: float

    def to_dict(self) -> dict[str, Any]:
        return {"date": self.date.isoformat(), "weight": self.weight}


@dataclass(frozen=True)
class WeeklyAverage:
    """Average weight over one trailing 7-day window (week 0 = most recent)."""

    week: int
    avg_weight: float

    def to_dict(self) -> dict[str, Any]:
        return {"week": self.week, "avgWeight": self.avg_weight}


@dataclass
class NutritionInput:
    """Everything the engine needs, already fetched by the caller."""

    gender: Gender
    body_weight: float
    goal_type: GoalType
    weekly_weights: list[WeeklyAverage]
    nutrition_compliance: float = 0.0
    avg_daily_calories: Maybe = MISSING
    training_days_per_week: int = 0
    diet_start_date: MaybeDate = MISSING
    target_weight: Maybe = MISSING
    target_date: MaybeDate = MISSING
    current_calories: Maybe = MISSING
    current_protein: Maybe = MISSING
    current_carbs: Maybe = MISSING
    current_fat: Maybe = MISSING
    current_carbs_training_day: Maybe = MISSING
    current_carbs_rest_day: Maybe = MISSING
    weight_samples: list[WeightSample] = field(default_factory=list)

    def __post_init__(self) -> None:
        if isinstance(self.gender, str):
            gender = _GENDER_ALIASES.get(self.gender.strip().lower())
            if gender is None:
                raise InvalidInputError("gender", f"must be 'male' or 'female', got '{self.gender}'")
            self.gender = gender

        if isinstance(self.goal_type, str):
            try:
                self.goal_type = GoalType(self.goal_type.strip().lower())
            except ValueError:
                valid = [g.value for g in GoalType]
                raise InvalidInputError(
                    "goalType", f"must be one of {valid}, got '{self.goal_type}'"
                ) from None

        self.body_weight = _check_body_weight(self.body_weight, "bodyWeight")

        weeks_seen: set[int] = set()
        for entry in self.weekly_weights:
            if isinstance(entry.week, bool) or not isinstance(entry.week, int) or entry.week < 0:
                raise InvalidInputError("weeklyWeights", f"invalid week index {entry.week!r}")
            if entry.week in weeks_seen:
                raise InvalidInputError("weeklyWeights", f"duplicate week index {entry.week}")
            weeks_seen.add(entry.week)
            _check_body_weight(entry.avg_weight, "weeklyWeights")

        for sample in self.weight_samples:
            _check_body_weight(sample.weight, "weightSamples")

        compliance = _check_number(self.nutrition_compliance, "nutritionCompliance")
        if not 0 <= compliance <= 100:
            raise InvalidInputError("nutritionCompliance", f"must be 0-100, got {compliance}")
        self.nutrition_compliance = compliance

        days = _check_number(self.training_days_per_week, "trainingDaysPerWeek")
        if not 0 <= days <= 7:
            raise InvalidInputError("trainingDaysPerWeek", f"must be 0-7, got {days}")
        if days != int(days):
            raise InvalidInputError("trainingDaysPerWeek", f"must be a whole number, got {days}")
        self.training_days_per_week = int(days)

        if is_set(self.target_weight):
            self.target_weight = _check_body_weight(self.target_weight, "targetWeight")

        self.avg_daily_calories = _check_non_negative(self.avg_daily_calories, "avgDailyCalories")
        self.current_calories = _check_non_negative(self.current_calories, "currentCalories")
        self.current_protein = _check_non_negative(self.current_protein, "currentProtein")
        self.current_carbs = _check_non_negative(self.current_carbs, "currentCarbs")
        self.current_fat = _check_non_negative(self.current_fat, "currentFat")
        self.current_carbs_training_day = _check_non_negative(
            self.current_carbs_training_day, "currentCarbsTrainingDay"
        )
        self.current_carbs_rest_day = _check_non_negative(
            self.current_carbs_rest_day, "currentCarbsRestDay"
        )

        self.diet_start_date = _parse_optional_date(self.diet_start_date, "dietStartDate")
        self.target_date = _parse_optional_date(self.target_date, "targetDate")

    @property
    def carbs_cycling_enabled(self) -> bool:
        """Carb cycling is on iff both day-type carb targets are set."""
        return is_set(self.current_carbs_training_day) and is_set(self.current_carbs_rest_day)

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "NutritionInput":
        """Build input from the camelCase wire contract.

        Absent keys become MISSING and explicit nulls stay None.
        ``carbsCyclingEnabled`` is accepted but always re-derived.
        """
        for required in ("gender", "bodyWeight", "goalType"):
            if required not in payload:
                raise InvalidInputError(required, "field is required")

        try:
            weekly = [
                WeeklyAverage(week=w["week"], avg_weight=w["avgWeight"])
                for w in payload.get("weeklyWeights") or []
            ]
            samples = [
                WeightSample(date=parse_date(s["date"], "weightSamples"), weight=s["weight"])
                for s in payload.get("weightSamples") or []
            ]
        except (KeyError, TypeError) as exc:
            raise InvalidInputError("weeklyWeights", f"malformed entry ({exc})") from None

        def opt(key: str) -> Any:
            return payload[key] if key in payload else MISSING

        return cls(
            gender=payload["gender"],
            body_weight=payload["bodyWeight"],
            goal_type=payload["goalType"],
            weekly_weights=weekly,
            nutrition_compliance=payload.get("nutritionCompliance") or 0,
            avg_daily_calories=opt("avgDailyCalories"),
            training_days_per_week=payload.get("trainingDaysPerWeek") or 0,
            diet_start_date=opt("dietStartDate"),
            target_weight=opt("targetWeight"),
            target_date=opt("targetDate"),
            current_calories=opt("currentCalories"),
            current_protein=opt("currentProtein"),
            current_carbs=opt("currentCarbs"),
            current_fat=opt("currentFat"),
            current_carbs_training_day=opt("currentCarbsTrainingDay"),
            current_carbs_rest_day=opt("currentCarbsRestDay"),
            weight_samples=samples,
        )


@dataclass
class DeadlineInfo:
    """Feasibility of reaching the target weight by the target date."""

    is_goal_driven: bool
    weight_to_lose: float
    days_left: int
    required_daily_deficit: int
    safety_level: SafetyLevel
    suggested_cardio_minutes: int
    suggested_daily_steps: int
    extra_cardio_needed: bool
    extra_burn_per_day: int
    cardio_note: str
    predicted_comp_weight: Optional[float]
    will_reach_target: Optional[bool]
    projected_gap: Optional[float]

    def to_dict(self) -> dict[str, Any]:
        return {
            "isGoalDriven": self.is_goal_driven,
            "weightToLose": self.weight_to_lose,
            "daysLeft": self.days_left,
            "requiredDailyDeficit": self.required_daily_deficit,
            "safetyLevel": self.safety_level.value,
            "suggestedCardioMinutes": self.suggested_cardio_minutes,
            "suggestedDailySteps": self.suggested_daily_steps,
            "extraCardioNeeded": self.extra_cardio_needed,
            "extraBurnPerDay": self.extra_burn_per_day,
            "cardioNote": self.cardio_note,
            "predictedCompWeight": self.predicted_comp_weight,
            "willReachTarget": self.will_reach_target,
            "projectedGap": self.projected_gap,
        }


@dataclass
class PeakWeekDay:
    """One day of the peak-week protocol. Water is in ml."""

    days_out: int
    date: date
    label: str
    phase: Phase
    carbs: int
    protein: int
    fat: int
    calories: int
    water: int
    sodium_note: str
    fiber_note: str
    training_note: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "daysOut": self.days_out,
            "date": self.date.isoformat(),
            "label": self.label,
            "phase": self.phase.value,
            "carbs": self.carbs,
            "protein": self.protein,
            "fat": self.fat,
            "calories": self.calories,
            "water": self.water,
            "sodiumNote": self.sodium_note,
            "fiberNote": self.fiber_note,
            "trainingNote": self.training_note,
        }


@dataclass
class Suggestion:
    """Engine output.

    A ``suggested_*`` value of None means "leave this target unchanged";
    callers must only overwrite fields that are not None.
    """

    status: Status
    status_emoji: str
    status_label: str
    status_reason: StatusReason
    message: str
    auto_apply: bool = False
    estimated_tdee: Optional[int] = None
    weekly_weight_change_rate: Optional[float] = None      # kg/week
    weekly_weight_change_percent: Optional[float] = None   # % body weight/week
    suggested_calories: Optional[int] = None
    suggested_protein: Optional[int] = None
    suggested_carbs: Optional[int] = None
    suggested_fat: Optional[int] = None
    suggested_carbs_training_day: Optional[int] = None
    suggested_carbs_rest_day: Optional[int] = None
    calories_delta: int = 0
    protein_delta: int = 0
    carbs_delta: int = 0
    fat_delta: int = 0
    diet_duration_weeks: Optional[int] = None
    diet_break_suggested: bool = False
    warnings: list[str] = field(default_factory=list)
    deadline_info: Optional[DeadlineInfo] = None
    peak_week_plan: Optional[list[PeakWeekDay]] = None

    def suggested_fields(self) -> dict[str, int]:
        """Return only the suggested targets that should be written."""
        values = {
            "calories": self.suggested_calories,
            "protein": self.suggested_protein,
            "carbs": self.suggested_carbs,
            "fat": self.suggested_fat,
            "carbs_training_day": self.suggested_carbs_training_day,
            "carbs_rest_day": self.suggested_carbs_rest_day,
        }
        return {name: value for name, value in values.items() if value is not None}

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "status": self.status.value,
            "statusEmoji": self.status_emoji,
            "statusLabel": self.status_label,
            "statusReason": self.status_reason.value,
            "message": self.message,
            "autoApply": self.auto_apply,
            "estimatedTDEE": self.estimated_tdee,
            "weeklyWeightChangeRate": self.weekly_weight_change_rate,
            "weeklyWeightChangePercent": self.weekly_weight_change_percent,
            "suggestedCalories": self.suggested_calories,
            "suggestedProtein": self.suggested_protein,
            "suggestedCarbs": self.suggested_carbs,
            "suggestedFat": self.suggested_fat,
            "suggestedCarbsTrainingDay": self.suggested_carbs_training_day,
            "suggestedCarbsRestDay": self.suggested_carbs_rest_day,
            "caloriesDelta": self.calories_delta,
            "proteinDelta": self.protein_delta,
            "carbsDelta": self.carbs_delta,
            "fatDelta": self.fat_delta,
            "dietDurationWeeks": self.diet_duration_weeks,
            "dietBreakSuggested": self.diet_break_suggested,
            "warnings": list(self.warnings),
        }
        if self.deadline_info is not None:
            data["deadlineInfo"] = self.deadline_info.to_dict()
        if self.peak_week_plan is not None:
            data["peakWeekPlan"] = [day.to_dict() for day in self.peak_week_plan]
        return data

    def to_json(self, indent: Optional[int] = None) -> str:
        """Serialize deterministically (sorted keys)."""
        return json.dumps(self.to_dict(), indent=indent, sort_keys=True, ensure_ascii=False)
