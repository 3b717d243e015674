"""Macro target adjustment.

Turns a classified trajectory and an estimated TDEE into new calorie,
protein, carbohydrate and fat targets.

- Protein is set from body weight and never lowered.
- Calories are nudged from TDEE by a goal- and status-specific percentage.
  Without a TDEE, the current target is shifted by a fixed delta instead.
- Fat takes a floor (share of calories, and g/kg) and carbs take the rest.
- Targets that end up equal to the current value are returned as None, so
  the caller only overwrites what actually changed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from prepcoach.config.settings import EngineConfig
from prepcoach.engine.models import (
    Gender,
    GoalType,
    NutritionInput,
    StatusReason,
    value_or_none,
)
from prepcoach.engine.status import Classification

logger = logging.getLogger(__name__)

MIN_CALORIES = {
    Gender.MALE: 1500,
    Gender.FEMALE: 1200,
}

# Protein floor in g/kg body weight
PROTEIN_PER_KG = {
    GoalType.CUT: 2.0,        # higher during a deficit to retain lean mass
    GoalType.BULK: 1.8,
    GoalType.MAINTAIN: 1.8,
}

MIN_FAT_PER_KG = 0.8          # hormonal health minimum
MAX_FAT_PER_KG_BULK = 1.2
MIN_CARBS = 50
MIN_REST_DAY_CARBS = 30

# Calorie target as a fraction of TDEE, by goal and cause
CALORIE_ADJUSTMENT_PCT = {
    GoalType.CUT: {
        StatusReason.STALLED: -0.15,
        StatusReason.WRONG_DIRECTION: -0.15,
        StatusReason.TOO_FAST: -0.10,
    },
    GoalType.BULK: {
        StatusReason.STALLED: 0.10,
        StatusReason.WRONG_DIRECTION: 0.10,
        StatusReason.TOO_FAST: 0.05,
    },
    GoalType.MAINTAIN: {
        StatusReason.DRIFTING: 0.0,
    },
}

# Fixed kcal deltas off the current target when TDEE is unknown
FALLBACK_CALORIE_DELTAS = {
    GoalType.CUT: {
        StatusReason.STALLED: -175,
        StatusReason.WRONG_DIRECTION: -225,
        StatusReason.TOO_FAST: 150,
    },
    GoalType.BULK: {
        StatusReason.STALLED: 175,
        StatusReason.WRONG_DIRECTION: 275,
        StatusReason.TOO_FAST: -125,
    },
    GoalType.MAINTAIN: {
        StatusReason.DRIFTING: 150,  # sign follows the drift, see below
    },
}


@dataclass
class MacroTargets:
    """Adjusted targets. None means "leave unchanged"."""

    calories: Optional[int] = None
    protein: Optional[int] = None
    carbs: Optional[int] = None
    fat: Optional[int] = None
    carbs_training_day: Optional[int] = None
    carbs_rest_day: Optional[int] = None
    calories_delta: int = 0
    protein_delta: int = 0
    carbs_delta: int = 0
    fat_delta: int = 0
    planned_calories: Optional[int] = None  # what the client eats after applying
    auto_apply: bool = False
    warnings: list[str] = field(default_factory=list)

    def has_changes(self) -> bool:
        return any(
            value is not None
            for value in (
                self.calories,
                self.protein,
                self.carbs,
                self.fat,
                self.carbs_training_day,
                self.carbs_rest_day,
            )
        )


def _changed(new: Optional[float], current: Optional[float]) -> Optional[int]:
    """Return the rounded new value, or None if it equals the current one."""
    if new is None:
        return None
    rounded = round(new)
    if current is not None and rounded == round(current):
        return None
    return rounded


def _delta(new: Optional[int], current: Optional[float]) -> int:
    if new is None:
        return 0
    return int(new - round(current or 0))


def target_calories(
    goal_type: GoalType,
    classification: Classification,
    tdee: Optional[int],
    current_calories: Optional[float],
    warnings: list[str],
) -> Optional[float]:
    """Pick the new calorie target, or None if calories should not change."""
    if not classification.actionable:
        return None

    reason = classification.reason
    if tdee is not None:
        pct = CALORIE_ADJUSTMENT_PCT[goal_type].get(reason, 0.0)
        return tdee * (1 + pct)

    if current_calories is None:
        warnings.append(
            "No calorie logs and no current calorie target; calorie target left unchanged."
        )
        return None

    delta = FALLBACK_CALORIE_DELTAS[goal_type].get(reason, 0)
    if goal_type == GoalType.MAINTAIN and (classification.rate_percent or 0) > 0:
        delta = -delta
    warnings.append(
        f"Calories adjusted by {delta:+d} kcal from the current target because "
        "TDEE could not be estimated; log daily calories for a precise target."
    )
    return current_calories + delta


def split_carb_cycle(
    carbs: float,
    calories: float,
    training_days_per_week: int,
    shift_pct: float,
) -> tuple[float, float]:
    """
    Split a daily carb target into training-day and rest-day values.

    ``shift_pct`` of calories (as carbs) is moved toward training days while
    keeping the weekly average equal to ``carbs``:

        TD = C + k × (7 − t) / 7
        RD = C − k × t / 7

    Returns:
        Tuple of (training_day_carbs, rest_day_carbs)
    """
    t = min(max(training_days_per_week, 0), 7)
    shift = shift_pct * calories / 4
    return carbs + shift * (7 - t) / 7, carbs - shift * t / 7


def adjust_macros(
    engine_input: NutritionInput,
    classification: Classification,
    tdee: Optional[int],
    config: EngineConfig,
) -> MacroTargets:
    """
    Compute new macro targets for a classified trajectory.

    Args:
        engine_input: Validated engine input
        classification: Output of the status classifier
        tdee: Estimated TDEE, or None when intake is unknown
        config: Engine coefficients

    Returns:
        MacroTargets following the partial-update contract
    """
    bw = engine_input.body_weight
    goal = engine_input.goal_type
    warnings: list[str] = []

    current_cal = value_or_none(engine_input.current_calories)
    current_pro = value_or_none(engine_input.current_protein)
    current_carb = value_or_none(engine_input.current_carbs)
    current_fat = value_or_none(engine_input.current_fat)

    if tdee is None:
        warnings.append("TDEE could not be estimated because no calorie intake was logged.")

    if engine_input.nutrition_compliance < config.min_compliance:
        warnings.append(
            f"Nutrition compliance is {engine_input.nutrition_compliance:.0f}%, below "
            f"{config.min_compliance:.0f}%. Logged intake may not reflect reality; "
            "targets will not be applied automatically."
        )

    # Protein: body-weight driven, never lowered
    per_kg = PROTEIN_PER_KG[goal]
    protein_floor = round(bw * per_kg)
    new_protein = float(current_pro) if current_pro is not None else 0.0
    if new_protein < protein_floor:
        new_protein = protein_floor
        warnings.append(f"Protein raised to the {protein_floor} g minimum ({per_kg} g/kg).")

    new_cal = target_calories(goal, classification, tdee, current_cal, warnings)
    new_carb: Optional[float] = None
    new_fat: Optional[float] = None

    if new_cal is not None:
        min_cal = MIN_CALORIES[engine_input.gender]
        if new_cal < min_cal:
            new_cal = min_cal
            warnings.append(
                f"Calories cannot go below {min_cal} kcal ({engine_input.gender.value} "
                "safety floor); target raised."
            )
        if tdee is not None and tdee - new_cal > config.max_diet_deficit_kcal:
            warnings.append(
                f"Diet deficit is {tdee - new_cal:.0f} kcal/day, above the recommended "
                f"{config.max_diet_deficit_kcal:.0f} kcal/day."
            )

        new_fat = max(new_cal * config.fat_floor_pct / 9, bw * MIN_FAT_PER_KG)
        if goal == GoalType.BULK:
            new_fat = min(new_fat, bw * MAX_FAT_PER_KG_BULK)

        new_carb = (new_cal - new_protein * 4 - new_fat * 9) / 4
        if new_carb < MIN_CARBS:
            new_carb = MIN_CARBS
            new_cal = new_protein * 4 + new_carb * 4 + new_fat * 9
            warnings.append(
                f"Carbs hit the {MIN_CARBS} g minimum; calories recalculated to "
                f"{round(new_cal)} kcal."
            )

    targets = MacroTargets(warnings=warnings)
    targets.calories = _changed(new_cal, current_cal)
    targets.protein = _changed(new_protein, current_pro)
    targets.carbs = _changed(new_carb, current_carb)
    targets.fat = _changed(new_fat, current_fat)
    targets.calories_delta = _delta(targets.calories, current_cal)
    targets.protein_delta = _delta(targets.protein, current_pro)
    targets.carbs_delta = _delta(targets.carbs, current_carb)
    targets.fat_delta = _delta(targets.fat, current_fat)
    targets.planned_calories = (
        round(new_cal) if new_cal is not None
        else round(current_cal) if current_cal is not None
        else None
    )

    if engine_input.carbs_cycling_enabled and new_carb is not None:
        training_day, rest_day = split_carb_cycle(
            new_carb,
            new_cal,
            engine_input.training_days_per_week,
            config.carb_cycle_shift_pct,
        )
        if rest_day < MIN_REST_DAY_CARBS:
            rest_day = MIN_REST_DAY_CARBS
            warnings.append(f"Rest-day carbs hit the {MIN_REST_DAY_CARBS} g minimum.")
        targets.carbs_training_day = _changed(
            training_day, value_or_none(engine_input.current_carbs_training_day)
        )
        targets.carbs_rest_day = _changed(
            rest_day, value_or_none(engine_input.current_carbs_rest_day)
        )

    targets.auto_apply = (
        classification.actionable
        and tdee is not None
        and engine_input.nutrition_compliance >= config.min_compliance
        and targets.has_changes()
    )

    logger.debug(
        "Macro adjustment: status=%s tdee=%s calories=%s protein=%s carbs=%s fat=%s auto_apply=%s",
        classification.status.value,
        tdee,
        targets.calories,
        targets.protein,
        targets.carbs,
        targets.fat,
        targets.auto_apply,
    )
    return targets
