"""Goal-deadline planning.

Given a target weight and a target date, works out the daily energy
deficit (or surplus) needed, rates how aggressive that is, and prescribes
extra cardio or steps when the diet alone cannot cover it.
"""

from __future__ import annotations

import logging
import math
from datetime import date
from typing import Optional

from prepcoach.config.settings import EngineConfig
from prepcoach.engine.macros import MIN_CALORIES
from prepcoach.engine.models import (
    DeadlineInfo,
    NutritionInput,
    SafetyLevel,
    is_set,
)
from prepcoach.engine.trend import Projection

logger = logging.getLogger(__name__)

SHORT_CARDIO_MINUTES = 30
LONG_CARDIO_MINUTES = 60


def classify_safety(required_daily_deficit: float, config: EngineConfig) -> SafetyLevel:
    """Rate a required daily deficit by magnitude (a surplus is rated the same way)."""
    magnitude = abs(required_daily_deficit)
    if magnitude <= config.normal_deficit_limit_kcal:
        return SafetyLevel.NORMAL
    if magnitude <= config.aggressive_deficit_limit_kcal:
        return SafetyLevel.AGGRESSIVE
    return SafetyLevel.EXTREME


def steps_for_burn(extra_burn: float, config: EngineConfig) -> int:
    """Daily step count covering ``extra_burn`` kcal on top of the baseline."""
    return config.baseline_daily_steps + int(round(extra_burn / config.kcal_per_step, -2))


def cardio_note(minutes: int, extra_needed: bool) -> str:
    if not extra_needed:
        return "Diet alone covers the required deficit; keep daily steps at baseline."
    if minutes <= SHORT_CARDIO_MINUTES:
        return f"Add about {minutes} min of moderate cardio per day."
    if minutes <= LONG_CARDIO_MINUTES:
        return (
            f"Add about {minutes} min of cardio per day; split it into two sessions "
            "if recovery suffers."
        )
    return (
        f"About {minutes} min of cardio per day would be needed. Consider moving "
        "the target date or the target weight."
    )


def surplus_note(required_surplus: float, diet_surplus: float) -> str:
    if diet_surplus >= required_surplus:
        return "Diet alone covers the required surplus; no extra cardio needed."
    return (
        f"Planned intake gives a {diet_surplus:.0f} kcal/day surplus but about "
        f"{required_surplus:.0f} is needed. Raise calories rather than adding cardio."
    )


def _will_reach(
    predicted: float,
    target: float,
    weight_to_lose: float,
    tolerance: float,
) -> bool:
    if weight_to_lose > 0:
        return predicted <= target + tolerance
    if weight_to_lose < 0:
        return predicted >= target - tolerance
    return abs(predicted - target) <= tolerance


def plan_deadline(
    engine_input: NutritionInput,
    today: date,
    tdee: Optional[int],
    planned_calories: Optional[int],
    projection: Optional[Projection],
    config: EngineConfig,
) -> tuple[Optional[DeadlineInfo], list[str]]:
    """
    Plan the path to a target weight by a target date.

    Args:
        engine_input: Validated engine input
        today: Reference date for "days left"
        tdee: Estimated TDEE, or None
        planned_calories: Calories the client will eat once targets apply
        projection: Trend projection used for the competition-day prediction
        config: Engine coefficients

    Returns:
        Tuple of (DeadlineInfo or None, warnings)
    """
    warnings: list[str] = []
    if not (is_set(engine_input.target_weight) and is_set(engine_input.target_date)):
        return None, warnings

    target_weight = engine_input.target_weight
    days_left = (engine_input.target_date - today).days
    if days_left < 0:
        warnings.append(
            f"The target date {engine_input.target_date.isoformat()} has passed; "
            "set a new date to get a deadline plan."
        )
        return None, warnings

    effective_days = max(days_left, 1)
    weight_to_lose = round(engine_input.body_weight - target_weight, 1)
    required = round((engine_input.body_weight - target_weight) * config.kcal_per_kg / effective_days)
    safety = classify_safety(required, config)

    if safety == SafetyLevel.EXTREME:
        warnings.append(
            f"Reaching {target_weight} kg needs about {abs(required)} kcal/day, which is "
            "extreme. Expect lean-mass loss or move the date."
        )
    elif safety == SafetyLevel.AGGRESSIVE:
        warnings.append(f"The deadline requires an aggressive {abs(required)} kcal/day deficit.")

    extra_needed = False
    extra_burn = 0
    minutes = 0
    steps = config.baseline_daily_steps
    if tdee is None or planned_calories is None:
        note = "Cardio cannot be prescribed until TDEE is known; log daily calories."
    else:
        eaten = max(planned_calories, MIN_CALORIES[engine_input.gender])
        diet_deficit = tdee - eaten
        if required < 0:
            # gain target: cardio never closes a surplus gap
            note = surplus_note(-required, -diet_deficit)
        else:
            if required > diet_deficit:
                extra_needed = True
                extra_burn = int(required - diet_deficit)
                minutes = math.ceil(extra_burn / config.cardio_kcal_per_minute)
                steps = steps_for_burn(extra_burn, config)
            note = cardio_note(minutes, extra_needed)

    predicted = None
    will_reach = None
    gap = None
    if projection is not None:
        predicted = round(projection.weight_on(engine_input.target_date), 1)
        gap = round(predicted - target_weight, 1)
        will_reach = _will_reach(
            predicted,
            target_weight,
            engine_input.body_weight - target_weight,
            config.prediction_tolerance_kg,
        )
        if not will_reach:
            warnings.append(
                f"At the current trend weight will be about {predicted} kg on "
                f"{engine_input.target_date.isoformat()}, {abs(gap)} kg from the target."
            )

    logger.debug(
        "Deadline plan: days_left=%d required=%d safety=%s extra_burn=%d predicted=%s",
        days_left,
        required,
        safety.value,
        extra_burn,
        predicted,
    )

    info = DeadlineInfo(
        is_goal_driven=True,
        weight_to_lose=weight_to_lose,
        days_left=days_left,
        required_daily_deficit=required,
        safety_level=safety,
        suggested_cardio_minutes=minutes,
        suggested_daily_steps=steps,
        extra_cardio_needed=extra_needed,
        extra_burn_per_day=extra_burn,
        cardio_note=note,
        predicted_comp_weight=predicted,
        will_reach_target=will_reach,
        projected_gap=gap,
    )
    return info, warnings
