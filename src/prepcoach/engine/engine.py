"""Nutrition suggestion engine.

``generate_nutrition_suggestion`` is a pure function of already-fetched
data plus a reference date. It never touches storage or the clock.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Optional

from prepcoach.config.settings import EngineConfig
from prepcoach.engine.deadline import plan_deadline
from prepcoach.engine.macros import adjust_macros
from prepcoach.engine.models import (
    GoalType,
    NutritionInput,
    Suggestion,
    is_set,
    value_or_none,
)
from prepcoach.engine.peak_week import generate_peak_week, peak_week_active
from prepcoach.engine.status import (
    INSUFFICIENT_DATA_MESSAGE,
    classify_progress,
    insufficient_data,
)
from prepcoach.engine.tdee import estimate_tdee
from prepcoach.engine.trend import build_projection, percent_rate, weekly_trend

logger = logging.getLogger(__name__)


def insufficient_data_suggestion(message: Optional[str] = None) -> Suggestion:
    """Suggestion returned when there are fewer than two weekly averages."""
    classification = insufficient_data(message or INSUFFICIENT_DATA_MESSAGE)
    return Suggestion(
        status=classification.status,
        status_emoji=classification.emoji,
        status_label=classification.label,
        status_reason=classification.reason,
        message=classification.message,
    )


def diet_duration_weeks(diet_start_date: Optional[date], today: date) -> Optional[int]:
    """Whole weeks since the diet started, or None if no start date is known."""
    if diet_start_date is None:
        return None
    return max((today - diet_start_date).days, 0) // 7


def generate_nutrition_suggestion(
    engine_input: NutritionInput,
    today: date,
    config: Optional[EngineConfig] = None,
) -> Suggestion:
    """
    Analyse the weight trend and suggest updated nutrition targets.

    Args:
        engine_input: Validated engine input
        today: Reference date (used for deadlines, diet duration and peak week)
        config: Engine coefficients (defaults if None)

    Returns:
        Suggestion. Insufficient data is reported through ``status``.
    """
    if config is None:
        config = EngineConfig()

    weekly = engine_input.weekly_weights
    if len(weekly) < 2:
        logger.debug("Insufficient data: %d weekly averages", len(weekly))
        return insufficient_data_suggestion()

    fit = weekly_trend(weekly)
    rate_percent = percent_rate(fit)
    tdee = estimate_tdee(
        value_or_none(engine_input.avg_daily_calories),
        fit.slope,
        config.kcal_per_kg,
    )
    classification = classify_progress(engine_input.goal_type, weekly, rate_percent)
    logger.debug(
        "Trend: %.3f kg/week (%.2f%%/week) -> %s/%s, tdee=%s",
        fit.slope,
        rate_percent,
        classification.status.value,
        classification.reason.value,
        tdee,
    )

    targets = adjust_macros(engine_input, classification, tdee, config)
    warnings = list(targets.warnings)

    duration = diet_duration_weeks(value_or_none(engine_input.diet_start_date), today)
    diet_break = (
        engine_input.goal_type == GoalType.CUT
        and duration is not None
        and duration >= config.diet_break_weeks
    )
    if diet_break:
        warnings.append(
            f"The cut has run for {duration} weeks. Consider a 1-2 week diet break at "
            "maintenance calories."
        )

    projection = build_projection(weekly, engine_input.weight_samples, today)
    deadline_info, deadline_warnings = plan_deadline(
        engine_input,
        today,
        tdee,
        targets.planned_calories,
        projection,
        config,
    )
    warnings.extend(deadline_warnings)

    peak_week_plan = None
    if is_set(engine_input.target_date) and peak_week_active(
        engine_input.target_date, today, config.peak_week_days
    ):
        peak_week_plan = generate_peak_week(engine_input.body_weight, engine_input.target_date)

    return Suggestion(
        status=classification.status,
        status_emoji=classification.emoji,
        status_label=classification.label,
        status_reason=classification.reason,
        message=classification.message,
        auto_apply=targets.auto_apply,
        estimated_tdee=tdee,
        weekly_weight_change_rate=round(fit.slope, 2),
        weekly_weight_change_percent=round(rate_percent, 2),
        suggested_calories=targets.calories,
        suggested_protein=targets.protein,
        suggested_carbs=targets.carbs,
        suggested_fat=targets.fat,
        suggested_carbs_training_day=targets.carbs_training_day,
        suggested_carbs_rest_day=targets.carbs_rest_day,
        calories_delta=targets.calories_delta,
        protein_delta=targets.protein_delta,
        carbs_delta=targets.carbs_delta,
        fat_delta=targets.fat_delta,
        diet_duration_weeks=duration,
        diet_break_suggested=diet_break,
        warnings=warnings,
        deadline_info=deadline_info,
        peak_week_plan=peak_week_plan,
    )
