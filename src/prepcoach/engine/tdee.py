"""Energy-balance TDEE estimation from logged intake and weight trend.

If intake is steady and weight is changing, the difference between what was
eaten and what was burned shows up on the scale:

    TDEE ≈ avg_daily_calories − weekly_change_kg × kcal_per_kg / 7

Losing 0.5 kg/week at 2000 kcal/day implies a TDEE of about 2550 kcal/day.
"""

from __future__ import annotations

from typing import Optional

# Energy density of body-mass change (mixed fat/lean tissue)
KCAL_PER_KG = 7700.0


def daily_energy_balance(weekly_change_kg: float, kcal_per_kg: float = KCAL_PER_KG) -> float:
    """
    Estimate daily calorie surplus/deficit from weekly weight change.

    Args:
        weekly_change_kg: Weekly weight change in kg (negative = loss)
        kcal_per_kg: Energy density of weight change

    Returns:
        Daily calorie balance (negative = deficit, positive = surplus)
    """
    return weekly_change_kg * kcal_per_kg / 7


def estimate_tdee(
    avg_daily_calories: Optional[float],
    weekly_change_kg: float,
    kcal_per_kg: float = KCAL_PER_KG,
) -> Optional[int]:
    """
    Back-solve TDEE from average intake and the observed weight trend.

    Args:
        avg_daily_calories: Average logged intake (None if nothing logged)
        weekly_change_kg: Signed weekly weight change (kg/week)
        kcal_per_kg: Energy density of weight change

    Returns:
        Estimated TDEE in kcal/day, or None when intake is unknown
    """
    if avg_daily_calories is None:
        return None
    return round(avg_daily_calories - daily_energy_balance(weekly_change_kg, kcal_per_kg))
