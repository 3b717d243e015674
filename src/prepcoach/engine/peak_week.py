"""Peak-week protocol for the final 7 days before a competition.

The week runs depletion -> fat load -> carb load -> taper -> show day.
Glycogen is drained early in the week, then supercompensated with a carb
load while water is pushed high and tapered off before the show.
"""

from __future__ import annotations

from datetime import date, timedelta
from typing import Optional

from prepcoach.engine.models import PeakWeekDay, Phase

PEAK_WEEK_DAYS = 7

# daysOut -> phase
PHASE_SCHEDULE = {
    6: Phase.DEPLETION,
    5: Phase.DEPLETION,
    4: Phase.FAT_LOAD,
    3: Phase.CARB_LOAD,
    2: Phase.CARB_LOAD,
    1: Phase.TAPER,
    0: Phase.SHOW_DAY,
}

# g/kg body weight: (carbs, protein, fat)
PHASE_MACROS_PER_KG = {
    Phase.DEPLETION: (1.0, 2.8, 0.8),
    Phase.FAT_LOAD: (1.0, 2.5, 1.5),
    Phase.CARB_LOAD: (7.0, 2.2, 0.5),
    Phase.TAPER: (4.0, 2.2, 0.6),
    Phase.SHOW_DAY: (2.5, 2.0, 0.6),
}

# ml/kg body weight by daysOut
WATER_ML_PER_KG = {
    6: 80,
    5: 100,
    4: 100,
    3: 80,
    2: 70,
    1: 40,
    0: 25,
}

SODIUM_NOTES = {
    Phase.DEPLETION: "Keep sodium at your normal intake; do not cut it yet.",
    Phase.FAT_LOAD: "Normal sodium.",
    Phase.CARB_LOAD: "Keep sodium steady so the carbs pull water into muscle.",
    Phase.TAPER: "Keep sodium moderate; avoid salty processed food.",
    Phase.SHOW_DAY: "Small amounts of salt with pre-stage carbs only.",
}

FIBER_NOTES = {
    Phase.DEPLETION: "Normal vegetables.",
    Phase.FAT_LOAD: "Normal vegetables.",
    Phase.CARB_LOAD: "Low fiber; pick white rice, rice cakes and potatoes.",
    Phase.TAPER: "Low fiber to keep the stomach flat.",
    Phase.SHOW_DAY: "Minimal fiber; only familiar, easy-to-digest food.",
}

TRAINING_NOTES = {
    Phase.DEPLETION: "High-rep full-body sessions to drain glycogen.",
    Phase.FAT_LOAD: "Light pump work only.",
    Phase.CARB_LOAD: "No hard training; light posing practice.",
    Phase.TAPER: "Rest. Posing practice only.",
    Phase.SHOW_DAY: "Pump up backstage before stepping on stage.",
}


def days_out_label(days_out: int) -> str:
    if days_out == 0:
        return "Show day"
    if days_out == 1:
        return "1 day out"
    return f"{days_out} days out"


def peak_week_active(
    target_date: Optional[date],
    today: date,
    window_days: int = PEAK_WEEK_DAYS,
) -> bool:
    """True when the competition is between 0 and ``window_days`` days away."""
    if target_date is None:
        return False
    days_out = (target_date - today).days
    return 0 <= days_out <= window_days


def generate_peak_week(body_weight: float, competition_date: date) -> list[PeakWeekDay]:
    """
    Build the full 7-day plan ending on the competition date.

    Days already in the past are still included, so the plan is always
    complete and ordered from 6 days out down to show day.

    Args:
        body_weight: Current body weight in kg
        competition_date: Show date

    Returns:
        Seven PeakWeekDay entries, daysOut 6 -> 0
    """
    plan = []
    for days_out in range(PEAK_WEEK_DAYS - 1, -1, -1):
        phase = PHASE_SCHEDULE[days_out]
        carbs_per_kg, protein_per_kg, fat_per_kg = PHASE_MACROS_PER_KG[phase]
        carbs = round(body_weight * carbs_per_kg)
        protein = round(body_weight * protein_per_kg)
        fat = round(body_weight * fat_per_kg)
        plan.append(
            PeakWeekDay(
                days_out=days_out,
                date=competition_date - timedelta(days=days_out),
                label=days_out_label(days_out),
                phase=phase,
                carbs=carbs,
                protein=protein,
                fat=fat,
                calories=carbs * 4 + protein * 4 + fat * 9,
                water=int(round(body_weight * WATER_ML_PER_KG[days_out], -2)),
                sodium_note=SODIUM_NOTES[phase],
                fiber_note=FIBER_NOTES[phase],
                training_note=TRAINING_NOTES[phase],
            )
        )
    return plan
