"""Tests for macro target adjustment."""

from __future__ import annotations

import pytest

from prepcoach.config.settings import EngineConfig
from prepcoach.engine.macros import adjust_macros, split_carb_cycle
from prepcoach.engine.models import (
    MISSING,
    NutritionInput,
    Status,
    StatusReason,
    WeeklyAverage,
)
from prepcoach.engine.status import Classification

CONFIG = EngineConfig()
STALLED = Classification(Status.PLATEAU, StatusReason.STALLED, "stalled", -0.1)
TOO_FAST = Classification(Status.OFF_TRACK, StatusReason.TOO_FAST, "too fast", -1.3)
ON_TRACK = Classification(Status.ON_TRACK, StatusReason.IN_RANGE, "fine", -0.6)


def make_input(**overrides) -> NutritionInput:
    values = dict(
        gender="male",
        body_weight=80.0,
        goal_type="cut",
        weekly_weights=[WeeklyAverage(0, 80.0), WeeklyAverage(1, 80.1)],
        nutrition_compliance=85,
        training_days_per_week=4,
        current_calories=2200,
        current_protein=160,
        current_carbs=220,
        current_fat=60,
    )
    values.update(overrides)
    return NutritionInput(**values)


class TestCalorieTarget:
    """Tests for the calorie adjustment."""

    def test_plateau_on_cut(self) -> None:
        targets = adjust_macros(make_input(), STALLED, 2500, CONFIG)
        # 2500 × 0.85
        assert targets.calories == 2125
        assert targets.calories_delta == -75
        assert targets.auto_apply is True
        assert targets.warnings == []

    def test_too_fast_on_cut(self) -> None:
        targets = adjust_macros(make_input(), TOO_FAST, 2400, CONFIG)
        assert targets.calories == 2160

    def test_on_track_leaves_calories(self) -> None:
        targets = adjust_macros(make_input(), ON_TRACK, 2500, CONFIG)
        assert targets.calories is None
        assert targets.carbs is None
        assert targets.fat is None
        assert targets.auto_apply is False
        assert targets.planned_calories == 2200

    def test_bulk_plateau(self) -> None:
        targets = adjust_macros(make_input(goal_type="bulk"), STALLED, 3000, CONFIG)
        assert targets.calories == 3300

    def test_maintain_drift_targets_tdee(self) -> None:
        drifting = Classification(Status.OFF_TRACK, StatusReason.DRIFTING, "", 0.4)
        targets = adjust_macros(make_input(goal_type="maintain"), drifting, 2600, CONFIG)
        assert targets.calories == 2600

    def test_male_floor(self) -> None:
        targets = adjust_macros(make_input(), STALLED, 1600, CONFIG)
        assert targets.calories == 1500
        assert any("1500" in w for w in targets.warnings)

    def test_female_floor(self) -> None:
        client = make_input(gender="female", body_weight=50.0, current_protein=100)
        targets = adjust_macros(client, STALLED, 1300, CONFIG)
        assert targets.calories == 1200
        assert targets.fat == 40
        assert targets.carbs == 110


class TestFallbackWithoutTDEE:
    """Tests for adjustments when TDEE cannot be estimated."""

    def test_cut_plateau_fixed_delta(self) -> None:
        targets = adjust_macros(make_input(), STALLED, None, CONFIG)
        assert targets.calories == 2025
        assert targets.auto_apply is False
        assert any("-175" in w for w in targets.warnings)

    def test_bulk_wrong_direction_delta(self) -> None:
        wrong = Classification(Status.OFF_TRACK, StatusReason.WRONG_DIRECTION, "", -0.2)
        targets = adjust_macros(make_input(goal_type="bulk"), wrong, None, CONFIG)
        assert targets.calories == 2475

    def test_maintain_drift_follows_direction(self) -> None:
        up = Classification(Status.OFF_TRACK, StatusReason.DRIFTING, "", 0.4)
        down = Classification(Status.OFF_TRACK, StatusReason.DRIFTING, "", -0.4)
        client = make_input(goal_type="maintain", current_calories=2500)
        assert adjust_macros(client, up, None, CONFIG).calories == 2350
        assert adjust_macros(client, down, None, CONFIG).calories == 2650

    def test_no_current_calories(self) -> None:
        targets = adjust_macros(make_input(current_calories=None), STALLED, None, CONFIG)
        assert targets.calories is None
        assert targets.planned_calories is None

    def test_zero_is_a_real_target(self) -> None:
        """A current target of 0 is adjusted; an unset one is not."""
        zero = adjust_macros(make_input(current_calories=0), STALLED, None, CONFIG)
        unset = adjust_macros(make_input(current_calories=MISSING), STALLED, None, CONFIG)
        assert zero.calories == 1500
        assert unset.calories is None


class TestMacroSplit:
    """Tests for protein, fat and carb allocation."""

    def test_split(self) -> None:
        targets = adjust_macros(make_input(), STALLED, 2500, CONFIG)
        # protein stays at the 160 g floor, fat = max(2125×0.25/9, 0.8×80) = 64
        assert targets.protein is None
        assert targets.fat == 64
        assert targets.fat_delta == 4
        # carbs = (2125 − 640 − 576) / 4
        assert targets.carbs == 227
        assert targets.carbs_delta == 7

    def test_protein_raised_to_floor(self) -> None:
        targets = adjust_macros(make_input(current_protein=120), ON_TRACK, 2500, CONFIG)
        assert targets.protein == 160
        assert targets.protein_delta == 40
        assert any("Protein" in w for w in targets.warnings)

    def test_protein_never_lowered(self) -> None:
        targets = adjust_macros(make_input(current_protein=200), STALLED, 2500, CONFIG)
        assert targets.protein is None

    def test_bulk_fat_cap(self) -> None:
        client = make_input(goal_type="bulk", body_weight=60.0, current_protein=108)
        targets = adjust_macros(client, STALLED, 3000, CONFIG)
        assert targets.fat == 72

    def test_carb_floor_recomputes_calories(self) -> None:
        client = make_input(body_weight=120.0, current_protein=240)
        targets = adjust_macros(client, STALLED, 1900, CONFIG)
        assert targets.carbs == 50
        # 240×4 + 50×4 + 96×9
        assert targets.calories == 2024
        assert any("minimum" in w for w in targets.warnings)

    def test_unchanged_fields_are_none(self) -> None:
        client = make_input(current_calories=2125, current_carbs=227, current_fat=64)
        targets = adjust_macros(client, STALLED, 2500, CONFIG)
        assert not targets.has_changes()
        assert targets.auto_apply is False


class TestCarbCycling:
    """Tests for training-day / rest-day carb split."""

    @pytest.mark.parametrize("training_days", [0, 3, 4, 7])
    def test_weekly_average_conserved(self, training_days: int) -> None:
        td, rd = split_carb_cycle(227.25, 2125, training_days, 0.10)
        weekly = (training_days * td + (7 - training_days) * rd) / 7
        assert weekly == pytest.approx(227.25)
        assert td >= rd

    def test_cycling_targets(self) -> None:
        client = make_input(current_carbs_training_day=260, current_carbs_rest_day=170)
        targets = adjust_macros(client, STALLED, 2500, CONFIG)
        assert targets.carbs_training_day == 250
        assert targets.carbs_rest_day == 197

    def test_rest_day_floor(self) -> None:
        client = make_input(
            body_weight=120.0,
            current_protein=240,
            training_days_per_week=7,
            current_carbs_training_day=100,
            current_carbs_rest_day=80,
        )
        targets = adjust_macros(client, STALLED, 1900, CONFIG)
        assert targets.carbs_rest_day == 30
        assert any("Rest-day" in w for w in targets.warnings)

    def test_no_cycling_without_both_targets(self) -> None:
        client = make_input(current_carbs_training_day=260)
        targets = adjust_macros(client, STALLED, 2500, CONFIG)
        assert targets.carbs_training_day is None
        assert targets.carbs_rest_day is None


class TestAutoApply:
    """Tests for the auto-apply decision."""

    def test_low_compliance_blocks(self) -> None:
        targets = adjust_macros(make_input(nutrition_compliance=50), STALLED, 2500, CONFIG)
        assert targets.calories == 2125
        assert targets.auto_apply is False
        assert any("50%" in w for w in targets.warnings)

    def test_compliance_threshold_inclusive(self) -> None:
        targets = adjust_macros(make_input(nutrition_compliance=70), STALLED, 2500, CONFIG)
        assert targets.auto_apply is True

    def test_custom_threshold(self) -> None:
        config = EngineConfig(min_compliance=90)
        targets = adjust_macros(make_input(), STALLED, 2500, config)
        assert targets.auto_apply is False
