"""Tests for the tracking layer: queries, models and trigger points."""

from __future__ import annotations

import logging
from datetime import date, timedelta
from typing import Optional

import pytest

from prepcoach.engine import InsufficientDataError
from prepcoach.engine.models import Status, Suggestion, StatusReason
from prepcoach.tracking.models import (
    BodyCompositionEntry,
    ClientProfile,
    NutritionLogEntry,
    TrainingLogEntry,
)
from prepcoach.tracking.queries import (
    BodyCompositionQueries,
    ClientQueries,
    NutritionLogQueries,
)
from prepcoach.tracking.service import (
    NO_WEIGHT_MESSAGE,
    ClientNotFoundError,
    apply_suggestion,
    build_engine_input,
    get_nutrition_suggestion,
    record_body_composition,
    summarize_compliance,
)

TODAY = date(2026, 3, 28)


def seed_plateau(
    db, client_id: str = "c1", compliant: bool = True, calories: Optional[float] = 2200
) -> None:
    """Three weeks of flat weight and two weeks of logged days at 2200 kcal."""
    with db.get_connection() as conn:
        for day in range(21):
            weight = (80.0, 80.05, 80.1)[day // 7]
            BodyCompositionQueries.add_entry(
                conn,
                BodyCompositionEntry(client_id, TODAY - timedelta(days=day), weight=weight),
            )
        for day in range(14):
            NutritionLogQueries.log_day(
                conn,
                NutritionLogEntry(
                    client_id, TODAY - timedelta(days=day), compliant=compliant, calories=calories
                ),
            )


def get_client(db, client_id: str = "c1") -> ClientProfile:
    with db.get_connection() as conn:
        return ClientQueries.get_client(conn, client_id)


class TestBodyCompositionEntry:
    """Tests for body composition validation."""

    def test_bmi_computed(self) -> None:
        entry = BodyCompositionEntry("c1", TODAY, height=180, weight=81)
        assert entry.bmi == 25.0

    def test_explicit_bmi_kept(self) -> None:
        entry = BodyCompositionEntry("c1", TODAY, height=180, weight=81, bmi=24.0)
        assert entry.bmi == 24.0

    def test_no_bmi_without_height(self) -> None:
        assert BodyCompositionEntry("c1", TODAY, weight=81).bmi is None

    @pytest.mark.parametrize(
        "field,value",
        [
            ("weight", 19.9),
            ("weight", 301),
            ("height", 99),
            ("body_fat", 101),
            ("visceral_fat", 0),
            ("bmi", 55),
        ],
    )
    def test_out_of_range(self, field: str, value: float) -> None:
        with pytest.raises(ValueError, match=field):
            BodyCompositionEntry("c1", TODAY, **{field: value})

    def test_empty_record_allowed(self) -> None:
        entry = BodyCompositionEntry("c1", TODAY)
        assert entry.to_dict()["weight"] is None


class TestClientProfile:
    """Tests for client validation."""

    def test_invalid_goal(self) -> None:
        with pytest.raises(ValueError):
            ClientProfile("c2", "Sam", "female", "recomp")

    def test_negative_target(self) -> None:
        with pytest.raises(ValueError):
            ClientProfile("c2", "Sam", "female", "cut", calories_target=-1)


class TestQueries:
    """Tests for the SQLite query classes."""

    def test_schema_rerun_keeps_rows(self, temp_db, sample_client) -> None:
        temp_db.initialize_schema()
        with temp_db.get_connection() as conn:
            tables = {
                row["name"]
                for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
            }
        assert {"clients", "body_composition", "nutrition_logs", "training_logs"} <= tables
        assert get_client(temp_db).name == "Alex"

    def test_add_entry_upserts(self, temp_db, sample_client) -> None:
        with temp_db.get_connection() as conn:
            first = BodyCompositionQueries.add_entry(
                conn, BodyCompositionEntry("c1", TODAY, weight=80.0)
            )
            second = BodyCompositionQueries.add_entry(
                conn, BodyCompositionEntry("c1", TODAY, weight=79.6)
            )
            history = BodyCompositionQueries.get_history(conn, "c1")

        assert first.record_id == second.record_id
        assert len(history) == 1
        assert history[0].weight == 79.6

    def test_history_chronological(self, temp_db, sample_client) -> None:
        with temp_db.get_connection() as conn:
            for day, weight in [(3, 80.3), (1, 80.1), (2, 80.2)]:
                BodyCompositionQueries.add_entry(
                    conn, BodyCompositionEntry("c1", TODAY - timedelta(days=day), weight=weight)
                )
            history = BodyCompositionQueries.get_history(conn, "c1")
            latest = BodyCompositionQueries.get_latest_weight(conn, "c1")
            earlier = BodyCompositionQueries.get_latest_weight(
                conn, "c1", TODAY - timedelta(days=2)
            )

        assert [e.weight for e in history] == [80.3, 80.2, 80.1]
        assert latest == 80.1
        assert earlier == 80.2

    def test_update_targets_partial(self, temp_db, sample_client) -> None:
        with temp_db.get_connection() as conn:
            written = ClientQueries.update_targets(conn, "c1", {"fat": 64, "calories": 2000})
        client = get_client(temp_db)
        assert written == ["calories", "fat"]
        assert client.calories_target == 2000
        assert client.fat_target == 64
        assert client.protein_target == 160

    def test_update_targets_unknown_field(self, temp_db, sample_client) -> None:
        with temp_db.get_connection() as conn:
            with pytest.raises(ValueError, match="Unknown target fields"):
                ClientQueries.update_targets(conn, "c1", {"sugar": 10})

    def test_nutrition_log_replaces(self, temp_db, sample_client) -> None:
        with temp_db.get_connection() as conn:
            NutritionLogQueries.log_day(conn, NutritionLogEntry("c1", TODAY, compliant=False))
            NutritionLogQueries.log_day(
                conn, NutritionLogEntry("c1", TODAY, compliant=True, calories=2100)
            )
            logs = NutritionLogQueries.get_history(conn, "c1")
        assert len(logs) == 1
        assert logs[0].compliant is True
        assert logs[0].calories == 2100


class TestSummarizeCompliance:
    """Tests for the trailing compliance window."""

    def test_compliance_and_calories(self) -> None:
        logs = [
            NutritionLogEntry(
                "c1", TODAY - timedelta(days=d), compliant=d < 10, calories=2000 + 2 * d
            )
            for d in range(14)
        ]
        window = summarize_compliance(logs, [], TODAY)
        # 10 of 14 days
        assert window.nutrition_compliance == 71
        assert window.avg_daily_calories == 2013
        assert window.logged_days == 14

    def test_old_logs_ignored(self) -> None:
        logs = [NutritionLogEntry("c1", TODAY - timedelta(days=20), compliant=True)]
        window = summarize_compliance(logs, [], TODAY)
        assert window.logged_days == 0
        assert window.nutrition_compliance == 0
        assert window.avg_daily_calories is None

    def test_training_days_per_week(self) -> None:
        sessions = [
            TrainingLogEntry("c1", TODAY - timedelta(days=d), "strength") for d in range(8)
        ]
        rest = [TrainingLogEntry("c1", TODAY - timedelta(days=d), "rest") for d in (9, 10)]
        window = summarize_compliance([], sessions + rest, TODAY)
        assert window.training_days_per_week == 4


class TestBuildEngineInput:
    """Tests for build_engine_input."""

    def test_requires_weight(self, sample_client) -> None:
        with pytest.raises(InsufficientDataError):
            build_engine_input(sample_client, [], [], [], TODAY)

    def test_future_weights_ignored(self, sample_client) -> None:
        weights = [BodyCompositionEntry("c1", TODAY + timedelta(days=1), weight=80.0)]
        with pytest.raises(InsufficientDataError):
            build_engine_input(sample_client, weights, [], [], TODAY)

    def test_unset_targets_are_none(self) -> None:
        client = ClientProfile("c2", "Sam", "female", "maintain")
        weights = [BodyCompositionEntry("c2", TODAY, weight=60.0)]
        engine_input = build_engine_input(client, weights, [], [], TODAY)
        assert engine_input.current_calories is None
        assert engine_input.target_date is None
        assert engine_input.body_weight == 60.0
        assert not engine_input.carbs_cycling_enabled


class TestRecordBodyComposition:
    """Tests for the record-then-suggest trigger point."""

    def test_unknown_client(self, repo, temp_db) -> None:
        entry = BodyCompositionEntry("ghost", TODAY, weight=80.0)
        with pytest.raises(ClientNotFoundError) as exc_info:
            record_body_composition(repo, "ghost", entry, TODAY)
        assert exc_info.value.client_id == "ghost"

    def test_future_date_rejected(self, repo, temp_db, sample_client) -> None:
        entry = BodyCompositionEntry("c1", TODAY + timedelta(days=1), weight=80.0)
        with pytest.raises(ValueError, match="future"):
            record_body_composition(repo, "c1", entry, TODAY)
        with temp_db.get_connection() as conn:
            assert BodyCompositionQueries.get_history(conn, "c1") == []

    def test_no_weight_skips_engine(self, repo, sample_client) -> None:
        entry = BodyCompositionEntry("c1", TODAY, body_fat=15.0)
        result = record_body_composition(repo, "c1", entry, TODAY)
        assert result["record"]["bodyFat"] == 15.0
        assert result["suggestion"] is None
        assert result["nutritionAdjusted"] == {"adjusted": False, "fields": []}
        assert "no weight" in result["debug"]

    def test_first_weight_is_insufficient(self, repo, sample_client) -> None:
        entry = BodyCompositionEntry("c1", TODAY, weight=80.0)
        result = record_body_composition(repo, "c1", entry, TODAY)
        assert result["record"]["recordId"] is not None
        assert result["suggestion"]["status"] == "insufficient_data"
        assert result["nutritionAdjusted"]["adjusted"] is False
        assert result["debug"].startswith("Not applied: status insufficient_data")

    def test_plateau_auto_applies(self, repo, temp_db, sample_client) -> None:
        seed_plateau(temp_db)
        entry = BodyCompositionEntry("c1", TODAY, weight=80.0)
        result = record_body_composition(repo, "c1", entry, TODAY)

        assert result["suggestion"]["status"] == "plateau"
        assert result["nutritionAdjusted"]["adjusted"] is True
        assert set(result["nutritionAdjusted"]["fields"]) == {"calories", "carbs", "fat"}
        assert result["debug"].startswith("Applied ")
        assert "compliance 100%" in result["debug"]

        client = get_client(temp_db)
        # TDEE 2255 at 15% below
        assert client.calories_target == 1917
        assert client.fat_target == 64
        assert client.carbs_target == 175
        assert client.protein_target == 160

    def test_backdated_weight_is_insufficient(self, repo, temp_db, sample_client, caplog) -> None:
        """A weight older than the history window yields a suggestion, not an error."""
        entry = BodyCompositionEntry("c1", TODAY - timedelta(days=40), weight=80.0)
        with caplog.at_level(logging.ERROR, logger="prepcoach.tracking.service"):
            result = record_body_composition(repo, "c1", entry, TODAY)

        assert result["record"]["weight"] == 80.0
        assert result["suggestion"]["status"] == "insufficient_data"
        assert result["suggestion"]["message"] == NO_WEIGHT_MESSAGE
        assert result["nutritionAdjusted"] == {"adjusted": False, "fields": []}
        assert result["error"] is None
        assert "30 days" in result["debug"]
        assert caplog.records == []
        with temp_db.get_connection() as conn:
            assert BodyCompositionQueries.get_latest_weight(conn, "c1") == 80.0

    def test_low_compliance_not_applied(self, repo, temp_db, sample_client) -> None:
        seed_plateau(temp_db, compliant=False)
        result = record_body_composition(
            repo, "c1", BodyCompositionEntry("c1", TODAY, weight=80.0), TODAY
        )
        assert result["suggestion"]["status"] == "plateau"
        assert result["nutritionAdjusted"]["adjusted"] is False
        assert "compliance 0% is below 70%" in result["debug"]
        assert get_client(temp_db).calories_target == 2400

    def test_unknown_tdee_not_applied(self, repo, temp_db, sample_client) -> None:
        seed_plateau(temp_db, calories=None)
        result = record_body_composition(
            repo, "c1", BodyCompositionEntry("c1", TODAY, weight=80.0), TODAY
        )
        assert result["suggestion"]["estimatedTDEE"] is None
        assert result["nutritionAdjusted"]["adjusted"] is False
        assert "TDEE is unknown" in result["debug"]

    def test_unchanged_targets_not_applied(self, repo, temp_db, sample_client) -> None:
        seed_plateau(temp_db)
        with temp_db.get_connection() as conn:
            ClientQueries.update_targets(conn, "c1", {"calories": 1917, "carbs": 175, "fat": 64})
        result = record_body_composition(
            repo, "c1", BodyCompositionEntry("c1", TODAY, weight=80.0), TODAY
        )
        assert result["suggestion"]["status"] == "plateau"
        assert result["nutritionAdjusted"]["adjusted"] is False
        assert "match the current ones" in result["debug"]

    def test_engine_failure_keeps_record(
        self, repo, temp_db, sample_client, monkeypatch, caplog
    ) -> None:
        def boom(*args, **kwargs):
            raise RuntimeError("engine exploded")

        monkeypatch.setattr("prepcoach.tracking.service.generate_nutrition_suggestion", boom)
        seed_plateau(temp_db)

        with caplog.at_level(logging.ERROR, logger="prepcoach.tracking.service"):
            result = record_body_composition(
                repo, "c1", BodyCompositionEntry("c1", TODAY, weight=79.9), TODAY
            )

        assert result["nutritionAdjusted"]["adjusted"] is False
        assert result["suggestion"] is None
        assert result["error"] == "engine exploded"
        assert "engine failed" in result["debug"]
        assert "Nutrition engine failed" in caplog.text
        with temp_db.get_connection() as conn:
            assert BodyCompositionQueries.get_latest_weight(conn, "c1") == 79.9
        assert get_client(temp_db).calories_target == 2400


class TestGetNutritionSuggestion:
    """Tests for the read-only suggestion trigger point."""

    def test_no_weights(self, repo, sample_client) -> None:
        result = get_nutrition_suggestion(repo, "c1", TODAY)
        assert result["suggestion"]["status"] == "insufficient_data"
        assert "No weight records" in result["suggestion"]["message"]
        assert result["meta"]["latestWeight"] is None

    def test_has_no_side_effects(self, repo, temp_db, sample_client) -> None:
        seed_plateau(temp_db)
        result = get_nutrition_suggestion(repo, "c1", TODAY)

        assert result["suggestion"]["status"] == "plateau"
        assert result["suggestion"]["autoApply"] is True
        assert get_client(temp_db).calories_target == 2400

        meta = result["meta"]
        assert meta["latestWeight"] == 80.0
        assert meta["nutritionCompliance"] == 100
        assert meta["avgDailyCalories"] == 2200
        assert meta["trainingDaysPerWeek"] == 0
        assert meta["goalType"] == "cut"
        assert meta["targetWeight"] is None
        assert [w["week"] for w in meta["weeklyWeights"]] == [0, 1, 2]

    def test_unknown_client(self, repo, temp_db) -> None:
        with pytest.raises(ClientNotFoundError):
            get_nutrition_suggestion(repo, "ghost", TODAY)


class TestApplySuggestion:
    """Tests for apply_suggestion."""

    def test_writes_only_non_null_fields(self, repo, temp_db, sample_client) -> None:
        suggestion = Suggestion(
            status=Status.PLATEAU,
            status_emoji="🟡",
            status_label="Plateau",
            status_reason=StatusReason.STALLED,
            message="",
            suggested_calories=2100,
        )
        assert apply_suggestion(repo, "c1", suggestion) == ["calories"]
        client = get_client(temp_db)
        assert client.calories_target == 2100
        assert client.fat_target == 70

    def test_nothing_to_write(self, repo, sample_client) -> None:
        suggestion = Suggestion(
            status=Status.ON_TRACK,
            status_emoji="🟢",
            status_label="On track",
            status_reason=StatusReason.IN_RANGE,
            message="",
        )
        assert apply_suggestion(repo, "c1", suggestion) == []
