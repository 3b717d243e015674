"""Trigger points that connect stored client data to the suggestion engine.

The engine only ever sees a ``NutritionInput``. Everything that touches
storage goes through a ``ClientRepository``, so the same flows run against
SQLite in the CLI and against in-memory fakes in tests.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Optional, Protocol, Sequence

from prepcoach.config.settings import EngineConfig, Settings, TrackingConfig
from prepcoach.db.connection import DatabaseConnection
from prepcoach.engine import (
    InsufficientDataError,
    NutritionInput,
    Status,
    Suggestion,
    WeightSample,
    generate_nutrition_suggestion,
    insufficient_data_suggestion,
)
from prepcoach.engine.trend import weekly_averages
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
    TrainingLogQueries,
)

logger = logging.getLogger(__name__)

NO_WEIGHT_MESSAGE = "No weight records found. Ask the client to log body weight first."

ACTIONABLE_STATUSES = (Status.PLATEAU, Status.OFF_TRACK)


class ClientNotFoundError(LookupError):
    """Raised when a client ID does not exist."""

    def __init__(self, client_id: str):
        super().__init__(f"Client not found: {client_id}")
        self.client_id = client_id


class ClientRepository(Protocol):
    """Storage operations needed by the trigger points."""

    def get_client(self, client_id: str) -> Optional[ClientProfile]:
        ...

    def save_body_composition(self, entry: BodyCompositionEntry) -> BodyCompositionEntry:
        ...

    def get_body_composition(
        self, client_id: str, start_date: date, end_date: date
    ) -> list[BodyCompositionEntry]:
        ...

    def get_nutrition_logs(
        self, client_id: str, start_date: date, end_date: date
    ) -> list[NutritionLogEntry]:
        ...

    def get_training_logs(
        self, client_id: str, start_date: date, end_date: date
    ) -> list[TrainingLogEntry]:
        ...

    def update_targets(self, client_id: str, targets: dict[str, Any]) -> list[str]:
        ...


class SqliteClientRepository:
    """ClientRepository backed by the SQLite database."""

    def __init__(self, db: DatabaseConnection):
        self.db = db

    def get_client(self, client_id: str) -> Optional[ClientProfile]:
        with self.db.get_connection() as conn:
            return ClientQueries.get_client(conn, client_id)

    def save_body_composition(self, entry: BodyCompositionEntry) -> BodyCompositionEntry:
        with self.db.get_connection() as conn:
            return BodyCompositionQueries.add_entry(conn, entry)

    def get_body_composition(
        self, client_id: str, start_date: date, end_date: date
    ) -> list[BodyCompositionEntry]:
        with self.db.get_connection() as conn:
            return BodyCompositionQueries.get_history(conn, client_id, start_date, end_date)

    def get_nutrition_logs(
        self, client_id: str, start_date: date, end_date: date
    ) -> list[NutritionLogEntry]:
        with self.db.get_connection() as conn:
            return NutritionLogQueries.get_history(conn, client_id, start_date, end_date)

    def get_training_logs(
        self, client_id: str, start_date: date, end_date: date
    ) -> list[TrainingLogEntry]:
        with self.db.get_connection() as conn:
            return TrainingLogQueries.get_history(conn, client_id, start_date, end_date)

    def update_targets(self, client_id: str, targets: dict[str, Any]) -> list[str]:
        with self.db.get_connection() as conn:
            return ClientQueries.update_targets(conn, client_id, targets)


@dataclass
class ComplianceWindow:
    """Adherence summary over the trailing compliance window."""

    nutrition_compliance: float  # % of logged days marked compliant
    avg_daily_calories: Optional[float]
    training_days_per_week: int
    logged_days: int


def summarize_compliance(
    nutrition_logs: Sequence[NutritionLogEntry],
    training_logs: Sequence[TrainingLogEntry],
    today: date,
    window_days: int = 14,
) -> ComplianceWindow:
    """
    Summarize nutrition adherence and training frequency.

    Only logs from the ``window_days`` days ending ``today`` count. With
    nothing logged, compliance is 0 and average calories is None.
    """
    start = today - timedelta(days=window_days - 1)
    recent = [log for log in nutrition_logs if start <= log.date <= today]
    compliant = sum(1 for log in recent if log.compliant)
    compliance = round(compliant / len(recent) * 100) if recent else 0

    with_calories = [log.calories for log in recent if log.calories is not None]
    avg_calories = round(sum(with_calories) / len(with_calories)) if with_calories else None

    sessions = [
        log for log in training_logs if start <= log.date <= today and log.is_training_day
    ]
    weeks = window_days / 7
    training_days = min(round(len(sessions) / weeks), 7)

    return ComplianceWindow(
        nutrition_compliance=float(compliance),
        avg_daily_calories=avg_calories,
        training_days_per_week=training_days,
        logged_days=len(recent),
    )


def build_engine_input(
    client: ClientProfile,
    weights: Sequence[BodyCompositionEntry],
    nutrition_logs: Sequence[NutritionLogEntry],
    training_logs: Sequence[TrainingLogEntry],
    today: date,
    tracking: Optional[TrackingConfig] = None,
) -> NutritionInput:
    """
    Assemble engine input from a client's stored profile and logs.

    Targets the client never set are passed as explicit None.

    Raises:
        InsufficientDataError: If there is no weight record on or before today
    """
    if tracking is None:
        tracking = TrackingConfig()

    samples = [
        WeightSample(date=entry.date, weight=entry.weight)
        for entry in sorted(weights, key=lambda e: e.date)
        if entry.weight is not None and entry.date <= today
    ]
    if not samples:
        raise InsufficientDataError(NO_WEIGHT_MESSAGE)

    window = summarize_compliance(
        nutrition_logs, training_logs, today, tracking.compliance_window_days
    )

    return NutritionInput(
        gender=client.gender,
        body_weight=samples[-1].weight,
        goal_type=client.goal_type,
        weekly_weights=weekly_averages(samples, today, tracking.weeks),
        nutrition_compliance=window.nutrition_compliance,
        avg_daily_calories=window.avg_daily_calories,
        training_days_per_week=window.training_days_per_week,
        diet_start_date=client.diet_start_date,
        target_weight=client.target_weight,
        target_date=client.competition_date,
        current_calories=client.calories_target,
        current_protein=client.protein_target,
        current_carbs=client.carbs_target,
        current_fat=client.fat_target,
        current_carbs_training_day=client.carbs_training_day,
        current_carbs_rest_day=client.carbs_rest_day,
        weight_samples=samples,
    )


def collect_engine_input(
    repo: ClientRepository,
    client: ClientProfile,
    today: date,
    tracking: Optional[TrackingConfig] = None,
) -> NutritionInput:
    """Fetch the history window from the repository and build engine input."""
    if tracking is None:
        tracking = TrackingConfig()
    since = today - timedelta(days=tracking.history_days)
    return build_engine_input(
        client,
        repo.get_body_composition(client.client_id, since, today),
        repo.get_nutrition_logs(client.client_id, since, today),
        repo.get_training_logs(client.client_id, since, today),
        today,
        tracking,
    )


def apply_suggestion(repo: ClientRepository, client_id: str, suggestion: Suggestion) -> list[str]:
    """Write the non-null suggested targets in one update. Returns the fields written."""
    fields = suggestion.suggested_fields()
    if not fields:
        return []
    return repo.update_targets(client_id, fields)


def auto_apply_reason(
    suggestion: Suggestion,
    engine_input: NutritionInput,
    config: EngineConfig,
    fields_written: Sequence[str],
) -> str:
    """Explain in one line why targets were or were not applied."""
    if fields_written:
        return (
            f"Applied {', '.join(fields_written)}: status {suggestion.status.value} "
            f"({suggestion.status_reason.value}), TDEE {suggestion.estimated_tdee} kcal, "
            f"compliance {engine_input.nutrition_compliance:.0f}%."
        )
    if suggestion.status not in ACTIONABLE_STATUSES:
        return (
            f"Not applied: status {suggestion.status.value} "
            f"({suggestion.status_reason.value}) needs no change."
        )
    if suggestion.estimated_tdee is None:
        return "Not applied: TDEE is unknown because no calorie intake was logged."
    if engine_input.nutrition_compliance < config.min_compliance:
        return (
            f"Not applied: nutrition compliance {engine_input.nutrition_compliance:.0f}% "
            f"is below {config.min_compliance:.0f}%."
        )
    return "Not applied: the suggested targets match the current ones."


def _require_client(repo: ClientRepository, client_id: str) -> ClientProfile:
    client = repo.get_client(client_id)
    if client is None:
        raise ClientNotFoundError(client_id)
    return client


def record_body_composition(
    repo: ClientRepository,
    client_id: str,
    entry: BodyCompositionEntry,
    today: date,
    settings: Optional[Settings] = None,
) -> dict[str, Any]:
    """
    Save a body composition record, then re-run the engine on the new data.

    The record is always kept. If the engine fails, the failure is logged and
    reported as ``nutritionAdjusted.adjusted = False``.

    Returns:
        Dict with ``record``, ``suggestion``, ``nutritionAdjusted``, ``debug`` (why
        targets were or were not applied) and ``error``

    Raises:
        ClientNotFoundError: If the client does not exist
        ValueError: If the record is dated after ``today``
    """
    if settings is None:
        settings = Settings()

    client = _require_client(repo, client_id)
    if entry.date > today:
        raise ValueError(f"date must not be in the future, got {entry.date.isoformat()}")

    record = repo.save_body_composition(entry)
    result: dict[str, Any] = {
        "record": record.to_dict(),
        "suggestion": None,
        "nutritionAdjusted": {"adjusted": False, "fields": []},
        "debug": "",
        "error": None,
    }

    if record.weight is None:
        result["debug"] = "Engine not run: the record has no weight."
        return result

    try:
        engine_input = collect_engine_input(repo, client, today, settings.tracking)
    except InsufficientDataError:
        result["suggestion"] = insufficient_data_suggestion(NO_WEIGHT_MESSAGE).to_dict()
        result["debug"] = (
            f"Not applied: no weight recorded in the last "
            f"{settings.tracking.history_days} days."
        )
        return result

    try:
        suggestion = generate_nutrition_suggestion(engine_input, today, settings.engine)
        result["suggestion"] = suggestion.to_dict()

        fields: list[str] = []
        if suggestion.auto_apply:
            fields = apply_suggestion(repo, client_id, suggestion)
            if fields:
                result["nutritionAdjusted"] = {"adjusted": True, "fields": fields}
                logger.info("Auto-applied targets for client %s: %s", client_id, ", ".join(fields))
        result["debug"] = auto_apply_reason(suggestion, engine_input, settings.engine, fields)
    except Exception as exc:
        logger.exception("Nutrition engine failed for client %s", client_id)
        result["suggestion"] = None
        result["nutritionAdjusted"] = {"adjusted": False, "fields": []}
        result["debug"] = f"Not applied: the nutrition engine failed ({exc})."
        result["error"] = str(exc)

    return result


def get_nutrition_suggestion(
    repo: ClientRepository,
    client_id: str,
    today: date,
    settings: Optional[Settings] = None,
) -> dict[str, Any]:
    """
    Compute a suggestion for a client without changing anything.

    Returns:
        Dict with ``suggestion`` and ``meta`` (the inputs the engine saw)

    Raises:
        ClientNotFoundError: If the client does not exist
    """
    if settings is None:
        settings = Settings()

    client = _require_client(repo, client_id)
    meta: dict[str, Any] = {
        "latestWeight": None,
        "weeklyWeights": [],
        "nutritionCompliance": None,
        "avgDailyCalories": None,
        "trainingDaysPerWeek": None,
        "goalType": client.goal_type,
        "dietStartDate": client.diet_start_date.isoformat() if client.diet_start_date else None,
        "targetWeight": client.target_weight,
        "targetDate": client.competition_date.isoformat() if client.competition_date else None,
    }

    try:
        engine_input = collect_engine_input(repo, client, today, settings.tracking)
    except InsufficientDataError:
        return {"suggestion": insufficient_data_suggestion(NO_WEIGHT_MESSAGE).to_dict(), "meta": meta}

    meta.update(
        {
            "latestWeight": engine_input.body_weight,
            "weeklyWeights": [w.to_dict() for w in engine_input.weekly_weights],
            "nutritionCompliance": engine_input.nutrition_compliance,
            "avgDailyCalories": engine_input.avg_daily_calories,
            "trainingDaysPerWeek": engine_input.training_days_per_week,
        }
    )
    suggestion = generate_nutrition_suggestion(engine_input, today, settings.engine)
    return {"suggestion": suggestion.to_dict(), "meta": meta}
