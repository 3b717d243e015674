"""Client tracking: stored logs and the flows that feed the engine."""

from prepcoach.tracking.models import (
    BodyCompositionEntry,
    ClientProfile,
    NutritionLogEntry,
    TrainingLogEntry,
)
from prepcoach.tracking.service import (
    ClientNotFoundError,
    ClientRepository,
    ComplianceWindow,
    SqliteClientRepository,
    apply_suggestion,
    build_engine_input,
    collect_engine_input,
    get_nutrition_suggestion,
    record_body_composition,
    summarize_compliance,
)

__all__ = [
    "BodyCompositionEntry",
    "ClientNotFoundError",
    "ClientProfile",
    "ClientRepository",
    "ComplianceWindow",
    "NutritionLogEntry",
    "SqliteClientRepository",
    "TrainingLogEntry",
    "apply_suggestion",
    "build_engine_input",
    "collect_engine_input",
    "get_nutrition_suggestion",
    "record_body_composition",
    "summarize_compliance",
]
