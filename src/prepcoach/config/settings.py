"""Application settings and configuration management."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Optional

import yaml


def _default_config_dir() -> Path:
    """Return the default configuration directory."""
    return Path.home() / ".prepcoach"


def _default_db_path() -> Path:
    """Return the default database path."""
    return _default_config_dir() / "prepcoach.db"


@dataclass
class DatabaseConfig:
    """Database configuration."""

    path: Path = field(default_factory=_default_db_path)


@dataclass
class EngineConfig:
    """Coefficients used by the nutrition suggestion engine."""

    kcal_per_kg: float = 7700.0  # energy density of body-mass change
    min_compliance: float = 70.0  # % compliant days required for auto-apply
    normal_deficit_limit_kcal: float = 500.0  # above this: aggressive
    aggressive_deficit_limit_kcal: float = 750.0  # above this: extreme
    max_diet_deficit_kcal: float = 500.0  # warn when diet deficit exceeds this
    fat_floor_pct: float = 0.25  # minimum share of calories from fat
    carb_cycle_shift_pct: float = 0.10  # share of calories moved to training days
    cardio_kcal_per_minute: float = 7.0  # moderate-intensity cardio
    kcal_per_step: float = 0.04
    baseline_daily_steps: int = 8000
    prediction_tolerance_kg: float = 0.5
    diet_break_weeks: int = 8
    peak_week_days: int = 7


@dataclass
class TrackingConfig:
    """History windows used when building engine input from logs."""

    history_days: int = 30
    compliance_window_days: int = 14
    weeks: int = 4


@dataclass
class DefaultsConfig:
    """Default values for various operations."""

    output_format: str = "table"  # "table" or "json"


def _apply_section(target: Any, data: dict[str, Any]) -> None:
    """Copy known keys from a YAML mapping onto a config dataclass."""
    for f in fields(target):
        if f.name not in data or data[f.name] is None:
            continue
        current = getattr(target, f.name)
        value = data[f.name]
        if isinstance(current, Path):
            value = Path(value).expanduser()
        elif isinstance(current, bool):
            value = bool(value)
        elif isinstance(current, int):
            value = int(value)
        elif isinstance(current, float):
            value = float(value)
        setattr(target, f.name, value)


def _section_to_dict(section: Any) -> dict[str, Any]:
    data = {}
    for f in fields(section):
        value = getattr(section, f.name)
        data[f.name] = str(value) if isinstance(value, Path) else value
    return data


@dataclass
class Settings:
    """Main application settings."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    engine: EngineConfig = field(default_factory=EngineConfig)
    tracking: TrackingConfig = field(default_factory=TrackingConfig)
    defaults: DefaultsConfig = field(default_factory=DefaultsConfig)

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "Settings":
        """Load settings from YAML file or return defaults.

        Args:
            config_path: Path to config.yaml. If None, uses ~/.prepcoach/config.yaml

        Returns:
            Settings instance
        """
        if config_path is None:
            config_path = _default_config_dir() / "config.yaml"

        if not config_path.exists():
            return cls()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        settings = cls()

        for name in ("database", "engine", "tracking", "defaults"):
            section_data = data.get(name)
            if isinstance(section_data, dict):
                _apply_section(getattr(settings, name), section_data)

        return settings

    def save(self, config_path: Optional[Path] = None) -> None:
        """Save current settings to YAML file.

        Args:
            config_path: Path to save config.yaml. If None, uses ~/.prepcoach/config.yaml
        """
        if config_path is None:
            config_path = _default_config_dir() / "config.yaml"

        config_path.parent.mkdir(parents=True, exist_ok=True)

        with open(config_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "database": _section_to_dict(self.database),
            "engine": _section_to_dict(self.engine),
            "tracking": _section_to_dict(self.tracking),
            "defaults": _section_to_dict(self.defaults),
        }


# Global settings instance (lazy loaded)
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance, loading from disk if needed."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings


def reload_settings() -> Settings:
    """Force reload settings from disk."""
    global _settings
    _settings = Settings.load()
    return _settings
