"""Exceptions raised by the nutrition suggestion engine."""

from __future__ import annotations


class EngineError(Exception):
    """Base class for engine errors."""


class InvalidInputError(EngineError, ValueError):
    """Raised when engine input is malformed (bad dates, impossible weights).

    These indicate an upstream data bug rather than a "not enough data yet"
    condition, which is reported through the suggestion status instead.
    """

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(f"{field}: {message}")


class InsufficientDataError(EngineError):
    """Raised by trend fitting when fewer than two points are available."""
