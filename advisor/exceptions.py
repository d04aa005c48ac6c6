"""Advisor exception hierarchy."""

from __future__ import annotations


class AdvisorError(Exception):
    """Base exception for all advisor engine errors."""


class InvalidInputError(AdvisorError):
    """Calculator inputs cannot produce a projection."""

    def __init__(self, field: str, message: str) -> None:
        self.field = field
        super().__init__(f"{field}: {message}")


class RateTableNotFoundError(AdvisorError):
    """No tax bracket or benefit rate table is available."""


class CalculatorNotFoundError(AdvisorError):
    """Saved calculator instance does not exist."""

    def __init__(self, calculator_id: str) -> None:
        self.calculator_id = calculator_id
        super().__init__(f"Calculator {calculator_id} not found.")


class StorageError(AdvisorError):
    """Persisted data could not be written."""
