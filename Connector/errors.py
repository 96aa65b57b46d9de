"""Exception hierarchy for the aspect connector.

"No recipe" is not an error: the store reports it as a ``Primitive``
decomposition. Everything here is a genuine fault that aborts the command.
"""
from __future__ import annotations

from typing import Optional


class ConnectorError(Exception):
    """Base class for all connector faults."""


class ElementNotFoundError(ConnectorError):
    """Raised when a store query names an element that does not exist."""

    def __init__(self, element_name: str, context: str = ""):
        self.element_name = element_name
        self.context = context
        message = f"element {element_name!r} doesn't exist"
        if context:
            message = f"{message} ({context})"
        super().__init__(message)


class StoreIntegrityError(ConnectorError):
    """Raised when the store breaks a row-count guarantee (e.g. two recipes for one name)."""

    def __init__(self, table_name: str, detail: str = ""):
        self.table_name = table_name
        self.detail = detail
        message = f"problematic table: {table_name}"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class StoreError(ConnectorError):
    """Raised when a database call fails; the sqlite3 error is chained as the cause."""

    def __init__(self, db_path: str, reason: str):
        self.db_path = db_path
        self.reason = reason
        super().__init__(f"database {db_path}: {reason}")


class DomainError(ConnectorError, ValueError):
    """Raised when a function is evaluated outside its valid region."""

    def __init__(self, valid_region: str, inputted: float, what: str = "input"):
        self.valid_region = valid_region
        self.inputted = inputted
        super().__init__(f"valid region for {what}: {valid_region}, but input is {inputted}")


class DegenerateCurveError(ConnectorError):
    """Raised at curve construction when a denominator term evaluates to zero."""

    def __init__(self, formula: str, alpha: float):
        self.formula = formula
        self.alpha = alpha
        super().__init__(f"formula {formula} evaluates to zero for alpha={alpha}")


class RecipeParseError(ConnectorError):
    """Raised when a recipe file row cannot be parsed."""

    def __init__(self, line_number: int, reason: Optional[str] = None):
        self.line_number = line_number
        self.reason = reason
        message = f"parsing recipes failed at line {line_number}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ConfigError(ConnectorError):
    """Raised when the configuration file is missing or invalid."""
