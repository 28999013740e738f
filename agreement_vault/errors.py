"""Error types shared across the template engine."""

from __future__ import annotations


class AgreementVaultError(RuntimeError):
    """Base class for template engine failures."""


class TemplateValidationError(AgreementVaultError, ValueError):
    """Raised when an action is blocked by invalid or missing content."""

    def __init__(self, message: str, problems: list[str] | None = None) -> None:
        super().__init__(message)
        self.problems = list(problems or [])


class PageOutOfRangeError(TemplateValidationError):
    """Raised when a page number falls outside the bound document."""


class PersistenceError(AgreementVaultError):
    """Raised when a template cannot be saved or deleted."""
