"""Structured exception hierarchy for the connector form core.

Provides specific exception types for the fatal failure modes of the form,
with rich context for debugging schema documents.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence, Union

__all__ = [
    "FormError",
    "SchemaError",
    "DefinitionError",
    "SubmissionError",
]


class FormError(Exception):
    """Base exception for all connector form errors.

    Provides structured error information for debugging.
    """

    def __init__(
        self,
        message: str,
        *,
        connector: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        self.connector = connector
        self.details = details or {}
        self.suggestion = suggestion

        parts = [message]

        if connector:
            parts.insert(0, f"[{connector}]")

        if details:
            detail_lines = [f"  {k}: {v}" for k, v in details.items()]
            parts.append("\nDetails:")
            parts.extend(detail_lines)

        if suggestion:
            parts.append(f"\nSuggestion: {suggestion}")

        super().__init__("\n".join(parts) if len(parts) > 1 else message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for structured logging."""
        return {
            "error_type": self.__class__.__name__,
            "message": str(self.args[0]) if self.args else "",
            "connector": self.connector,
            "details": self.details,
            "suggestion": self.suggestion,
        }


class SchemaError(FormError):
    """Malformed connector schema.

    Raised at build time when the schema cannot be interpreted, e.g. a
    ``oneOf`` without a shared discriminator or a ``const`` outside its
    ``enum``. The form cannot render until the schema is fixed.
    """

    def __init__(
        self,
        message: str,
        *,
        path: Sequence[Union[str, int]] = (),
        keyword: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        self.path = tuple(path)
        self.keyword = keyword

        details = kwargs.pop("details", {})
        details["path"] = ".".join(str(p) for p in self.path) or "<root>"
        if keyword:
            details["keyword"] = keyword

        super().__init__(message, details=details, **kwargs)


class DefinitionError(FormError):
    """A connector definition document could not be loaded."""

    def __init__(
        self,
        message: str,
        *,
        source: Optional[str] = None,
        cause: Optional[Exception] = None,
        **kwargs: Any,
    ) -> None:
        self.source = source
        self.cause = cause

        details = kwargs.pop("details", {})
        if source:
            details["source"] = source
        if cause:
            details["cause"] = str(cause)
            details["cause_type"] = type(cause).__name__

        super().__init__(message, details=details, **kwargs)


class SubmissionError(FormError):
    """Submission blocked by a failing validation cycle.

    The held values are left exactly as they were; only editing can fix them.
    """

    def __init__(
        self,
        message: str,
        *,
        issues: Optional[List[Any]] = None,
        **kwargs: Any,
    ) -> None:
        self.issues = list(issues or [])

        details = kwargs.pop("details", {})
        if self.issues:
            details["issue_count"] = len(self.issues)
            issue_lines = "\n".join(f"  - {issue}" for issue in self.issues)
            message = f"{message}\n\nIssues found:\n{issue_lines}"

        super().__init__(message, details=details, **kwargs)
