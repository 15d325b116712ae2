"""Domain errors raised by the form engine and its collaborators.

Three kinds only:

- ``ValidationError``: field-attributable, user-correctable.
- ``TransportError``: the store or lookup source is unreachable or slow.
- ``ConfigurationError``: the store cannot be reached because setup is missing.

``SubmissionInProgress`` is a ``TransportError`` subtype: the caller should try
again once the outstanding submission finishes.
"""

from __future__ import annotations

from typing import Dict, Optional


class InteractionCaptureError(Exception):
    """Base class for errors surfaced to API callers."""

    retryable: bool = False

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(InteractionCaptureError):
    """Answer set failed the conditional rules. Carries one message per field."""

    def __init__(self, field_errors: Dict[str, str], message: str = "Validation error") -> None:
        self.field_errors = dict(field_errors)
        super().__init__(message)

    def __str__(self) -> str:
        fields = ", ".join(sorted(self.field_errors))
        return f"{self.message} ({fields})" if fields else self.message


class TransportError(InteractionCaptureError):
    """Remote store or lookup source unreachable, failing or too slow."""

    retryable = True

    def __init__(self, message: str = "Could not reach the data store. Please try again.",
                 *, cause: Optional[BaseException] = None) -> None:
        self.cause = cause
        super().__init__(message)


class ConfigurationError(InteractionCaptureError):
    """Operator-facing setup fault (missing credentials, unknown backend)."""


class SubmissionInProgress(TransportError):
    """A submission from the same form is still outstanding."""

    def __init__(self) -> None:
        super().__init__("A submission is already in progress. Please wait.")
