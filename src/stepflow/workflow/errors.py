"""Error taxonomy for the workflow pipeline.

Each class maps to one HTTP outcome at the server boundary, so callers can
distinguish "the model said nothing useful" from "the payload is wrong" from
"there is no such record".
"""

from __future__ import annotations


class StepflowError(Exception):
    """Base class for all domain errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class ExtractionError(StepflowError):
    """Raw model output contains no recoverable JSON object."""


class ValidationError(StepflowError):
    """Parseable payload that does not describe a valid workflow."""


class NotFoundError(StepflowError):
    """No record exists for the requested identifier."""

    def __init__(self, identifier: str, message: str = "Not found") -> None:
        super().__init__(message)
        self.identifier = identifier


class UpstreamError(StepflowError):
    """The external document model failed (network, quota, empty response)."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class StoreError(StepflowError):
    """A stored record could not be read or written."""
