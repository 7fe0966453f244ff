"""Typed failures returned by the review workflow."""

from enum import Enum

from fastapi import status


class WorkflowErrorKind(str, Enum):
    """Failure kinds, one per failed workflow call."""

    NOT_FOUND = "NOT_FOUND"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    FORBIDDEN = "FORBIDDEN"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    CONFLICT = "CONFLICT"


class WorkflowError(Exception):
    """Base class for workflow failures.

    `message` is shown to the end user as-is.
    """

    kind: WorkflowErrorKind
    status_code: int = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(WorkflowError):
    """The form does not exist (or is not of the requested kind)."""

    kind = WorkflowErrorKind.NOT_FOUND
    status_code = status.HTTP_404_NOT_FOUND


class InvalidTransitionError(WorkflowError):
    """The action is not legal from the form's current status."""

    kind = WorkflowErrorKind.INVALID_TRANSITION
    status_code = status.HTTP_400_BAD_REQUEST


class ForbiddenError(WorkflowError):
    """The actor's role or scope does not cover this form at this stage."""

    kind = WorkflowErrorKind.FORBIDDEN
    status_code = status.HTTP_403_FORBIDDEN


class WorkflowValidationError(WorkflowError):
    """Reviewer input is missing or out of range."""

    kind = WorkflowErrorKind.VALIDATION_ERROR
    status_code = status.HTTP_400_BAD_REQUEST


class ConflictError(WorkflowError):
    """Another actor changed the form between load and commit."""

    kind = WorkflowErrorKind.CONFLICT
    status_code = status.HTTP_409_CONFLICT
