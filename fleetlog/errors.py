"""Error taxonomy shared by the store, the recorder and the HTTP layer."""

from __future__ import annotations


class FleetLogError(RuntimeError):
    """Base class for domain errors that are reported back to the user."""

    code = "error"
    status_code = 400

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class WorkLogValidationError(FleetLogError):
    """A work-log draft was rejected before any state changed."""

    code = "invalid_work_log"
    status_code = 422


class MissingEvidence(WorkLogValidationError):
    code = "missing_evidence"


class InvalidHorimeterRange(WorkLogValidationError):
    code = "invalid_horimeter_range"


class InvalidNumericInput(WorkLogValidationError):
    code = "invalid_numeric_input"


class UnknownTractor(WorkLogValidationError):
    code = "unknown_tractor"


class MissingServiceName(WorkLogValidationError):
    code = "missing_service_name"


class AuthenticationError(FleetLogError):
    code = "authentication_failed"
    status_code = 401


class NotAuthenticated(FleetLogError):
    code = "not_authenticated"
    status_code = 401


class PermissionDenied(FleetLogError):
    code = "permission_denied"
    status_code = 403


class EntityNotFound(FleetLogError):
    code = "not_found"
    status_code = 404


class DuplicateEntity(FleetLogError):
    code = "duplicate_entity"
    status_code = 409


__all__ = [
    "FleetLogError",
    "WorkLogValidationError",
    "MissingEvidence",
    "InvalidHorimeterRange",
    "InvalidNumericInput",
    "UnknownTractor",
    "MissingServiceName",
    "AuthenticationError",
    "NotAuthenticated",
    "PermissionDenied",
    "EntityNotFound",
    "DuplicateEntity",
]
