"""
Error taxonomy shared by the service layer and the HTTP layer.

Each error carries the HTTP status it maps to; the API registers one
handler for the base class and renders the standard failure envelope.
"""

from __future__ import annotations

from typing import Any


class ServiceError(Exception):
    """Base class for errors that are safe to report to the caller."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> dict[str, Any]:
        return {"success": False, "message": self.message}


class ValidationError(ServiceError):
    """One or more fields of a submitted document are missing or invalid."""

    status_code = 400

    def __init__(self, errors: list[str], message: str = "Validation error"):
        super().__init__(message)
        self.errors = list(errors)

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        payload["errors"] = self.errors
        return payload


class NotFoundError(ServiceError):
    status_code = 404


class AuthorizationError(ServiceError):
    """Caller is unidentified (401) or below the required role tier (403)."""

    status_code = 403

    def __init__(
        self,
        message: str = "You do not have permission to perform this action",
        required_role: str | None = None,
        role: str | None = None,
        status_code: int = 403,
    ):
        super().__init__(message)
        self.required_role = required_role
        self.role = role
        self.status_code = status_code

    def to_payload(self) -> dict[str, Any]:
        payload = super().to_payload()
        if self.required_role is not None:
            payload["requiredRole"] = self.required_role
            payload["yourRole"] = self.role
        return payload


class ConflictError(ServiceError):
    """The stored document changed since the caller read it."""

    status_code = 409


class InternalError(ServiceError):
    """Unexpected failure. The message is generic; details go to the log only."""

    status_code = 500

    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
