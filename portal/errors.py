# portal/errors.py
# Taxonomie d'erreurs : chaque erreur porte son statut HTTP et un code court (reason).
from __future__ import annotations


class PortalError(Exception):
    status_code: int = 500
    reason: str = "internal_error"

    def __init__(self, message: str | None = None, *, reason: str | None = None) -> None:
        super().__init__(message or self.reason)
        self.message = message or self.reason
        if reason:
            self.reason = reason

    def to_dict(self) -> dict:
        return {"error": self.message, "reason": self.reason}


class ConfigurationError(PortalError):
    status_code = 400
    reason = "not_configured"

class InvalidRequest(PortalError):
    status_code = 400
    reason = "invalid_request"

class UnknownKind(InvalidRequest):
    reason = "unknown_kind"

class NotFound(PortalError):
    status_code = 404
    reason = "not_found"

class AccessDenied(PortalError):
    status_code = 403
    reason = "access_denied"

class Unauthorized(PortalError):
    status_code = 401
    reason = "unauthorized"

class Conflict(PortalError):
    status_code = 409
    reason = "conflict"

class ProvisioningError(PortalError):
    reason = "provisioning_failed"

class StorageFailure(PortalError):
    reason = "storage_failure"
