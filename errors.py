"""Error taxonomy shared by services and routes.

Services raise these; the core blueprint turns them into JSON responses of the
form ``{"error": code, "message": text[, "field": name]}``.
"""
from __future__ import annotations
from typing import Any, Dict


class AppError(Exception):
    status = 500
    code = "internal_error"

    def __init__(self, message: str, *, field: str | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        self.field = field
        if code:
            self.code = code

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"error": self.code, "message": self.message}
        if self.field:
            payload["field"] = self.field
        return payload


class ValidationError(AppError):
    status = 400
    code = "validation_error"


class AuthError(AppError):
    status = 401
    code = "unauthorized"


class AuthorizationError(AppError):
    status = 403
    code = "forbidden"


class NotFoundError(AppError):
    status = 404
    code = "not_found"


class ConflictError(AppError):
    status = 409
    code = "conflict"
