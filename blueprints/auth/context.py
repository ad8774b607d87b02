from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

from flask import g
from flask_login import current_user

from errors import AuthError, AuthorizationError
from models import UserRole

ALL_ROLES = (UserRole.STUDENT.value, UserRole.INSTRUCTOR.value, UserRole.ADMIN.value)
STAFF_ROLES = (UserRole.INSTRUCTOR.value, UserRole.ADMIN.value)
ADMIN_ONLY = (UserRole.ADMIN.value,)

@dataclass(frozen=True)
class RequestContext:
    """Who is calling. Built once per request and handed to every service call."""
    user_id: Optional[int] = None
    role: Optional[str] = None
    email: Optional[str] = None
    # set when a bearer token was sent but rejected (expired, tampered, user gone)
    auth_error: Optional[AuthError] = field(default=None, compare=False, repr=False)

    @classmethod
    def anonymous(cls, auth_error: Optional[AuthError] = None) -> "RequestContext":
        return cls(auth_error=auth_error)

    @classmethod
    def for_user(cls, user) -> "RequestContext":
        return cls(user_id=user.id, role=user.role, email=user.email)

    @property
    def is_authenticated(self) -> bool:
        return self.user_id is not None

    def require_authenticated(self) -> None:
        if not self.is_authenticated:
            raise self.auth_error or AuthError("Authentication required")

    def require_role(self, *roles: str) -> None:
        self.require_authenticated()
        if self.role not in roles:
            raise AuthorizationError("Your role does not allow this action")

    def log_extra(self, **fields) -> dict:
        return {"user_id": self.user_id, **fields}

def request_context() -> RequestContext:
    """Caller of the current request, as resolved by the bearer-token request loader."""
    if current_user.is_authenticated:
        return RequestContext.for_user(current_user)
    return RequestContext.anonymous(g.get("auth_error"))
