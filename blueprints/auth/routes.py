# blueprints/auth/routes.py
from __future__ import annotations
from typing import Optional

from flask import Blueprint, g

from blueprints.core.http import json_body, ok
from errors import AuthError
from extensions import db, login_manager
from models import User
from . import services
from .context import request_context
from .schemas import ForgotPasswordIn, LoginIn, ProfileUpdateIn, RegisterIn, ResetPasswordIn
from .tokens import decode_token

bp = Blueprint("auth", __name__)

@login_manager.user_loader
def load_user(uid: str) -> Optional[User]:
    try:
        return db.session.get(User, int(uid))
    except (TypeError, ValueError):
        return None

@login_manager.request_loader
def load_user_from_request(req) -> Optional[User]:
    """Authorization: Bearer <token>. A rejected token is kept in g for the services to raise."""
    header = req.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    try:
        claims = decode_token(token.strip())
    except AuthError as e:
        g.auth_error = e
        return None
    user = db.session.get(User, claims["sub"]) if isinstance(claims["sub"], int) else None
    if user is None:
        g.auth_error = AuthError("Account no longer exists", code="invalid_token")
        return None
    if not user.is_active:
        g.auth_error = AuthError("Account is disabled")
        return None
    return user

# ---------- API ----------
@bp.post("/auth/register")
def api_register():
    data = RegisterIn.model_validate(json_body())
    return ok(services.register(data).model_dump(mode="json"), 201)

@bp.post("/auth/login")
def api_login():
    data = LoginIn.model_validate(json_body())
    return ok(services.login(data).model_dump(mode="json"))

@bp.get("/auth/me")
def api_me():
    return ok(services.me(request_context()).model_dump(mode="json"))

@bp.put("/auth/profile")
def api_profile_update():
    ctx = request_context()
    data = ProfileUpdateIn.model_validate(json_body())
    return ok(services.update_profile(ctx, data).model_dump(mode="json"))

@bp.post("/auth/logout")
def api_logout():
    # токены не хранятся на сервере: клиент просто забывает свой
    request_context().require_authenticated()
    return ok({"message": "Logged out"})

@bp.post("/auth/forgot-password")
def api_forgot_password():
    data = ForgotPasswordIn.model_validate(json_body())
    token = services.forgot_password(data)
    return ok({"message": "Password reset token issued", "reset_token": token})

@bp.post("/auth/reset-password")
def api_reset_password():
    data = ResetPasswordIn.model_validate(json_body())
    services.reset_password(data)
    return ok({"message": "Password has been reset"})
