from __future__ import annotations
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Tuple

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from errors import AuthError, ValidationError

def _serializer(salt: str) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=salt)

def issue_token(user) -> Tuple[str, datetime]:
    """Signed bearer token with identity and role claims, plus its expiry moment (UTC)."""
    claims = {"sub": user.id, "role": user.role, "email": user.email}
    token = _serializer(current_app.config["AUTH_TOKEN_SALT"]).dumps(claims)
    ttl = int(current_app.config["AUTH_TOKEN_TTL"])
    return token, datetime.now(timezone.utc) + timedelta(seconds=ttl)

def decode_token(token: str) -> Dict[str, Any]:
    try:
        claims = _serializer(current_app.config["AUTH_TOKEN_SALT"]).loads(
            token, max_age=int(current_app.config["AUTH_TOKEN_TTL"])
        )
    except SignatureExpired:
        raise AuthError("Token has expired, please sign in again", code="token_expired")
    except BadSignature:
        raise AuthError("Invalid token", code="invalid_token")
    if not isinstance(claims, dict) or "sub" not in claims:
        raise AuthError("Invalid token", code="invalid_token")
    return claims

def issue_reset_token(user) -> str:
    # tail of the hash: the token stops working once the password changes
    return _serializer(current_app.config["PASSWORD_RESET_SALT"]).dumps(
        {"sub": user.id, "email": user.email, "pw": user.password_hash[-12:]}
    )

def check_reset_token(token: str, user) -> None:
    try:
        data = _serializer(current_app.config["PASSWORD_RESET_SALT"]).loads(
            token, max_age=int(current_app.config["PASSWORD_RESET_TTL"])
        )
    except SignatureExpired:
        raise ValidationError("Reset token has expired", field="token")
    except BadSignature:
        raise ValidationError("Invalid reset token", field="token")
    if data.get("sub") != user.id or data.get("email") != user.email or data.get("pw") != user.password_hash[-12:]:
        raise ValidationError("Invalid reset token", field="token")
