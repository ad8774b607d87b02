# blueprints/auth/services.py
from __future__ import annotations
import logging
from datetime import datetime, timezone

from blueprints.core.tx import unit_of_work
from blueprints.instructor.services import add_instructor_row
from errors import AuthError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from extensions import db
from models import Department, Instructor, User, UserRole
from .accounts import email_taken, find_user_by_email
from .context import RequestContext
from .schemas import (
    AuthOut, ForgotPasswordIn, LoginIn, ProfileUpdateIn, RegisterIn, ResetPasswordIn, UserOut
)
from .tokens import check_reset_token, issue_reset_token, issue_token

log = logging.getLogger(__name__)

EMAIL_TAKEN = "An account with this email already exists"
PROFILE_FIELDS = ("phone_number", "bio", "profile_photo_url", "date_of_birth", "address", "company")

def _auth_response(user: User) -> AuthOut:
    token, expires_at = issue_token(user)
    return AuthOut(token=token, expiration=expires_at, user=UserOut.from_user(user))

def _current_user(ctx: RequestContext) -> User:
    ctx.require_authenticated()
    user = db.session.get(User, ctx.user_id)
    if user is None:
        raise AuthError("Account no longer exists", code="invalid_token")
    return user

def register(data: RegisterIn) -> AuthOut:
    """New account; an INSTRUCTOR also gets an instructor row in the chosen department."""
    email = data.email.lower()
    is_instructor = data.role == UserRole.INSTRUCTOR.value
    if is_instructor and data.department_id is None:
        raise ValidationError("department_id is required for instructors", field="department_id")
    with unit_of_work("Account could not be created", unique_message=EMAIL_TAKEN):
        if email_taken(email):
            raise ConflictError(EMAIL_TAKEN, field="email")
        if data.department_id is not None and db.session.get(Department, data.department_id) is None:
            raise NotFoundError(f"Department {data.department_id} not found", field="department_id")
        user = User(
            email=email, role=data.role,
            first_mid_name=data.first_mid_name.strip(), last_name=data.last_name.strip(),
            department_id=data.department_id,
            enrollment_date=datetime.now(timezone.utc).replace(tzinfo=None),
        )
        for name in PROFILE_FIELDS:
            setattr(user, name, getattr(data, name))
        user.set_password(data.password)
        db.session.add(user)
        db.session.flush()
        if is_instructor:
            add_instructor_row(
                first_mid_name=user.first_mid_name, last_name=user.last_name, email=email,
                hire_date=user.enrollment_date, phone_number=user.phone_number,
                department_id=data.department_id, user_id=user.id,
            )
    log.info("user registered", extra={"event": "register", "user_id": user.id, "entity": "user", "entity_id": user.id})
    return _auth_response(user)

def login(data: LoginIn) -> AuthOut:
    user = find_user_by_email(data.email)
    if user is None or not user.check_password(data.password):
        log.info("login failed", extra={"event": "login_failed"})
        raise AuthError("Invalid email or password", code="invalid_credentials")
    if not user.is_active:
        raise AuthorizationError("Account is disabled")
    log.info("login", extra={"event": "login", "user_id": user.id})
    return _auth_response(user)

def me(ctx: RequestContext) -> UserOut:
    return UserOut.from_user(_current_user(ctx))

def update_profile(ctx: RequestContext, data: ProfileUpdateIn) -> UserOut:
    with unit_of_work("Profile could not be saved", unique_message=EMAIL_TAKEN):
        user = _current_user(ctx)
        changes = data.model_dump(exclude_unset=True)
        if changes.get("email"):
            email = changes["email"].lower()
            if email_taken(email, exclude_user_id=user.id):
                raise ConflictError(EMAIL_TAKEN, field="email")
            changes["email"] = email
        if changes.get("department_id") is not None and db.session.get(Department, changes["department_id"]) is None:
            raise NotFoundError(f"Department {changes['department_id']} not found", field="department_id")
        for name, value in changes.items():
            # names and email cannot be cleared
            if value is None and name in ("first_mid_name", "last_name", "email"):
                continue
            if isinstance(value, str) and name in ("first_mid_name", "last_name"):
                value = value.strip()
            setattr(user, name, value)
        # the linked instructor row mirrors the account's contact details
        for inst in Instructor.query.filter_by(user_id=user.id).all():
            inst.first_mid_name = user.first_mid_name
            inst.last_name = user.last_name
            inst.email = user.email
            inst.phone_number = user.phone_number
    log.info("profile updated", extra=ctx.log_extra(event="update", entity="user", entity_id=user.id))
    return UserOut.from_user(user)

def forgot_password(data: ForgotPasswordIn) -> str:
    user = find_user_by_email(data.email)
    if user is None:
        raise NotFoundError("No account with this email", field="email")
    log.info("password reset requested", extra={"event": "forgot_password", "user_id": user.id})
    return issue_reset_token(user)

def reset_password(data: ResetPasswordIn) -> None:
    with unit_of_work("Password could not be reset"):
        user = find_user_by_email(data.email)
        if user is None:
            raise NotFoundError("No account with this email", field="email")
        check_reset_token(data.token, user)
        user.set_password(data.new_password)
    log.info("password reset", extra={"event": "reset_password", "user_id": user.id})
