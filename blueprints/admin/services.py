# blueprints/admin/services.py
from __future__ import annotations
import logging
from typing import List

from blueprints.auth.accounts import delete_account_rows
from blueprints.auth.context import ADMIN_ONLY, STAFF_ROLES, RequestContext
from blueprints.auth.schemas import UserOut
from blueprints.core.tx import unit_of_work
from errors import NotFoundError, ValidationError
from extensions import db
from models import User, UserRole

log = logging.getLogger(__name__)

def _get_or_404(user_id: int) -> User:
    u = db.session.get(User, user_id)
    if u is None:
        raise NotFoundError(f"User {user_id} not found")
    return u

def _by_role(role: UserRole) -> List[UserOut]:
    rows = (User.query.filter(User.role == role.value)
            .order_by(User.last_name.asc(), User.first_mid_name.asc(), User.id.asc()).all())
    return [UserOut.from_user(u) for u in rows]

def list_admins(ctx: RequestContext) -> List[UserOut]:
    ctx.require_role(*STAFF_ROLES)
    return _by_role(UserRole.ADMIN)

def users_by_role(ctx: RequestContext, role_id: int) -> List[UserOut]:
    ctx.require_role(*STAFF_ROLES)
    try:
        role = UserRole.from_number(role_id)
    except ValueError:
        raise ValidationError("role must be 1=Student, 2=Instructor or 3=Admin", field="role_id")
    return _by_role(role)

def get_user(ctx: RequestContext, user_id: int) -> UserOut:
    ctx.require_role(*STAFF_ROLES)
    return UserOut.from_user(_get_or_404(user_id))

def delete_user(ctx: RequestContext, user_id: int) -> None:
    """Enrollments go with the account; a linked instructor row stays, unlinked."""
    ctx.require_role(*ADMIN_ONLY)
    with unit_of_work("User could not be deleted; nothing was changed", conflict_on_storage_error=True):
        u = _get_or_404(user_id)
        delete_account_rows(u.id)
    log.info("user deleted", extra=ctx.log_extra(event="delete", entity="user", entity_id=user_id))
