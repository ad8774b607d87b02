from __future__ import annotations

from flask import Blueprint

from . import services
from blueprints.auth.context import request_context
from blueprints.core.http import deleted, ok, paginated

bp = Blueprint("admin", __name__)

@bp.get("/admin")
def admin_list():
    return paginated(services.list_admins(request_context()))

@bp.get("/admin/role/<int:role_id>")
def admin_users_by_role(role_id: int):
    return paginated(services.users_by_role(request_context(), role_id))

@bp.get("/admin/<int:id>")
def admin_get(id: int):
    return ok(services.get_user(request_context(), id).model_dump(mode="json"))

@bp.delete("/admin/<int:id>")
def admin_delete(id: int):
    services.delete_user(request_context(), id)
    return deleted("User deleted")
