from __future__ import annotations

from flask import url_for

from . import bp
from . import services
from .schemas import DepartmentIn
from blueprints.auth.context import request_context
from blueprints.core.http import created, deleted, json_body, match_ids, ok, paginated

@bp.get("/department")
def department_list():
    return paginated(services.list_departments(request_context()))

@bp.post("/department")
def department_create():
    ctx = request_context()
    data = DepartmentIn.model_validate(json_body())
    out = services.create_department(ctx, data)
    return created(url_for("department.department_get", id=out.id), out.model_dump(mode="json"))

@bp.get("/department/<int:id>")
def department_get(id: int):
    out = services.get_department(request_context(), id)
    return ok(out.model_dump(mode="json"))

@bp.put("/department", defaults={"id": None})
@bp.put("/department/<int:id>")
def department_update(id: int | None):
    ctx = request_context()
    data = DepartmentIn.model_validate(json_body())
    out = services.update_department(ctx, match_ids(id, data.id), data)
    return ok(out.model_dump(mode="json"))

@bp.delete("/department/<int:id>")
def department_delete(id: int):
    services.delete_department(request_context(), id)
    return deleted("Department deleted")
