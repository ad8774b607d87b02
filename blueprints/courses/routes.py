from __future__ import annotations

from flask import url_for

from . import bp
from . import services
from .schemas import CourseIn
from blueprints.auth.context import request_context
from blueprints.core.http import created, deleted, json_body, match_ids, ok, paginated

@bp.get("/courses")
def courses_list():
    return paginated(services.list_courses(request_context()))

@bp.post("/courses")
def courses_create():
    ctx = request_context()
    data = CourseIn.model_validate(json_body())
    out = services.create_course(ctx, data)
    return created(url_for("courses.courses_get", id=out.id), out.model_dump(mode="json"))

@bp.get("/courses/<int:id>")
def courses_get(id: int):
    out = services.get_course(request_context(), id)
    return ok(out.model_dump(mode="json"))

@bp.put("/courses", defaults={"id": None})
@bp.put("/courses/<int:id>")
def courses_update(id: int | None):
    ctx = request_context()
    data = CourseIn.model_validate(json_body())
    out = services.update_course(ctx, match_ids(id, data.id), data)
    return ok(out.model_dump(mode="json"))

@bp.delete("/courses/<int:id>")
def courses_delete(id: int):
    services.delete_course(request_context(), id)
    return deleted("Course deleted")
