from __future__ import annotations

from flask import url_for

from . import bp
from . import services
from .schemas import InstructorIn
from blueprints.auth.context import request_context
from blueprints.core.http import created, deleted, json_body, match_ids, ok, paginated

@bp.get("/instructor")
def instructor_list():
    return paginated(services.list_instructors(request_context()))

@bp.post("/instructor")
def instructor_create():
    ctx = request_context()
    data = InstructorIn.model_validate(json_body())
    out = services.create_instructor(ctx, data)
    return created(url_for("instructor.instructor_get", id=out.id), out.model_dump(mode="json"))

@bp.get("/instructor/<int:id>")
def instructor_get(id: int):
    out = services.get_instructor(request_context(), id)
    return ok(out.model_dump(mode="json"))

@bp.put("/instructor", defaults={"id": None})
@bp.put("/instructor/<int:id>")
def instructor_update(id: int | None):
    ctx = request_context()
    data = InstructorIn.model_validate(json_body())
    out = services.update_instructor(ctx, match_ids(id, data.id), data)
    return ok(out.model_dump(mode="json"))

@bp.delete("/instructor/<int:id>")
def instructor_delete(id: int):
    services.delete_instructor(request_context(), id)
    return deleted("Instructor deleted")

# ---- course assignment ----
@bp.get("/instructor/<int:id>/courses")
def instructor_courses(id: int):
    return paginated(services.assigned_courses(request_context(), id))

@bp.get("/instructor/<int:id>/courses/available")
def instructor_courses_available(id: int):
    return paginated(services.available_courses(request_context(), id))

@bp.post("/instructor/<int:id>/courses/<int:course_id>")
def instructor_course_assign(id: int, course_id: int):
    items = services.assign_course(request_context(), id, course_id)
    return ok({"items": [c.model_dump(mode="json") for c in items]}, 201)

@bp.delete("/instructor/<int:id>/courses/<int:course_id>")
def instructor_course_unassign(id: int, course_id: int):
    services.unassign_course(request_context(), id, course_id)
    return deleted("Course unassigned")
