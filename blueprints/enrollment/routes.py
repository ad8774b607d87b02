from __future__ import annotations

from flask import url_for

from . import bp
from . import services
from .schemas import EnrollmentIn
from blueprints.auth.context import request_context
from blueprints.core.http import created, deleted, json_body, match_ids, ok, paginated

@bp.get("/enrollment")
def enrollment_list():
    return paginated(services.list_enrollments(request_context()))

@bp.post("/enrollment")
def enrollment_create():
    ctx = request_context()
    data = EnrollmentIn.model_validate(json_body())
    out = services.create_enrollment(ctx, data)
    return created(url_for("enrollment.enrollment_get", id=out.id), out.model_dump(mode="json"))

@bp.get("/enrollment/<int:id>")
def enrollment_get(id: int):
    out = services.get_enrollment(request_context(), id)
    return ok(out.model_dump(mode="json"))

@bp.put("/enrollment", defaults={"id": None})
@bp.put("/enrollment/<int:id>")
def enrollment_update(id: int | None):
    ctx = request_context()
    data = EnrollmentIn.model_validate(json_body())
    out = services.update_enrollment(ctx, match_ids(id, data.id), data)
    return ok(out.model_dump(mode="json"))

@bp.delete("/enrollment/<int:id>")
def enrollment_delete(id: int):
    services.delete_enrollment(request_context(), id)
    return deleted("Enrollment deleted")

@bp.get("/enrollment/student/<int:student_id>")
def enrollment_by_student(student_id: int):
    return paginated(services.by_student(request_context(), student_id))

@bp.get("/enrollment/course/<int:course_id>")
def enrollment_by_course(course_id: int):
    return paginated(services.by_course(request_context(), course_id))
