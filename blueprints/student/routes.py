from __future__ import annotations

from flask import url_for

from . import bp
from . import services
from .schemas import StudentIn
from blueprints.auth.context import request_context
from blueprints.core.http import created, deleted, json_body, match_ids, ok, optional_int_arg, paginated

@bp.get("/student")
def student_list():
    return paginated(services.list_students(request_context()))

@bp.post("/student")
def student_create():
    ctx = request_context()
    data = StudentIn.model_validate(json_body())
    out = services.create_student(ctx, data)
    return created(url_for("student.student_get", id=out.id), out.model_dump(mode="json"))

@bp.get("/student/<int:id>")
def student_get(id: int):
    out = services.get_student(request_context(), id)
    return ok(out.model_dump(mode="json"))

@bp.put("/student", defaults={"id": None})
@bp.put("/student/<int:id>")
def student_update(id: int | None):
    ctx = request_context()
    data = StudentIn.model_validate(json_body())
    out = services.update_student(ctx, match_ids(id, data.id), data)
    return ok(out.model_dump(mode="json"))

@bp.delete("/student/<int:id>")
def student_delete(id: int):
    services.delete_student(request_context(), id)
    return deleted("Student deleted")

# ---- search ----
@bp.get("/student/search/instructor/<int:instructor_id>")
def student_by_instructor(instructor_id: int):
    return paginated(services.by_instructor(request_context(), instructor_id))

@bp.get("/student/search/course/<int:course_id>")
def student_by_course(course_id: int):
    return paginated(services.by_course(request_context(), course_id))

@bp.get("/student/search")
def student_search():
    return paginated(services.search(
        request_context(),
        user_id=optional_int_arg("user_id"),
        instructor_id=optional_int_arg("instructor_id"),
        course_id=optional_int_arg("course_id"),
    ))
