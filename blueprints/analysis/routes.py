from __future__ import annotations

from flask import current_app

from . import bp
from . import services
from blueprints.auth.context import request_context
from blueprints.core.http import json_body, ok
from blueprints.enrollment.schemas import EnrollmentIn
from blueprints.enrollment.services import create_enrollment

@bp.get("/analysis")
def analysis_dashboard():
    data = services.dashboard(request_context(), started_at=current_app.config["STARTED_AT"])
    return ok(data)

# быстрый путь записи студента прямо с дашборда
@bp.post("/analysis/enroll")
def analysis_enroll():
    ctx = request_context()
    data = EnrollmentIn.model_validate(json_body())
    out = create_enrollment(ctx, data)
    return ok({
        "id": out.id, "course_id": out.course_id, "student_id": out.student_id, "grade": out.grade,
        "message": "Student enrolled successfully",
    })
