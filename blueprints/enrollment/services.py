# blueprints/enrollment/services.py
from __future__ import annotations
import logging
from typing import List

from blueprints.auth.context import ALL_ROLES, STAFF_ROLES, RequestContext
from blueprints.core.tx import unit_of_work
from errors import NotFoundError, ValidationError
from extensions import db
from models import Course, Department, Enrollment, User, UserRole
from .schemas import EnrollmentIn, EnrollmentOut

log = logging.getLogger(__name__)

ALREADY_ENROLLED = "The student is already enrolled in this course."

def _details():
    return (db.session.query(Enrollment, Course, Department, User)
            .join(Course, Course.id == Enrollment.course_id)
            .outerjoin(Department, Department.id == Course.department_id)
            .join(User, User.id == Enrollment.student_id))

def _to_out(e: Enrollment, c: Course, d: Department | None, u: User) -> EnrollmentOut:
    return EnrollmentOut(
        id=e.id, course_id=e.course_id, student_id=e.student_id,
        grade=float(e.grade) if e.grade is not None else None,
        course_name=c.title, credits=c.credits,
        department_id=c.department_id, department_name=d.name if d else None,
        student_name=u.full_name, student_email=u.email,
    )

def _ordered(q) -> List[EnrollmentOut]:
    return [_to_out(*row) for row in q.order_by(Enrollment.id.asc()).all()]

def _one(enrollment_id: int) -> EnrollmentOut:
    row = _details().filter(Enrollment.id == enrollment_id).first()
    if row is None:
        raise NotFoundError(f"Enrollment {enrollment_id} not found")
    return _to_out(*row)

def _get_or_404(enrollment_id: int) -> Enrollment:
    e = db.session.get(Enrollment, enrollment_id)
    if e is None:
        raise NotFoundError(f"Enrollment {enrollment_id} not found")
    return e

def _check_refs(data: EnrollmentIn) -> None:
    if db.session.get(Course, data.course_id) is None:
        raise NotFoundError(f"Course {data.course_id} not found", field="course_id")
    student = db.session.get(User, data.student_id)
    if student is None:
        raise NotFoundError(f"Student {data.student_id} not found", field="student_id")
    if student.role != UserRole.STUDENT.value:
        raise ValidationError("The specified user is not registered as a student.", field="student_id")

# ---------- reads ----------
def list_enrollments(ctx: RequestContext) -> List[EnrollmentOut]:
    ctx.require_role(*ALL_ROLES)
    return _ordered(_details())

def get_enrollment(ctx: RequestContext, enrollment_id: int) -> EnrollmentOut:
    ctx.require_role(*ALL_ROLES)
    return _one(enrollment_id)

def by_student(ctx: RequestContext, student_id: int) -> List[EnrollmentOut]:
    ctx.require_role(*ALL_ROLES)
    return _ordered(_details().filter(Enrollment.student_id == student_id))

def by_course(ctx: RequestContext, course_id: int) -> List[EnrollmentOut]:
    ctx.require_role(*ALL_ROLES)
    return _ordered(_details().filter(Enrollment.course_id == course_id))

# ---------- writes ----------
def create_enrollment(ctx: RequestContext, data: EnrollmentIn) -> EnrollmentOut:
    """Duplicates are caught by uq_enrollment_student_course, not by a lookup."""
    ctx.require_role(*STAFF_ROLES)
    with unit_of_work("Enrollment could not be saved", unique_message=ALREADY_ENROLLED):
        _check_refs(data)
        e = Enrollment(course_id=data.course_id, student_id=data.student_id, grade=data.grade)
        db.session.add(e)
    log.info("enrollment created", extra=ctx.log_extra(event="create", entity="enrollment", entity_id=e.id))
    return _one(e.id)

def update_enrollment(ctx: RequestContext, enrollment_id: int, data: EnrollmentIn) -> EnrollmentOut:
    ctx.require_role(*STAFF_ROLES)
    with unit_of_work("Enrollment could not be saved", unique_message=ALREADY_ENROLLED):
        e = _get_or_404(enrollment_id)
        _check_refs(data)
        e.course_id = data.course_id
        e.student_id = data.student_id
        e.grade = data.grade
    log.info("enrollment updated", extra=ctx.log_extra(event="update", entity="enrollment", entity_id=enrollment_id))
    return _one(enrollment_id)

def delete_enrollment(ctx: RequestContext, enrollment_id: int) -> None:
    ctx.require_role(*STAFF_ROLES)
    with unit_of_work("Enrollment could not be deleted", conflict_on_storage_error=True):
        db.session.delete(_get_or_404(enrollment_id))
    log.info("enrollment deleted", extra=ctx.log_extra(event="delete", entity="enrollment", entity_id=enrollment_id))
