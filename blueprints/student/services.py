# blueprints/student/services.py
from __future__ import annotations
import logging
from typing import List

from sqlalchemy import select

from blueprints.auth.accounts import delete_account_rows, email_taken
from blueprints.auth.context import ALL_ROLES, STAFF_ROLES, RequestContext
from blueprints.core.tx import unit_of_work
from errors import ConflictError, NotFoundError, ValidationError
from extensions import db
from models import Course, Department, Enrollment, Instructor, User, UserRole, course_instructor
from .schemas import StudentIn, StudentOut

log = logging.getLogger(__name__)

EMAIL_TAKEN = "An account with this email already exists"

def _students():
    return (db.session.query(User, Department)
            .outerjoin(Department, Department.id == User.department_id)
            .filter(User.role == UserRole.STUDENT.value))

def _to_out(u: User, dept: Department | None) -> StudentOut:
    return StudentOut(
        id=u.id, first_mid_name=u.first_mid_name, last_name=u.last_name, full_name=u.full_name,
        email=u.email, phone_number=u.phone_number, enrollment_date=u.enrollment_date,
        department_id=u.department_id, department_name=dept.name if dept else None,
    )

def _ordered(q) -> List[StudentOut]:
    rows = q.order_by(User.last_name.asc(), User.first_mid_name.asc(), User.id.asc()).all()
    return [_to_out(u, d) for u, d in rows]

def _get_or_404(student_id: int) -> User:
    u = db.session.get(User, student_id)
    # other roles are not students and stay invisible here
    if u is None or u.role != UserRole.STUDENT.value:
        raise NotFoundError(f"Student {student_id} not found")
    return u

def _check_department(department_id: int | None) -> None:
    if department_id is not None and db.session.get(Department, department_id) is None:
        raise NotFoundError(f"Department {department_id} not found", field="department_id")

def _one(student_id: int) -> StudentOut:
    row = _students().filter(User.id == student_id).first()
    if row is None:
        raise NotFoundError(f"Student {student_id} not found")
    return _to_out(*row)

# ---------- reads ----------
def list_students(ctx: RequestContext) -> List[StudentOut]:
    ctx.require_role(*ALL_ROLES)
    return _ordered(_students())

def get_student(ctx: RequestContext, student_id: int) -> StudentOut:
    ctx.require_role(*ALL_ROLES)
    return _one(student_id)

def by_instructor(ctx: RequestContext, instructor_id: int) -> List[StudentOut]:
    """Distinct students enrolled in any course the instructor teaches."""
    return search(ctx, instructor_id=instructor_id)

def by_course(ctx: RequestContext, course_id: int) -> List[StudentOut]:
    return search(ctx, course_id=course_id)

def search(ctx: RequestContext, *, user_id: int | None = None, instructor_id: int | None = None,
           course_id: int | None = None) -> List[StudentOut]:
    ctx.require_role(*ALL_ROLES)
    if user_id is None and instructor_id is None and course_id is None:
        raise ValidationError("Provide user_id, instructor_id or course_id")
    q = _students()
    if user_id is not None:
        q = q.filter(User.id == user_id)
    if course_id is not None:
        if db.session.get(Course, course_id) is None:
            raise NotFoundError(f"Course {course_id} not found", field="course_id")
        q = q.filter(User.id.in_(
            select(Enrollment.student_id).where(Enrollment.course_id == course_id)
        ))
    if instructor_id is not None:
        if db.session.get(Instructor, instructor_id) is None:
            raise NotFoundError(f"Instructor {instructor_id} not found", field="instructor_id")
        taught = select(course_instructor.c.course_id).where(
            course_instructor.c.instructor_id == instructor_id
        )
        q = q.filter(User.id.in_(
            select(Enrollment.student_id).where(Enrollment.course_id.in_(taught))
        ))
    return _ordered(q)

# ---------- writes ----------
def create_student(ctx: RequestContext, data: StudentIn) -> StudentOut:
    ctx.require_role(*STAFF_ROLES)
    if not data.password:
        raise ValidationError("password is required", field="password")
    with unit_of_work("Student could not be saved", unique_message=EMAIL_TAKEN):
        email = data.email.lower()
        if email_taken(email):
            raise ConflictError(EMAIL_TAKEN, field="email")
        _check_department(data.department_id)
        u = User(
            email=email, role=UserRole.STUDENT.value,
            first_mid_name=data.first_mid_name.strip(), last_name=data.last_name.strip(),
            phone_number=data.phone_number, enrollment_date=data.enrollment_date,
            department_id=data.department_id,
        )
        u.set_password(data.password)
        db.session.add(u)
    log.info("student created", extra=ctx.log_extra(event="create", entity="student", entity_id=u.id))
    return _one(u.id)

def update_student(ctx: RequestContext, student_id: int, data: StudentIn) -> StudentOut:
    ctx.require_role(*STAFF_ROLES)
    with unit_of_work("Student could not be saved", unique_message=EMAIL_TAKEN):
        u = _get_or_404(student_id)
        email = data.email.lower()
        if email_taken(email, exclude_user_id=u.id):
            raise ConflictError(EMAIL_TAKEN, field="email")
        _check_department(data.department_id)
        u.email = email
        u.first_mid_name = data.first_mid_name.strip()
        u.last_name = data.last_name.strip()
        u.phone_number = data.phone_number
        u.enrollment_date = data.enrollment_date
        u.department_id = data.department_id
        if data.password:
            u.set_password(data.password)
    log.info("student updated", extra=ctx.log_extra(event="update", entity="student", entity_id=student_id))
    return _one(student_id)

def delete_student(ctx: RequestContext, student_id: int) -> None:
    ctx.require_role(*STAFF_ROLES)
    with unit_of_work("Student could not be deleted; nothing was changed", conflict_on_storage_error=True):
        u = _get_or_404(student_id)
        delete_account_rows(u.id)
    log.info("student deleted", extra=ctx.log_extra(event="delete", entity="student", entity_id=student_id))
