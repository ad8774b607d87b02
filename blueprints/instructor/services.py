# blueprints/instructor/services.py
from __future__ import annotations
import logging
from datetime import datetime
from typing import List

from sqlalchemy import delete, insert, select, update
from sqlalchemy.orm import selectinload

from blueprints.auth.accounts import delete_account_rows, find_user_by_email
from blueprints.auth.context import ADMIN_ONLY, STAFF_ROLES, RequestContext
from blueprints.core.tx import unit_of_work
from blueprints.courses.schemas import CourseOut
from blueprints.courses.services import project as project_courses
from errors import AuthorizationError, NotFoundError, ValidationError
from extensions import db
from models import (
    Course, Department, Instructor, OfficeAssignment, User, UserRole, course_instructor
)
from .schemas import InstructorIn, InstructorOut

log = logging.getLogger(__name__)

EMAIL_TAKEN = "An instructor or account with this email already exists"

def _to_out(i: Instructor) -> InstructorOut:
    return InstructorOut(
        id=i.id, last_name=i.last_name, first_mid_name=i.first_mid_name, full_name=i.full_name,
        hire_date=i.hire_date, email=i.email, phone_number=i.phone_number,
        department_id=i.department_id,
        department_name=i.department.name if i.department else None,
        office_location=i.office_assignment.location if i.office_assignment else None,
        course_ids=[c.id for c in i.courses],
        user_id=i.user_id,
    )

def _get_or_404(instructor_id: int) -> Instructor:
    i = db.session.get(Instructor, instructor_id)
    if i is None:
        raise NotFoundError(f"Instructor {instructor_id} not found")
    return i

def _check_department(department_id: int | None) -> None:
    if department_id is not None and db.session.get(Department, department_id) is None:
        raise NotFoundError(f"Department {department_id} not found", field="department_id")

def _claim_vacant_administrator(department_id: int, instructor_id: int) -> None:
    # conditional update: only a department without administrator is claimed
    db.session.execute(
        update(Department)
        .where(Department.id == department_id, Department.administrator_id.is_(None))
        .values(administrator_id=instructor_id)
    )

def _release_administrator(department_id: int, instructor_id: int) -> None:
    db.session.execute(
        update(Department)
        .where(Department.id == department_id, Department.administrator_id == instructor_id)
        .values(administrator_id=None)
    )

def add_instructor_row(*, first_mid_name: str, last_name: str, email: str, hire_date: datetime,
                       phone_number: str | None = None, department_id: int | None = None,
                       user_id: int | None = None) -> Instructor:
    """Insert an instructor and let it take a vacant administrator slot. No commit."""
    i = Instructor(
        first_mid_name=first_mid_name.strip(), last_name=last_name.strip(), email=email,
        hire_date=hire_date, phone_number=phone_number, department_id=department_id,
        user_id=user_id,
    )
    db.session.add(i)
    db.session.flush()
    if department_id is not None:
        _claim_vacant_administrator(department_id, i.id)
    return i

def _set_office(instructor_id: int, data: InstructorIn) -> None:
    if "office_location" not in data.model_fields_set:
        return
    office = db.session.get(OfficeAssignment, instructor_id)
    if data.office_location is None:
        if office is not None:
            db.session.delete(office)
    elif office is None:
        db.session.add(OfficeAssignment(instructor_id=instructor_id, location=data.office_location.strip()))
    else:
        office.location = data.office_location.strip()

def _may_manage_account(ctx: RequestContext, user: User) -> bool:
    return ctx.role == UserRole.ADMIN.value or ctx.user_id == user.id

def _user_for(i: Instructor) -> User | None:
    if i.user_id is not None:
        return db.session.get(User, i.user_id)
    return None

# ---------- reads ----------
def list_instructors(ctx: RequestContext) -> List[InstructorOut]:
    rows = (Instructor.query
            .options(selectinload(Instructor.department),
                     selectinload(Instructor.office_assignment),
                     selectinload(Instructor.courses))
            .order_by(Instructor.last_name.asc(), Instructor.id.asc())
            .all())
    return [_to_out(i) for i in rows]

def get_instructor(ctx: RequestContext, instructor_id: int) -> InstructorOut:
    return _to_out(_get_or_404(instructor_id))

# ---------- writes ----------
def create_instructor(ctx: RequestContext, data: InstructorIn) -> InstructorOut:
    ctx.require_role(*STAFF_ROLES)
    with unit_of_work("Instructor could not be saved", unique_message=EMAIL_TAKEN):
        _check_department(data.department_id)
        email = data.email.lower()
        user = find_user_by_email(email)
        if user is None:
            if not data.password:
                raise ValidationError("password is required to create the instructor's account", field="password")
            user = User(
                email=email, role=UserRole.INSTRUCTOR.value,
                first_mid_name=data.first_mid_name.strip(), last_name=data.last_name.strip(),
                enrollment_date=data.hire_date, phone_number=data.phone_number,
            )
            user.set_password(data.password)
            db.session.add(user)
            db.session.flush()
        elif user.role == UserRole.ADMIN.value and ctx.role != UserRole.ADMIN.value:
            raise AuthorizationError("Only an administrator can link an administrator account", field="email")
        elif user.role == UserRole.STUDENT.value:
            user.role = UserRole.INSTRUCTOR.value
        i = add_instructor_row(
            first_mid_name=data.first_mid_name, last_name=data.last_name, email=email,
            hire_date=data.hire_date, phone_number=data.phone_number,
            department_id=data.department_id, user_id=user.id,
        )
        if data.office_location:
            db.session.add(OfficeAssignment(instructor_id=i.id, location=data.office_location.strip()))
    log.info("instructor created", extra=ctx.log_extra(event="create", entity="instructor", entity_id=i.id))
    return _to_out(i)

def update_instructor(ctx: RequestContext, instructor_id: int, data: InstructorIn) -> InstructorOut:
    ctx.require_role(*STAFF_ROLES)
    with unit_of_work("Instructor could not be saved", unique_message=EMAIL_TAKEN):
        i = _get_or_404(instructor_id)
        _check_department(data.department_id)
        old_department_id = i.department_id

        i.first_mid_name = data.first_mid_name.strip()
        i.last_name = data.last_name.strip()
        i.hire_date = data.hire_date
        i.email = data.email.lower()
        i.phone_number = data.phone_number
        i.department_id = data.department_id

        if old_department_id != data.department_id:
            if old_department_id is not None:
                _release_administrator(old_department_id, i.id)
            if data.department_id is not None:
                _claim_vacant_administrator(data.department_id, i.id)

        _set_office(i.id, data)

        user = _user_for(i)
        if user is not None:
            if (data.password or user.email != i.email) and not _may_manage_account(ctx, user):
                raise AuthorizationError("Only an administrator or the account owner can change its email or password")
            user.first_mid_name = i.first_mid_name
            user.last_name = i.last_name
            user.email = i.email
            user.phone_number = i.phone_number
            user.enrollment_date = i.hire_date
            if data.password:
                user.set_password(data.password)
    log.info("instructor updated", extra=ctx.log_extra(event="update", entity="instructor", entity_id=instructor_id))
    return _to_out(i)

def delete_instructor(ctx: RequestContext, instructor_id: int) -> None:
    """Office, course pairs and administrator slots go first; the linked account goes last."""
    ctx.require_role(*ADMIN_ONLY)
    with unit_of_work("Instructor could not be deleted; nothing was changed", conflict_on_storage_error=True):
        i = _get_or_404(instructor_id)
        user_id = i.user_id
        db.session.execute(delete(OfficeAssignment).where(OfficeAssignment.instructor_id == i.id))
        db.session.execute(delete(course_instructor).where(course_instructor.c.instructor_id == i.id))
        db.session.execute(
            update(Department).where(Department.administrator_id == i.id).values(administrator_id=None)
        )
        db.session.execute(delete(Instructor).where(Instructor.id == i.id))
        if user_id is not None:
            delete_account_rows(user_id)
    log.info("instructor deleted", extra=ctx.log_extra(event="delete", entity="instructor", entity_id=instructor_id))

# ---------- course assignment ----------
def assigned_courses(ctx: RequestContext, instructor_id: int) -> List[CourseOut]:
    _get_or_404(instructor_id)
    rows = (db.session.query(Course, Department)
            .outerjoin(Department, Department.id == Course.department_id)
            .join(course_instructor, course_instructor.c.course_id == Course.id)
            .filter(course_instructor.c.instructor_id == instructor_id)
            .order_by(Course.title.asc(), Course.id.asc())
            .all())
    return project_courses(rows)

def available_courses(ctx: RequestContext, instructor_id: int) -> List[CourseOut]:
    _get_or_404(instructor_id)
    assigned = select(course_instructor.c.course_id).where(course_instructor.c.instructor_id == instructor_id)
    rows = (db.session.query(Course, Department)
            .outerjoin(Department, Department.id == Course.department_id)
            .filter(Course.id.not_in(assigned))
            .order_by(Course.title.asc(), Course.id.asc())
            .all())
    return project_courses(rows)

def assign_course(ctx: RequestContext, instructor_id: int, course_id: int) -> List[CourseOut]:
    ctx.require_role(*STAFF_ROLES)
    with unit_of_work("Course could not be assigned", unique_message="Course is already assigned to this instructor"):
        _get_or_404(instructor_id)
        if db.session.get(Course, course_id) is None:
            raise NotFoundError(f"Course {course_id} not found", field="course_id")
        db.session.execute(insert(course_instructor).values(course_id=course_id, instructor_id=instructor_id))
    log.info("course assigned", extra=ctx.log_extra(event="assign", entity="instructor", entity_id=instructor_id))
    return assigned_courses(ctx, instructor_id)

def unassign_course(ctx: RequestContext, instructor_id: int, course_id: int) -> None:
    ctx.require_role(*STAFF_ROLES)
    with unit_of_work("Course could not be unassigned"):
        _get_or_404(instructor_id)
        result = db.session.execute(
            delete(course_instructor).where(course_instructor.c.instructor_id == instructor_id,
                                            course_instructor.c.course_id == course_id)
        )
        if result.rowcount == 0:
            raise NotFoundError(f"Course {course_id} is not assigned to this instructor", field="course_id")
    log.info("course unassigned", extra=ctx.log_extra(event="unassign", entity="instructor", entity_id=instructor_id))
