# blueprints/department/services.py
from __future__ import annotations
import logging
from typing import Dict, List

from sqlalchemy import delete, distinct, func, update

from blueprints.auth.context import ALL_ROLES, STAFF_ROLES, RequestContext
from blueprints.core.tx import unit_of_work
from errors import ConflictError, NotFoundError
from extensions import db
from models import Course, Department, Enrollment, Instructor, User
from .schemas import DepartmentIn, DepartmentOut

log = logging.getLogger(__name__)

def _counts(department_ids: List[int] | None = None) -> Dict[str, Dict[int, int]]:
    courses = db.session.query(Course.department_id, func.count(Course.id))
    instructors = (db.session.query(Instructor.department_id, func.count(Instructor.id))
                   .filter(Instructor.department_id.isnot(None)))
    # distinct students enrolled in any course of the department
    students = (db.session.query(Course.department_id, func.count(distinct(Enrollment.student_id)))
                .join(Enrollment, Enrollment.course_id == Course.id))
    if department_ids is not None:
        courses = courses.filter(Course.department_id.in_(department_ids))
        instructors = instructors.filter(Instructor.department_id.in_(department_ids))
        students = students.filter(Course.department_id.in_(department_ids))
    return {
        "course": dict(courses.group_by(Course.department_id).all()),
        "instructor": dict(instructors.group_by(Instructor.department_id).all()),
        "student": dict(students.group_by(Course.department_id).all()),
    }

def _to_out(d: Department, counts: Dict[str, Dict[int, int]]) -> DepartmentOut:
    admin = d.administrator
    return DepartmentOut(
        id=d.id, name=d.name, budget=float(d.budget), start_date=d.start_date,
        administrator_id=d.administrator_id,
        administrator_name=admin.full_name if admin else None,
        course_count=counts["course"].get(d.id, 0),
        instructor_count=counts["instructor"].get(d.id, 0),
        student_count=counts["student"].get(d.id, 0),
    )

def _get_or_404(department_id: int) -> Department:
    d = db.session.get(Department, department_id)
    if d is None:
        raise NotFoundError(f"Department {department_id} not found")
    return d

def _check_administrator(instructor_id: int | None) -> None:
    if instructor_id is not None and db.session.get(Instructor, instructor_id) is None:
        raise NotFoundError(f"Instructor {instructor_id} not found", field="administrator_id")

def list_departments(ctx: RequestContext) -> List[DepartmentOut]:
    rows = Department.query.order_by(Department.name.asc(), Department.id.asc()).all()
    counts = _counts()
    return [_to_out(d, counts) for d in rows]

def get_department(ctx: RequestContext, department_id: int) -> DepartmentOut:
    ctx.require_role(*ALL_ROLES)
    d = _get_or_404(department_id)
    return _to_out(d, _counts([d.id]))

def create_department(ctx: RequestContext, data: DepartmentIn) -> DepartmentOut:
    ctx.require_role(*STAFF_ROLES)
    with unit_of_work("Department could not be saved"):
        _check_administrator(data.administrator_id)
        d = Department(
            name=data.name.strip(), budget=data.budget, start_date=data.start_date,
            administrator_id=data.administrator_id,
        )
        db.session.add(d)
    log.info("department created", extra=ctx.log_extra(event="create", entity="department", entity_id=d.id))
    return _to_out(d, _counts([d.id]))

def update_department(ctx: RequestContext, department_id: int, data: DepartmentIn) -> DepartmentOut:
    ctx.require_role(*STAFF_ROLES)
    with unit_of_work("Department could not be saved"):
        d = _get_or_404(department_id)
        _check_administrator(data.administrator_id)
        d.name = data.name.strip()
        d.budget = data.budget
        d.start_date = data.start_date
        d.administrator_id = data.administrator_id
    log.info("department updated", extra=ctx.log_extra(event="update", entity="department", entity_id=d.id))
    return _to_out(d, _counts([d.id]))

def delete_department(ctx: RequestContext, department_id: int) -> None:
    """Courses keep a department reference that cannot be nulled, so they block the delete.
    Instructors and students only lose their department.
    """
    ctx.require_role(*STAFF_ROLES)
    with unit_of_work("Department could not be deleted; nothing was changed", conflict_on_storage_error=True):
        d = _get_or_404(department_id)
        n_courses = db.session.query(func.count(Course.id)).filter(Course.department_id == d.id).scalar()
        if n_courses:
            raise ConflictError(
                f"Department has {n_courses} course(s); reassign or delete its courses first"
            )
        db.session.execute(update(Instructor).where(Instructor.department_id == d.id).values(department_id=None))
        db.session.execute(update(User).where(User.department_id == d.id).values(department_id=None))
        db.session.execute(delete(Department).where(Department.id == d.id))
    log.info("department deleted", extra=ctx.log_extra(event="delete", entity="department", entity_id=department_id))
