# blueprints/courses/services.py
from __future__ import annotations
import logging
from typing import Dict, List

from sqlalchemy import delete, select

from blueprints.auth.context import ALL_ROLES, STAFF_ROLES, RequestContext
from blueprints.core.tx import unit_of_work
from errors import NotFoundError
from extensions import db
from models import Course, Department, Enrollment, course_instructor
from .schemas import CourseIn, CourseOut

log = logging.getLogger(__name__)

def _instructor_ids(course_ids: List[int]) -> Dict[int, List[int]]:
    out: Dict[int, List[int]] = {cid: [] for cid in course_ids}
    if not course_ids:
        return out
    rows = db.session.execute(
        select(course_instructor.c.course_id, course_instructor.c.instructor_id)
        .where(course_instructor.c.course_id.in_(course_ids))
        .order_by(course_instructor.c.instructor_id)
    ).all()
    for cid, iid in rows:
        out[cid].append(iid)
    return out

def to_out(c: Course, dept: Department | None, instructor_ids: List[int] | None = None) -> CourseOut:
    return CourseOut(
        id=c.id, title=c.title, credits=c.credits, department_id=c.department_id,
        department_name=dept.name if dept else None,
        instructor_ids=instructor_ids or [],
    )

def project(rows) -> List[CourseOut]:
    """(Course, Department) rows → projections with instructor ids."""
    rows = list(rows)
    ids = _instructor_ids([c.id for c, _ in rows])
    return [to_out(c, d, ids[c.id]) for c, d in rows]

def _base_query():
    return (db.session.query(Course, Department)
            .outerjoin(Department, Department.id == Course.department_id))

def _get_or_404(course_id: int) -> Course:
    c = db.session.get(Course, course_id)
    if c is None:
        raise NotFoundError(f"Course {course_id} not found")
    return c

def _check_department(department_id: int) -> None:
    if db.session.get(Department, department_id) is None:
        raise NotFoundError(f"Department {department_id} not found", field="department_id")

def _one(course_id: int) -> CourseOut:
    row = _base_query().filter(Course.id == course_id).first()
    if row is None:
        raise NotFoundError(f"Course {course_id} not found")
    return project([row])[0]

def list_courses(ctx: RequestContext) -> List[CourseOut]:
    ctx.require_role(*ALL_ROLES)
    return project(_base_query().order_by(Course.id.asc()).all())

def get_course(ctx: RequestContext, course_id: int) -> CourseOut:
    ctx.require_role(*ALL_ROLES)
    return _one(course_id)

def create_course(ctx: RequestContext, data: CourseIn) -> CourseOut:
    ctx.require_role(*STAFF_ROLES)
    with unit_of_work("Course could not be saved"):
        _check_department(data.department_id)
        c = Course(title=data.title.strip(), credits=data.credits, department_id=data.department_id)
        db.session.add(c)
    log.info("course created", extra=ctx.log_extra(event="create", entity="course", entity_id=c.id))
    return _one(c.id)

def update_course(ctx: RequestContext, course_id: int, data: CourseIn) -> CourseOut:
    ctx.require_role(*STAFF_ROLES)
    with unit_of_work("Course could not be saved"):
        c = _get_or_404(course_id)
        _check_department(data.department_id)
        c.title = data.title.strip()
        c.credits = data.credits
        c.department_id = data.department_id
    log.info("course updated", extra=ctx.log_extra(event="update", entity="course", entity_id=course_id))
    return _one(course_id)

def delete_course(ctx: RequestContext, course_id: int) -> None:
    ctx.require_role(*STAFF_ROLES)
    with unit_of_work("Course could not be deleted; nothing was changed", conflict_on_storage_error=True):
        c = _get_or_404(course_id)
        db.session.execute(delete(Enrollment).where(Enrollment.course_id == c.id))
        db.session.execute(delete(course_instructor).where(course_instructor.c.course_id == c.id))
        db.session.delete(c)
    log.info("course deleted", extra=ctx.log_extra(event="delete", entity="course", entity_id=course_id))
