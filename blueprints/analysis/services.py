# blueprints/analysis/services.py
from __future__ import annotations
import gc
import os
import threading
from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Dict, List

from sqlalchemy import distinct, func

from blueprints.auth.context import STAFF_ROLES, RequestContext
from extensions import db
from models import Course, Department, Enrollment, Instructor, User, UserRole, course_instructor

@dataclass
class CourseStat:
    course_id: int
    title: str
    department_id: int
    student_count: int
    instructor_count: int

def _count(col) -> int:
    return int(db.session.query(func.count(col)).scalar() or 0)

def _course_stats() -> List[CourseStat]:
    students = dict(db.session.query(Enrollment.course_id, func.count(distinct(Enrollment.student_id)))
                    .group_by(Enrollment.course_id).all())
    instructors = dict(db.session.query(course_instructor.c.course_id, func.count(course_instructor.c.instructor_id))
                       .group_by(course_instructor.c.course_id).all())
    return [
        CourseStat(course_id=c.id, title=c.title, department_id=c.department_id,
                   student_count=students.get(c.id, 0), instructor_count=instructors.get(c.id, 0))
        for c in Course.query.order_by(Course.title.asc(), Course.id.asc()).all()
    ]

def _users_by_role() -> Dict[str, int]:
    counts = dict(db.session.query(User.role, func.count(User.id)).group_by(User.role).all())
    return {r.value: counts.get(r.value, 0) for r in UserRole}

def dashboard(ctx: RequestContext, *, started_at: datetime) -> Dict:
    """Counts for the admin dashboard plus a little about the running process."""
    ctx.require_role(*STAFF_ROLES)
    now = datetime.now(timezone.utc)
    users_by_role = _users_by_role()
    return {
        "counts": {
            "departments": _count(Department.id),
            "courses": _count(Course.id),
            "instructors": _count(Instructor.id),
            "students": users_by_role[UserRole.STUDENT.value],
            "enrollments": _count(Enrollment.id),
        },
        "users_by_role": users_by_role,
        "courses": [asdict(s) for s in _course_stats()],
        "process": {
            "process_id": os.getpid(),
            "started_at": started_at.isoformat(),
            "uptime_seconds": round((now - started_at).total_seconds(), 1),
            "timestamp": now.isoformat(),
            "threads": threading.active_count(),
            "gc": dict(zip(("gen0", "gen1", "gen2"), gc.get_count())),
        },
    }
