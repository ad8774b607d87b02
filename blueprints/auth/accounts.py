from __future__ import annotations
from typing import Optional

from sqlalchemy import delete, func, update

from extensions import db
from models import Enrollment, Instructor, User

def find_user_by_email(email: str) -> Optional[User]:
    return User.query.filter(func.lower(User.email) == email.strip().lower()).first()

def email_taken(email: str, *, exclude_user_id: int | None = None) -> bool:
    q = db.session.query(User.id).filter(func.lower(User.email) == email.strip().lower())
    if exclude_user_id is not None:
        q = q.filter(User.id != exclude_user_id)
    return q.first() is not None

def delete_account_rows(user_id: int) -> None:
    """Remove a user with its enrollments and unlink any instructor row.

    Must run inside a unit of work; does not commit.
    """
    db.session.execute(delete(Enrollment).where(Enrollment.student_id == user_id))
    db.session.execute(update(Instructor).where(Instructor.user_id == user_id).values(user_id=None))
    db.session.execute(delete(User).where(User.id == user_id))
