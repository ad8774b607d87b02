from datetime import datetime, date, timezone
from enum import Enum as PyEnum

from flask_login import UserMixin
from sqlalchemy import (
    ForeignKey, UniqueConstraint, Index, Boolean, Date, DateTime, Integer, Numeric, String, Text
)
from sqlalchemy.orm import relationship, Mapped, mapped_column
from werkzeug.security import generate_password_hash, check_password_hash

from extensions import db


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


# ---------- Enums ----------
class UserRole(str, PyEnum):
    STUDENT = "STUDENT"
    INSTRUCTOR = "INSTRUCTOR"
    ADMIN = "ADMIN"

    @property
    def number(self) -> int:
        return ROLE_NUMBERS[self]

    @classmethod
    def from_number(cls, n: int) -> "UserRole":
        for role, num in ROLE_NUMBERS.items():
            if num == n:
                return role
        raise ValueError(f"unknown role number {n}")


ROLE_NUMBERS = {UserRole.STUDENT: 1, UserRole.INSTRUCTOR: 2, UserRole.ADMIN: 3}


# ---------- Association Tables ----------
# Course <-> Instructor; each pair at most once, rows go with either parent.
course_instructor = db.Table(
    "course_instructor",
    db.Column("course_id", db.Integer, db.ForeignKey("course.id", ondelete="CASCADE"), primary_key=True),
    db.Column("instructor_id", db.Integer, db.ForeignKey("instructor.id", ondelete="CASCADE"), primary_key=True),
    db.Index("ix_course_instructor_instructor", "instructor_id"),
)


# ---------- Core Entities ----------
class Department(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(50), nullable=False)
    budget: Mapped[float] = mapped_column(Numeric(14, 2, asdecimal=False), nullable=False, default=0)
    start_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    # administrator; may differ from the department an instructor belongs to
    administrator_id: Mapped[int | None] = mapped_column(
        ForeignKey("instructor.id", ondelete="SET NULL", use_alter=True, name="fk_department_administrator"),
        nullable=True, index=True,
    )

    administrator = relationship("Instructor", foreign_keys=[administrator_id])

    def __repr__(self):
        return f"<Department {self.name}>"


class Course(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    title: Mapped[str] = mapped_column(String(100), nullable=False)
    credits: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    department_id: Mapped[int] = mapped_column(ForeignKey("department.id", ondelete="RESTRICT"), nullable=False, index=True)

    department = relationship("Department")
    instructors = relationship("Instructor", secondary=course_instructor, viewonly=True, order_by="Instructor.id")

    def __repr__(self):
        return f"<Course {self.title}>"


class Instructor(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    first_mid_name: Mapped[str] = mapped_column(String(50), nullable=False)
    hire_date: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    phone_number: Mapped[str | None] = mapped_column(String(20))
    department_id: Mapped[int | None] = mapped_column(ForeignKey("department.id", ondelete="SET NULL"), nullable=True, index=True)
    user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True, unique=True)

    department = relationship("Department", foreign_keys=[department_id])
    office_assignment = relationship("OfficeAssignment", uselist=False, viewonly=True)
    courses = relationship("Course", secondary=course_instructor, viewonly=True, order_by="Course.id")

    @property
    def full_name(self) -> str:
        return f"{self.first_mid_name} {self.last_name}".strip()

    def __repr__(self):
        return f"<Instructor {self.email}>"


class OfficeAssignment(db.Model):
    __tablename__ = "office_assignment"

    instructor_id: Mapped[int] = mapped_column(ForeignKey("instructor.id", ondelete="CASCADE"), primary_key=True)
    location: Mapped[str] = mapped_column(String(100), nullable=False)


class User(UserMixin, db.Model):
    """Account row. Students are users with the STUDENT role."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    # строковое поле, чтобы не зависеть от конкретного типа БД
    role: Mapped[str] = mapped_column(String(16), index=True, nullable=False, default=UserRole.STUDENT.value)
    is_active_flag: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    last_name: Mapped[str] = mapped_column(String(50), nullable=False)
    first_mid_name: Mapped[str] = mapped_column(String(50), nullable=False)
    enrollment_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    department_id: Mapped[int | None] = mapped_column(ForeignKey("department.id", ondelete="SET NULL"), nullable=True, index=True)

    # profile
    phone_number: Mapped[str | None] = mapped_column(String(20))
    bio: Mapped[str | None] = mapped_column(String(500))
    profile_photo_url: Mapped[str | None] = mapped_column(Text)
    date_of_birth: Mapped[date | None] = mapped_column(Date)
    address: Mapped[str | None] = mapped_column(String(200))
    company: Mapped[str | None] = mapped_column(String(100))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)

    department = relationship("Department")

    def set_password(self, raw: str):
        self.password_hash = generate_password_hash(raw)

    def check_password(self, raw: str) -> bool:
        return bool(self.password_hash) and check_password_hash(self.password_hash, raw)

    # Flask-Login ожидает .is_active
    @property
    def is_active(self):
        return bool(self.is_active_flag)

    @property
    def full_name(self) -> str:
        return f"{self.first_mid_name} {self.last_name}".strip()

    def __repr__(self):
        return f"<User {self.email}>"


class Enrollment(db.Model):
    id: Mapped[int] = mapped_column(primary_key=True)
    course_id: Mapped[int] = mapped_column(ForeignKey("course.id", ondelete="CASCADE"), nullable=False)
    student_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    grade: Mapped[float | None] = mapped_column(Numeric(5, 2, asdecimal=False))

    course = relationship("Course")
    student = relationship("User")

    __table_args__ = (
        UniqueConstraint("student_id", "course_id", name="uq_enrollment_student_course"),
        Index("ix_enrollment_course", "course_id"),
    )
