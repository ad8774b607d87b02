from __future__ import annotations
from typing import Optional

from pydantic import BaseModel, Field

from blueprints.core.schemas import PositiveId

class EnrollmentIn(BaseModel):
    id: Optional[PositiveId] = None
    course_id: PositiveId
    student_id: PositiveId
    grade: Optional[float] = Field(None, ge=0, le=100)

class EnrollmentOut(BaseModel):
    id: int
    course_id: int
    student_id: int
    grade: Optional[float] = None
    course_name: str
    credits: int
    department_id: int
    department_name: Optional[str] = None
    student_name: str
    student_email: str
