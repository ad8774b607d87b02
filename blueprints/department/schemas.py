from __future__ import annotations
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from blueprints.core.schemas import PositiveId, UtcDateTime

class DepartmentIn(BaseModel):
    id: Optional[PositiveId] = None
    name: str = Field(min_length=1, max_length=50)
    budget: float = Field(ge=0)
    start_date: UtcDateTime
    administrator_id: Optional[PositiveId] = None

class DepartmentOut(BaseModel):
    id: int
    name: str
    budget: float
    start_date: datetime
    administrator_id: Optional[int] = None
    administrator_name: Optional[str] = None
    course_count: int = 0
    instructor_count: int = 0
    student_count: int = 0
