from __future__ import annotations
from typing import List, Optional

from pydantic import BaseModel, Field

from blueprints.core.schemas import PositiveId

class CourseIn(BaseModel):
    id: Optional[PositiveId] = None
    title: str = Field(min_length=1, max_length=100)
    credits: int = Field(ge=0, le=10)
    department_id: PositiveId

class CourseOut(BaseModel):
    id: int
    title: str
    credits: int
    department_id: int
    department_name: Optional[str] = None
    instructor_ids: List[int] = []
