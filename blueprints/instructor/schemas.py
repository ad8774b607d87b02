from __future__ import annotations
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from blueprints.auth.schemas import PASSWORD_MIN_LENGTH
from blueprints.core.schemas import PositiveId, UtcDateTime

class InstructorIn(BaseModel):
    id: Optional[PositiveId] = None
    last_name: str = Field(min_length=1, max_length=50)
    first_mid_name: str = Field(min_length=1, max_length=50)
    hire_date: UtcDateTime
    email: EmailStr
    phone_number: Optional[str] = Field(None, max_length=20)
    department_id: Optional[PositiveId] = None
    # required only when a new user account has to be created
    password: Optional[str] = Field(None, min_length=PASSWORD_MIN_LENGTH, max_length=128)
    # null removes the office, omitted leaves it unchanged
    office_location: Optional[str] = Field(None, min_length=1, max_length=100)

class InstructorOut(BaseModel):
    id: int
    last_name: str
    first_mid_name: str
    full_name: str
    hire_date: datetime
    email: str
    phone_number: Optional[str] = None
    department_id: Optional[int] = None
    department_name: Optional[str] = None
    office_location: Optional[str] = None
    course_ids: List[int] = []
    user_id: Optional[int] = None
