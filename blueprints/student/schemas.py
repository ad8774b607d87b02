from __future__ import annotations
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field

from blueprints.auth.schemas import PASSWORD_MIN_LENGTH
from blueprints.core.schemas import PositiveId, UtcDateTime

class StudentIn(BaseModel):
    id: Optional[PositiveId] = None
    first_mid_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    email: EmailStr
    phone_number: Optional[str] = Field(None, max_length=20)
    enrollment_date: UtcDateTime
    department_id: Optional[PositiveId] = None
    # create: required; update: changed only when given
    password: Optional[str] = Field(None, min_length=PASSWORD_MIN_LENGTH, max_length=128)

class StudentOut(BaseModel):
    id: int
    first_mid_name: str
    last_name: str
    full_name: str
    email: str
    phone_number: Optional[str] = None
    enrollment_date: datetime
    department_id: Optional[int] = None
    department_name: Optional[str] = None
