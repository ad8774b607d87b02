from __future__ import annotations
from datetime import date, datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field, field_validator

from blueprints.core.schemas import PositiveId
from models import UserRole

PASSWORD_MIN_LENGTH = 6

def _parse_role(v):
    # 1=Student, 2=Instructor, 3=Admin, либо имя роли
    if isinstance(v, UserRole):
        return v.value
    if isinstance(v, int) and not isinstance(v, bool):
        try:
            return UserRole.from_number(v).value
        except ValueError:
            raise ValueError("role must be 1=Student, 2=Instructor or 3=Admin")
    if isinstance(v, str):
        name = v.strip().upper()
        if name.isdigit():
            return _parse_role(int(name))
        if name in UserRole.__members__:
            return name
    raise ValueError("role must be 1=Student, 2=Instructor or 3=Admin")

class ProfileFields(BaseModel):
    phone_number: Optional[str] = Field(None, max_length=20)
    bio: Optional[str] = Field(None, max_length=500)
    profile_photo_url: Optional[str] = Field(None, max_length=2000)
    date_of_birth: Optional[date] = None
    address: Optional[str] = Field(None, max_length=200)
    company: Optional[str] = Field(None, max_length=100)

class RegisterIn(ProfileFields):
    first_mid_name: str = Field(min_length=1, max_length=50)
    last_name: str = Field(min_length=1, max_length=50)
    email: EmailStr
    password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=128)
    role: str
    department_id: Optional[PositiveId] = None

    @field_validator("role", mode="before")
    @classmethod
    def _role(cls, v):
        return _parse_role(v)

class LoginIn(BaseModel):
    email: str = Field(min_length=1, max_length=255)
    password: str = Field(min_length=1, max_length=128)

class ProfileUpdateIn(ProfileFields):
    first_mid_name: Optional[str] = Field(None, max_length=50)
    last_name: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    department_id: Optional[PositiveId] = None

class ForgotPasswordIn(BaseModel):
    email: EmailStr

class ResetPasswordIn(BaseModel):
    email: EmailStr
    token: str = Field(min_length=1)
    new_password: str = Field(min_length=PASSWORD_MIN_LENGTH, max_length=128)

class UserOut(BaseModel):
    id: int
    email: str
    first_mid_name: str
    last_name: str
    role: str
    role_type: int
    department_id: Optional[int] = None
    enrollment_date: datetime
    phone_number: Optional[str] = None
    bio: Optional[str] = None
    profile_photo_url: Optional[str] = None
    date_of_birth: Optional[date] = None
    address: Optional[str] = None
    company: Optional[str] = None

    @classmethod
    def from_user(cls, u) -> "UserOut":
        return cls(
            id=u.id, email=u.email, first_mid_name=u.first_mid_name, last_name=u.last_name,
            role=u.role, role_type=UserRole(u.role).number, department_id=u.department_id,
            enrollment_date=u.enrollment_date, phone_number=u.phone_number, bio=u.bio,
            profile_photo_url=u.profile_photo_url, date_of_birth=u.date_of_birth,
            address=u.address, company=u.company,
        )

class AuthOut(BaseModel):
    token: str
    expiration: datetime
    user: UserOut
