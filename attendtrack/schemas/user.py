from datetime import datetime
from typing import Optional
from pydantic import Field, field_validator
from ..models.user import UserRole
from .auth import RegisterRequest
from .base import APIModel


class UserRead(APIModel):
    id: int
    username: str
    role: UserRole
    first_name: str
    last_name: str
    middle_name: Optional[str] = None
    full_name: str
    group_id: Optional[int] = None
    department_id: Optional[int] = None
    created_at: datetime


class UserCreate(RegisterRequest):
    pass


class UserUpdate(APIModel):
    """Partial update; only the fields present in the request body are applied."""

    username: Optional[str] = Field(default=None, min_length=3, max_length=64)
    password: Optional[str] = Field(default=None, min_length=6)
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    middle_name: Optional[str] = None
    role: Optional[UserRole] = None
    group_id: Optional[int] = None
    department_id: Optional[int] = None

    # Absent keys are left alone; an explicit null would clear a required column.
    @field_validator("username", "first_name", "last_name")
    @classmethod
    def not_blank(cls, value: Optional[str]) -> str:
        if value is None:
            raise ValueError("must not be null")
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("role")
    @classmethod
    def role_not_null(cls, value: Optional[UserRole]) -> UserRole:
        if value is None:
            raise ValueError("must not be null")
        return value


class ProfileUpdate(UserUpdate):
    role: Optional[UserRole] = Field(default=None, exclude=True)
