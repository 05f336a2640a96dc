from typing import Optional
from pydantic import AliasChoices, Field, field_validator
from ..models.user import UserRole
from .base import APIModel


class LoginRequest(APIModel):
    username: str
    # older clients post the password as ``password1``
    password: str = Field(validation_alias=AliasChoices("password", "password1"))


class RegisterRequest(APIModel):
    username: str = Field(min_length=3, max_length=64)
    password: str = Field(min_length=6, validation_alias=AliasChoices("password", "password1"))
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    middle_name: Optional[str] = None
    role: UserRole = UserRole.STUDENT
    group_id: Optional[int] = None
    department_id: Optional[int] = None

    @field_validator("username", "first_name", "last_name")
    @classmethod
    def not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value

    @field_validator("middle_name")
    @classmethod
    def blank_to_none(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None
