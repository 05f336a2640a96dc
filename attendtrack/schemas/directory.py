from typing import Optional
from pydantic import Field, field_validator
from .base import APIModel


class EntityWrite(APIModel):
    name: str = Field(min_length=1, max_length=200)
    faculty_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class EntityUpdate(APIModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=200)
    faculty_id: Optional[int] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class EntityRead(APIModel):
    id: int
    name: str


class AffiliatedRead(EntityRead):
    faculty_id: Optional[int] = None
