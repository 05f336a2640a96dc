from typing import List, Optional, TYPE_CHECKING
from sqlmodel import Field, SQLModel, Relationship

if TYPE_CHECKING:
    from .user import User


class Faculty(SQLModel, table=True):
    __tablename__ = "faculties"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)


class Group(SQLModel, table=True):
    __tablename__ = "groups"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    faculty_id: Optional[int] = Field(default=None, foreign_key="faculties.id")

    students: List["User"] = Relationship(back_populates="group")


class Department(SQLModel, table=True):
    __tablename__ = "departments"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
    faculty_id: Optional[int] = Field(default=None, foreign_key="faculties.id")

    teachers: List["User"] = Relationship(back_populates="department")


class Subject(SQLModel, table=True):
    __tablename__ = "subjects"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(index=True)
