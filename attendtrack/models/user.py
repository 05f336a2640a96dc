from typing import Optional, TYPE_CHECKING
from datetime import datetime
from enum import Enum
from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import DateTime
from ..security import hash_password, verify_password
from ..utils.clock import now

if TYPE_CHECKING:
    from .organization import Group, Department


class UserRole(str, Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(unique=True, index=True)
    password_hash: str
    role: UserRole = Field(default=UserRole.STUDENT, index=True)
    first_name: str
    last_name: str
    middle_name: Optional[str] = None
    group_id: Optional[int] = Field(default=None, foreign_key="groups.id", index=True)  # students
    department_id: Optional[int] = Field(default=None, foreign_key="departments.id")  # teachers
    created_at: datetime = Field(default_factory=now, sa_type=DateTime)

    group: Optional["Group"] = Relationship(back_populates="students")
    department: Optional["Department"] = Relationship(back_populates="teachers")

    @property
    def full_name(self):
        parts = [self.last_name, self.first_name, self.middle_name]
        return " ".join(p for p in parts if p)

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    def set_password(self, password: str):
        self.password_hash = hash_password(password)

    def check_password(self, password: str) -> bool:
        return verify_password(password, self.password_hash)

    def __repr__(self):
        return f"<User id={self.id} {self.username} role={self.role.value}>"
