from typing import List, Optional, TYPE_CHECKING
from datetime import date, datetime
from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import CheckConstraint, DateTime
from ..utils.clock import now

if TYPE_CHECKING:
    from .user import User
    from .organization import Group, Subject
    from .attendance import AttendanceRecord


class ClassSession(SQLModel, table=True):
    """A scheduled class meeting owned by one teacher.

    ``token`` is only set while ``is_active`` is true; ending the session
    clears it, so an ended session can no longer be resolved from a scan.
    """

    __tablename__ = "classes"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_class_time_order"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    subject_id: int = Field(foreign_key="subjects.id", index=True)
    teacher_id: int = Field(foreign_key="users.id", index=True)
    group_id: int = Field(foreign_key="groups.id", index=True)
    classroom: str
    date: date
    # naive local times; the column carries no timezone
    start_time: datetime = Field(sa_type=DateTime)
    end_time: datetime = Field(sa_type=DateTime)
    token: Optional[str] = Field(default=None, unique=True, index=True)
    is_active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=now, sa_type=DateTime)

    subject: Optional["Subject"] = Relationship()
    group: Optional["Group"] = Relationship()
    teacher: Optional["User"] = Relationship()
    records: List["AttendanceRecord"] = Relationship(back_populates="class_session")

    def owned_by(self, user_id: int) -> bool:
        return self.teacher_id == user_id

    @property
    def subject_name(self) -> Optional[str]:
        return self.subject.name if self.subject else None

    @property
    def group_name(self) -> Optional[str]:
        return self.group.name if self.group else None

    @property
    def teacher_name(self) -> Optional[str]:
        return self.teacher.full_name if self.teacher else None
