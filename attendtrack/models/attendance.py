from typing import Optional, TYPE_CHECKING
from datetime import datetime
from enum import Enum
from sqlmodel import Field, SQLModel, Relationship
from sqlalchemy import DateTime, UniqueConstraint
from ..utils.clock import now

if TYPE_CHECKING:
    from .user import User
    from .class_session import ClassSession


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    LATE = "late"
    # Never stored: absence is the lack of a record, derived when reading a roster.
    ABSENT = "absent"


class AttendanceRecord(SQLModel, table=True):
    __tablename__ = "attendance_records"
    __table_args__ = (
        UniqueConstraint("class_id", "student_id", name="uq_attendance_class_student"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    class_id: int = Field(foreign_key="classes.id", index=True)
    student_id: int = Field(foreign_key="users.id", index=True)
    timestamp: datetime = Field(default_factory=now, index=True, sa_type=DateTime)
    status: AttendanceStatus

    class_session: Optional["ClassSession"] = Relationship(back_populates="records")
    student: Optional["User"] = Relationship()

    @property
    def student_name(self) -> Optional[str]:
        return self.student.full_name if self.student else None

    @property
    def subject_name(self) -> Optional[str]:
        cs = self.class_session
        return cs.subject_name if cs else None
