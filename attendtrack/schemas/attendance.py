from datetime import datetime
from typing import Optional
from ..models.attendance import AttendanceStatus
from .base import APIModel


class CheckInRequest(APIModel):
    qr_code: Optional[str] = None


class AttendanceRead(APIModel):
    id: int
    class_id: int
    student_id: int
    student_name: Optional[str] = None
    subject_name: Optional[str] = None
    timestamp: datetime
    status: AttendanceStatus


class RosterEntryRead(APIModel):
    student_id: int
    student_name: str
    status: AttendanceStatus
    timestamp: Optional[datetime] = None
