from .user import User, UserRole
from .organization import Faculty, Group, Department, Subject
from .class_session import ClassSession
from .attendance import AttendanceRecord, AttendanceStatus
from .progress import UserProgress, AchievementUnlock
from .report import Report, ReportType, ReportPeriod, ReportFormat

__all__ = [
    "User", "UserRole",
    "Faculty", "Group", "Department", "Subject",
    "ClassSession",
    "AttendanceRecord", "AttendanceStatus",
    "UserProgress", "AchievementUnlock",
    "Report", "ReportType", "ReportPeriod", "ReportFormat",
]
