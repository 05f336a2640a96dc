from typing import Any, Dict, Optional
from datetime import datetime
from enum import Enum
from sqlmodel import Field, SQLModel
from sqlalchemy import Column, DateTime, JSON
from ..utils.clock import now


class ReportType(str, Enum):
    ATTENDANCE = "attendance"
    STATS = "stats"
    GROUPS = "groups"
    SUBJECTS = "subjects"


class ReportPeriod(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
    QUARTER = "quarter"
    YEAR = "year"


class ReportFormat(str, Enum):
    PDF = "pdf"
    CSV = "csv"
    EXCEL = "excel"
    JSON = "json"


class Report(SQLModel, table=True):
    __tablename__ = "reports"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    type: ReportType
    period: ReportPeriod
    format: ReportFormat
    created_at: datetime = Field(default_factory=now, index=True, sa_type=DateTime)
    created_by: int = Field(foreign_key="users.id")
    data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON))
