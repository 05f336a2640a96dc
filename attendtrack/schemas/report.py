from datetime import datetime
from typing import Any, Dict, Optional
from pydantic import Field
from ..models.report import ReportFormat, ReportPeriod, ReportType
from .base import APIModel


class ReportCreate(APIModel):
    name: str = Field(min_length=1, max_length=200)
    type: ReportType
    period: ReportPeriod
    format: ReportFormat
    # built server-side when omitted
    data: Optional[Dict[str, Any]] = None


class ReportRead(APIModel):
    id: int
    name: str
    type: ReportType
    period: ReportPeriod
    format: ReportFormat
    created_at: datetime
    created_by: int
    data: Dict[str, Any]
