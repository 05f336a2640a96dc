import datetime as dt
from typing import Optional
from pydantic import AliasChoices, Field
from .base import APIModel


class ClassSessionCreate(APIModel):
    subject_id: int
    group_id: int
    classroom: str
    start_time: dt.datetime
    end_time: dt.datetime
    date: Optional[dt.date] = None
    # admins only: create on behalf of a teacher
    teacher_id: Optional[int] = None


class ClassSessionSummary(APIModel):
    """What students see. Never carries the QR token."""

    id: int
    subject_id: int
    subject_name: Optional[str] = None
    teacher_id: int
    teacher_name: Optional[str] = None
    group_id: int
    group_name: Optional[str] = None
    classroom: str
    date: dt.date
    start_time: dt.datetime
    end_time: dt.datetime
    is_active: bool


class ClassSessionRead(ClassSessionSummary):
    qr_code: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("qrCode", "token"),
        serialization_alias="qrCode",
    )
    created_at: dt.datetime


class QrCodeRead(APIModel):
    qr_code: str
