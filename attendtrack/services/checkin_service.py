from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from ..config import Settings, settings as default_settings
from ..exceptions import (
    DuplicateCheckInError,
    InternalError,
    InvalidTokenError,
    NotEnrolledError,
    ValidationError,
)
from ..gamification import rules_from_settings
from ..models import AttendanceRecord, AttendanceStatus, ClassSession, User
from ..utils.clock import now
from .orm_utils import get_or_404
from .progress_service import record_progress

log = logging.getLogger(__name__)


def classify(start_time: datetime, at: datetime, grace_minutes: int = 15) -> AttendanceStatus:
    """``present`` up to and including ``start_time + grace``, ``late`` after."""
    if at <= start_time + timedelta(minutes=grace_minutes):
        return AttendanceStatus.PRESENT
    return AttendanceStatus.LATE


class CheckInService:
    def __init__(
        self,
        session: Session,
        *,
        config: Optional[Settings] = None,
        clock: Callable[[], datetime] = now,
    ):
        self.session = session
        self.config = config or default_settings
        self.clock = clock
        self.rules = rules_from_settings(self.config)

    def resolve_token(self, token: str, at: datetime) -> ClassSession:
        class_session = self.session.exec(
            select(ClassSession).where(
                ClassSession.token == token,
                ClassSession.is_active == True,  # noqa: E712
            )
        ).first()
        if class_session is None:
            raise InvalidTokenError()
        if self.config.ENFORCE_SESSION_END_TIME and at >= class_session.end_time:
            raise InvalidTokenError()
        return class_session

    def _find_existing(self, class_id: int, student_id: int) -> Optional[AttendanceRecord]:
        return self.session.exec(
            select(AttendanceRecord).where(
                AttendanceRecord.class_id == class_id,
                AttendanceRecord.student_id == student_id,
            )
        ).first()

    def check_in(self, token: Optional[str], student_id: int) -> AttendanceRecord:
        """Redeem a QR token for ``student_id``.

        The attendance record and the progress update are committed together;
        any failure leaves neither behind.
        """
        token = (token or "").strip()
        if not token:
            raise ValidationError("QR code is required")

        at = self.clock()
        student = get_or_404(self.session, User, student_id)
        class_session = self.resolve_token(token, at)

        if student.group_id is None or student.group_id != class_session.group_id:
            raise NotEnrolledError()

        class_id = class_session.id
        if self._find_existing(class_id, student_id) is not None:
            log.warning("Duplicate check-in: student=%s class=%s", student_id, class_id)
            raise DuplicateCheckInError()

        record = AttendanceRecord(
            class_id=class_id,
            student_id=student_id,
            timestamp=at,
            status=classify(class_session.start_time, at, self.config.LATE_GRACE_MINUTES),
        )
        try:
            self.session.add(record)
            try:
                self.session.flush()
            except IntegrityError:
                self.session.rollback()
                log.warning("Duplicate check-in (constraint): student=%s class=%s", student_id, class_id)
                raise DuplicateCheckInError() from None

            record_progress(self.session, student_id, at.date(), at=at, rules=self.rules, commit=False)
            self.session.commit()
        except DuplicateCheckInError:
            raise
        except SQLAlchemyError as exc:
            self.session.rollback()
            log.exception("Check-in failed: student=%s class=%s", student_id, class_id)
            raise InternalError() from exc
        except Exception:
            self.session.rollback()
            raise

        self.session.refresh(record)
        log.info(
            "Check-in: student=%s class=%s status=%s",
            student_id, record.class_id, record.status.value,
        )
        return record

    def history_for(self, student_id: int) -> list[AttendanceRecord]:
        return list(
            self.session.exec(
                select(AttendanceRecord)
                .where(AttendanceRecord.student_id == student_id)
                .order_by(AttendanceRecord.timestamp.desc())
            ).all()
        )

    def list_all(self) -> list[AttendanceRecord]:
        return list(
            self.session.exec(select(AttendanceRecord).order_by(AttendanceRecord.timestamp.desc())).all()
        )
