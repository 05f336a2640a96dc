from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import date as date_type, datetime
from typing import Callable, Optional

from sqlmodel import Session, select

from ..config import Settings, settings as default_settings
from ..exceptions import AuthorizationError, ValidationError
from ..models import (
    AttendanceRecord,
    AttendanceStatus,
    ClassSession,
    Group,
    Subject,
    User,
    UserRole,
)
from ..utils.calendar import to_local_naive
from ..utils.clock import now
from .orm_utils import get_or_404, require_reference

log = logging.getLogger(__name__)


@dataclass
class RosterEntry:
    student: User
    status: AttendanceStatus
    record: Optional[AttendanceRecord] = None


def new_token() -> str:
    return secrets.token_urlsafe(32)


class SessionService:
    """Class session lifecycle: create, mint a QR token, end, and read attendance."""

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

    def create_session(
        self,
        teacher_id: int,
        subject_id: int,
        group_id: int,
        classroom: str,
        start_time: datetime,
        end_time: datetime,
        date: Optional[date_type] = None,
    ) -> ClassSession:
        start_time = to_local_naive(start_time)
        end_time = to_local_naive(end_time)
        classroom = (classroom or "").strip()
        if not classroom:
            raise ValidationError("Classroom is required")
        if end_time <= start_time:
            raise ValidationError("End time must be after start time")

        teacher = require_reference(self.session, User, teacher_id)
        if teacher.role not in (UserRole.TEACHER, UserRole.ADMIN):
            raise ValidationError(f"User {teacher_id} is not a teacher")
        require_reference(self.session, Subject, subject_id)
        require_reference(self.session, Group, group_id)

        if self.config.SINGLE_ACTIVE_SESSION_PER_TEACHER and self._active_for(teacher_id):
            raise ValidationError("You already have an active class session")

        class_session = ClassSession(
            teacher_id=teacher_id,
            subject_id=subject_id,
            group_id=group_id,
            classroom=classroom,
            date=date or start_time.date(),
            start_time=start_time,
            end_time=end_time,
            is_active=True,
            token=None,
            created_at=self.clock(),
        )
        self.session.add(class_session)
        self.session.commit()
        self.session.refresh(class_session)
        log.info("Class session %s created by teacher %s", class_session.id, teacher_id)
        return class_session

    def _active_for(self, teacher_id: int) -> Optional[ClassSession]:
        return self.session.exec(
            select(ClassSession).where(
                ClassSession.teacher_id == teacher_id,
                ClassSession.is_active == True,  # noqa: E712
            )
        ).first()

    def get(self, session_id: int) -> ClassSession:
        return get_or_404(self.session, ClassSession, session_id)

    def authorize(self, session_id: int, requester: User) -> ClassSession:
        class_session = self.get(session_id)
        if not class_session.owned_by(requester.id) and requester.role != UserRole.ADMIN:
            raise AuthorizationError("You are not the owner of this class")
        return class_session

    def generate_token(self, session_id: int, requester: User) -> str:
        class_session = self.authorize(session_id, requester)
        if not class_session.is_active:
            raise ValidationError("Class session has already ended")
        class_session.token = new_token()
        self.session.add(class_session)
        self.session.commit()
        log.info("QR token issued for class session %s", session_id)
        return class_session.token

    def end_session(self, session_id: int, requester: User) -> ClassSession:
        class_session = self.authorize(session_id, requester)
        if class_session.is_active or class_session.token is not None:
            class_session.is_active = False
            class_session.token = None
            self.session.add(class_session)
            self.session.commit()
            self.session.refresh(class_session)
            log.info("Class session %s ended", session_id)
        return class_session

    def list_for_teacher(self, teacher_id: int) -> list[ClassSession]:
        return list(
            self.session.exec(
                select(ClassSession)
                .where(ClassSession.teacher_id == teacher_id)
                .order_by(ClassSession.start_time.desc())
            ).all()
        )

    def list_for_group(self, group_id: int) -> list[ClassSession]:
        return list(
            self.session.exec(
                select(ClassSession)
                .where(ClassSession.group_id == group_id)
                .order_by(ClassSession.start_time.desc())
            ).all()
        )

    def list_all(self) -> list[ClassSession]:
        return list(self.session.exec(select(ClassSession).order_by(ClassSession.start_time.desc())).all())

    def attendance_for_session(self, session_id: int, requester: User) -> list[AttendanceRecord]:
        self.authorize(session_id, requester)
        return list(
            self.session.exec(
                select(AttendanceRecord)
                .where(AttendanceRecord.class_id == session_id)
                .order_by(AttendanceRecord.timestamp)
            ).all()
        )

    def roster(self, session_id: int, requester: User) -> list[RosterEntry]:
        """Every student of the session's group with their derived status.

        Students without a record are reported ``absent``; nothing is written.
        """
        class_session = self.authorize(session_id, requester)
        records = {r.student_id: r for r in self.attendance_for_session(session_id, requester)}
        students = self.session.exec(
            select(User)
            .where(User.role == UserRole.STUDENT, User.group_id == class_session.group_id)
            .order_by(User.last_name, User.first_name)
        ).all()
        entries = []
        for student in students:
            record = records.get(student.id)
            status = record.status if record else AttendanceStatus.ABSENT
            entries.append(RosterEntry(student=student, status=status, record=record))
        return entries
