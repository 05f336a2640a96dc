from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Optional

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlmodel import Session, select

from ..config import settings
from ..gamification import (
    ACHIEVEMENTS,
    Achievement,
    PointsRules,
    ProgressState,
    apply_check_in,
    rules_from_settings,
)
from ..models import AchievementUnlock, AttendanceRecord, UserProgress
from ..utils.clock import now
from .orm_utils import count_where

log = logging.getLogger(__name__)

# dialects with INSERT ... ON CONFLICT DO NOTHING
_CONFLICT_INSERTS = {"postgresql": pg_insert, "sqlite": sqlite_insert}


def load_progress(session: Session, student_id: int, *, for_update: bool = False) -> Optional[UserProgress]:
    stmt = select(UserProgress).where(UserProgress.user_id == student_id)
    if for_update:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    return session.exec(stmt).first()


def ensure_progress_row(session: Session, student_id: int, at: datetime) -> None:
    """Create the student's zeroed progress row unless it already exists.

    A row created by a concurrent transaction in the meantime is left as it
    is, so the caller can always lock and read it afterwards.
    """
    values = dict(user_id=student_id, points=0, streak=0, level=1, updated_at=at)
    insert = _CONFLICT_INSERTS.get(session.get_bind().dialect.name)
    if insert is None:
        if load_progress(session, student_id) is None:
            session.add(UserProgress(**values))
            session.flush()
        return
    stmt = insert(UserProgress.__table__).values(**values).on_conflict_do_nothing(index_elements=["user_id"])
    session.exec(stmt)


def unlocks(session: Session, student_id: int) -> list[AchievementUnlock]:
    return list(
        session.exec(
            select(AchievementUnlock)
            .where(AchievementUnlock.user_id == student_id)
            .order_by(AchievementUnlock.id)
        ).all()
    )


def attendance_count(session: Session, student_id: int) -> int:
    return count_where(session, AttendanceRecord, AttendanceRecord.student_id == student_id)


def _to_state(row: Optional[UserProgress], unlocked: list[AchievementUnlock]) -> ProgressState:
    if row is None:
        return ProgressState()
    return ProgressState(
        points=row.points,
        streak=row.streak,
        level=row.level,
        last_attendance=row.last_attendance,
        achievements=tuple(u.achievement_id for u in unlocked),
    )


def progress_state(session: Session, student_id: int) -> ProgressState:
    return _to_state(load_progress(session, student_id), unlocks(session, student_id))


def record_progress(
    session: Session,
    student_id: int,
    check_in_date: date,
    *,
    at: Optional[datetime] = None,
    rules: Optional[PointsRules] = None,
    commit: bool = False,
) -> UserProgress:
    """
    Apply one successful check-in to the student's progress row.
    Call after the attendance record is flushed, so the lifetime attendance
    count already includes it. With commit=False (default) the caller owns
    the transaction and is responsible for committing/rolling back.
    """
    at = at or now()
    rules = rules or rules_from_settings(settings)

    ensure_progress_row(session, student_id, at)
    row = load_progress(session, student_id, for_update=True)
    before = _to_state(row, unlocks(session, student_id))
    after = apply_check_in(before, check_in_date, attendance_count(session, student_id), rules)

    row.points = after.points
    row.streak = after.streak
    row.level = after.level
    row.last_attendance = after.last_attendance
    row.updated_at = at

    new_ids = after.achievements[len(before.achievements):]
    for achievement_id in new_ids:
        session.add(AchievementUnlock(user_id=student_id, achievement_id=achievement_id, unlocked_at=at))
    if new_ids:
        log.info("Student %s unlocked achievements %s", student_id, list(new_ids))
    if after.level != before.level:
        log.info("Student %s reached level %s", student_id, after.level)

    session.flush()
    if commit:
        session.commit()
    return row


def achievements_for(session: Session, student_id: int) -> list[tuple[Achievement, Optional[datetime]]]:
    """The full catalog paired with the unlock time (None while locked)."""
    unlocked_at = {u.achievement_id: u.unlocked_at for u in unlocks(session, student_id)}
    return [(a, unlocked_at.get(a.id)) for a in ACHIEVEMENTS]
