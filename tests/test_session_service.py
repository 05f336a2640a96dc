from datetime import datetime, timedelta, timezone
import pytest
from sqlmodel import Session
from attendtrack.config import Settings
from attendtrack.exceptions import AuthorizationError, NotFoundError, ValidationError
from attendtrack.models import AttendanceStatus, UserRole
from attendtrack.services.checkin_service import CheckInService
from attendtrack.services.session_service import SessionService
from .conftest import END, START, make_user


def create(svc, teacher, subject, group, **overrides):
    fields = dict(
        teacher_id=teacher.id,
        subject_id=subject.id,
        group_id=group.id,
        classroom="A-101",
        start_time=START,
        end_time=END,
    )
    fields.update(overrides)
    return svc.create_session(**fields)


def test_create_session_defaults(session: Session, clock, teacher, subject, group):
    cs = create(SessionService(session, clock=clock), teacher, subject, group)
    assert cs.is_active is True
    assert cs.token is None
    assert cs.date == START.date()
    assert cs.created_at == START


def test_create_session_rejects_bad_times(session: Session, teacher, subject, group):
    with pytest.raises(ValidationError):
        create(SessionService(session), teacher, subject, group, end_time=START)


def test_create_session_rejects_blank_classroom(session: Session, teacher, subject, group):
    with pytest.raises(ValidationError):
        create(SessionService(session), teacher, subject, group, classroom="  ")


def test_create_session_unknown_subject(session: Session, teacher, subject, group):
    with pytest.raises(ValidationError):
        create(SessionService(session), teacher, subject, group, subject_id=999)


def test_create_session_requires_teacher_account(session: Session, student, subject, group):
    with pytest.raises(ValidationError):
        create(SessionService(session), student, subject, group)


def test_aware_times_are_stored_naive(session: Session, teacher, subject, group):
    start = datetime(2024, 3, 4, 6, 0, tzinfo=timezone.utc)
    cs = create(SessionService(session), teacher, subject, group, start_time=start, end_time=start + timedelta(hours=1))
    assert cs.start_time.tzinfo is None
    assert cs.end_time - cs.start_time == timedelta(hours=1)


def test_naive_start_time_round_trips(session: Session, teacher, subject, group):
    cs = create(SessionService(session), teacher, subject, group)
    session.expire_all()

    stored = session.get(type(cs), cs.id)
    assert stored.start_time == START
    assert stored.start_time.tzinfo is None
    assert stored.end_time == END


def test_overlapping_sessions_allowed_by_default(session: Session, teacher, subject, group):
    svc = SessionService(session)
    create(svc, teacher, subject, group)
    create(svc, teacher, subject, group)


def test_single_active_session_guard(session: Session, teacher, subject, group):
    svc = SessionService(session, config=Settings(SINGLE_ACTIVE_SESSION_PER_TEACHER=True))
    first = create(svc, teacher, subject, group)
    with pytest.raises(ValidationError):
        create(svc, teacher, subject, group)
    svc.end_session(first.id, teacher)
    create(svc, teacher, subject, group)


def test_generate_token_replaces_previous(session: Session, teacher, subject, group):
    svc = SessionService(session)
    cs = create(svc, teacher, subject, group)
    first = svc.generate_token(cs.id, teacher)
    second = svc.generate_token(cs.id, teacher)
    assert first and second and first != second
    assert str(cs.id) not in (first, second)
    assert svc.get(cs.id).token == second


def test_generate_token_ownership(session: Session, teacher, admin, subject, group):
    svc = SessionService(session)
    cs = create(svc, teacher, subject, group)
    other = make_user(session, "teacher2", UserRole.TEACHER)
    with pytest.raises(AuthorizationError):
        svc.generate_token(cs.id, other)
    assert svc.generate_token(cs.id, admin)


def test_generate_token_missing_session(session: Session, teacher):
    with pytest.raises(NotFoundError):
        SessionService(session).generate_token(12345, teacher)


def test_generate_token_on_ended_session(session: Session, teacher, subject, group):
    svc = SessionService(session)
    cs = create(svc, teacher, subject, group)
    svc.end_session(cs.id, teacher)
    with pytest.raises(ValidationError):
        svc.generate_token(cs.id, teacher)


def test_end_session_is_idempotent(session: Session, teacher, subject, group):
    svc = SessionService(session)
    cs = create(svc, teacher, subject, group)
    svc.generate_token(cs.id, teacher)
    ended = svc.end_session(cs.id, teacher)
    assert ended.is_active is False
    assert ended.token is None
    again = svc.end_session(cs.id, teacher)
    assert again.is_active is False


def test_roster_derives_absent(session: Session, clock, teacher, student, group, class_session):
    absent = make_user(session, "student2", group_id=group.id, last_name="Absent")
    CheckInService(session, clock=clock).check_in("token-abc", student.id)

    roster = SessionService(session).roster(class_session.id, teacher)
    statuses = {entry.student.id: entry.status for entry in roster}
    assert statuses == {student.id: AttendanceStatus.PRESENT, absent.id: AttendanceStatus.ABSENT}
    assert len(SessionService(session).attendance_for_session(class_session.id, teacher)) == 1


def test_list_for_group_and_teacher(session: Session, teacher, other_group, class_session, group):
    svc = SessionService(session)
    assert [c.id for c in svc.list_for_teacher(teacher.id)] == [class_session.id]
    assert [c.id for c in svc.list_for_group(group.id)] == [class_session.id]
    assert svc.list_for_group(other_group.id) == []
