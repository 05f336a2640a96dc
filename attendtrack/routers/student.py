from typing import List
from fastapi import APIRouter, Depends, status
from sqlmodel import Session
from ..db import get_session
from ..dependencies import require_student, require_user
from ..models import User, UserRole
from ..schemas.attendance import AttendanceRead, CheckInRequest
from ..schemas.class_session import ClassSessionSummary
from ..schemas.progress import AchievementRead, ProgressRead, achievement_read, progress_read
from ..schemas.user import UserRead
from ..services.checkin_service import CheckInService
from ..services.progress_service import achievements_for, progress_state
from ..services.session_service import SessionService
from ..services.user_service import UserService

router = APIRouter()


@router.post("/attendance", response_model=AttendanceRead, status_code=status.HTTP_201_CREATED)
def check_in(data: CheckInRequest, session: Session = Depends(get_session), user: User = Depends(require_student)):
    record = CheckInService(session).check_in(data.qr_code, user.id)
    return AttendanceRead.model_validate(record)


@router.get("/attendance", response_model=List[AttendanceRead])
def my_attendance(session: Session = Depends(get_session), user: User = Depends(require_student)):
    return [AttendanceRead.model_validate(r) for r in CheckInService(session).history_for(user.id)]


@router.get("/classes", response_model=List[ClassSessionSummary])
def my_classes(session: Session = Depends(get_session), user: User = Depends(require_student)):
    if user.group_id is None:
        return []
    return [ClassSessionSummary.model_validate(s) for s in SessionService(session).list_for_group(user.group_id)]


@router.get("/progress", response_model=ProgressRead)
def my_progress(session: Session = Depends(get_session), user: User = Depends(require_student)):
    state = progress_state(session, user.id)
    return progress_read(user.id, state)


@router.get("/achievements", response_model=List[AchievementRead])
def my_achievements(session: Session = Depends(get_session), user: User = Depends(require_student)):
    return [achievement_read(a, at) for a, at in achievements_for(session, user.id)]


@router.get("/users", response_model=List[UserRead])
def teachers(session: Session = Depends(get_session), user: User = Depends(require_user)):
    """Teachers directory shown on the student dashboard."""
    return [UserRead.model_validate(u) for u in UserService(session).list_users(UserRole.TEACHER)]
