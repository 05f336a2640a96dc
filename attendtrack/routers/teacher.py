import io
from typing import List
import qrcode
from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from sqlmodel import Session
from ..db import get_session
from ..dependencies import require_teacher
from ..exceptions import AuthorizationError, NotFoundError
from ..models import User, UserRole
from ..schemas.attendance import AttendanceRead, RosterEntryRead
from ..schemas.class_session import ClassSessionCreate, ClassSessionRead, QrCodeRead
from ..services.session_service import SessionService

router = APIRouter()


@router.get("/classes", response_model=List[ClassSessionRead])
def list_classes(session: Session = Depends(get_session), user: User = Depends(require_teacher)):
    sessions = SessionService(session).list_for_teacher(user.id)
    return [ClassSessionRead.model_validate(s) for s in sessions]


@router.post("/classes", response_model=ClassSessionRead, status_code=status.HTTP_201_CREATED)
def create_class(
    data: ClassSessionCreate,
    session: Session = Depends(get_session),
    user: User = Depends(require_teacher),
):
    teacher_id = user.id
    if data.teacher_id is not None and data.teacher_id != user.id:
        if user.role != UserRole.ADMIN:
            raise AuthorizationError("Only administrators can create classes for other teachers")
        teacher_id = data.teacher_id
    class_session = SessionService(session).create_session(
        teacher_id=teacher_id,
        subject_id=data.subject_id,
        group_id=data.group_id,
        classroom=data.classroom,
        start_time=data.start_time,
        end_time=data.end_time,
        date=data.date,
    )
    return ClassSessionRead.model_validate(class_session)


@router.post("/classes/{class_id}/qr", response_model=QrCodeRead)
def generate_qr(class_id: int, session: Session = Depends(get_session), user: User = Depends(require_teacher)):
    token = SessionService(session).generate_token(class_id, user)
    return QrCodeRead(qr_code=token)


@router.get("/classes/{class_id}/qr.png")
def qr_image(class_id: int, session: Session = Depends(get_session), user: User = Depends(require_teacher)):
    class_session = SessionService(session).authorize(class_id, user)
    if not class_session.token:
        raise NotFoundError("This class has no active QR code")

    buf = io.BytesIO()
    qrcode.make(class_session.token).save(buf, format="PNG")
    return Response(content=buf.getvalue(), media_type="image/png")


@router.put("/classes/{class_id}/end", response_model=ClassSessionRead)
def end_class(class_id: int, session: Session = Depends(get_session), user: User = Depends(require_teacher)):
    class_session = SessionService(session).end_session(class_id, user)
    return ClassSessionRead.model_validate(class_session)


@router.get("/classes/{class_id}/attendance", response_model=List[AttendanceRead])
def class_attendance(class_id: int, session: Session = Depends(get_session), user: User = Depends(require_teacher)):
    records = SessionService(session).attendance_for_session(class_id, user)
    return [AttendanceRead.model_validate(r) for r in records]


@router.get("/classes/{class_id}/roster", response_model=List[RosterEntryRead])
def class_roster(class_id: int, session: Session = Depends(get_session), user: User = Depends(require_teacher)):
    return [
        RosterEntryRead(
            student_id=entry.student.id,
            student_name=entry.student.full_name,
            status=entry.status,
            timestamp=entry.record.timestamp if entry.record else None,
        )
        for entry in SessionService(session).roster(class_id, user)
    ]
