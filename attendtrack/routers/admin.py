from datetime import date
from typing import List, Optional, Type
from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from sqlmodel import Session, SQLModel
from ..db import get_session
from ..dependencies import require_admin, require_teacher
from ..models import Department, Faculty, Group, Subject, User, UserRole
from ..schemas.attendance import AttendanceRead
from ..schemas.base import APIModel, Message
from ..schemas.class_session import ClassSessionRead
from ..schemas.directory import AffiliatedRead, EntityRead, EntityUpdate, EntityWrite
from ..schemas.report import ReportCreate, ReportRead
from ..schemas.user import UserCreate, UserRead, UserUpdate
from ..services import report_export
from ..services.checkin_service import CheckInService
from ..services.directory_service import DirectoryService
from ..services.report_service import ReportService
from ..services.session_service import SessionService
from ..services.user_service import UserService


router = APIRouter()


# --- Users ---

@router.get("/users", response_model=List[UserRead])
def list_users(
    role: Optional[UserRole] = None,
    session: Session = Depends(get_session),
    user: User = Depends(require_teacher),
):
    return [UserRead.model_validate(u) for u in UserService(session).list_users(role)]


@router.post("/users", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def create_user(data: UserCreate, session: Session = Depends(get_session), admin: User = Depends(require_admin)):
    return UserRead.model_validate(UserService(session).register(data, actor=admin))


@router.get("/users/{user_id}", response_model=UserRead)
def get_user(user_id: int, session: Session = Depends(get_session), admin: User = Depends(require_admin)):
    return UserRead.model_validate(UserService(session).get(user_id))


@router.put("/users/{user_id}", response_model=UserRead)
def update_user(
    user_id: int,
    data: UserUpdate,
    session: Session = Depends(get_session),
    admin: User = Depends(require_admin),
):
    return UserRead.model_validate(UserService(session).update_user(user_id, data))


@router.delete("/users/{user_id}", response_model=Message)
def delete_user(user_id: int, session: Session = Depends(get_session), admin: User = Depends(require_admin)):
    UserService(session).delete_user(user_id, actor=admin)
    return Message(message="User deleted")


# --- Directory tables ---

def _directory_routes(path: str, model: Type[SQLModel], read_schema: Type[APIModel]) -> None:
    def list_entities(session: Session = Depends(get_session), admin: User = Depends(require_admin)):
        return [read_schema.model_validate(e) for e in DirectoryService(session, model).list_all()]

    def create_entity(data: EntityWrite, session: Session = Depends(get_session), admin: User = Depends(require_admin)):
        entity = DirectoryService(session, model).create(data.model_dump())
        return read_schema.model_validate(entity)

    def update_entity(
        entity_id: int,
        data: EntityUpdate,
        session: Session = Depends(get_session),
        admin: User = Depends(require_admin),
    ):
        entity = DirectoryService(session, model).update(entity_id, data.model_dump(exclude_unset=True))
        return read_schema.model_validate(entity)

    def delete_entity(entity_id: int, session: Session = Depends(get_session), admin: User = Depends(require_admin)):
        DirectoryService(session, model).delete(entity_id)
        return Message(message="Deleted")

    router.add_api_route(f"/{path}", list_entities, methods=["GET"], response_model=List[read_schema])
    router.add_api_route(
        f"/{path}", create_entity, methods=["POST"], response_model=read_schema,
        status_code=status.HTTP_201_CREATED,
    )
    router.add_api_route(f"/{path}/{{entity_id}}", update_entity, methods=["PATCH", "PUT"], response_model=read_schema)
    router.add_api_route(f"/{path}/{{entity_id}}", delete_entity, methods=["DELETE"], response_model=Message)


_directory_routes("groups", Group, AffiliatedRead)
_directory_routes("departments", Department, AffiliatedRead)
_directory_routes("faculties", Faculty, EntityRead)
_directory_routes("subjects", Subject, EntityRead)


# --- Classes and attendance ---

@router.get("/classes", response_model=List[ClassSessionRead])
def list_classes(session: Session = Depends(get_session), admin: User = Depends(require_admin)):
    return [ClassSessionRead.model_validate(s) for s in SessionService(session).list_all()]


@router.get("/attendance", response_model=List[AttendanceRead])
@router.get("/attendanceRecords", response_model=List[AttendanceRead], include_in_schema=False)
def list_attendance(session: Session = Depends(get_session), admin: User = Depends(require_admin)):
    return [AttendanceRead.model_validate(r) for r in CheckInService(session).list_all()]


# --- Reports ---

@router.get("/reports", response_model=List[ReportRead])
def list_reports(session: Session = Depends(get_session), admin: User = Depends(require_admin)):
    return [ReportRead.model_validate(r) for r in ReportService(session).list_reports()]


@router.post("/reports", response_model=ReportRead, status_code=status.HTTP_201_CREATED)
def create_report(data: ReportCreate, session: Session = Depends(get_session), admin: User = Depends(require_admin)):
    report = ReportService(session).create_report(
        name=data.name,
        report_type=data.type,
        period=data.period,
        report_format=data.format,
        created_by=admin.id,
        data=data.data,
    )
    return ReportRead.model_validate(report)


@router.get("/reports/{report_id}", response_model=ReportRead)
def get_report(report_id: int, session: Session = Depends(get_session), admin: User = Depends(require_admin)):
    return ReportRead.model_validate(ReportService(session).get(report_id))


@router.get("/reports/{report_id}/download")
def download_report(report_id: int, session: Session = Depends(get_session), admin: User = Depends(require_admin)):
    report = ReportService(session).get(report_id)
    content, media_type = report_export.render(report)
    filename = report_export.export_filename(report, date.today())
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": report_export.content_disposition(filename)},
    )


@router.delete("/reports/{report_id}", response_model=Message)
def delete_report(report_id: int, session: Session = Depends(get_session), admin: User = Depends(require_admin)):
    ReportService(session).delete(report_id)
    return Message(message="Report deleted")
