from typing import List
from fastapi import APIRouter, Depends
from sqlmodel import Session
from ..db import get_session
from ..dependencies import require_user
from ..models import Department, Group, Subject, User
from ..schemas.directory import AffiliatedRead, EntityRead
from ..services.directory_service import DirectoryService

router = APIRouter()


@router.get("/groups", response_model=List[AffiliatedRead])
def list_groups(session: Session = Depends(get_session)):
    # public: the registration form needs it
    return [AffiliatedRead.model_validate(g) for g in DirectoryService(session, Group).list_all()]


@router.get("/subjects", response_model=List[EntityRead])
def list_subjects(session: Session = Depends(get_session), user: User = Depends(require_user)):
    return [EntityRead.model_validate(s) for s in DirectoryService(session, Subject).list_all()]


@router.get("/departments", response_model=List[AffiliatedRead])
def list_departments(session: Session = Depends(get_session), user: User = Depends(require_user)):
    return [AffiliatedRead.model_validate(d) for d in DirectoryService(session, Department).list_all()]
