import logging
from typing import Optional
from fastapi import APIRouter, Depends, Request, status
from sqlmodel import Session
from ..db import get_session
from ..dependencies import get_current_user, require_user
from ..models import User
from ..schemas.auth import LoginRequest, RegisterRequest
from ..schemas.base import Message
from ..schemas.user import ProfileUpdate, UserRead
from ..services.user_service import UserService

log = logging.getLogger(__name__)

router = APIRouter()


@router.post("/auth/login", response_model=UserRead)
def login(request: Request, data: LoginRequest, session: Session = Depends(get_session)):
    user = UserService(session).authenticate(data.username, data.password)
    request.session["user_id"] = user.id
    request.session["role"] = user.role.value
    return UserRead.model_validate(user)


@router.post("/auth/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
def register(
    data: RegisterRequest,
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_current_user),
):
    user = UserService(session).register(data, actor=current_user)
    return UserRead.model_validate(user)


@router.post("/auth/logout", response_model=Message)
def logout(request: Request):
    user_id = request.session.get("user_id")
    request.session.clear()
    if user_id:
        log.info("User %s logged out", user_id)
    return Message(message="Logged out")


@router.get("/auth/me", response_model=UserRead)
def me(current_user: User = Depends(require_user)):
    return UserRead.model_validate(current_user)


@router.put("/user/change", response_model=UserRead)
def change_profile(
    request: Request,
    data: ProfileUpdate,
    session: Session = Depends(get_session),
    current_user: User = Depends(require_user),
):
    user = UserService(session).update(current_user, data)
    request.session["role"] = user.role.value
    return UserRead.model_validate(user)
