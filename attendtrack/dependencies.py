from typing import Optional
from fastapi import Depends, Request
from sqlmodel import Session
from .db import get_session
from .exceptions import AuthenticationError, AuthorizationError
from .models import User, UserRole


def get_current_user(request: Request, session: Session = Depends(get_session)) -> Optional[User]:
    """The logged-in user from the signed session cookie, or None."""
    user_id = request.session.get("user_id")
    if not user_id:
        return None
    user = session.get(User, user_id)
    if user is None:
        # account deleted while the cookie was still valid
        request.session.clear()
    return user


def require_user(current_user: Optional[User] = Depends(get_current_user)) -> User:
    if current_user is None:
        raise AuthenticationError()
    return current_user


def require_role(*roles: UserRole):
    """Dependency factory that ensures a user has one of the required roles."""
    def role_checker(user: User = Depends(require_user)) -> User:
        if user.role not in roles:
            raise AuthorizationError()
        return user
    return role_checker


require_student = require_role(UserRole.STUDENT)
require_teacher = require_role(UserRole.TEACHER, UserRole.ADMIN)
require_admin = require_role(UserRole.ADMIN)
