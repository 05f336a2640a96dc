from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from ..exceptions import AuthenticationError, AuthorizationError, ValidationError
from ..models import (
    AchievementUnlock,
    AttendanceRecord,
    ClassSession,
    Department,
    Group,
    User,
    UserProgress,
    UserRole,
)
from ..schemas.auth import RegisterRequest
from ..schemas.user import UserUpdate
from ..security import hash_password, verify_and_update_password
from .orm_utils import count_where, get_or_404, require_reference

log = logging.getLogger(__name__)


class UserService:
    def __init__(self, session: Session):
        self.session = session

    def by_username(self, username: str) -> Optional[User]:
        return self.session.exec(select(User).where(User.username == username)).first()

    def authenticate(self, username: str, password: str) -> User:
        """Return the user for valid credentials.

        Unknown usernames and wrong passwords fail with the same message.
        """
        user = self.by_username((username or "").strip())
        if user is None:
            log.warning("Failed login for unknown user %r", username)
            raise AuthenticationError("Invalid username or password")
        valid, new_hash = verify_and_update_password(password, user.password_hash)
        if not valid:
            log.warning("Failed login for user %r", username)
            raise AuthenticationError("Invalid username or password")
        if new_hash:
            user.password_hash = new_hash
            self.session.add(user)
            self.session.commit()
        log.info("User %s logged in", user.username)
        return user

    def _apply_affiliation(self, user: User) -> None:
        # students belong to a group, everyone else to a department
        if user.role == UserRole.STUDENT:
            user.department_id = None
            require_reference(self.session, Group, user.group_id)
        else:
            user.group_id = None
            require_reference(self.session, Department, user.department_id)

    def _ensure_username_free(self, username: str, *, exclude_id: Optional[int] = None) -> None:
        existing = self.by_username(username)
        if existing is not None and existing.id != exclude_id:
            raise ValidationError("Username already exists")

    def _save(self, user: User) -> User:
        self.session.add(user)
        try:
            self.session.commit()
        except IntegrityError:
            self.session.rollback()
            raise ValidationError("Username already exists") from None
        self.session.refresh(user)
        return user

    def register(self, data: RegisterRequest, actor: Optional[User] = None) -> User:
        """Create an account.

        Anyone may register a student; teacher and admin accounts need an
        admin ``actor``.
        """
        if data.role != UserRole.STUDENT and (actor is None or not actor.is_admin):
            raise AuthorizationError("Only administrators can create teacher or admin accounts")
        self._ensure_username_free(data.username)

        user = User(
            username=data.username,
            password_hash=hash_password(data.password),
            role=data.role,
            first_name=data.first_name,
            last_name=data.last_name,
            middle_name=data.middle_name,
            group_id=data.group_id,
            department_id=data.department_id,
        )
        self._apply_affiliation(user)
        user = self._save(user)
        log.info("Registered %s account %s", user.role.value, user.username)
        return user

    def get(self, user_id: int) -> User:
        return get_or_404(self.session, User, user_id)

    def list_users(self, role: Optional[UserRole] = None) -> list[User]:
        stmt = select(User).order_by(User.last_name, User.first_name)
        if role is not None:
            stmt = stmt.where(User.role == role)
        return list(self.session.exec(stmt).all())

    def update(self, user: User, data: UserUpdate) -> User:
        changes = data.model_dump(exclude_unset=True)
        if "username" in changes:
            self._ensure_username_free(changes["username"], exclude_id=user.id)
        password = changes.pop("password", None)
        for key, value in changes.items():
            setattr(user, key, value)
        if password:
            user.set_password(password)
        try:
            self._apply_affiliation(user)
        except ValidationError:
            self.session.rollback()
            raise
        return self._save(user)

    def update_user(self, user_id: int, data: UserUpdate) -> User:
        return self.update(self.get(user_id), data)

    def delete_user(self, user_id: int, actor: User) -> None:
        user = self.get(user_id)
        if user.id == actor.id:
            raise ValidationError("You cannot delete your own account")
        if count_where(self.session, ClassSession, ClassSession.teacher_id == user.id):
            raise ValidationError("User has class sessions and cannot be deleted")
        if count_where(self.session, AttendanceRecord, AttendanceRecord.student_id == user.id):
            raise ValidationError("User has attendance history and cannot be deleted")

        username = user.username
        progress = self.session.get(UserProgress, user.id)
        if progress is not None:
            self.session.delete(progress)
        unlocks = self.session.exec(select(AchievementUnlock).where(AchievementUnlock.user_id == user.id)).all()
        for unlock in unlocks:
            self.session.delete(unlock)
        self.session.delete(user)
        self.session.commit()
        log.info("User %s deleted by %s", username, actor.username)
