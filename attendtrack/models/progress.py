from typing import Optional
from datetime import date, datetime
from sqlmodel import Field, SQLModel
from sqlalchemy import CheckConstraint, DateTime, UniqueConstraint
from ..utils.clock import now


class UserProgress(SQLModel, table=True):
    __tablename__ = "user_progress"
    __table_args__ = (
        CheckConstraint("points >= 0", name="ck_progress_points_nonneg"),
        CheckConstraint("streak >= 0", name="ck_progress_streak_nonneg"),
    )

    user_id: int = Field(foreign_key="users.id", primary_key=True)
    points: int = Field(default=0)
    streak: int = Field(default=0)
    last_attendance: Optional[date] = None
    level: int = Field(default=1)
    updated_at: datetime = Field(default_factory=now, sa_type=DateTime)


class AchievementUnlock(SQLModel, table=True):
    """One unlocked catalog achievement; rows are only ever added."""

    __tablename__ = "achievement_unlocks"
    __table_args__ = (
        UniqueConstraint("user_id", "achievement_id", name="uq_unlock_user_achievement"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    user_id: int = Field(foreign_key="users.id", index=True)
    achievement_id: int
    unlocked_at: datetime = Field(default_factory=now, index=True, sa_type=DateTime)
