from datetime import date, datetime
from typing import List, Optional
from ..gamification import level_for_points, next_level
from .base import APIModel


class LevelRead(APIModel):
    level: int
    title: str
    min_points: int
    max_points: Optional[int] = None


class ProgressRead(APIModel):
    user_id: int
    points: int
    streak: int
    level: int
    last_attendance: Optional[date] = None
    achievements: List[int]
    level_info: LevelRead
    next_level: Optional[LevelRead] = None


class AchievementRead(APIModel):
    id: int
    name: str
    description: str
    icon: str
    required_points: Optional[int] = None
    required_attendance: Optional[int] = None
    required_consecutive_days: Optional[int] = None
    unlocked: bool = False
    unlocked_at: Optional[datetime] = None


def progress_read(user_id: int, state) -> ProgressRead:
    """Serialize a ``ProgressState`` with its current and next level."""
    current = level_for_points(state.points)
    upcoming = next_level(current)
    return ProgressRead(
        user_id=user_id,
        points=state.points,
        streak=state.streak,
        level=state.level,
        last_attendance=state.last_attendance,
        achievements=list(state.achievements),
        level_info=LevelRead.model_validate(current),
        next_level=LevelRead.model_validate(upcoming) if upcoming else None,
    )


def achievement_read(achievement, unlocked_at) -> AchievementRead:
    return AchievementRead(
        id=achievement.id,
        name=achievement.name,
        description=achievement.description,
        icon=achievement.icon,
        required_points=achievement.required_points,
        required_attendance=achievement.required_attendance,
        required_consecutive_days=achievement.required_consecutive_days,
        unlocked=unlocked_at is not None,
        unlocked_at=unlocked_at,
    )
