"""Points, streak, level and achievement rules.

Everything here is pure: ``apply_check_in`` maps the current progress state
plus one check-in to the next state, and the catalogs are static reference
data. Persistence lives in ``attendtrack.services.progress_service``.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, timedelta
from typing import Optional, Sequence


@dataclass(frozen=True)
class Level:
    level: int
    title: str
    min_points: int
    max_points: Optional[int]  # None means unbounded

    def contains(self, points: int) -> bool:
        if points < self.min_points:
            return False
        return self.max_points is None or points <= self.max_points


@dataclass(frozen=True)
class Achievement:
    id: int
    name: str
    description: str
    icon: str
    required_points: Optional[int] = None
    required_attendance: Optional[int] = None
    required_consecutive_days: Optional[int] = None

    def is_satisfied(self, *, points: int, attendance_count: int, streak: int) -> bool:
        checks = (
            (self.required_points, points),
            (self.required_attendance, attendance_count),
            (self.required_consecutive_days, streak),
        )
        requirements = [(need, have) for need, have in checks if need is not None]
        return bool(requirements) and all(have >= need for need, have in requirements)


@dataclass(frozen=True)
class PointsRules:
    attendance: int = 10
    streak_bonus: int = 5


@dataclass(frozen=True)
class ProgressState:
    points: int = 0
    streak: int = 0
    level: int = 1
    last_attendance: Optional[date] = None
    achievements: tuple[int, ...] = field(default_factory=tuple)


LEVELS: tuple[Level, ...] = (
    Level(1, "Новичок", 0, 99),
    Level(2, "Студент", 100, 299),
    Level(3, "Прилежный ученик", 300, 599),
    Level(4, "Отличник", 600, 999),
    Level(5, "Академик", 1000, 1999),
    Level(6, "Вундеркинд", 2000, 3499),
    Level(7, "Гений", 3500, 5999),
    Level(8, "Мастер знаний", 6000, 9999),
    Level(9, "Легенда универа", 10000, None),
)

# Evaluated in this order; unlock order follows it when several fire at once.
ACHIEVEMENTS: tuple[Achievement, ...] = (
    Achievement(1, "Первые шаги", "Отметить присутствие на первом занятии", "Star", required_attendance=1),
    Achievement(2, "Прилежный студент", "Отметить присутствие на 10 занятиях", "Award", required_attendance=10),
    Achievement(3, "Отличник", "Отметить присутствие на 50 занятиях", "Medal", required_attendance=50),
    Achievement(4, "Неделя совершенства", "Посетить занятия 7 дней подряд", "Calendar", required_consecutive_days=7),
    Achievement(5, "Месяц совершенства", "Посетить занятия 30 дней подряд", "Trophy", required_consecutive_days=30),
    Achievement(6, "Сотня", "Набрать 100 очков", "100", required_points=100),
    Achievement(7, "Тысяча", "Набрать 1000 очков", "1000", required_points=1000),
    Achievement(8, "Десять тысяч", "Набрать 10000 очков", "Target", required_points=10000),
)

ACHIEVEMENTS_BY_ID = {a.id: a for a in ACHIEVEMENTS}


def level_for_points(points: int, levels: Sequence[Level] = LEVELS) -> Level:
    for level in levels:
        if level.contains(points):
            return level
    raise ValueError(f"No level covers {points} points")


def next_level(current: Level, levels: Sequence[Level] = LEVELS) -> Optional[Level]:
    for level in levels:
        if level.level == current.level + 1:
            return level
    return None


def advance_streak(streak: int, last_attendance: Optional[date], check_in_date: date) -> tuple[int, bool]:
    """Return ``(new_streak, earned_bonus)`` for a check-in on ``check_in_date``."""
    if last_attendance is None:
        return 1, False
    if last_attendance == check_in_date - timedelta(days=1):
        return streak + 1, True
    if last_attendance >= check_in_date:
        # Same day (or an out-of-order date): the day already counted.
        return max(streak, 1), False
    return 1, False


def unlocked_achievements(
    state: ProgressState,
    attendance_count: int,
    catalog: Sequence[Achievement] = ACHIEVEMENTS,
) -> tuple[int, ...]:
    have = set(state.achievements)
    added = [
        a.id for a in catalog
        if a.id not in have
        and a.is_satisfied(points=state.points, attendance_count=attendance_count, streak=state.streak)
    ]
    return state.achievements + tuple(added)


def apply_check_in(
    state: ProgressState,
    check_in_date: date,
    attendance_count: int,
    rules: PointsRules = PointsRules(),
    *,
    levels: Sequence[Level] = LEVELS,
    catalog: Sequence[Achievement] = ACHIEVEMENTS,
) -> ProgressState:
    """Fold one successful check-in into ``state``.

    ``attendance_count`` is the student's lifetime number of attendance
    records, including the one that triggered this update.
    """
    streak, bonus = advance_streak(state.streak, state.last_attendance, check_in_date)
    points = state.points + rules.attendance + (rules.streak_bonus if bonus else 0)
    last = check_in_date if state.last_attendance is None else max(state.last_attendance, check_in_date)

    updated = replace(
        state,
        points=points,
        streak=streak,
        last_attendance=last,
        level=level_for_points(points, levels).level,
    )
    return replace(updated, achievements=unlocked_achievements(updated, attendance_count, catalog))


def rules_from_settings(settings) -> PointsRules:
    return PointsRules(attendance=settings.ATTENDANCE_POINTS, streak_bonus=settings.STREAK_BONUS_POINTS)
