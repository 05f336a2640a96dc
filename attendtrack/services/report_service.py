from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from sqlmodel import Session, select

from ..models import (
    AttendanceRecord,
    ClassSession,
    Group,
    Report,
    ReportFormat,
    ReportPeriod,
    ReportType,
    Subject,
    User,
    UserRole,
)
from ..utils.calendar import period_window
from ..utils.clock import now
from .orm_utils import get_or_404

log = logging.getLogger(__name__)


class ReportService:
    """Builds aggregate snapshots and stores them as reports."""

    def __init__(self, session: Session, *, clock: Callable[[], datetime] = now):
        self.session = session
        self.clock = clock

    def _sessions_between(self, start: datetime, end: datetime) -> list[ClassSession]:
        return list(
            self.session.exec(
                select(ClassSession).where(
                    ClassSession.start_time >= start,
                    ClassSession.start_time <= end,
                )
            ).all()
        )

    def _students(self) -> list[User]:
        return list(
            self.session.exec(
                select(User)
                .where(User.role == UserRole.STUDENT)
                .order_by(User.last_name, User.first_name)
            ).all()
        )

    def _groups(self) -> list[Group]:
        return list(self.session.exec(select(Group).order_by(Group.name)).all())

    def attendance_data(self, sessions: list[ClassSession]) -> Dict[str, Any]:
        students = self._students()
        session_ids = [s.id for s in sessions]
        held = Counter(s.group_id for s in sessions)
        group_of_session = {s.id: s.group_id for s in sessions}

        attended: Counter = Counter()
        if session_ids:
            records = self.session.exec(
                select(AttendanceRecord).where(AttendanceRecord.class_id.in_(session_ids))
            ).all()
            for record in records:
                attended[(record.student_id, group_of_session[record.class_id])] += 1

        by_group = []
        for group in self._groups():
            rows = []
            for student in students:
                if student.group_id != group.id:
                    continue
                total = held[group.id]
                ratio = attended[(student.id, group.id)] / total if total else 0
                rows.append({"studentName": student.full_name, "attendance": round(ratio, 4)})
            by_group.append({"groupName": group.name, "students": rows})

        return {
            "totalClasses": len(sessions),
            "totalStudents": len(students),
            "attendanceByGroup": by_group,
        }

    def stats_data(self, sessions: list[ClassSession]) -> Dict[str, Any]:
        teachers = self.session.exec(
            select(User)
            .where(User.role == UserRole.TEACHER)
            .order_by(User.last_name, User.first_name)
        ).all()
        per_teacher = Counter(s.teacher_id for s in sessions)
        activity = [
            {"teacherName": t.full_name, "classesCount": per_teacher[t.id]}
            for t in teachers
        ]
        average = round(sum(a["classesCount"] for a in activity) / len(activity), 1) if activity else 0
        return {
            "totalTeachers": len(activity),
            "classesPerTeacher": average,
            "teacherActivity": activity,
        }

    def groups_data(self) -> Dict[str, Any]:
        per_group = Counter(s.group_id for s in self._students())
        groups = self._groups()
        return {
            "totalGroups": len(groups),
            "studentsPerGroup": [
                {"groupName": g.name, "studentsCount": per_group[g.id]} for g in groups
            ],
        }

    def subjects_data(self, sessions: list[ClassSession]) -> Dict[str, Any]:
        subjects = self.session.exec(select(Subject).order_by(Subject.name)).all()
        per_subject = Counter(s.subject_id for s in sessions)
        return {
            "totalSubjects": len(subjects),
            "subjectPopularity": [
                {"subjectName": s.name, "classesCount": per_subject[s.id]} for s in subjects
            ],
        }

    def build_report_data(self, report_type: ReportType, period: ReportPeriod, until: Optional[datetime] = None) -> Dict[str, Any]:
        start, end = period_window(ReportPeriod(period).value, until or self.clock())
        report_type = ReportType(report_type)
        if report_type == ReportType.GROUPS:
            return self.groups_data()
        sessions = self._sessions_between(start, end)
        if report_type == ReportType.ATTENDANCE:
            return self.attendance_data(sessions)
        if report_type == ReportType.STATS:
            return self.stats_data(sessions)
        return self.subjects_data(sessions)

    def create_report(
        self,
        name: str,
        report_type: ReportType,
        period: ReportPeriod,
        report_format: ReportFormat,
        created_by: int,
        data: Optional[Dict[str, Any]] = None,
    ) -> Report:
        created_at = self.clock()
        if data is None:
            data = self.build_report_data(report_type, period, created_at)
        report = Report(
            name=name.strip(),
            type=report_type,
            period=period,
            format=report_format,
            created_by=created_by,
            created_at=created_at,
            data=data,
        )
        self.session.add(report)
        self.session.commit()
        self.session.refresh(report)
        log.info("Report %s (%s/%s) created by user %s", report.id, report.type.value, report.period.value, created_by)
        return report

    def list_reports(self) -> list[Report]:
        return list(self.session.exec(select(Report).order_by(Report.created_at.desc())).all())

    def get(self, report_id: int) -> Report:
        return get_or_404(self.session, Report, report_id)

    def delete(self, report_id: int) -> None:
        report = self.get(report_id)
        self.session.delete(report)
        self.session.commit()
        log.info("Report %s deleted", report_id)
