import csv
import io
import json
from datetime import date, timedelta
import pytest
from httpx import AsyncClient
from openpyxl import load_workbook
from sqlmodel import Session
from attendtrack.models import Report, ReportFormat, ReportPeriod, ReportType
from attendtrack.services import report_export
from attendtrack.services.checkin_service import CheckInService
from attendtrack.services.report_service import ReportService
from attendtrack.utils.calendar import period_window
from .conftest import START, login, make_user


def test_period_windows():
    start, end = period_window("week", START)
    assert end == START
    assert end - start == timedelta(days=7)
    assert START - period_window("quarter", START)[0] == timedelta(days=90)
    with pytest.raises(ValueError):
        period_window("decade", START)


def test_attendance_report_ratios(session: Session, clock, teacher, student, group, subject, class_session):
    absent = make_user(session, "student2", group_id=group.id, last_name="Zeta")
    CheckInService(session, clock=clock).check_in("token-abc", student.id)

    data = ReportService(session, clock=clock).build_report_data(ReportType.ATTENDANCE, ReportPeriod.WEEK)
    assert data["totalClasses"] == 1
    assert data["totalStudents"] == 2
    (group_row,) = data["attendanceByGroup"]
    assert group_row["groupName"] == group.name
    ratios = {row["studentName"]: row["attendance"] for row in group_row["students"]}
    assert ratios == {student.full_name: 1.0, absent.full_name: 0}


def test_period_excludes_old_sessions(session: Session, clock, class_session):
    clock.now = START + timedelta(days=2)
    data = ReportService(session, clock=clock).build_report_data(ReportType.SUBJECTS, ReportPeriod.DAY)
    assert data["totalSubjects"] == 1
    assert data["subjectPopularity"][0]["classesCount"] == 0

    week = ReportService(session, clock=clock).build_report_data(ReportType.SUBJECTS, ReportPeriod.WEEK)
    assert week["subjectPopularity"][0]["classesCount"] == 1


def test_stats_and_groups_reports(session: Session, clock, teacher, student, group, class_session):
    svc = ReportService(session, clock=clock)
    stats = svc.build_report_data(ReportType.STATS, ReportPeriod.MONTH)
    assert stats == {
        "totalTeachers": 1,
        "classesPerTeacher": 1.0,
        "teacherActivity": [{"teacherName": teacher.full_name, "classesCount": 1}],
    }
    groups = svc.build_report_data(ReportType.GROUPS, ReportPeriod.YEAR)
    assert groups == {"totalGroups": 1, "studentsPerGroup": [{"groupName": group.name, "studentsCount": 1}]}


def _report(**overrides) -> Report:
    fields = dict(
        id=1,
        name="weekly",
        type=ReportType.GROUPS,
        period=ReportPeriod.WEEK,
        format=ReportFormat.CSV,
        created_by=1,
        created_at=START,
        data={"totalGroups": 1, "studentsPerGroup": [{"groupName": "ИВТ-21", "studentsCount": 3}]},
    )
    fields.update(overrides)
    return Report(**fields)


def test_csv_export_has_bom_and_rows():
    content, media_type = report_export.render(_report())
    assert media_type.startswith("text/csv")
    assert content.startswith(b"\xef\xbb\xbf")
    rows = list(csv.reader(io.StringIO(content.decode("utf-8-sig"))))
    assert ["ИВТ-21", "3"] in rows
    assert ["Total groups", "1"] in rows


def test_excel_export_opens():
    content, _ = report_export.render(_report(format=ReportFormat.EXCEL))
    ws = load_workbook(io.BytesIO(content)).active
    values = [tuple(c.value for c in row) for row in ws.iter_rows()]
    assert ("ИВТ-21", 3, None) in values or ("ИВТ-21", 3) in values


def test_pdf_export():
    content, media_type = report_export.render(_report(format=ReportFormat.PDF, name="A & B"))
    assert media_type == "application/pdf"
    assert content.startswith(b"%PDF")


def test_json_export():
    content, _ = report_export.render(_report(format=ReportFormat.JSON))
    assert json.loads(content)["studentsPerGroup"][0]["studentsCount"] == 3


def test_export_filename():
    assert report_export.export_filename(_report(format=ReportFormat.EXCEL), date(2024, 3, 5)) == "weekly_2024-03-05.xlsx"


def test_content_disposition_non_ascii():
    value = report_export.content_disposition("отчет_2024-03-05.csv")
    assert value.startswith('attachment; filename="')
    assert "filename*=UTF-8''" in value
    value.encode("latin-1")


@pytest.mark.asyncio
async def test_report_lifecycle(client: AsyncClient, admin, teacher, class_session):
    await login(client, "admin1")
    created = await client.post(
        "/api/admin/reports",
        json={"name": "teachers", "type": "stats", "period": "year", "format": "csv"},
    )
    assert created.status_code == 201, created.text
    report = created.json()
    assert report["createdBy"] == admin.id
    assert report["data"]["totalTeachers"] == 1

    listed = await client.get("/api/admin/reports")
    assert [r["id"] for r in listed.json()] == [report["id"]]

    download = await client.get(f"/api/admin/reports/{report['id']}/download")
    assert download.status_code == 200
    assert download.headers["content-disposition"] == f'attachment; filename="teachers_{date.today().isoformat()}.csv"'
    assert download.content.startswith(b"\xef\xbb\xbf")

    assert (await client.delete(f"/api/admin/reports/{report['id']}")).status_code == 200
    assert (await client.get(f"/api/admin/reports/{report['id']}")).status_code == 404


@pytest.mark.asyncio
async def test_report_with_client_data(client: AsyncClient, admin):
    await login(client, "admin1")
    created = await client.post(
        "/api/admin/reports",
        json={"name": "custom", "type": "groups", "period": "day", "format": "json", "data": {"totalGroups": 7}},
    )
    assert created.json()["data"] == {"totalGroups": 7}


@pytest.mark.asyncio
async def test_report_bad_enum(client: AsyncClient, admin):
    await login(client, "admin1")
    response = await client.post(
        "/api/admin/reports",
        json={"name": "x", "type": "weather", "period": "day", "format": "json"},
    )
    assert response.status_code == 400
