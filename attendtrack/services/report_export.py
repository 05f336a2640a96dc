"""Render a stored report as a downloadable file.

Every format is built from the same row layout: a metadata block, the
report's summary figures, then one detail table.
"""
from __future__ import annotations

import csv
import html
import io
import json
from dataclasses import dataclass
from datetime import date
from typing import Any, List, Optional
from urllib.parse import quote

from openpyxl import Workbook
from openpyxl.styles import Alignment, Font
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import getSampleStyleSheet
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.ttfonts import TTFont
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from ..config import settings
from ..models import Report, ReportFormat, ReportType

TYPE_LABELS = {
    ReportType.ATTENDANCE: "Attendance",
    ReportType.STATS: "Teacher activity",
    ReportType.GROUPS: "Groups",
    ReportType.SUBJECTS: "Subjects",
}

PERIOD_LABELS = {
    "day": "Day",
    "week": "Week",
    "month": "Month",
    "quarter": "Quarter",
    "year": "Year",
}

MEDIA_TYPES = {
    ReportFormat.PDF: "application/pdf",
    ReportFormat.CSV: "text/csv; charset=utf-8",
    ReportFormat.EXCEL: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ReportFormat.JSON: "application/json",
}

EXTENSIONS = {
    ReportFormat.PDF: "pdf",
    ReportFormat.CSV: "csv",
    ReportFormat.EXCEL: "xlsx",
    ReportFormat.JSON: "json",
}


@dataclass
class Layout:
    meta: List[List[Any]]
    summary: List[List[Any]]
    headers: List[str]
    rows: List[List[Any]]


def _percent(ratio) -> str:
    return f"{float(ratio or 0) * 100:.1f}"


def layout_for(report: Report) -> Layout:
    data = report.data or {}
    meta = [
        ["Report", report.name],
        ["Type", TYPE_LABELS.get(report.type, report.type)],
        ["Period", PERIOD_LABELS.get(report.period.value, report.period.value)],
        ["Created", report.created_at.strftime("%Y-%m-%d")],
    ]

    if report.type == ReportType.ATTENDANCE:
        summary = [
            ["Total classes", data.get("totalClasses", 0)],
            ["Total students", data.get("totalStudents", 0)],
        ]
        headers = ["Group", "Student", "Attendance (%)"]
        rows = []
        for group in data.get("attendanceByGroup", []):
            students = group.get("students") or []
            if not students:
                rows.append([group.get("groupName"), "No students", "0.0"])
            for student in students:
                rows.append([group.get("groupName"), student.get("studentName"), _percent(student.get("attendance"))])
    elif report.type == ReportType.STATS:
        summary = [
            ["Total teachers", data.get("totalTeachers", 0)],
            ["Classes per teacher", data.get("classesPerTeacher", 0)],
        ]
        headers = ["Teacher", "Classes"]
        rows = [[t.get("teacherName"), t.get("classesCount", 0)] for t in data.get("teacherActivity", [])]
    elif report.type == ReportType.GROUPS:
        summary = [["Total groups", data.get("totalGroups", 0)]]
        headers = ["Group", "Students"]
        rows = [[g.get("groupName"), g.get("studentsCount", 0)] for g in data.get("studentsPerGroup", [])]
    else:
        summary = [["Total subjects", data.get("totalSubjects", 0)]]
        headers = ["Subject", "Classes"]
        rows = [[s.get("subjectName"), s.get("classesCount", 0)] for s in data.get("subjectPopularity", [])]

    return Layout(meta=meta, summary=summary, headers=headers, rows=rows)


def export_filename(report: Report, today: Optional[date] = None) -> str:
    today = today or date.today()
    return f"{report.name}_{today.isoformat()}.{EXTENSIONS[report.format]}"


def render_csv(report: Report) -> bytes:
    layout = layout_for(report)
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerows(layout.meta)
    writer.writerow([])
    writer.writerows(layout.summary)
    writer.writerow([])
    writer.writerow(layout.headers)
    writer.writerows(layout.rows)
    # BOM so spreadsheet apps pick up UTF-8
    return buffer.getvalue().encode("utf-8-sig")


def render_excel(report: Report) -> bytes:
    layout = layout_for(report)
    wb = Workbook()
    ws = wb.active
    ws.title = "Report"

    for row in layout.meta + [[]] + layout.summary + [[]]:
        ws.append(row)
    ws.append(layout.headers)
    for cell in ws[ws.max_row]:
        cell.font = Font(bold=True)
        cell.alignment = Alignment(horizontal="center")
    for row in layout.rows:
        ws.append(row)

    ws.column_dimensions["A"].width = 28
    ws.column_dimensions["B"].width = 36
    ws.column_dimensions["C"].width = 18

    out = io.BytesIO()
    wb.save(out)
    return out.getvalue()


def _pdf_font() -> str:
    # Helvetica has no Cyrillic glyphs; a TTF can be supplied for that.
    if settings.PDF_FONT_PATH:
        if "ReportFont" not in pdfmetrics.getRegisteredFontNames():
            pdfmetrics.registerFont(TTFont("ReportFont", settings.PDF_FONT_PATH))
        return "ReportFont"
    return "Helvetica"


def render_pdf(report: Report) -> bytes:
    layout = layout_for(report)
    font = _pdf_font()
    buffer = io.BytesIO()
    doc = SimpleDocTemplate(buffer, pagesize=A4, rightMargin=36, leftMargin=36, topMargin=48, bottomMargin=40)
    styles = getSampleStyleSheet()
    title_style = styles["Title"]
    title_style.fontName = font

    elements = [Paragraph(html.escape(report.name), title_style), Spacer(1, 8)]

    info = Table([[str(a), str(b)] for a, b in layout.meta + layout.summary])
    info.setStyle(TableStyle([
        ("FONTNAME", (0, 0), (-1, -1), font),
        ("FONTSIZE", (0, 0), (-1, -1), 10),
        ("ALIGN", (0, 0), (0, -1), "LEFT"),
    ]))
    elements += [info, Spacer(1, 12)]

    table = Table([layout.headers] + [[str(v) for v in row] for row in layout.rows], repeatRows=1)
    table.setStyle(TableStyle([
        ("BACKGROUND", (0, 0), (-1, 0), colors.HexColor("#003366")),
        ("TEXTCOLOR", (0, 0), (-1, 0), colors.white),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.grey),
        ("FONTNAME", (0, 0), (-1, -1), font),
        ("FONTSIZE", (0, 0), (-1, 0), 10),
        ("FONTSIZE", (0, 1), (-1, -1), 9),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, colors.HexColor("#f0f4ff")]),
    ]))
    elements.append(table)

    def add_page_number(canvas, doc):
        canvas.setFont("Helvetica", 8)
        canvas.drawRightString(A4[0] - 36, 20, f"Page {canvas.getPageNumber()}")

    doc.build(elements, onFirstPage=add_page_number, onLaterPages=add_page_number)
    return buffer.getvalue()


def render_json(report: Report) -> bytes:
    return json.dumps(report.data, ensure_ascii=False, indent=2).encode("utf-8")


RENDERERS = {
    ReportFormat.PDF: render_pdf,
    ReportFormat.CSV: render_csv,
    ReportFormat.EXCEL: render_excel,
    ReportFormat.JSON: render_json,
}


def render(report: Report) -> tuple[bytes, str]:
    """Return ``(content, media_type)`` for the report's own format."""
    return RENDERERS[report.format](report), MEDIA_TYPES[report.format]


def content_disposition(filename: str) -> str:
    """``attachment`` header value; non-ASCII names also get an RFC 5987 ``filename*``."""
    try:
        filename.encode("latin-1")
    except UnicodeEncodeError:
        fallback = filename.encode("ascii", "replace").decode("ascii").replace("?", "_")
        return f"attachment; filename=\"{fallback}\"; filename*=UTF-8''{quote(filename)}"
    return f'attachment; filename="{filename}"'
