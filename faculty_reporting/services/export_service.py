"""
Report exports: CSV and Excel.

Rows are built once from grouped report records and written either through
the ``csv`` module or into a styled openpyxl workbook. Buckets are emitted in
a fixed order: lecturer, student, prl, ratings.

Export does not write temp files; content is returned in memory.
"""

import csv
import io
import logging
from datetime import datetime, timezone

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from faculty_reporting.services import report_service
from faculty_reporting.services import report_workflow as wf

logger = logging.getLogger(__name__)

EXPORT_VIEWS = ("pl", "prl", "lecturer")
EXPORT_FORMATS = ("csv", "xlsx")

COLUMNS = [
    "Report Type", "Course Code", "Course Name", "Person Name", "Week", "Date",
    "Attendance", "Issues/Challenges", "Recommendations/Feedback", "Status",
    "Rating", "Stream", "Program Type",
]

BUCKET_LABELS = {
    "lecturer": "Lecturer Report",
    "student": "Student Report",
    "prl": "PRL Report",
    "ratings": "Student Rating",
}

HEADER_FILL = PatternFill(start_color="354A5F", end_color="354A5F", fill_type="solid")
HEADER_FONT = Font(color="FFFFFF", bold=True, size=11)
THIN_BORDER = Border(
    left=Side(style="thin"),
    right=Side(style="thin"),
    top=Side(style="thin"),
    bottom=Side(style="thin"),
)


def _text(value) -> str:
    return "" if value is None else str(value)


def _program_label(value) -> str:
    return "Degree" if value == "degree" else "Diploma"


def _attendance(present, total) -> str:
    return f"{present or 0}/{total or 0}"


def _row(bucket: str, r: dict) -> list[str]:
    """One export row for a record of the given bucket."""
    label = BUCKET_LABELS[bucket]
    tail = [_text(r.get("stream")), _program_label(r.get("programType"))]

    if bucket == "lecturer":
        return [
            label, _text(r.get("courseCode")), _text(r.get("courseName")),
            _text(r.get("lecturerName")), _text(r.get("weekOfReporting")),
            _text(r.get("dateOfLecture")),
            _attendance(r.get("actualStudentsPresent"), r.get("totalRegisteredStudents")),
            _text(r.get("challenges") or r.get("challengesFaced")),
            _text(r.get("feedback")), _text(r.get("status")), "",
        ] + tail

    if bucket == "student":
        # Student form fields arrive under their own names and live in ``details``
        return [
            label, _text(r.get("courseCode")), _text(r.get("courseName")),
            _text(r.get("studentName")),
            _text(r.get("week") or r.get("weekOfReporting")),
            _text(r.get("date") or r.get("dateOfLecture")),
            _attendance(
                r.get("numberOfStudentsPresent", r.get("actualStudentsPresent")),
                r.get("actualNumberOfStudents", r.get("totalRegisteredStudents")),
            ),
            _text(r.get("challengesFaced") or r.get("challenges")),
            _text(r.get("feedback")), _text(r.get("status")), "",
        ] + tail

    if bucket == "prl":
        return [
            label, "", "",
            _text(r.get("lecturerName") or r.get("studentName") or "PRL"),
            _text(r.get("weekOfReporting")), _text(r.get("dateOfLecture")), "",
            _text(r.get("issues") or r.get("challenges")),
            _text(r.get("recommendations")), _text(r.get("status")), "",
        ] + tail

    return [
        label, _text(r.get("courseCode")), _text(r.get("courseName")),
        _text(r.get("studentName")), "", "", "",
        _text(r.get("comments")),
        _text(r.get("prlFeedback") or r.get("feedback")),
        _text(r.get("status")),
        f"Class: {r.get('classRating') or 0}/5, Lecturer: {r.get('lecturerRating') or 0}/5",
    ] + tail


def build_rows(grouped: dict) -> list[list[str]]:
    rows = []
    for bucket in wf.BUCKETS:
        for record in grouped.get(bucket, []):
            rows.append(_row(bucket, record))
    return rows


def collect_view(view: str, *, stream=None, program_type=None, lecturer_name=None) -> dict:
    """Grouped records visible to one role view."""
    if view == "pl":
        records = report_service.list_pl_reports(program_type=program_type)
    elif view == "prl":
        records = report_service.list_stream_reports(stream=stream, program_type=program_type)
    else:
        records = report_service.list_lecturer_reports(
            program_type=program_type, lecturer_name=lecturer_name,
        )
    return wf.group_reports(records)


def generate_reports_csv(grouped: dict) -> str:
    """CSV content as a UTF-8 string."""
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(COLUMNS)
    writer.writerows(build_rows(grouped))
    return buf.getvalue()


def _apply_header_style(ws, row: int, col_count: int) -> None:
    for col in range(1, col_count + 1):
        cell = ws.cell(row=row, column=col)
        cell.fill = HEADER_FILL
        cell.font = HEADER_FONT
        cell.border = THIN_BORDER
        cell.alignment = Alignment(horizontal="center", vertical="center", wrap_text=True)


def _auto_width(ws) -> None:
    """Auto-size column widths based on content (capped at 60 chars)."""
    for col in ws.columns:
        max_len = 0
        col_letter = get_column_letter(col[0].column)
        for cell in col:
            if cell.value:
                max_len = max(max_len, min(len(str(cell.value)), 60))
        ws.column_dimensions[col_letter].width = max(max_len + 4, 12)


def generate_reports_excel(grouped: dict, title: str = "Reports") -> bytes:
    """
    Workbook with one "Reports" sheet (header row 1, data from row 2) and a
    "Summary" sheet of bucket counts.
    """
    wb = Workbook()
    ws = wb.active
    ws.title = "Reports"
    ws.append(COLUMNS)
    _apply_header_style(ws, 1, len(COLUMNS))
    for values in build_rows(grouped):
        ws.append(values)
        for cell in ws[ws.max_row]:
            cell.border = THIN_BORDER
    ws.freeze_panes = "A2"
    _auto_width(ws)

    summary = wb.create_sheet("Summary")
    summary["A1"] = title
    summary["A1"].font = Font(size=14, bold=True)
    summary["A2"] = f"Generated: {datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')}"
    summary["A2"].font = Font(size=10, italic=True, color="666666")
    summary.append([])
    summary.append(["Bucket", "Reports"])
    _apply_header_style(summary, summary.max_row, 2)
    for bucket, count in wf.bucket_counts(grouped).items():
        summary.append([bucket, count])
    _auto_width(summary)

    buf = io.BytesIO()
    wb.save(buf)
    buf.seek(0)
    return buf.getvalue()
