# studio_attendance/core/exports.py
import csv
import io
from datetime import date
from typing import Optional

from jinja2 import Environment, PackageLoader, select_autoescape

from studio_attendance.schemas.report import AttendanceReport, AttendanceReportFilters

BOM = "\ufeff"
CSV_HEADER = ["Student", "Group", "Date", "Status", "Notes"]

_env = Environment(
    loader=PackageLoader("studio_attendance", "templates"),
    autoescape=select_autoescape(["html"]),
)


def render_csv(report: AttendanceReport) -> str:
    """BOM-prefixed so Excel opens the UTF-8 file with the right encoding."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for item in report.items:
        writer.writerow([item.student_name, item.group_name, item.date, item.status, item.notes or ""])
    return BOM + buffer.getvalue()


def render_html(report: AttendanceReport, filters: AttendanceReportFilters,
                generated_on: Optional[date] = None) -> str:
    template = _env.get_template("attendance_report.html")
    return template.render(
        report=report,
        filters=filters,
        generated_on=(generated_on or date.today()).isoformat(),
    )


def export_filename(extension: str, today: Optional[date] = None) -> str:
    return f"attendance-report-{(today or date.today()).isoformat()}.{extension}"
