from datetime import date

from studio_attendance.core.exports import BOM, export_filename, render_csv, render_html
from studio_attendance.core.report_service import build_report
from studio_attendance.schemas.report import AttendanceReportFilters, AttendanceReportItem


def _report(filters=None):
    items = [
        AttendanceReportItem(student_id="STU-1", student_name="Anna Nowak", group_id="TTI",
                             group_name="Taniec Towarzyski I", date="2025-03-03", status="present",
                             notes='said "hi", left early'),
        AttendanceReportItem(student_id="STU-2", student_name="Łukasz Adamski", group_id="TTI",
                             group_name="Taniec Towarzyski I", date="2025-03-03", status="absent"),
    ]
    return build_report(items, filters or AttendanceReportFilters())


def test_csv_has_bom_header_and_quoted_rows():
    text = render_csv(_report())

    assert text.startswith(BOM)
    lines = text[len(BOM):].splitlines()
    assert lines[0] == '"Student","Group","Date","Status","Notes"'
    assert lines[1] == '"Anna Nowak","Taniec Towarzyski I","2025-03-03","present","said ""hi"", left early"'
    assert lines[2] == '"Łukasz Adamski","Taniec Towarzyski I","2025-03-03","absent",""'
    assert len(lines) == 3


def test_csv_follows_status_filter():
    text = render_csv(_report(AttendanceReportFilters(status="absent")))
    assert "Anna Nowak" not in text
    assert "Łukasz Adamski" in text


def test_html_report_escapes_notes_and_shows_totals():
    html = render_html(_report(), AttendanceReportFilters(dateFrom="2025-03-01"), generated_on=date(2025, 3, 4))

    assert "Generated: 2025-03-04" in html
    assert "from 2025-03-01" in html
    assert "50%" in html
    assert "&#34;hi&#34;" in html or "&quot;hi&quot;" in html
    assert '"hi"' not in html


def test_export_filename_uses_today():
    assert export_filename("csv", today=date(2025, 3, 4)) == "attendance-report-2025-03-04.csv"
