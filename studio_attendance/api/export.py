import logging
from typing import List, Tuple

from fastapi import APIRouter, Depends, Response

from studio_attendance.api.deps import get_attendance_service
from studio_attendance.api.reports import report_scope
from studio_attendance.core.attendance_service import AttendanceService
from studio_attendance.core.exports import export_filename, render_csv, render_html
from studio_attendance.core.report_service import get_attendance_report
from studio_attendance.schemas.group import Group
from studio_attendance.schemas.report import AttendanceReportFilters

logger = logging.getLogger(__name__)

router = APIRouter()


def _attachment(content: str, media_type: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type=media_type,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/csv")
def export_csv(
    scope: Tuple[List[Group], AttendanceReportFilters] = Depends(report_scope),
    service: AttendanceService = Depends(get_attendance_service),
):
    groups, filters = scope
    report = get_attendance_report(service, groups, filters)
    logger.info(f"📤 CSV export with {len(report.items)} row(s)")
    return _attachment(render_csv(report), "text/csv; charset=utf-8", export_filename("csv"))


@router.get("/pdf")
def export_pdf(
    scope: Tuple[List[Group], AttendanceReportFilters] = Depends(report_scope),
    service: AttendanceService = Depends(get_attendance_service),
):
    # Printable HTML; the browser's print dialog turns it into a PDF.
    groups, filters = scope
    report = get_attendance_report(service, groups, filters)
    return _attachment(render_html(report, filters), "text/html; charset=utf-8", export_filename("html"))
