from typing import List, Optional, Tuple

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from studio_attendance.api.deps import (
    accessible_groups,
    api_error,
    get_attendance_service,
    get_db,
    get_settings,
    require_permission,
    resolve_accessible_group,
)
from studio_attendance.core.attendance_service import AttendanceService
from studio_attendance.core.config import Settings
from studio_attendance.core.report_service import get_attendance_report
from studio_attendance.core.utils import parse_group_ids, parse_iso_date
from studio_attendance.db.models.user import InstructorAuth
from studio_attendance.schemas.group import Group
from studio_attendance.schemas.report import AttendanceReport, AttendanceReportFilters

router = APIRouter()

STATUS_FILTERS = ("present", "absent", "all")


def _check_date(value: Optional[str], name: str) -> Optional[str]:
    if not value:
        return None
    try:
        return parse_iso_date(value).isoformat()
    except ValueError:
        raise api_error(400, f"Invalid {name}, expected YYYY-MM-DD")


def report_scope(
    group_ids: Optional[str] = Query(None, alias="groupIds"),
    student_ids: Optional[str] = Query(None, alias="studentIds"),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    status: str = Query("all"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: InstructorAuth = Depends(require_permission("can_view_reports")),
) -> Tuple[List[Group], AttendanceReportFilters]:
    """Groups the caller may report on plus the parsed query filters."""
    if status not in STATUS_FILTERS:
        raise api_error(400, f"Invalid status filter: {status}")

    requested = parse_group_ids(group_ids)
    if requested:
        groups = [resolve_accessible_group(db, settings, current_user, g) for g in dict.fromkeys(requested)]
    else:
        groups = accessible_groups(db, settings, current_user)

    filters = AttendanceReportFilters(
        groupIds=requested or None,
        studentIds=parse_group_ids(student_ids) or None,
        dateFrom=_check_date(date_from, "dateFrom"),
        dateTo=_check_date(date_to, "dateTo"),
        status=status,
    )
    return groups, filters


@router.get("/attendance", response_model=AttendanceReport)
def attendance_report(
    scope: Tuple[List[Group], AttendanceReportFilters] = Depends(report_scope),
    service: AttendanceService = Depends(get_attendance_service),
):
    groups, filters = scope
    return get_attendance_report(service, groups, filters)
