import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from studio_attendance.api.deps import (
    api_error,
    get_attendance_service,
    get_current_user,
    get_db,
    get_settings,
    resolve_accessible_group,
)
from studio_attendance.core.attendance_service import AttendanceService
from studio_attendance.core.config import Settings
from studio_attendance.core.notifications import notify_attendance_note
from studio_attendance.core.utils import parse_iso_date
from studio_attendance.db.models.user import InstructorAuth
from studio_attendance.schemas.attendance import (
    AttendanceExists,
    AttendanceNoteRequest,
    AttendanceRequest,
    AttendanceResponse,
    AttendanceUpdateResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def _query_day(group_id: Optional[str], day: Optional[str]) -> str:
    if not group_id or not day:
        raise api_error(400, "Missing required parameters: groupId and date")
    try:
        return parse_iso_date(day).isoformat()
    except ValueError:
        raise api_error(400, "Invalid date format, expected YYYY-MM-DD")


@router.get("", response_model=AttendanceResponse)
def get_attendance(
    group_id: Optional[str] = Query(None, alias="groupId"),
    day: Optional[str] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    service: AttendanceService = Depends(get_attendance_service),
    current_user: InstructorAuth = Depends(get_current_user),
):
    day = _query_day(group_id, day)
    group = resolve_accessible_group(db, settings, current_user, group_id)
    return service.get_attendance(group, day)


@router.get("/exists", response_model=AttendanceExists)
def attendance_exists(
    group_id: Optional[str] = Query(None, alias="groupId"),
    day: Optional[str] = Query(None, alias="date"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    service: AttendanceService = Depends(get_attendance_service),
    current_user: InstructorAuth = Depends(get_current_user),
):
    day = _query_day(group_id, day)
    group = resolve_accessible_group(db, settings, current_user, group_id)
    return AttendanceExists(exists=service.attendance_exists(group, day))


@router.post("", response_model=AttendanceUpdateResponse)
def set_attendance(
    payload: AttendanceRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    service: AttendanceService = Depends(get_attendance_service),
    current_user: InstructorAuth = Depends(get_current_user),
):
    group = resolve_accessible_group(db, settings, current_user, payload.group_id)
    result = service.set_attendance(group, payload.date, payload.items)
    logger.info(
        f"📋 {current_user.username} saved attendance for {group.id} on {payload.date}: "
        f"{len(result.updated)} updated, {len(result.conflicts)} conflict(s)"
    )
    return result


@router.post("/notes")
def save_note(
    payload: AttendanceNoteRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    service: AttendanceService = Depends(get_attendance_service),
    current_user: InstructorAuth = Depends(get_current_user),
):
    group = resolve_accessible_group(db, settings, current_user, payload.group_id)
    notes = payload.notes.strip()
    item = service.save_note(group, payload.date, payload.student_id, notes)

    if notes:
        student = next((s for s in service.get_students(group, include_inactive=True)
                        if s.id == payload.student_id), None)
        name = student.full_name if student else payload.student_id
        notify_attendance_note(db, current_user, name, group, payload.date, notes)

    return {"success": True, "item": item}
