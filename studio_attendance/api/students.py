import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from studio_attendance.api.deps import (
    get_attendance_service,
    get_current_user,
    get_db,
    get_settings,
    resolve_accessible_group,
)
from studio_attendance.core.attendance_service import AttendanceService
from studio_attendance.core.config import Settings
from studio_attendance.core.notifications import notify_student_added
from studio_attendance.db.models.user import InstructorAuth
from studio_attendance.schemas.student import StudentCreate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
def list_students(
    group_id: Optional[str] = Query(None, alias="groupId"),
    show_inactive: bool = Query(False, alias="showInactive"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    service: AttendanceService = Depends(get_attendance_service),
    current_user: InstructorAuth = Depends(get_current_user),
):
    if not group_id:
        return {"students": []}
    group = resolve_accessible_group(db, settings, current_user, group_id)
    return {"students": service.get_students(group, include_inactive=show_inactive)}


@router.post("", status_code=status.HTTP_201_CREATED)
def add_student(
    payload: StudentCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    service: AttendanceService = Depends(get_attendance_service),
    current_user: InstructorAuth = Depends(get_current_user),
):
    group = resolve_accessible_group(db, settings, current_user, payload.group_id)
    student = service.add_student(group, payload)
    notify_student_added(db, current_user, student, group)
    logger.info(f"👤 {current_user.username} added student {student.id} to {group.id}")
    return {"student": student, "message": "Student added and awaiting approval"}
