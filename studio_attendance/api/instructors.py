# studio_attendance/api/instructors.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from studio_attendance.api.deps import (
    can_access_group,
    get_current_user,
    get_db,
    get_settings,
    resolve_accessible_group,
)
from studio_attendance.core.config import Settings
from studio_attendance.crud import user as crud_user
from studio_attendance.db.models.user import InstructorAuth
from studio_attendance.schemas.user import InstructorGroupOut, InstructorOut

router = APIRouter()
assignments_router = APIRouter()


@router.get("")
def list_instructors(
    db: Session = Depends(get_db),
    current_user: InstructorAuth = Depends(get_current_user),
):
    return {"instructors": [InstructorOut.from_user(u) for u in crud_user.list_instructors(db)]}


@router.get("/group/{group_id}")
def list_group_instructors(
    group_id: str,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: InstructorAuth = Depends(get_current_user),
):
    group = resolve_accessible_group(db, settings, current_user, group_id)
    instructors = crud_user.list_instructors_for_group(db, group.id)
    return {"instructors": [InstructorOut.from_user(u) for u in instructors]}


@assignments_router.get("")
def list_instructor_groups(
    db: Session = Depends(get_db),
    current_user: InstructorAuth = Depends(get_current_user),
):
    assignments = [
        InstructorGroupOut(instructor_id=a.instructor_id, group_id=a.group_id, role=a.role or "instructor")
        for a in crud_user.list_group_assignments(db)
        if can_access_group(current_user, a.group_id)
    ]
    return {"instructorGroups": assignments}
