from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from studio_attendance.api.deps import accessible_groups, get_current_user, get_db, get_settings
from studio_attendance.core.config import Settings
from studio_attendance.db.models.user import InstructorAuth

router = APIRouter()


@router.get("")
def list_groups(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: InstructorAuth = Depends(get_current_user),
):
    return {"groups": accessible_groups(db, settings, current_user)}
