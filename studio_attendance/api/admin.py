# studio_attendance/api/admin.py
import logging
from typing import Iterable, List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from studio_attendance.api.deps import (
    api_error,
    get_attendance_service,
    get_db,
    get_settings,
    require_permission,
    resolve_group,
)
from studio_attendance.core.attendance_service import AttendanceService
from studio_attendance.core.config import Settings
from studio_attendance.core.notifications import notify_student_approved, notify_student_expelled
from studio_attendance.crud import group as crud_group
from studio_attendance.crud import session as crud_session
from studio_attendance.crud import user as crud_user
from studio_attendance.db.models.user import InstructorAuth
from studio_attendance.schemas.group import Group, GroupConfigCreate, GroupConfigUpdate
from studio_attendance.schemas.student import StudentApprove, StudentExpel
from studio_attendance.schemas.user import AdminUserCreate, ApproveUser, UserOut, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter()


def _get_user_or_404(db: Session, user_id: int) -> InstructorAuth:
    user = crud_user.get_user_by_id(db, user_id)
    if not user:
        raise api_error(404, "User not found", "USER_NOT_FOUND")
    return user


def _check_group_ids(db: Session, group_ids: Iterable[str]) -> List[str]:
    group_ids = list(dict.fromkeys(group_ids))
    for group_id in group_ids:
        if crud_group.get_group(db, group_id) is None:
            raise api_error(404, f"Unknown group: {group_id}", "GROUP_NOT_FOUND")
    return group_ids


# --- users ---------------------------------------------------------------

@router.get("/pending-users")
def pending_users(
    db: Session = Depends(get_db),
    current_user: InstructorAuth = Depends(require_permission("can_manage_users")),
):
    return {"users": [UserOut.from_user(u) for u in crud_user.list_pending_users(db)]}


@router.post("/approve-user")
def approve_user(
    payload: ApproveUser,
    db: Session = Depends(get_db),
    current_user: InstructorAuth = Depends(require_permission("can_manage_users")),
):
    user = _get_user_or_404(db, payload.user_id)
    if user.status != "pending":
        raise api_error(400, "User is not awaiting approval", "USER_NOT_PENDING")

    if payload.group_ids is not None:
        crud_user.set_group_ids(db, user, _check_group_ids(db, payload.group_ids))
    user = crud_user.update_user(db, user, status="active", role=payload.role)
    logger.info(f"✅ {current_user.username} approved {user.username} as {user.role}")
    return {"message": "User approved", "user": UserOut.from_user(user)}


@router.get("/users")
def list_users(
    db: Session = Depends(get_db),
    current_user: InstructorAuth = Depends(require_permission("can_manage_users")),
):
    return {"users": [UserOut.from_user(u) for u in crud_user.list_users(db)]}


@router.post("/create-user", status_code=status.HTTP_201_CREATED)
def create_user(
    payload: AdminUserCreate,
    db: Session = Depends(get_db),
    current_user: InstructorAuth = Depends(require_permission("can_manage_users")),
):
    if crud_user.get_user_by_username(db, payload.username):
        raise api_error(400, "Username is already taken", "USERNAME_EXISTS")
    if payload.email and crud_user.get_user_by_email(db, payload.email):
        raise api_error(400, "E-mail is already registered", "EMAIL_EXISTS")
    group_ids = _check_group_ids(db, payload.group_ids)

    try:
        user = crud_user.create_user(
            db,
            username=payload.username,
            password=payload.password,
            first_name=payload.first_name,
            last_name=payload.last_name,
            email=payload.email,
            phone=payload.phone,
            role=payload.role,
            status="active",
            group_ids=group_ids,
        )
    except IntegrityError:
        db.rollback()
        raise api_error(400, "Username is already taken", "USERNAME_EXISTS")

    logger.info(f"👤 {current_user.username} created user {user.username} ({user.role})")
    return {"message": "User created", "user": UserOut.from_user(user)}


@router.patch("/users/{user_id}")
def update_user(
    user_id: int,
    payload: UserUpdate,
    db: Session = Depends(get_db),
    current_user: InstructorAuth = Depends(require_permission("can_manage_users")),
):
    user = _get_user_or_404(db, user_id)
    changes = payload.model_dump(exclude_unset=True)

    active = changes.pop("active", None)
    group_ids = changes.pop("group_ids", None)

    if active is False and user.id == current_user.id:
        raise api_error(400, "You cannot deactivate your own account", "CANNOT_MODIFY_SELF")
    if changes.get("email") and changes["email"] != user.email:
        other = crud_user.get_user_by_email(db, changes["email"])
        if other and other.id != user.id:
            raise api_error(400, "E-mail is already registered", "EMAIL_EXISTS")

    if active is not None:
        changes["status"] = "active" if active else "inactive"
    if group_ids is not None:
        crud_user.set_group_ids(db, user, _check_group_ids(db, group_ids))
    user = crud_user.update_user(db, user, **changes)

    if user.status == "inactive":
        crud_session.destroy_user_sessions(db, user.id)
    logger.info(f"✏️ {current_user.username} updated user {user.username}")
    return {"message": "User updated", "user": UserOut.from_user(user)}


@router.delete("/users/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: InstructorAuth = Depends(require_permission("can_manage_users")),
):
    user = _get_user_or_404(db, user_id)
    if user.id == current_user.id:
        raise api_error(400, "You cannot delete your own account", "CANNOT_MODIFY_SELF")
    crud_session.destroy_user_sessions(db, user.id)
    crud_user.delete_user(db, user)
    logger.info(f"🗑️ {current_user.username} deleted user {user.username}")
    return {"message": "User deleted"}


# --- students --------------------------------------------------------------

@router.get("/pending-students")
def pending_students(
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    service: AttendanceService = Depends(get_attendance_service),
    current_user: InstructorAuth = Depends(require_permission("can_manage_students")),
):
    groups = [Group.from_config(c, settings.GOOGLE_SHEETS_SPREADSHEET_ID) for c in crud_group.get_groups(db)]
    pending = service.list_pending_students(groups)
    return {
        "students": [
            {**student.model_dump(by_alias=True), "groupName": group.name}
            for group, student in pending
        ]
    }


@router.post("/approve-student")
def approve_student(
    payload: StudentApprove,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    service: AttendanceService = Depends(get_attendance_service),
    current_user: InstructorAuth = Depends(require_permission("can_manage_students")),
):
    group = resolve_group(db, settings, payload.group_id)
    start_date = payload.start_date.isoformat() if payload.start_date else None
    student = service.approve_student(group, payload.student_id, start_date)
    if student is None:
        raise api_error(404, "Student not found", "STUDENT_NOT_FOUND")

    notify_student_approved(db, current_user, student, group)
    logger.info(f"✅ {current_user.username} approved student {student.id} in {group.id}")
    return {"message": "Student approved", "student": student}


@router.patch("/expel-student")
def expel_student(
    payload: StudentExpel,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    service: AttendanceService = Depends(get_attendance_service),
    current_user: InstructorAuth = Depends(require_permission("can_expel_students")),
):
    group = resolve_group(db, settings, payload.group_id)
    end_date = payload.end_date.isoformat()
    student = service.expel_student(group, payload.student_id, end_date)
    if student is None:
        raise api_error(404, "Student not found", "STUDENT_NOT_FOUND")

    notify_student_expelled(db, current_user, student, group, end_date)
    logger.info(f"🚪 {current_user.username} withdrew student {student.id} from {group.id} as of {end_date}")
    return {"message": "Student withdrawn", "student": student}


# --- groups ----------------------------------------------------------------

@router.get("/groups")
def list_groups(
    include_inactive: bool = Query(True, alias="includeInactive"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    current_user: InstructorAuth = Depends(require_permission("can_assign_groups")),
):
    configs = crud_group.get_groups(db, include_inactive=include_inactive)
    return {"groups": [Group.from_config(c, settings.GOOGLE_SHEETS_SPREADSHEET_ID) for c in configs]}


@router.post("/groups", status_code=status.HTTP_201_CREATED)
def create_group(
    payload: GroupConfigCreate,
    db: Session = Depends(get_db),
    current_user: InstructorAuth = Depends(require_permission("can_assign_groups")),
):
    if crud_group.get_group(db, payload.group_id):
        raise api_error(400, f"Group {payload.group_id} already exists", "GROUP_EXISTS")
    config = crud_group.create_group(db, payload)
    logger.info(f"➕ {current_user.username} created group {config.group_id}")
    return {"group": Group.from_config(config)}


@router.patch("/groups/{group_id}")
def update_group(
    group_id: str,
    payload: GroupConfigUpdate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    service: AttendanceService = Depends(get_attendance_service),
    current_user: InstructorAuth = Depends(require_permission("can_assign_groups")),
):
    config = crud_group.get_group(db, group_id)
    if config is None:
        raise api_error(404, f"Unknown group: {group_id}", "GROUP_NOT_FOUND")
    config = crud_group.update_group(db, config, payload)
    # spreadsheet or sheet group id may have moved
    service.clear_cache(group_id)
    return {"group": Group.from_config(config, settings.GOOGLE_SHEETS_SPREADSHEET_ID)}


@router.delete("/groups/{group_id}")
def delete_group(
    group_id: str,
    db: Session = Depends(get_db),
    current_user: InstructorAuth = Depends(require_permission("can_assign_groups")),
):
    config = crud_group.get_group(db, group_id)
    if config is None:
        raise api_error(404, f"Unknown group: {group_id}", "GROUP_NOT_FOUND")
    crud_group.deactivate_group(db, config)
    logger.info(f"🗑️ {current_user.username} deactivated group {group_id}")
    return {"message": "Group deactivated"}


# --- cache -----------------------------------------------------------------

@router.post("/cache/clear")
def clear_cache(
    pattern: Optional[str] = Query(None),
    service: AttendanceService = Depends(get_attendance_service),
    current_user: InstructorAuth = Depends(require_permission("can_manage_users")),
):
    cleared = service.clear_cache(pattern)
    logger.info(f"🧹 {current_user.username} cleared {cleared} cache entries")
    return {"message": "Cache cleared", "cleared": cleared}
