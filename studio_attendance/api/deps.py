# studio_attendance/api/deps.py
from typing import Iterator, List, Optional

from fastapi import Depends, HTTPException, Request
from sqlalchemy.orm import Session

from studio_attendance.core.attendance_service import AttendanceService
from studio_attendance.core.config import Settings
from studio_attendance.core.permissions import has_permission
from studio_attendance.core.security import decode_session_token
from studio_attendance.crud import group as crud_group
from studio_attendance.crud import session as crud_session
from studio_attendance.crud import user as crud_user
from studio_attendance.db.models.user import InstructorAuth
from studio_attendance.schemas.group import Group


def api_error(status_code: int, message: str, code: Optional[str] = None, **extra) -> HTTPException:
    detail = {"message": message}
    if code:
        detail["code"] = code
    detail.update(extra)
    return HTTPException(status_code=status_code, detail=detail)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request) -> Iterator[Session]:
    db = request.app.state.session_factory()
    try:
        yield db
    finally:
        db.close()


def get_attendance_service(request: Request) -> AttendanceService:
    return request.app.state.attendance_service


def get_current_user(
    request: Request,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
) -> InstructorAuth:
    token = request.cookies.get(settings.SESSION_COOKIE_NAME)
    sid = decode_session_token(token, settings.SESSION_SECRET, settings.SESSION_ALGORITHM) if token else None
    if not sid:
        raise api_error(401, "Unauthorized", "NOT_AUTHENTICATED")

    user_id = crud_session.get_session_user_id(db, sid)
    if user_id is None:
        raise api_error(401, "Unauthorized", "NOT_AUTHENTICATED")

    user = crud_user.get_user_by_id(db, user_id)
    if not user or not user.is_active:
        crud_session.destroy_session(db, sid)
        raise api_error(401, "Account deactivated", "ACCOUNT_DEACTIVATED")

    request.state.sid = sid
    return user


def require_permission(permission: str):
    def dependency(current_user: InstructorAuth = Depends(get_current_user)) -> InstructorAuth:
        if not has_permission(current_user.role, permission):
            raise api_error(403, "Insufficient permissions", "FORBIDDEN")
        return current_user

    return dependency


def can_access_group(user: InstructorAuth, group_id: str) -> bool:
    return has_permission(user.role, "can_view_all_groups") or group_id in user.group_ids


def ensure_group_access(user: InstructorAuth, group_id: str) -> None:
    if not can_access_group(user, group_id):
        raise api_error(403, "Access denied to this group", "GROUP_ACCESS_DENIED", allowedGroups=user.group_ids)


def resolve_group(db: Session, settings: Settings, group_id: str) -> Group:
    config = crud_group.get_active_group(db, group_id)
    if config is None:
        raise api_error(404, f"Unknown group: {group_id}", "GROUP_NOT_FOUND")
    return Group.from_config(config, settings.GOOGLE_SHEETS_SPREADSHEET_ID)


def resolve_accessible_group(db: Session, settings: Settings, user: InstructorAuth, group_id: str) -> Group:
    ensure_group_access(user, group_id)
    return resolve_group(db, settings, group_id)


def accessible_groups(db: Session, settings: Settings, user: InstructorAuth) -> List[Group]:
    configs = crud_group.get_groups(db)
    return [
        Group.from_config(c, settings.GOOGLE_SHEETS_SPREADSHEET_ID)
        for c in configs
        if can_access_group(user, c.group_id)
    ]
