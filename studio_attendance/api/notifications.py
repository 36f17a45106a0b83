from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from studio_attendance.api.deps import api_error, get_current_user, get_db
from studio_attendance.crud import notification as crud_notification
from studio_attendance.db.models.user import InstructorAuth
from studio_attendance.schemas.notification import NotificationOut

router = APIRouter()


def _get_own_notification(db: Session, notification_id: int, user: InstructorAuth):
    notification = crud_notification.get_for_user(db, notification_id, user.id)
    if notification is None:
        raise api_error(404, "Notification not found", "NOTIFICATION_NOT_FOUND")
    return notification


@router.get("")
def list_notifications(
    limit: int = Query(100, ge=1, le=500),
    db: Session = Depends(get_db),
    current_user: InstructorAuth = Depends(get_current_user),
):
    rows = crud_notification.list_for_user(db, current_user.id, limit=limit)
    return {"notifications": [NotificationOut.model_validate(n) for n in rows]}


@router.get("/unread-count")
def unread_count(
    db: Session = Depends(get_db),
    current_user: InstructorAuth = Depends(get_current_user),
):
    return {"count": crud_notification.unread_count(db, current_user.id)}


@router.patch("/{notification_id}/read")
def mark_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: InstructorAuth = Depends(get_current_user),
):
    notification = _get_own_notification(db, notification_id, current_user)
    notification = crud_notification.mark_read(db, notification)
    return {"notification": NotificationOut.model_validate(notification)}


@router.post("/mark-all-read")
def mark_all_read(
    db: Session = Depends(get_db),
    current_user: InstructorAuth = Depends(get_current_user),
):
    updated = crud_notification.mark_all_read(db, current_user.id)
    return {"message": "All notifications marked as read", "updated": updated}


@router.delete("/{notification_id}")
def delete_notification(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: InstructorAuth = Depends(get_current_user),
):
    notification = _get_own_notification(db, notification_id, current_user)
    crud_notification.delete(db, notification)
    return {"message": "Notification deleted"}
