import logging
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from studio_attendance.crud.user import get_active_users_by_role
from studio_attendance.db.models.notification import Notification

logger = logging.getLogger(__name__)


def create_notifications(
    db: Session,
    recipient_ids: Iterable[int],
    type: str,
    title: str,
    message: str,
    metadata: Optional[dict] = None,
    created_by: Optional[int] = None,
) -> int:
    rows = [
        Notification(
            recipient_id=recipient_id,
            type=type,
            title=title,
            message=message,
            meta=metadata or {},
            read=False,
            created_by=created_by,
        )
        for recipient_id in dict.fromkeys(recipient_ids)
    ]
    if not rows:
        return 0
    db.add_all(rows)
    db.commit()
    logger.info(f"✅ Created {len(rows)} notification(s) of type: {type}")
    return len(rows)


def notify_roles(db: Session, roles: Iterable[str], type: str, title: str, message: str,
                 metadata: Optional[dict] = None, created_by: Optional[int] = None) -> int:
    roles = list(roles)
    recipients = [u.id for u in get_active_users_by_role(db, roles)]
    if not recipients:
        logger.warning(f"No active users with roles {roles} to notify")
        return 0
    return create_notifications(db, recipients, type, title, message, metadata, created_by)


def list_for_user(db: Session, user_id: int, limit: int = 100) -> List[Notification]:
    return (
        db.query(Notification)
        .filter(Notification.recipient_id == user_id)
        .order_by(Notification.created_at.desc(), Notification.id.desc())
        .limit(limit)
        .all()
    )


def unread_count(db: Session, user_id: int) -> int:
    return (
        db.query(Notification)
        .filter(Notification.recipient_id == user_id, Notification.read.is_(False))
        .count()
    )


def get_for_user(db: Session, notification_id: int, user_id: int) -> Optional[Notification]:
    return (
        db.query(Notification)
        .filter(Notification.id == notification_id, Notification.recipient_id == user_id)
        .first()
    )


def mark_read(db: Session, notification: Notification) -> Notification:
    notification.read = True
    db.commit()
    db.refresh(notification)
    return notification


def mark_all_read(db: Session, user_id: int) -> int:
    count = (
        db.query(Notification)
        .filter(Notification.recipient_id == user_id, Notification.read.is_(False))
        .update({Notification.read: True}, synchronize_session=False)
    )
    db.commit()
    return count


def delete(db: Session, notification: Notification) -> None:
    db.delete(notification)
    db.commit()
