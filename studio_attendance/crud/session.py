from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from studio_attendance.db.models.http_session import HttpSession


def create_session(db: Session, sid: str, user_id: int, expire: datetime) -> HttpSession:
    row = HttpSession(sid=sid, sess={"userId": user_id}, expire=expire)
    db.add(row)
    db.commit()
    return row


def get_session_user_id(db: Session, sid: str, now: Optional[datetime] = None) -> Optional[int]:
    row = db.query(HttpSession).filter(HttpSession.sid == sid).first()
    if row is None:
        return None
    if row.expire < (now or datetime.utcnow()):
        db.delete(row)
        db.commit()
        return None
    user_id = (row.sess or {}).get("userId")
    return user_id if isinstance(user_id, int) else None


def destroy_session(db: Session, sid: str) -> None:
    db.query(HttpSession).filter(HttpSession.sid == sid).delete()
    db.commit()


def destroy_user_sessions(db: Session, user_id: int) -> int:
    # sess is JSON, so the filter runs in Python to stay portable across backends
    rows = [r for r in db.query(HttpSession).all() if (r.sess or {}).get("userId") == user_id]
    for row in rows:
        db.delete(row)
    db.commit()
    return len(rows)


def purge_expired(db: Session, now: Optional[datetime] = None) -> int:
    count = db.query(HttpSession).filter(HttpSession.expire < (now or datetime.utcnow())).delete()
    db.commit()
    return count
