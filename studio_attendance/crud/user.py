from datetime import datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from studio_attendance.core.security import get_password_hash, hash_reset_token
from studio_attendance.db.models.user import InstructorAuth, InstructorGroupAssignment


def get_user_by_id(db: Session, user_id: int) -> Optional[InstructorAuth]:
    return db.query(InstructorAuth).filter(InstructorAuth.id == user_id).first()


def get_user_by_username(db: Session, username: str) -> Optional[InstructorAuth]:
    return db.query(InstructorAuth).filter(InstructorAuth.username == username).first()


def get_user_by_email(db: Session, email: str) -> Optional[InstructorAuth]:
    return db.query(InstructorAuth).filter(InstructorAuth.email == email).first()


def list_users(db: Session) -> List[InstructorAuth]:
    return db.query(InstructorAuth).order_by(InstructorAuth.last_name, InstructorAuth.first_name).all()


def list_pending_users(db: Session) -> List[InstructorAuth]:
    return (
        db.query(InstructorAuth)
        .filter(InstructorAuth.status == "pending")
        .order_by(InstructorAuth.created_at)
        .all()
    )


def get_active_users_by_role(db: Session, roles: Iterable[str]) -> List[InstructorAuth]:
    return (
        db.query(InstructorAuth)
        .filter(InstructorAuth.status == "active", InstructorAuth.role.in_(list(roles)))
        .all()
    )


def list_instructors(db: Session) -> List[InstructorAuth]:
    return (
        db.query(InstructorAuth)
        .filter(InstructorAuth.status == "active", InstructorAuth.role == "instructor")
        .order_by(InstructorAuth.last_name, InstructorAuth.first_name)
        .all()
    )


def list_instructors_for_group(db: Session, group_id: str) -> List[InstructorAuth]:
    return (
        db.query(InstructorAuth)
        .join(InstructorGroupAssignment)
        .filter(
            InstructorGroupAssignment.group_id == group_id,
            InstructorAuth.status == "active",
            InstructorAuth.role == "instructor",
        )
        .order_by(InstructorAuth.last_name, InstructorAuth.first_name)
        .all()
    )


def list_group_assignments(db: Session) -> List[InstructorGroupAssignment]:
    """Assignments of active instructors only."""
    return (
        db.query(InstructorGroupAssignment)
        .join(InstructorAuth)
        .filter(InstructorAuth.status == "active", InstructorAuth.role == "instructor")
        .order_by(InstructorGroupAssignment.group_id, InstructorGroupAssignment.instructor_id)
        .all()
    )


def create_user(
    db: Session,
    *,
    username: str,
    password: str,
    first_name: str,
    last_name: str,
    email: Optional[str] = None,
    phone: Optional[str] = None,
    role: str = "instructor",
    status: str = "pending",
    group_ids: Iterable[str] = (),
) -> InstructorAuth:
    db_user = InstructorAuth(
        username=username,
        password=get_password_hash(password),
        first_name=first_name,
        last_name=last_name,
        email=email or None,
        phone=phone or None,
        role=role,
        status=status,
    )
    db_user.group_assignments = [InstructorGroupAssignment(group_id=g) for g in dict.fromkeys(group_ids)]
    db.add(db_user)
    db.commit()
    db.refresh(db_user)
    return db_user


def set_group_ids(db: Session, user: InstructorAuth, group_ids: Iterable[str]) -> InstructorAuth:
    wanted = list(dict.fromkeys(group_ids))
    user.group_assignments = [a for a in user.group_assignments if a.group_id in wanted]
    existing = {a.group_id for a in user.group_assignments}
    for group_id in wanted:
        if group_id not in existing:
            user.group_assignments.append(InstructorGroupAssignment(group_id=group_id))
    db.commit()
    db.refresh(user)
    return user


def update_user(db: Session, user: InstructorAuth, **fields) -> InstructorAuth:
    for name, value in fields.items():
        setattr(user, name, value)
    db.commit()
    db.refresh(user)
    return user


def set_password(db: Session, user: InstructorAuth, new_password: str) -> None:
    user.password = get_password_hash(new_password)
    user.reset_token_hash = None
    user.reset_token_expires = None
    db.commit()


def set_reset_token(db: Session, user: InstructorAuth, token: str, expires: datetime) -> None:
    user.reset_token_hash = hash_reset_token(token)
    user.reset_token_expires = expires
    db.commit()


def get_user_by_reset_token(db: Session, token: str, now: Optional[datetime] = None) -> Optional[InstructorAuth]:
    user = (
        db.query(InstructorAuth)
        .filter(InstructorAuth.reset_token_hash == hash_reset_token(token))
        .first()
    )
    if not user or not user.reset_token_expires:
        return None
    if user.reset_token_expires < (now or datetime.utcnow()):
        return None
    return user


def delete_user(db: Session, user: InstructorAuth) -> None:
    db.delete(user)
    db.commit()
