# studio_attendance/core/notifications.py
"""Notification messages for student lifecycle events and attendance notes."""
from typing import List

from sqlalchemy.orm import Session

from studio_attendance.crud import notification as crud_notification
from studio_attendance.crud.user import get_active_users_by_role
from studio_attendance.db.models.user import InstructorAuth
from studio_attendance.schemas.group import Group
from studio_attendance.schemas.student import Student

ADMIN_ROLES = ("owner", "reception")


def _role_label(user: InstructorAuth) -> str:
    return "Owner" if user.role == "owner" else "Reception"


def _group_instructor_ids(db: Session, group_id: str) -> List[int]:
    return [u.id for u in get_active_users_by_role(db, ["instructor"]) if group_id in u.group_ids]


def notify_student_added(db: Session, creator: InstructorAuth, student: Student, group: Group) -> None:
    missing = [name for name, value in (("class", student.class_), ("phone", student.phone),
                                        ("mail", student.mail)) if not value]
    missing_text = f" Missing: {', '.join(missing)}." if missing else ""
    crud_notification.notify_roles(
        db,
        ADMIN_ROLES,
        "student_added",
        "New student awaiting approval",
        f"{creator.full_name} added {student.full_name} to group {group.name}. "
        f"Status: awaiting approval.{missing_text}",
        {"studentName": student.full_name, "studentId": student.id, "groupId": group.id,
         "groupName": group.name, "missingFields": missing},
        creator.id,
    )


def notify_student_approved(db: Session, approver: InstructorAuth, student: Student, group: Group) -> None:
    crud_notification.create_notifications(
        db,
        _group_instructor_ids(db, group.id),
        "student_approved",
        "Student approved",
        f"{_role_label(approver)} {approver.full_name} approved {student.full_name} in group {group.name}",
        {"studentName": student.full_name, "studentId": student.id, "groupId": group.id, "groupName": group.name},
        approver.id,
    )


def notify_student_expelled(db: Session, expeller: InstructorAuth, student: Student, group: Group,
                            end_date: str) -> None:
    crud_notification.create_notifications(
        db,
        _group_instructor_ids(db, group.id),
        "student_expelled",
        "Student withdrawn",
        f"{_role_label(expeller)} {expeller.full_name} withdrew {student.full_name} "
        f"from group {group.name} (end date: {end_date})",
        {"studentName": student.full_name, "studentId": student.id, "groupId": group.id,
         "groupName": group.name, "date": end_date},
        expeller.id,
    )


def notify_attendance_note(db: Session, author: InstructorAuth, student_name: str, group: Group,
                           day: str, notes: str) -> None:
    crud_notification.notify_roles(
        db,
        ADMIN_ROLES,
        "attendance_note",
        "New note about a student",
        f'{author.full_name} added a note about {student_name} (group {group.name}, {day}): "{notes}"',
        {"studentName": student_name, "groupId": group.id, "groupName": group.name, "date": day, "notes": notes},
        author.id,
    )
