from studio_attendance.db.base import Base
from studio_attendance.db.models.user import InstructorAuth, InstructorGroupAssignment
from studio_attendance.db.models.group import GroupConfig
from studio_attendance.db.models.http_session import HttpSession
from studio_attendance.db.models.notification import Notification

__all__ = [
    "Base",
    "InstructorAuth",
    "InstructorGroupAssignment",
    "GroupConfig",
    "HttpSession",
    "Notification",
]
