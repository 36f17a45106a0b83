# studio_attendance/db/__init__.py
# Importing the package registers every model on Base.metadata.

from studio_attendance.db.base import Base
from studio_attendance.db.models import (
    GroupConfig,
    HttpSession,
    InstructorAuth,
    InstructorGroupAssignment,
    Notification,
)

__all__ = [
    "Base",
    "InstructorAuth",
    "InstructorGroupAssignment",
    "GroupConfig",
    "HttpSession",
    "Notification",
]
