from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from studio_attendance.db.base import Base


class Notification(Base):
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    recipient_id = Column(Integer, ForeignKey("instructors_auth.id", ondelete="CASCADE"), nullable=False, index=True)
    # student_added | student_approved | student_expelled | attendance_note
    type = Column(String(50), nullable=False)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    meta = Column("metadata", JSON, nullable=True)
    read = Column(Boolean, nullable=False, default=False)
    created_by = Column(Integer, ForeignKey("instructors_auth.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
