from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from studio_attendance.db.base import Base


class InstructorAuth(Base):
    __tablename__ = "instructors_auth"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt hash
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    email = Column(String(255), unique=True, nullable=True)
    phone = Column(String(20), nullable=True)
    role = Column(Enum("owner", "reception", "instructor", name="user_role"), nullable=False, default="instructor")
    # pending -> active on approval; active <-> inactive on admin toggle
    status = Column(Enum("pending", "active", "inactive", name="user_status"), nullable=False, default="pending")
    reset_token_hash = Column(String(64), nullable=True, index=True)
    reset_token_expires = Column(DateTime, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    group_assignments = relationship(
        "InstructorGroupAssignment",
        back_populates="instructor",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    @property
    def group_ids(self):
        return [a.group_id for a in self.group_assignments]

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


class InstructorGroupAssignment(Base):
    __tablename__ = "instructor_group_assignments"

    id = Column(Integer, primary_key=True, index=True)
    instructor_id = Column(Integer, ForeignKey("instructors_auth.id", ondelete="CASCADE"), nullable=False, index=True)
    group_id = Column(String(50), nullable=False)
    role = Column(String(20), default="instructor")
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    instructor = relationship("InstructorAuth", back_populates="group_assignments")
