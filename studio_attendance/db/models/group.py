from sqlalchemy import Boolean, Column, DateTime, Integer, String
from sqlalchemy.sql import func

from studio_attendance.db.base import Base


class GroupConfig(Base):
    __tablename__ = "groups_config"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(String(50), unique=True, index=True, nullable=False)  # "TTI", "HipHop"
    name = Column(String(100), nullable=False)
    spreadsheet_id = Column(String(200), nullable=False)
    # value of the Students sheet group_id column, when it differs from group_id
    sheet_group_id = Column(String(50), nullable=True)
    active = Column(Boolean, nullable=False, default=True)  # deletion only deactivates
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
