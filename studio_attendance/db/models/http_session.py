from sqlalchemy import JSON, Column, DateTime, Index, String

from studio_attendance.db.base import Base


class HttpSession(Base):
    """Server-side login session; the cookie only carries a signed ``sid``."""

    __tablename__ = "sessions"

    sid = Column(String, primary_key=True)
    sess = Column(JSON, nullable=False)
    expire = Column(DateTime, nullable=False)

    __table_args__ = (Index("IDX_session_expire", "expire"),)
