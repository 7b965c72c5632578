from sqlalchemy import Column, Integer, String, ForeignKey, Date, UniqueConstraint
from codetrail.db.base_class import Base


class CalendarCache(Base):
    """Per-day submission counts for one user on one platform."""

    __tablename__ = "calendar_cache"
    __table_args__ = (UniqueConstraint("user_id", "platform", "date", name="uq_calendar_user_platform_date"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    platform = Column(String(20), nullable=False)
    handle = Column(String, nullable=True)
    date = Column(Date, nullable=False)
    count = Column(Integer, nullable=False, default=0)
