from sqlalchemy import Column, Integer, String, ForeignKey, JSON, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from codetrail.db.base_class import Base

SUPPORTED_PLATFORMS = ("leetcode", "codeforces")


class PlatformProfile(Base):
    __tablename__ = "platform_profiles"
    __table_args__ = (UniqueConstraint("user_id", "platform", name="uq_profile_user_platform"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    platform = Column(String(20), nullable=False)
    handle = Column(String, nullable=False)

    current_rating = Column(Integer, nullable=True)
    max_rating = Column(Integer, nullable=True)
    rank = Column(String(50), nullable=True)

    # Solved counts as reported by the platform itself, e.g. {"easy": 10, "medium": 5, "hard": 1, "total": 16}
    stats = Column(JSON, nullable=True)

    synced_at = Column(DateTime(timezone=True), default=func.now())
    # Last time the per-day calendar was stored, by a sync or a calendar refresh
    calendar_synced_at = Column(DateTime(timezone=True), nullable=True)

    user = relationship("User", back_populates="platform_profiles")
