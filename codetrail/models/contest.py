from sqlalchemy import Column, Integer, String, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from codetrail.db.base_class import Base


class Contest(Base):
    """A rated round on one platform, shared by every participant."""

    __tablename__ = "contests"
    __table_args__ = (UniqueConstraint("platform", "external_id", name="uq_contest_platform_external"),)

    id = Column(Integer, primary_key=True, index=True)
    platform = Column(String(20), nullable=False)
    external_id = Column(String, nullable=False)
    name = Column(String, nullable=True)
    start_time = Column(DateTime(timezone=True), nullable=True)

    participations = relationship("ContestParticipation", back_populates="contest")


class ContestParticipation(Base):
    __tablename__ = "contest_participations"
    __table_args__ = (
        UniqueConstraint("user_id", "platform", "contest_id", name="uq_contest_user_platform_contest"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    platform = Column(String(20), nullable=False)
    handle = Column(String, nullable=True)
    contest_id = Column(String, nullable=False)
    contest_ref = Column(Integer, ForeignKey("contests.id"), nullable=True)
    rank = Column(Integer, nullable=True)
    old_rating = Column(Integer, nullable=True)
    new_rating = Column(Integer, nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False)

    user = relationship("User", back_populates="contests")
    contest = relationship("Contest", back_populates="participations")
