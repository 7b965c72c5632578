from sqlalchemy import Column, Integer, String, ForeignKey, JSON, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from codetrail.db.base_class import Base


class Problem(Base):
    __tablename__ = "problems"
    __table_args__ = (UniqueConstraint("platform", "external_id", name="uq_problem_platform_external"),)

    id = Column(Integer, primary_key=True, index=True)
    platform = Column(String(20), nullable=False)
    external_id = Column(String, nullable=False)
    name = Column(String, nullable=False)
    difficulty = Column(String(10), nullable=True)
    rating = Column(Integer, nullable=True)
    tags = Column(JSON, nullable=False, default=list)
    url = Column(String, nullable=True)

    submissions = relationship("Submission", back_populates="problem")


class Submission(Base):
    __tablename__ = "submissions"
    __table_args__ = (
        UniqueConstraint("user_id", "platform", "problem_id", "timestamp", name="uq_submission_event"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    platform = Column(String(20), nullable=False)
    handle = Column(String, nullable=True)
    problem_id = Column(Integer, ForeignKey("problems.id"), nullable=False)
    verdict = Column(String(40), nullable=False)
    language = Column(String(60), nullable=True)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)

    user = relationship("User", back_populates="submissions")
    problem = relationship("Problem", back_populates="submissions")
