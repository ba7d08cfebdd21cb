"""Question model definitions."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Table, Text
from sqlalchemy.orm import relationship
from backend.database import Base
from backend.models.answer import Answer
from backend.models.user import User, utcnow


CATEGORIES = ("academic", "general", "technical", "administrative", "other")
PRIORITIES = ("low", "medium", "high", "urgent")

# The composite primary key keeps a like set free of duplicates.
question_likes = Table(
    "question_likes",
    Base.metadata,
    Column("question_id", Integer, ForeignKey("questions.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Question(Base):
    """Represents a question asked by a user."""
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    content = Column(Text, nullable=False)
    category = Column(String, nullable=False, default="general")
    priority = Column(String, nullable=False, default="medium")
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    is_resolved = Column(Boolean, nullable=False, default=False)
    is_archived = Column(Boolean, nullable=False, default=False)
    views = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    author = relationship(User, lazy="joined")
    likes = relationship(User, secondary=question_likes)
    answers = relationship(
        Answer,
        back_populates="question",
        cascade="all, delete-orphan",
    )
