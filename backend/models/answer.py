"""Answer and comment model definitions."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Table, Text
from sqlalchemy.orm import relationship
from backend.database import Base
from backend.models.user import User, utcnow


answer_likes = Table(
    "answer_likes",
    Base.metadata,
    Column("answer_id", Integer, ForeignKey("answers.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)

comment_likes = Table(
    "comment_likes",
    Base.metadata,
    Column("comment_id", Integer, ForeignKey("comments.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Answer(Base):
    """Represents an answer to a question."""
    __tablename__ = "answers"

    id = Column(Integer, primary_key=True, index=True)
    content = Column(Text, nullable=False)
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    is_accepted = Column(Boolean, nullable=False, default=False)
    is_verified = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    author = relationship(User, lazy="joined")
    question = relationship("Question", back_populates="answers")
    likes = relationship(User, secondary=answer_likes)
    comments = relationship(
        "Comment",
        back_populates="answer",
        cascade="all, delete-orphan",
        order_by="Comment.created_at, Comment.id",
    )


class Comment(Base):
    """Represents a comment left on an answer."""
    __tablename__ = "comments"

    id = Column(Integer, primary_key=True, index=True)
    answer_id = Column(Integer, ForeignKey("answers.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    author = relationship(User, lazy="joined")
    answer = relationship(Answer, back_populates="comments")
    likes = relationship(User, secondary=comment_likes)
