"""User model definitions."""

import enum
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Integer, String
from backend.database import Base


class UserRole(str, enum.Enum):
    STUDENT = "student"
    TEACHER = "teacher"
    ADMIN = "admin"


ROLE_VALUES = frozenset(role.value for role in UserRole)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    google_id = Column(String, unique=True, index=True, nullable=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False, default="")
    role = Column(String, nullable=False, default=UserRole.STUDENT.value)  # student/teacher/admin
    is_active = Column(Boolean, nullable=False, default=True)
    department = Column(String, nullable=True)
    student_id = Column(String, nullable=True)
    avatar = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    last_login = Column(DateTime(timezone=True), nullable=True)

    def has_role(self, *roles: str) -> bool:
        return self.role in {str(getattr(role, "value", role)) for role in roles}
