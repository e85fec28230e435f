"""User model definitions."""

from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from coursehub.core.identifiers import new_identifier
from coursehub.database import Base

ROLES = ('student', 'teacher', 'admin')


class User(Base):
    """Represents an application user."""
    __tablename__ = "users"

    id = Column(String(24), primary_key=True, default=new_identifier)
    username = Column(String, unique=True, index=True, nullable=False)
    email = Column(String, unique=True, index=True, nullable=False)
    hashed_password = Column(String, nullable=False)
    role = Column(String, index=True, nullable=False)  # student/teacher/admin
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
