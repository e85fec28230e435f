"""Group model definitions."""

from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from coursehub.core.identifiers import new_identifier
from coursehub.database import Base


class Group(Base):
    """Links a set of students to a set of courses."""
    __tablename__ = "groups"

    RELATIONS = ('students', 'courses')

    id = Column(String(24), primary_key=True, default=new_identifier)
    name = Column(String, unique=True, index=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
