"""Course model definitions."""

from sqlalchemy import Column, DateTime, Float, String
from sqlalchemy.sql import func

from coursehub.core.identifiers import new_identifier
from coursehub.database import Base


class Course(Base):
    """A course taught by one teacher.

    ``files`` and ``groups`` are reference sets stored in the associations
    table under the relations named in ``RELATIONS``.
    """
    __tablename__ = "courses"

    RELATIONS = ('files', 'groups')

    id = Column(String(24), primary_key=True, default=new_identifier)
    name = Column(String, nullable=False)
    teacher_id = Column(String(24), index=True, nullable=False)
    total_duration = Column(Float, nullable=False)  # hours
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
