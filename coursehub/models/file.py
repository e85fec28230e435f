"""Course file model definitions."""

from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from coursehub.core.identifiers import new_identifier
from coursehub.database import Base


class File(Base):
    """Metadata for an uploaded file; the bytes live with the storage backend."""
    __tablename__ = "files"

    id = Column(String(24), primary_key=True, default=new_identifier)
    filename = Column(String, nullable=False)
    file_path = Column(String, nullable=False)
    section = Column(String)
    course_id = Column(String(24), index=True, nullable=False)
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())
