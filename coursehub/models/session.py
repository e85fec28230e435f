"""Class session and attendance model definitions."""

from sqlalchemy import Boolean, Column, Date, DateTime, Float, ForeignKey, Integer, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from coursehub.core.identifiers import new_identifier
from coursehub.database import Base


class ClassSession(Base):
    """One meeting of a group for a course."""
    __tablename__ = "sessions"

    id = Column(String(24), primary_key=True, default=new_identifier)
    course_id = Column(String(24), index=True, nullable=False)
    group_id = Column(String(24), index=True, nullable=False)
    date = Column(Date, nullable=False)
    start_time = Column(DateTime, nullable=False)
    end_time = Column(DateTime, nullable=False)
    session_time = Column(Float, nullable=False)  # minutes
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    attendance = relationship(
        "AttendanceRecord",
        order_by="AttendanceRecord.position",
        cascade="all, delete-orphan",
        back_populates="session",
    )

    @property
    def duration_hours(self) -> float:
        return (self.end_time - self.start_time).total_seconds() / 3600


class AttendanceRecord(Base):
    """Presence of one rostered student in a session."""
    __tablename__ = "attendance_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    session_id = Column(String(24), ForeignKey("sessions.id", ondelete="CASCADE"), index=True, nullable=False)
    position = Column(Integer, nullable=False)
    student_id = Column(String(24), index=True, nullable=False)
    is_present = Column(Boolean, nullable=False, default=False)

    session = relationship("ClassSession", back_populates="attendance")
