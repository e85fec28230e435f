from datetime import date, datetime

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel
from sqlalchemy.orm import Session

from coursehub.database import get_db
from coursehub.models.session import ClassSession
from coursehub.routes.summaries import NamedSummary, UserSummary
from coursehub.services import attendance
from coursehub.services.attendance import AttendanceEntry
from coursehub.services.entity_store import EntityStore
from coursehub.services.expansion import expand_session
from coursehub.services.references import ensure_exists

router = APIRouter(tags=['sessions'])


class AttendanceEntryRequest(BaseModel):
    student_id: str
    is_present: bool

    def to_entry(self) -> AttendanceEntry:
        return AttendanceEntry(student_id=self.student_id, is_present=self.is_present)


class CreateSessionRequest(BaseModel):
    course_id: str
    group_id: str
    date: date
    start_time: datetime
    end_time: datetime
    attendance: list[AttendanceEntryRequest] = []


class UpdateSessionRequest(BaseModel):
    start_time: datetime | None = None
    end_time: datetime | None = None
    attendance: list[AttendanceEntryRequest] | None = None


class MarkAttendanceRequest(BaseModel):
    session_id: str
    student_id: str
    is_present: bool


class AttendanceResponse(BaseModel):
    student_id: str
    student: UserSummary | None = None
    is_present: bool


class SessionResponse(BaseModel):
    id: str
    course: NamedSummary | None = None
    group: NamedSummary | None = None
    course_id: str
    group_id: str
    date: date
    start_time: datetime
    end_time: datetime
    session_time: float
    duration_hours: float
    attendance: list[AttendanceResponse] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None


@router.post('', response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
def create_session(data: CreateSessionRequest, db: Session = Depends(get_db)):
    store = EntityStore(db)
    session = attendance.create_session(
        store,
        course_id=data.course_id,
        group_id=data.group_id,
        session_date=data.date,
        start_time=data.start_time,
        end_time=data.end_time,
        attendance=[entry.to_entry() for entry in data.attendance],
    )
    return expand_session(store, session)


@router.post('/mark-attendance', response_model=SessionResponse)
def mark_attendance(data: MarkAttendanceRequest, db: Session = Depends(get_db)):
    store = EntityStore(db)
    session = attendance.mark_attendance(store, data.session_id, data.student_id, data.is_present)
    return expand_session(store, session)


@router.get('/course/{course_id}/group/{group_id}', response_model=list[SessionResponse])
def list_sessions(course_id: str, group_id: str, db: Session = Depends(get_db)):
    store = EntityStore(db)
    return [expand_session(store, session) for session in attendance.list_sessions(store, course_id, group_id)]


@router.get('/{session_id}', response_model=SessionResponse)
def get_session(session_id: str, db: Session = Depends(get_db)):
    store = EntityStore(db)
    return expand_session(store, ensure_exists(store, ClassSession, session_id, 'session'))


@router.put('/{session_id}', response_model=SessionResponse)
def update_session(session_id: str, data: UpdateSessionRequest, db: Session = Depends(get_db)):
    store = EntityStore(db)
    roster = None if data.attendance is None else [entry.to_entry() for entry in data.attendance]
    session = attendance.update_session(
        store,
        session_id,
        start_time=data.start_time,
        end_time=data.end_time,
        attendance=roster,
    )
    return expand_session(store, session)


@router.delete('/{session_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_session(session_id: str, db: Session = Depends(get_db)):
    attendance.delete_session(EntityStore(db), session_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
