"""Class sessions and their attendance rosters.

A session is created with a roster snapshot: one attendance record per
listed student, kept in the order given. Afterwards only the ``is_present``
flag of an existing record can be changed, unless the whole list is
replaced through ``update_session``.
"""

import logging
from collections import Counter
from collections.abc import Iterable, Sequence
from datetime import date, datetime, timezone
from typing import NamedTuple

from coursehub.core.errors import AttendanceRecordNotFound, InvalidTimeRange, MissingReferences, NotFound
from coursehub.models.course import Course
from coursehub.models.group import Group
from coursehub.models.session import AttendanceRecord, ClassSession
from coursehub.models.user import User
from coursehub.services.entity_store import EntityStore
from coursehub.services.references import ensure_exists, validate_identifier, validate_references

logger = logging.getLogger(__name__)


class AttendanceEntry(NamedTuple):
    student_id: str
    is_present: bool


def to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def session_minutes(start_time: datetime, end_time: datetime) -> float:
    minutes = (to_naive_utc(end_time) - to_naive_utc(start_time)).total_seconds() / 60
    if minutes <= 0:
        raise InvalidTimeRange('end_time must be after start_time.')
    return minutes


def build_roster(store: EntityStore, entries: Sequence[AttendanceEntry]) -> list[AttendanceRecord]:
    student_ids = [entry.student_id for entry in entries]
    validate_references(store, student_ids, User, 'students', role='student')

    duplicates = [student_id for student_id, count in Counter(student_ids).items() if count > 1]
    if duplicates:
        raise MissingReferences(
            'students',
            duplicates,
            detail=f"Attendance lists the same student more than once: {', '.join(sorted(duplicates))}",
        )

    return [
        AttendanceRecord(position=position, student_id=entry.student_id, is_present=entry.is_present)
        for position, entry in enumerate(entries)
    ]


def create_session(
    store: EntityStore,
    course_id: str,
    group_id: str,
    session_date: date,
    start_time: datetime,
    end_time: datetime,
    attendance: Iterable[AttendanceEntry] = (),
) -> ClassSession:
    ensure_exists(store, Course, course_id, 'course')
    ensure_exists(store, Group, group_id, 'group')

    start_time = to_naive_utc(start_time)
    end_time = to_naive_utc(end_time)
    minutes = session_minutes(start_time, end_time)
    roster = build_roster(store, list(attendance))

    session = store.insert(
        ClassSession(
            course_id=course_id,
            group_id=group_id,
            date=session_date,
            start_time=start_time,
            end_time=end_time,
            session_time=minutes,
            attendance=roster,
        )
    )
    logger.info('Created session %s for course %s, group %s with %d attendees', session.id, course_id, group_id, len(roster))
    return session


def update_session(
    store: EntityStore,
    session_id: str,
    start_time: datetime | None = None,
    end_time: datetime | None = None,
    attendance: Iterable[AttendanceEntry] | None = None,
) -> ClassSession:
    session = ensure_exists(store, ClassSession, session_id, 'session')

    roster = build_roster(store, list(attendance)) if attendance is not None else None

    if start_time is not None or end_time is not None:
        new_start = to_naive_utc(start_time) if start_time is not None else session.start_time
        new_end = to_naive_utc(end_time) if end_time is not None else session.end_time
        session.session_time = session_minutes(new_start, new_end)
        session.start_time = new_start
        session.end_time = new_end

    if roster is not None:
        session.attendance = roster

    return store.save(session)


def mark_attendance(store: EntityStore, session_id: str, student_id: str, is_present: bool) -> ClassSession:
    validate_identifier(student_id, 'student_id')
    session = ensure_exists(store, ClassSession, session_id, 'session')

    record = next((record for record in session.attendance if record.student_id == student_id), None)
    if record is None:
        raise AttendanceRecordNotFound('Attendance record not found for this student.')

    record.is_present = is_present
    return store.save(session)


def delete_session(store: EntityStore, session_id: str) -> None:
    validate_identifier(session_id, 'session_id')
    if not store.delete_by_id(ClassSession, session_id):
        raise NotFound('Session not found.')


def list_sessions(store: EntityStore, course_id: str, group_id: str) -> list[ClassSession]:
    validate_identifier(course_id, 'course_id')
    validate_identifier(group_id, 'group_id')
    return store.find_many(
        ClassSession,
        order_by=ClassSession.start_time.asc(),
        course_id=course_id,
        group_id=group_id,
    )
