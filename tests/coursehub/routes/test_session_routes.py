from datetime import date, datetime

import pytest

from coursehub.core.errors import AttendanceRecordNotFound, InvalidTimeRange, NotFound
from coursehub.routes.session_routes import (
    AttendanceEntryRequest,
    CreateSessionRequest,
    MarkAttendanceRequest,
    UpdateSessionRequest,
    create_session,
    delete_session,
    get_session,
    list_sessions,
    mark_attendance,
    update_session,
)


def session_request(course_id: str, group_id: str, attendance: list | None = None, **overrides) -> CreateSessionRequest:
    fields = {
        'course_id': course_id,
        'group_id': group_id,
        'date': date(2026, 3, 2),
        'start_time': datetime(2026, 3, 2, 9, 0),
        'end_time': datetime(2026, 3, 2, 10, 30),
        'attendance': attendance or [],
    }
    fields.update(overrides)
    return CreateSessionRequest(**fields)


def test_create_session_computes_duration_and_expands_roster(db, make_course, make_group, make_user) -> None:
    course, group, student = make_course(), make_group(), make_user('student')

    session = create_session(
        session_request(course.id, group.id, [AttendanceEntryRequest(student_id=student.id, is_present=True)]),
        db,
    )

    assert session['session_time'] == 90
    assert session['duration_hours'] == 1.5
    assert session['course'] == {'id': course.id, 'name': course.name}
    assert session['attendance'] == [
        {
            'student_id': student.id,
            'student': {'id': student.id, 'username': student.username, 'email': student.email},
            'is_present': True,
        }
    ]


def test_create_session_rejects_end_before_start(db, make_course, make_group) -> None:
    course, group = make_course(), make_group()

    with pytest.raises(InvalidTimeRange) as exception_info:
        create_session(session_request(course.id, group.id, end_time=datetime(2026, 3, 2, 8, 0)), db)

    assert exception_info.value.status_code == 400


def test_mark_attendance_round_trip(db, make_course, make_group, make_user) -> None:
    course, group, student = make_course(), make_group(), make_user('student')
    created = create_session(
        session_request(course.id, group.id, [AttendanceEntryRequest(student_id=student.id, is_present=False)]),
        db,
    )

    mark_attendance(MarkAttendanceRequest(session_id=created['id'], student_id=student.id, is_present=True), db)
    fetched = get_session(created['id'], db)

    assert fetched['attendance'][0]['is_present'] is True


def test_mark_attendance_for_unlisted_student_returns_404(db, make_course, make_group, make_user) -> None:
    course, group = make_course(), make_group()
    outsider = make_user('student')
    created = create_session(session_request(course.id, group.id), db)

    with pytest.raises(AttendanceRecordNotFound) as exception_info:
        mark_attendance(MarkAttendanceRequest(session_id=created['id'], student_id=outsider.id, is_present=True), db)

    assert exception_info.value.status_code == 404


def test_update_session_recomputes_duration(db, make_course, make_group) -> None:
    course, group = make_course(), make_group()
    created = create_session(session_request(course.id, group.id), db)

    updated = update_session(created['id'], UpdateSessionRequest(end_time=datetime(2026, 3, 2, 9, 45)), db)

    assert updated['session_time'] == 45


def test_list_sessions_for_course_and_group(db, make_course, make_group) -> None:
    course, group, other_group = make_course(), make_group(), make_group()
    create_session(session_request(course.id, group.id), db)
    create_session(session_request(course.id, other_group.id), db)

    sessions = list_sessions(course.id, group.id, db)

    assert [session['group_id'] for session in sessions] == [group.id]


def test_delete_session_then_get_returns_404(db, make_course, make_group) -> None:
    course, group = make_course(), make_group()
    created = create_session(session_request(course.id, group.id), db)

    response = delete_session(created['id'], db)

    assert response.status_code == 204
    with pytest.raises(NotFound):
        get_session(created['id'], db)
