from datetime import datetime, timedelta

import pytest

from coursehub.core.errors import InvalidCourseDuration, NotFound
from coursehub.core.identifiers import new_identifier
from coursehub.models.course import Course
from coursehub.services import attendance, progress

START = datetime(2026, 2, 2, 8, 0)


def add_session(store, course, group, hours: float, day: int = 0):
    start = START + timedelta(days=day)
    return attendance.create_session(store, course.id, group.id, start.date(), start, start + timedelta(hours=hours))


def test_two_and_three_hours_of_ten_is_fifty_percent(store, make_course, make_group) -> None:
    course = make_course(total_duration=10)
    group = make_group()
    add_session(store, course, group, 2)
    add_session(store, course, group, 3, day=1)

    assert progress.format_percentage(progress.course_progress(store, course.id)) == '50.00%'


def test_progress_counts_sessions_of_every_group(store, make_course, make_group) -> None:
    course = make_course(total_duration=4)
    add_session(store, course, make_group(), 1)
    add_session(store, course, make_group(), 1)

    assert progress.course_progress(store, course.id) == pytest.approx(50)


def test_progress_increases_with_each_session(store, make_course, make_group) -> None:
    course = make_course(total_duration=12)
    group = make_group()
    readings = [progress.course_progress(store, course.id)]

    for day in range(3):
        add_session(store, course, group, 1.5, day=day)
        readings.append(progress.course_progress(store, course.id))

    assert readings == sorted(readings)
    assert len(set(readings)) == len(readings)


def test_progress_is_not_clamped(store, make_course, make_group) -> None:
    course = make_course(total_duration=1)
    add_session(store, course, make_group(), 2)

    assert progress.format_percentage(progress.course_progress(store, course.id)) == '200.00%'


def test_course_without_sessions_reports_zero(store, make_course) -> None:
    assert progress.format_percentage(progress.course_progress(store, make_course().id)) == '0.00%'


def test_zero_total_duration_is_rejected(store, make_course) -> None:
    course = make_course()
    store.update_by_id(Course, course.id, {'total_duration': 0})

    with pytest.raises(InvalidCourseDuration) as exception_info:
        progress.course_progress(store, course.id)

    assert exception_info.value.status_code == 422


def test_missing_course_is_not_found(store) -> None:
    with pytest.raises(NotFound):
        progress.course_progress(store, new_identifier())


def test_format_percentage_rounds_to_two_places() -> None:
    assert progress.format_percentage(33.3333) == '33.33%'
    assert progress.format_percentage(12.5) == '12.50%'
