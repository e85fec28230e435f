"""Course completion computed from recorded session time."""

from coursehub.core.errors import InvalidCourseDuration
from coursehub.models.course import Course
from coursehub.models.session import ClassSession
from coursehub.services.entity_store import EntityStore
from coursehub.services.references import ensure_exists


def total_session_hours(store: EntityStore, course_id: str) -> float:
    sessions = store.find_many(ClassSession, course_id=course_id)
    return sum(session.duration_hours for session in sessions)


def course_progress(store: EntityStore, course_id: str) -> float:
    """Percentage of the course's declared duration covered by its sessions, across all groups.

    Not clamped: a course that ran over its declared duration reports more than 100.
    """
    course = ensure_exists(store, Course, course_id, 'course')
    return percentage_of(course, total_session_hours(store, course.id))


def percentage_of(course: Course, session_hours: float) -> float:
    if not course.total_duration or course.total_duration <= 0:
        raise InvalidCourseDuration()
    return session_hours / course.total_duration * 100


def format_percentage(value: float) -> str:
    return f'{value:.2f}%'
