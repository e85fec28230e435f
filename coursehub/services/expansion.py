"""Resolve stored references into the summary projections returned by the API.

References to entities that no longer exist are dropped from sets and shown
as ``None`` for scalar references.
"""

from collections.abc import Iterable

from coursehub.models.course import Course
from coursehub.models.file import File
from coursehub.models.group import Group
from coursehub.models.session import ClassSession
from coursehub.models.user import User
from coursehub.services.entity_store import EntityStore


def user_summary(user: User | None) -> dict | None:
    if user is None:
        return None
    return {'id': user.id, 'username': user.username, 'email': user.email}


def file_summary(file: File) -> dict:
    return {'id': file.id, 'filename': file.filename, 'file_path': file.file_path}


def named_summary(entity) -> dict | None:
    if entity is None:
        return None
    return {'id': entity.id, 'name': entity.name}


def resolve_many(store: EntityStore, model, ids: Iterable[str]) -> list:
    ids = list(ids)
    if not ids:
        return []
    by_id = {entity.id: entity for entity in store.find_many(model, ids=ids)}
    return [by_id[entity_id] for entity_id in ids if entity_id in by_id]


def expand_course(store: EntityStore, course: Course) -> dict:
    files = resolve_many(store, File, store.association_ids(course, 'files'))
    groups = resolve_many(store, Group, store.association_ids(course, 'groups'))
    return {
        'id': course.id,
        'name': course.name,
        'teacher': user_summary(store.find_by_id(User, course.teacher_id)),
        'files': [file_summary(file) for file in files],
        'groups': [named_summary(group) for group in groups],
        'total_duration': course.total_duration,
        'created_at': course.created_at,
        'updated_at': course.updated_at,
    }


def expand_group(store: EntityStore, group: Group) -> dict:
    students = resolve_many(store, User, store.association_ids(group, 'students'))
    courses = resolve_many(store, Course, store.association_ids(group, 'courses'))
    return {
        'id': group.id,
        'name': group.name,
        'students': [user_summary(student) for student in students],
        'courses': [named_summary(course) for course in courses],
        'created_at': group.created_at,
        'updated_at': group.updated_at,
    }


def expand_session(store: EntityStore, session: ClassSession) -> dict:
    students = {
        student.id: student
        for student in store.find_many(User, ids={record.student_id for record in session.attendance})
    } if session.attendance else {}

    return {
        'id': session.id,
        'course': named_summary(store.find_by_id(Course, session.course_id)),
        'group': named_summary(store.find_by_id(Group, session.group_id)),
        'course_id': session.course_id,
        'group_id': session.group_id,
        'date': session.date,
        'start_time': session.start_time,
        'end_time': session.end_time,
        'session_time': session.session_time,
        'duration_hours': session.duration_hours,
        'attendance': [
            {
                'student_id': record.student_id,
                'student': user_summary(students.get(record.student_id)),
                'is_present': record.is_present,
            }
            for record in session.attendance
        ],
        'created_at': session.created_at,
        'updated_at': session.updated_at,
    }


def expand(store: EntityStore, entity) -> dict:
    if isinstance(entity, Course):
        return expand_course(store, entity)
    if isinstance(entity, Group):
        return expand_group(store, entity)
    if isinstance(entity, ClassSession):
        return expand_session(store, entity)
    raise TypeError(f'No expansion defined for {type(entity).__name__}')
