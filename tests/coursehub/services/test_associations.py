import pytest

from coursehub.core.errors import InvalidReferenceFormat, InvalidRole, NotFound
from coursehub.core.identifiers import new_identifier
from coursehub.models.course import Course
from coursehub.models.file import File
from coursehub.models.group import Group
from coursehub.services.associations import add_association


def test_adding_same_student_twice_keeps_one_edge(store, make_user, make_group) -> None:
    group = make_group()
    student = make_user('student')

    add_association(store, group.id, student.id, Group, 'students')
    expanded = add_association(store, group.id, student.id, Group, 'students')

    assert store.association_ids(group, 'students') == [student.id]
    assert expanded['students'] == [
        {'id': student.id, 'username': student.username, 'email': student.email},
    ]


def test_edges_keep_insertion_order(store, make_user, make_group) -> None:
    group = make_group()
    students = [make_user('student') for _ in range(3)]

    for student in reversed(students):
        add_association(store, group.id, student.id, Group, 'students')

    assert store.association_ids(group, 'students') == [student.id for student in reversed(students)]


def test_teacher_cannot_join_group_as_student(store, make_user, make_group) -> None:
    group = make_group()
    teacher = make_user('teacher')

    with pytest.raises(InvalidRole):
        add_association(store, group.id, teacher.id, Group, 'students')

    assert store.association_ids(group, 'students') == []


def test_missing_target_is_not_found(store, make_group) -> None:
    group = make_group()

    with pytest.raises(NotFound) as exception_info:
        add_association(store, group.id, new_identifier(), Group, 'courses')

    assert exception_info.value.detail == 'Course not found.'


def test_missing_owner_is_not_found(store, make_course) -> None:
    course = make_course()

    with pytest.raises(NotFound) as exception_info:
        add_association(store, new_identifier(), course.id, Group, 'courses')

    assert exception_info.value.detail == 'Group not found.'


def test_malformed_owner_id_is_format_error(store, make_course) -> None:
    course = make_course()

    with pytest.raises(InvalidReferenceFormat):
        add_association(store, 'group-1', course.id, Group, 'courses')


def test_add_file_to_course_returns_expanded_course(store, make_course) -> None:
    course = make_course()
    file = store.insert(File(filename='notes.pdf', file_path='http://x/uploads/a/notes.pdf', course_id=course.id))

    expanded = add_association(store, course.id, file.id, Course, 'files')

    assert expanded['files'] == [{'id': file.id, 'filename': 'notes.pdf', 'file_path': 'http://x/uploads/a/notes.pdf'}]
    assert expanded['teacher']['id'] == course.teacher_id


def test_unknown_relation_is_rejected(store, make_group, make_user) -> None:
    with pytest.raises(ValueError):
        add_association(store, make_group().id, make_user().id, Group, 'teachers')
