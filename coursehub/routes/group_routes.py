from datetime import datetime

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from coursehub.core.errors import ConflictError, NotFound
from coursehub.database import get_db
from coursehub.models.course import Course
from coursehub.models.group import Group
from coursehub.models.user import User
from coursehub.routes.summaries import NamedSummary, UserSummary, normalize_name
from coursehub.services import associations
from coursehub.services.entity_store import EntityStore
from coursehub.services.expansion import expand_group
from coursehub.services.references import ensure_exists, validate_references

router = APIRouter(tags=['groups'])


class CreateGroupRequest(BaseModel):
    name: str
    students: list[str] | None = None
    courses: list[str] | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        return normalize_name(value)


class UpdateGroupRequest(BaseModel):
    name: str | None = None
    students: list[str] | None = None
    courses: list[str] | None = None

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        return None if value is None else normalize_name(value)


class AddStudentRequest(BaseModel):
    group_id: str
    student_id: str


class AddCourseRequest(BaseModel):
    group_id: str
    course_id: str


class GroupResponse(BaseModel):
    id: str
    name: str
    students: list[UserSummary] = []
    courses: list[NamedSummary] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None


def validate_group_references(store: EntityStore, data: CreateGroupRequest | UpdateGroupRequest) -> dict[str, list[str]]:
    validate_references(store, data.students, User, 'students', role='student')
    validate_references(store, data.courses, Course, 'courses')

    return {
        relation: ids
        for relation, ids in (('students', data.students), ('courses', data.courses))
        if ids is not None
    }


def ensure_unique_name(store: EntityStore, name: str | None, exclude_id: str | None = None) -> None:
    if name is not None and store.exists(Group, exclude_id=exclude_id, name=name):
        raise ConflictError('Group name already in use.')


@router.post('', response_model=GroupResponse, status_code=status.HTTP_201_CREATED)
def create_group(data: CreateGroupRequest, db: Session = Depends(get_db)):
    store = EntityStore(db)
    reference_sets = validate_group_references(store, data)
    ensure_unique_name(store, data.name)

    group = store.insert(Group(name=data.name), associations=reference_sets)
    return expand_group(store, group)


@router.get('', response_model=list[GroupResponse])
def list_groups(db: Session = Depends(get_db)):
    store = EntityStore(db)
    return [expand_group(store, group) for group in store.find_many(Group, order_by=Group.name.asc())]


@router.post('/add-student', response_model=GroupResponse)
def add_student_to_group(data: AddStudentRequest, db: Session = Depends(get_db)):
    return associations.add_association(EntityStore(db), data.group_id, data.student_id, Group, 'students')


@router.post('/add-course', response_model=GroupResponse)
def add_course_to_group(data: AddCourseRequest, db: Session = Depends(get_db)):
    return associations.add_association(EntityStore(db), data.group_id, data.course_id, Group, 'courses')


@router.get('/{group_id}', response_model=GroupResponse)
def get_group(group_id: str, db: Session = Depends(get_db)):
    store = EntityStore(db)
    return expand_group(store, ensure_exists(store, Group, group_id, 'group'))


@router.put('/{group_id}', response_model=GroupResponse)
def update_group(group_id: str, data: UpdateGroupRequest, db: Session = Depends(get_db)):
    store = EntityStore(db)
    ensure_exists(store, Group, group_id, 'group')
    reference_sets = validate_group_references(store, data)
    ensure_unique_name(store, data.name, exclude_id=group_id)

    fields = {'name': data.name} if data.name is not None else {}
    group = store.update_by_id(Group, group_id, fields, associations=reference_sets)
    if group is None:
        raise NotFound('Group not found.')
    return expand_group(store, group)


@router.delete('/{group_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_group(group_id: str, db: Session = Depends(get_db)):
    store = EntityStore(db)
    ensure_exists(store, Group, group_id, 'group')
    store.delete_by_id(Group, group_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
