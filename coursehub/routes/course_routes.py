from datetime import datetime

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field, field_validator
from sqlalchemy.orm import Session

from coursehub.core.errors import NotFound
from coursehub.database import get_db
from coursehub.models.course import Course
from coursehub.models.file import File
from coursehub.models.group import Group
from coursehub.models.user import User
from coursehub.routes.summaries import FileSummary, NamedSummary, UserSummary, normalize_name
from coursehub.services import associations, progress
from coursehub.services.entity_store import EntityStore
from coursehub.services.expansion import expand_course
from coursehub.services.references import ensure_exists, validate_reference, validate_references

router = APIRouter(tags=['courses'])


class CreateCourseRequest(BaseModel):
    name: str
    teacher_id: str
    files: list[str] | None = None
    groups: list[str] | None = None
    total_duration: float = Field(gt=0, description='Total planned duration in hours.')

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str) -> str:
        return normalize_name(value)


class UpdateCourseRequest(BaseModel):
    name: str | None = None
    teacher_id: str | None = None
    files: list[str] | None = None
    groups: list[str] | None = None
    total_duration: float | None = Field(default=None, gt=0)

    @field_validator('name')
    @classmethod
    def validate_name(cls, value: str | None) -> str | None:
        return None if value is None else normalize_name(value)


class AddFileRequest(BaseModel):
    course_id: str
    file_id: str


class CourseResponse(BaseModel):
    id: str
    name: str
    teacher: UserSummary | None = None
    files: list[FileSummary] = []
    groups: list[NamedSummary] = []
    total_duration: float
    created_at: datetime | None = None
    updated_at: datetime | None = None


class CourseProgressResponse(BaseModel):
    course_id: str
    progress: str
    session_hours: float
    total_duration: float


def validate_course_references(store: EntityStore, data: CreateCourseRequest | UpdateCourseRequest) -> dict[str, list[str]]:
    """Check teacher, files and groups; returns the reference sets to write."""
    if data.teacher_id is not None:
        validate_reference(store, data.teacher_id, User, 'teacher', role='teacher')
    validate_references(store, data.files, File, 'files')
    validate_references(store, data.groups, Group, 'groups')

    return {
        relation: ids
        for relation, ids in (('files', data.files), ('groups', data.groups))
        if ids is not None
    }


@router.post('', response_model=CourseResponse, status_code=status.HTTP_201_CREATED)
def create_course(data: CreateCourseRequest, db: Session = Depends(get_db)):
    store = EntityStore(db)
    reference_sets = validate_course_references(store, data)

    course = store.insert(
        Course(name=data.name, teacher_id=data.teacher_id, total_duration=data.total_duration),
        associations=reference_sets,
    )
    return expand_course(store, course)


@router.get('', response_model=list[CourseResponse])
def list_courses(db: Session = Depends(get_db)):
    store = EntityStore(db)
    return [expand_course(store, course) for course in store.find_many(Course, order_by=Course.created_at.asc())]


@router.post('/add-file', response_model=CourseResponse)
def add_file_to_course(data: AddFileRequest, db: Session = Depends(get_db)):
    return associations.add_association(EntityStore(db), data.course_id, data.file_id, Course, 'files')


@router.get('/{course_id}', response_model=CourseResponse)
def get_course(course_id: str, db: Session = Depends(get_db)):
    store = EntityStore(db)
    return expand_course(store, ensure_exists(store, Course, course_id, 'course'))


@router.get('/{course_id}/progress', response_model=CourseProgressResponse)
def get_course_progress(course_id: str, db: Session = Depends(get_db)):
    store = EntityStore(db)
    course = ensure_exists(store, Course, course_id, 'course')
    session_hours = progress.total_session_hours(store, course.id)
    percentage = progress.percentage_of(course, session_hours)

    return CourseProgressResponse(
        course_id=course.id,
        progress=progress.format_percentage(percentage),
        session_hours=round(session_hours, 2),
        total_duration=course.total_duration,
    )


@router.put('/{course_id}', response_model=CourseResponse)
def update_course(course_id: str, data: UpdateCourseRequest, db: Session = Depends(get_db)):
    store = EntityStore(db)
    ensure_exists(store, Course, course_id, 'course')
    reference_sets = validate_course_references(store, data)

    fields = data.model_dump(exclude_none=True, include={'name', 'teacher_id', 'total_duration'})
    course = store.update_by_id(Course, course_id, fields, associations=reference_sets)
    if course is None:
        raise NotFound('Course not found.')
    return expand_course(store, course)


@router.delete('/{course_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_course(course_id: str, db: Session = Depends(get_db)):
    store = EntityStore(db)
    ensure_exists(store, Course, course_id, 'course')
    # Files, sessions and groups that reference the course are left in place.
    store.delete_by_id(Course, course_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
