from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response, UploadFile, status
from fastapi import File as FormFile
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from coursehub.core import config
from coursehub.core.errors import NotFound
from coursehub.database import get_db
from coursehub.models.course import Course
from coursehub.models.file import File
from coursehub.services import file_storage
from coursehub.services.entity_store import EntityStore
from coursehub.services.references import ensure_exists, validate_identifier

router = APIRouter(tags=['files'])


class FileResponse(BaseModel):
    id: str
    filename: str
    file_path: str
    section: str | None = None
    course_id: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class UploadResponse(BaseModel):
    message: str
    data: FileResponse


class UpdateFileRequest(BaseModel):
    filename: str | None = None
    file_path: str | None = None
    course_id: str | None = None

    @field_validator('filename', 'file_path')
    @classmethod
    def validate_not_blank(cls, value: str | None) -> str | None:
        if value is None:
            return None
        normalized = value.strip()
        if not normalized:
            raise ValueError('Value must not be blank.')
        return normalized


@router.post(
    '/courses/{course_id}/files/{section}',
    response_model=UploadResponse,
    status_code=status.HTTP_201_CREATED,
)
def upload_file(
    course_id: str,
    section: str,
    file: UploadFile = FormFile(...),
    db: Session = Depends(get_db),
):
    store = EntityStore(db)
    ensure_exists(store, Course, course_id, 'course')

    # One byte past the ceiling is enough to tell an oversized upload apart.
    payload = file.file.read(config.MAX_UPLOAD_BYTES + 1)
    stored = file_storage.store_upload(section, file.filename or '', payload)

    try:
        record = store.insert(
            File(
                filename=stored.filename,
                file_path=stored.locator,
                section=section,
                course_id=course_id,
            )
        )
    except HTTPException:
        file_storage.discard_upload(stored)
        raise
    return UploadResponse(message='File uploaded successfully', data=FileResponse.model_validate(record))


@router.get('/courses/{course_id}/files', response_model=list[FileResponse])
def list_course_files(course_id: str, db: Session = Depends(get_db)):
    validate_identifier(course_id, 'course_id')
    files = EntityStore(db).find_many(File, order_by=File.created_at.asc(), course_id=course_id)
    if not files:
        raise NotFound('No files found for this course.')
    return files


@router.get('/files/{file_id}', response_model=FileResponse)
def get_file(file_id: str, db: Session = Depends(get_db)):
    return ensure_exists(EntityStore(db), File, file_id, 'file')


@router.put('/files/{file_id}', response_model=FileResponse)
def update_file(file_id: str, data: UpdateFileRequest, db: Session = Depends(get_db)):
    store = EntityStore(db)
    ensure_exists(store, File, file_id, 'file')
    if data.course_id is not None:
        ensure_exists(store, Course, data.course_id, 'course')

    updated = store.update_by_id(File, file_id, data.model_dump(exclude_none=True))
    if updated is None:
        raise NotFound('File not found.')
    return updated


@router.delete('/files/{file_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_file(file_id: str, db: Session = Depends(get_db)):
    store = EntityStore(db)
    ensure_exists(store, File, file_id, 'file')
    store.delete_by_id(File, file_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
