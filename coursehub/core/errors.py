"""Error taxonomy shared by the services and routes.

Every error is an ``HTTPException`` so services can raise it directly and
FastAPI renders it without per-route translation.
"""

from collections.abc import Iterable

from fastapi import HTTPException, status


class ApiError(HTTPException):
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = 'Request failed.'

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(status_code=type(self).status_code, detail=detail or self.default_detail)


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Resource not found.'


class InvalidReferenceFormat(ApiError):
    default_detail = 'Invalid identifier.'

    def __init__(self, field: str, values: Iterable[object] = ()) -> None:
        self.field = field
        self.values = list(values)
        super().__init__(f"'{field}' must contain valid 24-character hex identifiers.")


class MissingReferences(ApiError):
    default_detail = 'One or more references not found.'

    def __init__(self, field: str, missing_ids: Iterable[str] = (), detail: str | None = None) -> None:
        self.field = field
        self.missing_ids = sorted(missing_ids)
        if detail is None:
            detail = f"One or more {field} not found: {', '.join(self.missing_ids)}"
        super().__init__(detail)


class InvalidRole(ApiError):
    default_detail = 'Reference does not have the required role.'

    def __init__(self, field: str, invalid_ids: Iterable[str] = (), role: str | None = None) -> None:
        self.field = field
        self.invalid_ids = sorted(invalid_ids)
        self.role = role
        super().__init__(f"One or more {field} do not match '{role}': {', '.join(self.invalid_ids)}")


class AttendanceRecordNotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = 'Attendance record not found for this student.'


class InvalidTimeRange(ApiError):
    default_detail = 'end_time must be after start_time.'


class InvalidCourseDuration(ApiError):
    status_code = 422
    default_detail = 'Course total_duration must be greater than zero to compute progress.'


class ConflictError(ApiError):
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'Resource already exists.'


class FileRejected(ApiError):
    default_detail = 'File rejected.'


class InternalError(ApiError):
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = 'Database unavailable. Verify DATABASE_URL and database credentials.'
