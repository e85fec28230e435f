import logging
import re
from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, field_validator
from sqlalchemy.orm import Session

from coursehub.auth import jwt_handler
from coursehub.auth.dependencies import get_current_user
from coursehub.auth.passwords import hash_password, verify_password
from coursehub.core.errors import ConflictError, NotFound
from coursehub.database import get_db
from coursehub.models.course import Course
from coursehub.models.group import Group
from coursehub.models.session import AttendanceRecord
from coursehub.models.user import ROLES, User
from coursehub.services.entity_store import EntityStore
from coursehub.services.references import ensure_exists

router = APIRouter(tags=['users'])
logger = logging.getLogger(__name__)

USERNAME_PATTERN = re.compile(r'^[A-Za-z0-9_.-]{3,30}$')
EMAIL_PATTERN = re.compile(r'^[^@\s]+@[^@\s]+\.[^@\s]+$')
MIN_PASSWORD_LENGTH = 6


def normalize_username(value: str) -> str:
    normalized = value.strip()
    if not USERNAME_PATTERN.fullmatch(normalized):
        raise ValueError('Username must be 3 to 30 letters, digits, ".", "_" or "-".')
    return normalized


def normalize_email(value: str) -> str:
    normalized = value.strip().lower()
    if not EMAIL_PATTERN.fullmatch(normalized):
        raise ValueError('Email must be a valid email address.')
    return normalized


def normalize_role(value: str) -> str:
    normalized = value.strip().lower()
    if normalized not in ROLES:
        raise ValueError(f"Role must be one of: {', '.join(ROLES)}.")
    return normalized


def check_password(value: str) -> str:
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters.')
    return value


class CreateUserRequest(BaseModel):
    username: str
    email: str
    password: str
    role: str

    @field_validator('username')
    @classmethod
    def validate_username(cls, value: str) -> str:
        return normalize_username(value)

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str) -> str:
        return check_password(value)

    @field_validator('role')
    @classmethod
    def validate_role(cls, value: str) -> str:
        return normalize_role(value)


class UpdateUserRequest(BaseModel):
    username: str | None = None
    email: str | None = None
    password: str | None = None

    @field_validator('username')
    @classmethod
    def validate_username(cls, value: str | None) -> str | None:
        return None if value is None else normalize_username(value)

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str | None) -> str | None:
        return None if value is None else normalize_email(value)

    @field_validator('password')
    @classmethod
    def validate_password(cls, value: str | None) -> str | None:
        return None if value is None else check_password(value)


class ReclassifyUserRequest(BaseModel):
    role: str

    @field_validator('role')
    @classmethod
    def validate_role(cls, value: str) -> str:
        return normalize_role(value)


class LoginRequest(BaseModel):
    email: str
    password: str

    @field_validator('email')
    @classmethod
    def validate_email(cls, value: str) -> str:
        return value.strip().lower()


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = 'bearer'


class UserResponse(BaseModel):
    id: str
    username: str
    email: str
    role: str
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


def ensure_unique_identity(store: EntityStore, username: str | None, email: str | None, exclude_id: str | None = None) -> None:
    if email is not None and store.exists(User, exclude_id=exclude_id, email=email):
        raise ConflictError('Email already in use.')
    if username is not None and store.exists(User, exclude_id=exclude_id, username=username):
        raise ConflictError('Username already in use.')


def count_role_dependents(store: EntityStore, user: User) -> int:
    """References that assumed the user's current role."""
    if user.role == 'teacher':
        return len(store.find_many(Course, teacher_id=user.id))
    if user.role == 'student':
        groups = store.association_owner_ids(Group, 'students', user.id)
        rosters = store.find_many(AttendanceRecord, student_id=user.id)
        return len(groups) + len(rosters)
    return 0


@router.post('', response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(data: CreateUserRequest, db: Session = Depends(get_db)):
    store = EntityStore(db)
    ensure_unique_identity(store, data.username, data.email)

    user = store.insert(
        User(
            username=data.username,
            email=data.email,
            hashed_password=hash_password(data.password),
            role=data.role,
        )
    )
    logger.info('Created %s user %s', user.role, user.id)
    return user


@router.get('', response_model=list[UserResponse])
def list_users(db: Session = Depends(get_db)):
    return EntityStore(db).find_many(User, order_by=User.created_at.asc())


@router.get('/me', response_model=UserResponse)
def read_current_user(current_user: User = Depends(get_current_user)):
    return current_user


@router.get('/role/{role}', response_model=list[UserResponse])
def list_users_by_role(role: str, db: Session = Depends(get_db)):
    try:
        normalized_role = normalize_role(role)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc

    return EntityStore(db).find_many(User, order_by=User.created_at.asc(), role=normalized_role)


@router.post('/login', response_model=TokenResponse)
def login(data: LoginRequest, db: Session = Depends(get_db)):
    if not data.email or not data.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail='Email and password are required.',
        )

    user = EntityStore(db).find_one(User, email=data.email)
    if user is None or not verify_password(data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail='Authentication failed. Invalid email or password.',
            headers={'WWW-Authenticate': 'Bearer'},
        )

    token = jwt_handler.create_access_token(
        subject=user.id,
        claims={'role': user.role, 'username': user.username, 'email': user.email},
    )
    return TokenResponse(access_token=token)


@router.get('/{user_id}', response_model=UserResponse)
def get_user(user_id: str, db: Session = Depends(get_db)):
    return ensure_exists(EntityStore(db), User, user_id, 'user')


@router.put('/{user_id}', response_model=UserResponse)
def update_user(user_id: str, data: UpdateUserRequest, db: Session = Depends(get_db)):
    store = EntityStore(db)
    ensure_exists(store, User, user_id, 'user')
    ensure_unique_identity(store, data.username, data.email, exclude_id=user_id)

    updates = data.model_dump(exclude_none=True, exclude={'password'})
    if data.password is not None:
        updates['hashed_password'] = hash_password(data.password)

    user = store.update_by_id(User, user_id, updates)
    if user is None:
        raise NotFound('User not found.')
    return user


@router.put('/{user_id}/role', response_model=UserResponse)
def reclassify_user(user_id: str, data: ReclassifyUserRequest, db: Session = Depends(get_db)):
    store = EntityStore(db)
    user = ensure_exists(store, User, user_id, 'user')
    if user.role == data.role:
        return user

    # Existing references are not re-validated; they keep pointing at this user.
    dependents = count_role_dependents(store, user)
    if dependents:
        logger.warning(
            'Reclassifying user %s from %s to %s leaves %d references that assumed the old role',
            user.id,
            user.role,
            data.role,
            dependents,
        )

    return store.update_by_id(User, user_id, {'role': data.role})


@router.delete('/{user_id}', status_code=status.HTTP_204_NO_CONTENT)
def delete_user(user_id: str, db: Session = Depends(get_db)):
    store = EntityStore(db)
    ensure_exists(store, User, user_id, 'user')
    store.delete_by_id(User, user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
