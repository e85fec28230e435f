import os

os.environ.setdefault('DATABASE_URL', 'sqlite:///./test.db')

import pytest  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402

from coursehub.auth.passwords import hash_password  # noqa: E402
from coursehub.database import Base  # noqa: E402
from coursehub.models import association, file, group, session  # noqa: E402, F401
from coursehub.models.course import Course  # noqa: E402
from coursehub.models.group import Group  # noqa: E402
from coursehub.models.user import User  # noqa: E402
from coursehub.services.entity_store import EntityStore  # noqa: E402


@pytest.fixture
def db():
    engine = create_engine('sqlite:///:memory:')
    testing_session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    db = testing_session_local()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def store(db):
    return EntityStore(db)


@pytest.fixture
def make_user(store):
    counter = {'value': 0}

    def _make_user(role: str = 'student', username: str | None = None) -> User:
        counter['value'] += 1
        username = username or f'{role}{counter["value"]}'
        return store.insert(
            User(
                username=username,
                email=f'{username}@example.edu',
                hashed_password=hash_password('secret-pass', method='pbkdf2:sha256:1000'),
                role=role,
            )
        )

    return _make_user


@pytest.fixture
def make_course(store, make_user):
    def _make_course(name: str = 'Algebra', total_duration: float = 10, teacher: User | None = None) -> Course:
        teacher = teacher or make_user('teacher')
        return store.insert(Course(name=name, teacher_id=teacher.id, total_duration=total_duration))

    return _make_course


@pytest.fixture
def make_group(store):
    counter = {'value': 0}

    def _make_group(name: str | None = None) -> Group:
        counter['value'] += 1
        return store.insert(Group(name=name or f'Group {counter["value"]}'))

    return _make_group
