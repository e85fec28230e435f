import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

from coursehub.core import config
from coursehub.database import Base, engine
from coursehub.models import association, course, file, group, session, user  # noqa: F401
from coursehub.routes import course_routes, file_routes, group_routes, session_routes, users_routes

logging.basicConfig(
    level=config.LOG_LEVEL,
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

config.validate_runtime_config()

app = FastAPI(title='CourseHub API')

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=['GET', 'POST', 'PUT', 'DELETE'],
    allow_headers=['*'],
)

Path(config.UPLOAD_DIR).mkdir(parents=True, exist_ok=True)
app.mount('/uploads', StaticFiles(directory=config.UPLOAD_DIR), name='uploads')


@app.on_event('startup')
def initialize_database() -> None:
    try:
        Base.metadata.create_all(bind=engine)
    except SQLAlchemyError:
        logger.exception('Database initialization failed. Check DATABASE_URL and database credentials.')


@app.get('/')
def root():
    return {'status': 'CourseHub API Running'}


app.include_router(users_routes.router, prefix='/api/users')
app.include_router(course_routes.router, prefix='/api/courses')
app.include_router(group_routes.router, prefix='/api/groups')
app.include_router(session_routes.router, prefix='/api/sessions')
app.include_router(file_routes.router, prefix='/api')
