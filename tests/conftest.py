import os
import sys
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker


# Ensure `import backend.app...` works regardless of where pytest is run from.
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

TEST_PASSWORD = "Testpass123!"


@pytest.fixture(scope="session")
def test_db_path(tmp_path_factory: pytest.TempPathFactory) -> Path:
    return tmp_path_factory.mktemp("db") / "test.sqlite3"


@pytest.fixture()
def app(test_db_path: Path) -> FastAPI:
    """
    Create a FastAPI app wired to a temporary SQLite DB.

    `app.main` is not imported so its startup hook never touches the dev database.
    """
    # Must be set before importing app.database so engine init doesn't pick up a developer .env.
    os.environ["DISABLE_DOTENV"] = "1"
    os.environ["DATABASE_URL"] = f"sqlite+pysqlite:///{test_db_path}"

    from backend.app import database as db

    # Same engine setup as production (foreign keys on), pointed at the temp file.
    engine = db.build_engine(os.environ["DATABASE_URL"])
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    # Patch the shared database module so router dependencies use the test DB.
    db.engine = engine
    db.SessionLocal = TestingSessionLocal

    # Import models so Base metadata is populated, then create tables.
    from backend.app import models  # noqa: F401

    db.Base.metadata.drop_all(bind=engine)
    db.Base.metadata.create_all(bind=engine)

    from backend.app.api import admin as admin_api
    from backend.app.api import application as application_api
    from backend.app.api import auth as auth_api
    from backend.app.api import users as users_api
    from backend.app.utils.error_handlers import register_error_handlers

    fastapi_app = FastAPI()
    fastapi_app.include_router(auth_api.router)
    fastapi_app.include_router(users_api.router)
    fastapi_app.include_router(application_api.router)
    fastapi_app.include_router(admin_api.router)
    register_error_handlers(fastapi_app)

    return fastapi_app


@pytest.fixture()
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest.fixture()
def db_session(app: FastAPI):
    """
    Direct SQLAlchemy session bound to the same temporary SQLite DB used by the test app.
    """
    from backend.app.database import SessionLocal

    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def make_user(db_session):
    """
    Insert a user directly and return `(user, auth_headers)`.

    Passwords are hashed with the real bcrypt helper so the user can also log in.
    """
    from backend.app.models import User
    from backend.app.utils.jwt import create_access_token
    from backend.app.utils.security import hash_password

    counter = {"n": 0}
    hashed = hash_password(TEST_PASSWORD)

    def _make(role: str = "candidate", *, name: str | None = None, email: str | None = None, is_blocked: bool = False):
        counter["n"] += 1
        n = counter["n"]
        user = User(
            name=name or f"{role.capitalize()} {n}",
            email=email or f"{role}{n}@uni.edu",
            password=hashed,
            role=role,
            is_blocked=is_blocked,
        )
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        token = create_access_token({"sub": str(user.id), "role": user.role})
        return user, {"Authorization": f"Bearer {token}"}

    return _make


@pytest.fixture()
def make_course(db_session):
    from backend.app.models import Course

    def _make(code: str, name: str | None = None, semester: str = "2024-1"):
        course = Course(code=code, name=name or code, semester=semester)
        db_session.add(course)
        db_session.commit()
        db_session.refresh(course)
        return course

    return _make


@pytest.fixture()
def assign(db_session):
    from backend.app.models import CourseLecturer

    def _assign(lecturer, course):
        row = CourseLecturer(course_id=course.id, lecturer_id=lecturer.id)
        db_session.add(row)
        db_session.commit()
        return row

    return _assign


@pytest.fixture()
def make_application(db_session):
    from backend.app.models import TutorApplication

    def _make(user, course, *, session_type: str = "tutorial", availability: str = "Full Time",
              skills: str | None = "Python, SQL", is_selected: bool = False, rank: int | None = None):
        a = TutorApplication(
            user_id=user.id,
            course_id=course.id,
            session_type=session_type,
            availability=availability,
            role_applied=session_type,
            previous_roles="TA",
            skills=skills,
            credentials="PhD",
            is_selected=is_selected,
            rank=rank,
        )
        db_session.add(a)
        db_session.commit()
        db_session.refresh(a)
        return a

    return _make


@pytest.fixture()
def user_password() -> str:
    """Plain-text password of every user created by `make_user`."""
    return TEST_PASSWORD
