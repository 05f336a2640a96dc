from datetime import datetime
import pytest
from httpx import AsyncClient, ASGITransport
from sqlmodel import Session, SQLModel, create_engine
from sqlmodel.pool import StaticPool
from attendtrack import models  # noqa: F401
from attendtrack.db import get_session
from attendtrack.main import app
from attendtrack.models import ClassSession, Department, Group, Subject, User, UserRole
from attendtrack.security import hash_password

START = datetime(2024, 3, 4, 9, 0)
END = datetime(2024, 3, 4, 10, 30)


class FixedClock:
    """Callable clock tests can move by assigning ``.now``."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture(name="engine")
def engine_fixture():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)


@pytest.fixture(name="session")
def session_fixture(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture(name="client")
def client_fixture(session: Session):
    def get_session_override():
        yield session

    app.dependency_overrides[get_session] = get_session_override
    client = AsyncClient(transport=ASGITransport(app=app), base_url="http://test")
    yield client
    app.dependency_overrides.clear()


@pytest.fixture
def clock():
    return FixedClock(START)


@pytest.fixture
def group(session: Session) -> Group:
    group = Group(name="ИВТ-21")
    session.add(group)
    session.commit()
    session.refresh(group)
    return group


@pytest.fixture
def other_group(session: Session) -> Group:
    group = Group(name="ПМИ-22")
    session.add(group)
    session.commit()
    session.refresh(group)
    return group


@pytest.fixture
def subject(session: Session) -> Subject:
    subject = Subject(name="Базы данных")
    session.add(subject)
    session.commit()
    session.refresh(subject)
    return subject


@pytest.fixture
def department(session: Session) -> Department:
    department = Department(name="Кафедра ИТ")
    session.add(department)
    session.commit()
    session.refresh(department)
    return department


def make_user(session: Session, username: str, role: UserRole = UserRole.STUDENT, password: str = "secret1", **fields) -> User:
    user = User(
        username=username,
        password_hash=hash_password(password),
        role=role,
        first_name=fields.pop("first_name", username.title()),
        last_name=fields.pop("last_name", "Test"),
        **fields,
    )
    session.add(user)
    session.commit()
    session.refresh(user)
    return user


@pytest.fixture
def teacher(session: Session, department: Department) -> User:
    return make_user(session, "teacher1", UserRole.TEACHER, department_id=department.id)


@pytest.fixture
def admin(session: Session) -> User:
    return make_user(session, "admin1", UserRole.ADMIN)


@pytest.fixture
def student(session: Session, group: Group) -> User:
    return make_user(session, "student1", group_id=group.id)


@pytest.fixture
def class_session(session: Session, teacher: User, subject: Subject, group: Group) -> ClassSession:
    cs = ClassSession(
        teacher_id=teacher.id,
        subject_id=subject.id,
        group_id=group.id,
        classroom="A-101",
        date=START.date(),
        start_time=START,
        end_time=END,
        token="token-abc",
        is_active=True,
    )
    session.add(cs)
    session.commit()
    session.refresh(cs)
    return cs


async def login(client: AsyncClient, username: str, password: str = "secret1"):
    response = await client.post("/api/auth/login", json={"username": username, "password": password})
    assert response.status_code == 200, response.text
    return response


@pytest.fixture(name="file_engine")
def file_engine_fixture(tmp_path):
    """A file-backed database that several threads can write to at once."""
    engine = create_engine(
        f"sqlite:///{tmp_path / 'attendtrack.db'}",
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    engine.dispose()
