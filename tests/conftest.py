# tests/conftest.py

from types import SimpleNamespace

import pytest
from fakeredis import aioredis as fake_aioredis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.pool import StaticPool

from eduledger.core.actor import ActorContext, ActorType
from eduledger.core.cache import cache_manager
from eduledger.core.config import settings
from eduledger.core.database import build_engine, build_sessionmaker, get_db
from eduledger.main import app
from eduledger.models import Base, Enrollment, Student, TeacherClass

TEST_DATABASE_URL = "sqlite+aiosqlite://"

TEACHER_ID = "t-100"
TEACHER_HEADERS = {
    "X-Actor-Id": TEACHER_ID,
    "X-Actor-Type": "teacher",
    "X-Actor-Name": "Ms. Rivera",
}


@pytest.fixture(autouse=True)
def disable_cache(monkeypatch):
    monkeypatch.setattr(settings, "cache_enabled", False)


@pytest.fixture
async def redis_cache(monkeypatch):
    """In-memory Redis behind the global cache manager, with caching switched on"""
    fake_redis = fake_aioredis.FakeRedis(decode_responses=True)
    monkeypatch.setattr(settings, "cache_enabled", True)
    monkeypatch.setattr(cache_manager, "redis", fake_redis)
    yield fake_redis
    await fake_redis.flushall()
    await fake_redis.aclose()


@pytest.fixture
async def engine():
    engine = build_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_sessionmaker(engine)


@pytest.fixture
async def session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def roster(session):
    """One class with three enrolled students and one student enrolled elsewhere"""
    teacher_class = TeacherClass(
        teacher_id=TEACHER_ID,
        teacher_name="Ms. Rivera",
        class_name="Grade 10-A",
        subject_name="Mathematics",
        school_year="2025-2026",
    )
    students = [Student(name=f"Student {i}", reg_no=f"REG-{i:03d}") for i in range(1, 4)]
    outsider = Student(name="Visiting Student", reg_no="REG-900")
    session.add(teacher_class)
    session.add_all(students + [outsider])
    await session.flush()

    for student in students:
        session.add(Enrollment(class_id=teacher_class.id, student_id=student.id))
        await session.flush()
    teacher_class.student_count = len(students)
    await session.commit()

    return SimpleNamespace(
        teacher_class=teacher_class,
        class_id=teacher_class.id,
        student_ids=[student.id for student in students],
        outsider_id=outsider.id,
    )


@pytest.fixture
def teacher():
    return ActorContext(actor_id=TEACHER_ID, actor_type=ActorType.TEACHER, actor_name="Ms. Rivera")


@pytest.fixture
def admin():
    return ActorContext(actor_id="admin-1", actor_type=ActorType.ADMIN)


@pytest.fixture
def student_actor(roster):
    return ActorContext(actor_id=str(roster.student_ids[0]), actor_type=ActorType.STUDENT, actor_name="Student 1")


@pytest.fixture
async def client(session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
        headers=TEACHER_HEADERS,
    ) as client:
        yield client
    app.dependency_overrides.clear()
