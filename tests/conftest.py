"""
CampusFix - Test Configuration and Fixtures
"""
import os
from datetime import datetime, timedelta, timezone
from typing import AsyncGenerator, Optional

import pytest
from botocore.exceptions import ClientError
from faker import Faker
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import NullPool

# Set testing environment
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///./test.db"
os.environ["JWT_SECRET"] = "test-jwt-secret-for-testing-only"
os.environ["MEDIA_PUBLIC_BASE_URL"] = "https://media.test"
os.environ["S3_BUCKET"] = "campusfix-test"

from app.config import Settings
from app.database import Base, get_db
from app.main import app
from app.models.event import Event, EventCategory
from app.models.issue import Issue, IssueCategory
from app.models.user import User, UserRole
from app.routers.uploads import get_media_service
from app.security import create_access_token
from app.services.media_service import MediaService

fake = Faker()

# Test database setup
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"
test_engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=NullPool)
TestSessionLocal = async_sessionmaker(
    bind=test_engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class FakeS3Client:
    """Stands in for the boto3 S3 client"""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.objects = {}
        self.deleted = []

    def upload_file(self, filename, bucket, key, ExtraArgs=None):
        if self.fail:
            raise ClientError({"Error": {"Code": "500", "Message": "boom"}}, "PutObject")
        with open(filename, "rb") as f:
            self.objects[key] = {"bucket": bucket, "body": f.read(), "extra": ExtraArgs}

    def delete_object(self, Bucket, Key):
        if self.fail:
            raise ClientError({"Error": {"Code": "500", "Message": "boom"}}, "DeleteObject")
        self.deleted.append(Key)


def auth_headers_for(user: User) -> dict:
    """Token header for ``user``"""
    return {"x-auth-token": create_access_token(user.id)}


async def make_user(
    db: AsyncSession,
    role: UserRole = UserRole.STUDENT,
    department: Optional[str] = None,
) -> User:
    user = User(
        name=fake.name(),
        email=fake.unique.email(),
        role=role,
        student_id=fake.bothify("ST-#####") if role == UserRole.STUDENT else None,
        department=department,
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    return user


async def make_issue(db: AsyncSession, reporter: User, **overrides) -> Issue:
    fields = {
        "title": fake.sentence(nb_words=4)[:100],
        "description": fake.text(max_nb_chars=200),
        "location": f"Building {fake.random_int(1, 20)}",
        "category": IssueCategory.ELECTRICAL,
        "reporter": reporter,
    }
    fields.update(overrides)
    issue = Issue(**fields)
    db.add(issue)
    await db.commit()
    await db.refresh(issue)
    return issue


async def make_event(db: AsyncSession, creator: User, **overrides) -> Event:
    fields = {
        "title": fake.sentence(nb_words=3)[:100],
        "description": fake.text(max_nb_chars=200),
        "date": datetime.now(timezone.utc) + timedelta(days=7),
        "time_start": "10:00",
        "time_end": "12:00",
        "location": "Main Hall",
        "category": EventCategory.WORKSHOP,
        "organizer_name": fake.name(),
        "organizer_contact": fake.email(),
        "registration_link": "https://example.com/register",
        "capacity": 10,
        "created_by": creator,
    }
    fields.update(overrides)
    event = Event(**fields)
    db.add(event)
    await db.commit()
    await db.refresh(event)
    return event


@pytest.fixture(scope="function")
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Create a fresh database session for each test"""
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
def s3_client() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture
def media_service(s3_client: FakeS3Client, tmp_path) -> MediaService:
    settings = Settings(
        upload_staging_path=str(tmp_path / "staging"),
        media_public_base_url="https://media.test",
    )
    return MediaService(client=s3_client, settings=settings)


@pytest.fixture
async def client(
    db_session: AsyncSession, media_service: MediaService
) -> AsyncGenerator[AsyncClient, None]:
    """Create test client with database and storage overrides"""
    async def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_service] = lambda: media_service

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def student(db_session: AsyncSession) -> User:
    return await make_user(db_session, UserRole.STUDENT, department="Computer Science")


@pytest.fixture
async def other_student(db_session: AsyncSession) -> User:
    return await make_user(db_session, UserRole.STUDENT, department="Physics")


@pytest.fixture
async def staff_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, UserRole.STAFF)


@pytest.fixture
async def admin_user(db_session: AsyncSession) -> User:
    return await make_user(db_session, UserRole.ADMIN)


@pytest.fixture
def student_headers(student: User) -> dict:
    return auth_headers_for(student)


@pytest.fixture
def other_student_headers(other_student: User) -> dict:
    return auth_headers_for(other_student)


@pytest.fixture
def staff_headers(staff_user: User) -> dict:
    return auth_headers_for(staff_user)


@pytest.fixture
def admin_headers(admin_user: User) -> dict:
    return auth_headers_for(admin_user)
