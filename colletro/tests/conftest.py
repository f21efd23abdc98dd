"""
Pytest Configuration and Fixtures
"""

import os

# Point the app at a throwaway database before anything reads the settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test_colletro.db")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from datetime import datetime
from typing import AsyncGenerator, Generator

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from colletro.main import app
from colletro.database import Base, engine, async_session_factory
from colletro.models import User
from colletro.services.sync import CollectionSnapshot, ItemSnapshot, TemplateSnapshot


ADMIN_ID = "admin-0000-0000-0000-000000000001"
USER_ID = "user-0000-0000-0000-000000000001"
OTHER_USER_ID = "user-0000-0000-0000-000000000002"


def auth(user_id: str) -> dict[str, str]:
    """Headers identifying the caller."""
    return {"X-User-Id": user_id}


async def reset_database() -> None:
    """Recreate all tables and seed the test accounts."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async with async_session_factory() as session:
        session.add_all([
            User(id=ADMIN_ID, email="admin@example.com", name="Admin", is_admin=True),
            User(id=USER_ID, email="collector@example.com", name="Collector"),
            User(id=OTHER_USER_ID, email="other@example.com", name="Other"),
        ])
        await session.commit()


@pytest.fixture
def client() -> Generator[TestClient, None, None]:
    """Test client over a freshly seeded database."""
    with TestClient(app) as c:
        c.portal.call(reset_database)
        yield c


@pytest.fixture
def lenient_client() -> Generator[TestClient, None, None]:
    """Test client that returns 500 responses instead of raising."""
    with TestClient(app, raise_server_exceptions=False) as c:
        c.portal.call(reset_database)
        yield c


@pytest.fixture
def admin_headers() -> dict[str, str]:
    return auth(ADMIN_ID)


@pytest.fixture
def user_headers() -> dict[str, str]:
    return auth(USER_ID)


@pytest.fixture
def other_headers() -> dict[str, str]:
    return auth(OTHER_USER_ID)


@pytest.fixture
async def db_session(tmp_path) -> AsyncGenerator[AsyncSession, None]:
    """Session on a private SQLite file, for persistence tests."""
    test_engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'persistence.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_factory() as session:
        session.add(User(id=USER_ID, email="collector@example.com", name="Collector"))
        await session.commit()
        yield session

    await test_engine.dispose()


@pytest.fixture
def sample_template_data() -> dict:
    """Recommended collection payload as an admin would post it."""
    return {
        "name": "Amazing Spider-Man (1963)",
        "description": "The original run",
        "category": "Comics",
        "coverImage": "https://img.example.com/asm.jpg",
        "coverImageAspectRatio": "2:3",
        "tags": ["Marvel", "Vintage"],
        "items": [
            {"name": "Issue 1", "number": 1, "image": "https://img.example.com/asm1.jpg"},
            {"name": "Issue 2", "number": 2, "image": "https://img.example.com/asm2.jpg"},
            {"name": "Issue 3", "number": 3},
        ],
    }


@pytest.fixture
def template_snapshot() -> TemplateSnapshot:
    return TemplateSnapshot(
        name="Amazing Spider-Man (1963)",
        description="The original run",
        category="Comics",
        cover_image="https://img.example.com/asm.jpg",
        cover_image_aspect_ratio="2:3",
        tags='["Marvel","Vintage"]',
        updated_at=datetime(2024, 1, 1),
        items=[
            ItemSnapshot(name="Issue 1", number=1, image="i1"),
            ItemSnapshot(name="Issue 2", number=2, image="i2"),
            ItemSnapshot(name="Issue 3", number=3),
        ],
    )


@pytest.fixture
def clone_snapshot(template_snapshot) -> CollectionSnapshot:
    """A byte-for-byte clone of template_snapshot, never synced."""
    return CollectionSnapshot(
        source_id="template-1",
        created_at=datetime(2024, 1, 1),
        **template_snapshot.model_dump(exclude={"id", "updated_at"}),
    )
