import asyncio
import os
import sys
import tempfile
import uuid
from io import BytesIO
from pathlib import Path

# 測試用設定 (必須在匯入 company_guide 之前設定)
TEST_ROOT = Path(tempfile.mkdtemp(prefix="company_guide_tests_"))
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{TEST_ROOT / 'unused.db'}"
os.environ["JWT_SECRET_KEY"] = "test-jwt-secret"
os.environ["SESSION_SECRET_KEY"] = "test-session-secret"
os.environ["CREATE_TABLES"] = "false"
os.environ["UPLOAD_DIR"] = str(TEST_ROOT / "uploads")

# Ensure the project root is on sys.path for imports during tests
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import pytest
from fastapi.testclient import TestClient
from PIL import Image
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.future import select
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool

from company_guide.core.config import settings
from company_guide.core.database import get_db, init_models
from company_guide.core.security import ACCESS_TOKEN_COOKIE, create_access_token, get_password_hash
from company_guide.main import create_app
from company_guide.models.profile import Profile, ProfileMember
from company_guide.models.user import User
from company_guide.utils.parsing import slugify


def make_image_bytes(image_format="PNG", size=(800, 600), color=(200, 30, 30)):
    buffer = BytesIO()
    Image.new("RGB", size, color).save(buffer, format=image_format)
    return buffer.getvalue()


@pytest.fixture
def db_engine(tmp_path):
    # NullPool: 每次都開新連線，TestClient 與測試本身可以在不同 event loop 使用同一個 DB
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    asyncio.run(init_models(engine))
    yield engine
    asyncio.run(engine.dispose())


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def upload_dir(tmp_path, monkeypatch):
    path = tmp_path / "uploads"
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(path))
    return path


@pytest.fixture
def logo_dir(upload_dir):
    path = upload_dir / "logos"
    path.mkdir(parents=True, exist_ok=True)
    return path


@pytest.fixture
def client(session_factory, upload_dir):
    app = create_app()

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def make_user(session_factory):
    def _make(email="owner@example.com", password="secret123", name="Owner", is_active=True):
        async def _create():
            async with session_factory() as session:
                user = User(
                    user_id=str(uuid.uuid4()),
                    name=name,
                    email=email,
                    password_hash=get_password_hash(password),
                    is_active=is_active
                )
                session.add(user)
                await session.commit()
                return user
        return asyncio.run(_create())
    return _make


@pytest.fixture
def make_profile(session_factory):
    def _make(owner=None, name="Acme", primary=False, slug=None, **fields):
        async def _create():
            async with session_factory() as session:
                profile = Profile(
                    profile_id=str(uuid.uuid4()),
                    name=name,
                    slug=slug or slugify(name),
                    **fields
                )
                session.add(profile)
                await session.flush()
                if owner is not None:
                    session.add(ProfileMember(
                        profile_user_id=str(uuid.uuid4()),
                        user_id=owner.user_id,
                        profile_id=profile.profile_id,
                        primary=primary
                    ))
                await session.commit()
                return profile
        return asyncio.run(_create())
    return _make


@pytest.fixture
def fetch_profile(session_factory):
    def _fetch(slug):
        async def _get():
            async with session_factory() as session:
                result = await session.execute(select(Profile).where(Profile.slug == slug))
                return result.scalars().first()
        return asyncio.run(_get())
    return _fetch


@pytest.fixture
def fetch_user(session_factory):
    def _fetch(user_id):
        async def _get():
            async with session_factory() as session:
                return await session.get(User, user_id)
        return asyncio.run(_get())
    return _fetch


@pytest.fixture
def fetch_memberships(session_factory):
    def _fetch(user_id):
        async def _get():
            async with session_factory() as session:
                stmt = (
                    select(Profile.slug, ProfileMember.primary)
                    .join(ProfileMember, ProfileMember.profile_id == Profile.profile_id)
                    .where(ProfileMember.user_id == user_id)
                )
                result = await session.execute(stmt)
                return dict(result.all())
        return asyncio.run(_get())
    return _fetch


def login(client, user):
    client.cookies.set(ACCESS_TOKEN_COOKIE, create_access_token({"user_id": user.user_id}))
