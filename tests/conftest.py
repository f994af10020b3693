import os

# cheap hashes for tests; must be set before bookreview.config is imported
os.environ.setdefault("BOOKREVIEW_BCRYPT_ROUNDS", "4")

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine  # noqa: E402

from bookreview.app import create_app  # noqa: E402
from bookreview.database import Base, enable_sqlite_foreign_keys, get_session  # noqa: E402
import bookreview.models  # noqa: E402,F401

TEST_DB_URL = "sqlite+aiosqlite://"  # in-memory

engine = create_async_engine(TEST_DB_URL, echo=False)
enable_sqlite_foreign_keys(engine)
TestSession = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

PASSWORD = "Secret123"


@pytest.fixture(autouse=True)
async def setup_db():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def session():
    async with TestSession() as s:
        yield s


@pytest.fixture
async def client():
    app = create_app()

    async def override_session():
        async with TestSession() as s:
            yield s

    app.dependency_overrides[get_session] = override_session
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def register(client):
    """Register a user through the API; returns (user dict, auth headers)."""

    async def _register(email="reader@example.com", name="Reader One", password=PASSWORD):
        resp = await client.post("/api/auth/register", json={
            "email": email,
            "password": password,
            "name": name,
        })
        assert resp.status_code == 201, resp.text
        data = resp.json()["data"]
        return data["user"], {"Authorization": f"Bearer {data['token']}"}

    return _register


@pytest.fixture
def create_book(client):
    async def _create_book(headers, title="Dune", author="Frank Herbert", genre=None, published="1965-08-01"):
        resp = await client.post("/api/books", headers=headers, json={
            "title": title,
            "author": author,
            "genre": genre or ["Science Fiction"],
            "published": published,
        })
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _create_book


@pytest.fixture
def create_review(client):
    async def _create_review(headers, book_id, rating, comment=None):
        body = {"bookId": book_id, "rating": rating}
        if comment is not None:
            body["comment"] = comment
        resp = await client.post("/api/reviews", headers=headers, json=body)
        assert resp.status_code == 201, resp.text
        return resp.json()["data"]

    return _create_review
