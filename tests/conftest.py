"""Test config and shared fixtures."""
import pytest
from typing import AsyncGenerator, Dict
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from main import app
from apps.library.models import Author, Book, Review
from repokit.config import CriteriaConfig
from repokit.criteria.params import RequestParams


# In-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest.fixture(scope="function")
async def async_session() -> AsyncGenerator[AsyncSession, None]:
    """Create async test database session."""
    # Import all models so they are registered in metadata
    import apps.models  # noqa: F401

    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)

    async_session_maker = sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
def config() -> CriteriaConfig:
    """Default criteria configuration with a small page size."""
    return CriteriaConfig(pagination_limit=2)


@pytest.fixture
def params():
    """Build RequestParams from keyword arguments: params(search="x", orderBy="title")."""
    def _params(**values) -> RequestParams:
        return RequestParams(values)
    return _params


@pytest.fixture
async def client(
    async_session: AsyncSession
) -> AsyncGenerator[AsyncClient, None]:
    """Create test client."""
    # Override dependencies
    from apps.library.api.router import get_db

    async def _get_db():
        yield async_session

    app.dependency_overrides[get_db] = _get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture
async def authors(async_session: AsyncSession) -> Dict[str, Author]:
    """Create sample authors."""
    rows = {
        "tolkien": Author(id=1, name="Tolkien", country="UK", bio="Philologist and author of Middle-earth"),
        "le_guin": Author(id=2, name="Le Guin", country="USA", bio="Author of Earthsea"),
        "orwell": Author(id=3, name="Orwell", country="UK", bio="Essayist"),
    }
    async_session.add_all(rows.values())
    await async_session.commit()
    async_session.expunge_all()
    return rows


@pytest.fixture
async def books(async_session: AsyncSession, authors: Dict[str, Author]) -> Dict[str, Book]:
    """Create sample books (ids 1-5) and three reviews."""
    rows = {
        "hobbit": Book(id=1, title="The Hobbit", slug="the-hobbit", isbn="9780261102217",
                       published_year=1937, author_id=1),
        "fellowship": Book(id=2, title="The Fellowship of the Ring", slug="fellowship",
                           published_year=1954, author_id=1),
        "earthsea": Book(id=3, title="A Wizard of Earthsea", slug="earthsea",
                         published_year=1968, author_id=2),
        "left_hand": Book(id=4, title="The Left Hand of Darkness", slug="left-hand",
                          published_year=1969, author_id=2),
        "nineteen": Book(id=5, title="Nineteen Eighty-Four", slug="1984",
                         published_year=1949, author_id=3),
    }
    async_session.add_all(rows.values())
    await async_session.commit()
    async_session.add_all([
        Review(id=1, book_id=1, reviewer="alice", rating=5, body="Classic"),
        Review(id=2, book_id=1, reviewer="bob", rating=4),
        Review(id=3, book_id=3, reviewer="carol", rating=5),
    ])
    await async_session.commit()
    # Start tests from an empty identity map so relations load through the queries under test
    async_session.expunge_all()
    return rows
