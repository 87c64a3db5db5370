"""
Configuration for pytest tests.
Every test gets its own SQLite file, seeded with the sample catalogue.
"""
from typing import Optional

import pytest
import pytest_asyncio

from bookgraph.api.graphql import AuthContextBuilder, EventBus
from bookgraph.bootstrap.config import AppConfig, AuthConfig, DatabaseConfig, GraphQLConfig, ServiceConfig
from bookgraph.core.auth import TokenService, hash_password
from bookgraph.database import Collection, SqlAlchemyStore
from bookgraph.database.seed import populate

TEST_SECRET = "test-secret-for-bookgraph-tests-0123456789"
TEST_PASSWORD = "secret"


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'bookgraph-test.db'}"


@pytest.fixture
def test_config(database_url) -> AppConfig:
    """Provides a test-specific AppConfig instance."""
    return AppConfig(
        database=DatabaseConfig(url=database_url),
        auth=AuthConfig(secret=TEST_SECRET),
        service=ServiceConfig(environment="test", log_level="DEBUG"),
        graphql=GraphQLConfig(graphiql=False),
    )


@pytest_asyncio.fixture
async def store(database_url):
    store = SqlAlchemyStore(database_url)
    await store.init_schema()
    await populate(store)
    yield store
    await store.close()


@pytest.fixture
def tokens() -> TokenService:
    return TokenService(TEST_SECRET)


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def builder(store, event_bus, tokens) -> AuthContextBuilder:
    return AuthContextBuilder(store, event_bus, tokens)


@pytest_asyncio.fixture
async def user(store):
    return await store.create(
        Collection.USERS,
        {
            "username": "mluukkai",
            "password_hash": hash_password(TEST_PASSWORD),
            "favorite_genre": "refactoring",
        },
    )


@pytest.fixture
def auth_header(user, tokens) -> str:
    return f"Bearer {tokens.issue(user.id, user.username)}"


@pytest.fixture
def make_context(builder):
    """Builds a fresh ExecutionContext the way the transport does"""

    async def _make(authorization: Optional[str] = None):
        return await builder.build(authorization)

    return _make
