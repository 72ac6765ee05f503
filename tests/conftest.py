import os

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("APP_ENV", "test")

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool
from identity_api.core.database import Base, enable_sqlite_foreign_keys, get_db
from identity_api.core.security import get_password_hash
from identity_api.main import app
from identity_api.api.v1.auth import limiter as auth_limiter
from identity_api.models.enums import ADMIN_ROLE
from identity_api.models.role import Role
from identity_api.models.user import User
from identity_api.repositories.password_reset_repo import PasswordResetRepository
from identity_api.repositories.token_repo import TokenRepository
from identity_api.repositories.user_repo import UserRepository
from identity_api.services.password_reset_service import PasswordResetService
from identity_api.services.refresh_token_service import RefreshTokenService

# In-memory SQLite for tests
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"
DEFAULT_PASSWORD = "StrongPass1"

# Fresh schema per test; StaticPool keeps every checkout on the one in-memory database
@pytest.fixture
async def db_engine():
    engine = create_async_engine(TEST_DATABASE_URL, echo=False, poolclass=StaticPool)
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()

# Independent connections to one on-disk database, for units of work that must really overlap
@pytest.fixture
async def file_session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'identity.db'}")
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


# Fixture to provide a database session for each test, with transaction rollback for isolation
@pytest.fixture
async def db_session(db_engine):
    connection = await db_engine.connect()
    # Start a transaction for test isolation
    transaction = await connection.begin()

    # Create a new session bound to the connection
    session = AsyncSession(bind=connection, expire_on_commit=False)

    yield session

    # Rollback transaction and close session after test
    await session.close()
    await transaction.rollback()
    await connection.close()


@pytest.fixture(autouse=True)
def setup_app_dependencies(db_session):

    # Override get_db dependency so that it uses the test database session
    async def override_get_db():
        yield db_session
    app.dependency_overrides[get_db] = override_get_db

    # Store original limiter states to restore after test
    app_limiter = getattr(app.state, "limiter", None)
    original_app_limiter_state = app_limiter.enabled if app_limiter else None
    original_auth_limiter = auth_limiter.enabled

    # Disable rate limiting for tests to avoid interference
    if original_app_limiter_state:
        app.state.limiter.enabled = False
    auth_limiter.enabled = False

    yield

    # Cleanup after test
    app.dependency_overrides.clear()
    if original_app_limiter_state is not None:
        app.state.limiter.enabled = original_app_limiter_state
    auth_limiter.enabled = original_auth_limiter


@pytest.fixture
async def client(setup_app_dependencies):
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def make_user(db_session):
    """Persist a user directly, bypassing the HTTP layer."""
    async def _make_user(username: str, email: str | None = None, password: str = DEFAULT_PASSWORD,
                         is_active: bool = True, roles: list[Role] | None = None) -> User:
        user = User(
            username=username,
            email=email or f"{username}@example.com",
            password_hash=get_password_hash(password),
            is_active=is_active,
            roles=roles or [],
        )
        return await UserRepository(db_session).create(user)
    return _make_user


@pytest.fixture
async def admin_headers(client, db_session, make_user):
    admin_role = Role(name=ADMIN_ROLE, description="Administrator", permissions=["*"])
    db_session.add(admin_role)
    await db_session.flush()
    await make_user("admin", roles=[admin_role])
    login = await client.post("/api/v1/auth/login", json={"username": "admin", "password": DEFAULT_PASSWORD})
    return {"Authorization": f"Bearer {login.json()['token']}"}


@pytest.fixture
def refresh_token_service(db_session):
    return RefreshTokenService(TokenRepository(db_session), UserRepository(db_session))


@pytest.fixture
def password_reset_service(db_session):
    return PasswordResetService(
        UserRepository(db_session),
        PasswordResetRepository(db_session),
        TokenRepository(db_session),
    )
