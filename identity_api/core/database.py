from datetime import datetime, timezone

from sqlalchemy import DateTime, String, event, func
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from identity_api.core.config import get_settings



# ==================================================================
# DECLARATIVE BASE
# ==================================================================
class Base(DeclarativeBase): pass


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime) -> datetime:
    """SQLite hands timestamps back naive; every stored timestamp is UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


# ==================================================================
# MIXINS
# ==================================================================

class ExpiringTokenMixin:
    """
    Columns shared by single-use opaque credentials.

    `token` is unique across the whole table, including rows that are
    already revoked, used or expired, until the sweep removes them.
    """

    token: Mapped[str] = mapped_column(String(64), unique=True, index=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now()
    )

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False
    )

    def is_expired(self, now: datetime | None = None) -> bool:
        """Expired once `expires_at` is no longer strictly in the future."""
        now = now or utcnow()
        return as_utc(self.expires_at) <= now


# ==================================================================
# DATABASE ENGINE & SESSION FACTORY
# ==================================================================

_engine: AsyncEngine | None = None
_async_session_local: async_sessionmaker[AsyncSession] | None = None


def enable_sqlite_foreign_keys(engine: AsyncEngine) -> None:
    """SQLite ignores FOREIGN KEY clauses, ON DELETE CASCADE included, unless each connection opts in."""
    if engine.dialect.name != "sqlite":
        return

    @event.listens_for(engine.sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def get_engine() -> AsyncEngine:
    global _engine
    if _engine is None:
        _engine = create_async_engine(get_settings().DATABASE_URL)
        enable_sqlite_foreign_keys(_engine)
    return _engine


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    global _async_session_local
    if _async_session_local is None:
        _async_session_local = async_sessionmaker(
            bind=get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
        )
    return _async_session_local


# Used by the sweep job, which runs outside a request
def AsyncSessionLocal() -> AsyncSession:
    return get_session_factory()()


# The Dependency
async def get_db():
    session_factory = get_session_factory()
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
