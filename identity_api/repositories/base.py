from typing import Callable, Generic, TypeVar, Type, Optional, List
import logging

from sqlalchemy import select, update, delete, exists, or_, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from identity_api.core.database import Base, utcnow
from identity_api.core.security import generate_token

ModelType = TypeVar("ModelType", bound=Base)

logger = logging.getLogger(__name__)


class BaseRepository(Generic[ModelType]):
    """
    Base repository providing common CRUD operations.

    Usage:
        class RoleRepository(BaseRepository[Role]):
            def __init__(self, db: AsyncSession):
                super().__init__(db, Role)

            # Add custom methods here
            async def get_by_name(self, name: str):
                ...
    """

    def __init__(self, db: AsyncSession, model: Type[ModelType]):
        """
        Initialize repository.

        Args:
            db: Async database session
            model: SQLAlchemy model class
        """
        self.db = db
        self.model = model

    async def create(self, entity: ModelType) -> ModelType:
        """Create a new entity."""
        self.db.add(entity)
        await self.db.flush()
        await self.db.refresh(entity)
        return entity

    async def update(self, entity: ModelType) -> ModelType:
        """Update an existing entity."""
        await self.db.flush()
        await self.db.refresh(entity)
        return entity

    async def delete(self, entity: ModelType) -> None:
        """Hard delete an entity (permanent)."""
        await self.db.delete(entity)
        await self.db.flush()

    async def get_by_id(self, entity_id: int) -> Optional[ModelType]:
        query = select(self.model).where(self.model.id == entity_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_all(
        self,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> List[ModelType]:
        """
        Get entities ordered by id.

        Args:
            limit: Maximum number of results
            offset: Number of results to skip
        """
        query = select(self.model).order_by(self.model.id)
        if limit is not None:
            query = query.limit(limit)
        if offset is not None:
            query = query.offset(offset)

        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def count(self) -> int:
        query = select(func.count()).select_from(self.model)
        result = await self.db.execute(query)
        return result.scalar()


class ExpiringTokenRepository(BaseRepository[ModelType]):
    """
    Persistence for single-use opaque credentials.

    A row is valid while its terminal flag (`flag_column`) is false and
    `expires_at` lies strictly in the future. Rows leave the table only
    through `delete_expired_or_terminal`.
    """

    flag_column: str

    @property
    def _flag(self):
        return getattr(self.model, self.flag_column)

    async def save(self, entity: ModelType) -> ModelType:
        """
        Insert inside a SAVEPOINT so a unique-token violation only rolls
        back this insert. Raises IntegrityError on collision.
        """
        async with self.db.begin_nested():
            self.db.add(entity)
        await self.db.refresh(entity)
        return entity

    async def create_with_unique_token(
        self,
        build: Callable[[str], ModelType],
        max_attempts: int,
    ) -> Optional[ModelType]:
        """
        Generate a token, insert the entity `build(token)` returns, and retry
        with a fresh token on collision. The unique index is the authority;
        the existence check only skips a doomed insert. Returns None once
        `max_attempts` are exhausted.
        """
        for attempt in range(1, max_attempts + 1):
            token = generate_token()
            if await self.exists_by_token(token):
                logger.warning("%s token collision on attempt %d", self.model.__name__, attempt)
                continue
            try:
                return await self.save(build(token))
            except IntegrityError:
                logger.warning("%s token insert collided on attempt %d", self.model.__name__, attempt)
        return None

    async def exists_by_token(self, token: str) -> bool:
        query = select(exists().where(self.model.token == token))
        result = await self.db.execute(query)
        return bool(result.scalar())

    async def get_valid_by_token(self, token: str) -> Optional[ModelType]:
        query = select(self.model).where(
            self.model.token == token,
            self._flag == False,
            self.model.expires_at > utcnow(),
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def mark_terminal(self, entity: ModelType) -> bool:
        """
        Compare-and-set the flag. Returns False when another unit of work
        already set it, so at most one caller wins.
        """
        stmt = (
            update(self.model)
            .where(self.model.id == entity.id, self._flag == False)
            .values({self.flag_column: True})
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        if result.rowcount != 1:
            return False
        await self.db.refresh(entity)
        return True

    async def mark_all_for_user(self, user_id: int) -> int:
        stmt = (
            update(self.model)
            .where(self.model.user_id == user_id, self._flag == False)
            .values({self.flag_column: True})
            .execution_options(synchronize_session="fetch")
        )
        result = await self.db.execute(stmt)
        await self.db.flush()
        return result.rowcount

    async def delete_all_for_user(self, user_id: int) -> int:
        stmt = (
            delete(self.model)
            .where(self.model.user_id == user_id)
            .execution_options(synchronize_session="fetch")
        )
        result = await self.db.execute(stmt)
        await self.db.flush()
        return result.rowcount

    async def delete_expired_or_terminal(self) -> int:
        stmt = (
            delete(self.model)
            .where(or_(self.model.expires_at < utcnow(), self._flag == True))
            .execution_options(synchronize_session=False)
        )
        result = await self.db.execute(stmt)
        await self.db.flush()
        return result.rowcount
