from sqlalchemy import select, or_
from identity_api.models.user import User
from identity_api.repositories.base import BaseRepository
from sqlalchemy.ext.asyncio import AsyncSession

class UserRepository(BaseRepository[User]):
    def __init__(self, db: AsyncSession):
        super().__init__(db, User)

    async def get_by_email(self, email: str) -> User | None:
        query = select(User).where(User.email == email)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_username(self, username: str) -> User | None:
        query = select(User).where(User.username == username)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_email_or_username(self, identifier: str) -> User | None:
        query = select(User).where(
            or_(User.email == identifier, User.username == identifier)
        )
        result = await self.db.execute(query)
        return result.scalars().first()

    async def get_page(self, offset: int, limit: int) -> tuple[list[User], int]:
        total = await self.count()
        users = await self.get_all(limit=limit, offset=offset)
        return users, total
