from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from identity_api.models.role import Role, user_roles
from identity_api.repositories.base import BaseRepository


class RoleRepository(BaseRepository[Role]):
    def __init__(self, db: AsyncSession):
        super().__init__(db, Role)

    async def get_by_name(self, name: str) -> Role | None:
        query = select(Role).where(Role.name == name)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_ids(self, role_ids: list[int]) -> list[Role]:
        if not role_ids:
            return []
        query = select(Role).where(Role.id.in_(role_ids))
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def delete(self, role: Role) -> None:
        await self.db.execute(delete(user_roles).where(user_roles.c.role_id == role.id))
        await super().delete(role)
