from sqlalchemy.ext.asyncio import AsyncSession
from identity_api.models.refresh_token import RefreshToken
from identity_api.repositories.base import ExpiringTokenRepository

class TokenRepository(ExpiringTokenRepository[RefreshToken]):
    flag_column = "revoked"

    def __init__(self, db: AsyncSession):
        super().__init__(db, RefreshToken)

    async def revoke(self, token: RefreshToken) -> bool:
        return await self.mark_terminal(token)

    async def revoke_all_for_user(self, user_id: int) -> int:
        return await self.mark_all_for_user(user_id)

    async def delete_expired_or_revoked(self) -> int:
        return await self.delete_expired_or_terminal()
