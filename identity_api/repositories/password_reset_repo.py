from sqlalchemy.ext.asyncio import AsyncSession
from identity_api.models.password_reset import PasswordResetRequest
from identity_api.repositories.base import ExpiringTokenRepository


class PasswordResetRepository(ExpiringTokenRepository[PasswordResetRequest]):
    flag_column = "used"

    def __init__(self, db: AsyncSession):
        super().__init__(db, PasswordResetRequest)

    async def mark_used(self, reset_request: PasswordResetRequest) -> bool:
        return await self.mark_terminal(reset_request)

    async def invalidate_all_for_user(self, user_id: int) -> int:
        return await self.mark_all_for_user(user_id)

    async def delete_expired_or_used(self) -> int:
        return await self.delete_expired_or_terminal()
