import asyncio
from sqlalchemy.ext.asyncio import AsyncSession
from identity_api.core.database import AsyncSessionLocal
from identity_api.repositories.password_reset_repo import PasswordResetRepository
from identity_api.repositories.token_repo import TokenRepository
from identity_api.repositories.user_repo import UserRepository
from identity_api.services.password_reset_service import PasswordResetService
from identity_api.services.refresh_token_service import RefreshTokenService
import logging

logger = logging.getLogger(__name__)


async def _sweep(session: AsyncSession) -> tuple[int, int]:
    token_repo = TokenRepository(session)
    user_repo = UserRepository(session)
    refresh_token_service = RefreshTokenService(token_repo, user_repo)
    password_reset_service = PasswordResetService(user_repo, PasswordResetRepository(session), token_repo)

    refresh_count = await refresh_token_service.cleanup_expired()
    reset_count = await password_reset_service.cleanup_expired()
    await session.commit()
    logger.info("Cleaned up %d expired/revoked refresh tokens", refresh_count)
    logger.info("Cleaned up %d expired/used password reset requests", reset_count)
    return refresh_count, reset_count


async def cleanup_expired_tokens(session: AsyncSession | None = None) -> tuple[int, int]:
    """Delete every refresh token and reset request already in a terminal state."""
    if session is not None:
        return await _sweep(session)
    async with AsyncSessionLocal() as session:
        return await _sweep(session)

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO)
    asyncio.run(cleanup_expired_tokens())
