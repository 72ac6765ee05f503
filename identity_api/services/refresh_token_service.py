from datetime import timedelta
from identity_api.core.config import get_settings
from identity_api.core.database import utcnow
from identity_api.core.exceptions import ConflictException, UnauthorizedException
from identity_api.core.security import create_access_token
from identity_api.models.refresh_token import RefreshToken
from identity_api.models.user import User
from identity_api.repositories.token_repo import TokenRepository
from identity_api.repositories.user_repo import UserRepository
import logging

logger = logging.getLogger(__name__)

INVALID_REFRESH_TOKEN = "Invalid or expired refresh token"


class RefreshTokenService:
    """
    Issues, validates and rotates refresh tokens.

    A token is Active until it is revoked (rotation, logout, account event)
    or its `expires_at` passes; neither terminal state is ever left.
    """

    def __init__(self, token_repo: TokenRepository, user_repo: UserRepository):
        self.token_repo = token_repo
        self.user_repo = user_repo

    async def issue(self, user: User) -> RefreshToken:
        settings = get_settings()
        expires_at = utcnow() + timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
        refresh_token = await self.token_repo.create_with_unique_token(
            lambda value: RefreshToken(token=value, user_id=user.id, revoked=False, expires_at=expires_at),
            max_attempts=settings.TOKEN_GENERATION_MAX_ATTEMPTS,
        )
        if refresh_token is None:
            logger.error("Could not generate a unique refresh token for user_id=%s", user.id)
            raise ConflictException(detail="Could not generate a unique token")
        logger.info("Refresh token issued for user_id=%s", user.id)
        return refresh_token

    async def validate(self, token: str) -> RefreshToken | None:
        # unknown, expired and revoked are deliberately indistinguishable
        return await self.token_repo.get_valid_by_token(token)

    async def refresh(self, token: str) -> tuple[str, RefreshToken]:
        """
        Rotate a refresh token: returns a new access token and a new refresh
        token for the owner, and leaves the presented one revoked. Each
        refresh token succeeds at most once, even under concurrent use.
        """
        stored_token = await self.validate(token)
        if not stored_token:
            logger.warning("Refresh rejected: token unknown, expired or revoked")
            raise UnauthorizedException(detail=INVALID_REFRESH_TOKEN)

        user = await self.user_repo.get_by_id(stored_token.user_id)
        if not user or not user.is_active:
            logger.warning("Refresh rejected: inactive user_id=%s", stored_token.user_id)
            raise UnauthorizedException(detail="User account is inactive")

        access_token = create_access_token(user.id)

        if not await self.token_repo.revoke(stored_token):
            logger.warning("Refresh rejected: token already rotated for user_id=%s", user.id)
            raise UnauthorizedException(detail=INVALID_REFRESH_TOKEN)

        new_refresh_token = await self.issue(user)
        logger.info("Refresh token rotated for user_id=%s", user.id)
        return access_token, new_refresh_token

    async def revoke(self, refresh_token: RefreshToken) -> None:
        await self.token_repo.revoke(refresh_token)
        logger.info("Refresh token revoked for user_id=%s", refresh_token.user_id)

    async def revoke_all_for_user(self, user_id: int) -> int:
        count = await self.token_repo.revoke_all_for_user(user_id)
        logger.info("Revoked %d refresh tokens for user_id=%s", count, user_id)
        return count

    async def cleanup_expired(self) -> int:
        return await self.token_repo.delete_expired_or_revoked()
