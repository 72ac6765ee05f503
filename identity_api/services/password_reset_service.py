from datetime import timedelta

from identity_api.core.config import get_settings
from identity_api.core.database import utcnow
from identity_api.core.exceptions import ConflictException
from identity_api.core.security import get_password_hash
from identity_api.models.password_reset import PasswordResetRequest
from identity_api.repositories.password_reset_repo import PasswordResetRepository
from identity_api.repositories.token_repo import TokenRepository
from identity_api.repositories.user_repo import UserRepository
import logging

logger = logging.getLogger(__name__)


class PasswordResetService:
    def __init__(
        self,
        user_repo: UserRepository,
        password_reset_repo: PasswordResetRepository,
        token_repo: TokenRepository,
    ):
        self.user_repo = user_repo
        self.password_reset_repo = password_reset_repo
        self.token_repo = token_repo

    async def request_reset(self, identifier: str) -> PasswordResetRequest | None:
        """
        Create a reset request for the active user matching the email or
        username, invalidating every earlier request of that user.
        Returns None when no active user matches; the caller should always
        return a generic success message to prevent email enumeration.
        """
        settings = get_settings()
        user = await self.user_repo.get_by_email_or_username(identifier)

        if not user or not user.is_active:
            logger.info("Password reset requested for unknown or inactive account")
            return None

        invalidated = await self.password_reset_repo.invalidate_all_for_user(user.id)
        if invalidated:
            logger.info("Invalidated %d pending reset requests for user_id=%s", invalidated, user.id)

        expires_at = utcnow() + timedelta(minutes=settings.PASSWORD_RESET_TOKEN_EXPIRE_MINUTES)
        reset_request = await self.password_reset_repo.create_with_unique_token(
            lambda value: PasswordResetRequest(token=value, user_id=user.id, used=False, expires_at=expires_at),
            max_attempts=settings.TOKEN_GENERATION_MAX_ATTEMPTS,
        )
        if reset_request is None:
            logger.error("Could not generate a unique reset token for user_id=%s", user.id)
            raise ConflictException(detail="Could not generate a unique token")

        # In production, hand the token to an email sender here.
        logger.info("Password reset request created for user_id=%s", user.id)
        return reset_request

    async def validate(self, token: str) -> PasswordResetRequest | None:
        return await self.password_reset_repo.get_valid_by_token(token)

    async def confirm_reset(self, token: str, new_password: str) -> bool:
        """
        Replace the password of the request's owner and consume the request.
        An invalid token is an expected outcome and returns False.
        Both writes land in the caller's unit of work.
        """
        settings = get_settings()
        reset_request = await self.validate(token)
        if not reset_request:
            logger.warning("Password reset attempted with invalid, used or expired token")
            return False

        user = await self.user_repo.get_by_id(reset_request.user_id)
        if not user:
            logger.error("Password reset request references missing user_id=%s", reset_request.user_id)
            return False

        if not await self.password_reset_repo.mark_used(reset_request):
            logger.warning("Password reset token consumed concurrently for user_id=%s", user.id)
            return False

        user.password_hash = get_password_hash(new_password)
        await self.user_repo.update(user)

        if settings.REVOKE_SESSIONS_ON_PASSWORD_RESET:
            await self.token_repo.revoke_all_for_user(user.id)

        logger.info("Password reset successful for user_id=%s", user.id)
        return True

    async def cleanup_expired(self) -> int:
        return await self.password_reset_repo.delete_expired_or_used()
