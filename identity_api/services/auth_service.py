from identity_api.core.config import get_settings
from identity_api.core.exceptions import UnauthorizedException
from identity_api.core.security import verify_password, create_access_token
from identity_api.models.refresh_token import RefreshToken
from identity_api.models.user import User
from identity_api.repositories.user_repo import UserRepository
from identity_api.services.refresh_token_service import RefreshTokenService, INVALID_REFRESH_TOKEN
from identity_api.schemas.token import TokenResponse
import logging

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Incorrect email/username or password"


class AuthService:
    def __init__(self, user_repo: UserRepository, refresh_token_service: RefreshTokenService):
        self.user_repo = user_repo
        self.refresh_token_service = refresh_token_service


    async def authenticate(self, identifier: str, password: str) -> User:
        user = await self.user_repo.get_by_email_or_username(identifier)
        if not user:
            logger.warning("Login failed: user not found")
            raise UnauthorizedException(detail=INVALID_CREDENTIALS)
        if not verify_password(password, user.password_hash):
            logger.warning("Login failed: invalid password for user_id=%s", user.id)
            raise UnauthorizedException(detail=INVALID_CREDENTIALS)
        if not user.is_active:
            logger.warning("Login failed: inactive user_id=%s", user.id)
            raise UnauthorizedException(detail=INVALID_CREDENTIALS)
        return user


    async def login(self, identifier: str, password: str) -> TokenResponse:
        user = await self.authenticate(identifier, password)
        access_token = create_access_token(user.id)
        refresh_token = await self.refresh_token_service.issue(user)
        logger.info("User logged in successfully: user_id=%s", user.id)
        return self._token_response(access_token, refresh_token)


    async def refresh_access_token(self, refresh_token: str) -> TokenResponse:
        access_token, new_refresh_token = await self.refresh_token_service.refresh(refresh_token)
        return self._token_response(access_token, new_refresh_token)


    async def logout(self, refresh_token: str) -> None:
        stored_token = await self.refresh_token_service.validate(refresh_token)
        if not stored_token:
            logger.warning("Logout attempted with invalid or already revoked token")
            raise UnauthorizedException(detail=INVALID_REFRESH_TOKEN)
        await self.refresh_token_service.revoke(stored_token)
        logger.info("User logged out: user_id=%s", stored_token.user_id)


    @staticmethod
    def _token_response(access_token: str, refresh_token: RefreshToken) -> TokenResponse:
        settings = get_settings()
        return TokenResponse(
            token=access_token,
            refresh_token=refresh_token.token,
            expires_in=settings.access_token_ttl_seconds,
            refresh_expires_in=settings.refresh_token_ttl_seconds,
        )
