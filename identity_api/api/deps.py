from typing import Annotated
from fastapi import Depends
from identity_api.core.exceptions import ForbiddenException, UnauthorizedException
from identity_api.core.database import get_db
from sqlalchemy.ext.asyncio import AsyncSession
from identity_api.models.enums import ADMIN_ROLE
from identity_api.models.user import User
from identity_api.repositories.user_repo import UserRepository
from identity_api.repositories.role_repo import RoleRepository
from identity_api.repositories.token_repo import TokenRepository
from identity_api.repositories.password_reset_repo import PasswordResetRepository
from identity_api.services.user_service import UserService
from identity_api.services.role_service import RoleService
from identity_api.services.auth_service import AuthService
from identity_api.services.refresh_token_service import RefreshTokenService
from identity_api.services.password_reset_service import PasswordResetService
from identity_api.core.security import decode_access_token
from fastapi.security import OAuth2PasswordBearer

db_dependency = Annotated[AsyncSession, Depends(get_db)]
reusable_oauth2 = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login")

async def get_user_repo(db: db_dependency)-> UserRepository:
    return UserRepository(db)

user_dependency = Annotated[UserRepository, Depends(get_user_repo)]


async def get_role_repo(db: db_dependency) -> RoleRepository:
    return RoleRepository(db)

role_dependency = Annotated[RoleRepository, Depends(get_role_repo)]


async def get_role_service(role_repo: role_dependency) -> RoleService:
    return RoleService(role_repo)


async def get_token_repo(db: db_dependency) -> TokenRepository:
    return TokenRepository(db)

token_dependency = Annotated[TokenRepository, Depends(get_token_repo)]


async def get_refresh_token_service(token_repo: token_dependency, user_repo: user_dependency) -> RefreshTokenService:
    return RefreshTokenService(token_repo, user_repo)

refresh_token_service_dependency = Annotated[RefreshTokenService, Depends(get_refresh_token_service)]


async def get_auth_service(user_repo: user_dependency, refresh_token_service: refresh_token_service_dependency) -> AuthService:
    return AuthService(user_repo, refresh_token_service)


async def get_password_reset_repo(db: db_dependency) -> PasswordResetRepository:
    return PasswordResetRepository(db)

password_reset_dependency = Annotated[PasswordResetRepository, Depends(get_password_reset_repo)]


async def get_user_service(
    user_repo: user_dependency,
    role_repo: role_dependency,
    token_repo: token_dependency,
    password_reset_repo: password_reset_dependency,
) -> UserService:
    return UserService(user_repo, role_repo, token_repo, password_reset_repo)


async def get_password_reset_service(
    user_repo: user_dependency,
    password_reset_repo: password_reset_dependency,
    token_repo: token_dependency,
) -> PasswordResetService:
    return PasswordResetService(user_repo, password_reset_repo, token_repo)


async def get_current_user(token: Annotated[str, Depends(reusable_oauth2)], user_repo: user_dependency) -> User:
    payload = decode_access_token(token)
    subject = payload.sub
    if not subject:
        raise UnauthorizedException(detail="Unauthorized User")
    try:
        user_id = int(subject)
    except ValueError:
        raise UnauthorizedException(detail="Unauthorized User")
    user = await user_repo.get_by_id(user_id)
    if not user or not user.is_active:
        raise UnauthorizedException(detail="Unauthorized User")
    return user


async def get_current_admin(current_user: Annotated[User, Depends(get_current_user)]) -> User:
    if not current_user.has_role(ADMIN_ROLE):
        raise ForbiddenException(detail="Administrator role required")
    return current_user
