from identity_api.schemas.pagination import PaginationParams, PaginatedResponse
from identity_api.schemas.user import UserCreate, UserResponse, UserUpdate, UserAdminUpdate
from identity_api.core.exceptions import ConflictException, NotFoundException
from identity_api.models.user import User
from identity_api.repositories.user_repo import UserRepository
from identity_api.repositories.role_repo import RoleRepository
from identity_api.repositories.token_repo import TokenRepository
from identity_api.repositories.password_reset_repo import PasswordResetRepository
from identity_api.core.security import get_password_hash
from sqlalchemy.exc import IntegrityError
import logging

logger = logging.getLogger(__name__)

class UserService:
    def __init__(
        self,
        user_repo: UserRepository,
        role_repo: RoleRepository,
        token_repo: TokenRepository,
        password_reset_repo: PasswordResetRepository,
    ):
        self.user_repo = user_repo
        self.role_repo = role_repo
        self.token_repo = token_repo
        self.password_reset_repo = password_reset_repo

    async def create_user(self, user_in: UserCreate) -> User:

        if await self.user_repo.get_by_email(user_in.email):
            logger.warning("Attempt to create user with existing email")
            raise ConflictException(detail="Email already registered")

        if await self.user_repo.get_by_username(user_in.username):
            logger.warning("Attempt to create user with existing username: %s", user_in.username)
            raise ConflictException(detail="Username already taken")

        hashed_password = get_password_hash(user_in.password)
        user_data = user_in.model_dump(exclude={"password"})
        user_model = User(**user_data, password_hash=hashed_password, is_active=True)
        try:
            created_user = await self.user_repo.create(user_model)
            logger.info("User created successfully: user_id=%s", created_user.id)
            return created_user
        except IntegrityError:
            logger.error("IntegrityError during user creation for username=%s", user_in.username)
            raise ConflictException(detail="Email or Username already taken (Race Condition detected)")


    async def get_user(self, user_id: int) -> User:
        user = await self.user_repo.get_by_id(user_id)
        if not user:
            raise NotFoundException(detail="User not found")
        return user


    async def update_user(self, user: User, user_in: UserUpdate | UserAdminUpdate) -> User:
        update_data = user_in.model_dump(exclude_unset=True)

        if "email" in update_data and update_data["email"] != user.email:
            if await self.user_repo.get_by_email(update_data["email"]):
                raise ConflictException(detail="Email already registered")

        if "username" in update_data and update_data["username"] != user.username:
            if await self.user_repo.get_by_username(update_data["username"]):
                raise ConflictException(detail="Username already taken")

        password = update_data.pop("password", None)
        if password:
            user.password_hash = get_password_hash(password)

        for field, value in update_data.items():
            setattr(user, field, value)

        try:
            updated_user = await self.user_repo.update(user)
            logger.info("User updated: user_id=%s", updated_user.id)
            return updated_user
        except IntegrityError:
            logger.error("IntegrityError during user update for user_id=%s", user.id)
            raise ConflictException(detail="Email or Username already taken (Race Condition detected)")

    async def delete_user(self, user: User) -> None:
        # Token rows must not outlive the account; SQLite may recycle the id
        tokens = await self.token_repo.delete_all_for_user(user.id)
        resets = await self.password_reset_repo.delete_all_for_user(user.id)
        logger.info("Removed %d refresh tokens and %d reset requests for user_id=%s", tokens, resets, user.id)
        await self.user_repo.delete(user)
        logger.info("User deleted: user_id=%s", user.id)


    async def list_users(self, params: PaginationParams) -> PaginatedResponse[UserResponse]:
        users, total = await self.user_repo.get_page(params.offset, params.size)
        items = [UserResponse.model_validate(user) for user in users]
        return PaginatedResponse[UserResponse].create(items=items, total=total, params=params)


    async def assign_roles(self, user_id: int, role_ids: list[int]) -> User:
        """Replace the user's roles with exactly `role_ids`."""
        user = await self.get_user(user_id)
        wanted = set(role_ids)
        roles = await self.role_repo.get_by_ids(list(wanted))
        missing = wanted - {role.id for role in roles}
        if missing:
            raise NotFoundException(detail=f"Role with ID {min(missing)} not found")
        user.roles = roles
        logger.info("Roles assigned to user_id=%s: %s", user.id, sorted(wanted))
        return await self.user_repo.update(user)

    async def add_role(self, user_id: int, role_id: int) -> User:
        user = await self.get_user(user_id)
        role = await self._get_role(role_id)
        if role not in user.roles:
            user.roles.append(role)
            logger.info("Role %s added to user_id=%s", role.name, user.id)
        return await self.user_repo.update(user)

    async def remove_role(self, user_id: int, role_id: int) -> User:
        user = await self.get_user(user_id)
        role = await self._get_role(role_id)
        if role in user.roles:
            user.roles.remove(role)
            logger.info("Role %s removed from user_id=%s", role.name, user.id)
        return await self.user_repo.update(user)

    async def _get_role(self, role_id: int):
        role = await self.role_repo.get_by_id(role_id)
        if not role:
            raise NotFoundException(detail=f"Role with ID {role_id} not found")
        return role
