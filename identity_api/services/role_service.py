from sqlalchemy.exc import IntegrityError
from identity_api.core.exceptions import ConflictException, NotFoundException
from identity_api.models.role import Role
from identity_api.repositories.role_repo import RoleRepository
from identity_api.schemas.role import RoleCreate, RoleUpdate
import logging

logger = logging.getLogger(__name__)


class RoleService:
    def __init__(self, role_repo: RoleRepository):
        self.role_repo = role_repo

    async def create_role(self, role_in: RoleCreate) -> Role:
        if await self.role_repo.get_by_name(role_in.name):
            logger.warning("Attempt to create duplicate role: %s", role_in.name)
            raise ConflictException(detail=f'Role with name "{role_in.name}" already exists')
        try:
            role = await self.role_repo.create(Role(**role_in.model_dump()))
        except IntegrityError:
            raise ConflictException(detail=f'Role with name "{role_in.name}" already exists')
        logger.info("Role created: role_id=%s name=%s", role.id, role.name)
        return role

    async def get_role(self, role_id: int) -> Role:
        role = await self.role_repo.get_by_id(role_id)
        if not role:
            raise NotFoundException(detail="Role not found")
        return role

    async def list_roles(self) -> list[Role]:
        return await self.role_repo.get_all()

    async def update_role(self, role_id: int, role_in: RoleUpdate) -> Role:
        role = await self.get_role(role_id)
        update_data = role_in.model_dump(exclude_unset=True)
        if "name" in update_data and update_data["name"] != role.name:
            if await self.role_repo.get_by_name(update_data["name"]):
                raise ConflictException(detail=f'Role with name "{update_data["name"]}" already exists')
        for field, value in update_data.items():
            setattr(role, field, value)
        role = await self.role_repo.update(role)
        logger.info("Role updated: role_id=%s", role.id)
        return role

    async def delete_role(self, role_id: int) -> None:
        role = await self.get_role(role_id)
        await self.role_repo.delete(role)
        logger.info("Role deleted: role_id=%s", role_id)
