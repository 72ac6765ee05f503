from typing import Annotated
from fastapi import APIRouter, Depends, status
from identity_api.api.deps import get_role_service, get_current_user, get_current_admin
from identity_api.models.user import User
from identity_api.schemas.role import RoleCreate, RoleResponse, RoleUpdate
from identity_api.services.role_service import RoleService

router = APIRouter()

role_service = Annotated[RoleService, Depends(get_role_service)]
current_user_dependency = Annotated[User, Depends(get_current_user)]
admin_dependency = Annotated[User, Depends(get_current_admin)]


@router.get("/", response_model=list[RoleResponse])
async def list_roles(service: role_service, current_user: current_user_dependency):
    return await service.list_roles()


@router.post("/", response_model=RoleResponse, status_code=status.HTTP_201_CREATED)
async def create_role(role_in: RoleCreate, service: role_service, admin: admin_dependency):
    return await service.create_role(role_in)


@router.get("/{role_id}", response_model=RoleResponse)
async def get_role(role_id: int, service: role_service, current_user: current_user_dependency):
    return await service.get_role(role_id)


@router.patch("/{role_id}", response_model=RoleResponse)
async def update_role(role_id: int, role_in: RoleUpdate, service: role_service, admin: admin_dependency):
    return await service.update_role(role_id, role_in)


@router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_role(role_id: int, service: role_service, admin: admin_dependency):
    await service.delete_role(role_id)
