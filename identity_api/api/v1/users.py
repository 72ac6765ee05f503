from typing import Annotated
from fastapi import APIRouter, Depends, Query, status
from identity_api.schemas.pagination import PaginatedResponse, PaginationParams
from identity_api.services.user_service import UserService
from identity_api.api.deps import get_user_service, get_current_user, get_current_admin
from identity_api.schemas.user import UserAdminUpdate, UserCreate, UserResponse, UserRoleAssignment, UserUpdate
from identity_api.models.user import User

router = APIRouter()

user_service = Annotated[UserService, Depends(get_user_service)]
current_user_dependency = Annotated[User, Depends(get_current_user)]
admin_dependency = Annotated[User, Depends(get_current_admin)]

@router.post("/", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(user_in: UserCreate, service: user_service) -> UserResponse:
    return await service.create_user(user_in)

@router.get("/me", response_model=UserResponse)
async def details(current_user: current_user_dependency):
    return current_user

@router.patch("/me", response_model=UserResponse)
async def update_me(
    user_in: UserUpdate,
    current_user: current_user_dependency,
    service: user_service,
):
    return await service.update_user(current_user, user_in)

@router.delete("/me", status_code=status.HTTP_204_NO_CONTENT)
async def delete_me(
    current_user: current_user_dependency,
    service: user_service,
):
    await service.delete_user(current_user)


@router.get("/", response_model=PaginatedResponse[UserResponse])
async def list_users(
    service: user_service,
    current_user: current_user_dependency,
    page: int = Query(default=1, ge=1),
    size: int = Query(default=20, ge=1, le=100),
):
    return await service.list_users(PaginationParams(page=page, size=size))


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, service: user_service, current_user: current_user_dependency):
    return await service.get_user(user_id)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(user_id: int, user_in: UserAdminUpdate, service: user_service, admin: admin_dependency):
    user = await service.get_user(user_id)
    return await service.update_user(user, user_in)


@router.put("/{user_id}/roles", response_model=UserResponse)
async def assign_roles(user_id: int, body: UserRoleAssignment, service: user_service, admin: admin_dependency):
    return await service.assign_roles(user_id, body.role_ids)


@router.post("/{user_id}/roles/{role_id}", response_model=UserResponse)
async def add_role(user_id: int, role_id: int, service: user_service, admin: admin_dependency):
    return await service.add_role(user_id, role_id)


@router.delete("/{user_id}/roles/{role_id}", response_model=UserResponse)
async def remove_role(user_id: int, role_id: int, service: user_service, admin: admin_dependency):
    return await service.remove_role(user_id, role_id)
