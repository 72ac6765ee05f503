from identity_api.api.v1.auth import router as auth_router
from identity_api.api.v1.users import router as user_router
from identity_api.api.v1.roles import router as role_router

__all__ = ["auth_router", "user_router", "role_router"]
