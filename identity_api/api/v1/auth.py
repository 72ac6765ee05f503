from typing import Annotated
from fastapi import APIRouter, Depends
from slowapi import Limiter
from identity_api.core.config import get_settings
from identity_api.core.exceptions import AppException
from identity_api.services.auth_service import AuthService
from identity_api.services.password_reset_service import PasswordResetService
from identity_api.api.deps import get_auth_service, get_password_reset_service
from identity_api.schemas.token import LoginRequest, TokenResponse, TokenRefreshRequest, TokenRevokeRequest
from identity_api.schemas.password_reset import PasswordResetRequestBody, PasswordResetConfirm, PasswordResetResponse
from slowapi.util import get_remote_address
from starlette.requests import Request
from fastapi import status

router = APIRouter()

auth_service = Annotated[AuthService, Depends(get_auth_service)]
password_reset_service = Annotated[PasswordResetService, Depends(get_password_reset_service)]

RESET_REQUESTED_MESSAGE = "If the email exists, a password reset link has been sent."

limiter = Limiter(key_func=get_remote_address)

@router.post("/login", response_model=TokenResponse)
@limiter.limit("5/minute")
async def login(request: Request, body: LoginRequest, service: auth_service) -> TokenResponse:
    return await service.login(body.username, body.password)

@router.post('/refresh', response_model=TokenResponse)
@limiter.limit("10/minute")
async def refresh_token(request: Request, body: TokenRefreshRequest, service: auth_service) -> TokenResponse:
    return await service.refresh_access_token(body.refresh_token)


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("10/minute")
async def logout(request: Request, body: TokenRevokeRequest, service: auth_service):
    await service.logout(body.refresh_token)


@router.post("/password-reset/request", response_model=PasswordResetResponse, response_model_exclude_none=True)
@limiter.limit("3/minute")
async def request_password_reset(
    request: Request,
    body: PasswordResetRequestBody,
    service: password_reset_service,
) -> PasswordResetResponse:
    reset_request = await service.request_reset(body.email)
    # Always return success to prevent email enumeration
    response = PasswordResetResponse(message=RESET_REQUESTED_MESSAGE)
    if reset_request and get_settings().APP_ENV == "dev":
        response.reset_token = reset_request.token
    return response


@router.post("/password-reset/confirm", response_model=PasswordResetResponse, response_model_exclude_none=True)
@limiter.limit("5/minute")
async def confirm_password_reset(
    request: Request,
    body: PasswordResetConfirm,
    service: password_reset_service,
) -> PasswordResetResponse:
    if not await service.confirm_reset(body.token, body.password):
        raise AppException(detail="Invalid or expired reset token", status_code=400)
    return PasswordResetResponse(message="Password has been reset successfully.")
