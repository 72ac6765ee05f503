from pydantic import BaseModel, EmailStr, Field, field_validator
from identity_api.schemas.token import TOKEN_LENGTH


def validate_password_length(value: str) -> str:
    if len(value) < 8:
        raise ValueError("Password must be at least 8 characters long")
    return value


class PasswordResetRequestBody(BaseModel):
    email: EmailStr


class PasswordResetConfirm(BaseModel):
    token: str = Field(min_length=1, max_length=TOKEN_LENGTH)
    password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return validate_password_length(value)


class PasswordResetResponse(BaseModel):
    message: str
    # only populated outside production
    reset_token: str | None = None
