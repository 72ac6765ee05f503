from datetime import datetime
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from identity_api.schemas.password_reset import validate_password_length


def validate_username_format(value: str) -> str:
    if len(value) < 3 or len(value) > 30:
        raise ValueError("Username must be between 3 and 30 characters long")
    if not all(c.isalnum() or c in "-_" for c in value):
        raise ValueError("Username can only contain letters, numbers, hyphens, and underscores")
    return value


class UserBase(BaseModel):
    email: EmailStr
    username: str

class UserCreate(UserBase):
    password: str

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return validate_password_length(value)

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str) -> str:
        return validate_username_format(value)


class UserUpdate(BaseModel):
    email: EmailStr | None = None
    username: str | None = None
    password: str | None = None

    # None only as the default for omitted fields; an explicit null is rejected
    @field_validator("email", "username", "password")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be null")
        return value

    @field_validator("username")
    @classmethod
    def validate_username(cls, value: str | None) -> str | None:
        if value is None:
            return value
        return validate_username_format(value)

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str | None) -> str | None:
        if value is None:
            return value
        return validate_password_length(value)


class UserAdminUpdate(UserUpdate):
    is_active: bool | None = None

    @field_validator("is_active")
    @classmethod
    def reject_null_is_active(cls, value: bool | None) -> bool:
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class UserRoleAssignment(BaseModel):
    role_ids: list[int]


class UserResponse(UserBase):
    id: int
    is_active: bool
    created_at: datetime | None = None
    roles: list[str] = Field(default_factory=list, validation_alias="role_names")

    model_config= ConfigDict(from_attributes=True)
