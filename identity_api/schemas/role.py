from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator


class RoleBase(BaseModel):
    name: str = Field(min_length=2, max_length=50)
    description: str | None = Field(default=None, max_length=255)
    permissions: list[str] = Field(default_factory=list)


class RoleCreate(RoleBase):
    pass


class RoleUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=2, max_length=50)
    description: str | None = Field(default=None, max_length=255)
    permissions: list[str] | None = None

    # omitted means unchanged; only description may be cleared
    @field_validator("name", "permissions")
    @classmethod
    def reject_null(cls, value):
        if value is None:
            raise ValueError("Field cannot be null")
        return value


class RoleResponse(RoleBase):
    id: int
    created_at: datetime | None = None

    model_config = ConfigDict(from_attributes=True)
