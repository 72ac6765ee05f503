from datetime import datetime
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Boolean, DateTime, String, func
from identity_api.core.database import Base
from identity_api.models.role import Role, user_roles
from identity_api.models.refresh_token import RefreshToken
from identity_api.models.password_reset import PasswordResetRequest

class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(180), unique=True, index=True)
    username: Mapped[str] = mapped_column(String(180), unique=True, index=True)
    password_hash: Mapped[str] = mapped_column(String)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    roles: Mapped[list[Role]] = relationship(secondary=user_roles, back_populates="users", lazy="selectin")
    refresh_tokens: Mapped[list[RefreshToken]] = relationship(back_populates="user", cascade="all, delete-orphan", passive_deletes=True)
    password_reset_requests: Mapped[list[PasswordResetRequest]] = relationship(back_populates="user", cascade="all, delete-orphan", passive_deletes=True)

    @property
    def role_names(self) -> list[str]:
        return [role.name for role in self.roles]

    def has_role(self, name: str) -> bool:
        return name in self.role_names
