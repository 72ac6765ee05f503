from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import ForeignKey, Boolean
from identity_api.core.database import Base, ExpiringTokenMixin
from identity_api.models.enums import RefreshTokenState

class RefreshToken(ExpiringTokenMixin, Base):
    __tablename__ = "refresh_tokens"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    revoked: Mapped[bool] = mapped_column(Boolean, default=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    user: Mapped["User"] = relationship(back_populates="refresh_tokens")

    @property
    def state(self) -> RefreshTokenState:
        if self.revoked:
            return RefreshTokenState.REVOKED
        if self.is_expired():
            return RefreshTokenState.EXPIRED
        return RefreshTokenState.ACTIVE

    @property
    def is_valid(self) -> bool:
        return self.state is RefreshTokenState.ACTIVE
