from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import ForeignKey, Boolean
from identity_api.core.database import Base, ExpiringTokenMixin
from identity_api.models.enums import PasswordResetState


class PasswordResetRequest(ExpiringTokenMixin, Base):
    __tablename__ = "password_reset_requests"

    id: Mapped[int] = mapped_column(primary_key=True, index=True)
    used: Mapped[bool] = mapped_column(Boolean, default=False)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    user: Mapped["User"] = relationship(back_populates="password_reset_requests")

    @property
    def state(self) -> PasswordResetState:
        if self.used:
            return PasswordResetState.USED
        if self.is_expired():
            return PasswordResetState.EXPIRED
        return PasswordResetState.PENDING

    @property
    def is_valid(self) -> bool:
        return self.state is PasswordResetState.PENDING
