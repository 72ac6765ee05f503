from enum import Enum


class EnumBase(Enum):
    def __str__(self):
        return self.value


class RefreshTokenState(EnumBase):
    ACTIVE = 'active'
    REVOKED = 'revoked'
    EXPIRED = 'expired'


class PasswordResetState(EnumBase):
    PENDING = 'pending'
    # consumed by a confirmation or invalidated by a newer request
    USED = 'used'
    EXPIRED = 'expired'


ADMIN_ROLE = 'ROLE_ADMIN'
