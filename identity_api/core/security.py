import secrets
from datetime import timedelta

from jose import jwt, JWTError
from passlib.context import CryptContext

from identity_api.core.config import get_settings
from identity_api.core.database import utcnow
from identity_api.core.exceptions import UnauthorizedException
from identity_api.schemas.token import TOKEN_LENGTH, TokenPayload


ACCESS_TOKEN_TYPE = "access"

# Opaque refresh and reset tokens are hex, two characters per random byte
TOKEN_BYTES = TOKEN_LENGTH // 2

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


# ------------------------------------------------------------------
# Passwords
# ------------------------------------------------------------------

def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


# ------------------------------------------------------------------
# Access tokens (short-lived JWT)
# ------------------------------------------------------------------

def create_access_token(user_id: int) -> str:
    settings = get_settings()
    claims = {
        "sub": str(user_id),
        "exp": utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        "type": ACCESS_TOKEN_TYPE,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.ALGORITHM)

def decode_access_token(token: str) -> TokenPayload:
    settings = get_settings()
    try:
        claims = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise UnauthorizedException(detail="Could not validate credentials.")
    if claims.get("type") != ACCESS_TOKEN_TYPE:
        raise UnauthorizedException(detail="Invalid token type.")
    return TokenPayload(**claims)


# ------------------------------------------------------------------
# Opaque tokens
# ------------------------------------------------------------------

def generate_token() -> str:
    """Fresh token value from the OS CSPRNG. Uniqueness is enforced by the caller's table."""
    return secrets.token_hex(TOKEN_BYTES)
