from pydantic import BaseModel, Field

# hex encoding of the 32 random bytes behind every refresh and reset token
TOKEN_LENGTH = 64

class TokenResponse(BaseModel):
    token: str
    refresh_token: str
    expires_in: int
    refresh_expires_in: int


class TokenPayload(BaseModel):
    sub: str
    exp: int
    type: str

class LoginRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)

class TokenRefreshRequest(BaseModel):
    refresh_token: str = Field(min_length=1, max_length=TOKEN_LENGTH)

class TokenRevokeRequest(BaseModel):
    refresh_token: str = Field(min_length=1, max_length=TOKEN_LENGTH)
