from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache

class Settings(BaseSettings):
    PROJECT_NAME: str = "Identity"
    APP_ENV: str = "prod"
    DATABASE_URL: str
    SECRET_KEY: str
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_DAYS: int = 30
    PASSWORD_RESET_TOKEN_EXPIRE_MINUTES: int = 60
    TOKEN_GENERATION_MAX_ATTEMPTS: int = 5
    REVOKE_SESSIONS_ON_PASSWORD_RESET: bool = True
    TOKEN_CLEANUP_INTERVAL_SECONDS: int = 86400
    ALLOWED_ORIGINS: list[str] = []

    model_config = SettingsConfigDict(env_file=".env")

    @property
    def access_token_ttl_seconds(self) -> int:
        return self.ACCESS_TOKEN_EXPIRE_MINUTES * 60

    @property
    def refresh_token_ttl_seconds(self) -> int:
        return self.REFRESH_TOKEN_EXPIRE_DAYS * 86400


@lru_cache
def get_settings():
    return Settings()
