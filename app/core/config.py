"""
ApplyForm API - Configuration
Loads settings from environment variables
"""

from typing import Optional, List
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App Info
    APP_NAME: str = "ApplyForm API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # API
    API_PREFIX: str = "/api"

    # PostgreSQL
    # DATABASE_URL wins when set; otherwise it is built from the DB_* parts
    DATABASE_URL: Optional[str] = None
    DB_USER: str = "postgres"
    DB_PASSWORD: str = ""
    DB_HOST: str = "localhost"
    DB_PORT: int = 5432
    DB_NAME: str = "applyform"
    DB_SSL: bool = False
    DB_POOL_MIN_SIZE: int = 1
    DB_POOL_MAX_SIZE: int = 10
    DB_COMMAND_TIMEOUT: float = 10.0

    # Supabase Storage (avatars)
    SUPABASE_URL: str
    SUPABASE_SERVICE_ROLE_KEY: str
    STORAGE_BUCKET: str = "avatars"
    MAX_AVATAR_SIZE: int = 2 * 1024 * 1024  # 2MB
    ALLOWED_AVATAR_TYPES: List[str] = ["image/jpeg", "image/png", "image/webp", "image/gif"]
    MEDIA_UPLOAD_TIMEOUT: float = 15.0  # seconds

    # Identity provider (OIDC issuer publishing a JWKS)
    AUTH_ISSUER_URL: str
    AUTH_JWKS_URL: Optional[str] = None
    AUTH_AUDIENCE: Optional[str] = None
    AUTH_ALGORITHMS: List[str] = ["RS256"]
    AUTH_COOKIE_NAME: str = "access_token"
    AUTH_HTTP_TIMEOUT: float = 10.0

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:5173"]

    @property
    def database_dsn(self) -> str:
        """Connection string for asyncpg."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def jwks_url(self) -> str:
        return self.AUTH_JWKS_URL or f"{self.AUTH_ISSUER_URL.rstrip('/')}/.well-known/jwks"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
