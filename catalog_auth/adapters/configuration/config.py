# catalog_auth/adapters/configuration/config.py

from typing import Optional
from logging import getLevelName
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy.engine import URL


class Settings(BaseSettings):
    # Logging
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False

    # Environment
    ENVIRONMENT: str = "development"  # "development", "production", "testing"

    # Database
    DB_DRIVER: str = "asyncpg"
    POSTGRES_USER: str = "postgres"
    POSTGRES_PASSWORD: str = "postgres"
    POSTGRES_DB: str = "catalog"
    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    DATABASE_URL: Optional[str] = None
    DB_ECHO: bool = False
    DB_POOL_SIZE: int = 20
    DB_MAX_OVERFLOW: int = 10

    # Signing key (PEM or private JWK as JSON, inline or from a file)
    TOKEN_SERVICE_PRIVATE_KEY: Optional[str] = None
    TOKEN_SERVICE_PRIVATE_KEY_FILE: Optional[str] = None
    TOKEN_SERVICE_KEY_ID: Optional[str] = None
    TOKEN_SIGNING_ALGORITHM: str = "RS256"

    # Tokens
    TOKEN_ISSUER: str = "https://token.example"
    TOKEN_SERVICE_AUD: str = "https://tools.local/token-service"
    TOKEN_SERVICE_JWKS_URL: Optional[str] = None
    JWKS_CACHE_TTL: int = 300
    JWKS_REFRESH_COOLDOWN: float = 30.0

    # Bootstrap admin identity (bypasses the client registry)
    ADMIN_CLIENT_ID: Optional[str] = None
    ADMIN_CLIENT_SECRET: Optional[str] = None

    # Management identity for operational endpoints
    MANAGEMENT_CLIENT_ID: Optional[str] = None
    MANAGEMENT_CLIENT_SECRET: Optional[str] = None

    # Outbound token acquisition (service-to-service calls)
    TOKEN_SERVICE_URL: Optional[str] = None
    CLIENT_ID: Optional[str] = None
    CLIENT_SECRET: Optional[str] = None

    @field_validator("LOG_LEVEL", mode="before")
    def validate_log_level(cls, v: str) -> str:
        """Ensures the value is a valid logging level name."""
        lvl = str(v).upper()
        if not isinstance(getLevelName(lvl), int):
            raise ValueError(f"Invalid LOG_LEVEL: {v!r}")
        return lvl

    @field_validator("TOKEN_SIGNING_ALGORITHM", mode="before")
    def validate_algorithm(cls, v: str) -> str:
        alg = str(v).upper()
        if alg not in ("RS256", "RS384", "RS512", "ES256", "ES384", "ES512"):
            raise ValueError(f"Unsupported signing algorithm (asymmetric only): {v!r}")
        return alg

    @model_validator(mode="after")
    def assemble_db_url(self):
        if self.DATABASE_URL:
            return self
        self.DATABASE_URL = URL.create(
            drivername=f"postgresql+{self.DB_DRIVER}",
            username=self.POSTGRES_USER,
            password=self.POSTGRES_PASSWORD,
            host=self.POSTGRES_HOST,
            port=self.POSTGRES_PORT,
            database=self.POSTGRES_DB,
        ).render_as_string(hide_password=False)
        return self

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
