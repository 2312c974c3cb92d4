"""BreadBase configuration.

Settings come from ``BREADBASE_*`` environment variables and an optional
``.env`` file, validated once by pydantic-settings and cached for the
life of the process.
"""

import json
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

INSECURE_SECRET_KEY = "change-me-in-production-use-openssl-rand-hex-32"


class Settings(BaseSettings):
    """Runtime configuration.

    Groups: application, managed database, schema engine, CRUD metadata,
    scaffolding, tokens, CORS and logging.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="BREADBASE_",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = "BreadBase"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False
    api_prefix: str = "/api/v1"
    host: str = "0.0.0.0"
    port: int = 8000

    # The database whose tables are managed; BREAD metadata lives there too
    database_url: str = "sqlite+aiosqlite:///./bb_data/breadbase.db"
    db_echo: bool = False
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600
    db_sqlite_transactional_ddl: bool = Field(
        default=True,
        description="Emit BEGIN on SQLite so a failed table update rolls back as a whole",
    )

    max_identifier_length: int = Field(
        default=64,
        ge=1,
        description="Maximum length of table, column, index and constraint names",
    )
    schema_lock: Literal["none", "local"] = Field(
        default="local",
        description="Advisory lock held around schema mutations, keyed by table name",
    )

    models_namespace: str = Field(
        default="app.models",
        description="Dotted module prefix of generated model names",
    )

    scaffold_models_path: str = "./bb_data/models"
    scaffold_migrations_path: str = "./bb_data/migrations"

    secret_key: str = Field(default=INSECURE_SECRET_KEY, description="HS256 signing key")
    access_token_expire_minutes: int = Field(default=60, ge=1)

    # Comma-separated in the environment, split by split_cors_origins
    cors_origins: Annotated[list[str], NoDecode] = Field(
        default=["http://localhost:3000", "http://localhost:8000"]
    )
    cors_allow_credentials: bool = True
    cors_allow_methods: list[str] = Field(default=["*"])
    cors_allow_headers: list[str] = Field(default=["*"])

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"
    log_file: str | None = None

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_cors_origins(cls, v: str | list[str]) -> list[str]:
        """Accept a comma-separated string or a JSON list as well as a list."""
        if isinstance(v, str) and v.lstrip().startswith("["):
            return json.loads(v)
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(",") if origin.strip()]
        return v

    @field_validator("models_namespace")
    @classmethod
    def strip_namespace_dots(cls, v: str) -> str:
        return v.strip(".")

    @model_validator(mode="after")
    def require_secret_in_production(self) -> "Settings":
        if self.is_production and self.secret_key == INSECURE_SECRET_KEY:
            raise ValueError("BREADBASE_SECRET_KEY must be set in production")
        return self

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Process-wide settings, loaded on first use."""
    return Settings()
