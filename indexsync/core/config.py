"""Configuration settings for indexsync.

Values are read from the environment (and an optional ``.env`` file) once at import
time and exposed through the module-level ``settings`` singleton.
"""

from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service settings.

    Attributes:
        PROJECT_NAME: Name used in logs and the OpenAPI title.
        LOCAL_DEVELOPMENT: Enables debug logging.
        LOG_LEVEL: Root log level outside local development.
        POSTGRES_*: Connection parameters for the collection configuration store.
        DATABASE_URL: Full async SQLAlchemy URL, overrides the POSTGRES_* parameters.
        INDEX_API_KEY: Private credential for the remote index API.
        INDEX_API_URL: Base URL of the remote index webhook API.
        INDEX_REQUEST_TIMEOUT: Timeout in seconds for each remote index operation.
        INDEX_MAX_ATTEMPTS: Attempts per remote index operation before giving up.
        CMS_URL: Base URL of the host CMS REST API.
        CMS_API_TOKEN: Bearer token used for CMS reads.
        CMS_REQUEST_TIMEOUT: Timeout in seconds for each CMS request.
        CMS_WEBHOOK_TOKEN: Shared secret expected on inbound CMS lifecycle webhooks.
        COLLECTION_SETTINGS_MODULE: Dotted path of a module exporting COLLECTION_SETTINGS.
    """

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    PROJECT_NAME: str = "indexsync"
    LOCAL_DEVELOPMENT: bool = False
    LOG_LEVEL: str = "INFO"

    POSTGRES_HOST: str = "localhost"
    POSTGRES_PORT: int = 5432
    POSTGRES_USER: str = "indexsync"
    POSTGRES_PASSWORD: str = ""
    POSTGRES_DB: str = "indexsync"
    DATABASE_URL: Optional[str] = None

    INDEX_API_KEY: Optional[str] = None
    INDEX_API_URL: str = "https://api.oramasearch.com/api/v1/webhooks"
    INDEX_REQUEST_TIMEOUT: float = 30.0
    INDEX_MAX_ATTEMPTS: int = 3

    CMS_URL: str = "http://localhost:1337"
    CMS_API_TOKEN: Optional[str] = None
    CMS_REQUEST_TIMEOUT: float = 30.0
    CMS_WEBHOOK_TOKEN: Optional[str] = None

    COLLECTION_SETTINGS_MODULE: Optional[str] = None

    @field_validator("INDEX_MAX_ATTEMPTS")
    @classmethod
    def _at_least_one_attempt(cls, v: int) -> int:
        if v < 1:
            raise ValueError("INDEX_MAX_ATTEMPTS must be at least 1")
        return v

    @property
    def SQLALCHEMY_ASYNC_DATABASE_URI(self) -> str:
        """Async database URL used by the engine."""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return (
            f"postgresql+asyncpg://{self.POSTGRES_USER}:{self.POSTGRES_PASSWORD}"
            f"@{self.POSTGRES_HOST}:{self.POSTGRES_PORT}/{self.POSTGRES_DB}"
        )


settings = Settings()
