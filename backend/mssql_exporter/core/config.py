"""Exporter settings read from the process environment."""

from functools import lru_cache
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from mssql_exporter.core.exceptions import ConfigurationError


class ConnectionConfig(BaseModel):
    """Parameters for one database session.

    Only ``database`` varies between sessions.  Instances are frozen, so each
    per-database pass derives its own copy with ``with_database`` instead of
    mutating a shared object.
    """

    model_config = ConfigDict(frozen=True)

    host: str
    port: int = 1433
    user: str
    password: SecretStr
    login_timeout: int = 15
    query_timeout: int = 30
    database: Optional[str] = None

    def with_database(self, database: Optional[str]) -> "ConnectionConfig":
        """Return a copy bound to ``database`` (``None`` for server level)."""
        return self.model_copy(update={"database": database})


class Settings(BaseSettings):
    """Exporter configuration.

    Field names are the environment variable names.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    SERVER: str = Field(min_length=1)
    USERNAME: str = Field(min_length=1)
    PASSWORD: SecretStr
    PORT: int = 1433

    EXPOSE: int = 4000
    BIND_HOST: str = "0.0.0.0"

    LOGIN_TIMEOUT: int = Field(15, gt=0)
    QUERY_TIMEOUT: int = Field(30, gt=0)

    LOG_LEVEL: str = "INFO"

    def connection_config(self) -> ConnectionConfig:
        """Build the server-level connection config (no target database)."""
        return ConnectionConfig(
            host=self.SERVER,
            port=self.PORT,
            user=self.USERNAME,
            password=self.PASSWORD,
            login_timeout=self.LOGIN_TIMEOUT,
            query_timeout=self.QUERY_TIMEOUT,
        )


@lru_cache
def get_settings() -> Settings:
    """Load settings once per process.

    Raises:
        ConfigurationError: If a required variable is missing or invalid.
    """
    try:
        settings = Settings()  # type: ignore[call-arg]
    except ValidationError as exc:
        missing = sorted({str(err["loc"][0]) for err in exc.errors() if err.get("loc")})
        raise ConfigurationError(
            f"Invalid exporter configuration ({', '.join(missing)}): {exc}"
        ) from exc
    if not settings.PASSWORD.get_secret_value():
        raise ConfigurationError("Invalid exporter configuration (PASSWORD): empty value")
    return settings
