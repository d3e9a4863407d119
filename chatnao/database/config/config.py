"""
Configuration — Pydantic v2 Settings (env / .env)
=================================================

Purpose
-------
Centralized, strongly-typed application configuration using:
- Pydantic v2 `BaseSettings` for environment-driven values
- `pydantic-settings` v2 for `.env` loading and model config

Load Order & Behavior
---------------------
- Values are read from the environment; if not present, `.env` is used.
- Missing required fields make `load_settings()` raise `ConfigurationError`.
  The entry point calls it once at startup, so a bad deployment fails before
  serving any request.
- `extra="ignore"`: unknown env vars are ignored (not an error).

Usage
-----
from chatnao.database.config.config import load_settings

settings = load_settings()
app = create_app(settings)

Security
--------
- Never commit secrets or the `.env` file to source control.
"""

from typing import Optional

from pydantic import Field
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from chatnao.errors import ConfigurationError


class Settings(BaseSettings):
    """
    Application configuration settings loaded from environment variables
    or a `.env` file. Provides strongly typed access to environment values.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # LLM
    API_KEY: str = Field(..., description="OpenAI API key used by the rewrite adapter.")
    OPEN_AI_MODEL: str = Field("gpt-4o-mini", description="Chat model name (e.g., `gpt-4o-mini`).")
    LLM_TEMPERATURE: float = Field(0.3, description="Sampling temperature for rewrites and summaries.")
    LLM_TIMEOUT_SECONDS: float = Field(30.0, description="Per-call timeout for the LLM request.")

    # HTTP
    FRONTEND_URL: str = Field("http://localhost:3000", description="Allowed CORS origin.")
    HOST: str = Field("0.0.0.0", description="Bind address for `chatnao-api`.")
    PORT: int = Field(8000, description="Bind port for `chatnao-api`.")

    # Database
    DB_DRIVER_NAME: str = Field("sqlite", description="SQLAlchemy driver (e.g., `postgresql+psycopg2`, `sqlite`).")
    DB_USERNAME: Optional[str] = Field(None, description="Database username credential.")
    DB_PASSWORD: Optional[str] = Field(None, description="Database password credential.")
    DB_HOST: Optional[str] = Field(None, description="Hostname or IP address of the database server.")
    DB_PORT: Optional[int] = Field(None, description="Database server port.")
    DB_DATABASE_NAME: str = Field("chatnao.sqlite", description="Database name, or file path for SQLite.")

    # Audio storage (S3)
    AWS_ACCESS_KEY: Optional[str] = Field(None, description="AWS access key ID.")
    AWS_SECRET_KEY: Optional[str] = Field(None, description="AWS secret access key.")
    REGION: str = Field("eu-central-1", description="AWS region name.")
    BUCKET_NAME: str = Field("chatnao-audio", description="Bucket holding uploaded audio clips.")
    S3_ENDPOINT_URL: Optional[str] = Field(None, description="Custom S3 endpoint (e.g., MinIO) if not AWS.")
    AUDIO_URL_EXPIRES_SECONDS: int = Field(3600, description="Lifetime of presigned upload/playback URLs.")

    # Security / ops
    BCRYPT_ROUNDS: int = Field(10, ge=4, le=31, description="bcrypt cost factor.")
    LOG_LEVEL: str = Field("INFO", description="Root logging level.")


def load_settings(**overrides) -> Settings:
    """
    Build the `Settings` object, translating validation failures into `ConfigurationError`.

    Parameters
    ----------
    **overrides
        Explicit values that take precedence over the environment (used by tests and scripts).

    Raises
    ------
    ConfigurationError
        If a required setting is missing or a value has the wrong type.
    """
    try:
        return Settings(**overrides)
    except PydanticValidationError as e:
        missing = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
        raise ConfigurationError(f"Invalid or missing settings: {', '.join(missing)}") from e
