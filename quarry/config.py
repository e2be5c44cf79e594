"""
Quarry Configuration

Settings and environment variable management.
"""
from pydantic import Field
from pydantic_settings import BaseSettings
from typing import List, Optional


class QuarrySettings(BaseSettings):
    """Quarry service settings."""

    # Application database
    database_url: Optional[str] = Field(
        default=None,
        validation_alias="DATABASE_URL",
        description="Full SQLAlchemy URL; overrides the APP_DB_* settings when set"
    )

    app_db_type: str = Field(
        default="sqlite",
        validation_alias="APP_DB_TYPE",
        description="Application database type (postgres, mysql, sqlite)"
    )

    app_db_host: Optional[str] = Field(
        default=None,
        validation_alias="APP_DB_HOST",
        description="Application database host"
    )

    app_db_port: Optional[int] = Field(
        default=None,
        validation_alias="APP_DB_PORT",
        description="Application database port (vendor default when unset)"
    )

    app_db_dbname: Optional[str] = Field(
        default=None,
        validation_alias="APP_DB_DBNAME",
        description="Application database name (file path for sqlite)"
    )

    app_db_user: Optional[str] = Field(
        default=None,
        validation_alias="APP_DB_USER",
        description="Application database user"
    )

    app_db_pass: Optional[str] = Field(
        default=None,
        validation_alias="APP_DB_PASS",
        description="Application database password"
    )

    # Security
    encryption_secret_key: Optional[str] = Field(
        default=None,
        validation_alias="ENCRYPTION_SECRET_KEY",
        description="Key used to encrypt stored database connection details"
    )

    api_key_secret: str = Field(
        default="quarry-dev-api-key-secret",
        validation_alias="API_KEY_SECRET",
        description="HMAC secret for hashing user API keys"
    )

    # Features
    premium_features: List[str] = Field(
        default_factory=list,
        validation_alias="PREMIUM_FEATURES",
        description='Enabled premium features, e.g. ["snippet-collections"]'
    )

    # API
    api_host: str = Field(
        default="0.0.0.0",
        validation_alias="API_HOST",
        description="API server host"
    )

    api_port: int = Field(
        default=3000,
        validation_alias="API_PORT",
        description="API server port"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        validation_alias="LOG_LEVEL",
        description="Root log level"
    )

    json_logs: bool = Field(
        default=True,
        validation_alias="JSON_LOGS",
        description="Render logs as JSON (console renderer otherwise)"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False
        populate_by_name = True

    def app_db_options(self) -> dict:
        """Connection options in the shape `app_db.spec` expects."""
        return {
            "host": self.app_db_host,
            "port": self.app_db_port,
            "db": self.app_db_dbname,
            "user": self.app_db_user,
            "password": self.app_db_pass,
        }
