from __future__ import annotations

import json
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict
from sqlalchemy.engine import URL

# library_api/core/config.py -> BASE_DIR == repository root
BASE_DIR = Path(__file__).resolve().parents[2]

SERVICE_NAME = "library-management"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=str(BASE_DIR / ".env"),
        extra="ignore",
        env_prefix="",
        case_sensitive=False,
    )

    # Environment
    app_env: str = Field(default="development", validation_alias="APP_ENV")
    app_version: str = Field(default="1.0.0", validation_alias="APP_VERSION")

    # Logging
    log_level: str = Field(default="info", validation_alias="LOG_LEVEL")
    log_format: Literal["json", "text"] | None = Field(
        default=None, validation_alias="LOG_FORMAT"
    )

    @field_validator("log_format", mode="before")
    @classmethod
    def normalize_log_format(cls, v: Any) -> str | None:
        if v is None:
            return None
        if not isinstance(v, str):
            raise TypeError("LOG_FORMAT must be a string")
        s = v.strip().lower()
        if not s:
            return None
        if s not in {"json", "text"}:
            raise ValueError("LOG_FORMAT must be one of: json, text")
        return s

    # Database
    db_host: str = Field(default="localhost", validation_alias="DB_HOST")
    db_port: int = Field(default=5432, validation_alias="DB_PORT")
    db_user: str = Field(default="postgres", validation_alias="DB_USER")
    db_password: str = Field(default="password", validation_alias="DB_PASSWORD")
    db_name: str = Field(default="librarydb", validation_alias="DB_NAME")
    db_sslmode: str = Field(default="disable", validation_alias="DB_SSLMODE")
    database_url_override: str | None = Field(
        default=None, validation_alias="DATABASE_URL"
    )
    db_pool_size: int = Field(default=5, validation_alias="DB_POOL_SIZE")
    db_max_overflow: int = Field(default=10, validation_alias="DB_MAX_OVERFLOW")

    # Server
    port: int = Field(default=8080, validation_alias="PORT")
    server_read_timeout_secs: float = Field(
        default=15.0, validation_alias="SERVER_READ_TIMEOUT_SECS"
    )
    server_write_timeout_secs: float = Field(
        default=15.0, validation_alias="SERVER_WRITE_TIMEOUT_SECS"
    )
    server_idle_timeout_secs: int = Field(
        default=60, validation_alias="SERVER_IDLE_TIMEOUT_SECS"
    )

    # CORS
    allowed_origins: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["http://localhost:3000"],
        validation_alias="ALLOWED_ORIGINS",
    )

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def parse_allowed_origins(cls, v: Any) -> list[str]:
        """
        Supported env formats:
          - Comma-separated: 'http://localhost:3000, http://localhost:5173'
          - JSON list: '["http://localhost:3000"]'
          - '*' wildcard
        """
        if v is None:
            return []
        if isinstance(v, list):
            return [str(x).strip() for x in v if str(x).strip()]
        if not isinstance(v, str):
            raise TypeError("allowed_origins must be a string or list of strings")

        s = v.strip()
        if not s:
            return []
        if s == "*":
            return ["*"]

        if s.startswith("[") and s.endswith("]"):
            try:
                parsed = json.loads(s)
            except json.JSONDecodeError:
                s = s[1:-1]
            else:
                if isinstance(parsed, list):
                    return [str(x).strip() for x in parsed if str(x).strip()]

        parts = [p.strip().strip('"').strip("'") for p in s.split(",")]
        return [p for p in parts if p]

    # OpenTelemetry
    otel_enabled: bool = Field(default=False, validation_alias="OTEL_ENABLED")
    otel_otlp_endpoint: str = Field(
        default="http://localhost:4318/v1/traces",
        validation_alias="OTEL_OTLP_ENDPOINT",
    )

    @property
    def is_production(self) -> bool:
        return self.app_env.strip().lower() == "production"

    @property
    def effective_log_format(self) -> str:
        if self.log_format is not None:
            return self.log_format
        return "json" if self.is_production else "text"

    @property
    def database_url(self) -> str:
        if self.database_url_override:
            return self.database_url_override
        url = URL.create(
            "postgresql+psycopg2",
            username=self.db_user,
            password=self.db_password,
            host=self.db_host,
            port=self.db_port,
            database=self.db_name,
            query={"sslmode": self.db_sslmode},
        )
        return url.render_as_string(hide_password=False)


settings = Settings()
