"""
KÜHL Merchandising Analytics Configuration

Pydantic settings with environment variable support for the database, the
spreadsheet import pipeline, the HTTP API and logging.
"""

from functools import lru_cache
from typing import Optional, List
from pydantic import Field, field_validator, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database connection, POSTGRES_* or a full DATABASE_URL"""

    model_config = SettingsConfigDict(env_prefix="POSTGRES_", populate_by_name=True)

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    db: str = Field(default="kuhl_analytics", description="Database name")
    user: str = Field(default="kuhl", description="Database user")
    password: SecretStr = Field(default="secure_password", description="Database password")
    echo: bool = Field(default=False, description="Echo SQL queries")
    create_tables: bool = Field(default=True, description="Create missing tables on startup")
    url: Optional[str] = Field(default=None, alias="DATABASE_URL", description="Database URL (overrides host/port)")

    @property
    def async_url(self) -> str:
        """Async database URL, DATABASE_URL wins over the POSTGRES_* parts"""
        if self.url:
            return self.url
        return f"postgresql+asyncpg://{self.user}:{self.password.get_secret_value()}@{self.host}:{self.port}/{self.db}"


class ImportSettings(BaseSettings):
    """Spreadsheet Import Configuration"""

    model_config = SettingsConfigDict(env_prefix="IMPORT_")

    data_dir: str = Field(default="./data", description="Directory holding the source workbooks")
    line_list_file: str = Field(default="line_list.xlsx", description="Line list workbook")
    sales_file: str = Field(default="sales.xlsx", description="Sales booking export")
    pricing_file: str = Field(default="pricebyseason.xlsx", description="Season price list")
    costs_file: str = Field(default="landed_cost.xlsx", description="Landed cost workbook")
    costs_sheet: str = Field(default="LDP Requests", description="Sheet holding landed cost requests")
    costs_header_offset: int = Field(default=10, description="Rows above the header in landed cost sheets")
    snapshot_path: str = Field(default="./data/snapshot", description="Parquet snapshot directory")

    # Chunking
    chunk_size: int = Field(default=1000, description="Default insert chunk size")
    sales_chunk_size: int = Field(default=5000, description="Insert chunk size for sales")
    inventory_chunk_size: int = Field(default=500, description="Insert chunk size for inventory")


class SecuritySettings(BaseSettings):
    """HTTP Security Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    # CORS
    cors_origins: List[str] = Field(
        default=["http://localhost:3000"],
        description="Allowed CORS origins"
    )
    max_upload_mb: int = Field(default=100, alias="MAX_UPLOAD_MB", description="Largest accepted workbook upload")


class MonitoringSettings(BaseSettings):
    """Logging Configuration"""

    model_config = SettingsConfigDict(env_prefix="")

    log_level: str = Field(default="INFO", alias="LOG_LEVEL", description="Logging level")
    log_format: str = Field(default="json", alias="LOG_FORMAT", description="Log format: json or text")

    @field_validator("log_format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        """Validate log format value"""
        if v.lower() not in ("json", "text"):
            raise ValueError("Log format must be 'json' or 'text'")
        return v.lower()


class Settings(BaseSettings):
    """Top-level settings; each subsystem reads its own section."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        populate_by_name=True,
    )

    # Application
    app_name: str = Field(default="kuhl-analytics", alias="APP_NAME", description="Application name")
    app_env: str = Field(default="development", alias="APP_ENV", description="Environment")

    # API Server
    api_host: str = Field(default="0.0.0.0", alias="API_HOST", description="API host")
    api_port: int = Field(default=8000, alias="API_PORT", description="API port")
    api_workers: int = Field(default=2, alias="API_WORKERS", description="API workers")

    # Version
    version: str = Field(default="1.0.0", description="Application version")

    # Subsystem configurations
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    imports: ImportSettings = Field(default_factory=ImportSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    monitoring: MonitoringSettings = Field(default_factory=MonitoringSettings)

    @field_validator("app_env")
    @classmethod
    def validate_env(cls, v: str) -> str:
        """Normalize and restrict APP_ENV"""
        allowed = ["development", "staging", "production", "testing"]
        if v.lower() not in allowed:
            raise ValueError(f"Environment must be one of: {allowed}")
        return v.lower()

    @property
    def is_production(self) -> bool:
        return self.app_env == "production"

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


@lru_cache()
def get_settings() -> Settings:
    """Settings are read from the environment once; tests call ``cache_clear()``."""
    return Settings()
