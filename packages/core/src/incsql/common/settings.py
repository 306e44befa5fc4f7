from typing import Optional
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

# Load environment variables from .env into os.environ
load_dotenv()


class Settings(BaseSettings):
    """Application configuration settings backed by environment variables."""

    datasource_url: Optional[str] = Field(
        default=None,
        validation_alias="INCSQL_DATASOURCE_URL",
        description="SQLAlchemy URL of the datasource partitions are scanned from."
    )
    default_schema: str = Field(
        default="public",
        validation_alias="INCSQL_DEFAULT_SCHEMA",
        description="Schema assumed for unqualified table names."
    )
    partition_config_path: str = Field(
        default="configs/partitions.yaml",
        validation_alias="INCSQL_PARTITION_CONFIG",
        description="Path to the YAML file describing partitioned tables."
    )

    parallel_scan_workers: int = Field(
        default=4,
        validation_alias="INCSQL_PARALLEL_WORKERS",
        description="Worker threads used to scan partitions ahead of the client in parallel mode."
    )

    catalog_backend: str = Field(
        default="memory",
        validation_alias="INCSQL_CATALOG_BACKEND",
        description="Partition catalog backend identifier ('memory' or 'sqlite')."
    )
    catalog_path: str = Field(
        default="data/partition_catalog.db",
        validation_alias="INCSQL_CATALOG_PATH",
        description="Database file for the sqlite partition catalog backend."
    )

    scan_breaker_fail_max: int = Field(
        default=5,
        validation_alias="INCSQL_SCAN_BREAKER_FAIL_MAX",
        description="Consecutive scan failures before the scan circuit breaker opens."
    )
    scan_breaker_reset_timeout_sec: int = Field(
        default=30,
        validation_alias="INCSQL_SCAN_BREAKER_RESET_SEC",
        description="Seconds the scan circuit breaker stays open before a trial scan."
    )

    log_level: str = Field(default="INFO", validation_alias="INCSQL_LOG_LEVEL")
    log_json: bool = Field(default=False, validation_alias="INCSQL_LOG_JSON")

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore"
    )

    def configure_env(self, env: str) -> None:
        """Loads environment-specific variables and reloads settings."""
        if not env:
            return

        load_dotenv(f".env.{env}", override=True)
        new_settings = Settings()
        self.__dict__.update(new_settings.__dict__)

settings = Settings()

# Configure logging during import
from incsql.common.logger import configure_logging
configure_logging(
    level=settings.log_level,
    json_format=settings.log_json
)
