from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_API_KEY = "change-me"


class Secrets(BaseSettings):
    """Secrets configuration, loaded from the environment or a secrets management service."""

    model_config = SettingsConfigDict(
        env_prefix="MEDIAKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    api_key: str = Field(default=DEFAULT_API_KEY, description="Bearer key accepted by the upload endpoints.")

    @classmethod
    def from_settings(cls, settings: "Settings") -> "Secrets":
        return cls()


class Settings(BaseSettings):
    """Centralised runtime configuration for the media service."""

    model_config = SettingsConfigDict(
        env_prefix="MEDIAKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "mediakit"
    environment: str = Field(default="development", description="Deployment environment label.")
    version: str = Field(default="0.1.0", description="API version for metadata and OpenAPI.")
    log_level: str = Field(default="info")

    storage_backend: Literal["local", "s3"] = Field(default="local", description="Active storage implementation.")
    local_storage_base_path: Path = Field(
        default_factory=lambda: Path("storage"),
        description="Root directory for the filesystem storage backend.",
    )
    storage_external_url: Optional[str] = Field(
        default=None,
        description="Public base URL that stored keys are appended to.",
    )
    s3_region: Optional[str] = None
    s3_bucket: Optional[str] = None
    s3_endpoint_url: Optional[str] = None

    ipfs_gateway_url: str = Field(
        default="https://ipfs.io",
        description="Gateway that ipfs:// and ipns:// references are rewritten to.",
    )

    scratch_dir: Path = Field(
        default_factory=lambda: Path("/tmp/mediakit"),
        description="Scratch directory for video transcode input and output files.",
    )
    sweep_stale_seconds: int = Field(default=2 * 60, ge=1, description="Age after which scratch files are swept.")
    enable_sweeper: bool = Field(default=True, description="Run the retention sweeper inside the API process.")

    max_upload_size_bytes: int = Field(default=5 * 1024 * 1024, description="Hard limit for upload bodies.")
    fetch_max_body_bytes: int = Field(default=3 * 1024 * 1024, description="Cap for remote avatar downloads.")
    fetch_timeout_seconds: float = Field(default=30.0, description="Timeout for outbound avatar requests.")

    secrets: Secrets = Field(default_factory=Secrets, description="Holds sensitive configuration.")

    @property
    def environment_lower(self) -> str:
        return self.environment.lower()

    @property
    def is_dev(self) -> bool:
        return self.environment_lower in {"development", "dev"}


@lru_cache()
def get_settings() -> Settings:
    load_dotenv(".env", override=False)

    _ENV_ALIAS_MAP = {
        "MEDIAKIT_ENV": "MEDIAKIT_ENVIRONMENT",
        "MEDIAKIT_BUCKET": "MEDIAKIT_S3_BUCKET",
        "MEDIAKIT_IPFS_GATEWAY": "MEDIAKIT_IPFS_GATEWAY_URL",
    }

    for source, target in _ENV_ALIAS_MAP.items():
        value = os.getenv(source)
        if value:
            os.environ[target] = value

    settings = Settings()

    secrets = Secrets.from_settings(settings)

    if settings.environment_lower == "production" and secrets.api_key == DEFAULT_API_KEY:
        raise ValueError("Production environment must have a non-default API key.")

    settings.secrets = secrets
    return settings


__all__ = ["Settings", "Secrets", "get_settings"]
