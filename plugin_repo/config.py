"""Pipeline configuration with environment variable support."""

from pathlib import Path
from typing import Annotated

import orjson
from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict


class Settings(BaseSettings):
    """Pipeline configuration loaded from environment variables.

    Loads from environment (PLUGIN_REPO_*), .env file, or defaults.
    """

    model_config = SettingsConfigDict(
        env_prefix="PLUGIN_REPO_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # GitHub release settings
    github_api_url: str = "https://api.github.com"
    github_owner: str = "homebridge"
    github_repo: str = "plugin-repo"
    release_tag: str = "v1"
    github_token: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("PLUGIN_REPO_GITHUB_TOKEN", "GITHUB_TOKEN", "github_token"),
    )
    api_timeout: int = 30

    # Catalog and registry
    catalog_url: str = (
        "https://raw.githubusercontent.com/homebridge/verified/master/verified-plugins.json"
    )
    registry_url: str = "https://registry.npmjs.org"
    bootstrap_package: str = "homebridge"
    excluded_packages: Annotated[list[str], NoDecode] = Field(
        default_factory=lambda: ["homebridge-config-ui-x", "homebridge-music"]
    )

    # Bundling
    work_dir: Path = Path("work")
    npm_command: str = "npm"

    # Retention and statistics
    retained_versions: int = Field(default=2, ge=1)
    statistics_asset_name: str = "download-statistics.json"

    @field_validator("excluded_packages", mode="before")
    @classmethod
    def parse_excluded(cls, v: str | list[str] | None) -> list[str]:
        """Accept a comma separated string as well as a JSON list."""
        if v is None:
            return []
        if isinstance(v, str) and v.lstrip().startswith("["):
            return orjson.loads(v)
        if isinstance(v, str):
            return [name.strip() for name in v.split(",") if name.strip()]
        return v

    @field_validator("work_dir", mode="after")
    @classmethod
    def create_work_dir(cls, v: Path) -> Path:
        """Create the work directory if it doesn't exist."""
        v.mkdir(parents=True, exist_ok=True)
        return v.resolve()

    @property
    def token(self) -> str | None:
        """Plain GitHub token, or None when running unauthenticated."""
        return self.github_token.get_secret_value() if self.github_token else None
