"""Copilot license relay configuration."""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings

LicenseApiMode = Literal["org_seats", "user_license"]


class Settings(BaseSettings):
    """Environment-driven settings for the webhook relay and license client."""

    # GitHub credentials and endpoint
    github_token: str = Field(
        default="",
        validation_alias=AliasChoices("GITHUB_API_TOKEN", "GITHUB_TOKEN"),
    )
    github_api_url: str = "https://api.github.com"
    github_org: str = ""
    github_api_version: str = "2022-11-28"

    # Which Copilot license contract to call (see tools/github_copilot.py)
    license_api_mode: LicenseApiMode = "org_seats"
    license_api_success_statuses: list[int] = [200, 201]

    # Inbound webhook server
    webhook_path: str = "/webhook"
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "extra": "ignore", "populate_by_name": True}


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings, loaded once from the environment."""
    return Settings()
