"""Shared fixtures for the Copilot license relay test suite."""

from __future__ import annotations

import httpx
import pytest

from copilot_relay.config import Settings
from copilot_relay.tools.github_copilot import CopilotLicenseClient
from tests.helpers import GitHubStub, RecordingLicenseClient


@pytest.fixture()
def settings() -> Settings:
    """Org-seats settings that never read the real environment's .env file."""
    return Settings(
        _env_file=None,
        GITHUB_API_TOKEN="test-token",
        github_api_url="https://api.github.test",
        github_org="acme",
    )


@pytest.fixture()
def recording_client() -> RecordingLicenseClient:
    return RecordingLicenseClient()


@pytest.fixture()
def github_stub() -> GitHubStub:
    return GitHubStub()


@pytest.fixture()
def license_client(settings: Settings, github_stub: GitHubStub) -> CopilotLicenseClient:
    http = httpx.AsyncClient(
        base_url=settings.github_api_url, transport=httpx.MockTransport(github_stub)
    )
    return CopilotLicenseClient(settings, http_client=http)
