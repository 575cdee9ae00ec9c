"""Payload builders and fakes shared by the relay tests."""

from __future__ import annotations

import json
from typing import Any

import httpx

from copilot_relay.tools.github_copilot import LicenseAPIError
from copilot_relay.webhooks.models import LicenseAction


def make_envelope(
    operation_type: str = "Add user",
    targets: list[dict[str, Any]] | None = None,
    event_id: str = "evt-1",
) -> dict[str, Any]:
    """Build one Event Grid envelope carrying an Entra ID audit record."""
    if targets is None:
        targets = [{"id": "u-1", "type": "User", "userPrincipalName": "alice"}]
    return {
        "id": event_id,
        "eventType": "Microsoft.Entra.AuditLog",
        "subject": "directory/users",
        "eventTime": "2024-05-01T12:00:00Z",
        "dataVersion": "1.0",
        "metadataVersion": "1",
        "data": {
            "category": "UserManagement",
            "initiatedBy": {"user": {"userPrincipalName": "admin@example.com"}},
            "operationType": operation_type,
            "result": "success",
            "targetResources": targets,
        },
    }


def user_target(name: str, target_type: str = "User") -> dict[str, Any]:
    return {"id": f"id-{name}", "type": target_type, "userPrincipalName": name}


def make_body(*envelopes: dict[str, Any]) -> bytes:
    return json.dumps(list(envelopes)).encode()


class RecordingLicenseClient:
    """In-memory license client that records calls and can fail on demand."""

    mode = "fake"

    def __init__(self, fail_for: set[str] | None = None) -> None:
        self.calls: list[tuple[str, LicenseAction]] = []
        self.fail_for = fail_for or set()
        self.closed = False

    async def set_license(self, principal: str, action: LicenseAction) -> None:
        self.calls.append((principal, action))
        if principal in self.fail_for:
            raise LicenseAPIError(
                "GitHub API request failed with status: 500 Internal Server Error",
                status_code=500,
            )

    async def aclose(self) -> None:
        self.closed = True


class GitHubStub:
    """httpx MockTransport handler that records requests to the GitHub API."""

    def __init__(self, status_code: int = 200) -> None:
        self.status_code = status_code
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return httpx.Response(self.status_code, json={})

    def bodies(self) -> list[dict[str, Any]]:
        return [json.loads(r.content) for r in self.requests]
