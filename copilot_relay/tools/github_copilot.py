"""GitHub Copilot license tool.

Allocates or releases a Copilot seat for one user. Two request shapes are
supported, selected by ``Settings.license_api_mode``:

- ``org_seats``: organisation billing endpoint,
  POST/DELETE /orgs/{org}/copilot/billing/selected_users
- ``user_license``: per-user endpoint, POST /user/copilot-license

Security contract:
- Token is sent via Authorization header, never in the URL or logs
- Configuration is injected at construction; the environment is not read here
- No retries: any failure is surfaced to the caller as LicenseAPIError

Success statuses come from ``Settings.license_api_success_statuses`` (default
200 and 201, since GitHub answers 201 to a seat POST). Set it to ``[200]`` to
treat anything but 200 as a failure.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx

from copilot_relay.config import Settings
from copilot_relay.webhooks.models import LicenseAction

logger = logging.getLogger(__name__)

GITHUB_JSON_MEDIA_TYPE = "application/vnd.github+json"

_ORG_SEATS_PATH = "/orgs/{org}/copilot/billing/selected_users"
_USER_LICENSE_PATH = "/user/copilot-license"


class LicenseAPIError(Exception):
    """Raised when the Copilot billing API call does not succeed."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class LicenseSetter(Protocol):
    """Anything that can apply a license action to a principal."""

    async def set_license(self, principal: str, action: LicenseAction) -> None: ...


@dataclass(frozen=True)
class LicenseRequest:
    """Fully-built outbound request, before it is sent."""

    method: str
    path: str
    body: dict[str, Any]
    headers: dict[str, str] = field(default_factory=dict)


def _coerce_action(action: LicenseAction | str) -> LicenseAction:
    try:
        return LicenseAction(action)
    except ValueError:
        raise ValueError(f"Invalid action: {action}") from None


def build_org_seats_request(
    org: str, username: str, action: LicenseAction | str, api_version: str
) -> LicenseRequest:
    """Build the organisation selected-users request for one username."""
    action = _coerce_action(action)
    method = "POST" if action is LicenseAction.ALLOCATE else "DELETE"
    return LicenseRequest(
        method=method,
        path=_ORG_SEATS_PATH.format(org=org),
        body={"selected_usernames": [username]},
        headers={
            "Accept": GITHUB_JSON_MEDIA_TYPE,
            "X-GitHub-Api-Version": api_version,
        },
    )


def build_user_license_request(
    user_id: str, action: LicenseAction | str
) -> LicenseRequest:
    """Build the per-user license request."""
    action = _coerce_action(action)
    return LicenseRequest(
        method="POST",
        path=_USER_LICENSE_PATH,
        body={"user_id": user_id, "action": action.value},
    )


class CopilotLicenseClient:
    """Async client for the Copilot license endpoints.

    One ``httpx.AsyncClient`` is reused for every call; close it with
    ``aclose()`` when the application shuts down.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if settings.license_api_mode == "org_seats" and not settings.github_org:
            raise ValueError("GITHUB_ORG must be set when LICENSE_API_MODE=org_seats")

        self._settings = settings
        self._success_statuses = frozenset(settings.license_api_success_statuses)
        if http_client is None:
            http_client = httpx.AsyncClient(base_url=settings.github_api_url)
        self._http = http_client

    @property
    def mode(self) -> str:
        return self._settings.license_api_mode

    def build_request(self, principal: str, action: LicenseAction | str) -> LicenseRequest:
        """Build the request for the configured contract."""
        if self._settings.license_api_mode == "org_seats":
            return build_org_seats_request(
                self._settings.github_org,
                principal,
                action,
                self._settings.github_api_version,
            )
        return build_user_license_request(principal, action)

    async def set_license(self, principal: str, action: LicenseAction | str) -> None:
        """Allocate or release a Copilot license for ``principal``.

        Raises:
            ValueError: action is not a LicenseAction
            LicenseAPIError: transport failure or non-success status
        """
        action = _coerce_action(action)
        request = self.build_request(principal, action)
        headers = {
            "Authorization": f"Bearer {self._settings.github_token}",
            "Content-Type": "application/json",
            **request.headers,
        }

        logger.info(
            "Copilot license %s for %s via %s %s",
            action.value,
            principal,
            request.method,
            request.path,
        )

        try:
            # httpx.delete() takes no body, so go through request()
            response = await self._http.request(
                request.method,
                request.path,
                json=request.body,
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise LicenseAPIError(
                f"GitHub API request failed: {type(e).__name__}: {e}"
            ) from e

        if response.status_code not in self._success_statuses:
            raise LicenseAPIError(
                "GitHub API request failed with status: "
                f"{response.status_code} {response.reason_phrase}",
                status_code=response.status_code,
            )

    async def aclose(self) -> None:
        await self._http.aclose()
