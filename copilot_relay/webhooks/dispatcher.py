"""Webhook event dispatcher — routes directory audit events to license calls.

Maps Entra ID audit operation types to Copilot license actions and applies
them, one call per affected user, in the order the targets appear.

Failure policy:
- Batch that is not a JSON array of envelopes -> MalformedBatchError (400)
- Envelope whose data is not an audit record -> logged, skipped
- Unmapped operation type -> logged, skipped
- License call failure -> LicenseAPIError propagates, rest of batch abandoned
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass

from pydantic import ValidationError

from copilot_relay.tools.github_copilot import LicenseSetter
from copilot_relay.webhooks.models import AuditRecord, EventEnvelope, LicenseAction

logger = logging.getLogger(__name__)

# Audit operation type -> license action
OPERATION_ACTIONS: dict[str, LicenseAction] = {
    "Add user": LicenseAction.ALLOCATE,
    "Delete user": LicenseAction.RELEASE,
}


class MalformedBatchError(Exception):
    """Raised when the request body is not a decodable envelope batch."""


@dataclass
class RelayResult:
    """Summary of one handled batch."""

    envelopes: int = 0
    skipped: int = 0
    license_calls: int = 0


def resolve_action(operation_type: str) -> LicenseAction | None:
    """Return the license action for an operation type, or None if unhandled."""
    return OPERATION_ACTIONS.get(operation_type)


def parse_batch(body: bytes | str) -> list[EventEnvelope]:
    """Decode a raw request body into envelopes.

    Only the envelope layer is validated here; each envelope's ``data`` is
    decoded separately by ``parse_audit_record``.
    """
    try:
        raw = json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise MalformedBatchError(f"Body is not valid JSON: {e}") from e

    # A JSON null body is an empty batch; null entries are empty envelopes
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise MalformedBatchError(
            f"Expected a JSON array of events, got {type(raw).__name__}"
        )

    try:
        return [EventEnvelope.model_validate({} if item is None else item) for item in raw]
    except ValidationError as e:
        raise MalformedBatchError(f"Invalid event envelope: {e}") from e


def parse_audit_record(envelope: EventEnvelope) -> AuditRecord | None:
    """Decode an envelope's payload, or return None if it is not an audit record."""
    try:
        return AuditRecord.model_validate(envelope.data)
    except ValidationError as e:
        logger.warning(
            "Error parsing event data for event %s: %s",
            envelope.id or "<no id>",
            e,
        )
        return None


class WebhookRelay:
    """Turns a batch of directory audit events into Copilot license calls."""

    def __init__(self, license_client: LicenseSetter) -> None:
        self._license_client = license_client

    async def handle(self, body: bytes | str) -> RelayResult:
        """Process one webhook request body.

        Raises:
            MalformedBatchError: body is not an array of event envelopes
            LicenseAPIError: a license call failed; nothing after it ran
        """
        envelopes = parse_batch(body)
        result = RelayResult(envelopes=len(envelopes))

        for envelope in envelopes:
            record = parse_audit_record(envelope)
            if record is None:
                result.skipped += 1
                continue

            action = resolve_action(record.operation_type)
            if action is None:
                logger.info("Unhandled operation type: %s", record.operation_type)
                result.skipped += 1
                continue

            for target in record.target_resources:
                if not target.is_user:
                    logger.debug(
                        "Skipping non-user target %s (type=%s)", target.id, target.type
                    )
                    continue
                await self._license_client.set_license(target.user_principal_name, action)
                result.license_calls += 1

        return result
