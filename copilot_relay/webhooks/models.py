"""Webhook payload models — Event Grid envelopes and Entra ID audit records.

Envelopes are decoded first; the embedded ``data`` stays opaque until the
relay decodes it as an ``AuditRecord``, so one bad payload never rejects
the rest of the batch.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Target resource type that is eligible for a license call
USER_RESOURCE_TYPE = "User"


class LicenseAction(str, Enum):
    """License operation requested from the Copilot billing API."""

    ALLOCATE = "allocate"
    RELEASE = "release"


class _Payload(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore", frozen=True)

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, values: Any) -> Any:
        # Graph sends explicit nulls (e.g. initiatedBy.user for app-initiated
        # changes, userPrincipalName on Group targets); treat them as absent.
        if isinstance(values, dict):
            return {k: v for k, v in values.items() if v is not None}
        return values


class EventEnvelope(_Payload):
    """Event Grid envelope wrapping one directory notification."""

    id: str = ""
    event_type: str = Field(default="", alias="eventType")
    subject: str = ""
    event_time: str = Field(default="", alias="eventTime")
    data: Any = None
    data_version: str = Field(default="", alias="dataVersion")
    metadata_version: str = Field(default="", alias="metadataVersion")


class InitiatorUser(_Payload):
    user_principal_name: str = Field(default="", alias="userPrincipalName")


class Initiator(_Payload):
    """Who triggered the directory operation."""

    user: InitiatorUser = Field(default_factory=InitiatorUser)


class TargetResource(_Payload):
    """One principal affected by the directory operation."""

    id: str = ""
    type: str = ""
    user_principal_name: str = Field(default="", alias="userPrincipalName")

    @property
    def is_user(self) -> bool:
        return self.type == USER_RESOURCE_TYPE


class AuditRecord(_Payload):
    """Directory audit-log entry carried in an envelope's ``data``."""

    category: str = ""
    initiated_by: Initiator = Field(default_factory=Initiator, alias="initiatedBy")
    operation_type: str = Field(default="", alias="operationType")
    result: str = ""
    target_resources: list[TargetResource] = Field(
        default_factory=list, alias="targetResources"
    )

    @field_validator("target_resources", mode="before")
    @classmethod
    def _null_targets_as_empty(cls, value: Any) -> Any:
        if isinstance(value, list):
            return [{} if item is None else item for item in value]
        return value
