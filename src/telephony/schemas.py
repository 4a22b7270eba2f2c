"""Pydantic schemas for telephony platform payloads.

Field names are snake_case in Python and camelCase on the wire. Every model keeps
unknown platform fields verbatim so that snapshots round-trip without loss.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from telephony.errors import InvalidCallTargetError

SESSIONS_EVENT_TOPIC = "/telephony/sessions"

# Disconnect reason used when another device picks the call up. The call moves,
# it does not end.
PICKUP_REASON = "Pickup"


class PartyStatusCode(str, Enum):
    SETUP = "Setup"
    PROCEEDING = "Proceeding"
    ANSWERED = "Answered"
    DISCONNECTED = "Disconnected"
    GONE = "Gone"
    PARKED = "Parked"
    HOLD = "Hold"
    VOICEMAIL = "VoiceMail"
    FAX_RECEIVE = "FaxReceive"
    VOICEMAIL_SCREENING = "VoiceMailScreening"


class PlatformModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        coerce_numbers_to_str=True,
    )

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class PartyStatus(PlatformModel):
    code: str = PartyStatusCode.SETUP.value
    reason: str | None = None


class Party(PlatformModel):
    """One leg of a telephony session."""

    id: str | None = None
    extension_id: str | None = None
    account_id: str | None = None
    direction: str | None = None
    status: PartyStatus = Field(default_factory=PartyStatus)
    from_: dict[str, Any] | None = Field(default=None, alias="from")
    to: dict[str, Any] | None = None
    muted: bool = False
    stand_alone: bool = False
    park: dict[str, Any] | None = None
    owner: dict[str, Any] | None = None

    @property
    def disconnected(self) -> bool:
        return self.status.code == PartyStatusCode.DISCONNECTED.value


class SessionData(PlatformModel):
    """Full or partial state of one telephony session."""

    id: str
    extension_id: str | None = None
    account_id: str | None = None
    parties: list[Party] = Field(default_factory=list)
    server_id: str | None = None
    sequence: int | None = None
    origin: dict[str, Any] | None = None
    creation_time: str | None = None
    voice_call_token: str | None = None


class SessionMessage(BaseModel):
    """A notification message as delivered by the subscription feed."""

    event: str = ""
    body: dict[str, Any] = Field(default_factory=dict)

    @property
    def is_session_event(self) -> bool:
        return SESSIONS_EVENT_TOPIC in self.event


class ExtensionAccount(PlatformModel):
    id: str


class Extension(PlatformModel):
    """The extension the registry acts for."""

    id: str
    account: ExtensionAccount
    extension_number: str | None = None
    name: str | None = None
    status: str | None = None
    type: str | None = None


class Device(PlatformModel):
    id: str
    name: str | None = None
    type: str | None = None
    status: str | None = None
    serial: str | None = None
    computer_name: str | None = None


class CallOutTarget(BaseModel):
    """Destination of an outbound call."""

    phone_number: str | None = None
    extension_number: str | None = None

    def to_wire(self) -> dict[str, str]:
        if bool(self.phone_number) == bool(self.extension_number):
            raise InvalidCallTargetError()
        if self.phone_number:
            return {"phoneNumber": self.phone_number}
        return {"extensionNumber": self.extension_number}
