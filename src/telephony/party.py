from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from telephony.schemas import Party, PartyStatusCode

_ID_FIELDS = ("id", "extensionId", "accountId")
_MAPPING_FIELDS = ("from", "to", "park", "owner")
_FLAG_FIELDS = ("muted", "standAlone")


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _normalize_status(raw: Any) -> dict[str, Any]:
    status = dict(raw) if isinstance(raw, Mapping) else {}
    status["code"] = _optional_str(status.get("code")) or PartyStatusCode.SETUP.value
    status["reason"] = _optional_str(status.get("reason"))
    return status


def normalize_party(raw: Any) -> Party:
    """Map a raw party record onto the canonical Party shape.

    Never raises: missing optional fields get defaults, ids become strings, the
    owner's identity is copied onto the party when the party lacks its own, and
    unknown fields are kept as they are.
    """

    if isinstance(raw, Party):
        raw = raw.to_wire()
    if not isinstance(raw, Mapping):
        return Party()

    data = dict(raw)
    owner = data.get("owner")
    if isinstance(owner, Mapping):
        for key in ("extensionId", "accountId"):
            if data.get(key) is None and owner.get(key) is not None:
                data[key] = owner[key]

    for key in _ID_FIELDS:
        data[key] = _optional_str(data.get(key))
    data["direction"] = _optional_str(data.get("direction"))
    data["status"] = _normalize_status(data.get("status"))
    for key in _MAPPING_FIELDS:
        if not isinstance(data.get(key), Mapping):
            data[key] = None
    for key in _FLAG_FIELDS:
        data[key] = bool(data.get(key))

    return Party.model_validate(data)


def normalize_parties(raw_parties: Any) -> list[Party]:
    if not isinstance(raw_parties, (list, tuple)):
        return []
    return [normalize_party(raw) for raw in raw_parties]
