from __future__ import annotations

from collections.abc import Callable
from typing import Any

from telephony.schemas import Party, SessionData
from telephony.signals import Signal


class Session:
    """Live state of one telephony session as seen by the owning extension.

    The session exclusively owns its party list. Updates replace top-level fields
    wholesale and always replace the whole party list: the platform sends the full
    current list with every notification.

    "My party" is the leg that belongs to the owning extension. Whenever its
    presence or status changes, the status signal fires once per update.
    """

    def __init__(self, data: SessionData, *, account_level: bool = False) -> None:
        self._data = data
        self._account_level = account_level
        self._status_changed: Signal[Session] = Signal("session status")
        self._party = self._find_my_party()

    @property
    def id(self) -> str:
        return self._data.id

    @property
    def extension_id(self) -> str | None:
        return self._data.extension_id

    @property
    def account_id(self) -> str | None:
        return self._data.account_id

    @property
    def data(self) -> SessionData:
        return self._data

    @property
    def parties(self) -> list[Party]:
        return list(self._data.parties)

    @property
    def party(self) -> Party | None:
        """The party of the owning extension, if it takes part in the session."""

        return self._party

    @property
    def status(self) -> str | None:
        return self._party.status.code if self._party else None

    def add_status_listener(self, listener: Callable[[Session], None]) -> Callable[[], None]:
        return self._status_changed.add_listener(listener)

    def apply_update(self, update: SessionData) -> None:
        before = self._status_key()
        self._merge(update)
        if self._status_key() != before:
            self._status_changed.emit(self)

    def restore(self, snapshot: SessionData) -> None:
        """Merge snapshot state without notifying status listeners."""

        self._merge(snapshot)

    def to_snapshot(self) -> dict[str, Any]:
        return self._data.to_wire()

    def _merge(self, update: SessionData) -> None:
        for name in update.model_fields_set:
            value = getattr(update, name)
            if name == "parties":
                value = list(value)
            setattr(self._data, name, value)
        for key, value in (update.model_extra or {}).items():
            setattr(self._data, key, value)
        self._party = self._find_my_party()

    def _status_key(self) -> tuple[str, str | None] | None:
        if self._party is None:
            return None
        return self._party.status.code, self._party.status.reason

    def _find_my_party(self) -> Party | None:
        extension_id = self._data.extension_id
        if not extension_id:
            return None
        for party in self._data.parties:
            if party.extension_id == extension_id:
                return party
        if self._account_level and self._data.account_id:
            for party in self._data.parties:
                if party.account_id == self._data.account_id and party.extension_id:
                    return party
        return None

    def __repr__(self) -> str:
        return f"Session(id={self.id!r}, status={self.status!r}, parties={len(self._data.parties)})"
