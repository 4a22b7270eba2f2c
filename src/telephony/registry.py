"""Session registry kept in sync with the telephony platform.

State arrives through two channels: REST fetches (bootstrap preload and session
origination) and the notification feed (`ingest`). Both converge on the same
Session merge and eviction logic. All reconciliation is synchronous; only the
REST calls suspend.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable, Iterable, Mapping
from types import MappingProxyType
from typing import Any

from integrations.platform_client import PlatformTransport
from telephony.bootstrap import Initializer
from telephony.errors import PlatformRequestError
from telephony.party import normalize_parties
from telephony.schemas import (
    PICKUP_REASON,
    CallOutTarget,
    Device,
    Extension,
    SessionData,
    SessionMessage,
)
from telephony.session import Session
from telephony.signals import Signal

LOGGER = logging.getLogger(__name__)

PRESENCE_PARAMS = {"detailedTelephonyState": "true", "sipData": "true"}

# Errors that mean "no data" for a best-effort fetch.
FETCH_ERRORS = (PlatformRequestError, KeyError, TypeError, ValueError)

# Notification-only fields that are not part of the session state.
_EVENT_ONLY_FIELDS = ("eventTime", "telephonySessionId", "sessionId")


def _list_field(payload: Any, key: str) -> list[Any]:
    """Return payload[key] as a list, or an empty list when the shape is unexpected."""

    if not isinstance(payload, Mapping):
        return []
    value = payload.get(key)
    return list(value) if isinstance(value, list) else []


class SessionRegistry:
    """Tracks the telephony sessions of an extension (or a whole account)."""

    def __init__(
        self,
        platform: PlatformTransport,
        *,
        account_level: bool = False,
        preload_sessions: bool = True,
        preload_devices: bool = True,
        extension: Extension | None = None,
    ) -> None:
        self._platform = platform
        self._account_level = account_level
        self._preload_sessions = preload_sessions
        self._preload_devices = preload_devices
        self._extension = extension
        self._sessions: dict[str, Session] = {}
        # Registry-side status listeners, removed again on eviction.
        self._detach: dict[str, Callable[[], None]] = {}
        self._devices: list[Device] = []
        self._new_session: Signal[Session] = Signal("new session")
        self._initializer = Initializer(self._bootstrap)

    # -- accessors ---------------------------------------------------------

    @property
    def sessions(self) -> list[Session]:
        return list(self._sessions.values())

    @property
    def sessions_map(self) -> Mapping[str, Session]:
        return MappingProxyType(self._sessions)

    @property
    def devices(self) -> list[Device]:
        return list(self._devices)

    @property
    def ready(self) -> bool:
        return self._initializer.ready

    @property
    def extension(self) -> Extension | None:
        return self._extension

    @property
    def extension_id(self) -> str | None:
        return self._extension.id if self._extension else None

    @property
    def account_id(self) -> str | None:
        return self._extension.account.id if self._extension else None

    def add_new_session_listener(self, listener: Callable[[Session], None]) -> Callable[[], None]:
        return self._new_session.add_listener(listener)

    def add_ready_listener(self, listener: Callable[[], None]) -> Callable[[], None]:
        return self._initializer.ready_signal.add_listener(lambda _: listener())

    # -- bootstrap ---------------------------------------------------------

    async def initialize(self) -> None:
        await self._initializer.initialize()

    async def _bootstrap(self) -> None:
        if self._extension is None:
            await self._load_current_extension()
        if self._preload_sessions:
            await self.load_sessions(await self._load_active_calls())
        if self._preload_devices:
            await self._load_devices()
        LOGGER.info(
            "Session registry ready: extension=%s sessions=%d devices=%d",
            self.extension_id,
            len(self._sessions),
            len(self._devices),
        )

    async def _load_current_extension(self) -> None:
        try:
            payload = await self._platform.get("/account/~/extension/~")
            self._extension = Extension.model_validate(payload)
        except FETCH_ERRORS as exc:
            LOGGER.error("Fetch current extension failed: %s", exc)

    async def _load_active_calls(self) -> list[Any]:
        path = "/account/~/presence" if self._account_level else "/account/~/extension/~/presence"
        try:
            payload = await self._platform.get(path, params=dict(PRESENCE_PARAMS))
        except FETCH_ERRORS as exc:
            LOGGER.error("Fetch presence failed: %s", exc)
            return []
        if self._account_level:
            active_calls: list[Any] = []
            for presence in _list_field(payload, "records"):
                active_calls.extend(_list_field(presence, "activeCalls"))
            return active_calls
        return _list_field(payload, "activeCalls")

    async def load_sessions(self, active_calls: Iterable[Mapping[str, Any]]) -> None:
        """Fetch and register the full state of each active call.

        Each fetch is isolated: one failing call is logged and does not discard
        the sessions that loaded successfully.
        """

        session_ids = [
            str(call["telephonySessionId"])
            for call in active_calls
            if isinstance(call, Mapping) and call.get("telephonySessionId")
        ]
        if not session_ids:
            return

        results = await asyncio.gather(
            *(self._load_session(session_id) for session_id in session_ids),
            return_exceptions=True,
        )
        for session_id, result in zip(session_ids, results):
            if isinstance(result, BaseException):
                LOGGER.error("Load session %s failed: %s", session_id, result)

    async def _load_session(self, session_id: str) -> None:
        payload = await self._platform.get(f"/account/~/telephony/sessions/{session_id}")
        data = self._session_data({**payload, "id": session_id})
        if session_id in self._sessions:
            # A notification got there first and is at least as recent.
            LOGGER.debug("Session %s already tracked; keeping notified state", session_id)
            return
        self._insert(Session(data, account_level=self._account_level))

    async def _load_devices(self) -> None:
        try:
            payload = await self._platform.get("/account/~/extension/~/device")
            if not isinstance(payload, Mapping):
                raise TypeError(f"unexpected device payload {type(payload).__name__}")
            devices = [Device.model_validate(record) for record in _list_field(payload, "records")]
        except FETCH_ERRORS as exc:
            LOGGER.error("Fetch devices failed: %s", exc)
            return
        self._devices = devices

    async def refresh_devices(self) -> list[Device]:
        await self._load_devices()
        return self.devices

    # -- notification ingestion ---------------------------------------------

    def ingest(self, message: SessionMessage | Mapping[str, Any]) -> None:
        """Apply one notification message to the registry.

        Messages on other topics and bodies without a session id are ignored.
        """

        if not isinstance(message, SessionMessage):
            try:
                message = SessionMessage.model_validate(message)
            except ValueError:
                LOGGER.debug("Discarding malformed notification")
                return
        if not message.is_session_event:
            return

        body = dict(message.body)
        session_id = body.get("telephonySessionId")
        if not session_id:
            return
        for key in _EVENT_ONLY_FIELDS:
            body.pop(key, None)
        body["id"] = str(session_id)
        try:
            data = self._session_data(body)
        except ValueError:
            LOGGER.debug("Discarding malformed notification for session %s", session_id)
            return

        existing = self._sessions.get(data.id)
        if existing is None:
            if all(party.disconnected for party in data.parties):
                LOGGER.debug("Discarding session %s that ended before it was tracked", data.id)
                return
            session = Session(data, account_level=self._account_level)
            self._insert(session)
            if session.party is not None:
                self._new_session.emit(session)
            return

        had_party = existing.party is not None
        existing.apply_update(data)
        # The same update may already have evicted the session.
        if not had_party and existing.party is not None and self._sessions.get(existing.id) is existing:
            self._new_session.emit(existing)

    # -- origination -------------------------------------------------------

    async def create_call(self, device_id: str, target: CallOutTarget) -> Session:
        payload = await self._platform.post(
            "/account/~/telephony/call-out",
            {"from": {"deviceId": device_id}, "to": target.to_wire()},
        )
        return self._insert_created(payload)

    async def create_conference(self) -> Session:
        """Create an empty conference session.

        The conference has no parties until the host joins with the session's
        voice call token.
        """

        payload = await self._platform.post("/account/~/telephony/conference", {})
        return self._insert_created(payload)

    def _insert_created(self, payload: Any) -> Session:
        try:
            data = self._session_data(payload["session"])
        except FETCH_ERRORS as exc:
            raise PlatformRequestError("Platform returned no session data") from exc
        session = Session(data, account_level=self._account_level)
        self._insert(session)
        return session

    # -- snapshot / restore --------------------------------------------------

    def snapshot(self) -> list[dict[str, Any]]:
        return [session.to_snapshot() for session in self._sessions.values()]

    def restore(self, snapshots: Iterable[SessionData | Mapping[str, Any]]) -> None:
        """Replace the registry contents with the given session snapshots.

        Sessions that already exist are updated in place, so their listeners stay
        attached. Sessions missing from the snapshots are dropped.
        """

        # Validate everything first so a bad snapshot leaves the registry untouched.
        restored = [
            self._session_data(item.to_wire() if isinstance(item, SessionData) else item)
            for item in snapshots
        ]

        previous = self._sessions
        previous_detach = self._detach
        self._sessions = {}
        self._detach = {}

        for data in restored:
            session = previous.pop(data.id, None)
            if session is None:
                self._insert(Session(data, account_level=self._account_level))
                continue
            session.restore(data)
            self._sessions[data.id] = session
            detach = previous_detach.pop(data.id, None)
            if detach is None:
                detach = session.add_status_listener(self._on_session_status)
            self._detach[data.id] = detach

        for session_id, detach in previous_detach.items():
            detach()
            LOGGER.info("Session %s dropped by restore", session_id)

    # -- internals ---------------------------------------------------------

    def _session_data(self, payload: Mapping[str, Any]) -> SessionData:
        body = dict(payload)
        body["extensionId"] = self.extension_id
        body["accountId"] = self.account_id
        # Parties are only replaced when the payload carries them.
        if "parties" in body:
            body["parties"] = normalize_parties(body["parties"])
        return SessionData.model_validate(body)

    def _insert(self, session: Session) -> None:
        old_detach = self._detach.pop(session.id, None)
        if old_detach is not None:
            old_detach()
        self._sessions[session.id] = session
        self._detach[session.id] = session.add_status_listener(self._on_session_status)
        LOGGER.info("Tracking session %s (status=%s)", session.id, session.status)

    def _on_session_status(self, session: Session) -> None:
        party = session.party
        if party is None or not party.disconnected:
            return
        if party.status.reason == PICKUP_REASON:
            return
        if self._sessions.get(session.id) is not session:
            return
        del self._sessions[session.id]
        detach = self._detach.pop(session.id, None)
        if detach is not None:
            detach()
        LOGGER.info("Session %s ended (%s)", session.id, party.status.reason)

