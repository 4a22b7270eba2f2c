"""FastAPI routes exposing the session registry.

This module provides:
- Webhook receiver for `/telephony/sessions` notifications.
- Read access to tracked sessions, devices and registry readiness.
- Call-out and conference origination.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Request, Response

from api.dependencies import get_registry
from api.schemas import CallOutRequest, NotificationAck, RegistryStatusResponse
from telephony.registry import SessionRegistry
from telephony.schemas import CallOutTarget

LOGGER = logging.getLogger(__name__)

router = APIRouter(prefix="/telephony", tags=["telephony"])


@router.post("/notifications", response_model=NotificationAck)
async def receive_notification(
    request: Request,
    response: Response,
    validation_token: str | None = Header(default=None, alias="Validation-Token"),
    registry: SessionRegistry = Depends(get_registry),
) -> NotificationAck:
    # Subscription handshake: the platform expects its token echoed back.
    if validation_token:
        response.headers["Validation-Token"] = validation_token
        return NotificationAck(status="validated")

    try:
        payload = await request.json()
    except ValueError as exc:
        raise HTTPException(status_code=400, detail="Notification body must be JSON.") from exc

    if isinstance(payload, dict):
        registry.ingest(payload)
    return NotificationAck()


@router.get("/status", response_model=RegistryStatusResponse)
async def registry_status(registry: SessionRegistry = Depends(get_registry)) -> RegistryStatusResponse:
    return RegistryStatusResponse(
        ready=registry.ready,
        account_id=registry.account_id,
        extension_id=registry.extension_id,
        session_count=len(registry.sessions),
        device_count=len(registry.devices),
    )


@router.get("/sessions")
async def list_sessions(registry: SessionRegistry = Depends(get_registry)) -> list[dict[str, Any]]:
    return registry.snapshot()


@router.get("/sessions/{session_id}")
async def get_session(
    session_id: str,
    registry: SessionRegistry = Depends(get_registry),
) -> dict[str, Any]:
    session = registry.sessions_map.get(session_id)
    if session is None:
        raise HTTPException(status_code=404, detail="Session not found.")
    return session.to_snapshot()


@router.post("/call-out")
async def call_out(
    payload: CallOutRequest,
    registry: SessionRegistry = Depends(get_registry),
) -> dict[str, Any]:
    target = CallOutTarget(
        phone_number=payload.phone_number,
        extension_number=payload.extension_number,
    )
    session = await registry.create_call(payload.device_id, target)
    LOGGER.info("Call-out from device %s created session %s", payload.device_id, session.id)
    return session.to_snapshot()


@router.post("/conference")
async def create_conference(registry: SessionRegistry = Depends(get_registry)) -> dict[str, Any]:
    session = await registry.create_conference()
    return session.to_snapshot()


@router.get("/devices")
async def list_devices(registry: SessionRegistry = Depends(get_registry)) -> list[dict[str, Any]]:
    return [device.to_wire() for device in registry.devices]


@router.post("/devices/refresh")
async def refresh_devices(registry: SessionRegistry = Depends(get_registry)) -> list[dict[str, Any]]:
    devices = await registry.refresh_devices()
    return [device.to_wire() for device in devices]
