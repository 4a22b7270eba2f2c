"""Shared FastAPI dependencies.

Separated to avoid circular imports between the app module and the routes.
"""

from __future__ import annotations

from functools import lru_cache

from config.settings import get_settings
from integrations.platform_client import PlatformClient
from telephony.errors import RegistryNotConfiguredError
from telephony.registry import SessionRegistry


@lru_cache(maxsize=1)
def get_platform_client() -> PlatformClient:
    if not get_settings().platform_access_token:
        raise RegistryNotConfiguredError()
    return PlatformClient()


@lru_cache(maxsize=1)
def _registry_factory() -> SessionRegistry:
    settings = get_settings()
    return SessionRegistry(
        get_platform_client(),
        account_level=settings.account_level,
        preload_sessions=settings.preload_sessions,
        preload_devices=settings.preload_devices,
    )


def get_registry() -> SessionRegistry:
    return _registry_factory()
