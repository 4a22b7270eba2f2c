"""REST client for the telephony platform."""

from __future__ import annotations

import logging
from typing import Any, Protocol

import httpx

from config.settings import get_settings
from telephony.errors import PlatformRequestError

LOGGER = logging.getLogger(__name__)

API_PREFIX = "/restapi/v1.0"


class PlatformTransport(Protocol):
    """What the session registry needs from the platform connection."""

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:  # pragma: no cover - protocol stub
        ...

    async def post(self, path: str, body: dict[str, Any] | None = None) -> Any:  # pragma: no cover - protocol stub
        ...


class PlatformClient:
    """Authenticated JSON client on top of a shared httpx.AsyncClient.

    Any transport, HTTP status or JSON decoding failure is raised as
    PlatformRequestError.
    """

    def __init__(
        self,
        *,
        server_url: str | None = None,
        access_token: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        settings = get_settings()
        server_url = (server_url or settings.platform_server_url).rstrip("/")
        access_token = access_token or settings.platform_access_token
        if not access_token:
            raise ValueError("Telephony platform access token must be configured.")

        self._client = httpx.AsyncClient(
            base_url=f"{server_url}{API_PREFIX}",
            headers={
                "Authorization": f"Bearer {access_token}",
                "Accept": "application/json",
            },
            timeout=timeout or settings.platform_request_timeout,
            transport=transport,
        )

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, body: dict[str, Any] | None = None) -> Any:
        return await self._request("POST", path, json=body if body is not None else {})

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            LOGGER.error("%s %s returned %s", method, path, exc.response.status_code)
            raise PlatformRequestError(
                f"{method} {path} failed with status {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            LOGGER.error("%s %s failed: %s", method, path, exc)
            raise PlatformRequestError(f"{method} {path} failed: {exc}") from exc

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            raise PlatformRequestError(f"{method} {path} returned invalid JSON") from exc

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> PlatformClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()
