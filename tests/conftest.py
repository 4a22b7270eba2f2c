from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Any

import pytest

REPO_ROOT = Path(__file__).resolve().parents[1]
SRC_PATH = REPO_ROOT / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

EXTENSION_PAYLOAD = {
    "id": 101,
    "uri": "https://platform.example.com/restapi/v1.0/account/9/extension/101",
    "extensionNumber": "101",
    "name": "Front Desk",
    "status": "Enabled",
    "type": "User",
    "account": {"id": 9},
}


class FakePlatform:
    """In-memory stand-in for the platform REST transport."""

    def __init__(self, responses: dict[str, Any] | None = None) -> None:
        self.responses: dict[str, Any] = dict(responses or {})
        self.requests: list[tuple[str, str, Any]] = []

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        self.requests.append(("GET", path, params))
        return self._respond(path)

    async def post(self, path: str, body: dict[str, Any] | None = None) -> Any:
        self.requests.append(("POST", path, body))
        return self._respond(path)

    def _respond(self, path: str) -> Any:
        result = self.responses.get(path)
        if result is None:
            from telephony.errors import PlatformRequestError

            raise PlatformRequestError(f"no fake response for {path}")
        if isinstance(result, Exception):
            raise result
        return result

    def calls_to(self, path: str) -> int:
        return sum(1 for _, requested, _ in self.requests if requested == path)


@pytest.fixture()
def platform() -> FakePlatform:
    return FakePlatform()


@pytest.fixture()
def extension():
    from telephony.schemas import Extension

    return Extension.model_validate(EXTENSION_PAYLOAD)


@pytest.fixture()
def registry(platform: FakePlatform, extension):
    from telephony.registry import SessionRegistry

    return SessionRegistry(platform, extension=extension)


@pytest.fixture(scope="session")
def app():
    # No token: the lifespan must not try to reach the platform.
    os.environ.pop("PLATFORM_ACCESS_TOKEN", None)

    import importlib

    from config.settings import get_settings

    get_settings.cache_clear()
    for module_name in [
        "api.dependencies",
        "api.routes",
        "main",
    ]:
        sys.modules.pop(module_name, None)

    main = importlib.import_module("main")
    return main.app
