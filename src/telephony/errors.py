"""Domain-specific exceptions for call control operations.

These exceptions are safe to import from API layers without pulling in the transport.
"""

from __future__ import annotations


class CallControlError(Exception):
    status_code: int = 500
    default_detail: str = "Call control error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.default_detail)
        self.detail = detail or self.default_detail


class PlatformRequestError(CallControlError):
    status_code = 502
    default_detail = "Telephony platform request failed."


class InvalidCallTargetError(CallControlError):
    status_code = 422
    default_detail = "Exactly one of phone number or extension number is required."


class RegistryNotConfiguredError(CallControlError):
    status_code = 503
    default_detail = "Telephony platform access token is not configured."
