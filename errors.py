"""Shared error codes and user-facing messages."""

from __future__ import annotations

AUTHORIZATION_DENIED = "AUTHORIZATION_DENIED"
AUTHORIZATION_RESTRICTED = "AUTHORIZATION_RESTRICTED"
AUTHORIZATION_NOT_DETERMINED = "AUTHORIZATION_NOT_DETERMINED"
CAPABILITY_UNAVAILABLE = "CAPABILITY_UNAVAILABLE"
CAPTURE_START_FAILURE = "CAPTURE_START_FAILURE"
RECOGNITION_ERROR = "RECOGNITION_ERROR"
NETWORK_ERROR = "NETWORK_ERROR"
AUTH_FAILED = "AUTH_FAILED"

ERROR_MESSAGES = {
    AUTHORIZATION_DENIED: "Speech recognition permission was not granted.",
    AUTHORIZATION_RESTRICTED: "Speech recognition is restricted on this device.",
    AUTHORIZATION_NOT_DETERMINED: "Speech recognition is not set up yet, add an API key.",
    CAPABILITY_UNAVAILABLE: "Speech recognition is unavailable.",
    CAPTURE_START_FAILURE: "Could not start the microphone.",
    RECOGNITION_ERROR: "Speech recognition failed, please retry.",
    NETWORK_ERROR: "Network failed, please retry.",
    AUTH_FAILED: "API key is invalid.",
}


def message_for(code: str) -> str:
    return ERROR_MESSAGES.get(code, ERROR_MESSAGES[RECOGNITION_ERROR])


class UnknownAuthorizationStatusError(RuntimeError):
    """Raised when the authorizer reports a status outside AuthorizationStatus."""

    def __init__(self, status: object) -> None:
        self.status = status
        super().__init__(f"unknown authorization status: {status!r}")
