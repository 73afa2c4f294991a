"""Shared error codes and user-facing messages."""

from __future__ import annotations

PERMISSION_DENIED = "PERMISSION_DENIED"
DEVICE_UNAVAILABLE = "DEVICE_UNAVAILABLE"
INVALID_IMAGE = "INVALID_IMAGE"
NO_IMAGE = "NO_IMAGE"
EMPTY_RESPONSE = "EMPTY_RESPONSE"
TRANSPORT_FAILURE = "TRANSPORT_FAILURE"

ERROR_MESSAGES = {
    PERMISSION_DENIED: "Camera access denied. Please allow camera permissions.",
    DEVICE_UNAVAILABLE: "Camera not supported on this device.",
    INVALID_IMAGE: "The selected file is not a readable image.",
    NO_IMAGE: "Please select an image first",
    EMPTY_RESPONSE: "No analysis received from AI",
    TRANSPORT_FAILURE: "Analysis failed",
}


class AppError(Exception):
    """Failure carrying one of the error codes above."""

    def __init__(self, code: str, message: str = "") -> None:
        super().__init__(message or ERROR_MESSAGES.get(code, code))
        self.code = code
        self.message = message

    @property
    def user_message(self) -> str:
        base = ERROR_MESSAGES.get(self.code, self.code)
        if self.code == TRANSPORT_FAILURE and self.message:
            return f"{base}: {self.message}"
        return base


def user_message(code: str, message: str = "") -> str:
    return AppError(code, message).user_message
