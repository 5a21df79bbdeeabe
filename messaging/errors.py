from __future__ import annotations

from typing import Optional


class CpsmsError(Exception):
    """Base class for every failure raised by the CPSMS client."""


class InvalidArgument(CpsmsError, ValueError):
    def __init__(self, field: str, reason: str):
        super().__init__(f"{field}: {reason}")
        self.field = field
        self.reason = reason


class TransportError(CpsmsError):
    """HTTP-level failure: status >= 400 or a network exception (status_code is None)."""

    def __init__(self, status_code: Optional[int], reason: str):
        if status_code is None:
            super().__init__(reason)
        else:
            super().__init__(f"HTTP {status_code}: {reason}")
        self.status_code = status_code
        self.reason = reason


class Cancelled(CpsmsError):
    def __init__(self, message: str = "sms_send_cancelled"):
        super().__init__(message)


class SmsError(CpsmsError):
    """The gateway accepted the request but reported an <error> in the body."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
