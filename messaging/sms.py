from __future__ import annotations

from datetime import datetime
from typing import Any, Callable, Optional, Tuple
from urllib.parse import quote_plus

from pydantic import BaseModel, ConfigDict, Field

from messaging.errors import InvalidArgument

# Three concatenated SMS parts.
MAX_MESSAGE_LEN = 459


class SmsOptions(BaseModel):
    """Optional delivery parameters. Mutable until the message is rendered."""

    model_config = ConfigDict(validate_assignment=True)

    sender: str = ""  # rendered as "from"; gateway truncates past 11 chars
    flash: int = Field(default=0, ge=0, le=1)
    url: Optional[str] = None  # delivery report callback, gateway appends ?status=X&receiver=...
    timestamp: int = Field(default=0, ge=0)  # YYYYMMDDHHMM, 0 = send now
    utf8: int = Field(default=0, ge=0, le=1)


def timestamp_from_datetime(dt: datetime) -> int:
    return int(dt.strftime("%Y%m%d%H%M"))


def encode_value(value: str, utf8: bool = False) -> str:
    # Latin-1 unless the gateway is told the payload is UTF-8; unmappable chars become '?'.
    if utf8:
        return quote_plus(value, safe="", encoding="utf-8")
    return quote_plus(value, safe="", encoding="latin-1", errors="replace")


class SmsMessage:
    def __init__(
        self,
        username: str,
        password: str,
        recipient: int,
        message: str,
        options: Optional[SmsOptions] = None,
    ):
        if isinstance(recipient, bool) or not isinstance(recipient, int):
            raise InvalidArgument("recipient", "must be an integer")
        if message is None:
            message = ""
        if not isinstance(message, str):
            raise InvalidArgument("message", "must be text")
        if not message.strip():
            raise InvalidArgument("message", "must not be empty")
        if len(message) > MAX_MESSAGE_LEN:
            raise InvalidArgument("message", f"longer than {MAX_MESSAGE_LEN} characters ({len(message)})")

        self._username = username or ""
        self._password = password or ""
        self._recipient = recipient
        self._message = message
        self.options = options or SmsOptions()

    @property
    def username(self) -> str:
        return self._username

    @property
    def password(self) -> str:
        return self._password

    @property
    def recipient(self) -> int:
        return self._recipient

    @property
    def message(self) -> str:
        return self._message

    def render(self) -> str:
        utf8 = bool(self.options.utf8)
        parts = []
        for name, getter, zero, text in _FIELDS:
            value = getter(self)
            if value == zero:
                continue
            parts.append(f"{name}={encode_value(str(value), utf8=utf8 and text)}")
        return "&".join(parts)

    def __str__(self) -> str:
        return self.render()

    def __repr__(self) -> str:
        return (
            f"SmsMessage(username={self._username!r}, password='***', "
            f"recipient={self._recipient!r}, message={self._message!r}, options={self.options!r})"
        )


# Wire order and zero values; a field is sent only when it differs from its zero value.
# The last column marks the fields the utf8 flag applies to (message and from).
_FIELDS: Tuple[Tuple[str, Callable[[SmsMessage], Any], Any, bool], ...] = (
    ("username", lambda m: m.username, "", False),
    ("password", lambda m: m.password, "", False),
    ("recipient", lambda m: m.recipient, 0, False),
    ("message", lambda m: m.message, "", True),
    ("from", lambda m: m.options.sender, "", True),
    ("flash", lambda m: m.options.flash, 0, False),
    ("url", lambda m: m.options.url, None, False),
    ("timestamp", lambda m: m.options.timestamp, 0, False),
    ("utf8", lambda m: m.options.utf8, 0, False),
)
