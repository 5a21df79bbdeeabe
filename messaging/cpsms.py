from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any, Optional

import httpx

from config.settings import settings
from messaging.errors import Cancelled, SmsError, TransportError
from messaging.sms import SmsMessage, SmsOptions

log = logging.getLogger("cpsms.client")

_ERROR_RE = re.compile(r"<error>(?P<error>[^<]+)</error>")


def _dest_hint(v: Any, keep: int = 4) -> str:
    v = str(v or "").strip()
    if not v:
        return ""
    if len(v) <= keep:
        return v
    return f"...{v[-keep:]}"


def extract_error(body: str) -> Optional[str]:
    m = _ERROR_RE.search(body or "")
    if m:
        return m.group("error")
    return None


class CpsmsClient:
    """One-shot GET client for the CPSMS gateway. No retries."""

    def __init__(
        self,
        service_url: Optional[str] = None,
        timeout: Optional[float] = None,
        http: Optional[httpx.AsyncClient] = None,
    ):
        self.service_url = service_url or settings.CPSMS_SERVICE_URL
        self.timeout = timeout if timeout is not None else settings.CPSMS_TIMEOUT_SECONDS
        # Caller owns a shared client; otherwise each send opens its own.
        self.http = http

    @classmethod
    def from_settings(cls) -> "CpsmsClient":
        return cls(service_url=settings.CPSMS_SERVICE_URL, timeout=settings.CPSMS_TIMEOUT_SECONDS)

    def compose(self, recipient: int, message: str, **options: Any) -> SmsMessage:
        if settings.CPSMS_FROM and "sender" not in options:
            options["sender"] = settings.CPSMS_FROM
        return SmsMessage(
            username=settings.CPSMS_USERNAME,
            password=settings.CPSMS_PASSWORD,
            recipient=recipient,
            message=message,
            options=SmsOptions(**options),
        )

    def build_url(self, sms: SmsMessage) -> str:
        return f"{self.service_url}?{sms.render()}"

    async def send(self, sms: SmsMessage, cancel: Optional[asyncio.Event] = None) -> None:
        """
        Send one SMS. Raises SmsError when the gateway body carries an <error> tag,
        TransportError on HTTP status >= 300 or network failure, and Cancelled when
        `cancel` is set before the response arrives.
        """
        if cancel is not None and cancel.is_set():
            raise Cancelled()

        url = self.build_url(sms)
        dest = _dest_hint(sms.recipient)
        t0 = time.time()
        log.info(
            "sms_send_attempt",
            extra={"extra": {"event": "sms_send_attempt", "channel": "sms", "dest": dest, "flash": sms.options.flash}},
        )

        try:
            if cancel is None:
                body = await self._fetch(url)
            else:
                body = await self._fetch_cancellable(url, cancel)
            error = extract_error(body)
            if error is not None:
                raise SmsError(error)
        except Exception as e:
            dt_ms = int((time.time() - t0) * 1000)
            log.warning(
                "sms_send_failed",
                extra={
                    "extra": {
                        "event": "sms_send_failed",
                        "channel": "sms",
                        "dest": dest,
                        "error_type": type(e).__name__,
                        "message": str(e),
                        "status_code": getattr(e, "status_code", None),
                        "latency_ms": dt_ms,
                    }
                },
            )
            raise

        dt_ms = int((time.time() - t0) * 1000)
        log.info(
            "sms_send_result",
            extra={"extra": {"event": "sms_send_result", "channel": "sms", "dest": dest, "ok": True, "latency_ms": dt_ms}},
        )

    async def _fetch_cancellable(self, url: str, cancel: asyncio.Event) -> str:
        request = asyncio.ensure_future(self._fetch(url))
        waiter = asyncio.ensure_future(cancel.wait())
        try:
            await asyncio.wait({request, waiter}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            waiter.cancel()
            if not request.done():
                request.cancel()
                try:
                    await request
                except asyncio.CancelledError:
                    pass
        if request.cancelled():
            raise Cancelled()
        return request.result()

    async def _fetch(self, url: str) -> str:
        if self.http is not None:
            return await self._get(self.http, url)
        async with httpx.AsyncClient(timeout=self.timeout, follow_redirects=True) as http:
            return await self._get(http, url)

    async def _get(self, http: httpx.AsyncClient, url: str) -> str:
        try:
            r = await http.get(url)
        except httpx.HTTPError as e:
            # str(e) may include the request URL, which carries the password.
            raise TransportError(None, type(e).__name__) from e
        # An unfollowed redirect never reached the gateway, so it is not a send.
        if r.status_code >= 300:
            raise TransportError(r.status_code, r.reason_phrase or "")
        return r.text or ""


def send_sms(recipient: int, message: str, **options: Any) -> None:
    """Blocking send using the configured account; for callers outside an event loop."""
    client = CpsmsClient.from_settings()
    asyncio.run(client.send(client.compose(recipient, message, **options)))
