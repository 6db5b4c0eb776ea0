"""Messaging gateway — outbound staff notifications.

One call per (phone, text) pair. The core only builds the message text; the
gateway owns phone normalization and transport.

Transports (Strategy adapters, selected by MESSAGING_TRANSPORT):
  LinkTransport     — returns a WhatsApp click-to-chat link, no network call
  WebhookTransport  — HTTP POST {"phone", "text"} to MESSAGING_WEBHOOK_URL

Constants:
  timeout   = MESSAGING_TIMEOUT (default 10 s)
  retries   = none; a failed dispatch is reported, never retried
"""

from __future__ import annotations

import logging
import re
import time
from abc import ABC, abstractmethod
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)

_DEFAULT_TIMEOUT = 10
_DEFAULT_COUNTRY_CODE = "90"
_WA_BASE_URL = "https://wa.me"
_NON_DIGIT = re.compile(r"\D")


def normalize_phone(phone: str | None, country_code: str = _DEFAULT_COUNTRY_CODE) -> str:
    """Strip to digits and prefix the country code when it is missing.

    >>> normalize_phone("0532 111 22 33")
    '9005321112233'
    >>> normalize_phone("+90 532 111 22 33")
    '905321112233'
    """
    digits = _NON_DIGIT.sub("", phone or "")
    if not digits:
        return ""
    return digits if digits.startswith(country_code) else f"{country_code}{digits}"


# ── Value objects ─────────────────────────────────────────────────────────────


class DispatchResult:
    """Typed result of one dispatch.

    Always check .ok. Never raises; transport errors are captured in .error.
    """

    __slots__ = ("ok", "phone", "link", "status_code", "error", "duration_ms")

    def __init__(
        self,
        *,
        ok: bool,
        phone: str,
        link: str | None = None,
        status_code: int | None = None,
        error: str | None = None,
        duration_ms: int = 0,
    ) -> None:
        self.ok = ok
        self.phone = phone
        self.link = link
        self.status_code = status_code
        self.error = error
        self.duration_ms = duration_ms

    def to_dict(self) -> dict:
        return {
            "ok": self.ok,
            "phone": self.phone,
            "link": self.link,
            "status_code": self.status_code,
            "error": self.error,
            "duration_ms": self.duration_ms,
        }


class MessagingConfigError(Exception):
    """Raised when the configured transport cannot be built."""


# ── Transports ────────────────────────────────────────────────────────────────


class BaseTransport(ABC):
    """Delivers one already-normalized (phone, text) pair."""

    name = "base"

    @abstractmethod
    def deliver(self, phone: str, text: str) -> DispatchResult:
        """Send text to phone and report the outcome."""


class LinkTransport(BaseTransport):
    """WhatsApp click-to-chat: the link is the deliverable."""

    name = "link"

    def deliver(self, phone: str, text: str) -> DispatchResult:
        link = f"{_WA_BASE_URL}/{phone}?text={quote(text, safe='')}"
        return DispatchResult(ok=True, phone=phone, link=link)


class WebhookTransport(BaseTransport):
    """POSTs each message to a relay webhook (SMS/WhatsApp provider bridge)."""

    name = "webhook"

    def __init__(self, url: str, session: requests.Session, timeout: int = _DEFAULT_TIMEOUT) -> None:
        if not url:
            raise MessagingConfigError("MESSAGING_WEBHOOK_URL is required for the webhook transport")
        self.url = url
        self.session = session
        self.timeout = timeout

    def deliver(self, phone: str, text: str) -> DispatchResult:
        t0 = time.perf_counter()
        try:
            resp = self.session.post(
                self.url,
                json={"phone": phone, "text": text},
                timeout=self.timeout,
            )
        except requests.Timeout:
            return DispatchResult(ok=False, phone=phone,
                                  error=f"Request timed out after {self.timeout}s")
        except requests.RequestException as exc:
            return DispatchResult(ok=False, phone=phone, error=str(exc)[:500])

        duration_ms = int((time.perf_counter() - t0) * 1000)
        if not resp.ok:
            return DispatchResult(
                ok=False,
                phone=phone,
                status_code=resp.status_code,
                error=f"HTTP {resp.status_code}: {resp.text[:500]}",
                duration_ms=duration_ms,
            )
        return DispatchResult(ok=True, phone=phone, status_code=resp.status_code,
                              duration_ms=duration_ms)


# ── Gateway ───────────────────────────────────────────────────────────────────


class MessagingGateway:
    """Normalizes phones and hands each message to the configured transport."""

    def __init__(self, transport: BaseTransport, country_code: str = _DEFAULT_COUNTRY_CODE) -> None:
        self.transport = transport
        self.country_code = country_code

    def send(self, phone: str | None, text: str) -> DispatchResult:
        normalized = normalize_phone(phone, self.country_code)
        if not normalized:
            return DispatchResult(ok=False, phone="", error="No phone number")
        result = self.transport.deliver(normalized, text)
        if result.ok:
            logger.info(
                "Message dispatched transport=%s phone=%s",
                self.transport.name, normalized,
            )
        else:
            logger.warning(
                "Message dispatch failed transport=%s phone=%s error=%s",
                self.transport.name, normalized, result.error,
            )
        return result


def build_messaging_gateway(config, session: requests.Session | None = None) -> MessagingGateway:
    """Construct a MessagingGateway from app config.

    In tests, inject a mock session:
        gw = build_messaging_gateway({"MESSAGING_TRANSPORT": "webhook", ...}, session=mock)
    """
    transport_name = (config.get("MESSAGING_TRANSPORT") or "link").lower()
    match transport_name:
        case "link":
            transport = LinkTransport()
        case "webhook":
            transport = WebhookTransport(
                config.get("MESSAGING_WEBHOOK_URL") or "",
                session or requests.Session(),
                int(config.get("MESSAGING_TIMEOUT") or _DEFAULT_TIMEOUT),
            )
        case _:
            raise MessagingConfigError(
                f"Unknown messaging transport: '{transport_name}'. Must be one of: link, webhook."
            )
    return MessagingGateway(transport, config.get("MESSAGING_COUNTRY_CODE") or _DEFAULT_COUNTRY_CODE)
