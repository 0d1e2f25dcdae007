from __future__ import annotations

import json
import logging
import re
from typing import Any

import httpx

from app.core.config import Settings
from app.schemas.reminder import DeliveryResult

logger = logging.getLogger(__name__)

KENYA_CALLING_CODE = "254"
MESSAGING_PATH = "/version1/messaging"
# Recipient status codes below 400 mean processed, sent or queued.
RECIPIENT_FAILURE_CODE = 400

_WHITESPACE = re.compile(r"\s+")


def format_kenya_phone(phone: str) -> str:
    """Best-effort E.164 normalization for Kenyan numbers.

    Malformed input is passed through with a ``+`` prefix; the gateway
    decides whether it is deliverable.
    """
    normalized = _WHITESPACE.sub("", str(phone)).strip()
    if not normalized:
        return normalized
    if normalized.startswith("+"):
        normalized = normalized[1:]
    if normalized.startswith(KENYA_CALLING_CODE):
        return f"+{normalized}"
    if normalized.startswith("0"):
        return f"+{KENYA_CALLING_CODE}{normalized[1:]}"
    if len(normalized) == 9:
        return f"+{KENYA_CALLING_CODE}{normalized}"
    return f"+{normalized}"


def _first_recipient(body: Any) -> dict[str, Any] | None:
    if not isinstance(body, dict):
        return None
    data = body.get("SMSMessageData")
    if not isinstance(data, dict):
        return None
    recipients = data.get("Recipients")
    if isinstance(recipients, list) and recipients and isinstance(recipients[0], dict):
        return recipients[0]
    return None


class AfricasTalkingClient:
    def __init__(
        self,
        api_key: str,
        username: str,
        sender_id: str | None = None,
        base_url: str = "https://api.africastalking.com",
        timeout_sec: float = 15.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.username = username
        self.sender_id = sender_id
        self.base_url = base_url.rstrip("/")
        self.timeout_sec = timeout_sec
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "AfricasTalkingClient":
        return cls(
            api_key=settings.africas_talking_api_key,
            username=settings.africas_talking_username,
            sender_id=settings.africas_talking_sender_id,
            base_url=settings.africas_talking_base_url,
            timeout_sec=settings.sms_request_timeout_sec,
        )

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.username)

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_sec,
                transport=self._transport,
            )
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "AfricasTalkingClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def send_sms(self, to: str, message: str) -> DeliveryResult:
        form = {"username": self.username, "to": to, "message": message}
        if self.sender_id:
            form["from"] = self.sender_id
        headers = {"apiKey": self.api_key, "Accept": "application/json"}

        try:
            response = await self._get_client().post(MESSAGING_PATH, data=form, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("Africa's Talking request failed: %s", exc)
            return DeliveryResult(ok=False, error=str(exc) or exc.__class__.__name__)

        try:
            body = response.json()
        except ValueError:
            body = None

        if not response.is_success:
            rendered = json.dumps(body) if body is not None else response.text
            return DeliveryResult(ok=False, error=f"AT_HTTP_{response.status_code}: {rendered}")

        recipient = _first_recipient(body)
        if recipient is None:
            return DeliveryResult(ok=False, error=f"AT_BAD_RESPONSE: {response.text[:500]}")

        status_code = recipient.get("statusCode")
        if isinstance(status_code, int) and status_code >= RECIPIENT_FAILURE_CODE:
            return DeliveryResult(
                ok=False,
                error=f"AT_RECIPIENT_{status_code}: {recipient.get('status') or 'rejected'}",
            )

        message_id = recipient.get("messageId") or recipient.get("message_id")
        return DeliveryResult(ok=True, message_id=str(message_id) if message_id else None)
