import httpx
import logging
from typing import Any, List, Optional

from ..errors import NotificationError

logger = logging.getLogger(__name__)

API_URL = "https://api.telegram.org"


class TelegramBot:
    """Thin async client for the Telegram Bot API methods the relay needs."""

    def __init__(
            self,
            token: str,
            api_url: str = API_URL,
            timeout: float = 10.0,
            transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        # Long polls hold the request open, so the read timeout is set per call
        self._client = httpx.AsyncClient(
            base_url=f"{api_url}/bot{token}/",
            timeout=timeout,
            transport=transport
        )
        self._timeout = timeout

    async def _call(self, method: str, payload: Optional[dict] = None, read_timeout: Optional[float] = None) -> Any:
        timeout = httpx.Timeout(self._timeout, read=read_timeout or self._timeout)
        try:
            r = await self._client.post(method, json=payload or {}, timeout=timeout)
        except httpx.HTTPError as e:
            raise NotificationError(f"{method} request failed: {type(e).__name__}: {e}", method=method) from e

        try:
            body = r.json()
        except ValueError:
            body = {}

        if r.status_code != 200 or not body.get("ok"):
            description = body.get("description") or r.reason_phrase
            raise NotificationError(
                f"{method} rejected with {r.status_code}: {description}",
                method=method,
                status_code=r.status_code
            )
        return body.get("result")

    async def send_message(
            self,
            chat_id: str | int,
            text: str,
            parse_mode: Optional[str] = None,
            reply_markup: Optional[dict] = None
    ) -> dict:
        payload = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        if reply_markup:
            payload["reply_markup"] = reply_markup
        return await self._call("sendMessage", payload)

    async def edit_message_text(self, chat_id: str | int, message_id: int, text: str) -> Any:
        return await self._call("editMessageText", {
            "chat_id": chat_id,
            "message_id": message_id,
            "text": text
        })

    async def answer_callback_query(self, callback_query_id: str, text: Optional[str] = None) -> Any:
        payload = {"callback_query_id": callback_query_id}
        if text:
            payload["text"] = text
        return await self._call("answerCallbackQuery", payload)

    async def get_updates(self, offset: Optional[int] = None, timeout: int = 30) -> List[dict]:
        payload = {"timeout": timeout, "allowed_updates": ["callback_query"]}
        if offset is not None:
            payload["offset"] = offset
        return await self._call("getUpdates", payload, read_timeout=timeout + self._timeout)

    async def delete_webhook(self) -> Any:
        # getUpdates is refused while a webhook is registered
        return await self._call("deleteWebhook")

    async def close(self):
        await self._client.aclose()
