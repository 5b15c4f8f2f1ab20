"""Discord REST transport (polling, latest message only)."""

from __future__ import annotations

from datetime import datetime
from email.utils import parsedate_to_datetime
from typing import Any
from urllib.parse import quote

import httpx
import structlog

from powerbot.channels.base import (
    ChannelTransport,
    DeserializationError,
    InboundMessage,
    TransportError,
)
from powerbot.config import DiscordConfig
from powerbot.control.gate import AuthorizationContext

logger = structlog.get_logger()


class DiscordTransport(ChannelTransport):
    def __init__(
        self,
        *,
        config: DiscordConfig,
        context: AuthorizationContext,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.config = config
        self.context = context
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(config.request_timeout_s),
        )
        self._api_base = config.api_base.rstrip("/")
        self._headers = {"Authorization": f"Bot {context.bot_credential}"}

    @property
    def name(self) -> str:
        return "discord"

    async def fetch_latest(self) -> InboundMessage | None:
        try:
            resp = await self._request(
                "GET",
                f"/channels/{self.context.channel_id}/messages",
                params={"limit": 1},
            )
            return self._parse_latest(resp)
        except TransportError as e:
            logger.warning("transport.fetch_failed", transport=self.name, error=str(e))
            return None

    async def react(self, message_id: str, emoji: str) -> bool:
        path = (
            f"/channels/{self.context.channel_id}/messages/{message_id}"
            f"/reactions/{quote(emoji, safe='')}/@me"
        )
        try:
            await self._request("PUT", path)
        except TransportError as e:
            logger.warning(
                "transport.react_failed",
                transport=self.name,
                message_id=message_id,
                error=str(e),
            )
            return False
        return True

    async def reply(self, message_id: str, channel_id: str, text: str) -> bool:
        payload: dict[str, Any] = {
            "content": text,
            "message_reference": {"message_id": message_id},
        }
        try:
            await self._request("POST", f"/channels/{channel_id}/messages", json=payload)
        except TransportError as e:
            logger.warning(
                "transport.reply_failed",
                transport=self.name,
                message_id=message_id,
                error=str(e),
            )
            return False
        return True

    async def server_time(self) -> datetime | None:
        try:
            resp = await self._request("GET", "/gateway")
        except TransportError as e:
            logger.warning("transport.server_time_failed", transport=self.name, error=str(e))
            return None
        header = resp.headers.get("date")
        if not header:
            return None
        try:
            return parsedate_to_datetime(header)
        except (TypeError, ValueError):
            logger.warning("transport.bad_date_header", transport=self.name, value=header)
            return None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            resp = await self._client.request(
                method,
                f"{self._api_base}{path}",
                headers=self._headers,
                **kwargs,
            )
        except httpx.HTTPError as e:
            raise TransportError(f"{method} {path}: {e}") from e

        if resp.status_code >= 400:
            raise TransportError(
                f"{method} {path}: HTTP {resp.status_code} {resp.text[:300]}"
            )
        return resp

    @staticmethod
    def _parse_latest(resp: httpx.Response) -> InboundMessage | None:
        try:
            payload = resp.json()
        except ValueError as e:
            raise DeserializationError(f"invalid JSON: {e}") from e

        if not isinstance(payload, list):
            raise DeserializationError(f"expected a message list, got {type(payload).__name__}")
        if not payload:
            return None

        message = payload[0]
        if not isinstance(message, dict):
            raise DeserializationError("message entry is not an object")

        author = message.get("author")
        message_id = message.get("id")
        channel_id = message.get("channel_id")
        if not isinstance(author, dict) or message_id is None or channel_id is None:
            raise DeserializationError("message is missing id, channel_id or author")

        content = message.get("content")
        return InboundMessage(
            message_id=str(message_id),
            author_id=str(author.get("id") or ""),
            channel_id=str(channel_id),
            content=content if isinstance(content, str) else "",
        )
