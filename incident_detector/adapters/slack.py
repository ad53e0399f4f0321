"""
Slack platform adapter.

Uses slack_sdk's AsyncWebClient for thread history, user lookup, channel info
and posting alerts.
"""

from __future__ import annotations

import asyncio
from typing import Any, Optional

import aiohttp
from slack_sdk.errors import SlackClientError
from slack_sdk.web.async_client import AsyncWebClient

from incident_detector.adapters.base import BasePlatformAdapter
from incident_detector.exceptions import PlatformError
from incident_detector.infra.logging_config import get_logger
from incident_detector.schemas.slack import MESSAGE_EVENT_TYPE, ThreadMessage

logger = get_logger("adapters.slack")

_TRANSPORT_ERRORS = (SlackClientError, aiohttp.ClientError, asyncio.TimeoutError)


class SlackAdapter(BasePlatformAdapter):
    """Slack adapter: conversations.replies, users.info, chat.postMessage."""

    def __init__(
        self, bot_token: str, client: Optional[AsyncWebClient] = None
    ) -> None:
        self._bot_token = bot_token
        self._client = client

    def _get_client(self) -> AsyncWebClient:
        if self._client is None:
            self._client = AsyncWebClient(token=self._bot_token)
        return self._client

    async def fetch_thread(
        self, channel: str, thread_ts: str, limit: int = 100
    ) -> list[ThreadMessage]:
        try:
            response = await self._get_client().conversations_replies(
                channel=channel,
                ts=thread_ts,
                inclusive=True,  # include the root message
                limit=limit,
            )
        except _TRANSPORT_ERRORS as e:
            raise PlatformError(
                f"conversations.replies failed for {channel}:{thread_ts}: {e}"
            ) from e

        messages: list[ThreadMessage] = []
        for msg in response.get("messages") or []:
            if msg.get("type") != MESSAGE_EVENT_TYPE:
                continue
            if not (msg.get("user") and msg.get("ts") and msg.get("text")):
                continue
            messages.append(
                ThreadMessage(user_id=msg["user"], text=msg["text"], ts=msg["ts"])
            )
        return messages

    async def resolve_display_name(self, user_id: str) -> Optional[str]:
        try:
            response = await self._get_client().users_info(user=user_id)
        except _TRANSPORT_ERRORS as e:
            logger.warning("users.info failed for user=%s: %s", user_id, e)
            return None
        user = response.get("user") or {}
        return user.get("real_name") or user.get("name") or None

    async def post_message(
        self,
        channel: str,
        text: str,
        blocks: Optional[list[dict[str, Any]]] = None,
    ) -> bool:
        try:
            await self._get_client().chat_postMessage(
                channel=channel, text=text, blocks=blocks
            )
        except _TRANSPORT_ERRORS as e:
            logger.warning("chat.postMessage failed for channel=%s: %s", channel, e)
            return False
        return True

    async def get_channel_name(self, channel: str) -> Optional[str]:
        try:
            response = await self._get_client().conversations_info(channel=channel)
        except _TRANSPORT_ERRORS as e:
            logger.warning("conversations.info failed for channel=%s: %s", channel, e)
            return None
        return (response.get("channel") or {}).get("name")
