"""
Platform adapter interface.

Adapters wrap a chat platform's read and post APIs behind the narrow surface
the detection pipeline consumes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from incident_detector.schemas.slack import ThreadMessage


class BasePlatformAdapter(ABC):
    """Contract for platform adapters. New platforms implement this interface."""

    @abstractmethod
    async def fetch_thread(
        self, channel: str, thread_ts: str, limit: int = 100
    ) -> list[ThreadMessage]:
        """Return the thread's messages, root included. Raise PlatformError on failure."""
        ...

    @abstractmethod
    async def resolve_display_name(self, user_id: str) -> Optional[str]:
        """Return the user's display name, or None if the lookup fails."""
        ...

    @abstractmethod
    async def post_message(
        self,
        channel: str,
        text: str,
        blocks: Optional[list[dict[str, Any]]] = None,
    ) -> bool:
        """Post a message. Return True on success, False on failure."""
        ...

    async def get_channel_name(self, channel: str) -> Optional[str]:
        """Return a channel's name. Override if the platform supports it."""
        return None
