"""
Message aggregation: backfill a whole thread and resolve author names.

Delivery order of events is never trusted; the thread is re-read and sorted
here so the classifier always sees it in timestamp order.
"""

from __future__ import annotations

import asyncio
from typing import Optional

from incident_detector.adapters.base import BasePlatformAdapter
from incident_detector.core.thread_identity import ThreadIdentity
from incident_detector.exceptions import PlatformError
from incident_detector.infra.logging_config import get_logger
from incident_detector.schemas.slack import AggregatedThread, ThreadEntry, ts_sort_key

logger = get_logger("aggregator")

DEFAULT_PAGE_SIZE = 100


class MessageAggregator:
    def __init__(
        self, platform: BasePlatformAdapter, page_size: int = DEFAULT_PAGE_SIZE
    ) -> None:
        self._platform = platform
        self._page_size = page_size

    async def aggregate(self, identity: ThreadIdentity) -> Optional[AggregatedThread]:
        """
        Fetch the thread behind identity and return it ordered by ts.

        Returns None when the read fails or the thread is empty; neither is an
        error for the caller, there is simply nothing to analyze.
        """
        try:
            messages = await self._platform.fetch_thread(
                identity.channel, identity.thread_ts, limit=self._page_size
            )
        except PlatformError as e:
            logger.warning("Thread fetch failed, skipping thread=%s: %s", identity, e)
            return None

        if not messages:
            logger.info("Thread has no messages, skipping thread=%s", identity)
            return None

        unique = {m.ts: m for m in messages}
        ordered = sorted(unique.values(), key=lambda m: ts_sort_key(m.ts))
        names = await self._resolve_names({m.user_id for m in ordered})

        entries = [
            ThreadEntry(
                user_id=m.user_id,
                display_name=names.get(m.user_id) or m.user_id,
                text=m.text,
                ts=m.ts,
            )
            for m in ordered
        ]
        logger.info(
            "Aggregated thread=%s messages=%d authors=%d",
            identity,
            len(entries),
            len(names),
        )
        return AggregatedThread(
            channel=identity.channel, thread_ts=identity.thread_ts, entries=entries
        )

    async def _resolve_names(self, user_ids: set[str]) -> dict[str, str]:
        """Look up every distinct author once; failed lookups fall back to the raw id."""
        ids = sorted(user_ids)
        results = await asyncio.gather(
            *(self._platform.resolve_display_name(uid) for uid in ids),
            return_exceptions=True,
        )
        names: dict[str, str] = {}
        for uid, result in zip(ids, results):
            if isinstance(result, BaseException) or not result:
                if isinstance(result, BaseException):
                    logger.warning("Display name lookup failed for user=%s: %s", uid, result)
                names[uid] = uid
            else:
                names[uid] = result
        return names
