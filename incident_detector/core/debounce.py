"""
Debounced thread analysis.

The first message of a thread schedules one deferred analysis for its
ThreadIdentity; follow-up messages that arrive during the quiet period are
picked up by the backfill when the analysis fires. Pending timers are never
cancelled on new input: the fire action re-checks the store itself, so a
redundant firing is a cheap no-op.
"""

from __future__ import annotations

import asyncio
import contextlib
from collections import OrderedDict
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Optional

from incident_detector.core.thread_identity import ThreadIdentity
from incident_detector.infra.logging_config import get_logger

logger = get_logger("debounce")

ThreadAction = Callable[[ThreadIdentity], Awaitable[Any]]

DEFAULT_DELAY_SECONDS = 5.0
MAX_TRACKED_ANALYZED = 10_000
CELERY_GUARD_PREFIX = "incident_detector:debounce:"
CELERY_GUARD_TTL_SECONDS = 3600


class DebounceState(str, Enum):
    UNSCHEDULED = "unscheduled"
    SCHEDULED = "scheduled"
    ANALYZED = "analyzed"


class DebounceScheduler:
    """In-process scheduler: one asyncio task per identity on the running loop."""

    def __init__(
        self,
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
        max_tracked: int = MAX_TRACKED_ANALYZED,
    ) -> None:
        self._delay = delay_seconds
        self._max_tracked = max_tracked
        self._pending: Dict[ThreadIdentity, asyncio.Task[None]] = {}
        # set to end the quiet period early (shutdown)
        self._wake: Dict[ThreadIdentity, asyncio.Event] = {}
        # bounded memory of fired identities
        self._analyzed: "OrderedDict[ThreadIdentity, None]" = OrderedDict()

    @property
    def delay_seconds(self) -> float:
        return self._delay

    @property
    def pending_count(self) -> int:
        return len(self._pending)

    def state(self, identity: ThreadIdentity) -> DebounceState:
        if identity in self._pending:
            return DebounceState.SCHEDULED
        if identity in self._analyzed:
            return DebounceState.ANALYZED
        return DebounceState.UNSCHEDULED

    def schedule(self, identity: ThreadIdentity, action: ThreadAction) -> bool:
        """
        Schedule action(identity) after the quiet period. Returns immediately.

        Returns False when the identity is already scheduled or analyzed.
        Must be called from a running event loop.
        """
        current = self.state(identity)
        if current is not DebounceState.UNSCHEDULED:
            logger.info("Debounce skip thread=%s state=%s", identity, current.value)
            return False
        loop = asyncio.get_running_loop()
        self._wake[identity] = asyncio.Event()
        self._pending[identity] = loop.create_task(
            self._fire_after(identity, action), name=f"debounce:{identity.key}"
        )
        logger.info(
            "Scheduled analysis for thread=%s in %.1fs", identity, self._delay
        )
        return True

    async def _fire_after(self, identity: ThreadIdentity, action: ThreadAction) -> None:
        fired = False
        try:
            with contextlib.suppress(asyncio.TimeoutError):
                await asyncio.wait_for(self._wake[identity].wait(), timeout=self._delay)
            fired = True
            await action(identity)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.exception("Debounced analysis failed for thread=%s: %s", identity, e)
        finally:
            self._pending.pop(identity, None)
            self._wake.pop(identity, None)
            if fired:
                self._mark_analyzed(identity)

    def _mark_analyzed(self, identity: ThreadIdentity) -> None:
        self._analyzed[identity] = None
        self._analyzed.move_to_end(identity)
        while len(self._analyzed) > self._max_tracked:
            self._analyzed.popitem(last=False)

    async def drain(self) -> None:
        """Wait for every pending analysis to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending.values()), return_exceptions=True)

    async def shutdown(self, timeout: Optional[float] = None) -> None:
        """
        Fire every pending analysis now and wait for it (process is stopping).

        With a timeout, analyses still running when it expires are cancelled.
        """
        if not self._pending:
            return
        logger.info("Firing %d pending analyses before shutdown", len(self._pending))
        for wake in self._wake.values():
            wake.set()
        try:
            await asyncio.wait_for(self.drain(), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(
                "Shutdown timed out after %.1fs; %d analyses abandoned",
                timeout,
                len(self._pending),
            )


class CeleryDebounceScheduler:
    """
    Worker-backed scheduler for multi-process deployments.

    A Redis SET NX guard keyed by identity admits one scheduling per thread
    across all API processes; the analysis itself runs in a Celery worker
    after ``countdown`` seconds.
    """

    def __init__(
        self,
        redis_client: Any,
        delay_seconds: float = DEFAULT_DELAY_SECONDS,
        guard_ttl_seconds: int = CELERY_GUARD_TTL_SECONDS,
    ) -> None:
        self._redis = redis_client
        self._delay = delay_seconds
        self._guard_ttl = guard_ttl_seconds

    @property
    def delay_seconds(self) -> float:
        return self._delay

    def _guard_key(self, identity: ThreadIdentity) -> str:
        return f"{CELERY_GUARD_PREFIX}{identity.key}"

    def state(self, identity: ThreadIdentity) -> DebounceState:
        if self._redis.get(self._guard_key(identity)) is None:
            return DebounceState.UNSCHEDULED
        return DebounceState.SCHEDULED

    def schedule(
        self, identity: ThreadIdentity, action: Optional[ThreadAction] = None
    ) -> bool:
        from incident_detector.tasks.analyze_thread_task import analyze_thread_task

        if not self._redis.set(
            self._guard_key(identity), "scheduled", nx=True, ex=self._guard_ttl
        ):
            logger.info("Debounce skip thread=%s (already queued)", identity)
            return False
        analyze_thread_task.apply_async(
            args=[identity.channel, identity.thread_ts], countdown=self._delay
        )
        logger.info(
            "Queued analysis for thread=%s in %.1fs", identity, self._delay
        )
        return True

    async def shutdown(self, timeout: Optional[float] = None) -> None:
        """Queued analyses live in the broker; nothing to flush."""
        return None
