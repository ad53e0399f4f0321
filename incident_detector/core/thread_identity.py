"""Thread identity derivation from an inbound message event."""

from __future__ import annotations

from dataclasses import dataclass

from incident_detector.exceptions import InvalidEventError
from incident_detector.schemas.slack import SlackMessageEvent


@dataclass(frozen=True)
class ThreadIdentity:
    """Canonical key of a conversation thread: channel plus root message ts."""

    channel: str
    thread_ts: str

    @property
    def key(self) -> str:
        return f"{self.channel}:{self.thread_ts}"

    def __str__(self) -> str:
        return self.key


def is_thread_root(event: SlackMessageEvent) -> bool:
    """True when the event starts a thread or stands alone (not a reply)."""
    return not event.thread_ts or event.thread_ts == event.ts


def resolve_thread_identity(event: SlackMessageEvent) -> ThreadIdentity:
    """
    Build the ThreadIdentity for an event.

    A reply (thread_ts set and different from ts) belongs to the thread rooted at
    thread_ts; anything else roots its own thread at ts.
    """
    if not event.ts:
        raise InvalidEventError("message event has no ts")
    if not event.channel:
        raise InvalidEventError(f"message event {event.ts} has no channel")
    root = event.ts if is_thread_root(event) else event.thread_ts
    return ThreadIdentity(channel=event.channel, thread_ts=root)
