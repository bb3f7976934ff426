"""
Change notifications for recipient rows.

Every saved update or delete is published on a per-recipient channel.
Subscribers (admin views editing the same recipient) replace their local copy
with whatever arrives last; there is no merge and no conflict detection.

Supports an in-memory feed for tests/local runs and Redis pub/sub for
production.
"""

from __future__ import annotations

import json
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Callable, Deque, Dict, List, Optional, Protocol

import redis
from redis import exceptions as redis_exceptions

from shared.recipient_config import parse_recipient_config
from shared.types import RecipientConfig

logger = logging.getLogger(__name__)

EVENT_UPDATE = "UPDATE"
EVENT_DELETE = "DELETE"


class Subscription(Protocol):
    def get_message(self, timeout: float = 0.0) -> Optional[dict]:
        ...

    def close(self) -> None:
        ...


class ChangeFeed(Protocol):
    """Minimal pub/sub interface keyed by recipient id."""

    def publish(self, recipient_id: str, event: dict) -> None:
        ...

    def subscribe(self, recipient_id: str) -> Subscription:
        ...


def update_event(row: dict) -> dict:
    """Event payload for a saved row; the password digest is dropped."""
    safe_row = {key: value for key, value in row.items() if key != "password_hash"}
    return {"type": EVENT_UPDATE, "recipient": safe_row}


def delete_event(recipient_id: str) -> dict:
    return {"type": EVENT_DELETE, "id": recipient_id}


@dataclass
class InMemorySubscription:
    feed: "InMemoryChangeFeed"
    recipient_id: str
    pending: Deque[dict] = field(default_factory=deque)

    def get_message(self, timeout: float = 0.0) -> Optional[dict]:
        if not self.pending:
            return None
        return self.pending.popleft()

    def close(self) -> None:
        self.feed.unsubscribe(self)


@dataclass
class InMemoryChangeFeed:
    """Fan-out to in-process subscribers, for testing/dev."""

    subscribers: Dict[str, List[InMemorySubscription]] = field(default_factory=dict)

    def publish(self, recipient_id: str, event: dict) -> None:
        # Round-trip through JSON so subscribers never share objects.
        payload = json.loads(json.dumps(event, default=str))
        for subscription in self.subscribers.get(recipient_id, []):
            subscription.pending.append(payload)

    def subscribe(self, recipient_id: str) -> InMemorySubscription:
        subscription = InMemorySubscription(feed=self, recipient_id=recipient_id)
        self.subscribers.setdefault(recipient_id, []).append(subscription)
        return subscription

    def unsubscribe(self, subscription: InMemorySubscription) -> None:
        listeners = self.subscribers.get(subscription.recipient_id, [])
        if subscription in listeners:
            listeners.remove(subscription)


@dataclass
class RedisSubscription:
    pubsub: "redis.client.PubSub"
    channel: str

    def get_message(self, timeout: float = 0.0) -> Optional[dict]:
        try:
            message = self.pubsub.get_message(
                ignore_subscribe_messages=True, timeout=timeout
            )
        except redis_exceptions.ConnectionError:
            # Managed Redis drops idle connections; resubscribe and report
            # nothing so the caller simply polls again.
            logger.warning("Lost realtime connection on %s, resubscribing", self.channel)
            self.pubsub.subscribe(self.channel)
            return None
        if not message or message.get("type") != "message":
            return None
        data = message["data"]
        if isinstance(data, bytes):
            data = data.decode("utf-8")
        try:
            return json.loads(data)
        except ValueError:
            logger.warning("Ignoring malformed realtime payload on %s", self.channel)
            return None

    def close(self) -> None:
        self.pubsub.close()


@dataclass
class RedisChangeFeed:
    """Redis-backed feed using one pub/sub channel per recipient."""

    url: str
    channel_prefix: str = "portal:recipients"

    def __post_init__(self):
        self.client = redis.Redis.from_url(self.url)

    def channel(self, recipient_id: str) -> str:
        return f"{self.channel_prefix}:{recipient_id}"

    def publish(self, recipient_id: str, event: dict) -> None:
        try:
            self.client.publish(
                self.channel(recipient_id), json.dumps(event, default=str)
            )
        except redis_exceptions.RedisError:
            # The row is already saved; a missed notification only delays
            # other editors until they reload.
            logger.exception("Failed to publish change for %s", recipient_id)

    def subscribe(self, recipient_id: str) -> RedisSubscription:
        pubsub = self.client.pubsub()
        channel = self.channel(recipient_id)
        pubsub.subscribe(channel)
        return RedisSubscription(pubsub=pubsub, channel=channel)


class LiveRecipientMirror:
    """Local copy of one recipient's config kept current from a ChangeFeed."""

    def __init__(
        self,
        feed: ChangeFeed,
        recipient_id: str,
        initial: Optional[RecipientConfig] = None,
        on_change: Optional[Callable[[Optional[RecipientConfig]], None]] = None,
    ):
        self.recipient_id = recipient_id
        self.config = initial
        self.deleted = False
        self.on_change = on_change
        self._subscription = feed.subscribe(recipient_id)

    def poll(self, timeout: float = 0.0) -> int:
        """Apply every pending event; returns how many were applied."""
        applied = 0
        message = self._subscription.get_message(timeout=timeout)
        while message is not None:
            if self._apply(message):
                applied += 1
            message = self._subscription.get_message()
        return applied

    def _apply(self, event: dict) -> bool:
        kind = event.get("type")
        if kind == EVENT_UPDATE and isinstance(event.get("recipient"), dict):
            self.config = parse_recipient_config(event["recipient"])
        elif kind == EVENT_DELETE:
            self.config = None
            self.deleted = True
        else:
            logger.warning("Ignoring unknown realtime event %r", kind)
            return False
        if self.on_change is not None:
            self.on_change(self.config)
        return True

    def close(self) -> None:
        self._subscription.close()
