"""Live notification-preference sync.

Preference changes are published per user on ``prefs:user:{user_id}``.
Subscribers receive the full updated preference object. Subscribing
performs an explicit initial fetch, since the channel only carries
future changes.

Two brokers implement the same interface, both fanning out to an
in-process map of user id -> listeners:
  - RedisPreferenceBroker: one shared ``psubscribe("prefs:user:*")``
    connection per process, so subscribers never hold a Redis connection
  - LocalPreferenceBroker: single process, publish dispatches directly
"""

from __future__ import annotations

import asyncio
import inspect
import json
import uuid
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Protocol

import redis.asyncio as aioredis
import structlog
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fitquest.errors import translate_storage_errors
from fitquest.notifications.preferences import default_preferences, fetch_preferences
from fitquest.notifications.schemas import NotificationPreferences

logger = structlog.get_logger()

CHANNEL_PREFIX = "prefs:user:"
CHANNEL_PATTERN = f"{CHANNEL_PREFIX}*"

PreferenceListener = Callable[[NotificationPreferences], Awaitable[None] | None]
Unsubscribe = Callable[[], Awaitable[None]]


def preference_channel(user_id: str) -> str:
    return f"{CHANNEL_PREFIX}{user_id}"


async def _deliver(listener: PreferenceListener, preferences: NotificationPreferences) -> None:
    result = listener(preferences)
    if inspect.isawaitable(result):
        await result


class PreferenceBroker(Protocol):
    @property
    def running(self) -> bool: ...

    async def start(self) -> None: ...

    async def stop(self) -> None: ...

    async def publish(self, preferences: NotificationPreferences) -> None: ...

    async def subscribe(self, user_id: str, listener: PreferenceListener) -> Unsubscribe: ...


class _ListenerMap:
    """Per-user listener registry with failure-isolated dispatch."""

    def __init__(self) -> None:
        self._listeners: dict[str, dict[str, PreferenceListener]] = defaultdict(dict)

    @property
    def subscriber_count(self) -> int:
        return sum(len(listeners) for listeners in self._listeners.values())

    async def subscribe(self, user_id: str, listener: PreferenceListener) -> Unsubscribe:
        token = str(uuid.uuid4())
        self._listeners[user_id][token] = listener

        async def unsubscribe() -> None:
            listeners = self._listeners.get(user_id)
            if listeners is None:
                return
            listeners.pop(token, None)
            if not listeners:
                del self._listeners[user_id]

        return unsubscribe

    async def dispatch(self, preferences: NotificationPreferences) -> int:
        """Deliver to every listener of the user. Returns how many succeeded."""
        delivered = 0
        for listener in list(self._listeners.get(preferences.user_id, {}).values()):
            try:
                await _deliver(listener, preferences)
                delivered += 1
            except Exception:
                logger.warning("preference_listener_failed", user_id=preferences.user_id, exc_info=True)
        return delivered


class LocalPreferenceBroker(_ListenerMap):
    """In-memory fan-out of preference changes within one process."""

    @property
    def running(self) -> bool:
        return True

    async def start(self) -> None:
        return None

    async def stop(self) -> None:
        return None

    async def publish(self, preferences: NotificationPreferences) -> None:
        await self.dispatch(preferences)


class RedisPreferenceBroker(_ListenerMap):
    """Preference fan-out over one shared Redis pattern subscription.

    ``start()`` runs the listener in a background task which reconnects
    after ``retry_delay`` seconds whenever the connection drops.
    """

    def __init__(self, redis_client: aioredis.Redis, retry_delay: float = 1.0) -> None:
        super().__init__()
        self.redis = redis_client
        self.retry_delay = retry_delay
        self._task: asyncio.Task | None = None
        self._connected = False

    @property
    def running(self) -> bool:
        return self._connected and self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def publish(self, preferences: NotificationPreferences) -> None:
        with translate_storage_errors("publish preference change"):
            await self.redis.publish(
                preference_channel(preferences.user_id),
                preferences.model_dump_json(),
            )

    async def _run(self) -> None:
        while True:
            try:
                await self._listen()
            except Exception:
                logger.error("preference_sync_disconnected", retry_in=self.retry_delay, exc_info=True)
            finally:
                self._connected = False
            await asyncio.sleep(self.retry_delay)

    async def _listen(self) -> None:
        pubsub = self.redis.pubsub()
        try:
            await pubsub.psubscribe(CHANNEL_PATTERN)
            self._connected = True
            logger.info("preference_sync_started", pattern=CHANNEL_PATTERN)
            while True:
                message = await pubsub.get_message(ignore_subscribe_messages=True, timeout=1.0)
                if message is not None:
                    await self.handle_message(message)
        finally:
            try:
                await pubsub.punsubscribe()
                await pubsub.aclose()
            except Exception:
                logger.debug("preference_sync_close_failed", exc_info=True)
            logger.info("preference_sync_stopped")

    async def handle_message(self, message: dict) -> int:
        """Decode one pub/sub message and fan it out. Returns listeners reached."""
        if message.get("type") != "pmessage":
            return 0

        channel = message.get("channel", "")
        if isinstance(channel, bytes):
            channel = channel.decode()
        user_id = channel.removeprefix(CHANNEL_PREFIX)

        try:
            data = message.get("data", b"")
            if isinstance(data, bytes):
                data = data.decode()
            preferences = NotificationPreferences.model_validate(json.loads(data))
        except (json.JSONDecodeError, UnicodeDecodeError, ValidationError):
            logger.warning("preference_invalid_message", channel=channel)
            return 0

        if preferences.user_id != user_id:
            logger.warning("preference_channel_mismatch", channel=channel, user_id=preferences.user_id)
            return 0
        return await self.dispatch(preferences)


class PreferenceSubscription:
    """Handle for one live subscription; ``current`` mirrors the latest preferences."""

    def __init__(self, user_id: str, on_change: PreferenceListener) -> None:
        self.user_id = user_id
        self.current: NotificationPreferences | None = None
        self._on_change = on_change
        self._unsubscribe: Unsubscribe | None = None

    async def _receive(self, preferences: NotificationPreferences) -> None:
        self.current = preferences
        await _deliver(self._on_change, preferences)

    @property
    def active(self) -> bool:
        return self._unsubscribe is not None

    async def unsubscribe(self) -> None:
        unsubscribe, self._unsubscribe = self._unsubscribe, None
        if unsubscribe is not None:
            await unsubscribe()


class PreferenceSync:
    """Subscribes consumers to a user's preference changes, seeded by an initial fetch."""

    def __init__(
        self,
        broker: PreferenceBroker,
        session_factory: async_sessionmaker[AsyncSession],
    ) -> None:
        self.broker = broker
        self.session_factory = session_factory

    async def subscribe(self, user_id: str, on_change: PreferenceListener) -> PreferenceSubscription:
        """Subscribe to ``user_id``'s preferences.

        ``on_change`` first receives the current preferences, then every
        later update. A missing row yields all-true defaults without
        creating it. If the fetch or the first delivery fails, the
        subscription is removed and the error propagates.
        """
        subscription = PreferenceSubscription(user_id, on_change)
        # Subscribe before fetching so no change between the two is lost.
        subscription._unsubscribe = await self.broker.subscribe(user_id, subscription._receive)
        try:
            async with self.session_factory() as db:
                stored = await fetch_preferences(db, user_id)
            if subscription.current is None:
                await subscription._receive(stored or default_preferences(user_id))
        except BaseException:
            await subscription.unsubscribe()
            raise
        return subscription

    async def publish(self, preferences: NotificationPreferences) -> None:
        """Announce a committed preference change to all subscribers."""
        await self.broker.publish(preferences)
