"""Standalone runner for the achievement evaluation consumer.

Reads workout-completion events from a Redis Stream and runs the
achievement engine for the user in each event. Events are acknowledged
only after evaluation succeeds. A failed event stays unacknowledged in
the group's pending list and is not retried by this consumer; the
user's next completion event re-evaluates from scratch, and evaluation
is idempotent, so missed awards are caught up then.

Usage: python -m fitquest.workers.achievement_runner
"""

from __future__ import annotations

import asyncio
import json
import logging
import signal

import redis.asyncio as aioredis
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fitquest.achievements.catalog import AchievementCatalog, AchievementDefinition, get_catalog
from fitquest.achievements.engine import AchievementEngine
from fitquest.config import get_settings
from fitquest.database import close_db, get_session_factory, init_db
from fitquest.middleware.logging import setup_logging

logger = logging.getLogger(__name__)

_running = True


def parse_event(raw_data: dict) -> dict:
    """Decode a stream entry; the payload is either JSON in ``data`` or flat fields."""
    data_str = raw_data.get("data")
    if isinstance(data_str, str):
        try:
            decoded = json.loads(data_str)
        except json.JSONDecodeError:
            return dict(raw_data)
        if isinstance(decoded, dict):
            return decoded
    return dict(raw_data)


async def process_event(
    session_factory: async_sessionmaker[AsyncSession],
    catalog: AchievementCatalog,
    redis_client: object | None,
    data: dict,
) -> list[AchievementDefinition]:
    """Evaluate achievements for the user named in a completion event."""
    user_id = str(data.get("user_id") or "")
    if not user_id:
        logger.warning("Skipping workout event without user_id: %s", data)
        return []

    async with session_factory() as db:
        engine = AchievementEngine(db, catalog, redis_client)
        return await engine.evaluate_and_award(user_id)


async def handle_messages(
    redis_client: aioredis.Redis,
    session_factory: async_sessionmaker[AsyncSession],
    catalog: AchievementCatalog,
    stream: str,
    group: str,
    messages: list,
) -> int:
    """Process a batch of stream entries, acking each one that succeeds. Returns the ack count."""
    acked = 0
    for msg_id, raw_data in messages:
        try:
            awarded = await process_event(session_factory, catalog, redis_client, parse_event(raw_data))
        except Exception:
            logger.exception("Failed to process %s from %s", msg_id, stream)
            continue
        if awarded:
            logger.info("Awarded achievements %s (event=%s)", [d.id for d in awarded], msg_id)
        await redis_client.xack(stream, group, msg_id)
        acked += 1
    return acked


async def consume(
    redis_client: aioredis.Redis,
    session_factory: async_sessionmaker[AsyncSession],
    catalog: AchievementCatalog,
    stream: str,
    group: str,
    consumer_name: str,
) -> None:
    """Main consumer loop."""
    while _running:
        try:
            events = await redis_client.xreadgroup(
                groupname=group,
                consumername=consumer_name,
                streams={stream: ">"},
                count=100,
                block=5000,
            )
        except aioredis.ResponseError as e:
            logger.error("XREADGROUP error: %s", e)
            await asyncio.sleep(1)
            continue

        if not events:
            continue

        for _stream_name, messages in events:
            await handle_messages(redis_client, session_factory, catalog, stream, group, messages)


async def main() -> None:
    """Run the achievement consumer."""
    settings = get_settings()
    setup_logging(settings)
    catalog = get_catalog()
    await init_db(settings.database_url)

    redis_client = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
    )

    try:
        await redis_client.xgroup_create(
            settings.workout_stream, settings.achievement_consumer_group, id="0", mkstream=True
        )
        logger.info("Created consumer group %s for %s", settings.achievement_consumer_group, settings.workout_stream)
    except aioredis.ResponseError as e:
        if "BUSYGROUP" not in str(e):
            raise

    loop = asyncio.get_running_loop()

    def _stop() -> None:
        global _running  # noqa: PLW0603
        _running = False

    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, _stop)

    logger.info("Starting achievement consumer (consumer=%s)", settings.achievement_consumer_name)

    try:
        await consume(
            redis_client,
            get_session_factory(),
            catalog,
            settings.workout_stream,
            settings.achievement_consumer_group,
            settings.achievement_consumer_name,
        )
    finally:
        await redis_client.aclose()
        await close_db()
        logger.info("Achievement consumer stopped")


if __name__ == "__main__":
    asyncio.run(main())
