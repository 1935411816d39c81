"""Achievement consumer tests: event parsing, acking and the read loop."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from fitquest.achievements.catalog import AchievementDefinition
from fitquest.errors import StorageError
from fitquest.workers import achievement_runner as runner
from fitquest.workers.achievement_runner import parse_event, process_event


class TestParseEvent:
    def test_json_data_field(self):
        raw = {"data": json.dumps({"user_id": "u-1", "workout_id": "w-1"})}
        assert parse_event(raw) == {"user_id": "u-1", "workout_id": "w-1"}

    def test_flat_fields(self):
        assert parse_event({"user_id": "u-1"}) == {"user_id": "u-1"}

    def test_invalid_json_falls_back_to_flat(self):
        assert parse_event({"data": "{oops", "user_id": "u-2"}) == {"data": "{oops", "user_id": "u-2"}


class TestProcessEvent:
    @pytest.mark.asyncio
    async def test_event_without_user_is_skipped(self, catalog):
        def factory():
            raise AssertionError("no session should be opened")

        assert await process_event(factory, catalog, None, {"workout_id": "w-1"}) == []


def _definition(achievement_id: str) -> AchievementDefinition:
    return AchievementDefinition(achievement_id, "n", "d", "variety", 3, 50)


class TestHandleMessages:
    @pytest.mark.asyncio
    async def test_acks_after_success(self, catalog, monkeypatch):
        process = AsyncMock(return_value=[_definition("variety-3")])
        monkeypatch.setattr(runner, "process_event", process)
        redis_client = AsyncMock()

        acked = await runner.handle_messages(
            redis_client, MagicMock(), catalog, "workouts:completed", "achievement-consumers",
            [("1-0", {"data": json.dumps({"user_id": "u-1"})})],
        )

        assert acked == 1
        assert process.await_args[0][3] == {"user_id": "u-1"}
        redis_client.xack.assert_awaited_once_with("workouts:completed", "achievement-consumers", "1-0")

    @pytest.mark.asyncio
    async def test_failed_event_left_unacked(self, catalog, monkeypatch):
        process = AsyncMock(side_effect=[StorageError("load workout stats failed"), []])
        monkeypatch.setattr(runner, "process_event", process)
        redis_client = AsyncMock()

        acked = await runner.handle_messages(
            redis_client, MagicMock(), catalog, "workouts:completed", "g",
            [("1-0", {"user_id": "u-1"}), ("2-0", {"user_id": "u-2"})],
        )

        assert acked == 1
        redis_client.xack.assert_awaited_once_with("workouts:completed", "g", "2-0")


class TestConsume:
    @pytest.mark.asyncio
    async def test_reads_new_entries_and_acks(self, catalog, monkeypatch):
        monkeypatch.setattr(runner, "_running", True)
        monkeypatch.setattr(runner, "process_event", AsyncMock(return_value=[]))

        batches = [[("workouts:completed", [("5-0", {"user_id": "u-1"})])]]

        async def fake_xreadgroup(**kwargs):
            assert kwargs["streams"] == {"workouts:completed": ">"}
            if batches:
                return batches.pop(0)
            runner._running = False
            return []

        redis_client = AsyncMock()
        redis_client.xreadgroup = fake_xreadgroup

        await runner.consume(redis_client, MagicMock(), catalog, "workouts:completed", "g", "worker-1")

        redis_client.xack.assert_awaited_once_with("workouts:completed", "g", "5-0")
