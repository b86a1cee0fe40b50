"""Tests for ScheduledUpdates and ActivityLogger."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from guild_site.scheduler.tasks import ScheduledUpdates
from guild_site.services.activity_logger import ActivityLogger
from guild_site.services.refresh_service import RefreshService


def _refresh_mock() -> MagicMock:
    refresh = MagicMock(spec=RefreshService)
    refresh.refresh_guild_info = AsyncMock()
    refresh.refresh_guild_members = AsyncMock(return_value={"added": 2, "updated": 10, "removed": 0})
    refresh.update_character_scores = AsyncMock(return_value={"updated": 12, "failed": 0, "skipped": 0})
    refresh.refresh_raid_progress = AsyncMock()
    refresh.refresh_raid_boss_data = AsyncMock(return_value=[object()] * 8)
    return refresh


def _updates(refresh, db) -> ScheduledUpdates:
    return ScheduledUpdates(refresh, ActivityLogger(db), "Guttakrutt", "Tarren Mill", "eu")


class TestActivityLogger:
    """Tests for ActivityLogger."""

    @pytest.mark.asyncio
    async def test_log_operation_stores_entry(self, db) -> None:
        activity = ActivityLogger(db)

        entry_id = await activity.log_operation("guild_members_refresh", "success", "Done", 120, {"added": 1})

        assert entry_id is not None
        [entry] = await activity.recent()
        assert entry.status == "success"
        assert entry.duration == 120
        assert json.loads(entry.log_metadata) == {"added": 1}

    @pytest.mark.asyncio
    async def test_unknown_status_rejected(self, db) -> None:
        with pytest.raises(ValueError):
            await ActivityLogger(db).log_operation("anything", "exploded")

    @pytest.mark.asyncio
    async def test_track_logs_error_and_reraises(self, db) -> None:
        activity = ActivityLogger(db)

        with pytest.raises(RuntimeError):
            async with activity.track("raid_progress_refresh", "Raid progress") as meta:
                meta["raid"] = "Nerub-ar Palace"
                raise RuntimeError("upstream down")

        [entry] = await activity.recent(operation="raid_progress_refresh")
        assert entry.status == "error"
        assert "upstream down" in entry.details
        assert json.loads(entry.log_metadata) == {"raid": "Nerub-ar Palace"}


class TestScheduledUpdates:
    """Tests for the scheduled refresh jobs."""

    @pytest.mark.asyncio
    async def test_daily_update_success(self, db) -> None:
        refresh = _refresh_mock()

        assert await _updates(refresh, db).perform_daily_update() is True

        refresh.refresh_guild_info.assert_awaited_once_with("Guttakrutt", "Tarren Mill", "eu")
        refresh.update_character_scores.assert_awaited_once()
        logs = await ActivityLogger(db).recent()
        statuses = {(log.operation, log.status) for log in logs}
        assert ("scheduled_daily_update", "success") in statuses
        assert ("guild_members_refresh", "success") in statuses
        members = next(log for log in logs if log.operation == "guild_members_refresh")
        assert json.loads(members.log_metadata)["added"] == 2

    @pytest.mark.asyncio
    async def test_daily_update_stops_at_first_failure(self, db) -> None:
        refresh = _refresh_mock()
        refresh.refresh_guild_members.side_effect = RuntimeError("Raider.IO unavailable")

        assert await _updates(refresh, db).perform_daily_update() is False

        refresh.update_character_scores.assert_not_awaited()
        logs = await ActivityLogger(db).recent(operation="scheduled_daily_update")
        assert logs[0].status == "error"

    @pytest.mark.asyncio
    async def test_weekly_refresh_covers_both_tiers(self, db) -> None:
        refresh = _refresh_mock()

        assert await _updates(refresh, db).perform_weekly_raid_refresh() is True

        raids = [call.args[3] for call in refresh.refresh_raid_boss_data.await_args_list]
        assert raids == ["Liberation of Undermine", "Nerub-ar Palace"]
        refresh.refresh_raid_progress.assert_awaited_once_with(
            "Guttakrutt", "Tarren Mill", "eu", "Liberation of Undermine", "mythic"
        )

    @pytest.mark.asyncio
    async def test_start_registers_both_jobs(self, db) -> None:
        updates = _updates(_refresh_mock(), db)

        tasks = updates.start(run_immediately=False)
        try:
            assert [task.expression for task in tasks] == ["0 0 * * *", "0 3 * * 0"]
            assert all(task.get_status() == "scheduled" for task in tasks)
            assert updates.startup_run is None
        finally:
            await updates.stop()

        assert updates.tasks == []
        assert all(task.get_status() == "stopped" for task in tasks)

    @pytest.mark.asyncio
    async def test_startup_run_is_kept_and_completes(self, db) -> None:
        refresh = _refresh_mock()
        updates = _updates(refresh, db)

        updates.start()
        run = updates.startup_run
        try:
            assert run is not None
            assert await run is True
        finally:
            await updates.stop()

        refresh.update_character_scores.assert_awaited_once()
        assert updates.startup_run is None

    @pytest.mark.asyncio
    async def test_stop_cancels_startup_run(self, db) -> None:
        refresh = _refresh_mock()
        started = asyncio.Event()

        async def slow_members(*args):
            started.set()
            await asyncio.sleep(3600)

        refresh.refresh_guild_members.side_effect = slow_members
        updates = _updates(refresh, db)

        updates.start()
        run = updates.startup_run
        await asyncio.wait_for(started.wait(), timeout=5)
        await updates.stop()

        assert run.cancelled()
        assert updates.startup_run is None
        refresh.update_character_scores.assert_not_awaited()
