"""
Scheduled refresh jobs

Daily at midnight: guild info, roster and Mythic+ scores.
Sunday 03:00: raid progress and boss data for the current and previous tier.
Every step lands in the operation log.
"""

import asyncio
import logging
from typing import List, Optional

from ..core.constants import (
    CURRENT_RAID,
    DAILY_UPDATE_CRON,
    DEFAULT_DIFFICULTY,
    PREVIOUS_RAID,
    WEEKLY_RAID_REFRESH_CRON,
)
from ..services.activity_logger import ActivityLogger
from ..services.refresh_service import RefreshService
from .cron import ScheduledTask, ScheduleOptions, schedule

logger = logging.getLogger(__name__)


class ScheduledUpdates:
    """Runs the refresh steps for one guild"""

    def __init__(
        self,
        refresh: RefreshService,
        activity: ActivityLogger,
        guild_name: str,
        realm: str,
        region: str
    ):
        self.refresh = refresh
        self.activity = activity
        self.guild_name = guild_name
        self.realm = realm
        self.region = region
        self._tasks: List[ScheduledTask] = []
        self._startup_run: Optional[asyncio.Task] = None

    @property
    def _guild(self):
        return self.guild_name, self.realm, self.region

    async def perform_daily_update(self) -> bool:
        """
        Refresh guild info, members and scores in order

        Returns:
            True when every step succeeded
        """
        logger.info("Starting scheduled daily update...")
        await self.activity.log_operation("scheduled_daily_update", "info", "Starting daily automated refresh process")
        try:
            async with self.activity.track("guild_info_update", f"Updated guild info for {self.guild_name}"):
                await self.refresh.refresh_guild_info(*self._guild)

            async with self.activity.track("guild_members_refresh", "Guild members refresh") as meta:
                members = await self.refresh.refresh_guild_members(*self._guild)
                meta.update(members)

            async with self.activity.track("character_scores_update", "Character scores update") as meta:
                scores = await self.refresh.update_character_scores(*self._guild)
                meta.update(scores)
        except Exception as e:
            logger.error(f"Error during daily update: {str(e)}")
            await self.activity.log_operation("scheduled_daily_update", "error", f"Daily update failed: {str(e)}")
            return False

        await self.activity.log_operation(
            "scheduled_daily_update", "success", "Daily automated refresh process completed successfully"
        )
        return True

    async def perform_weekly_raid_refresh(self) -> bool:
        """
        Recount raid progress and touch boss data for both tiers

        Returns:
            True when every step succeeded
        """
        logger.info("Starting weekly raid data refresh...")
        await self.activity.log_operation("weekly_raid_refresh", "info", "Starting weekly raid data refresh process")
        try:
            async with self.activity.track("raid_progress_refresh", f"Raid progress for {CURRENT_RAID}"):
                await self.refresh.refresh_raid_progress(*self._guild, CURRENT_RAID, DEFAULT_DIFFICULTY)

            async with self.activity.track("raid_bosses_refresh", f"Raid boss data for {CURRENT_RAID}") as meta:
                bosses = await self.refresh.refresh_raid_boss_data(*self._guild, CURRENT_RAID, DEFAULT_DIFFICULTY)
                meta["bosses"] = len(bosses)

            async with self.activity.track("previous_tier_refresh", f"Raid boss data for {PREVIOUS_RAID}") as meta:
                bosses = await self.refresh.refresh_raid_boss_data(*self._guild, PREVIOUS_RAID, DEFAULT_DIFFICULTY)
                meta["bosses"] = len(bosses)
        except Exception as e:
            logger.error(f"Error during weekly raid data refresh: {str(e)}")
            await self.activity.log_operation("weekly_raid_refresh", "error", f"Weekly raid data refresh failed: {str(e)}")
            return False

        await self.activity.log_operation(
            "weekly_raid_refresh", "success", "Weekly raid data refresh process completed successfully"
        )
        return True

    def start(self, run_immediately: bool = True, timezone: Optional[str] = None) -> List[ScheduledTask]:
        """
        Register both cron jobs on the running loop

        Args:
            run_immediately: also kick off one daily update right away
            timezone: IANA zone the cron expressions are evaluated in
        """
        options = ScheduleOptions(scheduled=True, timezone=timezone)
        self._tasks = [
            schedule(DAILY_UPDATE_CRON, self.perform_daily_update, options),
            schedule(WEEKLY_RAID_REFRESH_CRON, self.perform_weekly_raid_refresh, options),
        ]
        if run_immediately:
            logger.info("Scheduling first automatic update...")
            self._startup_run = asyncio.get_running_loop().create_task(self.perform_daily_update())
        return self._tasks

    async def stop(self):
        """Stop both cron jobs and cancel a startup update still in flight"""
        for task in self._tasks:
            task.stop()
        self._tasks = []

        startup_run, self._startup_run = self._startup_run, None
        if startup_run is not None and not startup_run.done():
            startup_run.cancel()
            try:
                await startup_run
            except asyncio.CancelledError:
                logger.info("Startup update cancelled")

    @property
    def startup_run(self) -> Optional[asyncio.Task]:
        return self._startup_run

    @property
    def tasks(self) -> List[ScheduledTask]:
        return list(self._tasks)
