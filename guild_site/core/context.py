"""
Application context

Everything long-lived (settings, database handle, API clients, translator,
template environment) is built once at startup and stored on app.state.
Routes reach it through FastAPI dependencies instead of module globals.
"""

import logging
from dataclasses import dataclass
from typing import AsyncIterator, Optional

from fastapi import Request
from jinja2 import Environment

from ..api.raiderio_client import RaiderIOClient
from ..api.warcraftlogs_client import WarcraftLogsClient
from ..auth.bnet import BnetStrategy, BnetStrategyOptions
from ..frontend.components import create_template_environment
from ..i18n.config import I18n, init_i18n
from ..models.database import DatabaseHandle, create_db_connection
from ..scheduler.tasks import ScheduledUpdates
from ..services.activity_logger import ActivityLogger
from ..services.refresh_service import RefreshService
from ..services.storage import GuildStorage
from .config import Settings, build_database_config

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    settings: Settings
    db: DatabaseHandle
    i18n: I18n
    raiderio: RaiderIOClient
    warcraftlogs: WarcraftLogsClient
    activity: ActivityLogger
    templates: Environment
    bnet: Optional[BnetStrategy] = None
    scheduler: Optional[ScheduledUpdates] = None

    @property
    def guild(self):
        """Default (name, realm, region) served by the site"""
        return self.settings.guild_name, self.settings.guild_realm, self.settings.guild_region

    def refresh_service(self) -> RefreshService:
        return RefreshService(self.db, self.raiderio)

    def create_scheduler(self) -> ScheduledUpdates:
        self.scheduler = ScheduledUpdates(self.refresh_service(), self.activity, *self.guild)
        return self.scheduler

    async def close(self):
        """Stop background jobs and release connections"""
        if self.scheduler is not None:
            await self.scheduler.stop()
        await self.raiderio.close()
        await self.warcraftlogs.close()
        await self.db.dispose()


def build_bnet_strategy(settings: Settings) -> Optional[BnetStrategy]:
    """Battle.net login is only offered when credentials are configured"""
    if not settings.blizzard_client_id or not settings.blizzard_client_secret:
        logger.warning("BLIZZARD_CLIENT_ID/BLIZZARD_CLIENT_SECRET not set, Battle.net login disabled")
        return None
    return BnetStrategy(
        BnetStrategyOptions(
            client_id=settings.blizzard_client_id,
            client_secret=settings.blizzard_client_secret,
            callback_url=settings.bnet_callback_url,
            region=settings.blizzard_region,
        ),
        timeout=settings.api_timeout_total,
    )


async def build_context(settings: Settings, db: Optional[DatabaseHandle] = None) -> AppContext:
    """
    Connect to the database and construct the shared collaborators

    Args:
        settings: Loaded application settings
        db: Pre-built database handle (tests pass an in-memory one)
    """
    if db is None:
        db = await create_db_connection(build_database_config(settings))

    return AppContext(
        settings=settings,
        db=db,
        i18n=init_i18n(),
        raiderio=RaiderIOClient(timeout=settings.api_timeout_total),
        warcraftlogs=WarcraftLogsClient(
            settings.warcraftlogs_client_id,
            settings.warcraftlogs_client_secret,
            timeout=settings.api_timeout_total,
        ),
        activity=ActivityLogger(db),
        templates=create_template_environment(),
        bnet=build_bnet_strategy(settings),
    )


def get_context(request: Request) -> AppContext:
    return request.app.state.context


async def get_storage(request: Request) -> AsyncIterator[GuildStorage]:
    """One session per request"""
    async with get_context(request).db.session() as session:
        yield GuildStorage(session)
