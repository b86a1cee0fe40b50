"""
Repository over the guild site tables

Every write commits immediately; callers get back refreshed ORM objects.
"""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, insert, select
from sqlalchemy.dialects.postgresql import insert as postgres_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.application import Application, ApplicationComment
from ..models.guild import Guild
from ..models.character import Character
from ..models.raid import RaidProgress, RaidBoss
from ..models.user import User
from ..models.web_log import WebLog
from ..utils.datetime_utils import hours_ago, utc_now

logger = logging.getLogger(__name__)

# Keeps multi-row VALUES under the bind parameter limits of every backend
INSERT_CHUNK_SIZE = 100


class GuildStorage:
    """Async data access for every guild site table"""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def _save(self, obj):
        self.session.add(obj)
        await self.session.commit()
        await self.session.refresh(obj)
        return obj

    async def _update(self, obj, data: Dict[str, Any]):
        for key, value in data.items():
            setattr(obj, key, value)
        return await self._save(obj)

    async def insert_ignoring_duplicates(self, model, rows: List[Dict[str, Any]]) -> int:
        """
        Insert rows, skipping any that collide with a unique constraint

        Every row must carry the same keys. Of two concurrent writers seeding
        the same rows, the later one inserts nothing.

        Returns:
            Number of rows inserted
        """
        inserted = 0
        dialect = self.session.bind.dialect.name
        for start in range(0, len(rows), INSERT_CHUNK_SIZE):
            chunk = rows[start:start + INSERT_CHUNK_SIZE]
            if dialect == "postgresql":
                stmt = postgres_insert(model).values(chunk).on_conflict_do_nothing()
            elif dialect == "sqlite":
                stmt = sqlite_insert(model).values(chunk).on_conflict_do_nothing()
            else:
                stmt = insert(model).values(chunk).prefix_with("IGNORE", dialect="mysql")
            result = await self.session.execute(stmt)
            inserted += max(result.rowcount or 0, 0)
        await self.session.commit()
        return inserted

    # ------------------------------------------------------------------
    # Guilds
    # ------------------------------------------------------------------

    async def get_guild(self, guild_id: int) -> Optional[Guild]:
        return await self.session.get(Guild, guild_id)

    async def get_guild_by_name(self, name: str, realm: str, region: Optional[str] = None) -> Optional[Guild]:
        """Look a guild up by name and realm, optionally narrowed to a region"""
        stmt = select(Guild).where(Guild.name == name, Guild.realm == realm)
        if region:
            stmt = stmt.where(Guild.server_region == region)
        result = await self.session.execute(stmt.order_by(Guild.id))
        return result.scalars().first()

    async def create_guild(self, **data) -> Guild:
        data.setdefault("last_updated", utc_now())
        return await self._save(Guild(**data))

    async def update_guild(self, guild: Guild, **data) -> Guild:
        return await self._update(guild, data)

    # ------------------------------------------------------------------
    # Characters
    # ------------------------------------------------------------------

    async def get_characters_by_guild_id(self, guild_id: int) -> List[Character]:
        result = await self.session.execute(
            select(Character).where(Character.guild_id == guild_id).order_by(Character.rank, Character.name)
        )
        return list(result.scalars().all())

    async def count_characters_by_guild_id(self, guild_id: int) -> int:
        result = await self.session.execute(
            select(func.count(Character.id)).where(Character.guild_id == guild_id)
        )
        return result.scalar_one()

    async def get_character_by_name_and_guild(self, name: str, guild_id: int) -> Optional[Character]:
        result = await self.session.execute(
            select(Character).where(Character.name == name, Character.guild_id == guild_id)
        )
        return result.scalars().first()

    async def get_character(self, character_id: int) -> Optional[Character]:
        return await self.session.get(Character, character_id)

    async def create_character(self, **data) -> Character:
        data.setdefault("last_updated", utc_now())
        return await self._save(Character(**data))

    async def update_character(self, character: Character, **data) -> Character:
        return await self._update(character, data)

    # ------------------------------------------------------------------
    # Raid progress
    # ------------------------------------------------------------------

    async def get_raid_progresses_by_guild_id(self, guild_id: int) -> List[RaidProgress]:
        result = await self.session.execute(
            select(RaidProgress).where(RaidProgress.guild_id == guild_id).order_by(RaidProgress.id)
        )
        return list(result.scalars().all())

    async def get_raid_progress(self, guild_id: int, name: str, difficulty: str) -> Optional[RaidProgress]:
        result = await self.session.execute(
            select(RaidProgress).where(
                RaidProgress.guild_id == guild_id,
                RaidProgress.name == name,
                RaidProgress.difficulty == difficulty,
            )
        )
        return result.scalars().first()

    async def create_raid_progress(self, **data) -> RaidProgress:
        data.setdefault("last_updated", utc_now())
        return await self._save(RaidProgress(**data))

    async def update_raid_progress(self, progress: RaidProgress, **data) -> RaidProgress:
        # A lowered total goes in after the defeated count, a raised one before
        if "bosses" in data:
            total = data.pop("bosses")
            lowering = progress.bosses_defeated is not None and total < progress.bosses_defeated
            if lowering and "bosses_defeated" in data:
                progress.bosses_defeated = data.pop("bosses_defeated")
            progress.bosses = total
        return await self._update(progress, data)

    # ------------------------------------------------------------------
    # Raid bosses
    # ------------------------------------------------------------------

    async def get_raid_bosses_by_guild_id(
        self,
        guild_id: int,
        raid_name: Optional[str] = None,
        difficulty: Optional[str] = None
    ) -> List[RaidBoss]:
        stmt = select(RaidBoss).where(RaidBoss.guild_id == guild_id)
        if raid_name:
            stmt = stmt.where(RaidBoss.raid_name == raid_name)
        if difficulty:
            stmt = stmt.where(RaidBoss.difficulty == difficulty)
        result = await self.session.execute(stmt.order_by(RaidBoss.id))
        return list(result.scalars().all())

    async def create_raid_boss(self, **data) -> RaidBoss:
        data.setdefault("last_updated", utc_now())
        return await self._save(RaidBoss(**data))

    async def update_raid_boss(self, boss: RaidBoss, **data) -> RaidBoss:
        return await self._update(boss, data)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def get_user(self, user_id: int) -> Optional[User]:
        return await self.session.get(User, user_id)

    async def get_user_by_battle_net_id(self, battle_net_id: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.battle_net_id == battle_net_id))
        return result.scalars().first()

    async def create_user(self, **data) -> User:
        return await self._save(User(**data))

    async def update_user(self, user: User, **data) -> User:
        return await self._update(user, data)

    # ------------------------------------------------------------------
    # Operation log
    # ------------------------------------------------------------------

    async def create_web_log(self, **data) -> WebLog:
        data.setdefault("timestamp", utc_now())
        return await self._save(WebLog(**data))

    async def get_web_logs(
        self,
        limit: int = 100,
        offset: int = 0,
        operation: Optional[str] = None,
        status: Optional[str] = None
    ) -> List[WebLog]:
        stmt = self._filter_web_logs(select(WebLog), operation, status)
        result = await self.session.execute(
            stmt.order_by(WebLog.timestamp.desc(), WebLog.id.desc()).limit(limit).offset(offset)
        )
        return list(result.scalars().all())

    async def count_web_logs(self, operation: Optional[str] = None, status: Optional[str] = None) -> int:
        stmt = self._filter_web_logs(select(func.count(WebLog.id)), operation, status)
        result = await self.session.execute(stmt)
        return result.scalar_one()

    @staticmethod
    def _filter_web_logs(stmt, operation: Optional[str], status: Optional[str]):
        if operation:
            stmt = stmt.where(WebLog.operation == operation)
        if status:
            stmt = stmt.where(WebLog.status == status)
        return stmt

    async def delete_web_logs(self, older_than_days: int) -> int:
        """Remove log entries older than the given number of days"""
        result = await self.session.execute(
            delete(WebLog).where(WebLog.timestamp < hours_ago(older_than_days * 24))
        )
        await self.session.commit()
        return result.rowcount or 0

    # ------------------------------------------------------------------
    # Recruitment applications
    # ------------------------------------------------------------------

    async def create_application(self, **data) -> Application:
        return await self._save(Application(**data))

    async def get_application(self, application_id: int) -> Optional[Application]:
        return await self.session.get(Application, application_id)

    async def get_applications(self, status: Optional[str] = None) -> List[Application]:
        """Newest first, optionally narrowed to one status"""
        stmt = select(Application)
        if status:
            stmt = stmt.where(Application.status == status)
        result = await self.session.execute(stmt.order_by(Application.created_at.desc(), Application.id.desc()))
        return list(result.scalars().all())

    async def change_application_status(
        self,
        application: Application,
        status: str,
        reviewer_id: int,
        review_notes: Optional[str] = None
    ) -> Application:
        now = utc_now()
        return await self._update(application, {
            "status": status,
            "reviewed_by": reviewer_id,
            "review_notes": review_notes,
            "review_date": now,
            "updated_at": now,
        })

    async def create_application_comment(self, **data) -> ApplicationComment:
        data.setdefault("created_at", utc_now())
        return await self._save(ApplicationComment(**data))

    async def get_application_comments(self, application_id: int) -> List[ApplicationComment]:
        result = await self.session.execute(
            select(ApplicationComment)
            .where(ApplicationComment.application_id == application_id)
            .order_by(ApplicationComment.created_at, ApplicationComment.id)
        )
        return list(result.scalars().all())
