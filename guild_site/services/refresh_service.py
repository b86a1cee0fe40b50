"""
Refresh service

Pulls guild members and Mythic+ scores from Raider.IO and recomputes raid
progress from stored boss kills. Used by the scheduled tasks.
"""

import asyncio
import logging
from typing import Dict, List, Optional

from ..api.raiderio_client import RaiderIOClient
from ..api.warcraftlogs_client import WarcraftLogsClient
from ..core.constants import (
    GUILD_REFRESH_FIELDS,
    KNOWN_RAID_BOSS_COUNTS,
    SCORE_UPDATE_BATCH_PAUSE,
    SCORE_UPDATE_BATCH_SIZE,
    SCORE_UPDATE_MIN_AGE_HOURS,
)
from ..models.character import Character
from ..models.database import DatabaseHandle
from ..models.raid import RaidBoss, RaidProgress
from ..utils.datetime_utils import hours_since, utc_now
from ..utils.errors import APIError, DataNotFoundError
from ..utils.wow_utils import extract_mythic_plus_score
from .guild_service import GuildService
from .storage import GuildStorage

logger = logging.getLogger(__name__)


class RefreshService:
    """Keeps stored guild data in step with the external APIs"""

    def __init__(
        self,
        db: DatabaseHandle,
        raiderio: RaiderIOClient,
        batch_size: int = SCORE_UPDATE_BATCH_SIZE,
        batch_pause: float = SCORE_UPDATE_BATCH_PAUSE,
        min_age_hours: float = SCORE_UPDATE_MIN_AGE_HOURS
    ):
        self.db = db
        self.raiderio = raiderio
        self.batch_size = batch_size
        self.batch_pause = batch_pause
        self.min_age_hours = min_age_hours

    async def _require_guild(self, storage: GuildStorage, name: str, realm: str, region: str):
        guild = await storage.get_guild_by_name(name, realm, region)
        if guild is None:
            raise DataNotFoundError("Guild", f"{name} ({realm}-{region})")
        return guild

    async def refresh_guild_info(self, name: str, realm: str, region: str) -> None:
        """Make sure the guild row exists and its member count is current"""
        async with self.db.session() as session:
            await GuildService(GuildStorage(session), self.raiderio).get_guild(name, realm, region)

    async def refresh_guild_members(self, name: str, realm: str, region: str) -> Dict[str, int]:
        """
        Sync the stored roster with Raider.IO

        Members are matched by name. Characters no longer listed are kept
        with their history and only have last_updated touched; they are
        counted as removed. An answer without a member list leaves the
        stored roster untouched.

        Returns:
            {"added": n, "updated": n, "removed": n}
        """
        profile = await self.raiderio.get_guild_profile(name, realm, region, fields=GUILD_REFRESH_FIELDS)
        members = profile.get("members")
        if not isinstance(members, list) or not members:
            logger.warning(f"Raider.IO returned no members for {name}, roster left unchanged")
            return {"added": 0, "updated": 0, "removed": 0}

        async with self.db.session() as session:
            storage = GuildStorage(session)
            guild = await self._require_guild(storage, name, realm, region)

            counts = await GuildService(storage, self.raiderio).upsert_members(guild, members)

            listed = {
                member["character"]["name"]
                for member in members
                if isinstance(member, dict) and (member.get("character") or {}).get("name")
            }
            removed = 0
            now = utc_now()
            for character in await storage.get_characters_by_guild_id(guild.id):
                if character.name not in listed:
                    await storage.update_character(character, last_updated=now)
                    removed += 1

            await storage.update_guild(
                guild,
                member_count=await storage.count_characters_by_guild_id(guild.id),
                last_updated=utc_now()
            )

        result = {"added": counts["added"], "updated": counts["updated"], "removed": removed}
        logger.info(f"Guild member refresh for {name}: {result}")
        return result

    async def update_character_scores(self, name: str, realm: str, region: str) -> Dict[str, int]:
        """
        Refresh Mythic+ score, item level and avatar per character

        Characters updated within the minimum age are skipped. Requests are
        sent in batches with a pause between batches.

        Returns:
            {"updated": n, "failed": n, "skipped": n}
        """
        updated = failed = skipped = 0

        async with self.db.session() as session:
            storage = GuildStorage(session)
            guild = await self._require_guild(storage, name, realm, region)
            characters = await storage.get_characters_by_guild_id(guild.id)

            in_batch = 0
            for index, character in enumerate(characters):
                if hours_since(character.last_updated) < self.min_age_hours:
                    skipped += 1
                    continue

                try:
                    profile = await self.raiderio.get_character_profile(
                        character.name, character.realm or guild.realm, guild.server_region
                    )
                except APIError as e:
                    logger.warning(f"Could not update character {character.name}: {e.message}")
                    failed += 1
                else:
                    await self._apply_profile(storage, character, profile)
                    updated += 1

                in_batch += 1
                if in_batch >= self.batch_size and index < len(characters) - 1:
                    logger.info(f"Processed {in_batch} characters, pausing {self.batch_pause}s")
                    await asyncio.sleep(self.batch_pause)
                    in_batch = 0

        result = {"updated": updated, "failed": failed, "skipped": skipped}
        logger.info(f"Character score update for {name}: {result}")
        return result

    async def _apply_profile(self, storage: GuildStorage, character: Character, profile: Dict) -> Character:
        score = extract_mythic_plus_score(profile)
        gear = profile.get("gear") or {}
        return await storage.update_character(
            character,
            raider_io_score=round(score, 2) if score is not None else character.raider_io_score,
            item_level=gear.get("item_level_equipped") or character.item_level,
            avatar_url=profile.get("thumbnail_url") or character.avatar_url,
            spec_name=profile.get("active_spec_name") or character.spec_name,
            role=profile.get("active_spec_role") or character.role,
            last_updated=utc_now()
        )

    async def update_character_score(self, character_id: int) -> Character:
        """
        Refresh one character right away, regardless of when it was last updated

        Raises:
            DataNotFoundError: no character with this id
            APIError: Raider.IO has no profile for the character
        """
        async with self.db.session() as session:
            storage = GuildStorage(session)
            character = await storage.get_character(character_id)
            if character is None:
                raise DataNotFoundError("Character", str(character_id))
            guild = await storage.get_guild(character.guild_id)
            profile = await self.raiderio.get_character_profile(
                character.name, character.realm or guild.realm, guild.server_region
            )
            character = await self._apply_profile(storage, character, profile)

        logger.info(f"Updated character {character.name}: score {character.raider_io_score}")
        return character

    async def refresh_raid_progress(
        self,
        name: str,
        realm: str,
        region: str,
        raid_name: str,
        difficulty: str
    ) -> RaidProgress:
        """
        Recount defeated bosses for a raid

        Known raids get their fixed encounter count; other raids keep whatever
        totals are already stored. Rankings are preserved.
        """
        async with self.db.session() as session:
            storage = GuildStorage(session)
            guild = await self._require_guild(storage, name, realm, region)
            existing = await storage.get_raid_progress(guild.id, raid_name, difficulty)

            if raid_name in KNOWN_RAID_BOSS_COUNTS:
                bosses = await storage.get_raid_bosses_by_guild_id(guild.id, raid_name, difficulty)
                total = KNOWN_RAID_BOSS_COUNTS[raid_name]
                defeated = min(sum(1 for boss in bosses if boss.defeated), total)
            elif existing is not None:
                total, defeated = existing.bosses, existing.bosses_defeated
            else:
                total = defeated = 0

            if existing is not None:
                progress = await storage.update_raid_progress(
                    existing, bosses=total, bosses_defeated=defeated, last_updated=utc_now()
                )
            else:
                progress = await storage.create_raid_progress(
                    name=raid_name, difficulty=difficulty, bosses=total,
                    bosses_defeated=defeated, guild_id=guild.id
                )

        logger.info(f"Raid progress for {raid_name} ({difficulty}): {progress.bosses_defeated}/{progress.bosses}")
        return progress

    async def refresh_raid_boss_data(
        self,
        name: str,
        realm: str,
        region: str,
        raid_name: str,
        difficulty: str
    ) -> List[RaidBoss]:
        """Touch stored boss rows and recount progress; empty when no bosses are stored"""
        async with self.db.session() as session:
            storage = GuildStorage(session)
            guild = await self._require_guild(storage, name, realm, region)
            bosses = await storage.get_raid_bosses_by_guild_id(guild.id, raid_name, difficulty)
            if not bosses:
                logger.info(f"No bosses found for {raid_name} ({difficulty})")
                return []
            now = utc_now()
            for boss in bosses:
                await storage.update_raid_boss(boss, last_updated=now)
            bosses = await storage.get_raid_bosses_by_guild_id(guild.id, raid_name, difficulty)

        await self.refresh_raid_progress(name, realm, region, raid_name, difficulty)
        return bosses

    async def enrich_with_warcraftlogs(
        self,
        name: str,
        realm: str,
        region: str,
        raid_name: str,
        difficulty: str,
        warcraftlogs: Optional[WarcraftLogsClient] = None
    ) -> int:
        """
        Attach WarcraftLogs encounter ids to stored bosses by name

        Returns:
            Number of bosses matched
        """
        if warcraftlogs is None or not warcraftlogs.configured:
            return 0
        encounters = await warcraftlogs.get_zone_encounters(raid_name)
        by_name = {encounter["name"]: encounter for encounter in encounters if encounter.get("name")}

        matched = 0
        async with self.db.session() as session:
            storage = GuildStorage(session)
            guild = await self._require_guild(storage, name, realm, region)
            for boss in await storage.get_raid_bosses_by_guild_id(guild.id, raid_name, difficulty):
                encounter = by_name.get(boss.name)
                if encounter is None:
                    continue
                await storage.update_raid_boss(
                    boss,
                    encounter_id=encounter.get("id"),
                    warcraftlogs_id=str(encounter.get("id")),
                    warcraft_logs_data={"encounter": encounter},
                )
                matched += 1
        return matched


