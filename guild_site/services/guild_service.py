"""
Guild data service behind the REST endpoints

Reads come from storage. A guild, roster, raid progress or boss list that is
missing is populated on first request: from Raider.IO where possible, from
the built-in seed data otherwise.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..api.raiderio_client import RaiderIOClient
from ..core.constants import (
    DEFAULT_BOSSES,
    DEFAULT_CHARACTER_LEVEL,
    DEFAULT_FACTION,
    DEFAULT_GUILD_DESCRIPTION,
    DEFAULT_GUILD_EMBLEM,
    DEFAULT_RAID_PROGRESS,
    DEFAULT_ROSTER,
    GUILD_MEMBERS_FIELDS,
    GUILD_PROFILE_FIELDS,
)
from ..models.character import Character
from ..models.guild import Guild
from ..models.raid import DifficultyEnum, RaidBoss, RaidProgress
from ..utils.errors import APIError
from ..utils.datetime_utils import utc_now
from ..utils.wow_utils import armory_link, parse_class_info
from .storage import GuildStorage

logger = logging.getLogger(__name__)


def member_to_character_fields(member: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """
    Map a Raider.IO guild member entry onto Character columns

    Returns None for entries without a character block.
    """
    character = member.get("character") if isinstance(member, dict) else None
    if not character or not character.get("name"):
        return None

    gear = character.get("gear") or {}
    blizzard_id = character.get("id")
    return {
        "name": character["name"],
        "class_name": parse_class_info(character.get("class")),
        "spec_name": character.get("active_spec_name") or character.get("spec") or "",
        "role": character.get("active_spec_role"),
        "rank": member.get("rank") or 0,
        "level": character.get("level") or DEFAULT_CHARACTER_LEVEL,
        "avatar_url": character.get("thumbnail_url") or "",
        "item_level": gear.get("item_level_equipped") or 0,
        "blizzard_id": str(blizzard_id) if blizzard_id else "",
        "realm": character.get("realm"),
    }


def _parse_kill_date(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    return datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=timezone.utc)


def seed_boss_rows(raid_name: str, difficulty: str) -> List[Dict[str, Any]]:
    """
    Built-in boss rows for a raid and difficulty

    Mythic rows carry the recorded kill history. Heroic and normal rows reuse
    the encounter list with every boss defeated.
    """
    rows = []
    for boss in DEFAULT_BOSSES.get(raid_name, []):
        row = {
            "name": boss["name"],
            "raid_name": raid_name,
            "icon_url": boss["icon_url"],
            "difficulty": difficulty,
        }
        if difficulty == DifficultyEnum.MYTHIC.value:
            row.update(
                best_time=boss["best_time"],
                best_parse=boss["best_parse"],
                pull_count=boss["pull_count"],
                defeated=boss["defeated"],
                in_progress=boss.get("in_progress", False),
                last_kill_date=_parse_kill_date(boss["last_kill_date"]),
                kill_count=1 if boss["defeated"] else 0,
            )
        else:
            row.update(
                best_time=boss["best_time"] or None,
                best_parse=boss["best_parse"] or None,
                pull_count=max(10, boss["pull_count"] // 2),
                defeated=True,
                in_progress=False,
                kill_count=1,
            )
        rows.append(row)
    return rows


class GuildService:
    """Endpoint-facing operations over one database session"""

    def __init__(self, storage: GuildStorage, raiderio: RaiderIOClient):
        self.storage = storage
        self.raiderio = raiderio

    async def get_guild(self, name: str, realm: str, region: str) -> Guild:
        """
        Guild record, created on first request

        The stored member count is brought in line with the number of stored
        characters before returning.
        """
        guild = await self.storage.get_guild_by_name(name, realm, region)
        if guild is None:
            guild = await self._create_guild(name, realm, region)

        character_count = await self.storage.count_characters_by_guild_id(guild.id)
        if character_count != guild.member_count:
            logger.info(f"Updating guild {name} member count from {guild.member_count} to {character_count}")
            guild = await self.storage.update_guild(guild, member_count=character_count, last_updated=utc_now())
        return guild

    async def _create_guild(self, name: str, realm: str, region: str) -> Guild:
        faction = DEFAULT_FACTION
        emblem_url = DEFAULT_GUILD_EMBLEM
        try:
            logger.info(f"Fetching guild {name} on {realm} from Raider.IO API...")
            profile = await self.raiderio.get_guild_profile(name, realm, region, fields=GUILD_PROFILE_FIELDS)
            faction = (profile.get("faction") or DEFAULT_FACTION).capitalize()
            emblem_url = profile.get("profile_banner_url") or DEFAULT_GUILD_EMBLEM
        except APIError as e:
            logger.warning(f"Raider.IO guild lookup failed, using default guild data: {e.message}")

        # A concurrent first request may create the same guild; either row wins
        await self.storage.insert_ignoring_duplicates(Guild, [{
            "name": name,
            "realm": realm,
            "faction": faction,
            "description": DEFAULT_GUILD_DESCRIPTION,
            "member_count": 0,
            "emblem_url": emblem_url,
            "server_region": region,
            "last_updated": utc_now(),
        }])
        return await self.storage.get_guild_by_name(name, realm, region)

    async def get_roster(self, name: str, realm: str, region: str) -> List[Character]:
        """Characters of the guild, initialised from Raider.IO or the static roster when empty"""
        guild = await self.get_guild(name, realm, region)
        existing = await self.storage.get_characters_by_guild_id(guild.id)
        if existing:
            return existing

        logger.info(f"No characters found for guild {name}, initializing roster data...")
        rows = self._member_rows(guild, await self._fetch_members(guild))
        if not rows:
            logger.info("No member data available from Raider.IO, using static roster")
            rows = [
                dict(
                    character,
                    guild_id=guild.id,
                    level=DEFAULT_CHARACTER_LEVEL,
                    blizzard_id="",
                    realm=guild.realm,
                    armory_link=armory_link(guild.server_region, guild.realm, character["name"]),
                    last_updated=utc_now(),
                )
                for character in DEFAULT_ROSTER
            ]

        if not await self.storage.insert_ignoring_duplicates(Character, rows):
            logger.info(f"Roster for guild {name} was initialized by another request")
        await self.storage.update_guild(
            guild,
            member_count=await self.storage.count_characters_by_guild_id(guild.id),
            last_updated=utc_now()
        )
        return await self.storage.get_characters_by_guild_id(guild.id)

    async def _fetch_members(self, guild: Guild) -> List[Dict[str, Any]]:
        try:
            profile = await self.raiderio.get_guild_profile(
                guild.name, guild.realm, guild.server_region, fields=GUILD_MEMBERS_FIELDS
            )
        except APIError as e:
            logger.error(f"Error fetching guild roster from Raider.IO: {e.message}")
            return []
        members = profile.get("members")
        return members if isinstance(members, list) else []

    def _member_rows(self, guild: Guild, members: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Character columns per Raider.IO member, first entry per name"""
        rows: Dict[str, Dict[str, Any]] = {}
        for member in members:
            fields = member_to_character_fields(member)
            if fields is None or fields["name"] in rows:
                continue
            fields["realm"] = fields["realm"] or guild.realm
            fields["armory_link"] = armory_link(guild.server_region, fields["realm"], fields["name"])
            fields["guild_id"] = guild.id
            fields["last_updated"] = utc_now()
            rows[fields["name"]] = fields
        return list(rows.values())

    async def upsert_members(self, guild: Guild, members: List[Dict[str, Any]]) -> Dict[str, int]:
        """Create or update a character per Raider.IO member, keyed by name"""
        updated = 0
        new_rows = []
        for fields in self._member_rows(guild, members):
            existing = await self.storage.get_character_by_name_and_guild(fields["name"], guild.id)
            if existing:
                if not fields["blizzard_id"]:
                    fields["blizzard_id"] = existing.blizzard_id
                await self.storage.update_character(existing, **fields)
                updated += 1
            else:
                new_rows.append(fields)
        added = await self.storage.insert_ignoring_duplicates(Character, new_rows)
        return {"added": added, "updated": updated}

    async def get_raid_progress(self, name: str, realm: str, region: str) -> List[RaidProgress]:
        """Raid progress rows, seeded with the default tiers when the guild has none"""
        guild = await self.get_guild(name, realm, region)
        progresses = await self.storage.get_raid_progresses_by_guild_id(guild.id)
        if progresses:
            return progresses

        await self.storage.insert_ignoring_duplicates(
            RaidProgress, [dict(raid, guild_id=guild.id, last_updated=utc_now()) for raid in DEFAULT_RAID_PROGRESS]
        )
        return await self.storage.get_raid_progresses_by_guild_id(guild.id)

    async def get_raid_bosses(
        self,
        name: str,
        realm: str,
        region: str,
        raid_name: str,
        difficulty: str
    ) -> List[RaidBoss]:
        """Bosses of one raid at one difficulty, seeded from the built-in tables when missing"""
        guild = await self.get_guild(name, realm, region)
        bosses = await self.storage.get_raid_bosses_by_guild_id(guild.id, raid_name, difficulty)
        if bosses:
            return bosses

        logger.info(f"No boss data found for {raid_name} ({difficulty}), creating data")
        await self.storage.insert_ignoring_duplicates(
            RaidBoss,
            [dict(row, guild_id=guild.id, last_updated=utc_now()) for row in seed_boss_rows(raid_name, difficulty)]
        )
        return await self.storage.get_raid_bosses_by_guild_id(guild.id, raid_name, difficulty)
