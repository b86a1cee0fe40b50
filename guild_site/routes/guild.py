"""
Guild data REST endpoints

Every endpoint reads through GuildService, which populates missing data on
first request. Failures answer 500 with an envelope the front end can render.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from ..core.constants import API_STATUS_CONNECTED, API_STATUS_DISCONNECTED, DEFAULT_RAID
from ..core.context import AppContext, get_context, get_storage
from ..models.character import CharacterResponse, RosterResponse
from ..models.guild import GuildResponse
from ..models.raid import (
    DifficultyEnum,
    RaidBossesResponse,
    RaidBossResponse,
    RaidProgressListResponse,
    RaidProgressResponse,
)
from ..services.guild_service import GuildService
from ..services.storage import GuildStorage
from ..utils.datetime_utils import utc_now_iso
from ..utils.errors import describe_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["guild"])


def _failure(message: str, **empty) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"message": message, "apiStatus": API_STATUS_DISCONNECTED, **empty},
    )


def _guild_params(context: AppContext, name: Optional[str], realm: Optional[str], region: Optional[str]):
    default_name, default_realm, default_region = context.guild
    return name or default_name, realm or default_realm, region or default_region


@router.get("/guild", response_model=GuildResponse)
async def get_guild(
    name: Optional[str] = None,
    realm: Optional[str] = None,
    region: Optional[str] = None,
    context: AppContext = Depends(get_context),
    storage: GuildStorage = Depends(get_storage)
):
    """Guild record, created on first request"""
    name, realm, region = _guild_params(context, name, realm, region)
    try:
        guild = await GuildService(storage, context.raiderio).get_guild(name, realm, region)
        return GuildResponse.model_validate(guild)
    except Exception as e:
        logger.error(f"Error fetching guild data: {describe_error(e)}")
        return _failure("Failed to fetch guild data")


@router.get("/roster", response_model=RosterResponse)
async def get_roster(
    name: Optional[str] = None,
    realm: Optional[str] = None,
    region: Optional[str] = None,
    context: AppContext = Depends(get_context),
    storage: GuildStorage = Depends(get_storage)
):
    """Guild roster ordered by rank, then name"""
    name, realm, region = _guild_params(context, name, realm, region)
    try:
        characters = await GuildService(storage, context.raiderio).get_roster(name, realm, region)
        return RosterResponse(
            characters=[CharacterResponse.model_validate(c) for c in characters],
            api_status=API_STATUS_CONNECTED,
            last_updated=utc_now_iso(),
        )
    except Exception as e:
        logger.error(f"Error fetching guild roster: {describe_error(e)}")
        return _failure("Failed to fetch guild roster", characters=[])


@router.get("/raid-progress", response_model=RaidProgressListResponse)
async def get_raid_progress(
    name: Optional[str] = None,
    realm: Optional[str] = None,
    region: Optional[str] = None,
    context: AppContext = Depends(get_context),
    storage: GuildStorage = Depends(get_storage)
):
    name, realm, region = _guild_params(context, name, realm, region)
    try:
        progresses = await GuildService(storage, context.raiderio).get_raid_progress(name, realm, region)
        return RaidProgressListResponse(
            progresses=[RaidProgressResponse.model_validate(p) for p in progresses],
            api_status=API_STATUS_CONNECTED,
            last_updated=utc_now_iso(),
        )
    except Exception as e:
        logger.error(f"Error fetching raid progress: {describe_error(e)}")
        return _failure("Failed to fetch raid progress", progresses=[])


@router.get("/raid-bosses", response_model=RaidBossesResponse)
async def get_raid_bosses(
    raid: str = Query(DEFAULT_RAID),
    difficulty: DifficultyEnum = Query(DifficultyEnum.MYTHIC),
    name: Optional[str] = None,
    realm: Optional[str] = None,
    region: Optional[str] = None,
    context: AppContext = Depends(get_context),
    storage: GuildStorage = Depends(get_storage)
):
    """Boss list for one raid and difficulty"""
    name, realm, region = _guild_params(context, name, realm, region)
    try:
        bosses = await GuildService(storage, context.raiderio).get_raid_bosses(
            name, realm, region, raid, difficulty.value
        )
        return RaidBossesResponse(
            bosses=[RaidBossResponse.model_validate(b) for b in bosses],
            api_status=API_STATUS_CONNECTED,
            difficulty=difficulty.value,
            last_updated=utc_now_iso(),
        )
    except Exception as e:
        logger.error(f"Error fetching raid bosses: {describe_error(e)}")
        return _failure("Failed to fetch raid bosses", bosses=[])
