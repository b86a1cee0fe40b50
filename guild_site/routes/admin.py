"""
Officer-only maintenance endpoints

Manual versions of the scheduled refreshes plus the operation log viewer.
Every endpoint requires a signed-in officer.
"""

import logging
import math
import time
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from ..core.constants import CURRENT_RAID
from ..core.context import AppContext, get_context, get_storage
from ..models.character import CharacterResponse
from ..models.raid import DifficultyEnum, RaidProgressResponse
from ..models.user import User
from ..models.web_log import WebLogResponse
from ..services.storage import GuildStorage
from ..utils.errors import APIError, DataNotFoundError, describe_error
from .auth import require_officer

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["admin"], dependencies=[Depends(require_officer)])


def _error(status_code: int, message: str, error: Optional[Exception] = None) -> JSONResponse:
    content = {"success": False, "message": message}
    if error is not None:
        content["error"] = describe_error(error)
    return JSONResponse(status_code=status_code, content=content)


@router.post("/admin/refresh-guild-members")
async def refresh_guild_members(context: AppContext = Depends(get_context)):
    """Sync the roster with Raider.IO"""
    try:
        async with context.activity.track("guild_members_refresh", "Manual guild members refresh") as meta:
            results = await context.refresh_service().refresh_guild_members(*context.guild)
            meta.update(results)
    except DataNotFoundError as e:
        return _error(404, "Guild not found", e)
    except Exception as e:
        logger.error(f"Error refreshing guild members: {describe_error(e)}")
        return _error(500, "Failed to refresh guild members", e)
    return {"success": True, "message": "Guild members refreshed", "results": results}


@router.post("/admin/update-character-scores")
async def update_character_scores(context: AppContext = Depends(get_context)):
    """Refresh Mythic+ scores for characters not updated in the last day"""
    try:
        async with context.activity.track("character_scores_update", "Manual character scores update") as meta:
            results = await context.refresh_service().update_character_scores(*context.guild)
            meta.update(results)
    except DataNotFoundError as e:
        return _error(404, "Guild not found", e)
    except Exception as e:
        logger.error(f"Error updating character scores: {describe_error(e)}")
        return _error(500, "Failed to update character scores", e)
    return {"success": True, "message": "Character scores updated", "results": results}


@router.post("/admin/refresh-data")
async def refresh_raid_data(
    raid: str = Query(CURRENT_RAID),
    difficulty: DifficultyEnum = Query(DifficultyEnum.MYTHIC),
    context: AppContext = Depends(get_context)
):
    """Touch boss data and recount progress for one raid"""
    refresh = context.refresh_service()
    try:
        async with context.activity.track("raid_data_refresh", f"Raid data for {raid} ({difficulty.value})") as meta:
            bosses = await refresh.refresh_raid_boss_data(*context.guild, raid, difficulty.value)
            progress = await refresh.refresh_raid_progress(*context.guild, raid, difficulty.value)
            meta["bosses"] = len(bosses)
    except DataNotFoundError as e:
        return _error(404, "Guild not found", e)
    except Exception as e:
        logger.error(f"Error refreshing raid data: {describe_error(e)}")
        return _error(500, "Failed to refresh raid data", e)
    return {
        "success": True,
        "message": f"Refreshed {raid} ({difficulty.value})",
        "progress": RaidProgressResponse.model_validate(progress).model_dump(mode="json", by_alias=True),
        "bossCount": len(bosses),
    }


@router.post("/admin/refresh-all-data")
async def refresh_all_data(context: AppContext = Depends(get_context)):
    """
    Run every refresh step in order

    A failed step is reported and the remaining steps still run.
    """
    refresh = context.refresh_service()
    guild = context.guild
    steps = [
        ("guild", "guild_info_update", lambda: refresh.refresh_guild_info(*guild)),
        ("roster", "guild_members_refresh", lambda: refresh.refresh_guild_members(*guild)),
        ("raidProgress", "raid_progress_refresh",
         lambda: refresh.refresh_raid_progress(*guild, CURRENT_RAID, DifficultyEnum.MYTHIC.value)),
        ("raidBosses", "raid_bosses_refresh",
         lambda: refresh.refresh_raid_boss_data(*guild, CURRENT_RAID, DifficultyEnum.MYTHIC.value)),
    ]

    started = time.monotonic()
    results = {}
    for key, operation, run in steps:
        try:
            async with context.activity.track(operation, f"Full refresh step {key}"):
                await run()
        except Exception as e:
            logger.error(f"Full refresh step {key} failed: {describe_error(e)}")
            results[key] = {"status": "error", "message": describe_error(e)}
        else:
            results[key] = {"status": "success", "message": f"{key} refreshed"}
    results["totalTimeMs"] = int((time.monotonic() - started) * 1000)

    success = all(results[key]["status"] == "success" for key, _, _ in steps)
    return {
        "success": success,
        "message": "All data refreshed" if success else "Some refresh steps failed",
        "results": results,
    }


@router.post("/characters/{character_id}/update-scores")
async def update_single_character(character_id: int, context: AppContext = Depends(get_context)):
    try:
        character = await context.refresh_service().update_character_score(character_id)
    except DataNotFoundError as e:
        return _error(404, "Character not found", e)
    except APIError as e:
        logger.warning(f"Raider.IO lookup failed for character {character_id}: {e.message}")
        return _error(404, "Failed to fetch character data from Raider.IO", e)
    except Exception as e:
        logger.error(f"Error updating character {character_id}: {describe_error(e)}")
        return _error(500, "Failed to update character", e)
    return {
        "success": True,
        "character": CharacterResponse.model_validate(character).model_dump(mode="json", by_alias=True),
    }


@router.get("/admin/logs")
async def get_logs(
    limit: int = Query(100, ge=1, le=1000),
    offset: int = Query(0, ge=0),
    operation: Optional[str] = None,
    status: Optional[str] = None,
    context: AppContext = Depends(get_context),
    storage: GuildStorage = Depends(get_storage)
):
    """Operation log, newest first"""
    logs = await context.activity.recent(limit=limit, operation=operation, status=status, offset=offset)
    total = await storage.count_web_logs(operation=operation, status=status)
    return {
        "success": True,
        "logs": [WebLogResponse.model_validate(log).model_dump(mode="json", by_alias=True) for log in logs],
        "totalCount": total,
        "limit": limit,
        "offset": offset,
        "currentPage": offset // limit + 1,
        "totalPages": math.ceil(total / limit),
    }


@router.delete("/admin/logs/cleanup")
async def cleanup_logs(
    days: int = 90,
    user: User = Depends(require_officer),
    storage: GuildStorage = Depends(get_storage)
):
    if days < 1:
        return _error(400, "Days parameter must be at least 1")
    deleted = await storage.delete_web_logs(days)
    logger.info(f"{user.battletag} deleted {deleted} log entries older than {days} days")
    return {"success": True, "message": f"Deleted {deleted} logs older than {days} days"}
