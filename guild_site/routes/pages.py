"""
Server-rendered pages

The home page is assembled from the page components plus guild data read
through GuildService. Browser state (cookie consent, language) lives in
long-lived cookies.
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, Request
from fastapi.responses import HTMLResponse, JSONResponse, RedirectResponse

from ..core.constants import CURRENT_RAID
from ..core.context import AppContext, get_context, get_storage
from ..frontend.components import (
    COOKIE_CONSENT_KEY,
    CookieConsent,
    Footer,
    GuildLogo,
    GuildStats,
    TestAuthButton,
)
from ..i18n.config import LANGUAGE_STORAGE_KEY
from ..services.guild_service import GuildService
from ..services.storage import GuildStorage
from ..utils.errors import describe_error
from .auth import current_user

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"])

PREFERENCE_COOKIE_MAX_AGE = 60 * 60 * 24 * 365


async def load_page_data(service: GuildService, name: str, realm: str, region: str) -> Dict[str, Any]:
    """Guild, roster, progress and the boss list of every progress row"""
    guild = await service.get_guild(name, realm, region)
    characters = await service.get_roster(name, realm, region)
    progresses = await service.get_raid_progress(name, realm, region)
    bosses_by_raid = {}
    for progress in progresses:
        bosses_by_raid[progress.name] = await service.get_raid_bosses(
            name, realm, region, progress.name, progress.difficulty
        )
    current = next((p for p in progresses if p.name == CURRENT_RAID), progresses[0] if progresses else None)
    return {
        "guild": guild,
        "characters": characters,
        "progresses": progresses,
        "bosses_by_raid": bosses_by_raid,
        "current_progress": current,
    }


def _fallback_page_data(context: AppContext) -> Dict[str, Any]:
    name, realm, _ = context.guild
    return {
        "guild": {"name": name, "realm": realm, "faction": "", "description": "", "member_count": 0},
        "characters": [],
        "progresses": [],
        "bosses_by_raid": {},
        "current_progress": None,
    }


def _preference_cookie(response, key: str, value: str, context: AppContext):
    response.set_cookie(
        key,
        value,
        max_age=PREFERENCE_COOKIE_MAX_AGE,
        secure=context.settings.cookie_secure,
        samesite="lax",
    )


@router.get("/", response_class=HTMLResponse)
async def home(
    request: Request,
    context: AppContext = Depends(get_context),
    storage: GuildStorage = Depends(get_storage)
):
    language = context.i18n.detect_language(
        request.cookies.get(LANGUAGE_STORAGE_KEY),
        request.headers.get("accept-language"),
    )
    t = context.i18n.translator(language)
    env = context.templates

    try:
        data = await load_page_data(GuildService(storage, context.raiderio), *context.guild)
    except Exception as e:
        logger.error(f"Error loading home page data: {describe_error(e)}")
        await storage.session.rollback()
        data = _fallback_page_data(context)

    guild = data["guild"]
    guild_name = guild["name"] if isinstance(guild, dict) else guild.name
    emblem_url = None if isinstance(guild, dict) else guild.emblem_url
    cookie_storage: Dict[str, str] = dict(request.cookies)

    html = env.get_template("home.html").render(
        t=t,
        language=language,
        languages=context.i18n.languages,
        guild_name=guild_name,
        user=await current_user(request, context, storage),
        logo_html=GuildLogo(size="md", alt=guild_name, t=t, env=env).render(),
        stats_html=GuildStats(guild, data["current_progress"], t=t, env=env).render(),
        footer_html=Footer(guild_name, emblem_url, t=t, env=env).render(),
        cookie_consent_html=CookieConsent(cookie_storage, t=t, env=env).mount().render(),
        test_auth_html=TestAuthButton(context.settings.environment, t=t, env=env).render(),
        **data,
    )
    return HTMLResponse(html)


@router.post("/cookie-consent")
async def accept_cookies(context: AppContext = Depends(get_context)):
    """Persist consent and send the visitor back"""
    storage: Dict[str, str] = {}
    CookieConsent(storage, env=context.templates).accept()
    response = RedirectResponse("/", status_code=303)
    _preference_cookie(response, COOKIE_CONSENT_KEY, storage[COOKIE_CONSENT_KEY], context)
    return response


@router.api_route("/language/{language}", methods=["GET", "POST"])
async def change_language(language: str, context: AppContext = Depends(get_context)):
    storage: Dict[str, str] = {}
    try:
        selected = context.i18n.change_language(language, storage)
    except ValueError as e:
        return JSONResponse(status_code=400, content={"message": str(e)})
    logger.debug(f"Language switched to {selected}")

    response = RedirectResponse("/", status_code=303)
    _preference_cookie(response, LANGUAGE_STORAGE_KEY, storage[LANGUAGE_STORAGE_KEY], context)
    return response