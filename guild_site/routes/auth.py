"""
Battle.net login routes

The OAuth state and the session cookie are both signed with the session
secret; the session cookie carries only the user id.
"""

import logging
import secrets
from datetime import timedelta
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse, RedirectResponse
from itsdangerous import BadSignature, TimestampSigner

from ..auth.bnet import BnetProfile
from ..core.context import AppContext, get_context, get_storage
from ..models.user import User, UserResponse
from ..services.storage import GuildStorage
from ..utils.datetime_utils import utc_now
from ..utils.errors import APIError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])

STATE_COOKIE = "bnet_state"
STATE_MAX_AGE = 10 * 60
SESSION_MAX_AGE = 60 * 60 * 24 * 14


def _signer(context: AppContext) -> TimestampSigner:
    return TimestampSigner(context.settings.session_secret)


def sign_session(context: AppContext, user_id: int) -> str:
    return _signer(context).sign(str(user_id)).decode("utf-8")


def unsign_session(context: AppContext, cookie_value: Optional[str]) -> Optional[int]:
    """User id from a session cookie, None when missing, tampered or expired"""
    if not cookie_value:
        return None
    try:
        return int(_signer(context).unsign(cookie_value, max_age=SESSION_MAX_AGE).decode("utf-8"))
    except (BadSignature, ValueError):
        return None


async def current_user(request: Request, context: AppContext, storage: GuildStorage) -> Optional[User]:
    user_id = unsign_session(context, request.cookies.get(context.settings.session_cookie_name))
    if user_id is None:
        return None
    return await storage.get_user(user_id)


async def require_officer(
    request: Request,
    context: AppContext = Depends(get_context),
    storage: GuildStorage = Depends(get_storage)
) -> User:
    """Signed-in officer, or 401/403"""
    user = await current_user(request, context, storage)
    if user is None:
        raise HTTPException(status_code=401, detail="Not authenticated")
    if not user.is_officer:
        logger.warning(f"Refused officer endpoint {request.url.path} for {user.battletag}")
        raise HTTPException(status_code=403, detail="Officer access required")
    return user


async def upsert_user(storage: GuildStorage, tokens: dict, profile: BnetProfile, officer: bool = False) -> User:
    """
    Create or refresh the account for a Battle.net profile

    Officer access is granted here but never revoked on login.
    """
    fields = {
        "battletag": profile.battletag,
        "region": profile.region,
        "avatar_url": profile.avatar,
        "access_token": tokens.get("access_token"),
        "refresh_token": tokens.get("refresh_token"),
        "last_login": utc_now(),
    }
    if officer:
        fields["is_officer"] = True
    expires_in = tokens.get("expires_in")
    if expires_in:
        fields["token_expiry"] = utc_now() + timedelta(seconds=int(expires_in))

    user = await storage.get_user_by_battle_net_id(profile.id)
    if user is None:
        logger.info(f"Creating user for Battle.net account {profile.battletag}")
        return await storage.create_user(battle_net_id=profile.id, **fields)
    return await storage.update_user(user, **fields)


def _login_redirect(context: AppContext):
    if context.bnet is None:
        return JSONResponse(status_code=503, content={"message": "Battle.net login is not configured"})

    nonce = secrets.token_urlsafe(16)
    state = _signer(context).sign(nonce).decode("utf-8")
    response = RedirectResponse(context.bnet.authorization_url(state), status_code=302)
    response.set_cookie(
        STATE_COOKIE,
        state,
        max_age=STATE_MAX_AGE,
        httponly=True,
        secure=context.settings.cookie_secure,
        samesite="lax",
    )
    return response


@router.get("/api/auth/login")
async def login(context: AppContext = Depends(get_context)):
    """Redirect to Battle.net"""
    return _login_redirect(context)


@router.get("/auth-bnet-direct.php")
async def login_direct(context: AppContext = Depends(get_context)):
    """Legacy login entry point"""
    return _login_redirect(context)


@router.get("/api/auth/bnet/callback")
async def bnet_callback(
    request: Request,
    code: str = "",
    state: str = "",
    error: Optional[str] = None,
    context: AppContext = Depends(get_context),
    storage: GuildStorage = Depends(get_storage)
):
    failed = RedirectResponse("/?login=failed", status_code=302)
    failed.delete_cookie(STATE_COOKIE)
    if context.bnet is None:
        return failed
    if error or not code:
        logger.warning(f"Battle.net login was not completed: {error or 'no code'}")
        return failed

    try:
        _signer(context).unsign(state, max_age=STATE_MAX_AGE)
    except BadSignature:
        logger.warning("Rejected Battle.net callback with an invalid state")
        return failed
    if state != request.cookies.get(STATE_COOKIE):
        logger.warning("Rejected Battle.net callback with a state not issued to this browser")
        return failed

    try:
        tokens, profile, _ = await context.bnet.authenticate(code)
    except APIError as e:
        logger.error(f"Battle.net authentication failed: {e.message}")
        return failed

    user = await upsert_user(storage, tokens, profile, context.settings.is_admin_battletag(profile.battletag))

    response = RedirectResponse("/", status_code=302)
    response.delete_cookie(STATE_COOKIE)
    response.set_cookie(
        context.settings.session_cookie_name,
        sign_session(context, user.id),
        max_age=SESSION_MAX_AGE,
        httponly=True,
        secure=context.settings.cookie_secure,
        samesite="lax",
    )
    return response


@router.get("/api/auth/user")
async def get_current_user(
    request: Request,
    context: AppContext = Depends(get_context),
    storage: GuildStorage = Depends(get_storage)
):
    user = await current_user(request, context, storage)
    if user is None:
        return JSONResponse(status_code=401, content={"message": "Not authenticated"})
    return UserResponse.model_validate(user)


@router.api_route("/api/auth/logout", methods=["GET", "POST"])
async def logout(context: AppContext = Depends(get_context)):
    response = RedirectResponse("/", status_code=302)
    response.delete_cookie(context.settings.session_cookie_name)
    return response
