"""pytest configuration and fixtures."""

import json
from typing import Callable, Dict, Optional
from unittest.mock import AsyncMock, patch
from urllib.parse import parse_qs, urlparse

import httpx
import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from guild_site.api.raiderio_client import RaiderIOClient
from guild_site.api.warcraftlogs_client import WarcraftLogsClient
from guild_site.auth.bnet import BnetProfile, BnetStrategy, BnetStrategyOptions
from guild_site.core.config import Settings
from guild_site.core.context import AppContext
from guild_site.frontend.components import create_template_environment
from guild_site.i18n.config import init_i18n
from guild_site.models.database import DatabaseHandle
from guild_site.services.activity_logger import ActivityLogger
from guild_site.services.storage import GuildStorage

Handler = Callable[[httpx.Request], httpx.Response]


def in_memory_db() -> DatabaseHandle:
    """SQLite database shared by every session of one test"""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    return DatabaseHandle(engine, "sqlite")


def raiderio_unavailable(request: httpx.Request) -> httpx.Response:
    return httpx.Response(404, json={"statusCode": 404, "error": "Not Found"})


def raiderio_routes(routes: Dict[str, object]) -> Handler:
    """Answer by path suffix; anything else is a 404"""
    def handler(request: httpx.Request) -> httpx.Response:
        for suffix, payload in routes.items():
            if request.url.path.endswith(suffix):
                if callable(payload):
                    return payload(request)
                return httpx.Response(200, content=json.dumps(payload), headers={"Content-Type": "application/json"})
        return raiderio_unavailable(request)
    return handler


def fake_raiderio(handler: Handler = raiderio_unavailable) -> RaiderIOClient:
    return RaiderIOClient(transport=httpx.MockTransport(handler))


def build_test_context(
    settings: Optional[Settings] = None,
    handler: Handler = raiderio_unavailable,
    db: Optional[DatabaseHandle] = None
) -> AppContext:
    settings = settings or Settings(_env_file=None)
    db = db or in_memory_db()
    return AppContext(
        settings=settings,
        db=db,
        i18n=init_i18n(),
        raiderio=fake_raiderio(handler),
        warcraftlogs=WarcraftLogsClient(None, None),
        activity=ActivityLogger(db),
        templates=create_template_environment(),
    )


@pytest_asyncio.fixture
async def db():
    handle = in_memory_db()
    await handle.init_db()
    yield handle
    await handle.dispose()


@pytest_asyncio.fixture
async def storage(db):
    async with db.session() as session:
        yield GuildStorage(session)


@pytest.fixture
def settings() -> Settings:
    return Settings(_env_file=None)


def enable_bnet(context: AppContext) -> AppContext:
    context.bnet = BnetStrategy(BnetStrategyOptions(
        client_id="client",
        client_secret="secret",
        callback_url="http://testserver/api/auth/bnet/callback",
    ))
    return context


def login(client: TestClient, profile: BnetProfile) -> None:
    """Run the Battle.net callback for a profile and keep the session cookie"""
    location = client.get("/api/auth/login", follow_redirects=False).headers["location"]
    state = parse_qs(urlparse(location).query)["state"][0]
    with patch.object(BnetStrategy, "authenticate", new=AsyncMock(return_value=({"access_token": "at"}, profile, None))):
        client.get("/api/auth/bnet/callback", params={"code": "abc", "state": state}, follow_redirects=False)
