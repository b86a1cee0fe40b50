"""
Battle.net user accounts
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import Boolean, Column, String, Integer, DateTime, Text

from .database import Base
from .db_types import CamelModel
from ..utils.datetime_utils import utc_now


class User(Base):
    """A user who has logged in with Battle.net"""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    battle_net_id = Column(String(50), nullable=False, unique=True)
    battletag = Column(String(100), nullable=False)
    region = Column(String(10), default="eu")
    avatar_url = Column(String(500))
    access_token = Column(Text)
    refresh_token = Column(Text)
    token_expiry = Column(DateTime(timezone=True))
    # Officers may use the admin endpoints
    is_officer = Column(Boolean, nullable=False, default=False)
    last_login = Column(DateTime(timezone=True), default=utc_now)
    created_at = Column(DateTime(timezone=True), default=utc_now)


class UserResponse(CamelModel):
    """Public view of a user; tokens are never serialized"""
    id: int
    battle_net_id: str
    battletag: str
    region: Optional[str] = None
    avatar_url: Optional[str] = None
    is_officer: bool = False
    last_login: Optional[datetime] = None
