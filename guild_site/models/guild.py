"""
Guild database models and schemas
"""

from datetime import datetime
from typing import Optional
from sqlalchemy import Column, String, Integer, DateTime, Text, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from pydantic import Field

from .database import Base
from .db_types import CamelModel
from ..utils.datetime_utils import utc_now


class Guild(Base):
    """Guild database model"""
    __tablename__ = "guilds"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    realm = Column(String(50), nullable=False)
    faction = Column(String(20))  # Alliance/Horde
    description = Column(Text)
    member_count = Column(Integer, default=0)
    emblem_url = Column(String(500))
    server_region = Column(String(10), nullable=False, default="eu")
    last_updated = Column(DateTime(timezone=True), default=utc_now)

    # Relationships
    characters = relationship("Character", back_populates="guild", cascade="all, delete-orphan")
    raid_progresses = relationship("RaidProgress", back_populates="guild", cascade="all, delete-orphan")
    raid_bosses = relationship("RaidBoss", back_populates="guild", cascade="all, delete-orphan")

    # A guild is identified by name + realm + region
    __table_args__ = (
        UniqueConstraint("name", "realm", "server_region", name="uq_guilds_name_realm_region"),
        Index("idx_guild_updated", "last_updated"),
    )


# Pydantic schemas
class GuildBase(CamelModel):
    """Base guild schema"""
    name: str = Field(..., max_length=100)
    realm: str = Field(..., max_length=50)
    faction: Optional[str] = Field(None, max_length=20)
    description: Optional[str] = None
    member_count: Optional[int] = Field(0, ge=0)
    emblem_url: Optional[str] = None
    server_region: str = Field("eu", max_length=10)


class GuildCreate(GuildBase):
    """Schema for creating a guild"""
    pass


class GuildResponse(GuildBase):
    """Schema for guild responses"""
    id: int
    last_updated: Optional[datetime] = None
