"""
Character (guild member) database models and schemas
"""

from datetime import datetime
from typing import Optional, List
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, Numeric, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from pydantic import Field, computed_field

from .database import Base
from .db_types import CamelModel
from .rank import get_rank_name
from ..utils.datetime_utils import utc_now


class Character(Base):
    """A character on a guild roster"""
    __tablename__ = "characters"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), nullable=False)
    class_name = Column(String(30), nullable=False)
    spec_name = Column(String(50))
    rank = Column(Integer, nullable=False, default=0)
    level = Column(Integer, nullable=False, default=80)
    avatar_url = Column(String(500))
    item_level = Column(Integer)
    guild_id = Column(Integer, ForeignKey("guilds.id", ondelete="CASCADE"), nullable=False)
    blizzard_id = Column(String(50))
    realm = Column(String(50))
    role = Column(String(20))

    # Stored with two decimal places, read back as float
    raider_io_score = Column(Numeric(10, 2, asdecimal=False))
    armory_link = Column(String(500))

    last_active = Column(DateTime(timezone=True))
    last_updated = Column(DateTime(timezone=True), default=utc_now)

    guild = relationship("Guild", back_populates="characters")

    __table_args__ = (
        UniqueConstraint("guild_id", "name", name="uq_characters_guild_name"),
        Index("idx_character_rank", "rank"),
    )

    @property
    def rank_name(self) -> str:
        return get_rank_name(self.rank)


# Pydantic schemas
class CharacterBase(CamelModel):
    """Base character schema"""
    name: str = Field(..., max_length=50)
    class_name: str = Field(..., max_length=30)
    spec_name: Optional[str] = None
    rank: int = Field(0, ge=0)
    level: int = Field(80, ge=1)
    avatar_url: Optional[str] = None
    item_level: Optional[int] = Field(None, ge=0)
    blizzard_id: Optional[str] = None
    realm: Optional[str] = None
    role: Optional[str] = None
    raider_io_score: Optional[float] = None
    armory_link: Optional[str] = None


class CharacterCreate(CharacterBase):
    """Schema for creating a character"""
    guild_id: int


class CharacterResponse(CharacterBase):
    """Schema for character responses"""
    id: int
    guild_id: int
    last_active: Optional[datetime] = None
    last_updated: Optional[datetime] = None

    @computed_field
    @property
    def rank_name(self) -> str:
        return get_rank_name(self.rank)


class RosterResponse(CamelModel):
    """Roster envelope returned by /api/roster"""
    characters: List[CharacterResponse]
    api_status: str
    last_updated: str
