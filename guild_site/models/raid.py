"""
Raid progression and boss database models and schemas
"""

from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union
from sqlalchemy import Column, String, Integer, DateTime, Boolean, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship, validates
from pydantic import BaseModel, Field, field_validator, model_validator

from .database import Base
from .db_types import JSONB, CamelModel
from ..utils.datetime_utils import utc_now


class DifficultyEnum(str, Enum):
    """Raid difficulty levels"""
    NORMAL = "normal"
    HEROIC = "heroic"
    MYTHIC = "mythic"
    LFR = "lfr"


class BossStatus(str, Enum):
    """Derived kill state of an encounter"""
    DEFEATED = "defeated"
    IN_PROGRESS = "in_progress"
    NOT_STARTED = "not_started"


def boss_status(defeated: Optional[bool], in_progress: Optional[bool]) -> BossStatus:
    """
    Resolve the two kill flags into a single status.

    The flags come from external data and can both be set; a recorded kill
    wins over an in-progress marker.
    """
    if defeated:
        return BossStatus.DEFEATED
    if in_progress:
        return BossStatus.IN_PROGRESS
    return BossStatus.NOT_STARTED


class RaidProgress(Base):
    """Raid progression tracking for guilds"""
    __tablename__ = "raid_progress"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    bosses = Column(Integer, nullable=False)
    bosses_defeated = Column(Integer, nullable=False, default=0)
    difficulty = Column(String(20), nullable=False)
    guild_id = Column(Integer, ForeignKey("guilds.id", ondelete="CASCADE"), nullable=False)

    # Rankings
    world_rank = Column(Integer)
    region_rank = Column(Integer)
    realm_rank = Column(Integer)

    last_updated = Column(DateTime(timezone=True), default=utc_now)

    guild = relationship("Guild", back_populates="raid_progresses")

    __table_args__ = (
        CheckConstraint("bosses_defeated >= 0 AND bosses_defeated <= bosses", name="defeated_within_total"),
        UniqueConstraint("guild_id", "name", "difficulty", name="uq_raid_progress_guild_name_difficulty"),
    )

    @validates("bosses")
    def validate_bosses(self, key, value):
        if value is None or value < 0:
            raise ValueError("bosses must be >= 0")
        if self.bosses_defeated is not None and value < self.bosses_defeated:
            raise ValueError(f"bosses ({value}) is below bosses_defeated ({self.bosses_defeated})")
        return value

    @validates("bosses_defeated")
    def validate_bosses_defeated(self, key, value):
        if value is None or value < 0:
            raise ValueError("bosses_defeated must be >= 0")
        if self.bosses is not None and value > self.bosses:
            raise ValueError(f"bosses_defeated ({value}) exceeds bosses ({self.bosses})")
        return value


class RaidBoss(Base):
    """Per-encounter kill and performance record"""
    __tablename__ = "raid_bosses"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    raid_name = Column(String(100))
    icon_url = Column(String(500))
    best_time = Column(String(20))
    best_parse = Column(String(20))
    pull_count = Column(Integer, default=0)
    defeated = Column(Boolean, default=False)
    in_progress = Column(Boolean, default=False)
    difficulty = Column(String(20), nullable=False, default=DifficultyEnum.MYTHIC.value)
    guild_id = Column(Integer, ForeignKey("guilds.id", ondelete="CASCADE"), nullable=False)

    # External identifiers
    boss_id = Column(String(50))
    encounter_id = Column(Integer)
    warcraftlogs_id = Column(String(50))

    # Performance
    dps_ranking = Column(Integer)
    healing_ranking = Column(Integer)
    tank_ranking = Column(Integer)
    last_kill_date = Column(DateTime(timezone=True))
    kill_count = Column(Integer, default=0)
    fastest_kill = Column(String(20))
    report_url = Column(String(500))

    # Raw API data storage
    raider_io_data = Column(JSONB)
    warcraft_logs_data = Column(JSONB)

    last_updated = Column(DateTime(timezone=True), default=utc_now)

    guild = relationship("Guild", back_populates="raid_bosses")

    __table_args__ = (
        UniqueConstraint("guild_id", "raid_name", "difficulty", "name", name="uq_raid_bosses_guild_raid_difficulty_name"),
    )

    @property
    def status(self) -> BossStatus:
        return boss_status(self.defeated, self.in_progress)


# External payloads, tagged by the service they came from
class RaiderIoPayload(BaseModel):
    source: Literal["raider_io"] = "raider_io"
    data: Dict[str, Any] = Field(default_factory=dict)


class WarcraftLogsPayload(BaseModel):
    source: Literal["warcraft_logs"] = "warcraft_logs"
    data: Dict[str, Any] = Field(default_factory=dict)


ExternalPayload = Annotated[Union[RaiderIoPayload, WarcraftLogsPayload], Field(discriminator="source")]


def _tag_payload(value: Any, source: str) -> Any:
    """Wrap a raw stored dict into the tagged shape"""
    if value is None or isinstance(value, BaseModel):
        return value
    if isinstance(value, dict) and value.get("source") == source and "data" in value:
        return value
    return {"source": source, "data": value}


# Pydantic schemas
class RaidProgressBase(CamelModel):
    """Base raid progress schema"""
    name: str = Field(..., max_length=100)
    bosses: int = Field(..., ge=0)
    bosses_defeated: int = Field(0, ge=0)
    difficulty: str
    world_rank: Optional[int] = None
    region_rank: Optional[int] = None
    realm_rank: Optional[int] = None

    @model_validator(mode="after")
    def check_defeated_within_total(self):
        if self.bosses_defeated > self.bosses:
            raise ValueError("bosses_defeated cannot exceed bosses")
        return self


class RaidProgressCreate(RaidProgressBase):
    """Schema for creating raid progress"""
    guild_id: int


class RaidProgressResponse(RaidProgressBase):
    """Schema for raid progress responses"""
    id: int
    guild_id: int
    last_updated: Optional[datetime] = None


class RaidBossResponse(CamelModel):
    """Schema for raid boss responses"""
    id: int
    name: str
    raid_name: Optional[str] = None
    icon_url: Optional[str] = None
    best_time: Optional[str] = None
    best_parse: Optional[str] = None
    pull_count: Optional[int] = 0
    defeated: bool = False
    in_progress: bool = False
    status: BossStatus = BossStatus.NOT_STARTED
    difficulty: str = DifficultyEnum.MYTHIC.value
    guild_id: int
    boss_id: Optional[str] = None
    encounter_id: Optional[int] = None
    warcraftlogs_id: Optional[str] = None
    dps_ranking: Optional[int] = None
    healing_ranking: Optional[int] = None
    tank_ranking: Optional[int] = None
    last_kill_date: Optional[datetime] = None
    kill_count: Optional[int] = 0
    fastest_kill: Optional[str] = None
    report_url: Optional[str] = None
    raider_io_data: Optional[RaiderIoPayload] = None
    warcraft_logs_data: Optional[WarcraftLogsPayload] = None
    last_updated: Optional[datetime] = None

    @field_validator("raider_io_data", mode="before")
    @classmethod
    def tag_raider_io(cls, value):
        return _tag_payload(value, "raider_io")

    @field_validator("warcraft_logs_data", mode="before")
    @classmethod
    def tag_warcraft_logs(cls, value):
        return _tag_payload(value, "warcraft_logs")

    @field_validator("defeated", "in_progress", mode="before")
    @classmethod
    def none_is_false(cls, value):
        return bool(value)

    @model_validator(mode="after")
    def derive_status(self):
        self.status = boss_status(self.defeated, self.in_progress)
        return self

    def external_payloads(self) -> List[ExternalPayload]:
        """Every attached external payload, in source order"""
        return [p for p in (self.raider_io_data, self.warcraft_logs_data) if p is not None]


class RaidProgressListResponse(CamelModel):
    """Envelope returned by /api/raid-progress"""
    progresses: List[RaidProgressResponse]
    api_status: str
    last_updated: str


class RaidBossesResponse(CamelModel):
    """Envelope returned by /api/raid-bosses"""
    bosses: List[RaidBossResponse]
    api_status: str
    difficulty: str
    last_updated: str
