"""
Operation log table
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from sqlalchemy import Column, String, Integer, DateTime, Text, Index
from pydantic import AliasChoices, Field, field_validator

from .database import Base
from .db_types import CamelModel
from ..utils.datetime_utils import utc_now


class LogStatus(str, Enum):
    SUCCESS = "success"
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class WebLog(Base):
    """One refresh or scheduler step"""
    __tablename__ = "web_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    operation = Column(String(100), nullable=False)
    status = Column(String(20), nullable=False)
    details = Column(Text)
    timestamp = Column(DateTime(timezone=True), default=utc_now)
    duration = Column(Integer)  # milliseconds
    # "metadata" is reserved on declarative classes
    log_metadata = Column("metadata", Text)

    __table_args__ = (
        Index("idx_web_log_operation_time", "operation", "timestamp"),
    )


class WebLogResponse(CamelModel):
    """Log entry as shown in the admin log viewer"""
    id: int
    operation: str
    status: LogStatus
    details: Optional[str] = None
    timestamp: Optional[datetime] = None
    duration: Optional[int] = None
    metadata: Optional[Dict[str, Any]] = Field(
        None, validation_alias=AliasChoices("log_metadata", "metadata"), serialization_alias="metadata"
    )

    @field_validator("metadata", mode="before")
    @classmethod
    def parse_metadata(cls, value):
        if isinstance(value, str):
            return json.loads(value) if value else None
        return value
