"""
Recruitment applications and officer comments
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from sqlalchemy import Column, String, Integer, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from pydantic import Field, field_validator

from .database import Base
from .db_types import CamelModel
from ..utils.datetime_utils import utc_now


class ApplicationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class Application(Base):
    """A recruitment application submitted from the public site"""
    __tablename__ = "applications"

    id = Column(Integer, primary_key=True, autoincrement=True)
    character_name = Column(String(50), nullable=False)
    class_name = Column(String(30), nullable=False)
    spec_name = Column(String(50), nullable=False)
    realm = Column(String(50), nullable=False)
    item_level = Column(Integer)
    experience = Column(Text, nullable=False)
    availability = Column(Text, nullable=False)
    contact_info = Column(String(200), nullable=False)
    why_join = Column(Text, nullable=False)
    raiders_known = Column(Text)
    referred_by = Column(String(100))
    additional_info = Column(Text)
    logs = Column(String(500))  # WarcraftLogs links

    # Review
    status = Column(String(20), nullable=False, default=ApplicationStatus.PENDING.value)
    reviewed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    review_notes = Column(Text)
    review_date = Column(DateTime(timezone=True))

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    comments = relationship(
        "ApplicationComment", back_populates="application", cascade="all, delete-orphan",
        order_by="ApplicationComment.created_at"
    )

    __table_args__ = (
        Index("idx_application_status_created", "status", "created_at"),
    )


class ApplicationComment(Base):
    """Officer note on an application"""
    __tablename__ = "application_comments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    application_id = Column(Integer, ForeignKey("applications.id", ondelete="CASCADE"), nullable=False)
    author_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    comment = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    application = relationship("Application", back_populates="comments")


# Pydantic schemas
class ApplicationCreate(CamelModel):
    """Fields an applicant fills in"""
    character_name: str = Field(..., min_length=1, max_length=50)
    class_name: str = Field(..., min_length=1, max_length=30)
    spec_name: str = Field(..., min_length=1, max_length=50)
    realm: str = Field(..., min_length=1, max_length=50)
    item_level: Optional[int] = Field(None, ge=0)
    experience: str = Field(..., min_length=1)
    availability: str = Field(..., min_length=1)
    contact_info: str = Field(..., min_length=1, max_length=200)
    why_join: str = Field(..., min_length=1)
    raiders_known: Optional[str] = None
    referred_by: Optional[str] = Field(None, max_length=100)
    additional_info: Optional[str] = None
    logs: Optional[str] = Field(None, max_length=500)

    @field_validator("character_name", "class_name", "spec_name", "realm", "contact_info")
    @classmethod
    def strip_required(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be blank")
        return value


class ApplicationResponse(ApplicationCreate):
    """Stored application including review state"""
    id: int
    status: ApplicationStatus
    reviewed_by: Optional[int] = None
    review_notes: Optional[str] = None
    review_date: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime


class ApplicationStatusUpdate(CamelModel):
    """Body of the status change endpoint"""
    status: str
    review_notes: Optional[str] = None


class CommentCreate(CamelModel):
    comment: str = ""


class CommentResponse(CamelModel):
    id: int
    application_id: int
    author_id: Optional[int] = None
    comment: str
    created_at: datetime