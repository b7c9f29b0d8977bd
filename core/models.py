"""
Core data models for the Content Review API

Defines the persisted tables (content items, captions, settings, users, post
metrics) and the closed enums that constrain their text columns.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FileType(str, Enum):
    VIDEO = "video"
    IMAGE = "image"


class Tone(str, Enum):
    PROFESSIONAL = "Professional"
    CASUAL = "Casual"
    ENGAGING = "Engaging"


class CaptionStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"


class UserRole(str, Enum):
    USER = "user"
    ADMIN = "admin"


class ContentStatus(str, Enum):
    """Lifecycle of a content item.

    pending_review -> approved -> published. Approving another caption on an
    approved item keeps it approved, and an approved item may be sent back to
    review. Published is terminal.
    """

    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    PUBLISHED = "published"

    @classmethod
    def can_transition(cls, current: str, target: str) -> bool:
        allowed = _TRANSITIONS.get(cls(current), set())
        return cls(target) in allowed


_TRANSITIONS = {
    ContentStatus.PENDING_REVIEW: {ContentStatus.APPROVED},
    ContentStatus.APPROVED: {
        ContentStatus.APPROVED,
        ContentStatus.PUBLISHED,
        ContentStatus.PENDING_REVIEW,
    },
    ContentStatus.PUBLISHED: {ContentStatus.PUBLISHED},
}


class ContentItem(SQLModel, table=True):
    """
    A media file synced from the drive. `drive_file_id` is unique and never
    rewritten after insert.
    """

    __tablename__ = "content_items"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    drive_file_id: str = Field(index=True, unique=True, max_length=255)
    filename: str = Field(max_length=512)
    file_type: str = Field(max_length=16)
    status: str = Field(default=ContentStatus.PENDING_REVIEW.value, max_length=32)
    drive_url: Optional[str] = Field(default=None, max_length=1024)
    thumbnail_url: Optional[str] = Field(default=None, max_length=1024)
    embed_url: Optional[str] = Field(default=None, max_length=1024)
    mime_type: Optional[str] = Field(default=None, max_length=255)
    uploaded_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))


class Caption(SQLModel, table=True):
    """
    A versioned caption proposal. `version` starts at 1 and is bumped by one
    on every content edit; `approved_by`/`approved_at` are written once.
    """

    __tablename__ = "captions"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    content_item_id: str = Field(foreign_key="content_items.id", index=True, max_length=36)
    tone: str = Field(max_length=32)
    content: str
    status: str = Field(default=CaptionStatus.PENDING.value, max_length=32)
    version: int = Field(default=1)
    approved_by: Optional[str] = Field(default=None, max_length=36)
    approved_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    created_at: datetime = Field(
        default_factory=utc_now, sa_type=DateTime(timezone=True), index=True
    )
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))


class Setting(SQLModel, table=True):
    """Flat key/value integration configuration, admin managed."""

    __tablename__ = "settings"

    key: str = Field(primary_key=True, max_length=128)
    value: str = Field(default="")
    description: Optional[str] = Field(default=None, max_length=512)
    updated_by: Optional[str] = Field(default=None, max_length=36)
    updated_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    email: str = Field(index=True, unique=True, max_length=255)
    password_hash: str = Field(max_length=255)
    name: Optional[str] = Field(default=None, max_length=255)
    role: str = Field(default=UserRole.USER.value, max_length=16)
    created_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))


class PostMetrics(SQLModel, table=True):
    """Engagement counts of the social post published for a content item."""

    __tablename__ = "post_metrics"

    id: str = Field(default_factory=new_id, primary_key=True, max_length=36)
    content_item_id: str = Field(
        foreign_key="content_items.id", index=True, unique=True, max_length=36
    )
    post_id: str = Field(max_length=255)
    likes: int = Field(default=0)
    comments: int = Field(default=0)
    shares: int = Field(default=0)
    reactions: int = Field(default=0)
    fetched_at: datetime = Field(default_factory=utc_now, sa_type=DateTime(timezone=True))
