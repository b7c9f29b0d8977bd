"""
Request and response models shared by the routers.

Response fields are camelCase to match what the review UI consumes. Domain
rules (tone enum, caption length, batch bounds) are enforced by the stores,
not here, so they fail with the domain error kinds rather than a generic
schema error.
"""

from datetime import datetime
from typing import Any, List, Optional

from pydantic import BaseModel, EmailStr

from core.models import Caption, ContentItem, PostMetrics, User
from services.content_store import ContentWithCaptions


# Request Models
class LoginRequest(BaseModel):
    email: str
    password: str


class CreateUserRequest(BaseModel):
    email: EmailStr
    password: str
    name: Optional[str] = None
    role: Optional[str] = None


class UpdateUserRequest(BaseModel):
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    name: Optional[str] = None
    role: Optional[str] = None


class SyncRequest(BaseModel):
    contentItems: Any = None


class CreateCaptionsRequest(BaseModel):
    captions: Any = None


class UpdateCaptionRequest(BaseModel):
    content: Any = None
    expectedVersion: Optional[int] = None


class N8nWebhookRequest(BaseModel):
    event: str
    data: Any = None


class DriveWebhookRequest(BaseModel):
    event: str
    fileId: Optional[str] = None
    fileName: Optional[str] = None
    fileType: Optional[str] = None
    mimeType: Optional[str] = None


class FacebookSyncRequest(BaseModel):
    postId: Any = None


# Response Models
class UserResponse(BaseModel):
    id: str
    email: str
    name: Optional[str]
    role: str
    createdAt: datetime

    @classmethod
    def from_row(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            role=user.role,
            createdAt=user.created_at,
        )


class CaptionResponse(BaseModel):
    id: str
    contentItemId: str
    version: int
    tone: str
    content: str
    status: str
    createdAt: datetime
    updatedAt: Optional[datetime] = None
    approvedBy: Optional[str] = None
    approvedAt: Optional[datetime] = None

    @classmethod
    def from_row(cls, caption: Caption) -> "CaptionResponse":
        return cls(
            id=caption.id,
            contentItemId=caption.content_item_id,
            version=caption.version,
            tone=caption.tone,
            content=caption.content,
            status=caption.status,
            createdAt=caption.created_at,
            updatedAt=caption.updated_at,
            approvedBy=caption.approved_by,
            approvedAt=caption.approved_at,
        )


class ContentItemResponse(BaseModel):
    id: str
    driveFileId: str
    filename: str
    fileType: str
    status: str
    uploadedAt: datetime
    updatedAt: Optional[datetime] = None
    driveUrl: Optional[str] = None
    thumbnailUrl: Optional[str] = None
    embedUrl: Optional[str] = None
    mimeType: Optional[str] = None
    captions: List[CaptionResponse] = []

    @classmethod
    def from_row(
        cls, item: ContentItem, captions: Optional[List[Caption]] = None
    ) -> "ContentItemResponse":
        return cls(
            id=item.id,
            driveFileId=item.drive_file_id,
            filename=item.filename,
            fileType=item.file_type,
            status=item.status,
            uploadedAt=item.uploaded_at,
            updatedAt=item.updated_at,
            driveUrl=item.drive_url,
            thumbnailUrl=item.thumbnail_url,
            embedUrl=item.embed_url,
            mimeType=item.mime_type,
            captions=[CaptionResponse.from_row(c) for c in captions or []],
        )

    @classmethod
    def from_listing(cls, entry: ContentWithCaptions) -> "ContentItemResponse":
        return cls.from_row(entry.item, entry.captions)


class MetricsResponse(BaseModel):
    id: str
    contentItemId: str
    postId: str
    likes: int
    comments: int
    shares: int
    reactions: int
    fetchedAt: datetime

    @classmethod
    def from_row(cls, metrics: PostMetrics) -> "MetricsResponse":
        return cls(
            id=metrics.id,
            contentItemId=metrics.content_item_id,
            postId=metrics.post_id,
            likes=metrics.likes,
            comments=metrics.comments,
            shares=metrics.shares,
            reactions=metrics.reactions,
            fetchedAt=metrics.fetched_at,
        )
