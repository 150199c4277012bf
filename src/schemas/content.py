"""Content schema definitions.

This module defines the ContentItem data model, the listing views built from
it, and the request bodies of the content routes.
"""

import uuid
from datetime import datetime
from typing import Literal, Optional

import pytz
from pydantic import BaseModel, Field

ContentType = Literal[
    "pdf", "epub", "doc", "docx", "ppt", "pptx", "txt", "audio", "video", "other"
]


class ContentItem(BaseModel):
    """structure of a catalog item"""

    content_id: str = Field(
        description="The unique identifier for the content item.",
        default_factory=lambda: str(uuid.uuid4()),
    )
    title: str
    description: str
    subject: str
    price: float = Field(ge=0, description="Price; 0 means free.")
    preview_url: Optional[str] = None
    type: ContentType = "other"
    lessons: int = Field(ge=0)

    file_id: Optional[str] = Field(
        default=None,
        description="Artifact reference, set only once an upload completed.",
    )
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    file_size: Optional[int] = None

    created_at: str = Field(
        default_factory=lambda: datetime.now(pytz.utc).isoformat()
    )
    updated_at: str = Field(
        default_factory=lambda: datetime.now(pytz.utc).isoformat()
    )

    @property
    def is_free(self) -> bool:
        return self.price <= 0


class ContentSummary(BaseModel):
    """Catalog listing entry."""

    content_id: str
    title: str
    subject: str
    price: float
    lessons: int
    type: ContentType
    locked: bool
    file_size: Optional[int] = None

    @classmethod
    def from_item(cls, item: ContentItem) -> "ContentSummary":
        return cls(
            content_id=item.content_id,
            title=item.title,
            subject=item.subject,
            price=item.price,
            lessons=item.lessons,
            type=item.type,
            locked=item.price > 0,
            file_size=item.file_size,
        )


class ContentDetail(BaseModel):
    """Public view of one catalog item. Artifact metadata is left out."""

    content_id: str
    title: str
    description: str
    subject: str
    price: float
    preview_url: Optional[str] = None
    type: ContentType
    lessons: int
    locked: bool
    created_at: str
    updated_at: str

    @classmethod
    def from_item(cls, item: ContentItem) -> "ContentDetail":
        return cls(
            content_id=item.content_id,
            title=item.title,
            description=item.description,
            subject=item.subject,
            price=item.price,
            preview_url=item.preview_url,
            type=item.type,
            lessons=item.lessons,
            locked=item.price > 0,
            created_at=item.created_at,
            updated_at=item.updated_at,
        )


class PurchasedContent(BaseModel):
    """Entry of a user's "my content" listing."""

    content_id: str
    title: str
    subject: str
    lessons: int
    type: ContentType
    file_name: Optional[str] = None
    file_size: Optional[int] = None

    @classmethod
    def from_item(cls, item: ContentItem) -> "PurchasedContent":
        return cls(
            content_id=item.content_id,
            title=item.title,
            subject=item.subject,
            lessons=item.lessons,
            type=item.type,
            file_name=item.file_name,
            file_size=item.file_size,
        )


class ArtifactRef(BaseModel):
    """Opaque reference to a stored file, handed out by the access gateway."""

    file_id: str
    file_name: Optional[str] = None
    file_type: Optional[str] = None
    file_size: Optional[int] = None


class CreateContentRequest(BaseModel):
    title: str = Field(min_length=3)
    description: str = Field(min_length=10)
    subject: str = Field(min_length=3)
    price: float = Field(ge=0)
    preview_url: Optional[str] = None
    type: Optional[ContentType] = None
    lessons: int = Field(gt=0)


class UpdateContentRequest(BaseModel):
    title: Optional[str] = Field(default=None, min_length=3)
    description: Optional[str] = Field(default=None, min_length=10)
    subject: Optional[str] = Field(default=None, min_length=3)
    price: Optional[float] = Field(default=None, ge=0)
    preview_url: Optional[str] = None
    type: Optional[ContentType] = None
    lessons: Optional[int] = Field(default=None, gt=0)


class GrantContentRequest(BaseModel):
    user_id: str = Field(description="User receiving direct ownership of the item.")
