"""Catalog store.

Persistence of content items. This module knows nothing about users or
libraries; catalog changes that affect entitlements go through
utils.entitlement_engine, which calls in here.
"""

import logging
from typing import Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from core.exceptions import ContentNotFoundError, ValidationError
from models.content import ContentModel
from schemas.content import ContentItem
from utils.converters import content_to_model, model_to_content, utc_now

logger = logging.getLogger(__name__)

# Fields an admin update may touch. Artifact fields go through attach_artifact.
_UPDATABLE_FIELDS = (
    "title",
    "description",
    "subject",
    "price",
    "preview_url",
    "type",
    "lessons",
)

SAMPLE_CONTENT: List[Dict] = [
    {
        "title": "Mathematics Form 4",
        "description": "Complete revision kit with 200+ solved problems",
        "subject": "Mathematics",
        "price": 500,
        "preview_url": "https://www.africau.edu/images/default/sample.pdf",
        "type": "pdf",
        "lessons": 24,
    },
    {
        "title": "Chemistry Form 3",
        "description": "Comprehensive notes and practical questions",
        "subject": "Chemistry",
        "price": 450,
        "preview_url": "https://www.africau.edu/images/default/sample.pdf",
        "type": "pdf",
        "lessons": 18,
    },
    {
        "title": "Physics Form 4",
        "description": "Theory and numerical problems with solutions",
        "subject": "Physics",
        "price": 0,
        "preview_url": "https://www.africau.edu/images/default/sample.pdf",
        "type": "pdf",
        "lessons": 22,
    },
]


def detect_content_type(mime: Optional[str]) -> str:
    """Map an upload's MIME type to a catalog content type."""
    mime = (mime or "").lower()
    if "pdf" in mime:
        return "pdf"
    if "epub" in mime:
        return "epub"
    if "presentation" in mime or "powerpoint" in mime:
        return "pptx"
    if "word" in mime or "doc" in mime:
        return "docx"
    if "text" in mime:
        return "txt"
    if "audio" in mime:
        return "audio"
    if "video" in mime:
        return "video"
    return "other"


class ContentManager:
    """Manages content item persistence using SQLAlchemy."""

    def __init__(self, db: Session):
        """Initialize ContentManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def _get_model(self, content_id: str) -> ContentModel:
        model = (
            self.db.query(ContentModel)
            .filter(ContentModel.content_id == content_id)
            .first()
        )
        if not model:
            raise ContentNotFoundError(content_id)
        return model

    def list_content(self) -> List[ContentItem]:
        """List the whole catalog, newest first."""
        models = self.db.query(ContentModel).order_by(ContentModel.created_at.desc()).all()
        return [model_to_content(m) for m in models]

    def get_content_by_id(self, content_id: str) -> Optional[ContentItem]:
        """Get a content item by ID.

        Returns:
            ContentItem if found, None otherwise.
        """
        model = (
            self.db.query(ContentModel)
            .filter(ContentModel.content_id == content_id)
            .first()
        )
        if model:
            return model_to_content(model)
        return None

    def get_content(self, content_id: str) -> ContentItem:
        """Like get_content_by_id but raises ContentNotFoundError."""
        return model_to_content(self._get_model(content_id))

    def get_contents_by_ids(self, content_ids: List[str]) -> List[ContentItem]:
        """Fetch the given items that still exist, newest first."""
        if not content_ids:
            return []
        models = (
            self.db.query(ContentModel)
            .filter(ContentModel.content_id.in_(content_ids))
            .order_by(ContentModel.created_at.desc())
            .all()
        )
        return [model_to_content(m) for m in models]

    def count_content(self) -> int:
        return self.db.query(ContentModel).count()

    def create_content(self, data: Dict) -> ContentItem:
        """Insert a new content item.

        Args:
            data: Field values; see schemas.content.ContentItem. A missing
                'type' defaults to 'other'.

        Returns:
            The created ContentItem.

        Raises:
            ValidationError: If the fields do not form a valid item.
        """
        fields = {k: v for k, v in data.items() if v is not None}
        fields.setdefault("type", "other")
        try:
            item = ContentItem(**fields)
        except PydanticValidationError as e:
            raise ValidationError(str(e)) from e
        model = content_to_model(item)
        self.db.add(model)
        self.db.commit()
        self.db.refresh(model)
        logger.info("Created content %s (price=%s)", item.content_id, item.price)
        return model_to_content(model)

    def update_content(self, content_id: str, updates: Dict) -> ContentItem:
        """Apply a partial update. Keys with None values are ignored.

        Raises:
            ContentNotFoundError: If the content does not exist.
        """
        model = self._get_model(content_id)
        for field in _UPDATABLE_FIELDS:
            value = updates.get(field)
            if value is not None:
                setattr(model, field, value)
        model.updated_at = utc_now().isoformat()
        self.db.commit()
        self.db.refresh(model)
        logger.info("Updated content %s", content_id)
        return model_to_content(model)

    def attach_artifact(
        self,
        content_id: str,
        file_id: str,
        file_name: Optional[str],
        file_type: Optional[str],
        file_size: Optional[int],
    ) -> ContentItem:
        """Record a completed upload on a content item.

        Raises:
            ContentNotFoundError: If the content does not exist.
        """
        model = self._get_model(content_id)
        model.file_id = file_id
        model.file_name = file_name
        model.file_type = file_type
        model.file_size = file_size
        model.updated_at = utc_now().isoformat()
        self.db.commit()
        self.db.refresh(model)
        logger.info("Attached file %s to content %s", file_id, content_id)
        return model_to_content(model)

    def delete_content(self, content_id: str) -> ContentItem:
        """Delete a content item.

        Library rows referencing it go with it (ON DELETE CASCADE); the
        entitlement engine also removes them explicitly.

        Returns:
            The deleted item, so callers can clean up its artifact.

        Raises:
            ContentNotFoundError: If the content does not exist.
        """
        model = self._get_model(content_id)
        item = model_to_content(model)
        self.db.delete(model)
        self.db.commit()
        logger.info("Deleted content %s", content_id)
        return item
