"""Conversions between ORM models and Pydantic schemas."""

from datetime import datetime

import pytz

from models.content import ContentModel
from models.user import UserModel
from schemas.content import ContentItem
from schemas.user import Subscription, User


def utc_now() -> datetime:
    return datetime.now(pytz.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse a stored ISO timestamp, treating naive values as UTC."""
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = pytz.utc.localize(parsed)
    return parsed


def user_to_model(user: User) -> UserModel:
    subscription = user.subscription
    return UserModel(
        user_id=user.user_id,
        email=user.email,
        password_hash=user.password_hash,
        name=user.name,
        phone=user.phone,
        role=user.role,
        subscription_plan_id=subscription.plan_id if subscription else None,
        subscription_status=subscription.status if subscription else None,
        subscription_expires_at=subscription.expires_at if subscription else None,
        created_at=user.created_at,
        updated_at=user.updated_at,
    )


def model_to_user(model: UserModel) -> User:
    subscription = None
    if model.subscription_plan_id:
        subscription = Subscription(
            plan_id=model.subscription_plan_id,
            status=model.subscription_status or "inactive",
            expires_at=model.subscription_expires_at,
        )
    return User(
        user_id=model.user_id,
        email=model.email,
        password_hash=model.password_hash,
        name=model.name,
        phone=model.phone,
        role=model.role,
        subscription=subscription,
        library=[entry.content_id for entry in model.library_entries],
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


def content_to_model(item: ContentItem) -> ContentModel:
    return ContentModel(**item.model_dump())


def model_to_content(model: ContentModel) -> ContentItem:
    return ContentItem(
        content_id=model.content_id,
        title=model.title,
        description=model.description,
        subject=model.subject,
        price=model.price,
        preview_url=model.preview_url,
        type=model.type or "other",
        lessons=model.lessons,
        file_id=model.file_id,
        file_name=model.file_name,
        file_type=model.file_type,
        file_size=model.file_size,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )
