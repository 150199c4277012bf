"""User schema definitions.

This module defines the User data model, its public (redacted) view, and the
request/response bodies of the auth routes.
"""

import uuid
from datetime import datetime
from typing import List, Literal, Optional

import pytz
from pydantic import BaseModel, Field, field_validator

Role = Literal["student", "admin"]
SubscriptionStatus = Literal["active", "inactive", "past_due"]


class Subscription(BaseModel):
    """A user's subscription record. Overwritten wholesale on activation."""

    plan_id: str = Field(description="The ID of the subscribed plan.")
    status: SubscriptionStatus = Field(
        default="active",
        description="Stored status. Expiry is not swept, see is_active().",
    )
    expires_at: str = Field(description="ISO-8601 UTC expiry timestamp.")

    def is_active(self, now: Optional[datetime] = None) -> bool:
        """Check the stored status and the expiry against the clock.

        Args:
            now: Reference time, defaults to the current UTC time.

        Returns:
            True only if status is 'active' and expires_at is in the future.
        """
        if self.status != "active":
            return False
        now = now or datetime.now(pytz.utc)
        expires_at = datetime.fromisoformat(self.expires_at.replace("Z", "+00:00"))
        if expires_at.tzinfo is None:
            expires_at = pytz.utc.localize(expires_at)
        return expires_at > now


class User(BaseModel):
    """structure of user"""

    user_id: str = Field(
        description="The unique identifier for the user.",
        default_factory=lambda: str(uuid.uuid4()),
    )
    email: str = Field(description="Lower-cased email, the login key.")
    password_hash: str = Field(description="bcrypt hash of the credential.")
    name: str = Field(description="Display name.")
    phone: Optional[str] = Field(default=None)
    role: Role = Field(default="student")
    subscription: Optional[Subscription] = Field(default=None)
    library: List[str] = Field(
        default_factory=list,
        description="IDs of the content items owned outright.",
    )
    created_at: str = Field(
        default_factory=lambda: datetime.now(pytz.utc).isoformat()
    )
    updated_at: str = Field(
        default_factory=lambda: datetime.now(pytz.utc).isoformat()
    )

    def to_public(self) -> "PublicUser":
        """Return the user without the credential field."""
        return PublicUser.model_validate(self.model_dump(exclude={"password_hash"}))


class PublicUser(BaseModel):
    """User as exposed to clients. Has no credential field by construction."""

    user_id: str
    email: str
    name: str
    phone: Optional[str] = None
    role: Role
    subscription: Optional[Subscription] = None
    library: List[str] = []
    created_at: str
    updated_at: str


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    password: str = Field(min_length=6)
    phone: Optional[str] = None

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        value = value.strip().lower()
        if "@" not in value:
            raise ValueError("Invalid email address")
        return value


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    token: str
    user: PublicUser


class UpdateProfileRequest(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    phone: Optional[str] = None
    password: Optional[str] = Field(default=None, min_length=6)
