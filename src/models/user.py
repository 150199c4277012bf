"""User database model.

This module defines the User database model using SQLAlchemy.
"""

from sqlalchemy import Column, String
from sqlalchemy.orm import relationship
from .base import Base


class UserModel(Base):
    """User database model."""

    __tablename__ = "users"

    user_id = Column(String, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)  # lower-cased
    password_hash = Column(String, nullable=False)
    name = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    role = Column(String, nullable=False, index=True)  # 'admin' or 'student'

    # Subscription record, all three set together or all NULL
    subscription_plan_id = Column(String, nullable=True)
    subscription_status = Column(String, nullable=True)  # 'active', 'inactive', 'past_due'
    subscription_expires_at = Column(String, nullable=True)  # ISO format string

    created_at = Column(String, nullable=False)  # ISO format string
    updated_at = Column(String, nullable=False)  # ISO format string

    library_entries = relationship(
        "LibraryEntryModel",
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )
