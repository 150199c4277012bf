"""Bearer token database model.

Tokens are opaque random strings. Validity is checked at read time against
``issued_at`` plus the configured lifetime.
"""

from sqlalchemy import Column, String, ForeignKey
from .base import Base


class TokenModel(Base):
    """Bearer token database model."""

    __tablename__ = "tokens"

    token = Column(String, primary_key=True, index=True)
    user_id = Column(
        String, ForeignKey("users.user_id", ondelete="CASCADE"), index=True, nullable=False
    )
    issued_at = Column(String, nullable=False)  # ISO format string
