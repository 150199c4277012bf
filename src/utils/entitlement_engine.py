"""Entitlement engine.

Decides whether a user may fetch a content item's file, and keeps user
libraries consistent with the catalog. This is the only module that writes
library entries.

Decision rule, evaluated in order:

1. free content (price <= 0) is granted to everyone;
2. an active subscription whose expiry is still in the future grants the
   whole catalog;
3. a library entry grants that one item;
4. anything else is denied.

Expiry is evaluated lazily against the clock on every check; a stored
status of 'active' is never trusted on its own.

Library cascades run as single INSERT ... SELECT / DELETE statements against
the store, so they are idempotent and safe to retry. Adding an id that is
already present, or removing one that is absent, is a no-op.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from sqlalchemy import delete, exists, insert, literal, select
from sqlalchemy.dialects import postgresql
from sqlalchemy.orm import Session

from models.content import ContentModel
from models.library_entry import LibraryEntryModel
from models.user import UserModel
from schemas.content import ContentItem
from schemas.user import User
from utils.content_manager import ContentManager
from utils.converters import utc_now
from utils.user_manager import UserManager

logger = logging.getLogger(__name__)

_LIBRARY_COLUMNS = ["user_id", "content_id", "granted_at"]


class AccessReason(str, Enum):
    """Which branch of the decision rule settled an access check."""

    FREE = "free"
    SUBSCRIPTION = "subscription"
    OWNED = "owned"
    DENIED = "denied"


@dataclass(frozen=True)
class AccessDecision:
    user_id: str
    content_id: str
    reason: AccessReason

    @property
    def granted(self) -> bool:
        return self.reason is not AccessReason.DENIED


class EntitlementEngine:
    """Access decisions and library maintenance."""

    def __init__(
        self,
        db: Session,
        user_manager: Optional[UserManager] = None,
        content_manager: Optional[ContentManager] = None,
    ):
        """Initialize EntitlementEngine.

        Args:
            db: SQLAlchemy Session.
            user_manager: Credential store sharing the same session.
            content_manager: Catalog store sharing the same session.
        """
        self.db = db
        self.users = user_manager or UserManager(db)
        self.catalog = content_manager or ContentManager(db)

    # --- Decisions ---

    def evaluate(
        self, user: User, content: ContentItem, now: Optional[datetime] = None
    ) -> AccessDecision:
        """Apply the decision rule to a user and an existing content item.

        Args:
            user: The requesting user, freshly read from the store.
            content: The content item.
            now: Reference time for the subscription expiry check.

        Returns:
            AccessDecision naming the branch that decided.
        """
        if content.price <= 0:
            reason = AccessReason.FREE
        elif user.subscription is not None and user.subscription.is_active(
            now or utc_now()
        ):
            reason = AccessReason.SUBSCRIPTION
        elif content.content_id in user.library:
            reason = AccessReason.OWNED
        else:
            reason = AccessReason.DENIED
        return AccessDecision(user.user_id, content.content_id, reason)

    def get_library_content(self, user: User) -> List[ContentItem]:
        """The user's "my content" listing, newest first."""
        return self.catalog.get_contents_by_ids(user.library)

    # --- User lifecycle ---

    def register_user(
        self,
        email: str,
        password: str,
        name: str,
        phone: Optional[str] = None,
        role: str = "student",
    ) -> User:
        """Create a user and seed their library with all free content.

        Raises:
            UserAlreadyExistsError: If the email is already registered.
        """
        user = self.users.create_user(
            email=email, password=password, name=name, phone=phone, role=role
        )
        self.seed_library(user.user_id)
        return self.users.get_user(user.user_id)

    def seed_library(self, user_id: str) -> int:
        """Add every currently free content id to one user's library.

        Returns:
            Number of library entries added.
        """
        granted_at = utc_now().isoformat()
        rows = select(
            literal(user_id), ContentModel.content_id, literal(granted_at)
        ).where(
            ContentModel.price <= 0,
            ~self._entry_exists(literal(user_id), ContentModel.content_id),
        )
        added = self._insert_entries(rows)
        logger.info("Seeded %d free items into library of user %s", added, user_id)
        return added

    # --- Catalog lifecycle ---

    def create_content(self, data: Dict) -> ContentItem:
        """Create a content item and run the creation cascade.

        Free content is added to every user's library. Priced content is
        left out of libraries; subscribers reach it through the decision
        rule.

        Returns:
            The created ContentItem.
        """
        item = self.catalog.create_content(data)
        if item.is_free:
            self.grant_to_all_users(item.content_id)
        return item

    def delete_content(self, content_id: str) -> ContentItem:
        """Delete a content item and remove it from every library.

        Raises:
            ContentNotFoundError: If no such content exists.
        """
        item = self.catalog.delete_content(content_id)
        self.revoke_from_all_users(content_id)
        return item

    def grant_to_all_users(self, content_id: str) -> int:
        """Add one content id to every user's library.

        Returns:
            Number of library entries added.
        """
        granted_at = utc_now().isoformat()
        rows = select(
            UserModel.user_id, literal(content_id), literal(granted_at)
        ).where(~self._entry_exists(UserModel.user_id, literal(content_id)))
        added = self._insert_entries(rows)
        logger.info("Added content %s to %d libraries", content_id, added)
        return added

    def revoke_from_all_users(self, content_id: str) -> int:
        """Remove one content id from every library, whatever its price.

        Returns:
            Number of library entries removed.
        """
        result = self.db.execute(
            delete(LibraryEntryModel).where(LibraryEntryModel.content_id == content_id)
        )
        self.db.commit()
        removed = result.rowcount or 0
        logger.info("Removed content %s from %d libraries", content_id, removed)
        return removed

    # --- Grants for a single user ---

    def grant_all_content(self, user_id: str, commit: bool = True) -> int:
        """Add every existing content id to one user's library.

        With commit=False the insert joins the caller's open transaction.

        Returns:
            Number of library entries added.
        """
        granted_at = utc_now().isoformat()
        rows = select(
            literal(user_id), ContentModel.content_id, literal(granted_at)
        ).where(~self._entry_exists(literal(user_id), ContentModel.content_id))
        added = self._insert_entries(rows, commit=commit)
        logger.info("Added %d items to library of user %s", added, user_id)
        return added

    def grant_content(self, user_id: str, content_id: str) -> bool:
        """Record direct ownership of one item, e.g. after a purchase.

        Returns:
            True if an entry was added, False if it was already there.

        Raises:
            UserNotFoundError: If no such user exists.
            ContentNotFoundError: If no such content exists.
        """
        self.users.get_user(user_id)
        self.catalog.get_content(content_id)
        granted_at = utc_now().isoformat()
        rows = select(
            literal(user_id), literal(content_id), literal(granted_at)
        ).where(~self._entry_exists(literal(user_id), literal(content_id)))
        added = self._insert_entries(rows) > 0
        if added:
            logger.info("Granted content %s to user %s", content_id, user_id)
        return added

    # --- Store primitives ---

    @staticmethod
    def _entry_exists(user_id_expr, content_id_expr):
        return exists().where(
            LibraryEntryModel.user_id == user_id_expr,
            LibraryEntryModel.content_id == content_id_expr,
        )

    def _insert_entries(self, rows, commit: bool = True) -> int:
        """INSERT ... SELECT into library_entries, skipping duplicates.

        The NOT EXISTS filter in ``rows`` skips entries already present; the
        conflict clause covers a concurrent writer inserting the same pair
        between the check and the insert.
        """
        dialect = self.db.get_bind().dialect.name
        if dialect == "postgresql":
            stmt = (
                postgresql.insert(LibraryEntryModel)
                .from_select(_LIBRARY_COLUMNS, rows)
                .on_conflict_do_nothing(index_elements=["user_id", "content_id"])
            )
        elif dialect == "sqlite":
            stmt = (
                insert(LibraryEntryModel)
                .prefix_with("OR IGNORE")
                .from_select(_LIBRARY_COLUMNS, rows)
            )
        else:
            stmt = insert(LibraryEntryModel).from_select(_LIBRARY_COLUMNS, rows)
        result = self.db.execute(stmt)
        if commit:
            self.db.commit()
        return max(result.rowcount or 0, 0)
