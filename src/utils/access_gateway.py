"""Access gateway.

The single checkpoint every download passes through. It resolves the caller,
the content item and the entitlement, and hands back an opaque artifact
reference; streaming the bytes is the caller's business.

Checks run in a fixed order and stop at the first failure:

1. token -> user, else UnauthenticatedError (nothing else is looked at);
2. content exists, else ContentNotFoundError;
3. a file was uploaded, else NoArtifactError;
4. decision rule grants, else AccessDeniedError.

An unauthenticated caller learns nothing about the content id.
"""

import logging
from datetime import datetime
from typing import Optional

from sqlalchemy.orm import Session

from core.exceptions import (
    AccessDeniedError,
    ContentNotFoundError,
    NoArtifactError,
    UnauthenticatedError,
)
from schemas.content import ArtifactRef
from utils.converters import utc_now
from utils.entitlement_engine import EntitlementEngine

logger = logging.getLogger(__name__)


class AccessGateway:
    """Authorizes artifact downloads."""

    def __init__(
        self, db: Session, entitlement_engine: Optional[EntitlementEngine] = None
    ):
        self.db = db
        self.entitlements = entitlement_engine or EntitlementEngine(db)

    def authorize_download(
        self,
        token: Optional[str],
        content_id: str,
        now: Optional[datetime] = None,
    ) -> ArtifactRef:
        """Decide whether the bearer of ``token`` may download a content file.

        Args:
            token: Bearer token, may be None.
            content_id: ID of the requested content item.
            now: Reference time for token and subscription expiry.

        Returns:
            ArtifactRef for the caller to stream.

        Raises:
            UnauthenticatedError: Missing, unknown or expired token.
            ContentNotFoundError: No such content.
            NoArtifactError: Nothing was uploaded for the content.
            AccessDeniedError: The decision rule denies access.
        """
        now = now or utc_now()

        user = self.entitlements.users.resolve_token(token, now=now)
        if user is None:
            raise UnauthenticatedError("Authentication is required to download files.")

        content = self.entitlements.catalog.get_content_by_id(content_id)
        if content is None:
            raise ContentNotFoundError(content_id)

        if not content.file_id:
            raise NoArtifactError(content_id)

        decision = self.entitlements.evaluate(user, content, now)
        if not decision.granted:
            logger.warning(
                "Download of content %s denied for user %s", content_id, user.user_id
            )
            raise AccessDeniedError(content_id)

        logger.info(
            "Authorized download of content %s for user %s (%s)",
            content_id,
            user.user_id,
            decision.reason.value,
        )
        return ArtifactRef(
            file_id=content.file_id,
            file_name=content.file_name,
            file_type=content.file_type,
            file_size=content.file_size,
        )
