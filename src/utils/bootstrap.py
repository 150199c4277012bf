"""Startup invariants.

Run once per process start. Every step is an idempotent "ensure" guarded by
a query against the store, so running it again, or from several processes,
changes nothing once the invariants hold.
"""

import logging

from sqlalchemy.orm import Session

from config import SEED_SAMPLE_CONTENT
from core.exceptions import ContentPlatformError
from utils.content_manager import SAMPLE_CONTENT
from utils.entitlement_engine import EntitlementEngine

logger = logging.getLogger(__name__)


def ensure_admin_account(engine: EntitlementEngine) -> None:
    """Make sure at least one admin exists; seed a new admin's library."""
    admin = engine.users.ensure_admin_user()
    if admin is not None:
        engine.seed_library(admin.user_id)


def ensure_seed_content(engine: EntitlementEngine) -> int:
    """Insert the sample catalog if the catalog is empty.

    Goes through the entitlement engine so free samples reach every library.

    Returns:
        Number of items inserted.
    """
    if engine.catalog.count_content() > 0:
        return 0
    for sample in SAMPLE_CONTENT:
        engine.create_content(dict(sample))
    logger.info("Seeded %d sample content items", len(SAMPLE_CONTENT))
    return len(SAMPLE_CONTENT)


def run_startup_checks(db: Session, seed_content: bool = SEED_SAMPLE_CONTENT) -> None:
    """Ensure the bootstrap admin and, optionally, the sample catalog, then
    drop tokens that expired while the service was down.

    Invariant failures are logged, never raised: a broken invariant must not keep the
    API from serving.
    """
    engine = EntitlementEngine(db)
    try:
        ensure_admin_account(engine)
    except ContentPlatformError as e:
        logger.error(
            "No admin account exists and the bootstrap admin could not be "
            "created: %s. Set DEFAULT_ADMIN_EMAIL to an unused address and restart.",
            e,
        )
    if seed_content:
        try:
            ensure_seed_content(engine)
        except ContentPlatformError as e:
            logger.error("Could not seed sample content: %s", e)
    engine.users.purge_expired_tokens()
