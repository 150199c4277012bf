"""Dependency injection module for FastAPI.

This module provides dependency injection functions for FastAPI routes. All
managers of one request share that request's DB session.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from core.database import get_db
from utils import access_gateway
from utils import artifact_store
from utils import content_manager
from utils import entitlement_engine
from utils import subscription_manager
from utils import user_manager

# Singleton for ArtifactStore (stateless apart from its root directory)
_artifact_store_instance: artifact_store.ArtifactStore = None


def get_user_manager(db: Session = Depends(get_db)) -> user_manager.UserManager:
    """Get UserManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        UserManager instance.
    """
    return user_manager.UserManager(db)


def get_content_manager(
    db: Session = Depends(get_db),
) -> content_manager.ContentManager:
    """Get ContentManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        ContentManager instance.
    """
    return content_manager.ContentManager(db)


def get_entitlement_engine(
    db: Session = Depends(get_db),
) -> entitlement_engine.EntitlementEngine:
    """Get EntitlementEngine instance with request-scoped DB session."""
    return entitlement_engine.EntitlementEngine(db)


def get_subscription_manager(
    engine: entitlement_engine.EntitlementEngine = Depends(get_entitlement_engine),
) -> subscription_manager.SubscriptionManager:
    """Get SubscriptionManager bound to the request's EntitlementEngine."""
    return subscription_manager.SubscriptionManager(engine.db, engine)


def get_access_gateway(
    engine: entitlement_engine.EntitlementEngine = Depends(get_entitlement_engine),
) -> access_gateway.AccessGateway:
    """Get AccessGateway bound to the request's EntitlementEngine."""
    return access_gateway.AccessGateway(engine.db, engine)


def get_artifact_store() -> artifact_store.ArtifactStore:
    """Get ArtifactStore singleton instance.

    Returns:
        ArtifactStore instance (singleton).
    """
    global _artifact_store_instance
    if _artifact_store_instance is None:
        _artifact_store_instance = artifact_store.ArtifactStore()
    return _artifact_store_instance


# Type aliases for dependency injection
UserManagerDep = Annotated[
    user_manager.UserManager, Depends(get_user_manager)
]
ContentManagerDep = Annotated[
    content_manager.ContentManager, Depends(get_content_manager)
]
EntitlementEngineDep = Annotated[
    entitlement_engine.EntitlementEngine, Depends(get_entitlement_engine)
]
SubscriptionManagerDep = Annotated[
    subscription_manager.SubscriptionManager, Depends(get_subscription_manager)
]
AccessGatewayDep = Annotated[
    access_gateway.AccessGateway, Depends(get_access_gateway)
]
ArtifactStoreDep = Annotated[
    artifact_store.ArtifactStore, Depends(get_artifact_store)
]
