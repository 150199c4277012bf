"""Subscription management module.

Activates subscription plans for users. Activation overwrites the user's
subscription record and grants the whole current catalog through the
entitlement engine. There is no sweeper: expiry is re-checked against the
clock on every access decision.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from config import SUBSCRIPTION_PLANS, SUBSCRIPTION_TERM_DAYS
from core.exceptions import PlanNotFoundError
from schemas.subscription import SubscriptionPlan, SubscriptionStatusResponse
from schemas.user import Subscription, User
from utils.converters import utc_now
from utils.entitlement_engine import EntitlementEngine

logger = logging.getLogger(__name__)


class SubscriptionManager:
    """Manages subscription plans and activation."""

    def __init__(
        self,
        db: Session,
        entitlement_engine: Optional[EntitlementEngine] = None,
        plans: Optional[List[dict]] = None,
    ):
        """Initialize SubscriptionManager.

        Args:
            db: SQLAlchemy Session.
            entitlement_engine: Engine sharing the same session.
            plans: Plan catalog, defaults to config.SUBSCRIPTION_PLANS.
        """
        self.db = db
        self.entitlements = entitlement_engine or EntitlementEngine(db)
        self._plans = [
            SubscriptionPlan(**plan)
            for plan in (plans if plans is not None else SUBSCRIPTION_PLANS)
        ]

    def get_plans(self) -> List[SubscriptionPlan]:
        return list(self._plans)

    def get_plan(self, plan_id: str) -> SubscriptionPlan:
        """Look up a plan by ID.

        Raises:
            PlanNotFoundError: If the plan is not in the catalog.
        """
        for plan in self._plans:
            if plan.id == plan_id:
                return plan
        raise PlanNotFoundError(plan_id)

    def activate(
        self, user: User, plan_id: str, now: Optional[datetime] = None
    ) -> Subscription:
        """Activate a plan for a user.

        The subscription record is replaced wholesale: activating again
        before expiry resets the term and may switch plans. Every content
        item that exists right now is added to the user's library.

        Args:
            user: The subscribing user.
            plan_id: ID of the plan to activate.
            now: Activation time, defaults to the current UTC time.

        Returns:
            The new Subscription record.

        Raises:
            PlanNotFoundError: If the plan is unknown. Nothing is written.
            SQLAlchemyError: If the write fails. Nothing is written.
        """
        plan = self.get_plan(plan_id)
        now = now or utc_now()
        subscription = Subscription(
            plan_id=plan.id,
            status="active",
            expires_at=(now + timedelta(days=SUBSCRIPTION_TERM_DAYS)).isoformat(),
        )
        # Subscription record and library backfill commit together or not at all
        try:
            self.entitlements.users.set_subscription(
                user.user_id, subscription, commit=False
            )
            self.entitlements.grant_all_content(user.user_id, commit=False)
            self.db.commit()
        except SQLAlchemyError:
            self.db.rollback()
            logger.error("Activation of plan %s failed for user %s", plan.id, user.user_id)
            raise
        logger.info(
            "Activated plan %s for user %s until %s",
            plan.id,
            user.user_id,
            subscription.expires_at,
        )
        return subscription

    def get_subscription(
        self, user: User, now: Optional[datetime] = None
    ) -> SubscriptionStatusResponse:
        """Stored subscription plus whether it currently grants access."""
        subscription = user.subscription
        return SubscriptionStatusResponse(
            subscription=subscription,
            is_active=bool(subscription and subscription.is_active(now or utc_now())),
        )
