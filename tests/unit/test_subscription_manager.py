"""
Unit tests for subscription activation.
"""

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest
import pytz
from sqlalchemy.exc import OperationalError

from config import SUBSCRIPTION_TERM_DAYS
from core.exceptions import PlanNotFoundError
from utils.entitlement_engine import EntitlementEngine
from utils.subscription_manager import SubscriptionManager
from utils.converters import parse_timestamp

T0 = datetime(2026, 5, 10, 8, 30, tzinfo=pytz.utc)


@pytest.fixture
def subscriptions(db, engine) -> SubscriptionManager:
    return SubscriptionManager(db, engine)


@pytest.fixture
def student(engine):
    return engine.register_user(
        email="amy@example.com", password="secret123", name="Amy"
    )


class TestPlans:
    def test_default_plans(self, subscriptions):
        assert [plan.id for plan in subscriptions.get_plans()] == ["starter", "premium"]

    def test_unknown_plan(self, subscriptions):
        with pytest.raises(PlanNotFoundError):
            subscriptions.get_plan("platinum")

    def test_custom_plan_catalog(self, db, engine):
        manager = SubscriptionManager(
            db,
            engine,
            plans=[{"id": "trial", "name": "Trial", "price": 0, "description": "Try it"}],
        )

        assert manager.get_plan("trial").name == "Trial"


class TestActivate:
    def test_sets_fixed_term(self, subscriptions, student):
        subscription = subscriptions.activate(student, "premium", now=T0)

        assert subscription.plan_id == "premium"
        assert subscription.status == "active"
        assert parse_timestamp(subscription.expires_at) == T0 + timedelta(
            days=SUBSCRIPTION_TERM_DAYS
        )

    def test_next_read_sees_active_subscription(self, subscriptions, engine, student):
        subscriptions.activate(student, "starter")

        status = subscriptions.get_subscription(engine.users.get_user(student.user_id))

        assert status.is_active
        assert status.subscription.plan_id == "starter"

    def test_reactivation_overwrites(self, subscriptions, engine, student):
        subscriptions.activate(student, "starter", now=T0)
        later = T0 + timedelta(days=20)

        subscriptions.activate(student, "premium", now=later)
        user = engine.users.get_user(student.user_id)

        assert user.subscription.plan_id == "premium"
        assert parse_timestamp(user.subscription.expires_at) == later + timedelta(
            days=SUBSCRIPTION_TERM_DAYS
        )

    def test_unknown_plan_writes_nothing(self, subscriptions, engine, make_content, student):
        make_content(price=500)

        with pytest.raises(PlanNotFoundError):
            subscriptions.activate(student, "platinum", now=T0)

        user = engine.users.get_user(student.user_id)
        assert user.subscription is None
        assert user.library == []

    def test_failed_backfill_rolls_back_subscription(
        self, subscriptions, engine, make_content, student
    ):
        make_content(price=500)
        failure = OperationalError("INSERT INTO library_entries", {}, Exception("disk I/O error"))

        with patch.object(EntitlementEngine, "_insert_entries", side_effect=failure):
            with pytest.raises(OperationalError):
                subscriptions.activate(student, "premium", now=T0)

        user = engine.users.get_user(student.user_id)
        assert user.subscription is None
        assert user.library == []

        # The session is usable again and a retry succeeds
        subscriptions.activate(student, "premium", now=T0)
        user = engine.users.get_user(student.user_id)
        assert user.subscription.plan_id == "premium"
        assert len(user.library) == 1

    def test_status_is_inactive_after_expiry(self, subscriptions, engine, student):
        subscriptions.activate(student, "premium", now=T0)
        user = engine.users.get_user(student.user_id)

        status = subscriptions.get_subscription(user, now=T0 + timedelta(days=31))

        assert status.subscription.status == "active"
        assert status.is_active is False

    def test_no_subscription(self, subscriptions, student):
        status = subscriptions.get_subscription(student)

        assert status.subscription is None
        assert status.is_active is False
