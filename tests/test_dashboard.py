"""Tests for the dashboard summary and async loader."""

import asyncio
from datetime import datetime, timezone

import pytest

from givepool.config import Settings
from givepool.dashboard import DashboardLoader, build_dashboard
from givepool.models import OrderRecord, Organization, Subscription


class FakeResponse:
    def __init__(self, status, payload):
        self.status = status
        self._payload = payload

    async def json(self):
        return self._payload

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    def __init__(self, tables, status=200):
        self.tables = tables
        self.status = status
        self.requested = []
        self.headers = []

    def get(self, url, params=None, headers=None, timeout=None):
        table = url.rsplit("/", 1)[-1]
        self.requested.append(table)
        self.headers.append(headers or {})
        return FakeResponse(self.status, self.tables.get(table, []))


ORGS = [Organization("A", "Health"), Organization("B", "Education")]


class TestBuildDashboard:
    def test_summary(self):
        orders = [
            OrderRecord("1", 5000, order_date=datetime(2024, 6, 3)),
            OrderRecord("2", 5000, order_date=datetime(2024, 5, 3)),
            OrderRecord("3", 5000, order_date=datetime(1970, 1, 1)),
        ]
        sub = Subscription(
            price_id="price_1RcooDRnYW51Zw7fj51b9Cih",
            status="active",
            current_period_start=datetime(2024, 6, 1),
            current_period_end=datetime(2024, 7, 1),
        )
        summary = build_dashboard(ORGS, orders, sub)

        assert summary.total_donated == 10000
        assert summary.current_cycle_amount == 5000
        assert summary.next_billing_date == datetime(2024, 7, 1)
        assert summary.plan.name == "Tier 2"
        assert [e.amount for e in summary.distribution] == [2500, 2500]
        assert [r.id for r in summary.timeline] == ["1", "2"]

    def test_without_subscription(self):
        orders = [OrderRecord("1", 1500, order_date=datetime(2024, 6, 3))]
        summary = build_dashboard(ORGS, orders, None, now=datetime(2024, 6, 20))
        assert summary.current_cycle_amount == 1500
        assert summary.distribution == []
        assert summary.plan is None


class TestDashboardLoader:
    @pytest.fixture
    def settings(self):
        return Settings(supabase_url="https://example.supabase.co", supabase_key="anon-key")

    def test_load(self, settings):
        session = FakeSession({
            "organization_applications": [
                {"organization_name": "A", "category": "Health"},
                {"organization_name": "B", "category": "Education"},
                {"organization_name": "C", "category": "Environment"},
            ],
            "stripe_user_orders": [
                {"order_id": 2, "amount_total": 10000, "order_date": "2024-06-02T12:00:00Z",
                 "order_status": "completed"},
                {"order_id": 1, "amount_total": 10000, "order_date": "1970-01-01T00:00:00Z",
                 "order_status": "completed"},
            ],
            "stripe_user_subscriptions": [
                {"price_id": "price_1RcoopRnYW51Zw7f2D5HGmIM", "subscription_status": "active",
                 "current_period_start": 1717200000, "current_period_end": 1719792000},
            ],
        })
        summary = asyncio.run(DashboardLoader(settings).load(session=session))

        assert sorted(session.requested) == [
            "organization_applications", "stripe_user_orders", "stripe_user_subscriptions"
        ]
        assert summary.total_donated == 10000
        assert summary.current_cycle_amount == 10000
        assert summary.next_billing_date == datetime(2024, 7, 1, tzinfo=timezone.utc)
        assert [e.amount for e in summary.distribution] == [3334, 3333, 3333]
        assert summary.to_dict()["plan"] == "Tier 3"

    def test_store_errors_give_empty_summary(self, settings):
        session = FakeSession({}, status=500)
        summary = asyncio.run(DashboardLoader(settings).load(session=session))
        assert summary.total_donated == 0
        assert summary.distribution == []

    def test_caller_session_gets_auth_headers(self, settings):
        session = FakeSession({})
        asyncio.run(DashboardLoader(settings).load(session=session))
        assert len(session.headers) == 3
        for headers in session.headers:
            assert headers["apikey"] == "anon-key"
            assert headers["Authorization"] == "Bearer anon-key"
