"""Tests for store row parsing."""

from datetime import datetime, timezone

import pytest

from givepool.ledger import LedgerReconciler
from givepool.models import Period
from givepool.parser import RecordParser


@pytest.fixture
def parser():
    return RecordParser()


class TestParseOrder:
    def test_full_row(self, parser):
        record = parser.parse_order({
            "order_id": 42,
            "amount_total": 5000,
            "currency": "USD",
            "order_date": "2024-06-15T10:30:00Z",
            "order_status": "completed",
        })
        assert record.id == "42"
        assert record.amount_total == 5000
        assert record.currency == "usd"
        assert record.order_date == datetime(2024, 6, 15, 10, 30, tzinfo=timezone.utc)
        assert record.status == "completed"

    def test_missing_amount_is_zero(self, parser):
        record = parser.parse_order({"order_id": 1, "amount_total": None, "order_date": "2024-01-01"})
        assert record.amount_total == 0

    def test_negative_amount_is_zero(self, parser):
        record = parser.parse_order({"order_id": 1, "amount_total": "-500", "order_date": "2024-01-01"})
        assert record.amount_total == 0
        assert LedgerReconciler().aggregate([record], Period.all()).total_amount == 0

    def test_postgres_fractional_seconds(self, parser):
        record = parser.parse_order({
            "order_id": 1,
            "amount_total": 1500,
            "order_date": "2025-06-15T10:20:30.12345+00:00",
        })
        assert record.order_date == datetime(2025, 6, 15, 10, 20, 30, 123450, tzinfo=timezone.utc)
        assert LedgerReconciler().filter_valid([record]) == [record]

    def test_csv_strings(self, parser):
        record = parser.parse_order({"id": "7", "amount_total": "1500", "order_date": "2024-02-03"})
        assert record.amount_total == 1500
        assert record.order_date == datetime(2024, 2, 3)

    def test_unix_zero_is_epoch(self, parser):
        record = parser.parse_order({"order_id": 1, "amount_total": 100, "order_date": 0})
        assert record.order_date.year == 1970
        assert LedgerReconciler().filter_valid([record]) == []

    def test_garbage_date_is_none(self, parser):
        record = parser.parse_order({"order_id": 1, "amount_total": 100, "order_date": "yesterday"})
        assert record.order_date is None


class TestParseOrganization:
    def test_approved_application(self, parser):
        org = parser.parse_organization({
            "id": "abc",
            "organization_name": "Forest Protection Fund",
            "category": "Environment",
            "created_at": "2025-01-02T00:00:00+00:00",
        })
        assert org.name == "Forest Protection Fund"
        assert org.category == "Environment"
        assert org.created_at.year == 2025

    def test_nameless_rows_skipped(self, parser):
        orgs = parser.parse_organizations([
            {"organization_name": "A"},
            {"organization_name": "  "},
            {"category": "Health"},
        ])
        assert [o.name for o in orgs] == ["A"]


class TestParseSubscription:
    def test_unix_period_bounds(self, parser):
        sub = parser.parse_subscription({
            "price_id": "price_1RcolnRnYW51Zw7fMaZfU3R4",
            "subscription_status": "active",
            "current_period_start": 1717200000,
            "current_period_end": 1719792000,
        })
        assert sub.is_active
        assert sub.current_period_start == datetime(2024, 6, 1, tzinfo=timezone.utc)
        assert sub.current_period_end == datetime(2024, 7, 1, tzinfo=timezone.utc)

    def test_none_row(self, parser):
        assert parser.parse_subscription(None) is None
