"""Parse raw store rows into typed records."""

import logging
from datetime import datetime, timezone
from typing import Any, Optional

from dateutil.parser import isoparse

from .exceptions import InvalidArgumentError
from .models import Organization, OrderRecord, Subscription

logger = logging.getLogger(__name__)


class RecordParser:
    """Parser for rows returned by the data store (or loaded from JSON/CSV).

    Rows are plain dicts. Missing or malformed fields never raise: amounts
    fall back to 0 and dates to None, which the ledger later treats as invalid.
    """

    def parse_order(self, row: dict) -> OrderRecord:
        """Convert a ``stripe_user_orders`` row to an OrderRecord."""
        return OrderRecord(
            id=str(self._get(row, "order_id", "id") or ""),
            amount_total=self._get_int(row, "amount_total") or 0,
            currency=(self._get_text(row, "currency") or "usd").lower(),
            order_date=self._get_datetime(row, "order_date"),
            status=self._get_text(row, "order_status", "status") or "unknown",
        )

    def parse_orders(self, rows: list[dict]) -> list[OrderRecord]:
        return [self.parse_order(row) for row in rows]

    def parse_organization(self, row: dict) -> Optional[Organization]:
        """Convert an ``organization_applications`` row.

        Returns:
            Organization or None if the row has no usable name
        """
        name = self._get_text(row, "organization_name", "name")
        if not name:
            logger.debug(f"Skipping organization row without a name: {row.get('id')}")
            return None

        try:
            return Organization(
                name=name,
                category=self._get_text(row, "category", "cause_area") or "",
                id=self._get_text(row, "id"),
                created_at=self._get_datetime(row, "created_at"),
            )
        except InvalidArgumentError as e:
            logger.debug(f"Skipping organization row: {e}")
            return None

    def parse_organizations(self, rows: list[dict]) -> list[Organization]:
        orgs = []
        for row in rows:
            org = self.parse_organization(row)
            if org is not None:
                orgs.append(org)
        return orgs

    def parse_subscription(self, row: Optional[dict]) -> Optional[Subscription]:
        """Convert a ``stripe_user_subscriptions`` row."""
        if not row:
            return None
        return Subscription(
            price_id=self._get_text(row, "price_id"),
            status=self._get_text(row, "subscription_status", "status"),
            current_period_start=self._get_datetime(row, "current_period_start"),
            current_period_end=self._get_datetime(row, "current_period_end"),
        )

    def _get(self, row: dict, *keys: str) -> Any:
        for key in keys:
            value = row.get(key)
            if value not in (None, ""):
                return value
        return None

    def _get_text(self, row: dict, *keys: str) -> Optional[str]:
        """Get a stripped string from the first populated key."""
        value = self._get(row, *keys)
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    def _get_int(self, row: dict, *keys: str) -> Optional[int]:
        """Get integer value from the first populated key."""
        value = self._get(row, *keys)
        if value is None:
            return None
        try:
            number = int(value)
        except (TypeError, ValueError):
            try:
                number = int(float(value))
            except (TypeError, ValueError):
                logger.debug(f"Unparsable integer {value!r} for {keys[0]}")
                return None
        if number < 0:
            logger.debug(f"Negative value {value!r} for {keys[0]}")
            return None
        return number

    def _get_datetime(self, row: dict, *keys: str) -> Optional[datetime]:
        """Parse ISO-8601 strings or unix seconds; None if unparsable."""
        value = self._get(row, *keys)
        if value is None:
            return None
        if isinstance(value, datetime):
            return value

        if isinstance(value, (int, float)) or str(value).strip().lstrip("-").isdigit():
            try:
                return datetime.fromtimestamp(int(value), tz=timezone.utc)
            except (OverflowError, OSError, ValueError):
                logger.debug(f"Unparsable timestamp {value!r} for {keys[0]}")
                return None

        try:
            return isoparse(str(value).strip())
        except (ValueError, OverflowError):
            logger.debug(f"Unparsable date {value!r} for {keys[0]}")
            return None
