"""Equal-distribution allocation of a monthly amount across organizations."""

import logging
from datetime import datetime
from typing import Optional, Sequence

from .exceptions import InvalidArgumentError
from .models import DistributionEntry, Organization, OrganizationFunding, Subscription, SubscriptionAmount
from .plans import get_plan

logger = logging.getLogger(__name__)

DAYS_PER_MONTH = 30


class AllocationEngine:
    """Split a pooled monthly amount equally across approved organizations.

    Amounts are integer minor units. When the amount does not divide evenly,
    leftover units are handed out with the largest-remainder method. Every
    share has the same remainder, so ties go to the earliest organizations
    in input order and the amounts always sum to the input.
    """

    def distribute(self, organizations: Sequence[Organization], monthly_amount: int) -> list[DistributionEntry]:
        """Distribute ``monthly_amount`` across ``organizations``.

        Args:
            organizations: Approved organizations, in display order
            monthly_amount: Monthly amount in minor units (>= 0)

        Returns:
            One DistributionEntry per organization, in input order

        Raises:
            InvalidArgumentError: If the amount is negative or not an integer
        """
        if isinstance(monthly_amount, bool) or not isinstance(monthly_amount, int):
            raise InvalidArgumentError(f"Monthly amount must be an integer, got {monthly_amount!r}")
        if monthly_amount < 0:
            raise InvalidArgumentError(f"Monthly amount must be non-negative, got {monthly_amount}")

        count = len(organizations)
        if count == 0:
            return []

        base, leftover = divmod(monthly_amount, count)
        percentage = 100 / count

        return [
            DistributionEntry(
                organization=org,
                amount=base + (1 if i < leftover else 0),
                percentage=percentage,
            )
            for i, org in enumerate(organizations)
        ]

    def distribute_subscription(self, organizations: Sequence[Organization],
                                subscription: SubscriptionAmount) -> list[DistributionEntry]:
        """Distribute a plan price, converting yearly plans to monthly first."""
        return self.distribute(organizations, subscription.monthly_equivalent())

    def pool_funding(self, organizations: Sequence[Organization],
                     subscriptions: Sequence[Subscription],
                     now: Optional[datetime] = None) -> list[OrganizationFunding]:
        """Compute what each organization receives from all active subscriptions.

        Unknown price ids contribute nothing. Months active counts 30-day
        blocks since the organization was approved, with a floor of one.
        """
        now = now or datetime.now()

        total_monthly = 0
        for sub in subscriptions:
            if not sub.is_active:
                continue
            plan = get_plan(sub.price_id)
            if plan is None:
                logger.warning(f"Unknown price id {sub.price_id!r}, skipping")
                continue
            total_monthly += plan.monthly_amount

        shares = self.distribute(organizations, total_monthly)

        funding = []
        for entry in shares:
            months_active = _months_since(entry.organization.created_at, now)
            funding.append(OrganizationFunding(
                organization=entry.organization,
                monthly_funding=entry.amount,
                months_active=months_active,
                total_funding=entry.amount * months_active,
            ))
        return funding


def _months_since(created_at: Optional[datetime], now: datetime) -> int:
    if created_at is None:
        return 1
    if (created_at.tzinfo is None) != (now.tzinfo is None):
        created_at = created_at.replace(tzinfo=now.tzinfo)
    days = (now - created_at).days
    return max(1, days // DAYS_PER_MONTH)
