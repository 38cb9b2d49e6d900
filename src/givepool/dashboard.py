"""Dashboard loading: concurrent store fetches and the donation summary."""

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

import aiohttp

from .allocation import AllocationEngine
from .api import ORDERS_TABLE, ORGANIZATIONS_TABLE, SUBSCRIPTIONS_TABLE, build_headers, rest_url
from .config import Settings
from .ledger import LedgerReconciler, find_current_cycle
from .models import DistributionEntry, Organization, OrderRecord, Period, Subscription
from .parser import RecordParser
from .plans import Plan, get_plan

logger = logging.getLogger(__name__)

logging.getLogger("aiohttp").setLevel(logging.WARNING)


@dataclass
class DashboardSummary:
    """Everything the donor dashboard shows."""
    total_donated: int = 0
    current_cycle_amount: int = 0
    next_billing_date: Optional[datetime] = None
    plan: Optional[Plan] = None
    subscription_status: Optional[str] = None
    distribution: list[DistributionEntry] = field(default_factory=list)
    timeline: list[OrderRecord] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "total_donated": self.total_donated,
            "current_cycle_amount": self.current_cycle_amount,
            "next_billing_date": self.next_billing_date.isoformat() if self.next_billing_date else None,
            "plan": self.plan.name if self.plan else None,
            "subscription_status": self.subscription_status,
            "distribution": [e.to_dict() for e in self.distribution],
            "timeline": [r.to_dict() for r in self.timeline],
        }


def build_dashboard(organizations: list[Organization], orders: list[OrderRecord],
                    subscription: Optional[Subscription] = None,
                    reconciler: Optional[LedgerReconciler] = None,
                    engine: Optional[AllocationEngine] = None,
                    now: Optional[datetime] = None) -> DashboardSummary:
    """Summarize a donor's history and how their plan is split."""
    reconciler = reconciler or LedgerReconciler()
    engine = engine or AllocationEngine()

    summary = DashboardSummary()
    summary.total_donated = reconciler.aggregate(orders, Period.all()).total_amount
    summary.timeline = reconciler.timeline(orders)

    start = subscription.current_period_start if subscription else None
    end = subscription.current_period_end if subscription else None
    summary.current_cycle_amount = find_current_cycle(
        orders, start, end, reconciler=reconciler, now=now
    ).total_amount

    if subscription:
        summary.next_billing_date = subscription.current_period_end
        summary.subscription_status = subscription.status
        summary.plan = get_plan(subscription.price_id)

    if summary.plan:
        summary.distribution = engine.distribute_subscription(
            organizations, summary.plan.subscription_amount
        )
    elif subscription and subscription.price_id:
        logger.warning(f"Unknown price id {subscription.price_id!r}, no distribution shown")

    return summary


class AsyncSupabaseAPI:
    """Async client for the Supabase REST API."""

    def __init__(self, session: aiohttp.ClientSession, settings: Settings):
        self.session = session
        self.settings = settings
        self.headers = build_headers(settings)

    async def select(self, table: str, params: dict) -> list:
        url = rest_url(self.settings, table)
        try:
            async with self.session.get(url, params=params, headers=self.headers,
                                        timeout=aiohttp.ClientTimeout(total=self.settings.timeout)) as resp:
                if resp.status == 200:
                    return await resp.json()
                logger.warning(f"Supabase returned status {resp.status} for {table}")
                return []
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"Error fetching {table}: {e}")
            return []


class DashboardLoader:
    """Fetch organizations, orders and subscription concurrently and summarize."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.parser = RecordParser()
        self.reconciler = LedgerReconciler(settings.min_valid_year)
        self.engine = AllocationEngine()

    async def load(self, session: Optional[aiohttp.ClientSession] = None,
                   now: Optional[datetime] = None) -> DashboardSummary:
        if session is None:
            async with aiohttp.ClientSession(headers=build_headers(self.settings)) as own_session:
                return await self._load(own_session, now)
        return await self._load(session, now)

    async def _load(self, session: aiohttp.ClientSession, now: Optional[datetime]) -> DashboardSummary:
        api = AsyncSupabaseAPI(session, self.settings)
        org_rows, order_rows, sub_rows = await asyncio.gather(
            api.select(ORGANIZATIONS_TABLE, {"select": "*", "status": "eq.approved",
                                             "order": "created_at.asc"}),
            api.select(ORDERS_TABLE, {"select": "*", "order": "order_date.desc"}),
            api.select(SUBSCRIPTIONS_TABLE, {"select": "*", "limit": "1"}),
        )
        logger.info(f"Loaded {len(org_rows)} organization(s), {len(order_rows)} order(s)")

        orders = self.parser.parse_orders(order_rows)
        invalid = len(orders) - len(self.reconciler.filter_valid(orders))
        if invalid:
            logger.warning(f"Ignoring {invalid} order(s) with implausible dates")

        return build_dashboard(
            self.parser.parse_organizations(org_rows),
            orders,
            self.parser.parse_subscription(sub_rows[0] if sub_rows else None),
            reconciler=self.reconciler,
            engine=self.engine,
            now=now,
        )

    def run(self) -> DashboardSummary:
        """Blocking entry point."""
        return asyncio.run(self.load())
