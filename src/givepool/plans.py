"""Subscription plan catalog keyed by payment-provider price id."""

from dataclasses import dataclass
from typing import Optional

from .models import SubscriptionAmount


@dataclass(frozen=True)
class Plan:
    """A purchasable subscription tier."""
    price_id: str
    name: str
    price: int
    interval: str = "month"

    @property
    def subscription_amount(self) -> SubscriptionAmount:
        return SubscriptionAmount(self.price, self.interval)

    @property
    def monthly_amount(self) -> int:
        return self.subscription_amount.monthly_equivalent()


PLANS = [
    Plan("price_1RcolnRnYW51Zw7fMaZfU3R4", "Tier 1", 1500, "month"),
    Plan("price_1RcooDRnYW51Zw7fj51b9Cih", "Tier 2", 5000, "month"),
    Plan("price_1RcoopRnYW51Zw7f2D5HGmIM", "Tier 3", 10000, "month"),
    Plan("price_1RdI1WRnYW51Zw7fS7BbRR1k", "Tier 1", 18000, "year"),
    Plan("price_1RdI1xRnYW51Zw7f3V7F60wZ", "Tier 2", 60000, "year"),
    Plan("price_1RdI2QRnYW51Zw7f4ItuGE9M", "Tier 3", 120000, "year"),
]

_BY_PRICE_ID = {plan.price_id: plan for plan in PLANS}


def get_plan(price_id: Optional[str]) -> Optional[Plan]:
    """Look up a plan by price id, or None if unknown."""
    if not price_id:
        return None
    return _BY_PRICE_ID.get(price_id)


def format_price(amount: float, currency: str = "usd") -> str:
    """Format minor units as a display string, e.g. 1500 -> '$15.00'."""
    value = amount / 100
    if currency.lower() == "usd":
        return f"${value:,.2f}"
    return f"{value:,.2f} {currency.upper()}"
