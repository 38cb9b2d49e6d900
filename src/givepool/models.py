"""Data models for givepool."""

import calendar
from dataclasses import dataclass, asdict, field
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from .exceptions import InvalidArgumentError

INTERVALS = ("month", "year")
PERIOD_KINDS = ("month", "year", "all")


@dataclass(frozen=True)
class Organization:
    """A verified grant recipient."""
    name: str
    category: str = ""
    id: Optional[str] = None
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.name or not self.name.strip():
            raise InvalidArgumentError("Organization name must be non-empty")

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return asdict(self)


@dataclass(frozen=True)
class SubscriptionAmount:
    """A plan price in minor units plus its billing interval."""
    amount: int
    interval: str = "month"

    def __post_init__(self):
        if isinstance(self.amount, bool) or not isinstance(self.amount, int):
            raise InvalidArgumentError(f"Amount must be an integer, got {self.amount!r}")
        if self.amount <= 0:
            raise InvalidArgumentError(f"Amount must be positive, got {self.amount}")
        if self.interval not in INTERVALS:
            raise InvalidArgumentError(f"Unknown billing interval: {self.interval!r}")

    def monthly_equivalent(self) -> int:
        """Return the monthly amount, spreading yearly plans over 12 months."""
        if self.interval == "month":
            return self.amount
        monthly = (Decimal(self.amount) / 12).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
        return int(monthly)


@dataclass
class DistributionEntry:
    """One organization's share of a monthly amount."""
    organization: Organization
    amount: int
    percentage: float

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "name": self.organization.name,
            "category": self.organization.category,
            "amount": self.amount,
            "percentage": self.percentage,
        }


@dataclass(frozen=True)
class OrderRecord:
    """A historical payment as stored by the payment provider sync."""
    id: str
    amount_total: int
    currency: str = "usd"
    order_date: Optional[datetime] = None
    status: str = "completed"

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        d = asdict(self)
        d["order_date"] = self.order_date.isoformat() if self.order_date else None
        return d


@dataclass(frozen=True)
class Period:
    """A calendar window to aggregate over."""
    kind: str
    reference: Optional[date] = None

    def __post_init__(self):
        if self.kind not in PERIOD_KINDS:
            raise InvalidArgumentError(f"Unknown period kind: {self.kind!r}")
        if self.kind != "all" and self.reference is None:
            raise InvalidArgumentError(f"Period {self.kind!r} needs a reference date")

    @classmethod
    def month(cls, year: int, month: int) -> "Period":
        return cls("month", date(year, month, 1))

    @classmethod
    def year(cls, year: int) -> "Period":
        return cls("year", date(year, 1, 1))

    @classmethod
    def all(cls) -> "Period":
        return cls("all")

    @property
    def label(self) -> str:
        if self.kind == "month":
            return f"{calendar.month_name[self.reference.month]} {self.reference.year}"
        if self.kind == "year":
            return str(self.reference.year)
        return "All time"


@dataclass
class PeriodAggregate:
    """Totals over the valid records that fall in a period."""
    total_amount: int = 0
    record_count: int = 0
    period_label: str = ""
    records: tuple = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return self.record_count == 0

    def to_dict(self) -> dict:
        return {
            "period": self.period_label,
            "total_amount": self.total_amount,
            "record_count": self.record_count,
        }


@dataclass
class Subscription:
    """The user's subscription as mirrored from the payment provider."""
    price_id: Optional[str] = None
    status: Optional[str] = None
    current_period_start: Optional[datetime] = None
    current_period_end: Optional[datetime] = None

    @property
    def is_active(self) -> bool:
        return self.status in ("active", "trialing")


@dataclass
class OrganizationFunding:
    """Pooled funding an organization receives from all active donors."""
    organization: Organization
    monthly_funding: int
    months_active: int
    total_funding: int

    def to_dict(self) -> dict:
        return {
            "name": self.organization.name,
            "category": self.organization.category,
            "monthly_funding": self.monthly_funding,
            "months_active": self.months_active,
            "total_funding": self.total_funding,
        }
