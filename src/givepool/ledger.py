"""Order-history reconciliation: validity filtering and period totals."""

import calendar
import logging
from collections import Counter
from datetime import datetime, timezone
from typing import Iterable, Optional

from .models import OrderRecord, Period, PeriodAggregate

logger = logging.getLogger(__name__)

# Orders dated in or before this year are epoch-default sentinels from the
# upstream sync, not real payments.
DEFAULT_MIN_VALID_YEAR = 1990


def _normalize(moment: datetime) -> datetime:
    """Compare aware timestamps in UTC; leave naive ones alone."""
    if moment.tzinfo is not None:
        return moment.astimezone(timezone.utc)
    return moment


class LedgerReconciler:
    """Filter corrupted order rows and total the rest by period."""

    def __init__(self, min_valid_year: int = DEFAULT_MIN_VALID_YEAR):
        self.min_valid_year = min_valid_year

    def is_valid(self, record: OrderRecord) -> bool:
        if record.order_date is None:
            return False
        return _normalize(record.order_date).year > self.min_valid_year

    def filter_valid(self, records: Iterable[OrderRecord]) -> list[OrderRecord]:
        """Return the records with a plausible order date, in input order."""
        records = list(records)
        valid = [r for r in records if self.is_valid(r)]
        dropped = len(records) - len(valid)
        if dropped:
            logger.debug(f"Dropped {dropped} order(s) dated in or before {self.min_valid_year}")
        return valid

    def aggregate(self, records: Iterable[OrderRecord], period: Period) -> PeriodAggregate:
        """Total the valid records falling in ``period``.

        Returns a zero aggregate when nothing matches.
        """
        included = [r for r in self.filter_valid(records) if self._in_period(r, period)]
        return PeriodAggregate(
            total_amount=sum(r.amount_total for r in included),
            record_count=len(included),
            period_label=period.label,
            records=tuple(included),
        )

    def aggregate_cycle(self, records: Iterable[OrderRecord], start: datetime,
                        end: datetime) -> PeriodAggregate:
        """Total the valid records in a billing cycle, ``start <= date < end``."""
        start, end = _normalize(start), _normalize(end)
        included = []
        for record in self.filter_valid(records):
            moment = _normalize(record.order_date)
            if (moment.tzinfo is None) != (start.tzinfo is None):
                moment = moment.replace(tzinfo=start.tzinfo)
            if start <= moment < end:
                included.append(record)
        return PeriodAggregate(
            total_amount=sum(r.amount_total for r in included),
            record_count=len(included),
            period_label=f"{start:%b} {start.day}, {start.year} - {end:%b} {end.day}, {end.year}",
            records=tuple(included),
        )

    def timeline(self, records: Iterable[OrderRecord]) -> list[OrderRecord]:
        """Valid records, newest first."""
        return sorted(self.filter_valid(records), key=lambda r: r.order_date.timestamp(), reverse=True)

    def years(self, records: Iterable[OrderRecord]) -> list[int]:
        """Distinct calendar years present in the valid records, ascending."""
        return sorted({_normalize(r.order_date).year for r in self.filter_valid(records)})

    def available_periods(self, records: Iterable[OrderRecord]) -> list[tuple[str, int]]:
        """(``"Month YYYY"``, count) for every month with valid data, newest first."""
        counts = Counter()
        for record in self.filter_valid(records):
            moment = _normalize(record.order_date)
            counts[(moment.year, moment.month)] += 1
        return [
            (f"{calendar.month_name[month]} {year}", counts[(year, month)])
            for year, month in sorted(counts, reverse=True)
        ]

    def _in_period(self, record: OrderRecord, period: Period) -> bool:
        if period.kind == "all":
            return True
        moment = _normalize(record.order_date)
        reference = period.reference
        if isinstance(reference, datetime):
            reference = _normalize(reference)
        if moment.year != reference.year:
            return False
        if period.kind == "month":
            return moment.month == reference.month
        return True


def find_current_cycle(records: Iterable[OrderRecord], start: Optional[datetime],
                       end: Optional[datetime], reconciler: Optional[LedgerReconciler] = None,
                       now: Optional[datetime] = None) -> PeriodAggregate:
    """Billing-cycle total, falling back to the calendar month when the
    subscription carries no cycle bounds."""
    reconciler = reconciler or LedgerReconciler()
    if start is not None and end is not None:
        return reconciler.aggregate_cycle(records, start, end)
    now = now or datetime.now()
    return reconciler.aggregate(records, Period.month(now.year, now.month))
