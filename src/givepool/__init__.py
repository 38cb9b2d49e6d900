"""
givepool - Equal-distribution donation pool.

This package splits a donor's monthly subscription equally across verified
partner organizations, reconciles the donor's order history (dropping rows
with corrupted timestamps) into month, year and billing-cycle totals, and
renders tax invoices from those totals.
"""

from .models import (
    DistributionEntry,
    OrderRecord,
    Organization,
    OrganizationFunding,
    Period,
    PeriodAggregate,
    Subscription,
    SubscriptionAmount,
)
from .exceptions import GivepoolError, InvalidArgumentError, NoPaymentsError, StoreError
from .allocation import AllocationEngine
from .ledger import LedgerReconciler
from .parser import RecordParser
from .invoice import Invoice, InvoiceGenerator

__version__ = "0.1.0"
__all__ = [
    "AllocationEngine",
    "DistributionEntry",
    "GivepoolError",
    "InvalidArgumentError",
    "Invoice",
    "InvoiceGenerator",
    "LedgerReconciler",
    "NoPaymentsError",
    "OrderRecord",
    "Organization",
    "OrganizationFunding",
    "Period",
    "PeriodAggregate",
    "RecordParser",
    "StoreError",
    "Subscription",
    "SubscriptionAmount",
]
