"""Typed exceptions for givepool.

Every error carries a machine-readable ``code`` so callers can branch on the
type instead of parsing messages.
"""

from typing import Optional


class GivepoolError(Exception):
    """Base class for all givepool errors."""

    code = "GIVEPOOL_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidArgumentError(GivepoolError, ValueError):
    """A caller passed a value outside the documented domain."""

    code = "INVALID_ARGUMENT"


class StoreError(GivepoolError):
    """The data store is not configured."""

    code = "STORE_ERROR"


class NoPaymentsError(GivepoolError):
    """No valid payments exist for the requested invoice period."""

    code = "NO_PAYMENTS"

    def __init__(
        self,
        period_label: str,
        total_count: int,
        valid_count: int,
        available_periods: Optional[list[str]] = None,
    ):
        self.period_label = period_label
        self.total_count = total_count
        self.valid_count = valid_count
        self.available_periods = available_periods or []

        if total_count == 0:
            message = "No payment history found. You may not have any completed payments yet."
        elif valid_count == 0:
            message = (
                "Payment data appears to be corrupted (showing dates from 1970). "
                "Please contact support to resolve this issue."
            )
        else:
            message = (
                f"No payments found for {period_label}. "
                f"You have {valid_count} valid payment(s) from: "
                f"{', '.join(self.available_periods)}"
            )
        super().__init__(message)
