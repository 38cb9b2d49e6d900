"""Tax invoice generation for a donor's payments in a month or year."""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Optional

from lxml import html
from lxml.html import builder as E

from .exceptions import InvalidArgumentError, NoPaymentsError
from .ledger import LedgerReconciler
from .models import OrderRecord, Period, PeriodAggregate
from .plans import Plan, format_price

logger = logging.getLogger(__name__)

BRAND = "GiveWellTogether"

STYLE = """
body { font-family: Arial, sans-serif; margin: 40px; color: #333; line-height: 1.6; }
.header { text-align: center; margin-bottom: 40px; border-bottom: 2px solid #2563eb; padding-bottom: 20px; }
.company-name { font-size: 28px; font-weight: bold; color: #2563eb; }
.invoice-title { font-size: 24px; color: #1f2937; }
.period { font-size: 16px; color: #6b7280; }
.table { width: 100%; border-collapse: collapse; margin: 30px 0; }
.table th, .table td { border: 1px solid #e5e7eb; padding: 12px; text-align: left; }
.table th { background-color: #f9fafb; }
.total-row { background-color: #eff6ff; font-weight: bold; }
.tax-notice { background-color: #f0f9ff; border: 1px solid #0ea5e9; padding: 20px; margin: 30px 0; }
"""


@dataclass
class Invoice:
    """A donor's payments over one period, ready to render."""
    aggregate: PeriodAggregate
    issued: date
    email: Optional[str] = None
    plan: Optional[Plan] = None

    @property
    def period_label(self) -> str:
        return self.aggregate.period_label

    @property
    def filename(self) -> str:
        return f"{BRAND}_Invoice_{self.period_label.replace(' ', '_')}.html"


class InvoiceGenerator:
    """Build and render tax invoices for the current month or year."""

    def __init__(self, reconciler: Optional[LedgerReconciler] = None):
        self.reconciler = reconciler or LedgerReconciler()

    def build(self, orders: list[OrderRecord], period: str = "month",
              now: Optional[datetime] = None, email: Optional[str] = None,
              plan: Optional[Plan] = None) -> Invoice:
        """Collect the payments for the current ``period`` ("month" or "year").

        Raises:
            NoPaymentsError: If no valid payment falls in the period. The
                error lists the months that do have valid payments.
        """
        if period not in ("month", "year"):
            raise InvalidArgumentError(f"Invoice period must be 'month' or 'year', got {period!r}")

        now = now or datetime.now()
        selected = Period.month(now.year, now.month) if period == "month" else Period.year(now.year)
        aggregate = self.reconciler.aggregate(orders, selected)

        if aggregate.is_empty:
            valid = self.reconciler.filter_valid(orders)
            if len(valid) < len(orders):
                logger.warning(f"{len(orders) - len(valid)} order(s) excluded for implausible dates")
            raise NoPaymentsError(
                period_label=selected.label,
                total_count=len(orders),
                valid_count=len(valid),
                available_periods=[label for label, _ in self.reconciler.available_periods(valid)],
            )

        logger.info(f"Invoice for {selected.label}: {aggregate.record_count} payment(s), "
                    f"{format_price(aggregate.total_amount)}")
        return Invoice(aggregate=aggregate, issued=now.date(), email=email, plan=plan)

    def render_html(self, invoice: Invoice) -> str:
        """Render the invoice as a standalone HTML document."""
        rows = [
            E.TR(
                E.TD(record.order_date.strftime("%m/%d/%Y")),
                E.TD("Monthly Donation Subscription"),
                E.TD(format_price(record.amount_total, record.currency)),
                E.TD(record.status.capitalize()),
            )
            for record in invoice.aggregate.records
        ]
        rows.append(E.TR(
            E.TD(E.STRONG("Total"), colspan="2"),
            E.TD(E.STRONG(format_price(invoice.aggregate.total_amount))),
            E.TD(""),
            E.CLASS("total-row"),
        ))

        details = [
            E.H3("Donor Information"),
            E.P(E.STRONG("Email: "), invoice.email or "N/A"),
            E.P(E.STRONG("Invoice Date: "), invoice.issued.strftime("%m/%d/%Y")),
        ]
        if invoice.plan:
            details += [
                E.H3("Subscription Details"),
                E.P(E.STRONG("Plan: "), invoice.plan.name),
                E.P(E.STRONG("Amount: "),
                    f"{format_price(invoice.plan.price)} per {invoice.plan.interval}"),
            ]

        doc = E.HTML(
            E.HEAD(
                E.META(charset="utf-8"),
                E.TITLE(f"{BRAND} Tax Invoice - {invoice.period_label}"),
                E.STYLE(STYLE),
            ),
            E.BODY(
                E.DIV(
                    E.DIV(BRAND, E.CLASS("company-name")),
                    E.DIV("Tax Invoice", E.CLASS("invoice-title")),
                    E.DIV(f"Period: {invoice.period_label}", E.CLASS("period")),
                    E.CLASS("header"),
                ),
                E.DIV(*details, E.CLASS("details")),
                E.TABLE(
                    E.THEAD(E.TR(E.TH("Date"), E.TH("Description"), E.TH("Amount"), E.TH("Status"))),
                    E.TBODY(*rows),
                    E.CLASS("table"),
                ),
                E.DIV(
                    E.H3("Tax Deduction Information"),
                    E.P("No goods or services were provided in exchange for these contributions. "
                        "Please keep this receipt for your tax records."),
                    E.CLASS("tax-notice"),
                ),
            ),
        )
        return html.tostring(doc, doctype="<!DOCTYPE html>", pretty_print=True, encoding="unicode")

    def write(self, invoice: Invoice, output_dir: Path) -> Path:
        """Render the invoice into ``output_dir`` and return the file path."""
        output_dir.mkdir(parents=True, exist_ok=True)
        path = output_dir / invoice.filename
        path.write_text(self.render_html(invoice), encoding="utf-8")
        return path
