"""Command-line interface for givepool."""

import argparse
import csv
import json
import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from .allocation import AllocationEngine
from .api import SupabaseAPI
from .config import Settings, load_settings
from .dashboard import DashboardLoader
from .exceptions import GivepoolError, NoPaymentsError
from .invoice import InvoiceGenerator
from .ledger import LedgerReconciler
from .models import DistributionEntry, OrderRecord, Organization, Period, SubscriptionAmount
from .parser import RecordParser
from .plans import get_plan, format_price

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[logging.StreamHandler()]
    )
    # Quiet down HTTP libraries
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("aiohttp").setLevel(logging.WARNING)


def load_rows(path: Path) -> list[dict]:
    """Load rows from a data file.

    Supports JSON (list or {"rows": [...]}) or CSV with a header line.
    """
    if not path.exists():
        raise FileNotFoundError(f"Data file not found: {path}")

    content = path.read_text(encoding="utf-8").strip()
    if not content:
        return []

    if path.suffix == ".json" or content.startswith("[") or content.startswith("{"):
        data = json.loads(content)
        if isinstance(data, list):
            return data
        elif isinstance(data, dict) and "rows" in data:
            return data["rows"]
        else:
            raise ValueError("JSON data must be a list or have a 'rows' key")

    return list(csv.DictReader(content.splitlines()))


def parse_month(value: str) -> Period:
    """Parse ``YYYY-MM`` into a month period."""
    try:
        moment = datetime.strptime(value, "%Y-%m")
    except ValueError:
        raise argparse.ArgumentTypeError(f"Expected YYYY-MM, got {value!r}")
    return Period.month(moment.year, moment.month)


def get_organizations(args, settings: Settings, parser: RecordParser) -> list[Organization]:
    if args.orgs:
        rows = load_rows(args.orgs)
    else:
        rows = SupabaseAPI(settings).get_approved_organizations()
    return parser.parse_organizations(rows)


def get_orders(args, settings: Settings, parser: RecordParser) -> list[OrderRecord]:
    if args.orders:
        rows = load_rows(args.orders)
    else:
        rows = SupabaseAPI(settings).get_orders()
    return parser.parse_orders(rows)


def write_distribution(entries: list[DistributionEntry], output_path: Path, fmt: str):
    """Write a distribution to CSV or JSON."""
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if fmt == "json":
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump([e.to_dict() for e in entries], f, indent=2)
        return

    with open(output_path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=["name", "category", "amount", "percentage"])
        writer.writeheader()
        writer.writerows(e.to_dict() for e in entries)


def cmd_distribute(args, settings: Settings) -> int:
    parser = RecordParser()
    if args.price_id:
        plan = get_plan(args.price_id)
        if plan is None:
            print(f"Error: Unknown price id {args.price_id}", file=sys.stderr)
            return 1
        subscription = plan.subscription_amount
    elif args.amount is not None:
        subscription = SubscriptionAmount(args.amount, args.interval)
    else:
        print("Error: Provide --amount or --price-id.", file=sys.stderr)
        return 1

    organizations = get_organizations(args, settings, parser)
    entries = AllocationEngine().distribute_subscription(organizations, subscription)

    if args.output:
        write_distribution(entries, args.output, args.format)
        print(f"Output: {args.output}")
        return 0

    monthly = subscription.monthly_equivalent()
    print(f"\nMonthly contribution: {format_price(monthly)} across {len(entries)} organization(s)")
    print(f"{'='*70}")
    for entry in entries:
        print(f"  {entry.organization.name:<40} {entry.percentage:5.1f}%  {format_price(entry.amount):>10}")
    return 0


def cmd_summary(args, settings: Settings) -> int:
    parser = RecordParser()
    reconciler = LedgerReconciler(settings.min_valid_year)
    orders = get_orders(args, settings, parser)

    month = args.month or Period.month(datetime.now().year, datetime.now().month)
    periods = [month, Period.year(month.reference.year), Period.all()]

    valid = reconciler.filter_valid(orders)
    print(f"\nOrders: {len(orders)} ({len(orders) - len(valid)} excluded for implausible dates)")
    print(f"{'='*70}")
    for period in periods:
        agg = reconciler.aggregate(valid, period)
        print(f"  {agg.period_label:<20} {agg.record_count:>4} payment(s)  {format_price(agg.total_amount):>12}")

    if args.verbose:
        print("\nMonths with data:")
        for label, count in reconciler.available_periods(valid):
            print(f"  {label}: {count}")
    return 0


def cmd_invoice(args, settings: Settings) -> int:
    parser = RecordParser()
    orders = get_orders(args, settings, parser)
    generator = InvoiceGenerator(LedgerReconciler(settings.min_valid_year))

    try:
        invoice = generator.build(orders, args.period, email=args.email, plan=get_plan(args.price_id))
    except NoPaymentsError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    path = generator.write(invoice, args.output_dir)
    print(f"Tax invoice for {invoice.period_label} written to {path}")
    return 0


def cmd_funding(args, settings: Settings) -> int:
    parser = RecordParser()
    organizations = get_organizations(args, settings, parser)
    api = SupabaseAPI(settings)
    subscriptions = [parser.parse_subscription(row) for row in api.get_active_subscriptions()]

    active = [s for s in subscriptions if s]
    funding = AllocationEngine().pool_funding(organizations, active)
    print(f"\nActive donors: {len(active)}")
    print(f"{'='*70}")
    for item in funding:
        print(f"  {item.organization.name:<40} {format_price(item.monthly_funding):>10}/mo  "
              f"{item.months_active:>3} mo  {format_price(item.total_funding):>12}")
    return 0


def cmd_dashboard(args, settings: Settings) -> int:
    summary = DashboardLoader(settings).run()
    print(json.dumps(summary.to_dict(), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="givepool",
        description="Equal-distribution donation pool: allocations, totals and tax invoices"
    )
    parser.add_argument(
        "--env-file",
        help="Path to a .env file (default: ./.env)"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Verbose output"
    )
    parser.add_argument(
        "-q", "--quiet",
        action="store_true",
        help="Quiet mode (errors only)"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("distribute", help="Split a plan amount across approved organizations")
    p.add_argument("--orgs", type=Path, help="Organizations file (JSON or CSV); default: data store")
    p.add_argument("--amount", type=int, help="Plan price in cents")
    p.add_argument("--interval", choices=["month", "year"], default="month",
                   help="Billing interval for --amount (default: month)")
    p.add_argument("--price-id", help="Look up the amount from a plan price id")
    p.add_argument("-o", "--output", type=Path, help="Write the distribution to a file")
    p.add_argument("--format", choices=["csv", "json"], default="csv",
                   help="Output format (default: csv)")
    p.set_defaults(func=cmd_distribute)

    p = sub.add_parser("summary", help="Donation totals by month, year and all time")
    p.add_argument("--orders", type=Path, help="Orders file (JSON or CSV); default: data store")
    p.add_argument("--month", type=parse_month, help="Month to summarize, YYYY-MM (default: current)")
    p.set_defaults(func=cmd_summary)

    p = sub.add_parser("invoice", help="Write an HTML tax invoice")
    p.add_argument("--orders", type=Path, help="Orders file (JSON or CSV); default: data store")
    p.add_argument("--period", choices=["month", "year"], default="month",
                   help="Current month or current year (default: month)")
    p.add_argument("--email", help="Donor email printed on the invoice")
    p.add_argument("--price-id", help="Plan price id printed on the invoice")
    p.add_argument("--output-dir", type=Path, default=Path("output"),
                   help="Output directory (default: output)")
    p.set_defaults(func=cmd_invoice)

    p = sub.add_parser("funding", help="Pooled funding per organization from active subscriptions")
    p.add_argument("--orgs", type=Path, help="Organizations file (JSON or CSV); default: data store")
    p.set_defaults(func=cmd_funding)

    p = sub.add_parser("dashboard", help="Print the donor dashboard summary as JSON")
    p.set_defaults(func=cmd_dashboard)

    return parser


def main(argv: Optional[list[str]] = None):
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging
    if args.quiet:
        logging.basicConfig(level=logging.ERROR)
    else:
        setup_logging(args.verbose)

    try:
        settings = load_settings(args.env_file)
        code = args.func(args, settings)
    except (FileNotFoundError, json.JSONDecodeError, ValueError, GivepoolError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    sys.exit(code)


if __name__ == "__main__":
    main()
