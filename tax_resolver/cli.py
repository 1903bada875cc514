"""
Command-line interface for the tax type resolver.

Provides subcommands for resolving the taxes of a transaction, browsing
the tax type data, and exporting the rate table.
"""

from __future__ import annotations

import argparse
import sys
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Optional

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from tax_resolver.addressing import Address
from tax_resolver.calculator import PricingModel, TaxCalculator
from tax_resolver.config import LOG_LEVELS, get_settings
from tax_resolver.context import Context, TaxableItem
from tax_resolver.engine import TaxResolver
from tax_resolver.exceptions import TaxResolverError
from tax_resolver.logging_config import configure_logging
from tax_resolver.report import export_rates_csv
from tax_resolver.repository import TaxTypeRepository
from tax_resolver.resolvers import (
    CanadaTaxTypeResolver,
    ChainTaxTypeResolver,
    DefaultTaxTypeResolver,
)

console = Console()


def _repository(args: argparse.Namespace) -> TaxTypeRepository:
    return TaxTypeRepository(args.resources)


def build_resolver(repository: TaxTypeRepository) -> TaxResolver:
    """Canadian rules first, generic zone matching as the fallback."""
    chain = ChainTaxTypeResolver()
    chain.add(CanadaTaxTypeResolver(repository), priority=100)
    chain.add(DefaultTaxTypeResolver(repository), priority=-100)
    return TaxResolver(chain)


def _parse_date(value: str) -> date:
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid date: {value!r}") from None


def _parse_amount(value: str) -> Decimal:
    try:
        return Decimal(value)
    except InvalidOperation:
        raise argparse.ArgumentTypeError(f"invalid amount: {value!r}") from None


def _parse_address_code(value: str) -> str:
    try:
        Address.from_code(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid location code: {value!r}") from None
    return value


def _parse_log_level(value: str) -> str:
    level = value.upper()
    if level not in LOG_LEVELS:
        raise argparse.ArgumentTypeError(
            f"invalid log level: {value!r} (choose from {', '.join(LOG_LEVELS)})"
        )
    return level


# -----------------------------------------------------------------------
# Subcommand: resolve
# -----------------------------------------------------------------------


def cmd_resolve(args: argparse.Namespace) -> None:
    """Resolve the tax types, rates and amounts for a transaction."""
    repository = _repository(args)
    resolver = build_resolver(repository)
    context = Context.build(
        customer=args.customer,
        store=args.store,
        registrations=args.registration or [],
        on_date=args.date,
    )
    taxable = TaxableItem()

    resolved = resolver.resolve_all(taxable, context)
    if not resolved:
        console.print(
            f"[yellow]No tax applies: customer {context.customer_address.code}, "
            f"store {context.store_address.code}[/yellow]"
        )
        return

    table = Table(
        title=f"Taxes on {context.date.isoformat()}",
        box=box.ROUNDED,
    )
    table.add_column("Tax Type", style="bold")
    table.add_column("Name")
    table.add_column("Zone")
    table.add_column("Rate")
    table.add_column("Amount", justify="right")

    for tax_type, rate, amount in resolved:
        table.add_row(
            tax_type.id,
            tax_type.name,
            tax_type.zone.name,
            rate.id,
            f"{amount.amount:.3%}",
        )
    console.print(table)

    if args.amount is not None:
        calc = TaxCalculator(resolver)
        model = PricingModel.TAX_INCLUSIVE if args.inclusive else PricingModel.TAX_EXCLUSIVE
        result = calc.calculate(args.amount, context, taxable, pricing_model=model)
        lines = "\n".join(
            f"[bold]{line.tax_type_name}:[/bold] ${line.tax_amount:,.2f}"
            for line in result.lines
        )
        console.print(
            Panel(
                f"[bold]Taxable Amount:[/bold] ${result.taxable_amount:,.2f}\n"
                f"{lines}\n"
                f"[bold]Total Tax:[/bold] ${result.total_tax:,.2f}\n"
                f"[bold]Effective Rate:[/bold] {result.effective_rate:.3%}\n"
                f"[bold]Total w/ Tax:[/bold] ${result.total_with_tax:,.2f}",
                title="Tax Calculation",
                border_style="blue",
            )
        )


# -----------------------------------------------------------------------
# Subcommand: types
# -----------------------------------------------------------------------


def cmd_types(args: argparse.Namespace) -> None:
    """List the known tax types."""
    repository = _repository(args)
    tax_types = repository.get_all(tag=args.tag)

    table = Table(title="Tax Types", box=box.ROUNDED)
    table.add_column("ID", style="bold")
    table.add_column("Name")
    table.add_column("Label")
    table.add_column("Tag", justify="center")
    table.add_column("Zone")
    table.add_column("Current", justify="right")

    today = date.today()
    for tax_type in tax_types:
        rate = tax_type.default_rate
        amount = rate.get_amount(today) if rate else None
        table.add_row(
            tax_type.id,
            tax_type.name,
            tax_type.generic_label.value.upper(),
            tax_type.tag or "-",
            tax_type.zone.name,
            f"{amount.amount:.3%}" if amount else "-",
            style="" if amount else "dim",
        )
    console.print(table)


# -----------------------------------------------------------------------
# Subcommand: rates
# -----------------------------------------------------------------------


def cmd_rates(args: argparse.Namespace) -> None:
    """Show the rate history of one tax type."""
    repository = _repository(args)
    tax_type = repository.get(args.type)

    members = ", ".join(m.name for m in tax_type.zone.members)
    console.print(
        Panel(
            f"[bold]Tax Type:[/bold] {tax_type.name} ({tax_type.id})\n"
            f"[bold]Label:[/bold] {tax_type.generic_label.value.upper()}\n"
            f"[bold]Zone:[/bold] {tax_type.zone.name}\n"
            f"[bold]Members:[/bold] {members or 'None'}\n"
            f"[bold]Compound:[/bold] {'Yes' if tax_type.compound else 'No'}\n"
            f"[bold]Rounding:[/bold] {tax_type.rounding_mode.value}",
            title=f"{tax_type.name} Profile",
            border_style="cyan",
        )
    )

    for rate in tax_type.rates:
        table = Table(title=f"Rate {rate.id}", box=box.SIMPLE)
        table.add_column("Amount ID")
        table.add_column("Amount", justify="right")
        table.add_column("From")
        table.add_column("Until")
        for amount in rate.amounts:
            table.add_row(
                amount.id,
                f"{amount.amount:.3%}",
                amount.start_date.isoformat(),
                amount.end_date.isoformat() if amount.end_date else "-",
            )
        console.print(table)


# -----------------------------------------------------------------------
# Subcommand: export
# -----------------------------------------------------------------------


def cmd_export(args: argparse.Namespace) -> None:
    """Write the rate table to CSV."""
    repository = _repository(args)
    path = export_rates_csv(repository.get_all(tag=args.tag), args.output)
    console.print(f"[green]Rates exported to {path}[/green]")


# -----------------------------------------------------------------------
# Argument parser
# -----------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tax-resolver",
        description="Tax Type Resolver - Determine which tax types and rates apply to a transaction",
    )
    parser.add_argument("--resources", help="Directory with tax_type/ and zone/ records")
    parser.add_argument(
        "--log-level", type=_parse_log_level, help="Log level (DEBUG, INFO, WARNING, ...)"
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # resolve
    resolve_p = subparsers.add_parser("resolve", help="Resolve taxes for a transaction")
    resolve_p.add_argument(
        "--customer", "-c", required=True, type=_parse_address_code,
        help="Customer location, e.g. CA-ON",
    )
    resolve_p.add_argument(
        "--store", "-s", required=True, type=_parse_address_code,
        help="Store location, e.g. CA-NS",
    )
    resolve_p.add_argument(
        "--registration",
        "-r",
        action="append",
        type=_parse_address_code,
        help="Store tax registration, e.g. CA or CA-ON (repeatable)",
    )
    resolve_p.add_argument("--date", type=_parse_date, help="Transaction date (YYYY-MM-DD)")
    resolve_p.add_argument("--amount", type=_parse_amount, help="Price to calculate tax on")
    resolve_p.add_argument(
        "--inclusive", action="store_true", help="Price already includes tax"
    )
    resolve_p.set_defaults(func=cmd_resolve)

    # types
    types_p = subparsers.add_parser("types", help="List tax types")
    types_p.add_argument("--tag", "-t", help="Only tax types with this tag, e.g. CA")
    types_p.set_defaults(func=cmd_types)

    # rates
    rates_p = subparsers.add_parser("rates", help="Show the rates of a tax type")
    rates_p.add_argument("--type", required=True, help="Tax type id, e.g. ca_on_hst")
    rates_p.set_defaults(func=cmd_rates)

    # export
    export_p = subparsers.add_parser("export", help="Export the rate table to CSV")
    export_p.add_argument("--output", "-o", required=True, help="CSV file to write")
    export_p.add_argument("--tag", "-t", help="Only tax types with this tag")
    export_p.set_defaults(func=cmd_export)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    configure_logging(args.log_level or get_settings().log_level)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    try:
        args.func(args)
    except TaxResolverError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
