"""
Command-line interface for Sales Tax Navigator.

Provides subcommands for rate lookup, item taxability, compliance
reference data, technical bulletins and the research assistant.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from datetime import date
from decimal import Decimal
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table
from rich.panel import Panel
from rich import box

from tax_navigator.bulletins import get_bulletins
from tax_navigator.calculator import (
    RateCalculation,
    TaxCalculator,
    calculate_tax,
    coerce_price,
)
from tax_navigator.compliance import ComplianceChecker, days_until
from tax_navigator.jurisdictions import (
    Jurisdiction,
    get_registry,
    is_valid_zip_code,
)
from tax_navigator.research_client import ResearchClient, ResearchClientError
from tax_navigator.settings import get_settings
from tax_navigator.states import all_state_profiles
from tax_navigator.taxability import get_catalog

console = Console()

EXAMPLE_QUERIES: dict[str, list[str]] = {
    "NY": [
        "What is the clothing exemption threshold in NY?",
        "How does NYC sales tax differ from upstate?",
    ],
    "AL": [
        "What is Alabama's combined state and local rate?",
        "Are groceries taxable in Alabama?",
    ],
    "TX": [
        "What is Texas sales tax nexus threshold?",
        "Are digital products taxable in Texas?",
    ],
    "CA": [
        "What are California district tax rates?",
        "How do I calculate use tax in California?",
    ],
    "GA": [
        "What is Georgia's state sales tax rate?",
        "Are groceries taxable in Georgia?",
    ],
}

_PRIORITY_COLORS = {
    "critical": "red",
    "high": "dark_orange",
    "medium": "yellow",
    "low": "green",
}


def _configure_logging(verbose: bool) -> None:
    level = "DEBUG" if verbose else get_settings().log_level.upper()
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
    )


def _fail(message: str) -> None:
    console.print(f"[red]{message}[/red]")
    sys.exit(1)


def _resolve_jurisdiction(args: argparse.Namespace) -> tuple[Jurisdiction, bool]:
    """Resolve --zip or --code to a jurisdiction; returns (jurisdiction, matched)."""
    registry = get_registry(args.state)
    if getattr(args, "zip", None):
        if not is_valid_zip_code(args.zip):
            _fail("Please enter a valid 5-digit ZIP code")
        resolution = registry.resolve_zip(args.zip)
        if not resolution.matched:
            console.print("[yellow]ZIP code not found. Using state rate.[/yellow]")
        return resolution.jurisdiction, resolution.matched
    if getattr(args, "code", None):
        jurisdiction = registry.get(args.code)
        if jurisdiction is None:
            _fail(f"Unknown jurisdiction: {args.code}")
        return jurisdiction, True
    return registry.state_jurisdiction(), True


def _calculation_panel(calc: RateCalculation, title: str) -> Panel:
    j = calc.jurisdiction
    return Panel(
        f"[bold]Jurisdiction:[/bold] {j.name} ({j.code})\n"
        f"[bold]Subtotal:[/bold] ${calc.subtotal:,.2f}\n"
        f"[bold]State Tax:[/bold] ${calc.state_amount:,.2f} ({j.state_rate:.3f}%)\n"
        f"[bold]Local Tax:[/bold] ${calc.local_amount:,.2f} ({j.local_rate:.3f}%)\n"
        f"[bold]MCTD:[/bold] ${calc.mctd_amount:,.2f} ({j.mctd_rate:.3f}%)\n"
        f"[bold]Total Tax:[/bold] ${calc.total_tax:,.2f}\n"
        f"[bold]Effective Rate:[/bold] {calc.effective_rate:.3f}%\n"
        f"[bold]Total w/ Tax:[/bold] ${calc.total_with_tax:,.2f}",
        title=title,
        border_style="blue",
    )


# -----------------------------------------------------------------------
# Subcommand: rates
# -----------------------------------------------------------------------


def cmd_rates(args: argparse.Namespace) -> None:
    """Display jurisdiction rates for a state, ZIP or jurisdiction code."""
    registry = get_registry(args.state)

    if args.zip or args.code:
        j, _ = _resolve_jurisdiction(args)
        console.print(
            Panel(
                f"[bold]Jurisdiction:[/bold] {j.name} ({j.code})\n"
                f"[bold]Level:[/bold] {j.level.value}\n"
                f"[bold]State Rate:[/bold] {j.state_rate:.3f}%\n"
                f"[bold]Local Rate:[/bold] {j.local_rate:.3f}%\n"
                f"[bold]MCTD Rate:[/bold] {j.mctd_rate:.3f}%\n"
                f"[bold]Combined:[/bold] {j.combined_rate:.3f}%\n"
                f"[bold]Clothing Exemption:[/bold] "
                f"{'Yes' if j.clothing_exemption else 'No'}",
                title=f"{j.name} Rates",
                border_style="cyan",
            )
        )
        return

    table = Table(title=f"{registry.state_code} Sales Tax Jurisdictions", box=box.ROUNDED)
    table.add_column("Code", style="bold")
    table.add_column("Name")
    table.add_column("Level")
    table.add_column("State", justify="right")
    table.add_column("Local", justify="right")
    table.add_column("MCTD", justify="right")
    table.add_column("Combined", justify="right", style="bold")

    for j in registry.all():
        table.add_row(
            j.code,
            j.name,
            j.level.value,
            f"{j.state_rate:.3f}%",
            f"{j.local_rate:.3f}%",
            f"{j.mctd_rate:.3f}%" if j.mctd_rate else "-",
            f"{j.combined_rate:.3f}%",
            style="dim" if j.level.value == "state" else "",
        )
    console.print(table)


# -----------------------------------------------------------------------
# Subcommand: calculate
# -----------------------------------------------------------------------


def cmd_calculate(args: argparse.Namespace) -> None:
    """Calculate sales tax on an amount for a ZIP or jurisdiction."""
    jurisdiction, _ = _resolve_jurisdiction(args)
    result = calculate_tax(jurisdiction, coerce_price(args.amount))
    console.print(_calculation_panel(result, "Tax Calculation"))


# -----------------------------------------------------------------------
# Subcommand: item
# -----------------------------------------------------------------------


def cmd_item(args: argparse.Namespace) -> None:
    """Determine taxability and tax for a specific item."""
    catalog = get_catalog(args.state)
    rule = catalog.get_rule(args.rule)
    if rule is None:
        _fail(f"Unknown rule: {args.rule}")

    jurisdiction, _ = _resolve_jurisdiction(args)
    calc = TaxCalculator(get_registry(args.state))
    result = calc.calculate_item(rule, coerce_price(args.price), jurisdiction)

    status = "[red]TAXABLE[/red]" if result.taxable else "[green]EXEMPT[/green]"
    console.print(f"\n[bold]{rule.description}[/bold]  {status}")
    console.print(_calculation_panel(result.calculation, "Item Tax"))
    for note in result.notes:
        console.print(f"[cyan]- {note}[/cyan]")
    console.print(f"[dim]Source: {rule.tb_reference} {rule.tb_url}[/dim]")


# -----------------------------------------------------------------------
# Subcommand: rules
# -----------------------------------------------------------------------


def cmd_rules(args: argparse.Namespace) -> None:
    """Browse or search taxability rules."""
    catalog = get_catalog(args.state)

    if args.search:
        rules = catalog.search(args.search)
        title = f"Rules matching '{args.search}'"
    elif args.category:
        category = catalog.get_category(args.category)
        if category is None:
            _fail(f"Unknown category: {args.category}")
        rules = list(category.rules)
        title = category.name
    else:
        table = Table(title=f"{catalog.state_code} Taxability Categories", box=box.ROUNDED)
        table.add_column("ID", style="bold")
        table.add_column("Category")
        table.add_column("Rules", justify="right")
        for cat in catalog.categories():
            table.add_row(cat.id, cat.name, str(len(cat.rules)))
        console.print(table)
        return

    table = Table(title=title, box=box.ROUNDED, show_lines=True)
    table.add_column("ID", style="dim")
    table.add_column("Description")
    table.add_column("Status", justify="center")
    table.add_column("Source")
    for rule in rules:
        if rule.has_threshold:
            status = f"[yellow]Exempt < ${rule.threshold:,.0f}[/yellow]"
        elif rule.taxable:
            status = "[red]Taxable[/red]"
        else:
            status = "[green]Exempt[/green]"
        table.add_row(rule.id, rule.description, status, rule.tb_reference)
    console.print(table)


# -----------------------------------------------------------------------
# Subcommand: calendar
# -----------------------------------------------------------------------


def cmd_calendar(args: argparse.Namespace) -> None:
    """Show the compliance calendar or upcoming deadlines."""
    checker = ComplianceChecker(args.state)
    as_of = date.fromisoformat(args.as_of) if args.as_of else date.today()

    if args.upcoming:
        events = checker.upcoming(as_of=as_of)
        title = f"Upcoming {checker.state_code} Deadlines (next 90 days)"
    else:
        events = checker.calendar(args.year or as_of.year)
        title = f"{checker.state_code} Compliance Calendar {args.year or as_of.year}"

    table = Table(title=title, box=box.ROUNDED)
    table.add_column("Due", style="bold")
    table.add_column("Event")
    table.add_column("Type")
    table.add_column("Form")
    table.add_column("Priority", justify="center")
    if args.upcoming:
        table.add_column("Days", justify="right")

    for e in events:
        color = _PRIORITY_COLORS.get(e.priority.value, "white")
        row = [
            e.due_date.isoformat(),
            e.title,
            e.type.value,
            e.form or "-",
            f"[{color}]{e.priority.value}[/{color}]",
        ]
        if args.upcoming:
            row.append(str(days_until(e.due_date, as_of)))
        table.add_row(*row)
    console.print(table)


# -----------------------------------------------------------------------
# Subcommands: nexus, filing
# -----------------------------------------------------------------------


def cmd_nexus(args: argparse.Namespace) -> None:
    """Check economic nexus against the state's threshold."""
    checker = ComplianceChecker(args.state)
    result = checker.check_nexus(coerce_price(args.sales), max(args.transactions, 0))
    t = result.threshold

    txn_line = (
        f"{'met' if result.transactions_met else 'not met'} "
        f"({result.transactions} / {t.transaction_threshold})"
        if t.transaction_threshold is not None
        else "not measured"
    )
    color = "red" if result.has_nexus else "green"
    console.print(
        Panel(
            f"[bold]Sales test:[/bold] {'met' if result.sales_met else 'not met'} "
            f"(${result.sales:,.2f} / ${t.sales_threshold:,.2f}, "
            f"{result.sales_pct_of_threshold:.1f}%)\n"
            f"[bold]Transaction test:[/bold] {txn_line}\n"
            f"[bold]Logic:[/bold] {t.logic.value}\n"
            f"[bold]Lookback:[/bold] {t.lookback_period}\n\n"
            f"{t.description}",
            title=(
                f"[{color}]{'Nexus established' if result.has_nexus else 'No nexus'}"
                f"[/{color}] - {checker.state_code}"
            ),
            border_style=color,
        )
    )


def cmd_filing(args: argparse.Namespace) -> None:
    """Show filing frequency bands and the one that applies."""
    checker = ComplianceChecker(args.state)
    sales: Optional[Decimal] = coerce_price(args.sales) if args.sales is not None else None
    match = checker.filing_requirement(sales) if sales is not None else None

    table = Table(title=f"{checker.state_code} Filing Requirements", box=box.ROUNDED)
    table.add_column("Frequency", style="bold")
    table.add_column("Band", justify="right")
    table.add_column("Form")
    table.add_column("Due Day", justify="right")
    table.add_column("E-file", justify="center")
    for req in checker.requirements:
        upper = f"${req.max_sales:,.0f}" if req.max_sales is not None else "+"
        table.add_row(
            req.frequency.value,
            f"${req.min_sales:,.0f} - {upper}",
            req.form,
            str(req.due_day),
            "Y" if req.electronic_required else "",
            style="green" if req is match else "",
        )
    console.print(table)

    if sales is not None:
        if match is None:
            console.print("[yellow]No filing band matches that amount.[/yellow]")
        else:
            console.print(f"\n[bold]Applies:[/bold] {match.description}")

    if checker.filing_discount is not None and sales is not None:
        discount = checker.filing_discount.discount_for(sales)
        console.print(f"[bold]Timely filing discount on ${sales:,.2f} tax:[/bold] ${discount:,.2f}")


# -----------------------------------------------------------------------
# Subcommand: bulletins
# -----------------------------------------------------------------------


def cmd_bulletins(args: argparse.Namespace) -> None:
    """Search technical bulletins."""
    catalog = get_bulletins(args.state)
    bulletins = catalog.filter(args.search or "", args.category)

    table = Table(title=f"{catalog.state_code} Technical Bulletins", box=box.ROUNDED)
    table.add_column("Number", style="bold")
    table.add_column("Title")
    table.add_column("Category")
    table.add_column("Updated", justify="right")
    for b in bulletins:
        table.add_row(b.number, b.title, b.category, b.last_updated.isoformat())
    console.print(table)
    if not bulletins:
        console.print(
            f"[yellow]No bulletins found. Categories: "
            f"{', '.join(catalog.categories())}[/yellow]"
        )


# -----------------------------------------------------------------------
# Subcommands: states, ask
# -----------------------------------------------------------------------


async def _fetch_states(base_url: Optional[str]):
    async with ResearchClient(base_url) as client:
        return await client.get_researched_states()


async def _ask(base_url: Optional[str], query: str, state_code: str):
    async with ResearchClient(base_url) as client:
        return await client.chat(query, state_code)


def cmd_states(args: argparse.Namespace) -> None:
    """List bundled state profiles and states researched by the backend."""
    table = Table(title="Bundled Reference Data", box=box.ROUNDED)
    table.add_column("State", style="bold")
    table.add_column("Name")
    table.add_column("State Rate", justify="right")
    table.add_column("Max Combined", justify="right")
    table.add_column("Highlights")
    for p in all_state_profiles():
        table.add_row(
            p.code,
            p.name,
            f"{p.state_rate:.3f}%",
            f"{p.max_combined_rate:.3f}%",
            "; ".join(p.highlights),
        )
    console.print(table)

    if args.offline:
        return

    try:
        states = asyncio.run(_fetch_states(args.api_url))
    except ResearchClientError as exc:
        console.print(f"[red]Failed to load researched states: {exc}[/red]")
        sys.exit(1)

    table = Table(
        title=(
            f"Research Knowledge Base: {states.states_researched} states, "
            f"{states.total_documents} documents"
        ),
        box=box.ROUNDED,
    )
    table.add_column("State", style="bold")
    table.add_column("Name")
    table.add_column("Documents", justify="right")
    table.add_column("Sales Tax", justify="center")
    for s in states.states:
        table.add_row(s.code, s.name, str(s.document_count), "Y" if s.has_sales_tax else "")
    console.print(table)


def cmd_ask(args: argparse.Namespace) -> None:
    """Ask the research assistant a question."""
    state = args.state.upper()
    if not args.query:
        examples = EXAMPLE_QUERIES.get(state, [])
        console.print(f"[bold]Example questions for {state}:[/bold]")
        for example in examples:
            console.print(f"  - {example}")
        return

    query = " ".join(args.query)
    try:
        with console.status("Researching..."):
            answer = asyncio.run(_ask(args.api_url, query, state))
    except ResearchClientError as exc:
        console.print(f"[red]Failed to get response, please try again. ({exc})[/red]")
        sys.exit(1)

    console.print(
        Panel(answer.response, title=f"{state}: {answer.query}", border_style="magenta")
    )


# -----------------------------------------------------------------------
# Argument parser
# -----------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    default_state = get_settings().default_state

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        "--state", "-s", default=default_state, help="Two-letter state code"
    )

    parser = argparse.ArgumentParser(
        prog="tax-navigator",
        description="Sales Tax Navigator - jurisdiction rates, item taxability and compliance reference",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # rates
    rates_p = subparsers.add_parser("rates", parents=[common], help="View jurisdiction rates")
    rates_p.add_argument("--zip", help="ZIP code to look up")
    rates_p.add_argument("--code", help="Jurisdiction code")
    rates_p.set_defaults(func=cmd_rates)

    # calculate
    calc_p = subparsers.add_parser("calculate", parents=[common], help="Calculate sales tax")
    calc_p.add_argument("--amount", required=True, help="Purchase amount")
    calc_p.add_argument("--zip", help="ZIP code")
    calc_p.add_argument("--code", help="Jurisdiction code")
    calc_p.set_defaults(func=cmd_calculate)

    # item
    item_p = subparsers.add_parser("item", parents=[common], help="Item taxability and tax")
    item_p.add_argument("--rule", "-r", required=True, help="Taxability rule id")
    item_p.add_argument("--price", "-p", default="100", help="Item price")
    item_p.add_argument("--zip", help="ZIP code")
    item_p.add_argument("--code", help="Jurisdiction code")
    item_p.set_defaults(func=cmd_item)

    # rules
    rules_p = subparsers.add_parser("rules", parents=[common], help="Browse taxability rules")
    rules_p.add_argument("--category", "-c", help="Category id")
    rules_p.add_argument("--search", help="Keyword search")
    rules_p.set_defaults(func=cmd_rules)

    # calendar
    cal_p = subparsers.add_parser("calendar", parents=[common], help="Compliance calendar")
    cal_p.add_argument("--year", "-y", type=int, help="Calendar year")
    cal_p.add_argument("--upcoming", "-u", action="store_true", help="Next 90 days only")
    cal_p.add_argument("--as-of", help="Reference date (YYYY-MM-DD)")
    cal_p.set_defaults(func=cmd_calendar)

    # nexus
    nexus_p = subparsers.add_parser("nexus", parents=[common], help="Economic nexus check")
    nexus_p.add_argument("--sales", required=True, help="Annual sales into the state")
    nexus_p.add_argument("--transactions", type=int, default=0, help="Transaction count")
    nexus_p.set_defaults(func=cmd_nexus)

    # filing
    filing_p = subparsers.add_parser("filing", parents=[common], help="Filing frequency")
    filing_p.add_argument("--sales", help="Annual taxable sales (or liability for AL)")
    filing_p.set_defaults(func=cmd_filing)

    # bulletins
    tb_p = subparsers.add_parser("bulletins", parents=[common], help="Technical bulletins")
    tb_p.add_argument("--search", help="Keyword search")
    tb_p.add_argument("--category", "-c", help="Category filter")
    tb_p.set_defaults(func=cmd_bulletins)

    # states
    states_p = subparsers.add_parser("states", help="State profiles and research coverage")
    states_p.add_argument("--offline", action="store_true", help="Skip the research backend")
    states_p.add_argument("--api-url", help="Research backend base URL")
    states_p.set_defaults(func=cmd_states)

    # ask
    ask_p = subparsers.add_parser("ask", parents=[common], help="Ask the research assistant")
    ask_p.add_argument("query", nargs="*", help="Question text")
    ask_p.add_argument("--api-url", help="Research backend base URL")
    ask_p.set_defaults(func=cmd_ask)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        sys.exit(0)

    _configure_logging(args.verbose)

    try:
        args.func(args)
    except ValueError as exc:
        _fail(str(exc))
