#!/usr/bin/env python3
"""CLI tool for operating a local portfolio ledger.

The caller identity and logical height are supplied on the command line, so
this tool is meant for local operation and inspection of a ledger database.

Usage:
    python scripts/ledger_cli.py --caller alice --height 10 create BTC=6000 ETH=4000
    python scripts/ledger_cli.py --caller alice update 1 0 5000
    python scripts/ledger_cli.py --caller alice --height 200 rebalance 1
    python scripts/ledger_cli.py show 1
    python scripts/ledger_cli.py list alice
    python scripts/ledger_cli.py status
    python scripts/ledger_cli.py --caller deployer handoff treasury
"""

import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.markup import escape
from rich.table import Table

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from portfolio_ledger.api.ledger_api import LedgerAPI
from portfolio_ledger.data.context import StaticContext
from portfolio_ledger.utils.config import load_config, load_ledger_settings
from portfolio_ledger.utils.exceptions import LedgerError
from portfolio_ledger.utils.logging import setup_logging

console = Console()


def parse_allocations(entries: tuple) -> tuple[list[str], list[int]]:
    """Parse "ASSET=BPS" strings into token and percentage lists.

    Raises:
        click.BadParameter: If an entry is malformed
    """
    tokens, percentages = [], []
    for entry in entries:
        if "=" not in entry:
            raise click.BadParameter(f"'{entry}', expected ASSET=BPS")
        asset, bps = entry.rsplit("=", 1)
        try:
            percentages.append(int(bps))
        except ValueError:
            raise click.BadParameter(f"'{bps}' is not an integer basis-point value")
        tokens.append(asset)
    return tokens, percentages


def create_allocation_table(api: LedgerAPI, portfolio_id: int) -> Table:
    """Create a rich table of a portfolio's asset allocation."""
    table = Table(
        title=f"Portfolio {portfolio_id} allocation",
        show_header=True,
        header_style="bold magenta",
    )
    table.add_column("Slot", justify="right")
    table.add_column("Asset", style="cyan", no_wrap=True)
    table.add_column("Target (bps)", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Amount", justify="right")

    frame = api.get_allocation_table(portfolio_id)
    for row in frame.itertuples(index=False):
        table.add_row(
            str(row.slot),
            row.asset_address,
            str(row.target_percentage),
            f"{row.target_weight:.2%}",
            str(row.current_amount),
        )
    return table


@click.group()
@click.option("--config", "config_path", type=click.Path(), default=None, help="YAML config file")
@click.option("--db", "db_path", type=click.Path(), default=None, help="Override database path")
@click.option("--caller", default="anonymous", help="Identity issuing the command")
@click.option("--height", type=click.IntRange(min=0), default=0, help="Current logical height")
@click.pass_context
def cli(
    ctx: click.Context,
    config_path: Optional[str],
    db_path: Optional[str],
    caller: str,
    height: int,
):
    """Portfolio Ledger operations tool"""
    try:
        settings = load_ledger_settings(load_config(config_path))
    except (FileNotFoundError, LedgerError) as e:
        raise click.ClickException(str(e))

    if db_path is not None:
        settings.db_path = db_path
    setup_logging(level=settings.log_level, logger_levels=settings.logger_levels)

    context = StaticContext(caller=caller, height=height)
    ctx.obj = LedgerAPI(context=context, settings=settings)


@cli.command()
@click.argument("allocations", nargs=-1, required=True)
@click.pass_obj
def create(api: LedgerAPI, allocations: tuple):
    """Create a portfolio from ASSET=BPS pairs (must sum to 10000)."""
    tokens, percentages = parse_allocations(allocations)
    try:
        portfolio_id = api.create_portfolio(tokens, percentages)
    except LedgerError as e:
        console.print(f"[red]✗ Error:[/red] {escape(str(e))}")
        sys.exit(1)
    console.print(f"[green]✓ Created portfolio {portfolio_id}[/green]")


@cli.command()
@click.argument("portfolio_id", type=int)
@click.argument("slot", type=int)
@click.argument("bps", type=int)
@click.pass_obj
def update(api: LedgerAPI, portfolio_id: int, slot: int, bps: int):
    """Set the target weight of one asset slot."""
    try:
        api.update_portfolio_allocation(portfolio_id, slot, bps)
    except LedgerError as e:
        console.print(f"[red]✗ Error:[/red] {escape(str(e))}")
        sys.exit(1)
    console.print(f"[green]✓ Portfolio {portfolio_id} slot {slot} set to {bps} bps[/green]")


@cli.command()
@click.argument("portfolio_id", type=int)
@click.pass_obj
def rebalance(api: LedgerAPI, portfolio_id: int):
    """Record a rebalance of a portfolio at the current height."""
    try:
        api.rebalance_portfolio(portfolio_id)
    except LedgerError as e:
        console.print(f"[red]✗ Error:[/red] {escape(str(e))}")
        sys.exit(1)
    console.print(f"[green]✓ Portfolio {portfolio_id} rebalanced[/green]")


@cli.command()
@click.argument("portfolio_id", type=int)
@click.pass_obj
def show(api: LedgerAPI, portfolio_id: int):
    """Show a portfolio and its allocation."""
    if api.get_portfolio(portfolio_id) is None:
        console.print(f"[yellow]Portfolio {portfolio_id} not found[/yellow]")
        sys.exit(1)
    click.echo(api.format_portfolio(portfolio_id))
    console.print(create_allocation_table(api, portfolio_id))


@cli.command(name="list")
@click.argument("owner")
@click.pass_obj
def list_portfolios(api: LedgerAPI, owner: str):
    """List the portfolio IDs owned by OWNER."""
    ids = api.get_user_portfolios(owner)
    if not ids:
        console.print(f"No portfolios for {owner}")
        return

    table = Table(title=f"Portfolios of {owner}", header_style="bold magenta")
    table.add_column("ID", justify="right")
    table.add_column("Assets", justify="right")
    table.add_column("Last rebalanced", justify="right")
    table.add_column("Needs rebalance")
    for portfolio_id in ids:
        portfolio = api.get_portfolio(portfolio_id)
        status = api.calculate_rebalance_amounts(portfolio_id)
        table.add_row(
            str(portfolio_id),
            str(portfolio.token_count),
            str(portfolio.last_rebalanced),
            "yes" if status.needs_rebalance else "no",
        )
    console.print(table)


@cli.command()
@click.pass_obj
def status(api: LedgerAPI):
    """Show protocol owner, fee and portfolio count."""
    table = Table(title="Ledger status", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Protocol owner", str(api.get_protocol_owner()))
    table.add_row("Protocol fee", f"{api.get_protocol_fee()} bps")
    table.add_row("Portfolios", str(api.get_portfolio_count()))
    console.print(table)


@cli.command()
@click.argument("new_owner")
@click.pass_obj
def handoff(api: LedgerAPI, new_owner: str):
    """Transfer protocol ownership to NEW_OWNER."""
    try:
        api.initialize(new_owner)
    except LedgerError as e:
        console.print(f"[red]✗ Error:[/red] {escape(str(e))}")
        sys.exit(1)
    console.print(f"[green]✓ Protocol owner is now {new_owner}[/green]")


if __name__ == "__main__":
    cli()
