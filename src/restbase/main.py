"""
Restbase - CLI Entry Point.

Usage:
    restbase health                      Show resolved configuration
    restbase session                     Fetch the current session
    restbase read subjects --eq user_id=7 --select id,name
    restbase version
"""

import asyncio
import json
import logging

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="restbase",
    help="Restbase - table, auth, and storage client for a REST backend.",
    add_completion=False,
)
console = Console()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every request"),
) -> None:
    """Configure logging before any command runs."""
    from restbase.config import settings

    level = logging.DEBUG if verbose else getattr(logging, settings.log_level)
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")


def _parse_filters(pairs: list[str]) -> list[tuple[str, str]]:
    filters = []
    for pair in pairs:
        field_name, sep, value = pair.partition("=")
        if not sep or not field_name:
            raise typer.BadParameter(f"Expected field=value, got {pair!r}", param_hint="--eq")
        filters.append((field_name, value))
    return filters


def _render_rows(rows: list[dict]) -> None:
    if not rows:
        console.print("[dim]No rows.[/dim]")
        return

    columns: list[str] = []
    for row in rows:
        for key in row:
            if key not in columns:
                columns.append(key)

    table = Table(show_header=True, header_style="bold blue")
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*[_cell(row.get(c)) for c in columns])
    console.print(table)


def _cell(value) -> str:
    if value is None:
        return ""
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


@app.command()
def health() -> None:
    """Show the resolved configuration."""
    from restbase.config import get_settings

    console.print("\n[bold]Restbase Health Check[/bold]\n")

    try:
        settings = get_settings()
    except Exception as e:
        console.print(f"\n[red]❌ Configuration error: {e}[/red]")
        raise typer.Exit(1)

    console.print("✅ Configuration loaded")
    console.print(f"   Environment: {settings.app_env}")
    console.print(f"   Log level: {settings.log_level}")
    console.print(f"   API origin: {settings.api_origin}")
    console.print(f"   API base: {settings.normalized_api_base}")
    if settings.request_timeout is None:
        console.print("⚠️  No request timeout: a hung backend hangs every call")
    else:
        console.print(f"   Request timeout: {settings.request_timeout}s")


@app.command()
def session() -> None:
    """Fetch and print the current session."""
    from restbase.client import ApiClient
    from restbase.envelope import decode_session

    async def _run():
        async with ApiClient() as client:
            return await client.auth.get_session()

    result = asyncio.run(_run())
    if result.error:
        console.print(f"[red]❌ {result.error.message} (status {result.error.status})[/red]")
        raise typer.Exit(1)

    current = decode_session(result)
    if current is None or current.user is None:
        console.print("[dim]Not signed in.[/dim]")
        return
    user = current.user
    console.print(f"✅ Signed in as [bold]{user.email or user.id}[/bold] ({user.role})")


@app.command()
def read(
    table: str = typer.Argument(..., help="Table to read"),
    eq: list[str] = typer.Option([], "--eq", help="Equality filter as field=value (repeatable)"),
    select: str = typer.Option("*", "--select", "-s", help="Comma-separated columns"),
) -> None:
    """Read rows from a table."""
    from restbase.client import ApiClient
    from restbase.commands import Command
    from restbase.envelope import decode_rows

    command = Command(table).select(select)
    for field_name, value in _parse_filters(eq):
        command = command.eq(field_name, value)

    async def _run():
        async with ApiClient() as client:
            return await client.execute(command)

    result = asyncio.run(_run())
    if result.error:
        console.print(f"[red]❌ {result.error.message} (status {result.error.status})[/red]")
        raise typer.Exit(1)

    _render_rows(decode_rows(result))


@app.command()
def version() -> None:
    """Show version information."""
    from restbase import __version__

    console.print(f"Restbase version {__version__}")


if __name__ == "__main__":
    app()
