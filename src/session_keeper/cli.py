"""session-keeper CLI - inspect configuration and exercise the identity backend."""

import asyncio
import logging

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table

from .config import SessionSettings
from .coordinator import SessionCoordinator
from .errors import BackendError, SessionKeeperError, is_offline_error, is_session_timeout_error
from .http_backend import HTTPIdentityBackend

app = typer.Typer(
    name="session-keeper",
    help="Session lifecycle coordinator - check and refresh identity backend sessions",
    no_args_is_help=True,
)
console = Console()

SECRET_FIELDS = {"auth_api_key", "auth_refresh_token"}


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug logs"),
):
    """Configure logging for all commands."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
    )


def _load_settings() -> SessionSettings:
    try:
        return SessionSettings()
    except ValueError as e:
        console.print(f"[red]Invalid configuration:[/red] {e}")
        raise typer.Exit(1)


def _build_coordinator(settings: SessionSettings) -> SessionCoordinator:
    try:
        backend = HTTPIdentityBackend.from_settings(settings)
    except BackendError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    return SessionCoordinator(backend, settings=settings)


# ============================================================================
# Commands
# ============================================================================


@app.command("config")
def show_config():
    """Show effective session settings."""
    settings = _load_settings()

    table = Table(title="Session Settings")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    for name, value in settings.model_dump().items():
        if name in SECRET_FIELDS:
            shown = "Set" if value else "[red]Not set[/red]"
        elif value == "":
            shown = "[dim]-[/dim]"
        else:
            shown = str(value)
        table.add_row(name, shown)

    console.print(table)

    if settings.bypass_session_checks:
        console.print("[bold yellow]Session checks are bypassed.[/bold yellow]")


@app.command("check")
def check_session():
    """Obtain a session from the configured backend, refreshing if needed."""
    settings = _load_settings()
    coordinator = _build_coordinator(settings)

    console.print("[dim]Checking session...[/dim]")
    try:
        session = asyncio.run(coordinator.ensure_session())
    except SessionKeeperError as e:
        if is_offline_error(e):
            console.print("[yellow]Offline - retry once connectivity returns.[/yellow]")
        elif is_session_timeout_error(e):
            console.print(f"[yellow]Session {e.kind} timed out: {e}[/yellow]")
        else:
            console.print(f"[red]Session check failed: {e}[/red]")
        raise typer.Exit(1)

    if session is None:
        console.print("[red]No session available. Sign in again.[/red]")
        raise typer.Exit(1)

    minutes = session.expires_in_seconds // 60
    console.print(
        Panel(
            f"[bold green]Session valid[/bold green]\n\n"
            f"User ID: {session.user_id or 'N/A'}\n"
            f"Expires in: {minutes}m",
            title="Session Status",
        )
    )


@app.command("sign-out")
def sign_out(
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    """Sign out of the configured backend."""
    if not force:
        if not typer.confirm("Sign out and discard the session?"):
            console.print("[yellow]Cancelled[/yellow]")
            raise typer.Exit(0)

    settings = _load_settings()
    coordinator = _build_coordinator(settings)

    async def _sign_out() -> None:
        try:
            await coordinator.ensure_session()
        except SessionKeeperError as e:
            console.print(f"[dim]No live session to revoke: {e}[/dim]")
        await coordinator.force_sign_out()

    asyncio.run(_sign_out())
    console.print("[green]Signed out.[/green]")
