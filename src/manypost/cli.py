"""Command-line interface using Typer."""

import subprocess
import sys
from typing import Optional
from uuid import UUID

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from manypost import __version__
from manypost.logging import setup_logging

setup_logging()

app = typer.Typer(
    name="manypost",
    help="ManyPost - schedule and publish videos to YouTube",
    add_completion=False,
)

users_app = typer.Typer(help="User management commands")
keys_app = typer.Typer(help="API key management commands")
app.add_typer(users_app, name="users")
app.add_typer(keys_app, name="keys")

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"ManyPost v{__version__}")
        raise typer.Exit()


def _parse_uuid(value: str, label: str) -> UUID:
    try:
        return UUID(value)
    except ValueError:
        console.print(f"[bold red]Invalid {label}: {value}[/bold red]")
        raise typer.Exit(code=1)


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """ManyPost - schedule, publish and track YouTube videos."""
    pass


@app.command("version")
def show_version() -> None:
    """Show the installed version."""
    console.print(f"ManyPost v{__version__}")


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    from manypost.config import settings

    uvicorn.run(
        "manypost.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload or settings.api_reload,
    )


@app.command()
def worker() -> None:
    """Start a Celery worker."""
    console.print("[bold blue]Starting Celery worker...[/bold blue]")
    subprocess.run(
        [
            sys.executable, "-m", "celery", "-A", "manypost.worker", "worker",
            "-Q", "high,default,low", "--loglevel=info",
        ],
        check=True,
    )


@app.command()
def beat() -> None:
    """Start Celery beat (due-post scan and statistics sync)."""
    console.print("[bold blue]Starting Celery beat...[/bold blue]")
    subprocess.run(
        [sys.executable, "-m", "celery", "-A", "manypost.worker", "beat", "--loglevel=info"],
        check=True,
    )


@app.command()
def health() -> None:
    """Check the health of the running API."""
    import httpx

    from manypost.config import settings

    url = f"http://{settings.api_host}:{settings.api_port}/health/ready"

    try:
        response = httpx.get(url, timeout=10)
        data = response.json()
    except httpx.RequestError as e:
        console.print(f"[bold red]Cannot connect to API: {e}[/bold red]")
        console.print("[dim]Is the API server running?[/dim]")
        raise typer.Exit(code=1)

    table = Table(title="Service Health")
    table.add_column("Component", style="cyan")
    table.add_column("Status")
    table.add_row("Database", "✓" if data.get("database") else "✗")
    table.add_row("Broker", "✓" if data.get("broker") else "✗")
    console.print(table)

    if data.get("ready"):
        console.print("[bold green]All services healthy![/bold green]")
    else:
        console.print("[bold yellow]Some services unhealthy[/bold yellow]")
        raise typer.Exit(code=1)


@app.command("generate-key")
def generate_key() -> None:
    """Generate a Fernet key for ENCRYPTION_MASTER_KEY."""
    from manypost.services.encryption import generate_master_key

    console.print(generate_master_key())


# =============================================================================
# PUBLISHING COMMANDS
# =============================================================================


@app.command()
def scan() -> None:
    """Publish every pending post that is due now."""
    from manypost.db.session import get_session_context
    from manypost.services.scanner import scan_due_posts

    with get_session_context() as session:
        results = scan_due_posts(session)

    if not results:
        console.print("[dim]No posts due[/dim]")
        return

    table = Table(title="Scan Results")
    table.add_column("Post", style="cyan")
    table.add_column("Status")
    table.add_column("Details")
    for r in results:
        if r.success and r.result:
            table.add_row(str(r.post_id), "[green]posted[/green]", r.result.url)
        else:
            table.add_row(str(r.post_id), "[red]failed[/red]", (r.error or "")[:80])
    console.print(table)


@app.command()
def publish(
    post_id: str = typer.Argument(..., help="Scheduled post ID (UUID)"),
) -> None:
    """Publish one scheduled post now."""
    from manypost.db.session import get_session_context
    from manypost.domain.errors import ManyPostError
    from manypost.services.publisher import publish_post

    post_uuid = _parse_uuid(post_id, "post ID")

    try:
        with get_session_context() as session:
            outcome = publish_post(session, post_uuid)
    except ManyPostError as e:
        console.print(f"[bold red]Publish failed: {e.message}[/bold red]")
        raise typer.Exit(code=1)

    console.print(Panel.fit(
        f"[cyan]Video ID:[/cyan] {outcome.platform_post_id}\n"
        f"[cyan]URL:[/cyan] {outcome.url}",
        title="Published",
        border_style="green",
    ))


@app.command("sync-stats")
def sync_stats(
    user_id: Optional[str] = typer.Option(None, "--user", "-u", help="Only this user's videos"),
) -> None:
    """Refresh view, like and comment counts for published videos."""
    from manypost.db.session import get_session_context
    from manypost.services.stats import sync_video_stats

    user_uuid = _parse_uuid(user_id, "user ID") if user_id else None

    with get_session_context() as session:
        summary = sync_video_stats(session, user_id=user_uuid)

    console.print(f"[green]Synced {summary.synced} videos[/green]")
    if summary.skipped:
        console.print(f"[yellow]Skipped {summary.skipped} videos[/yellow]")


# =============================================================================
# USER COMMANDS
# =============================================================================


@users_app.command("create")
def users_create(
    email: str = typer.Argument(..., help="User email address"),
    name: Optional[str] = typer.Option(None, "--name", "-n", help="Full name"),
) -> None:
    """Create a user."""
    from manypost.db.session import get_session_context
    from manypost.domain.errors import ValidationError
    from manypost.services.users import create_user

    try:
        with get_session_context() as session:
            user = create_user(session, email, full_name=name)
    except ValidationError as e:
        console.print(f"[bold red]{e.message}[/bold red]")
        raise typer.Exit(code=1)

    console.print("[bold green]User created[/bold green]")
    console.print(f"[cyan]ID:[/cyan] {user.id}")
    console.print(f"[cyan]Email:[/cyan] {user.email}")
    console.print(f"\n[dim]Create an API key with: manypost keys create {user.email} <name>[/dim]")


# =============================================================================
# API KEY COMMANDS
# =============================================================================


@keys_app.command("create")
def keys_create(
    email: str = typer.Argument(..., help="Owner's email address"),
    name: str = typer.Argument(..., help="Label for the key"),
) -> None:
    """Create an API key. The key is printed once."""
    from manypost.db.session import get_session_context
    from manypost.domain.errors import ManyPostError
    from manypost.services.api_keys import create_api_key
    from manypost.services.users import get_user_by_email

    try:
        with get_session_context() as session:
            user = get_user_by_email(session, email)
            api_key, raw_key = create_api_key(session, user.id, name)
    except ManyPostError as e:
        console.print(f"[bold red]{e.message}[/bold red]")
        raise typer.Exit(code=1)

    console.print(Panel.fit(
        f"[bold]{raw_key}[/bold]\n\n"
        f"[cyan]ID:[/cyan] {api_key.id}\n"
        f"[dim]Store this key now, it will not be shown again.[/dim]",
        title=api_key.name,
        border_style="green",
    ))


@keys_app.command("list")
def keys_list(
    email: str = typer.Argument(..., help="Owner's email address"),
) -> None:
    """List a user's API keys."""
    from manypost.db.session import get_session_context
    from manypost.domain.errors import NotFoundError
    from manypost.services.api_keys import list_api_keys
    from manypost.services.users import get_user_by_email

    try:
        with get_session_context() as session:
            user = get_user_by_email(session, email)
            keys = list_api_keys(session, user.id)
    except NotFoundError as e:
        console.print(f"[bold red]{e.message}[/bold red]")
        raise typer.Exit(code=1)

    if not keys:
        console.print("[dim]No API keys found[/dim]")
        return

    table = Table(title="API Keys")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="cyan")
    table.add_column("Prefix")
    table.add_column("Active")
    table.add_column("Last Used")
    for key in keys:
        table.add_row(
            str(key.id),
            key.name,
            f"{key.key_prefix}...",
            "✓" if key.is_active else "✗",
            key.last_used_at.strftime("%Y-%m-%d %H:%M") if key.last_used_at else "never",
        )
    console.print(table)


@keys_app.command("revoke")
def keys_revoke(
    email: str = typer.Argument(..., help="Owner's email address"),
    key_id: str = typer.Argument(..., help="API key ID (UUID)"),
) -> None:
    """Revoke an API key."""
    from manypost.db.session import get_session_context
    from manypost.domain.errors import NotFoundError
    from manypost.services.api_keys import revoke_api_key
    from manypost.services.users import get_user_by_email

    key_uuid = _parse_uuid(key_id, "key ID")

    try:
        with get_session_context() as session:
            user = get_user_by_email(session, email)
            revoke_api_key(session, user.id, key_uuid)
    except NotFoundError as e:
        console.print(f"[bold red]{e.message}[/bold red]")
        raise typer.Exit(code=1)

    console.print(f"[green]Revoked {key_id}[/green]")


if __name__ == "__main__":
    app()
