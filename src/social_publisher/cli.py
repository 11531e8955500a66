"""Command-line interface using Typer."""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from social_publisher import __version__
from social_publisher.logging import setup_logging

# Setup logging
setup_logging()

app = typer.Typer(
    name="social-publisher",
    help="Social Publisher - connect platform accounts and publish videos",
    add_completion=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"Social Publisher v{__version__}")
        raise typer.Exit()


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
    """Social Publisher - publish one video to several platforms at once."""
    pass


@app.command()
def platforms() -> None:
    """Show which platforms are configured and connected."""
    from social_publisher.container import build_container
    from social_publisher.domain.enums import Platform

    container = build_container()

    table = Table(title="Platforms")
    table.add_column("Platform", style="cyan")
    table.add_column("Configured")
    table.add_column("Authorized")

    for platform in Platform:
        configured = container.credentials.is_configured(platform)
        authorized = container.credentials.is_authorized(platform)
        table.add_row(
            platform.display_name,
            "[green]✓[/green]" if configured else "[red]✗[/red]",
            "[green]✓[/green]" if authorized else "[red]✗[/red]",
        )

    console.print(table)
    asyncio.run(container.aclose())


@app.command("auth-url")
def auth_url(
    platform: str = typer.Argument(..., help="Platform id (youtube, tiktok, instagram)"),
    origin: Optional[str] = typer.Option(
        None, "--origin", "-o", help="Host the OAuth callback is served on"
    ),
) -> None:
    """Print the OAuth authorization URL for a platform."""
    from social_publisher.container import build_container

    container = build_container()
    caller_origin = origin or container.settings.default_caller_origin

    try:
        url = container.authorization.get_authorization_url(platform, caller_origin)
    finally:
        asyncio.run(container.aclose())

    if not url:
        console.print(f"[bold red]Platform {platform} is not configured or not supported[/bold red]")
        raise typer.Exit(code=1)

    console.print("[bold]Open this URL to connect your account:[/bold]")
    console.print(url, soft_wrap=True)


@app.command()
def publish(
    video_file: Path = typer.Argument(
        ..., exists=True, dir_okay=False, readable=True, help="Video file to publish"
    ),
    platform: list[str] = typer.Option(
        ..., "--platform", "-p", help="Target platform (repeatable)"
    ),
    title: Optional[str] = typer.Option(None, "--title", "-t", help="Video title"),
    description: Optional[str] = typer.Option(
        None, "--description", "-d", help="Video description"
    ),
) -> None:
    """Publish a local video file to one or more platforms."""
    from social_publisher.config import get_settings
    from social_publisher.container import build_container
    from social_publisher.domain.models import VideoAsset

    cfg = get_settings().model_copy(update={"media_root": str(video_file.parent)})
    container = build_container(cfg)

    video = VideoAsset(
        id=0,
        title=title or video_file.stem,
        owner_id=0,
        media_location=video_file.name,
        description=description,
    )

    async def run() -> list:
        try:
            return await container.orchestrator.publish(video, platform)
        finally:
            await container.aclose()

    console.print(f"[bold blue]Publishing {video_file.name}...[/bold blue]")
    results = asyncio.run(run())

    table = Table(title="Publish Results")
    table.add_column("Platform", style="cyan")
    table.add_column("Status")
    table.add_column("Details")

    for result in results:
        status = "[green]✓[/green]" if result.succeeded else f"[red]✗ {result.failure_reason}[/red]"
        table.add_row(result.platform, status, result.remote_url or result.message)

    console.print(table)

    if not any(r.succeeded for r in results):
        raise typer.Exit(code=1)


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Enable auto-reload"),
) -> None:
    """Start the API server."""
    import uvicorn

    from social_publisher.config import settings

    console.print("[bold blue]Starting API server...[/bold blue]")
    uvicorn.run(
        "social_publisher.main:app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload or settings.api_reload,
    )


@app.command("generate-key")
def generate_key() -> None:
    """Generate a value for ENCRYPTION_MASTER_KEY."""
    from social_publisher.services.encryption import generate_master_key

    console.print(generate_master_key())


if __name__ == "__main__":
    app()
