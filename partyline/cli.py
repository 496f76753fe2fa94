"""CLI entry point for Partyline."""

import asyncio
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.panel import Panel

from partyline import __version__
from partyline.agents.registry import AgentCategory, get_default_catalog
from partyline.config import create_default_config, get_settings, load_settings
from partyline.errors import MissingAPIKeyError
from partyline.utils.logging import setup_logging

app = typer.Typer(
    name="partyline",
    help="Party mode - several AI personas discussing a topic together",
    add_completion=True,
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        console.print(f"[bold]Partyline[/bold] version {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    config: Optional[Path] = typer.Option(
        None,
        "--config",
        "-c",
        help="Path to configuration file",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output",
    ),
    version: bool = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit",
    ),
) -> None:
    """Partyline - multi-persona party discussions."""
    setup_logging(verbose=verbose)
    if config:
        load_settings(config_path=config, force_reload=True)


@app.command()
def agents(
    category: Optional[list[str]] = typer.Option(
        None,
        "--category",
        "-k",
        help="Only show these categories (repeatable)",
    ),
) -> None:
    """List the agents that can join a party."""
    from partyline.ui import render_agent_catalog

    wanted = {c.lower() for c in category or []}
    unknown = wanted - {c.value for c in AgentCategory}
    if unknown:
        console.print(f"[red]Unknown category: {', '.join(sorted(unknown))}[/red]")
        raise typer.Exit(1)
    console.print(render_agent_catalog(get_default_catalog(), wanted or None))


@app.command()
def config() -> None:
    """Show current configuration."""
    settings = get_settings()

    console.print(Panel("[bold]Current Configuration[/bold]", border_style="blue"))

    console.print("\n[bold]API Keys:[/bold]")
    console.print(f"  Anthropic: {'✓ Set' if settings.anthropic_api_key else '✗ Not set'}")
    console.print(f"  OpenAI:    {'✓ Set' if settings.openai_api_key else '✗ Not set'}")

    console.print("\n[bold]Provider:[/bold]")
    console.print(f"  Name: {settings.provider.name}")
    console.print(f"  Model: {settings.provider.model_id or 'default'}")
    console.print(f"  Max tokens: {settings.provider.max_tokens}")

    console.print("\n[bold]Party defaults:[/bold]")
    console.print(f"  Moderator: {settings.party.moderator_id or 'none'}")
    console.print(f"  Turn ordering: {settings.party.turn_ordering}")
    console.print(f"  Max turns: {settings.party.max_turns}")

    console.print("\n[bold]Storage:[/bold]")
    console.print(f"  Idle session max age: {settings.storage.session_max_age_hours}h")
    console.print(f"  Sweep interval: {settings.storage.sweep_interval_minutes}min")

    console.print("\n[bold]Personas:[/bold]")
    console.print(f"  Directory: {settings.personas.resolved_directory or 'built-in only'}")


@app.command()
def party(
    agent_ids: list[str] = typer.Argument(..., help="Agent ids to invite (at least two)"),
    topic: str = typer.Option(..., "--topic", "-t", help="Discussion topic"),
    ordering: Optional[str] = typer.Option(
        None,
        "--ordering",
        "-o",
        help="Turn ordering: round-robin, dynamic or moderator-directed",
    ),
    moderator: Optional[str] = typer.Option(
        None,
        "--moderator",
        "-m",
        help="Moderator agent id (default from config)",
    ),
    no_moderator: bool = typer.Option(
        False,
        "--no-moderator",
        help="Run the party without a moderator",
    ),
    user: str = typer.Option("local", "--user", "-u", help="Owner id for the session"),
) -> None:
    """Start a party and keep it going interactively."""
    overrides: dict[str, Any] = {}
    if ordering:
        overrides["turn_ordering"] = ordering
    if no_moderator:
        overrides["moderator_id"] = None
    elif moderator:
        overrides["moderator_id"] = moderator

    # Create default config if it doesn't exist
    create_default_config()

    settings = get_settings()
    try:
        settings.require_api_key(settings.provider.name)
    except MissingAPIKeyError as e:
        console.print(
            Panel(
                f"[yellow]No API key configured![/yellow] {e.message}\n\n"
                "Please set the key for your provider:\n"
                "  • ANTHROPIC_API_KEY for Claude\n"
                "  • OPENAI_API_KEY for GPT\n\n"
                "Or configure them in ~/.partyline/config.yaml",
                title="Configuration Required",
                border_style="yellow",
            )
        )
        raise typer.Exit(1)

    from partyline.ui.session import run_party

    try:
        asyncio.run(run_party(console, settings, user, agent_ids, topic, overrides))
    except KeyboardInterrupt:
        console.print("\n[dim]Bye.[/dim]")


if __name__ == "__main__":
    app()
