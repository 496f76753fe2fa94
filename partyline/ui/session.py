"""Interactive party loop for the terminal."""

import logging
from typing import Any, AsyncIterator, Optional

from rich.console import Console

from partyline.config import Settings
from partyline.orchestrator import PartyOrchestrator, create_orchestrator
from partyline.orchestrator.events import EventType, OrchestratorEvent
from partyline.session import SessionSweeper
from partyline.session.models import PartySession

from .input import PARTY_COMMANDS, PartyInput
from .render import PartyRenderer

logger = logging.getLogger(__name__)


def parse_config_args(args: list[str]) -> dict[str, Any]:
    """Turn ``key=value`` words into config overrides.

    Raises:
        ValueError: If a word is not ``key=value``
    """
    overrides: dict[str, Any] = {}
    for arg in args:
        if "=" not in arg:
            raise ValueError(f"expected key=value, got {arg!r}")
        key, value = arg.split("=", 1)
        key = key.strip()
        value = value.strip()
        if key == "category_filter":
            overrides[key] = [v for v in value.split(",") if v]
        elif key == "moderator_id" and value.lower() in ("", "none", "null"):
            overrides[key] = None
        else:
            overrides[key] = value
    return overrides


class PartyShell:
    """Reads user input and drives one party session."""

    def __init__(
        self,
        console: Console,
        orchestrator: PartyOrchestrator,
        owner_id: str,
        party_input: Optional[PartyInput] = None,
    ):
        self.console = console
        self.orchestrator = orchestrator
        self.owner_id = owner_id
        self.renderer = PartyRenderer(console)
        self.input = party_input or PartyInput(orchestrator.catalog)
        self.session: Optional[PartySession] = None

    async def _render(self, events: AsyncIterator[OrchestratorEvent]) -> bool:
        """Render a run; returns False if the request was rejected."""
        accepted = True
        async for event in events:
            if event.type == EventType.REJECTED:
                accepted = False
            if event.session is not None:
                self.session = event.session
            self.renderer.render_event(self.session, event)
        return accepted

    async def start(self, agent_ids: list[str], topic: str, overrides: dict[str, Any]) -> bool:
        accepted = await self._render(
            self.orchestrator.run_start(self.owner_id, agent_ids, topic, overrides or None)
        )
        if accepted and self.session is not None:
            self.input.completer.participants = self.session.participant_ids
        return accepted

    async def handle_command(self, line: str) -> bool:
        """Run one slash command; returns False when the shell should exit."""
        words = line.split()
        command, args = words[0].lower(), words[1:]
        session_id = self.session.id

        if command in ("/quit", "/exit"):
            await self.orchestrator.end_session(self.owner_id, session_id)
            self.console.print("[dim]Party over.[/dim]")
            return False

        if command == "/help":
            for cmd, desc in PARTY_COMMANDS:
                self.console.print(f"  [cyan]{cmd}[/cyan]  {desc}")
        elif command in ("/pause", "/resume"):
            operation = (
                self.orchestrator.pause_session if command == "/pause"
                else self.orchestrator.resume_session
            )
            result = await operation(self.owner_id, session_id)
            if result.ok:
                self.session = result.value
                self.console.print(f"[dim]Session {result.value.state.value}.[/dim]")
            else:
                self.console.print(self.renderer.render_error(result.error.message))
        elif command == "/config":
            await self._config(args)
        elif command == "/direct":
            if not args:
                self.console.print("[yellow]Usage: /direct <agent-id> [context][/yellow]")
            else:
                context = " ".join(args[1:]) or None
                await self._render(self.orchestrator.run_direct(
                    self.owner_id, session_id, args[0].lstrip("@"), context
                ))
        elif command == "/history":
            for message in self.session.history:
                self.console.print(self.renderer.render_message(self.session, message))
        else:
            self.console.print(f"[yellow]Unknown command {command}; try /help[/yellow]")
        return True

    async def _config(self, args: list[str]) -> None:
        if not args:
            self.console.print(self.renderer.render_config(self.session.config))
            return
        try:
            overrides = parse_config_args(args)
        except ValueError as e:
            self.console.print(self.renderer.render_error(str(e)))
            return
        result = await self.orchestrator.update_session_config(
            self.owner_id, self.session.id, overrides
        )
        if result.ok:
            self.session = result.value
            self.console.print(self.renderer.render_config(self.session.config))
        else:
            self.console.print(self.renderer.render_error(result.error.message))

    async def loop(self) -> None:
        while True:
            try:
                line = (await self.input.prompt_async()).strip()
            except EOFError:
                line = "/quit"
            if not line:
                continue
            if line.startswith("/"):
                if not await self.handle_command(line):
                    return
                continue
            await self._render(self.orchestrator.run_continue(
                self.owner_id, self.session.id, user_message=line
            ))


async def run_party(
    console: Console,
    settings: Settings,
    owner_id: str,
    agent_ids: list[str],
    topic: str,
    overrides: dict[str, Any],
) -> None:
    """Start a party, then read messages until the user quits."""
    orchestrator = create_orchestrator(settings)
    sweeper = SessionSweeper.from_config(orchestrator.store, settings.storage)
    sweeper.start()
    try:
        shell = PartyShell(console, orchestrator, owner_id)
        if await shell.start(agent_ids, topic, overrides):
            await shell.loop()
    finally:
        await sweeper.stop()
