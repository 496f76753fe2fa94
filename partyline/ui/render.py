"""Rich rendering for party discussions."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from partyline.agents.filters import agents_grouped_by_category
from partyline.agents.registry import PersonaCatalog
from partyline.models.types import MessageRole
from partyline.orchestrator.events import EventType, OrchestratorEvent
from partyline.orchestrator.mentions import highlight_mentions
from partyline.session.models import PartyConfig, PartyMessage, PartySession

MODERATOR_COLOR = "magenta"
SPEAKER_COLORS = ("cyan", "green", "yellow", "blue", "red", "bright_cyan", "bright_green")
USER_COLOR = "white"
ERROR_COLOR = "red"


@dataclass
class PartyRenderer:
    """Renders party messages and events to a rich console."""

    console: Console
    show_timestamps: bool = False

    def _color_for(self, session: PartySession, agent_id: Optional[str]) -> str:
        if agent_id is None:
            return USER_COLOR
        if session.moderator and session.moderator.agent_id == agent_id:
            return MODERATOR_COLOR
        ids = [p.agent_id for p in session.speakers]
        if agent_id in ids:
            return SPEAKER_COLORS[ids.index(agent_id) % len(SPEAKER_COLORS)]
        return USER_COLOR

    def _title(self, session: PartySession, message: PartyMessage) -> str:
        if message.role == MessageRole.USER or not message.agent_id:
            label = "You"
        else:
            participant = session.get_participant(message.agent_id)
            label = participant.label if participant else message.agent_id

        tags = []
        if message.is_moderator_intro:
            tags.append("intro")
        if message.is_moderator_summary:
            tags.append("summary")
        title = f"[bold]{label}[/bold] · turn {message.turn_number}"
        if tags:
            title += f" · {', '.join(tags)}"
        if self.show_timestamps and message.timestamp:
            stamp = datetime.fromtimestamp(message.timestamp / 1000).strftime("%H:%M:%S")
            title += f" [dim]{stamp}[/dim]"
        return title

    def render_message(self, session: PartySession, message: PartyMessage) -> Panel:
        body = Markdown(highlight_mentions(message.content))
        return Panel(
            body,
            title=self._title(session, message),
            title_align="left",
            border_style=self._color_for(session, message.agent_id),
            padding=(0, 1),
        )

    def render_error(self, error: str, agent_id: Optional[str] = None) -> Panel:
        title = f"Error from {agent_id}" if agent_id else "Error"
        return Panel(
            Text(error, style=ERROR_COLOR),
            title=title,
            title_align="left",
            border_style=ERROR_COLOR,
            padding=(0, 1),
        )

    def render_session_header(self, session: PartySession) -> Panel:
        lines = [f"[bold]Topic:[/bold] {session.topic}"]
        names = ", ".join(p.label for p in session.speakers)
        lines.append(f"[bold]Speakers:[/bold] {names}")
        if session.moderator:
            lines.append(f"[bold]Moderator:[/bold] {session.moderator.label}")
        lines.append(f"[bold]Ordering:[/bold] {session.config.turn_ordering.value}")
        return Panel("\n".join(lines), title=f"Party {session.id[:8]}", border_style="blue")

    def render_config(self, config: PartyConfig) -> Table:
        table = Table(title="Party Configuration", show_header=False)
        table.add_column("Setting", style="bold")
        table.add_column("Value")
        table.add_row("turn_ordering", config.turn_ordering.value)
        table.add_row("moderator_id", config.moderator_id or "-")
        table.add_row("max_turns", str(config.max_turns))
        filters = ", ".join(c.value for c in config.category_filter) or "-"
        table.add_row("category_filter", filters)
        return table

    def render_event(self, session: Optional[PartySession], event: OrchestratorEvent) -> None:
        """Print what a front end should show for one event."""
        if event.type == EventType.SESSION_READY and event.session is not None:
            self.console.print(self.render_session_header(event.session))
            if event.skipped:
                self.console.print(f"[yellow]Skipped: {', '.join(event.skipped)}[/yellow]")
        elif event.type == EventType.ROUND_START:
            self.console.rule(f"Round {event.turn_number}")
        elif event.type == EventType.ERROR:
            self.console.print(self.render_error(event.error or "", event.agent_id))
        elif event.type == EventType.REJECTED:
            self.console.print(self.render_error(event.error or "Request rejected"))
        elif event.message is not None and session is not None and event.type != EventType.USER_MESSAGE:
            self.console.print(self.render_message(session, event.message))


def render_agent_catalog(catalog: PersonaCatalog, categories: Optional[set[str]] = None) -> Table:
    """Table of catalog agents grouped by category."""
    grouped = agents_grouped_by_category(catalog)
    table = Table(title=f"Agents ({grouped['total_agents']})")
    table.add_column("Category", style="bold")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Name")
    table.add_column("Description", style="dim")

    for group in grouped["categories"]:
        if categories and group["category"].value not in categories:
            continue
        heading = f"{group['icon']} {group['display_name']}"
        for index, agent in enumerate(group["agents"]):
            table.add_row(
                heading if index == 0 else "",
                agent["id"],
                f"{agent['icon']} {agent['name']}",
                agent["description"],
            )
    return table
