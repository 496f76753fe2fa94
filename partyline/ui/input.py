"""Interactive input with @mention and command completion."""

from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.auto_suggest import AutoSuggestFromHistory
from prompt_toolkit.completion import Completer, Completion
from prompt_toolkit.history import InMemoryHistory

from partyline.agents.registry import PersonaCatalog, get_default_catalog
from partyline.orchestrator.mentions import get_agent_suggestions

PARTY_COMMANDS = [
    ("/help", "Show available commands"),
    ("/quit", "Leave the party"),
    ("/pause", "Pause the session"),
    ("/resume", "Resume a paused session"),
    ("/config", "Show or change config, e.g. /config turn_ordering=dynamic"),
    ("/direct", "Have the moderator hand the floor to an agent"),
    ("/history", "Show the whole discussion"),
]


class MentionCompleter(Completer):
    """Completer for @agent mentions and /commands.

    Mentions are limited to the session's participants when they are
    known, otherwise the whole catalog is offered.
    """

    def __init__(
        self,
        catalog: Optional[PersonaCatalog] = None,
        participants: Optional[list[str]] = None,
        commands: Optional[list[tuple[str, str]]] = None,
        limit: int = 5,
    ):
        self.catalog = catalog or get_default_catalog()
        self.participants = participants
        self.commands = commands or PARTY_COMMANDS
        self.limit = limit

    def get_completions(self, document, complete_event):
        text = document.text_before_cursor

        if text.startswith("/"):
            partial = text.lower()
            for cmd, desc in self.commands:
                if cmd.startswith(partial):
                    yield Completion(
                        cmd,
                        start_position=-len(text),
                        display=f"{cmd} - {desc}",
                        display_meta=desc,
                    )
            return

        word = document.get_word_before_cursor(WORD=True)
        if not word.startswith("@"):
            return

        suggestions = get_agent_suggestions(word[1:], self.limit * 4, self.catalog)
        if self.participants is not None:
            suggestions = [s for s in suggestions if s in self.participants]
        for agent_id in suggestions[: self.limit]:
            agent = self.catalog.resolve(agent_id)
            display = f"@{agent_id} ({agent.name})" if agent else f"@{agent_id}"
            yield Completion(f"@{agent_id}", start_position=-len(word), display=display)


class PartyInput:
    """Prompt for the interactive party loop."""

    def __init__(
        self,
        catalog: Optional[PersonaCatalog] = None,
        participants: Optional[list[str]] = None,
        prompt_text: str = "you> ",
    ):
        self.completer = MentionCompleter(catalog, participants)
        self.history = InMemoryHistory()
        self.prompt_text = prompt_text
        self.session: Optional[PromptSession] = None

    async def prompt_async(self) -> str:
        """Read one line.

        Raises:
            EOFError: If Ctrl+D is pressed
            KeyboardInterrupt: If Ctrl+C is pressed
        """
        if self.session is None:
            self.session = PromptSession(
                completer=self.completer,
                history=self.history,
                auto_suggest=AutoSuggestFromHistory(),
            )
        return await self.session.prompt_async(self.prompt_text)
