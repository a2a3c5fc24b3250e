"""SimRoom CLI - chat with AI participants in your terminal."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import TYPE_CHECKING

import typer
import yaml
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .ai import AgnoLanguageModel
from .config import Config
from .constants import MAIN_BOT_ID
from .error_handling import SimRoomError
from .events import EventKind
from .logging_config import setup_logging
from .room import ChatRoom

if TYPE_CHECKING:
    from .models import ChatEntry, Participant

_HELP = """\
An in-process chat room with AI participants.

[bold]Quick start:[/bold]
  [cyan]simroom chat --name Alice[/cyan]   Join a room as Alice\
"""

_CHAT_HELP = """\
[bold]Commands[/bold]
  [cyan]/join NAME[/cyan]     add a user to the room (you become them if nobody is active);
                 names are one word of letters, digits and underscores
  [cyan]/switch NAME[/cyan]   speak as another connected user
  [cyan]/ai NAME[/cyan]       toggle AI control for another user
  [cyan]/who[/cyan]           list connected users
  [cyan]/leave[/cyan]         leave the room, [cyan]/rejoin[/cyan] to come back
  [cyan]/help[/cyan]          show this help
  [cyan]/quit[/cyan]          exit
Mention someone with [bold]@name[/bold] to talk to them directly.\
"""

app = typer.Typer(
    help=_HELP,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
    no_args_is_help=True,
    pretty_exceptions_show_locals=False,
)
console = Console()


class ChatConsole:
    """Terminal front end: prints log entries as they arrive and runs chat commands."""

    def __init__(self, room: ChatRoom, console: Console) -> None:
        self.room = room
        self.console = console
        self.current: Participant | None = None
        self.last_name: str | None = None
        self._printed = 0

    def on_message(self, log: tuple[ChatEntry, ...]) -> None:
        for entry in log[self._printed :]:
            self.render(entry)
        self._printed = len(log)

    def render(self, entry: ChatEntry) -> None:
        timestamp = entry.created_at.astimezone().strftime("%H:%M")
        if entry.is_system:
            self.console.print(f"[dim]{timestamp}[/dim] [italic {entry.display_color}]{escape(entry.text)}[/]")
        else:
            author = escape(entry.author_name)
            self.console.print(f"[dim]{timestamp}[/dim] [bold {entry.display_color}]{author}[/]: {escape(entry.text)}")

    @property
    def prompt(self) -> str:
        return f"{self.current.display_name}> " if self.current else "> "

    def handle_line(self, line: str) -> bool:
        """Handle one line of input. Returns False when the user wants to quit."""
        line = line.strip()
        if not line:
            return True
        if not line.startswith("/"):
            self._send(line)
            return True

        command, _, argument = line[1:].partition(" ")
        command = command.lower()
        argument = argument.strip()
        handlers = {
            "join": self._join,
            "rejoin": lambda _: self._join(self.last_name or ""),
            "switch": self._switch,
            "ai": self._toggle_ai,
            "who": lambda _: self._who(),
            "leave": lambda _: self._leave(),
            "help": lambda _: self.console.print(_CHAT_HELP),
        }
        if command == "quit":
            return False
        handler = handlers.get(command)
        if handler is None:
            self._error(f"Unknown command /{command}, type /help")
        else:
            handler(argument)
        return True

    def _send(self, text: str) -> None:
        if self.current is None:
            self._error("Join first with /join NAME")
            return
        self.room.send_message(self.current.id, text)

    def _join(self, name: str) -> None:
        if not name:
            self._error("Usage: /join NAME")
            return
        try:
            participant = self.room.join(name)
        except SimRoomError as e:
            self._error(str(e))
            return
        if self.current is None:
            self.current = participant
            self.last_name = participant.display_name

    def _switch(self, name: str) -> None:
        participant = self.room.find_participant(name) if name else None
        if participant is None or participant.id == MAIN_BOT_ID:
            self._error(f"No user named {name!r}")
            return
        self.current = participant
        self.last_name = participant.display_name

    def _toggle_ai(self, name: str) -> None:
        if not name:
            self._error("Usage: /ai NAME")
            return
        target = self.room.find_participant(name)
        if target is None:
            self._error(f"No user named {name!r}")
            return
        if self.current is not None and target.id == self.current.id:
            self._error("You can't hand yourself to the AI, /switch to another user first")
            return
        if target.id == MAIN_BOT_ID:
            self._error(f"{target.display_name} is always controlled by AI")
            return
        self.room.toggle_automated(target.id)

    def _who(self) -> None:
        table = Table("User", "Control", box=None)
        for participant in self.room.get_roster():
            marker = " (you)" if self.current and participant.id == self.current.id else ""
            table.add_row(
                f"[{participant.display_color}]{escape(participant.display_name)}[/]{marker}",
                "AI" if participant.is_automated else "human",
            )
        self.console.print(table)

    def _leave(self) -> None:
        if self.current is None:
            self._error("You are not in the room")
            return
        self.room.leave(self.current.id)
        self.current = None
        self.console.print(f"You left the room. Type [cyan]/rejoin[/cyan] to join again as {self.last_name}.")

    def _error(self, message: str) -> None:
        self.console.print(f"[red]{escape(message)}[/red]")


async def _chat(config: Config, name: str | None) -> None:
    async with ChatRoom(config, AgnoLanguageModel(config)) as room:
        chat_console = ChatConsole(room, console)
        room.subscribe(EventKind.MESSAGE, chat_console.on_message)
        console.print(_CHAT_HELP)
        if name:
            chat_console.handle_line(f"/join {name}")

        while True:
            try:
                line = await asyncio.to_thread(console.input, chat_console.prompt)
            except (EOFError, KeyboardInterrupt):
                break
            if not chat_console.handle_line(line):
                break
        room.unsubscribe(EventKind.MESSAGE, chat_console.on_message)


@app.command()
def version() -> None:
    """Show the current version of SimRoom."""
    from simroom import __version__  # noqa: PLC0415

    console.print(f"SimRoom version: [bold]{__version__}[/bold]")


@app.command()
def chat(
    name: str | None = typer.Option(None, "--name", "-n", help="Join the room with this name"),
    config_path: Path | None = typer.Option(  # noqa: B008
        None,
        "--config",
        "-c",
        help="Path to a simroom.yaml (defaults to $SIMROOM_CONFIG, then ./simroom.yaml)",
    ),
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        "-l",
        help="Set the logging level (DEBUG, INFO, WARNING, ERROR)",
        case_sensitive=False,
        envvar="LOG_LEVEL",
    ),
) -> None:
    """Open an interactive chat room in the terminal.

    Log records go to the log file; only warnings and errors reach the terminal.
    """
    try:
        config = Config.from_yaml(config_path)
    except ValidationError as exc:
        console.print(f"[red]Error:[/red] Invalid configuration:\n{escape(str(exc))}")
        raise typer.Exit(1) from None
    except (yaml.YAMLError, OSError) as exc:
        console.print(f"[red]Error:[/red] Could not load configuration: {escape(str(exc))}")
        raise typer.Exit(1) from None

    setup_logging(level=log_level, console_level="WARNING")
    asyncio.run(_chat(config, name))


def main() -> None:
    app()


if __name__ == "__main__":
    main()
