#!/usr/bin/env python3

from __future__ import annotations
import asyncio
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import typer
from aioconsole import ainput
from rich.console import Console
from rich.markup import escape
from rich.style import Style
from rich.table import Table
from rich.text import Text
from websockets.exceptions import WebSocketException

from shared.log import get_logger, set_level
from shared.utils import join_names
from .client import ChatClient
from .config import ClientConfig, ConfigError
from .state import ChatMessage, ChatState, init_session
from .ws_client import ClientSession, SendError

app = typer.Typer(help="Let's Chat terminal client")
console = Console()
logger = get_logger(__name__)

HELP_TEXT = "/list, /help, /quit  (anything else is sent as a message)"


def format_message(state: ChatState, message: ChatMessage) -> Text:
    """One log line: own messages right-aligned, GIFs shown as links."""
    own = state.is_own(message)
    text = Text(justify="right" if own else "left")
    text.append(message.from_, style="bold magenta" if own else "bold cyan")
    text.append(": ")
    if message.is_gif:
        text.append("[gif] ", style="dim")
        text.append(message.text, style=Style(link=message.text, underline=True))
    else:
        text.append(message.text)
    return text


def roster_table(state: ChatState) -> Table:
    table = Table(title="Active Users")
    table.add_column("User")
    table.add_column("Status")
    table.add_column("Avatar", overflow="fold")
    for user in state.roster:
        name = f"{user.name} (you)" if user.name == state.local_username else user.name
        table.add_row(name, "[green]Online[/]", user.avatar_url)
    return table


class TerminalView:
    """Prints what changed between two snapshots."""

    def __init__(self, out: Console) -> None:
        self.out = out
        self._shown_messages = 0
        self._roster: Optional[Tuple[str, ...]] = None

    def render(self, state: ChatState) -> None:
        names = tuple(state.online_names())
        if self._roster is not None and names != self._roster:
            self.out.print(f"[dim]Online:[/] {escape(join_names(names))}")
        self._roster = names
        for message in state.messages[self._shown_messages:]:
            self.out.print(format_message(state, message))
        self._shown_messages = len(state.messages)


def finished_errors(done: Iterable[asyncio.Task]) -> List[BaseException]:
    """Collect the exceptions of finished tasks so none goes unretrieved."""
    return [t.exception() for t in done if not t.cancelled() and t.exception() is not None]


async def _input_loop(client: ChatClient) -> None:
    while True:
        try:
            line = await ainput(": ")
        except EOFError:
            return
        command = line.strip()
        if command in {"/quit", "/exit"}:
            return
        if command == "/help":
            console.print(HELP_TEXT)
            continue
        if command == "/list":
            console.print(roster_table(client.state))
            continue
        try:
            await client.request_send_message(line)
        except SendError as e:
            console.print(f"[red]Not sent[/] ({escape(str(e))}): {escape(line)}")


@app.command()
def frame(
    username: str = typer.Argument(..., help="Display name to register with"),
):
    """Print the register frame sent on join, and exit."""
    _, envelope = init_session(username)
    console.print(envelope.to_json(), markup=False, highlight=False, soft_wrap=True)


@app.command()
def run(
    username: str = typer.Option(..., prompt="Username", help="Display name to join with"),
    server: Optional[str] = typer.Option(None, help="WebSocket URL of the chat server"),
    config: Optional[Path] = typer.Option(None, help="Path to a YAML config file"),
):
    """Join the chat and start the interactive loop."""
    username = username.strip()
    if not username:
        console.print("[red]Username must not be empty[/]")
        raise typer.Exit(code=2)
    try:
        cfg = ClientConfig.load(config).with_overrides(server_url=server)
    except ConfigError as e:
        console.print(f"[red]Bad config[/]: {escape(str(e))}")
        raise typer.Exit(code=2)
    if cfg.log_level:
        set_level(cfg.log_level)

    async def main_loop() -> None:
        session = ClientSession(cfg.server_url, ping_interval=cfg.ping_interval,
                                ping_timeout=cfg.ping_timeout)
        try:
            await session.connect()
        except (OSError, WebSocketException) as e:
            console.print(f"[red]Cannot connect to {escape(cfg.server_url)}[/]: {escape(str(e))}")
            raise typer.Exit(code=1)

        client = ChatClient(session)
        client.subscribe(TerminalView(console).render)
        console.print(f"[bold green]Joined[/] as {escape(username)} on {escape(cfg.server_url)}. {HELP_TEXT}")

        recv_task = asyncio.create_task(client.run())
        input_task = asyncio.create_task(_input_loop(client))
        try:
            await client.request_register(username)
            done, _ = await asyncio.wait({recv_task, input_task}, return_when=asyncio.FIRST_COMPLETED)
            for error in finished_errors(done):
                logger.error("Client task failed: %s", error)
            if recv_task in done:
                console.print("[red]Disconnected[/]")
        except SendError as e:
            console.print(f"[red]Could not register[/]: {escape(str(e))}")
        finally:
            recv_task.cancel()
            input_task.cancel()
            await session.close()

    asyncio.run(main_loop())


if __name__ == "__main__":
    app()
