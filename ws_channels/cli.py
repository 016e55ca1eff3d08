"""
Channel client CLI.

Manual test client for the channel endpoint: connect with a token, join
topics, push domain events and watch inbound frames.
"""

import asyncio
import json
import logging
import sys
from collections.abc import Awaitable, Callable
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from shared.config.logging import get_logger, mask_token, setup_logging
from shared.config.settings import get_settings
from shared.utils.exceptions import ChannelError, DecodeError
from ws_channels import __version__
from ws_channels.channels import ChatChannel, DeliveryChannel, FeedChannel, TopicChannel
from ws_channels.components.events.router import ChannelRouter
from ws_channels.components.protocol.frame import decode
from ws_channels.components.protocol.topics import NAMESPACE_EVENTS

app = typer.Typer(
    name="ws-channels",
    help="Multiplexed channel client: join topics and push events over one socket",
    add_completion=False,
)
console = Console()
logger = get_logger(__name__)

TOKEN_OPTION = typer.Option(..., "--token", "-t", envvar="WS_CHANNELS_TOKEN", help="Bearer token (opaque)")
URL_OPTION = typer.Option(None, "--url", help="Socket URL (defaults to settings.socket_url)")
WAIT_OPTION = typer.Option(2.0, "--wait", help="Seconds to wait for the join reply")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log SEND/RECV frames"),
):
    """Configure logging and check the settings once for every command."""
    setup_logging()
    if verbose:
        root = logging.getLogger()
        root.setLevel(logging.DEBUG)
        for handler in root.handlers:
            handler.setLevel(logging.DEBUG)

    settings = get_settings()
    config_errors = settings.validate_production()
    if config_errors:
        for error in config_errors:
            logger.error("Configuration error", error=error)
            console.print(f"[yellow]Configuration error: {error}[/yellow]")
        if settings.environment == "production":
            console.print("[red]Refusing to run with an insecure production configuration[/red]")
            raise typer.Exit(1)


# =============================================================================
# Helpers
# =============================================================================


def _require_token(token: str) -> str:
    token = token.strip()
    if not token:
        console.print("[red]A token is required. Pass --token or set WS_CHANNELS_TOKEN.[/red]")
        raise typer.Exit(1)
    return token


def _print_frame(raw: str) -> None:
    try:
        frame = decode(raw)
    except DecodeError:
        console.print(f"[dim]RECV raw[/dim] {raw}")
        return
    console.print(
        f"[cyan]RECV[/cyan] {frame.topic} [bold]{frame.event}[/bold] "
        f"{json.dumps(frame.payload)} [dim]ref={frame.ref}[/dim]"
    )


async def _join_and_wait(router: ChannelRouter, topic: str, wait: float) -> None:
    """Join *topic* and wait up to *wait* seconds for the acknowledgment."""
    settings = get_settings()
    replied = asyncio.Event()
    subscription = router.on(topic, settings.join_ack_event, lambda payload: replied.set())
    try:
        ref = await router.join(topic)
        console.print(f"[blue]SEND[/blue] {topic} phx_join [dim]ref={ref}[/dim]")
        if wait > 0:
            try:
                await asyncio.wait_for(replied.wait(), timeout=wait)
            except asyncio.TimeoutError:
                console.print(f"[yellow]No join reply for {topic} within {wait:.1f}s[/yellow]")
    finally:
        router.off(subscription)

    state = router.registry.state(topic).value.lower()
    console.print(f"[green]✓ {topic}: {state}[/green]")


def _run_session(
    token: str,
    url: Optional[str],
    wait: float,
    channel_factory: Callable[[ChannelRouter], TopicChannel],
    action: Callable[[TopicChannel], Awaitable[str]],
) -> None:
    """Connect, join the channel's topic, run *action*, leave and disconnect."""
    token = _require_token(token)

    async def _session():
        router = ChannelRouter()
        channel = channel_factory(router)
        router.connection.on_message(_print_frame)
        console.print(f"[blue]Connecting with token {mask_token(token)}[/blue]")
        async with router:
            await router.connect(token=token, url=url)
            await _join_and_wait(router, channel.topic, wait)
            ref = await action(channel)
            console.print(f"[blue]SEND[/blue] {channel.topic} [dim]ref={ref}[/dim]")
            await channel.leave()

    try:
        asyncio.run(_session())
    except (ChannelError, ValueError) as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)


# =============================================================================
# Commands
# =============================================================================


@app.command()
def listen(
    topics: List[str] = typer.Option(..., "--topic", help="Topic to join (repeatable)"),
    token: str = TOKEN_OPTION,
    url: Optional[str] = URL_OPTION,
    seconds: float = typer.Option(30.0, "--seconds", "-s", help="How long to listen"),
    wait: float = WAIT_OPTION,
):
    """Join topics and print every inbound frame."""
    token = _require_token(token)

    async def _listen():
        router = ChannelRouter()
        closed = asyncio.Event()
        router.connection.on_message(_print_frame)
        router.on_close(lambda code, reason: closed.set())
        router.on_error(lambda detail: console.print(f"[red]Socket error: {detail}[/red]"))

        async with router:
            await router.connect(token=token, url=url)
            for topic in topics:
                await _join_and_wait(router, topic, wait)
            try:
                await asyncio.wait_for(closed.wait(), timeout=seconds)
                console.print("[yellow]Socket closed by server[/yellow]")
            except asyncio.TimeoutError:
                pass

    try:
        asyncio.run(_listen())
    except (ChannelError, ValueError) as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)


@app.command()
def send(
    topic: str = typer.Option(..., "--topic", help="Topic to join and push on"),
    event: str = typer.Option(..., "--event", "-e", help="Event name"),
    payload: str = typer.Option("{}", "--payload", "-p", help="JSON payload"),
    token: str = TOKEN_OPTION,
    url: Optional[str] = URL_OPTION,
    wait: float = WAIT_OPTION,
):
    """Push one event with an arbitrary JSON payload."""
    try:
        data = json.loads(payload)
    except json.JSONDecodeError as e:
        console.print(f"[red]Payload is not valid JSON: {e}[/red]")
        raise typer.Exit(1)

    _run_session(
        token, url, wait,
        lambda router: TopicChannel(router, topic),
        lambda channel: channel.push(event, data),
    )


@app.command()
def chat(
    room: str = typer.Option(..., "--room", help="Room ID"),
    message: str = typer.Option(..., "--message", "-m", help="Message content"),
    token: str = TOKEN_OPTION,
    url: Optional[str] = URL_OPTION,
    wait: float = WAIT_OPTION,
):
    """Send a chat message to chat:room_<id>."""
    _run_session(
        token, url, wait,
        lambda router: ChatChannel(router, room),
        lambda channel: channel.send_message(message),
    )


@app.command()
def feed(
    user: str = typer.Option(..., "--user", help="User ID"),
    product: str = typer.Option(..., "--product", help="Product ID"),
    action: str = typer.Option("view", "--action", "-a", help="view, like or save"),
    token: str = TOKEN_OPTION,
    url: Optional[str] = URL_OPTION,
    wait: float = WAIT_OPTION,
):
    """Record a view, like or save on feed:user_<id>."""
    if action not in FeedChannel.ACTIONS:
        console.print(f"[red]Unknown action {action!r}; use view, like or save[/red]")
        raise typer.Exit(1)

    _run_session(
        token, url, wait,
        lambda router: FeedChannel(router, user),
        lambda channel: channel.action(action, product),
    )


@app.command()
def location(
    delivery: str = typer.Option(..., "--delivery", help="Delivery ID"),
    lat: str = typer.Option(..., "--lat", help="Latitude"),
    lng: str = typer.Option(..., "--lng", help="Longitude"),
    token: str = TOKEN_OPTION,
    url: Optional[str] = URL_OPTION,
    wait: float = WAIT_OPTION,
):
    """Send a location update to delivery:delivery_<id>."""
    _run_session(
        token, url, wait,
        lambda router: DeliveryChannel(router, delivery),
        lambda channel: channel.update_location(lat, lng),
    )


@app.command()
def topics():
    """Show the known topic namespaces and their events."""
    table = Table(title="Topic Namespaces")
    table.add_column("Namespace", style="cyan")
    table.add_column("Topic", style="green")
    table.add_column("Events", style="yellow")

    patterns = {"chat": "chat:room_<id>", "feed": "feed:user_<id>", "delivery": "delivery:delivery_<id>"}
    for namespace, events in NAMESPACE_EVENTS.items():
        table.add_row(namespace, patterns.get(namespace, f"{namespace}:<id>"), ", ".join(sorted(events)))

    console.print(table)


@app.command()
def version():
    """Show version information."""
    table = Table(title="ws-channels Version")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")

    table.add_row("Client", __version__)
    table.add_row("Python", sys.version.split()[0])

    console.print(table)


if __name__ == "__main__":
    app()
