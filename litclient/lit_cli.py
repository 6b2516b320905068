#!/usr/bin/env python3

from __future__ import annotations
import asyncio
import json
import shlex
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional

import typer
from aioconsole import ainput
from websockets.exceptions import WebSocketException
from rich.console import Console
from rich.table import Table

from litclient.client import LitClient
from shared.config import ClientConfig, load_config
from shared.errors import LitClientError, RemoteError
from shared.log import configure_root_logging, get_logger
from shared.utils import split_hostport

app = typer.Typer(help="LIT node RPC client")
console = Console()
logger = get_logger(__name__)


@app.callback()
def main_options(
    ctx: typer.Context,
    host: Optional[str] = typer.Option(None, help="Node RPC host"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Node RPC port"),
    config: Optional[Path] = typer.Option(None, "--config", "-c", help="YAML config file"),
    timeout: Optional[float] = typer.Option(None, help="Seconds to wait for each reply"),
    log_level: str = typer.Option("WARNING", help="Root log level"),
):
    """Connect to a LIT node's RPC websocket."""
    configure_root_logging(log_level)
    try:
        ctx.obj = load_config(config, host=host, rpc_port=port, request_timeout=timeout)
    except LitClientError as e:
        console.print(f"[red]Config error[/]: {e}")
        raise typer.Exit(code=2)


def _run(ctx: typer.Context, action: Callable[[LitClient], Awaitable[Any]]) -> Any:
    config: ClientConfig = ctx.obj

    async def runner() -> Any:
        async with LitClient(config) as lit:
            return await action(lit)

    try:
        return asyncio.run(runner())
    except RemoteError as e:
        console.print(f"[red]Node error[/]: {e.error}")
    except LitClientError as e:
        console.print(f"[red]Error[/]: {e}")
    except (OSError, WebSocketException) as e:
        console.print(f"[red]Cannot reach node at {config.url}[/]: {e}")
    raise typer.Exit(code=1)


def _table(title: str, rows: List[Dict[str, Any]], columns: List[str]) -> Table:
    table = Table(title=title)
    for column in columns:
        table.add_column(column)
    for row in rows:
        table.add_row(*("" if row.get(c) is None else str(row.get(c)) for c in columns))
    return table


@app.command()
def info(ctx: typer.Context):
    """Show the node's LN address and listening status."""
    async def action(lit: LitClient):
        return await lit.get_ln_address(), await lit.is_listening()

    address, listening = _run(ctx, action)
    console.print(f"[bold]LN address[/]: {address}")
    console.print(f"[bold]Listening[/]: {'[green]yes[/]' if listening else '[yellow]no[/]'}")


@app.command()
def listen(ctx: typer.Context, port: Optional[int] = typer.Argument(None, help="Peer port (default from config)")):
    """Make the node accept inbound peer connections."""
    _run(ctx, lambda lit: lit.listen(port))
    console.print(f"Node listening on port {port or ctx.obj.peer_port}")


@app.command()
def connect(
    ctx: typer.Context,
    address: str = typer.Argument(..., help="Peer LN address"),
    peer: Optional[str] = typer.Option(None, help="Peer host or host:port"),
):
    """Connect the node to a peer."""
    host, port = "", ctx.obj.peer_port
    if peer:
        parsed = split_hostport(peer)
        host, port = parsed if parsed else (peer, ctx.obj.peer_port)
    _run(ctx, lambda lit: lit.connect(address, host, port))
    console.print(f"[green]Connected[/] to {address}")


@app.command()
def peers(ctx: typer.Context):
    """List connected peers."""
    rows = _run(ctx, lambda lit: lit.list_connections())
    console.print(_table("Peers", rows, ["PeerNumber", "Nickname", "RemoteHost"]))


@app.command()
def balances(ctx: typer.Context):
    """List balances per coin type."""
    rows = _run(ctx, lambda lit: lit.list_balances())
    console.print(_table("Balances", rows, ["CoinType", "SyncHeight", "ChanTotal", "TxoTotal", "MatureWitty", "FeeRate"]))


@app.command()
def utxos(ctx: typer.Context):
    """List the wallet's unspent outputs."""
    rows = _run(ctx, lambda lit: lit.list_utxos())
    console.print(_table("UTXOs", rows, ["OutPoint", "Am", "Height", "CoinType", "Witty"]))


@app.command()
def channels(ctx: typer.Context, all_: bool = typer.Option(False, "--all", help="Include closed channels")):
    """List payment channels."""
    rows = _run(ctx, lambda lit: lit.list_channels())
    if not all_:
        rows = [row for row in rows if not row.get("Closed")]
    console.print(_table("Channels", rows, ["CIdx", "PeerIdx", "CoinType", "Capacity", "MyBalance", "StateNum", "Closed"]))


@app.command()
def send(ctx: typer.Context, address: str, amount: int):
    """Send coins to an address."""
    txid = _run(ctx, lambda lit: lit.send(address, amount))
    console.print(f"[green]Sent[/] {amount} to {address}: {txid}")


@app.command("close-channel")
def close_channel(ctx: typer.Context, channel: int):
    """Cooperatively close a channel."""
    _run(ctx, lambda lit: lit.close_channel(channel))
    console.print(f"[green]Closed[/] channel {channel}")


# shell verb -> coroutine factory; arguments are parsed as JSON where possible
_SHELL_COMMANDS: Dict[str, Callable[..., Awaitable[Any]]] = {
    "info": lambda lit: lit.get_ln_address(),
    "listening": lambda lit: lit.is_listening(),
    "listen": lambda lit, port=None: lit.listen(port),
    "connect": lambda lit, address, host="", port=None: lit.connect(address, host, port or lit.config.peer_port),
    "peers": lambda lit: lit.list_connections(),
    "balances": lambda lit: lit.list_balances(),
    "utxos": lambda lit: lit.list_utxos(),
    "channels": lambda lit: lit.list_channels(),
    "send": lambda lit, address, amount: lit.send(address, amount),
    "push": lambda lit, channel, amount: lit.push(channel, amount),
    "close": lambda lit, channel: lit.close_channel(channel),
    "oracles": lambda lit: lit.list_oracles(),
    "contracts": lambda lit: lit.list_contracts(),
}


def _parse_arg(token: str) -> Any:
    try:
        return json.loads(token)
    except json.JSONDecodeError:
        return token


@app.command()
def shell(ctx: typer.Context):
    """Interactive session over one connection. Raw calls: /call <Method> <json>."""
    config: ClientConfig = ctx.obj

    async def main_loop() -> None:
        async with LitClient(config) as lit:
            console.print(f"[bold green]Connected[/] to {config.url}")
            while True:
                line = (await ainput(": ")).strip()
                if not line:
                    continue
                if line in {"/quit", "/exit"}:
                    break
                if line == "/help":
                    console.print(", ".join(sorted(_SHELL_COMMANDS)) + ", /call <Method> <json>, /quit")
                    continue
                try:
                    if line.startswith("/call "):
                        _, method, *rest = line.split(" ", 2)
                        result = await lit.call(method, json.loads(rest[0]) if rest else {})
                    else:
                        name, *args = shlex.split(line)
                        command = _SHELL_COMMANDS.get(name)
                        if command is None:
                            console.print("Unknown command. /help")
                            continue
                        result = await command(lit, *(_parse_arg(a) for a in args))
                except (LitClientError, TypeError, ValueError) as e:
                    console.print(f"[red]{type(e).__name__}[/]: {getattr(e, 'error', e)}")
                    continue
                if result is None:
                    console.print("[dim]ok[/]")
                else:
                    console.print_json(data=result)

    try:
        asyncio.run(main_loop())
    except (OSError, WebSocketException) as e:
        console.print(f"[red]Cannot reach node at {config.url}[/]: {e}")
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
