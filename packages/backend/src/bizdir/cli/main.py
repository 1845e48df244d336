"""bizdir CLI — run the realtime server and poke at a running one.

Usage:
    bizdir serve                                  # ws://0.0.0.0:3001/ws
    bizdir serve --handler relay --port 3002      # plain relay mode
    bizdir stats                                  # connections, topics, analytics
    bizdir subscribers 42                         # connection ids on business 42
    bizdir notify 42 --data '{"name": "Acme"}'    # push an update to business 42
    bizdir notify 42 --type new_review --data '{"rating": 5}'
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import json
import os
import sys
from typing import Optional

import click
import httpx

from bizdir import __version__
from bizdir.config import WS_HANDLERS

# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------

DEFAULT_API_URL = "http://localhost:3001"


def _api_url() -> str:
    return os.environ.get("BIZDIR_API_URL", DEFAULT_API_URL).rstrip("/")


def _client() -> httpx.AsyncClient:
    """Build an async HTTP client pointed at the bizdir server."""
    return httpx.AsyncClient(base_url=_api_url(), timeout=10.0)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _run(coro):
    """Run an async coroutine from a synchronous Click handler.

    Handles nested event loops (e.g. CliRunner inside an async test)
    by offloading to a thread.
    """
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(coro)
    else:
        with concurrent.futures.ThreadPoolExecutor(max_workers=1) as pool:
            return pool.submit(asyncio.run, coro).result()


def _fail(message: str):
    click.secho(f"Error: {message}", fg="red", err=True)
    sys.exit(1)


def _pretty_json(data: dict | list) -> str:
    return json.dumps(data, indent=2, default=str)


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------


@click.group()
@click.version_option(version=__version__, prog_name="bizdir")
def main():
    """bizdir — live business notifications over WebSocket."""


# ---------------------------------------------------------------------------
# bizdir serve
# ---------------------------------------------------------------------------


@main.command()
@click.option("--host", help="Bind address (default: BIZDIR_WS_HOST or 0.0.0.0)")
@click.option("--port", type=int, help="Bind port (default: BIZDIR_WS_PORT or 3001)")
@click.option(
    "--handler",
    type=click.Choice(WS_HANDLERS),
    help="Frame processor: notifications (subscribe protocol) or relay",
)
@click.option("--reload", is_flag=True, help="Auto-reload on code changes (dev only)")
def serve(host: Optional[str], port: Optional[int], handler: Optional[str], reload: bool):
    """Run the WebSocket + HTTP server."""
    import uvicorn

    # Overrides go through the environment so the app module picks them up
    # (uvicorn imports bizdir.main:app itself, in a subprocess when reloading).
    if host:
        os.environ["BIZDIR_WS_HOST"] = host
    if port:
        os.environ["BIZDIR_WS_PORT"] = str(port)
    if handler:
        os.environ["BIZDIR_WS_HANDLER"] = handler

    from bizdir.config import Settings

    cfg = Settings()
    click.echo(
        f"Serving {cfg.ws_handler} handler on "
        f"ws://{cfg.ws_host}:{cfg.ws_port}{cfg.ws_path}"
    )
    uvicorn.run(
        "bizdir.main:app",
        host=cfg.ws_host,
        port=cfg.ws_port,
        reload=reload,
        ws_ping_interval=cfg.ws_ping_interval,
        ws_ping_timeout=cfg.ws_ping_timeout,
        log_level=cfg.log_level.lower(),
    )


# ---------------------------------------------------------------------------
# bizdir stats
# ---------------------------------------------------------------------------


@main.command()
@click.option("--json", "as_json", is_flag=True, help="Print raw JSON")
def stats(as_json: bool):
    """Show live connection and subscription counts."""
    _run(_stats_impl(as_json))


async def _stats_impl(as_json: bool):
    async with _client() as c:
        r = await c.get("/api/v1/realtime/stats")
        r.raise_for_status()
        data = r.json()

    if as_json:
        click.echo(_pretty_json(data))
        return

    analytics = data.get("analytics", {})
    click.secho(f"Realtime ({data['handler']} handler)", bold=True)
    click.echo(f"  Connections:    {data['connections']}")
    click.echo(f"  Connects:       {analytics.get('connects_total', 0)}")
    click.echo(f"  Disconnects:    {analytics.get('disconnects_total', 0)}")
    click.echo(f"  Errors:         {analytics.get('errors_total', 0)}")

    topics = data.get("topics", {})
    if topics:
        click.echo()
        click.secho("  Subscribed businesses:", bold=True)
        for business_id, count in topics.items():
            click.echo(f"    #{business_id:<10}  {count} subscriber(s)")


# ---------------------------------------------------------------------------
# bizdir subscribers
# ---------------------------------------------------------------------------


@main.command()
@click.argument("business_id", type=int)
def subscribers(business_id: int):
    """List connection ids subscribed to BUSINESS_ID."""
    _run(_subscribers_impl(business_id))


async def _subscribers_impl(business_id: int):
    async with _client() as c:
        r = await c.get(f"/api/v1/businesses/{business_id}/subscribers")
        if r.status_code == 422:
            _fail(r.json().get("detail", "invalid business id"))
        r.raise_for_status()
        ids = r.json()["subscribers"]

    if not ids:
        click.echo(f"No subscribers for business #{business_id}.")
        return
    click.secho(f"Business #{business_id}: {len(ids)} subscriber(s)", bold=True)
    for connection_id in ids:
        click.echo(f"  connection {connection_id}")


# ---------------------------------------------------------------------------
# bizdir notify
# ---------------------------------------------------------------------------


@main.command()
@click.argument("business_id", type=int)
@click.option(
    "--type", "event_type",
    type=click.Choice(["update", "new_review"]),
    default="update",
    show_default=True,
    help="Event type",
)
@click.option("--data", "data_json", default="{}", help="Event payload as a JSON object")
def notify(business_id: int, event_type: str, data_json: str):
    """Push an event to every client subscribed to BUSINESS_ID."""
    try:
        data = json.loads(data_json)
    except json.JSONDecodeError as e:
        _fail(f"--data is not valid JSON: {e}")
    if not isinstance(data, dict):
        _fail("--data must be a JSON object")

    _run(_notify_impl(business_id, event_type, data))


async def _notify_impl(business_id: int, event_type: str, data: dict):
    async with _client() as c:
        r = await c.post(
            f"/api/v1/businesses/{business_id}/notifications",
            json={"type": event_type, "data": data},
        )
        if r.status_code == 422:
            _fail(_pretty_json(r.json().get("detail", "invalid request")))
        r.raise_for_status()
        result = r.json()

    color = "green" if result["delivered"] else "yellow"
    click.secho(
        f"{result['type']} → business #{result['business_id']}: "
        f"delivered to {result['delivered']} connection(s)",
        fg=color,
    )


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    main()
