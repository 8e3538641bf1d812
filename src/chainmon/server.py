"""HTTP and WebSocket endpoints over a running :class:`ChainMonitor`.

``GET /state``
    Best state per chain as a JSON object keyed by ticker.
``GET /ws``
    Init message, snapshot, then one message per live update.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import weakref
from collections.abc import AsyncGenerator

import aiohttp
from aiohttp import WSCloseCode, web

from chainmon.monitor import ChainMonitor
from chainmon.state.feed import FeedMessage

_logger = logging.getLogger(__name__)

MONITOR_KEY = web.AppKey("monitor", ChainMonitor)
_SOCKETS_KEY = web.AppKey("sockets", weakref.WeakSet[web.WebSocketResponse])


async def _state(request: web.Request) -> web.Response:
    monitor = request.app[MONITOR_KEY]
    best = await monitor.best_states_by_ticker()
    return web.json_response({chain_ticker: state.to_wire() for chain_ticker, state in best.items()})


async def _send_feed(ws: web.WebSocketResponse, feed: AsyncGenerator[FeedMessage, None], peer: str) -> None:
    """Forward the feed to *ws* until either side goes away."""
    try:
        async for message in feed:
            if ws.closed:
                break
            await ws.send_json(message.to_wire())
    except (ConnectionResetError, aiohttp.ClientError, RuntimeError) as exc:
        _logger.debug("Send to %s failed: %s", peer, exc)
    finally:
        await ws.close()


async def _websocket(request: web.Request) -> web.WebSocketResponse:
    ws = web.WebSocketResponse(heartbeat=30.0)
    await ws.prepare(request)

    peer = request.remote or "unknown"
    _logger.info("Subscriber connected: %s", peer)
    request.app[_SOCKETS_KEY].add(ws)

    feed = request.app[MONITOR_KEY].subscribe()
    sender = asyncio.create_task(_send_feed(ws, feed, peer), name=f"feed:{peer}")
    try:
        # Incoming messages are ignored; reading is how a close is noticed.
        async for _msg in ws:
            pass
    finally:
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await sender
        await feed.aclose()
        request.app[_SOCKETS_KEY].discard(ws)
        _logger.info("Subscriber disconnected: %s", peer)
    return ws


async def _close_sockets(app: web.Application) -> None:
    for ws in set(app[_SOCKETS_KEY]):
        await ws.close(code=WSCloseCode.GOING_AWAY, message=b"Server shutdown")


def create_app(monitor: ChainMonitor) -> web.Application:
    """Build the :class:`aiohttp.web.Application` serving *monitor*."""
    app = web.Application()
    app[MONITOR_KEY] = monitor
    app[_SOCKETS_KEY] = weakref.WeakSet()
    app.router.add_get("/state", _state)
    app.router.add_get("/ws", _websocket)
    app.on_shutdown.append(_close_sockets)
    return app
