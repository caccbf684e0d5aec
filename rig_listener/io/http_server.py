#!/usr/bin/env python3

"""
HTTP Server for Rig-Listener
Serves the radio state as JSON, pushes changes to dashboards over
Server-Sent Events and accepts tuning commands.

Part of the Rig-Listener project.
"""

import asyncio
import json
import logging
import math
import time
from typing import Any, Dict, Optional, Set

from aiohttp import web

from rig_listener import __version__, constants
from rig_listener.core.radio_state import RadioState
from rig_listener.protocols.base import RadioProtocol

# Configure logging
logger = logging.getLogger('http_server')

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Methods': 'GET, POST, OPTIONS',
    'Access-Control-Allow-Headers': 'Content-Type',
}


def _sse_message(payload: Dict[str, Any]) -> bytes:
    return f"data: {json.dumps(payload)}\n\n".encode('utf-8')


class Subscriber:
    """One open /stream response."""

    def __init__(self, response: web.StreamResponse, remote: Optional[str]):
        self.response = response
        self.remote = remote or "unknown"
        # Set when the server drops the subscriber or shuts down
        self.closed = asyncio.Event()

    async def send(self, payload: Dict[str, Any]) -> None:
        await self.response.write(_sse_message(payload))


@web.middleware
async def json_error_middleware(request: web.Request, handler):
    """Answer unknown paths and methods with a JSON 404."""
    try:
        return await handler(request)
    except (web.HTTPNotFound, web.HTTPMethodNotAllowed):
        return web.json_response({"error": "Not found"}, status=404)


async def _add_cors_headers(request: web.Request, response: web.StreamResponse) -> None:
    response.headers.update(CORS_HEADERS)


class BridgeServer:
    """
    HTTP + SSE front end of the bridge.

    State changes arrive on whatever thread mutated the RadioState and are
    handed to the event loop with call_soon_threadsafe. A single broadcast
    task drains them in order, so every subscriber sees updates in the
    order the store applied them.
    """

    def __init__(self,
                 state: RadioState,
                 protocol: RadioProtocol,
                 transport,
                 host: str = constants.DEFAULT_HTTP_HOST,
                 port: int = constants.DEFAULT_HTTP_PORT,
                 ptt_enabled: bool = False,
                 radio_name: str = "unconfigured"):
        """
        Initialize the bridge server.

        Args:
            state: Store to serve and watch
            protocol: Codec used to encode commands
            transport: Object with send(bytes) -> bool
            host: Host to bind to ('0.0.0.0' for all interfaces)
            port: HTTP port to listen on
            ptt_enabled: Whether POST /ptt may key the transmitter
            radio_name: Label reported by GET /
        """
        self.state = state
        self.protocol = protocol
        self.transport = transport
        self.host = host
        self.port = port
        self.ptt_enabled = ptt_enabled
        self.radio_name = radio_name

        # Set of connected SSE clients (only touched on the event loop)
        self.subscribers: Set[Subscriber] = set()

        self.app: Optional[web.Application] = None
        self.runner: Optional[web.AppRunner] = None
        self.running = False

        # Broadcast plumbing, created when the app starts on a loop
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._events: Optional[asyncio.Queue] = None
        self.broadcast_task: Optional[asyncio.Task] = None

        # Statistics
        self.total_subscribers = 0
        self.events_broadcast = 0
        self.commands_handled = 0
        self.commands_dropped = 0
        self.dropped_subscribers = 0
        self.start_time = 0

    def create_app(self) -> web.Application:
        """Build the aiohttp application with routes and lifecycle hooks."""
        app = web.Application(
            client_max_size=constants.MAX_REQUEST_BODY,
            middlewares=[json_error_middleware]
        )

        app.router.add_get('/', self.handle_info)
        app.router.add_get('/status', self.handle_status)
        app.router.add_get('/stream', self.handle_stream)
        app.router.add_post('/freq', self.handle_freq)
        app.router.add_post('/mode', self.handle_mode)
        app.router.add_post('/ptt', self.handle_ptt)
        app.router.add_route('OPTIONS', '/{tail:.*}', self.handle_options)

        app.on_response_prepare.append(_add_cors_headers)
        app.on_startup.append(self._on_startup)
        app.on_shutdown.append(self._on_shutdown)
        app.on_cleanup.append(self._on_cleanup)

        self.app = app
        return app

    async def start(self) -> None:
        """
        Start serving.

        Raises:
            OSError: If the address cannot be bound (e.g. port in use)
        """
        self.runner = web.AppRunner(self.create_app())
        await self.runner.setup()

        site = web.TCPSite(self.runner, self.host, self.port)
        try:
            await site.start()
        except OSError as e:
            logger.error(f"Cannot listen on {self.host}:{self.port}: {e}")
            await self.runner.cleanup()
            self.runner = None
            raise

        self.running = True
        self.start_time = time.time()
        logger.info(f"HTTP server running at http://{self.host}:{self.port}")
        logger.info(f"Dashboard connects to: http://localhost:{self.port}")

    async def stop(self) -> None:
        """Stop the server and release all subscribers."""
        if not self.runner:
            return

        logger.info("Stopping HTTP server...")
        await self.runner.cleanup()
        self.runner = None
        self.running = False
        logger.info("HTTP server stopped")

    async def _on_startup(self, app: web.Application) -> None:
        self._loop = asyncio.get_running_loop()
        self._events = asyncio.Queue()
        self.broadcast_task = asyncio.create_task(self._broadcast_loop())
        self.state.add_listener(self._on_state_change)

    async def _on_shutdown(self, app: web.Application) -> None:
        # Wakes every /stream handler so it returns
        for subscriber in list(self.subscribers):
            subscriber.closed.set()

    async def _on_cleanup(self, app: web.Application) -> None:
        self.state.remove_listener(self._on_state_change)
        self._loop = None

        if self.broadcast_task:
            self.broadcast_task.cancel()
            await asyncio.gather(self.broadcast_task, return_exceptions=True)
            self.broadcast_task = None

    def _on_state_change(self, prop: str, value: Any) -> None:
        """
        RadioState listener. May run on any thread.
        """
        loop = self._loop
        if loop is None or loop.is_closed():
            return

        event = {"type": "update", "prop": prop, "value": value}
        try:
            loop.call_soon_threadsafe(self._events.put_nowait, event)
        except RuntimeError as e:
            # Loop closed between the check and the call
            logger.debug(f"Dropping {prop} update: {e}")

    async def _broadcast_loop(self) -> None:
        """
        Deliver queued state changes to all subscribers, in order.
        """
        try:
            while True:
                event = await self._events.get()
                await self._broadcast(event)

        except asyncio.CancelledError:
            logger.debug("Broadcast loop cancelled")
            raise

    async def _broadcast(self, event: Dict[str, Any]) -> None:
        self.events_broadcast += 1
        if not self.subscribers:
            return

        stale = []
        for subscriber in list(self.subscribers):
            try:
                await subscriber.send(event)
            except (ConnectionError, RuntimeError) as e:
                logger.debug(f"Dropping SSE client {subscriber.remote}: {e}")
                stale.append(subscriber)
                self.dropped_subscribers += 1

        for subscriber in stale:
            self.subscribers.discard(subscriber)
            subscriber.closed.set()

    async def handle_info(self, request: web.Request) -> web.Response:
        return web.json_response({
            "name": constants.APP_NAME,
            "version": __version__,
            "connected": self.state.connected,
            "radio": self.radio_name,
        })

    async def handle_status(self, request: web.Request) -> web.Response:
        return web.json_response(self.state.snapshot())

    async def handle_options(self, request: web.Request) -> web.Response:
        return web.Response(status=204)

    async def handle_stream(self, request: web.Request) -> web.StreamResponse:
        """
        Server-Sent Events stream: one init event, then one event per change.
        """
        response = web.StreamResponse(headers={
            'Content-Type': 'text/event-stream',
            'Cache-Control': 'no-cache',
            'Connection': 'keep-alive',
        })
        await response.prepare(request)

        subscriber = Subscriber(response, request.remote)
        init = self.state.snapshot()
        init.pop("timestamp")
        init["type"] = "init"

        self.subscribers.add(subscriber)
        self.total_subscribers += 1
        logger.info(f"SSE client connected: {subscriber.remote} ({len(self.subscribers)} total)")

        try:
            await subscriber.send(init)
            while not subscriber.closed.is_set():
                try:
                    await asyncio.wait_for(subscriber.closed.wait(),
                                           timeout=constants.SSE_KEEPALIVE_INTERVAL)
                except asyncio.TimeoutError:
                    await response.write(b": keepalive\n\n")

        except (ConnectionError, RuntimeError) as e:
            logger.debug(f"SSE client {subscriber.remote} went away: {e}")

        finally:
            self.subscribers.discard(subscriber)
            logger.info(f"SSE client disconnected: {subscriber.remote}")

        return response

    async def _read_json(self, request: web.Request) -> Dict[str, Any]:
        """A missing or malformed body reads as an empty object."""
        try:
            body = await request.json()
        except (ValueError, UnicodeDecodeError):
            return {}
        return body if isinstance(body, dict) else {}

    async def _send(self, command: bytes, description: str) -> bool:
        self.commands_handled += 1
        loop = asyncio.get_running_loop()
        # Serial writes block; keep them off the event loop
        sent = await loop.run_in_executor(None, self.transport.send, command)
        if sent:
            logger.info(f"[CMD] {description}")
        else:
            self.commands_dropped += 1
            logger.warning(f"[CMD] {description} dropped - radio not connected")
        return sent

    @staticmethod
    def _error(message: str, status: int) -> web.Response:
        return web.json_response({"error": message}, status=status)

    async def handle_freq(self, request: web.Request) -> web.Response:
        body = await self._read_json(request)
        freq = body.get("freq")
        if freq is None or freq == "":
            return self._error("Missing freq", 400)

        if isinstance(freq, bool):
            return self._error("Invalid freq", 400)
        try:
            hz = float(freq)
        except (TypeError, ValueError, OverflowError):
            return self._error("Invalid freq", 400)
        if not math.isfinite(hz) or hz <= 0:
            return self._error("Invalid freq", 400)

        command = self.protocol.encode_set_frequency(hz)
        if command is None:
            return self._error("Frequency out of range", 400)

        await self._send(command, f"Set freq: {int(round(hz))} Hz")
        return web.json_response({"success": True})

    async def handle_mode(self, request: web.Request) -> web.Response:
        body = await self._read_json(request)
        mode = body.get("mode")
        if not mode or not isinstance(mode, str):
            return self._error("Missing mode", 400)

        command = self.protocol.encode_set_mode(mode)
        if command is None:
            logger.warning(f"[CMD] Unknown mode: {mode}")
            return web.json_response({"success": True, "warning": f"Unknown mode: {mode}"})

        await self._send(command, f"Set mode: {mode.upper()}")
        return web.json_response({"success": True})

    async def handle_ptt(self, request: web.Request) -> web.Response:
        body = await self._read_json(request)
        on = bool(body.get("ptt"))

        if on and not self.ptt_enabled:
            logger.warning("[CMD] PTT blocked - ptt_enabled is false in config")
            return self._error("PTT disabled in configuration", 403)

        await self._send(self.protocol.encode_set_ptt(on), f"PTT: {'ON' if on else 'OFF'}")
        return web.json_response({"success": True})

    def get_status(self) -> Dict[str, Any]:
        """
        Get the current status of the HTTP server.

        Returns:
            dict: Status information
        """
        return {
            "running": self.running,
            "host": self.host,
            "port": self.port,
            "subscribers": len(self.subscribers),
            "total_subscribers": self.total_subscribers,
            "events_broadcast": self.events_broadcast,
            "commands_handled": self.commands_handled,
            "commands_dropped": self.commands_dropped,
            "dropped_subscribers": self.dropped_subscribers,
            "uptime_seconds": time.time() - self.start_time if self.start_time > 0 else 0,
        }
