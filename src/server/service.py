from __future__ import annotations

import asyncio
import logging
import threading
from http import HTTPStatus
from typing import Any, Callable, Optional
from urllib.parse import urlsplit

import websockets
from websockets.asyncio.server import Server, ServerConnection, broadcast, serve
from websockets.http11 import Request, Response

from contracts.ui_protocol import EVENT_ERROR, EVENT_HELLO, EVENT_STATE_UPDATE, STATE_IDLE

from .config import HEALTHZ_PATH, UIServerConfig
from .events import StickyEventStore, make_event, parse_command

CommandHandler = Callable[[dict[str, Any]], None]


class UIServer:
    """Websocket endpoint for focus timer UIs, served from a background thread.

    Outgoing events are broadcast to every open connection and the sticky ones
    are replayed to clients that join later. Incoming messages are decoded into
    command payloads and passed to `command_handler` on the server thread, so
    the handler must only enqueue them for the host loop.
    """

    def __init__(
        self,
        config: UIServerConfig,
        logger: Optional[logging.Logger] = None,
        *,
        command_handler: Optional[CommandHandler] = None,
    ):
        self._config = config
        self._logger = logger or logging.getLogger("ui_server")
        self._command_handler = command_handler
        self._sticky_events = StickyEventStore()

        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._server: Optional[Server] = None
        self._shutdown: Optional[asyncio.Event] = None
        self._ready = threading.Event()
        self._failure: Optional[BaseException] = None

    @property
    def host(self) -> str:
        return self._config.host

    @property
    def port(self) -> int:
        return self._config.port

    @property
    def websocket_path(self) -> str:
        return self._config.websocket_path

    @property
    def is_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive() and self._server is not None

    def set_command_handler(self, handler: Optional[CommandHandler]) -> None:
        self._command_handler = handler

    # ----- Lifecycle (called from the host thread) -----
    def start(self, timeout_seconds: float = 5.0) -> None:
        if self.is_running:
            self._logger.warning("UI server is already running")
            return

        self._failure = None
        self._ready.clear()
        self._thread = threading.Thread(
            target=self._thread_main,
            name="ui-server",
            daemon=True,
        )
        self._thread.start()

        if not self._ready.wait(timeout_seconds):
            raise RuntimeError(f"UI server did not start within {timeout_seconds:.1f}s")
        if self._failure is not None:
            self._thread = None
            raise RuntimeError(f"UI server startup failed: {self._failure}")

    def stop(self, timeout_seconds: float = 5.0) -> None:
        thread = self._thread
        if thread is None:
            return

        loop, shutdown = self._loop, self._shutdown
        if loop is not None and shutdown is not None:
            try:
                loop.call_soon_threadsafe(shutdown.set)
            except RuntimeError:
                # Loop already closed.
                pass

        thread.join(timeout=timeout_seconds)
        if thread.is_alive():
            self._logger.error("UI server thread did not stop within %.1fs", timeout_seconds)
        self._thread = None

    # ----- Publishing (safe from any thread) -----
    def publish_state(self, state: str, *, message: Optional[str] = None, **payload: Any) -> None:
        fields: dict[str, Any] = {"state": state, **payload}
        if message:
            fields["message"] = message
        self.publish(EVENT_STATE_UPDATE, **fields)

    def publish(self, event_type: str, **payload: Any) -> None:
        message = make_event(event_type, **payload)
        self._sticky_events.remember(event_type, message)

        loop = self._loop
        if loop is None or not self.is_running:
            return
        try:
            loop.call_soon_threadsafe(self._broadcast, message)
        except RuntimeError:
            self._logger.debug("Dropped %s event: server loop is closing", event_type)

    def forget(self, event_type: str) -> None:
        self._sticky_events.forget(event_type)

    # ----- Server thread -----
    def _thread_main(self) -> None:
        try:
            asyncio.run(self._serve())
        except Exception as error:
            self._failure = error
            self._logger.error("UI server failed: %s", error, exc_info=True)
        finally:
            self._server = None
            self._loop = None
            self._shutdown = None
            self._ready.set()

    async def _serve(self) -> None:
        self._loop = asyncio.get_running_loop()
        self._shutdown = asyncio.Event()
        async with serve(
            self._handle_connection,
            self._config.host,
            self._config.port,
            process_request=self._route_request,
            logger=self._logger,
        ) as server:
            self._server = server
            self._logger.info("UI server listening on %s", self._config.websocket_url)
            self._ready.set()
            await self._shutdown.wait()
            self._server = None
        self._logger.info("UI server stopped")

    def _broadcast(self, message: str) -> None:
        server = self._server
        if server is not None:
            broadcast(server.connections, message)

    async def _handle_connection(self, connection: ServerConnection) -> None:
        self._logger.info("Client connected: %s", connection.remote_address)
        try:
            await connection.send(
                make_event(
                    EVENT_HELLO,
                    state=STATE_IDLE,
                    message="Focus timer websocket connected",
                )
            )
            for event in self._sticky_events.snapshot():
                await connection.send(event)
            async for message in connection:
                self._handle_client_message(message)
        except websockets.exceptions.ConnectionClosed:
            pass
        finally:
            self._logger.info("Client disconnected: %s", connection.remote_address)

    def _handle_client_message(self, message: str | bytes) -> None:
        payload = parse_command(message)
        if payload is None:
            self._logger.warning("Ignoring malformed UI message: %r", message)
            self.publish(EVENT_ERROR, message="Malformed command message")
            return

        handler = self._command_handler
        if handler is None:
            self._logger.debug("No command handler registered; dropping %s", payload)
            return
        try:
            handler(payload)
        except Exception as error:
            self._logger.error("Command handler failed: %s", error, exc_info=True)

    def _route_request(self, connection: ServerConnection, request: Request) -> Optional[Response]:
        path = urlsplit(request.path).path
        if path == self._config.websocket_path:
            return None
        if path == HEALTHZ_PATH:
            return connection.respond(HTTPStatus.OK, "ok\n")
        return connection.respond(HTTPStatus.NOT_FOUND, "not found\n")
