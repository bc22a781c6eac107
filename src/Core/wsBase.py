"""
WebSocket Base Manager Module
==============================

Thread-safe foundation for WebSocket connection management. Request
handlers run in FastAPI's thread pool and the reminder job runs in its own
daemon thread; both need to push messages to WebSocket clients that live on
the main asyncio loop. ``send_from_thread()`` bridges the two with
``asyncio.run_coroutine_threadsafe``.

Usage Example:
-------------
    manager = LogWebSocketManager()
    manager.set_main_loop(asyncio.get_running_loop())   # in lifespan

    @app.websocket("/logs")
    async def websocket_logs(ws: WebSocket):
        await manager.register(ws)
        try:
            while True:
                await manager.handle_message(ws, await ws.receive_text())
        finally:
            manager.unregister(ws)

    def background_task():
        manager.send_from_thread({"msg_type": "log", "message": "done"})
"""

from fastapi import WebSocket
import asyncio
from typing import List, Optional, Dict, Any
import json
import threading


class WebSocketManager:
    """
    Base WebSocket manager for multiple concurrent client connections.

    Attributes:
        clients (List[WebSocket]): Currently active WebSocket connections
        main_loop (Optional[asyncio.AbstractEventLoop]): FastAPI's event loop
        _lock (threading.Lock): Protects ``clients`` across threads
    """

    def __init__(self):
        self.clients: List[WebSocket] = []
        self.main_loop: Optional[asyncio.AbstractEventLoop] = None
        self._lock = threading.Lock()

    def set_main_loop(self, loop: asyncio.AbstractEventLoop):
        """
        Register FastAPI's main event loop.

        Must be called during application startup; without it
        ``send_from_thread()`` cannot schedule broadcasts.
        """
        self.main_loop = loop

    async def register(self, ws: WebSocket):
        """
        Accept and register a new client.

        The client is added before ``accept()`` so no message is lost during
        the handshake; a failed handshake unregisters it again.
        """
        with self._lock:
            if ws not in self.clients:
                self.clients.append(ws)

        try:
            await ws.accept()
            print(f"[WSBase] Client registered. Total clients: {len(self.clients)}")
        except Exception:
            self.unregister(ws)
            raise

    def unregister(self, ws: WebSocket):
        """Remove a client. Idempotent; does not close the socket."""
        with self._lock:
            if ws in self.clients:
                self.clients.remove(ws)
                print(f"[WSBase] Client unregistered. Total clients: {len(self.clients)}")

    @property
    def has_clients(self) -> bool:
        with self._lock:
            return len(self.clients) > 0

    async def broadcast(self, message: Dict[str, Any]):
        """
        Send ``message`` as JSON to every client.

        The client list is copied under the lock and sent to without it;
        clients whose send fails are unregistered afterwards.
        """
        to_remove = []

        with self._lock:
            current_clients = list(self.clients)

        for ws in current_clients:
            try:
                await ws.send_text(json.dumps(message, default=str))
            except Exception:
                to_remove.append(ws)

        for ws in to_remove:
            self.unregister(ws)

    def send_from_thread(self, message: Dict[str, Any]):
        """
        Schedule a broadcast on the main loop from any thread.

        Fire and forget: the caller never waits for delivery.
        """
        if not self.has_clients:
            return

        if self.main_loop and self.main_loop.is_running():
            asyncio.run_coroutine_threadsafe(
                self.broadcast(message), self.main_loop
            )

    async def handle_message(self, ws: WebSocket, message: str):
        """Template method for incoming client messages; logs by default."""
        print(f"[WSBase] Received message from client: {message}")
