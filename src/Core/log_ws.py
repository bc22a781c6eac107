"""
Log WebSocket Management Module
================================

Real-time log streaming over the ``/logs`` WebSocket. Journey lifecycle
events (started, auto-finalized, finalized), reminder runs and failures are
broadcast to every connected monitoring client.

Message Format:
--------------
    {
        "msg_type": "log" | "warning" | "error",
        "message": "[JOURNEY] W-001 auto-finalized journey 42 (Inactive: ...)",
        "timestamp": "2025-03-10T15:00:00+00:00"
    }

Usage Example:
-------------
    from src.Core import log_ws

    log_ws.log_from_thread("[NOTIFY] 12 reminders sent", "log")
    log_ws.log_from_thread("[JOURNEY] Finalize check failed", "error")
"""

from datetime import datetime, timezone
from typing import Dict, Any
from fastapi import WebSocket
from .wsBase import WebSocketManager


def log_from_thread(message: str, msg_type: str = "log"):
    """
    Thread-safe entry point for broadcasting a log line.

    Args:
        message: Log message content
        msg_type: "log" (default), "warning" or "error"

    Behavior:
        - Clients connected: the message is scheduled for broadcast
        - No clients: the message is printed to the console only
    """
    if log_ws_manager.has_clients:
        payload: Dict[str, Any] = {
            "msg_type": msg_type,
            "message": str(message),
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        log_ws_manager.send_from_thread(payload)
    else:
        print(f"[LOG-BROADCAST] {msg_type.upper()}: {message}")


class LogWebSocketManager(WebSocketManager):
    """
    WebSocket manager specialized for log streaming.

    Clients only listen; anything they send is printed for debugging.
    """

    async def handle_message(self, ws: WebSocket, message: str):
        print(f"[LOG-WS] Received message from client: {message}")


# ============================================================
# GLOBAL LOG WEBSOCKET MANAGER INSTANCE
# ============================================================
log_ws_manager = LogWebSocketManager()
