"""
src/main.py
============================================
FastAPI Application for Journey Tracking
============================================

Main entry point of the journey (jornada) tracking backend. Field workers'
mobile apps open and close journeys and stream GPS + speed samples over
REST; administrators read daily and monthly summaries.

Architecture Overview:
---------------------
- REST API: journeys, worker push tokens and admin dashboard
- WebSocket: real-time system logs streamed via /logs
- Background Services: daily start-of-journey push reminder (07:00 local)
- Errors: domain errors (src.Core.errors) rendered as {"detail": message}
"""

# Environment Configuration
from dotenv import load_dotenv
import os
load_dotenv()

# FastAPI Core
from fastapi import FastAPI, Request, WebSocket
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import asyncio

from src.Core.config import settings
from src.Core.errors import JourneyError
from src.Controller.Routes import journeys, workers, dashboard

# Background Services
from src.Services.reminder_scheduler import start_reminder_scheduler

# WebSocket Management (system logs only)
from src.Core import log_ws

# Database
from src.DB.database import check_db_connection, create_all_tables

# ============================================================
# ROOT PATH HANDLING
# ============================================================
from starlette.middleware.base import BaseHTTPMiddleware
from fastapi.responses import RedirectResponse


def _normalize_root_path(value: str) -> str:
    value = (value or "").strip()
    if value and not value.startswith("/"):
        value = "/" + value
    return value.rstrip("/")


ROOT_PATH = _normalize_root_path(settings.ROOT_PATH)


class StripPrefixMiddleware(BaseHTTPMiddleware):
    """
    Middleware for removing ROOT_PATH prefix from incoming requests.

    Example:
        ROOT_PATH = "/jornadas"
        Incoming request: /jornadas/journeys/current
        FastAPI receives: /journeys/current
    """

    def __init__(self, app, prefix: str):
        super().__init__(app)
        self.prefix = prefix

    async def dispatch(self, request, call_next):
        if self.prefix:
            path = request.url.path

            # Redirect bare prefix to prefix with trailing slash
            if path == self.prefix:
                return RedirectResponse(url=self.prefix + "/", status_code=307)

            if path.startswith(self.prefix + "/"):
                request.scope["path"] = path[len(self.prefix):] or "/"

        return await call_next(request)


# ============================================================
# DYNAMIC CORS CONFIGURATION
# ============================================================
from fastapi.middleware.cors import CORSMiddleware


def _parse_origins(csv_value: str):
    """
    Parse comma-separated origin values into a list for CORS configuration.

    Returns:
        Tuple of (is_wildcard: bool, origins: list)

    Examples:
        "*" → (True, ["*"])
        "https://app.com,https://admin.app.com" → (False, ["https://app.com", "https://admin.app.com"])
        "" → (False, [])
    """
    if not csv_value:
        return (False, [])

    csv_value = csv_value.strip()

    if csv_value == "*":
        return (True, ["*"])

    origins = [origin.strip() for origin in csv_value.split(",") if origin.strip()]
    return (False, origins)


_http_allow_all, _http_origins = _parse_origins(settings.HTTP_ALLOWED_ORIGINS)
_ws_allow_all, _ws_origins = _parse_origins(settings.WS_ALLOWED_ORIGINS)


# ============================================================
# INSTANCE IDENTIFICATION MIDDLEWARE
# ============================================================
class InstanceHeaderMiddleware(BaseHTTPMiddleware):
    """
    Adds X-Instance-ID to every response when INSTANCE_ID is set, so the
    instance that served a request can be identified behind a load balancer.
    """

    async def dispatch(self, request, call_next):
        response = await call_next(request)

        instance_id = os.getenv("INSTANCE_ID")
        if instance_id:
            response.headers["X-Instance-ID"] = instance_id

        return response


# ============================================================
# APPLICATION LIFESPAN MANAGEMENT
# ============================================================
@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup Sequence:
        1. Configure event loop for the log WebSocket manager
        2. Create tables when DB_CREATE_TABLES is set (development)
        3. Start the daily reminder thread when NOTIFY_ENABLED is set

    Shutdown:
        - The reminder thread is a daemon and ends with the process
    """
    loop = asyncio.get_running_loop()
    log_ws.log_ws_manager.set_main_loop(loop)

    if settings.DB_CREATE_TABLES:
        print("[STARTUP] DB_CREATE_TABLES enabled, creating schema...")
        create_all_tables()

    if settings.NOTIFY_ENABLED:
        print("[SERVICES] Starting daily reminder scheduler...")
        start_reminder_scheduler()
    else:
        print("[SERVICES] ⚠️  Daily reminder is disabled")

    print("[STARTUP] ✅ Application initialization complete")

    yield

    print("[SHUTDOWN] 🛑 Application shutdown initiated")


# ============================================================
# APPLICATION INSTANCE CREATION
# ============================================================
app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.PROJECT_VERSION,
    lifespan=lifespan
)


# ============================================================
# MIDDLEWARE REGISTRATION
# ============================================================
# Middlewares are executed in REVERSE order of registration

if ROOT_PATH:
    app.add_middleware(StripPrefixMiddleware, prefix=ROOT_PATH)

app.add_middleware(InstanceHeaderMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_http_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================
# DOMAIN ERROR HANDLER
# ============================================================
@app.exception_handler(JourneyError)
async def journey_error_handler(request: Request, exc: JourneyError):
    """
    409 conflict, 404 not found, 400 validation, 503 persistence.
    """
    if exc.status_code >= 500:
        log_ws.log_from_thread(
            f"[API] {request.method} {request.url.path} failed: {exc.message}", msg_type="error"
        )
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


# ============================================================
# HEALTH CHECK ENDPOINT
# ============================================================
@app.get("/health")
def health():
    """
    Health check for the load balancer.

    Always answers 200; "degraded" when the database does not respond.
    """
    db_ok = check_db_connection()
    return {"status": "ok" if db_ok else "degraded", "database": db_ok}


# ============================================================
# REST API ROUTE REGISTRATION
# ============================================================
app.include_router(journeys.router, prefix="/journeys", tags=["journeys"])
app.include_router(workers.router, prefix="/workers", tags=["workers"])
app.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])


# ============================================================
# WEBSOCKET ENDPOINTS
# ============================================================
async def socket_handler(ws: WebSocket, manager):
    """
    Generic WebSocket connection handler with origin validation.

    Connections from origins outside WS_ALLOWED_ORIGINS are closed with
    code 403 before registration.
    """
    origin = ws.headers.get("origin")

    if (not _ws_allow_all) and (origin not in _ws_origins):
        print(f"[WS] ❌ Connection rejected - unauthorized origin: {origin}")
        await ws.close(code=403)
        return

    await manager.register(ws)

    try:
        while True:
            message = await ws.receive_text()
            await manager.handle_message(ws, message)
    except Exception as e:
        print(f"[WS] Connection closed: {e}")
    finally:
        manager.unregister(ws)


@app.websocket("/logs")
async def websocket_logs(ws: WebSocket):
    """
    WebSocket endpoint for streaming real-time system logs.

    Frontend Connection Example:
        const ws = new WebSocket('ws://localhost:8000/logs');
        ws.onmessage = (event) => {
            const log = JSON.parse(event.data);
            console.log(`[${log.msg_type}] ${log.message}`);
        };
    """
    await socket_handler(ws, log_ws.log_ws_manager)


# ============================================================
# API INFORMATION ENDPOINT
# ============================================================
@app.get("/api")
def api_info():
    """
    API information and system status endpoint.
    """
    return {
        "status": "online",
        "version": settings.PROJECT_VERSION,
        "architecture": "REST + WebSocket logs",
        "features": {
            "websockets": ["/logs"],
            "daily_reminder": settings.NOTIFY_ENABLED,
            "timezone": settings.JOURNEY_TIMEZONE,
            "instance_tracking": bool(os.getenv("INSTANCE_ID"))
        },
        "endpoints": {
            "journeys": "/journeys/*",
            "workers": "/workers/me/*",
            "dashboard": "/dashboard/* (admin)",
            "logs": "/logs (WebSocket)",
            "health": "/health"
        }
    }
