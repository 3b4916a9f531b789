"""
main.py
FastAPI application entry point.
Registers all routers, middleware, exception handlers and startup/shutdown events.
"""

import json
import logging
import os
import time
import uuid
from contextlib import asynccontextmanager
from logging import LogRecord

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse
from jose import JWTError
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.exc import SQLAlchemyError
from starlette.exceptions import HTTPException as StarletteHTTPException

from config.database import close_db, init_db
from config.redis_client import SessionStore, close_redis, init_redis
from config.settings import settings
from shared.utils.security import verify_access_token

# Service routers
from services.admin.router import router as admin_router
from services.auth.router import router as auth_router
from services.booking.router import router as booking_router
from services.package.router import router as package_router
from services.payment.router import router as payment_router
from services.story.router import router as story_router
from services.user.router import router as user_router


# ── Logging ──────────────────────────────────────────────────

class JSONFormatter(logging.Formatter):
    """JSON log formatter for structured logging."""

    def format(self, record: LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "instance": os.getenv("INSTANCE_NAME", "unknown"),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def configure_logging() -> None:
    handler = logging.StreamHandler()
    handler.setFormatter(JSONFormatter())
    root = logging.getLogger()
    root.handlers = [handler]
    root.setLevel(logging.DEBUG if settings.DEBUG else logging.INFO)


configure_logging()
logger = logging.getLogger(__name__)

RATE_LIMIT_SKIP_PATHS = {"/health", "/metrics", "/docs", "/redoc", "/openapi.json"}


def _error_response(status_code: int, message: str, headers=None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": True, "message": message},
        headers=headers,
    )


def _has_valid_credential(request: Request) -> bool:
    token = request.cookies.get(settings.AUTH_COOKIE_NAME)
    auth_header = request.headers.get("Authorization", "")
    if not token and auth_header.startswith("Bearer "):
        token = auth_header[len("Bearer "):]
    if not token:
        return False
    try:
        verify_access_token(token)
    except JWTError:
        return False
    return True


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else err.get("msg", "Invalid value"))
    return "; ".join(parts) or "Invalid request"


# ── Lifespan (startup/shutdown) ───────────────────────────────

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown lifecycle handler."""
    logger.info("Starting %s v%s (%s)", settings.APP_NAME, settings.APP_VERSION, settings.APP_ENV)

    await init_db()
    logger.info("Database connected")

    await init_redis()
    logger.info("Redis connected")

    yield

    await close_redis()
    await close_db()
    logger.info("Server shutdown complete")


# ── App Factory ───────────────────────────────────────────────

def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        description="""
## Tourism Booking Platform API

REST API for the tour booking site:
- **Auth**: signed session token in an HTTP-only `token` cookie
- **Users**: registration, role lookup, guide applications, profile edits
- **Packages**: admin-curated tour packages
- **Bookings**: tourist bookings and guide-assigned tours
- **Payments**: Razorpay orders and payment completion
- **Stories**: travel stories by tourists and guides
- **Admin**: guide candidate review, user moderation, stats

### Roles
- `user`: registered, has not paid yet
- `tourist`: has paid for a booking; may apply to become a guide
- `guide`: approved by an admin; works assigned tours
- `admin`: full platform access
        """,
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )

    # ── Middleware (last added runs outermost) ─────────────────────
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=["*"])
    # Cookies are sent cross-site, so credentials must be allowed
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID", "X-Process-Time"],
    )
    app.add_middleware(GZipMiddleware, minimum_size=500)

    # ── Custom Middleware ──────────────────────────────────────────

    @app.middleware("http")
    async def request_id_middleware(request: Request, call_next):
        """Add unique X-Request-ID to every request for tracing."""
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
        request.state.request_id = request_id
        response = await call_next(request)
        response.headers["X-Request-ID"] = request_id
        return response

    @app.middleware("http")
    async def process_time_middleware(request: Request, call_next):
        """Track and expose request processing time."""
        start = time.perf_counter()
        response = await call_next(request)
        process_time = round((time.perf_counter() - start) * 1000, 2)
        response.headers["X-Process-Time"] = f"{process_time}ms"
        return response

    @app.middleware("http")
    async def rate_limit_middleware(request: Request, call_next):
        """
        Per-IP limit for anonymous traffic.
        Requests carrying a valid session token (cookie or Bearer) are not counted.
        Fails open when Redis is unavailable.
        """
        if request.url.path in RATE_LIMIT_SKIP_PATHS:
            return await call_next(request)

        if _has_valid_credential(request):
            return await call_next(request)

        from config.redis_client import redis_client
        if redis_client is not None:
            client_ip = request.client.host if request.client else "unknown"
            try:
                allowed = await SessionStore(redis_client).allow_anonymous_request(
                    client_ip, settings.RATE_LIMIT_UNAUTH_PER_MINUTE
                )
            except Exception as e:
                logger.error("Rate limit check failed: %s", e)
                allowed = True
            if not allowed:
                logger.warning("Rate limit exceeded for IP %s", client_ip)
                return _error_response(
                    429, "Rate limit exceeded. Please slow down.", headers={"Retry-After": "60"}
                )

        return await call_next(request)

    # ── Exception Handlers ─────────────────────────────────────────

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None))

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        return _error_response(400, _validation_message(exc))

    @app.exception_handler(SQLAlchemyError)
    async def database_exception_handler(request: Request, exc: SQLAlchemyError):
        request_id = getattr(request.state, "request_id", None)
        logger.error("[%s] Database error: %s", request_id, exc, exc_info=True)
        return _error_response(500, str(exc))

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """Catch-all exception handler. Never expose internals in production."""
        request_id = getattr(request.state, "request_id", None)
        logger.error("[%s] Exception: %s", request_id, exc, exc_info=True)
        detail = str(exc) if settings.DEBUG else "An internal server error occurred"
        return _error_response(500, detail)

    # ── Routes ────────────────────────────────────────────────────

    @app.get("/health", tags=["Health"], include_in_schema=False)
    async def health_check():
        from sqlalchemy import text

        from config.database import AsyncSessionLocal
        from config.redis_client import redis_client

        checks = {"status": "ok", "version": settings.APP_VERSION}

        try:
            async with AsyncSessionLocal() as session:
                await session.execute(text("SELECT 1"))
            checks["database"] = "ok"
        except Exception:
            checks["database"] = "error"
            checks["status"] = "degraded"

        try:
            if redis_client:
                await redis_client.ping()
            checks["redis"] = "ok"
        except Exception:
            checks["redis"] = "error"
            checks["status"] = "degraded"

        status_code = 200 if checks["status"] == "ok" else 503
        return JSONResponse(content=checks, status_code=status_code)

    @app.get("/", include_in_schema=False)
    async def root():
        return {
            "name": settings.APP_NAME,
            "message": "Tourism booking server is running",
            "version": settings.APP_VERSION,
            "docs": "/docs",
            "health": "/health",
        }

    # Register all service routers
    app.include_router(auth_router)
    app.include_router(user_router)
    app.include_router(admin_router)
    app.include_router(package_router)
    app.include_router(booking_router)
    app.include_router(payment_router)
    app.include_router(story_router)

    # ── Prometheus Metrics ─────────────────────────────────────────
    Instrumentator().instrument(app).expose(app, endpoint="/metrics", tags=["Monitoring"])

    return app


# ── Entry Point ───────────────────────────────────────────────

app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG,
        workers=1 if settings.DEBUG else settings.WORKERS,
        log_level="debug" if settings.DEBUG else "info",
        access_log=True,
    )
