# app/main.py
"""
FastAPI application entry point.
Includes CORS and timing middleware, API key auth on /api, global error handlers, and all routers.
"""

from fastapi import Depends, FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.exc import IntegrityError
from starlette.exceptions import HTTPException as StarletteHTTPException
from app.routers import events, health
from app.database import Database
from app.dependencies import require_api_key
from app.config import settings
from app.exceptions import AppError
from app.services.sui_client import create_sui_client
from app.services.walrus_service import create_walrus_service
from app.services.chain_poller import start_background_jobs
from app.utils.logger import get_logger
import time

logger = get_logger(__name__)

app = FastAPI(
    title="SuiStage Event Management API",
    description="Read cache for on-chain events, seat reservations and Walrus-hosted images.",
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGIN_LIST,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Request Timing Middleware ────────────────────────────────────────────────
@app.middleware("http")
async def log_requests(request: Request, call_next):
    start = time.time()
    response = await call_next(request)
    duration = round((time.time() - start) * 1000, 2)
    logger.debug(f"{request.method} {request.url.path} → {response.status_code} ({duration}ms)")
    return response


# ── Error Handlers ───────────────────────────────────────────────────────────
def _error(status_code: int, message: str, **extra) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message, **extra})


@app.exception_handler(AppError)
async def app_error_handler(request: Request, exc: AppError):
    if exc.status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    else:
        logger.warning(f"{type(exc).__name__} on {request.url.path}: {exc.message}")
    return _error(exc.status_code, exc.message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"location": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
        for err in exc.errors()
    ]
    logger.warning(f"Validation error on {request.url.path}: {errors}")
    return _error(status.HTTP_400_BAD_REQUEST, "Validation error", errors=errors)


@app.exception_handler(IntegrityError)
async def integrity_error_handler(request: Request, exc: IntegrityError):
    detail = str(exc.orig)
    logger.error(f"Integrity error on {request.url.path}: {detail}")
    if "UNIQUE constraint failed" in detail:
        return _error(status.HTTP_409_CONFLICT, "Resource already exists")
    if "FOREIGN KEY constraint failed" in detail:
        return _error(status.HTTP_400_BAD_REQUEST, "Referenced resource does not exist")
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error")


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    if exc.status_code == status.HTTP_404_NOT_FOUND and exc.detail == "Not Found":
        return _error(exc.status_code, "Route not found")
    return _error(exc.status_code, str(exc.detail))


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception on {request.url.path}: {exc}", exc_info=True)
    extra = {"details": str(exc)} if settings.ENVIRONMENT == "development" else {}
    return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, "Internal server error", **extra)


# ── Routers ──────────────────────────────────────────────────────────────────
app.include_router(events.router, prefix="/api", tags=["🎫 Events"],
                   dependencies=[Depends(require_api_key)])
app.include_router(health.router, tags=["💚 Health"])


@app.get("/", summary="API info", tags=["💚 Health"])
def api_info():
    return {
        "name": "SuiStage Event Management API",
        "version": app.version,
        "endpoints": {"events": "/api/events", "health": "/health"},
    }


# ── Startup ───────────────────────────────────────────────────────────────────
@app.on_event("startup")
async def startup():
    logger.info("🚀 SuiStage Backend starting up...")
    for name in settings.missing_required():
        logger.warning(f"⚠️  Missing environment variable: {name}")

    # Tests install their own handles before the app starts
    if getattr(app.state, "database", None) is None:
        app.state.database = Database(settings.DATABASE_URL, echo=settings.DATABASE_ECHO).open()
    app.state.database.create_tables()
    stats = app.state.database.stats()
    logger.info(f"✅ Database ready: {stats['events']} events, {stats['size_mb']} MB")

    if getattr(app.state, "sui_client", None) is None:
        app.state.sui_client = create_sui_client()
    if getattr(app.state, "walrus", None) is None:
        app.state.walrus = create_walrus_service()

    logger.info(f"🌐 Network: {settings.SUI_NETWORK} ({settings.SUI_RPC_URL})")
    logger.info(f"📦 Package ID: {settings.PACKAGE_ID or 'Not set'}")
    await app.state.sui_client.verify_contract_deployment()

    app.state.background_tasks = start_background_jobs(app.state.database, app.state.sui_client, settings)
    logger.info(f"🌐 Listening on http://{settings.BACKEND_IP}:{settings.BACKEND_PORT}")
    logger.info("📖 API docs at /docs")


@app.on_event("shutdown")
async def shutdown():
    logger.info("🛑 SuiStage Backend shutting down...")
    for task in getattr(app.state, "background_tasks", []):
        task.cancel()
    database = getattr(app.state, "database", None)
    if database is not None:
        database.close()
        app.state.database = None
