"""
OrderPay - Main FastAPI Application.

REST API layer over the order and payment lifecycle services.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
import logging
import time

from api import dependencies
from api.errors import register_error_handlers
from api.routes import health, orders, payments
from core.infrastructure.logging import configure_logging
from core.settings import get_app_settings


logger = logging.getLogger(__name__)


# =============================================================================
# STARTUP/SHUTDOWN
# =============================================================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables (SQL mode), build the gateway registry, release sessions on exit."""
    settings = get_app_settings()
    configure_logging(settings.app.log_level)
    logger.info(f"{settings.app.name} API starting up ({settings.app.environment})")

    if not settings.database.use_in_memory:
        from core.infrastructure.database.config import get_engine, init_database
        await init_database(get_engine(settings.database))

    registry = dependencies.get_gateway_registry()
    logger.info(f"Payment gateways: {', '.join(registry.supported_providers()) or 'none'}")

    yield

    await dependencies.close_dependencies()
    if not settings.database.use_in_memory:
        from core.infrastructure.database.config import close_database
        await close_database()
    logger.info(f"{settings.app.name} API shutting down...")


# =============================================================================
# CREATE FASTAPI APP
# =============================================================================

app = FastAPI(
    title="OrderPay - Order & Payment API",
    description="""
    Order and payment lifecycle engine.

    Features:
    - Orders with server-computed totals
    - Payments driven through pluggable gateways (authorize/capture/cancel/refund)
    - Idempotent webhook reconciliation
    """,
    version="1.0.0",
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
    lifespan=lifespan,
)


# =============================================================================
# CORS MIDDLEWARE
# =============================================================================

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure based on your needs
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
)


# =============================================================================
# REQUEST LOGGING MIDDLEWARE
# =============================================================================

@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all requests with timing."""
    start_time = time.time()
    logger.info(f"→ {request.method} {request.url.path}")

    response = await call_next(request)

    duration = time.time() - start_time
    logger.info(
        f"← {request.method} {request.url.path} "
        f"[{response.status_code}] ({duration:.3f}s)"
    )
    return response


# =============================================================================
# EXCEPTION HANDLERS
# =============================================================================

register_error_handlers(app)


# =============================================================================
# INCLUDE ROUTERS
# =============================================================================

app.include_router(
    health.router,
    tags=["Health"]
)

app.include_router(
    orders.router,
    prefix="/api/v1/orders",
    tags=["Orders"]
)

app.include_router(
    payments.router,
    prefix="/api/v1/payments",
    tags=["Payments"]
)


# =============================================================================
# ROOT ENDPOINT
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """API root endpoint."""
    return {
        "message": "OrderPay - Order & Payment API",
        "version": "1.0.0",
        "docs": "/docs",
        "health": "/health"
    }
