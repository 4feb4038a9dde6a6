"""
FastAPI application main module.

Thin HTTP surface over the order collection, reconciliation and ad-spend
services. Collection failures are reported inside the response envelope; only
request problems and store outages change the status code.
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import time
import uuid
import os
from contextlib import asynccontextmanager
from affiliate_orders import config
from affiliate_orders.api.v1 import api_router
from affiliate_orders.exceptions import CollectionError, PersistenceError, UpstreamAPIError
from affiliate_orders.utils import setup_logging, get_logger
from affiliate_orders.database import engine, Base
import affiliate_orders.models.db  # noqa: F401  registers tables on Base.metadata

API_VERSION = "1.0.0"

setup_logging(
    log_level=os.getenv("LOG_LEVEL", "INFO"),
    log_file=os.getenv("LOG_FILE") or None,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    Base.metadata.create_all(bind=engine)
    logger.info(
        "Order service started",
        delete_reconcile_platforms=sorted(config.DELETE_RECONCILE_PLATFORMS),
        money_tolerance=config.MONEY_TOLERANCE,
        inter_account_pause_seconds=config.INTER_ACCOUNT_PAUSE_SECONDS,
    )
    yield
    logger.info("Order service stopped")

app = FastAPI(
    title="Affiliate Orders",
    description="""
    Collects orders from affiliate networks (LinkHaitao, PartnerMatic, LinkBux,
    Rewardoo), reconciles them against stored orders and joins them to ad spend.

    ## Authentication
    ```
    Authorization: Bearer <api_key>
    ```
    """,
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/api/v1/openapi.json",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=os.getenv("CORS_ORIGINS", "*").split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", "unknown")


def _error_response(request: Request, status_code: int, message, headers=None, **extra) -> JSONResponse:
    body = {"success": False, "message": message, "request_id": _request_id(request), **extra}
    return JSONResponse(status_code=status_code, content=body, headers=headers)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Tag each request with an id (client supplied or generated) and log its timing."""
    request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())
    request.state.request_id = request_id
    started = time.perf_counter()

    response = await call_next(request)

    elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
    response.headers["X-Request-ID"] = request_id
    response.headers["X-Process-Time"] = str(elapsed_ms)
    logger.info(
        "Request handled",
        method=request.method,
        path=request.url.path,
        status_code=response.status_code,
        process_time_ms=elapsed_ms,
        request_id=request_id,
    )
    return response


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    logger.warning("Request validation failed", errors=exc.errors(), path=request.url.path, request_id=_request_id(request))
    return _error_response(request, 422, "Request validation failed", details=exc.errors())


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    logger.warning("HTTP exception", status_code=exc.status_code, detail=exc.detail, path=request.url.path, request_id=_request_id(request))
    return _error_response(request, exc.status_code, exc.detail, headers=getattr(exc, "headers", None))


@app.exception_handler(CollectionError)
async def collection_exception_handler(request: Request, exc: CollectionError):
    """Errors that escape a service: store outages are 503, partner failures 502."""
    if isinstance(exc, PersistenceError):
        status_code = 503
    elif isinstance(exc, UpstreamAPIError):
        status_code = 502
    else:
        status_code = 400
    logger.error(
        "Service error",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        request_id=_request_id(request),
    )
    return _error_response(request, status_code, exc.message, details=exc.details)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
        request_id=_request_id(request),
        exc_info=True,
    )
    return _error_response(request, 500, "Internal server error")


@app.get("/", tags=["root"])
async def root():
    return {
        "message": "Affiliate Orders API",
        "version": API_VERSION,
        "documentation": "/docs",
        "health_check": "/api/v1/health",
        "api_base": "/api/v1",
    }

app.include_router(api_router, prefix="/api/v1")

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "affiliate_orders.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8000")),
        reload=True,
        log_level="info",
    )
