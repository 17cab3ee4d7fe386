"""
Main FastAPI application for the trading journal.
Serves trade and strategy CRUD, confluence statistics, dashboard
aggregates and VRating over Supabase.
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from journal.app.api.routes import route_summary, router
from journal.app.common.config import get_config
from journal.app.common.supabase_client import JournalDataError
from journal.app.confluence.routes import router as confluence_router
from journal.app.dashboard.routes import router as dashboard_router
from journal.app.research.routes import router as test_data_router
from journal.app.strategies.routes import router as strategies_router
from journal.app.trades.routes import router as trades_router

config = get_config()

# Configure logging
logging.basicConfig(
    level=getattr(logging, config.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Starting trading journal API...")
    if not config.supabase_url or not config.supabase_anon_key:
        logger.warning("SUPABASE_URL / SUPABASE_ANON_KEY not set; authenticated routes will fail")
    logger.info(
        f"Trading journal API started. Page size: {config.default_page_size} "
        f"(max {config.max_page_size}), leaning threshold: {config.leaning_threshold}"
    )

    yield

    logger.info("Trading journal API stopped")


app = FastAPI(
    title="Trading Journal API",
    description="Trade journaling with emotional confluence analysis and VRating",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)


def _request_id(request: Request) -> str:
    return getattr(request.state, "request_id", None) or "-"


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Tag each request with an id and log its outcome and latency."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
    request.state.request_id = request_id
    start = time.perf_counter()

    response = await call_next(request)

    elapsed_ms = (time.perf_counter() - start) * 1000
    response.headers["X-Request-ID"] = request_id
    logger.info(
        f"{request.method} {request.url.path} -> {response.status_code} "
        f"({elapsed_ms:.1f} ms) [{request_id}]"
    )
    return response


@app.exception_handler(StarletteHTTPException)
async def http_error(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail, "requestId": _request_id(request)},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_error(request: Request, exc: RequestValidationError):
    return JSONResponse(
        status_code=422,
        content={
            "error": "Invalid request",
            "details": jsonable_encoder(exc.errors()),
            "requestId": _request_id(request),
        },
    )


@app.exception_handler(JournalDataError)
async def data_error(request: Request, exc: JournalDataError):
    logger.error(f"Data error [{_request_id(request)}]: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": str(exc), "requestId": _request_id(request)},
    )


@app.exception_handler(Exception)
async def unhandled_error(request: Request, exc: Exception):
    logger.exception(f"Unhandled error [{_request_id(request)}]")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "requestId": _request_id(request)},
    )


app.include_router(router)
app.include_router(trades_router)
app.include_router(confluence_router)
app.include_router(strategies_router)
app.include_router(dashboard_router)
app.include_router(test_data_router)


@app.get("/")
async def root():
    return {
        "service": "trading-journal",
        "status": "running",
        "routes": route_summary(app.openapi()),
    }
