"""FastAPI application entry point."""

import logging
import time
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from whatsapp_otp.api.router import router as otp_router
from whatsapp_otp.config import settings
from whatsapp_otp.database.engine import async_session_factory, dispose_db, init_db
from whatsapp_otp.errors import OTPServiceError, RateLimitError, ValidationError
from whatsapp_otp.services.gateway import build_gateway
from whatsapp_otp.services.issuer import OTPIssuer
from whatsapp_otp.services.otp_store import OTPStore
from whatsapp_otp.services.rate_limiter import RateLimiter
from whatsapp_otp.services.reaper import Reaper

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup / shutdown lifecycle hook; builds the process-wide services."""
    logger.info("Starting %s …", settings.app_name)
    await init_db()
    logger.info("Database initialised")

    otp_store = OTPStore()
    rate_limiter = RateLimiter()
    gateway = build_gateway(settings)
    reaper = Reaper(otp_store, rate_limiter)

    app.state.otp_store = otp_store
    app.state.rate_limiter = rate_limiter
    app.state.gateway = gateway
    app.state.issuer = OTPIssuer(
        otp_store,
        rate_limiter,
        gateway,
        async_session_factory,
        expiry_minutes=settings.otp_expiry_minutes,
    )
    app.state.started_at = time.monotonic()

    await reaper.start()
    logger.info("Delivering OTPs via %s", gateway.name)
    yield
    logger.info("Shutting down %s …", settings.app_name)
    await reaper.stop()
    await dispose_db()


app = FastAPI(
    title=settings.app_name,
    description="WhatsApp OTP issuance with consent and per-phone rate limiting",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.cors_origin],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(otp_router)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info("%s %s", request.method, request.url.path)
    return await call_next(request)


# ── Error mapping ────────────────────────────────────────

def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@app.exception_handler(OTPServiceError)
async def otp_error_handler(request: Request, exc: OTPServiceError) -> JSONResponse:
    if isinstance(exc, ValidationError):
        return _error(400, exc.message)
    if isinstance(exc, RateLimitError):
        return _error(429, exc.message)
    logger.error("%s on %s: %s", type(exc).__name__, request.url.path, exc.message)
    return _error(500, exc.message)


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("Rejected malformed body on %s: %s", request.url.path, exc.errors())
    return _error(400, "Invalid request body")


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Wrong method on a known path is answered like an unknown path
    if exc.status_code in (404, 405):
        return _error(404, "Endpoint not found")
    return _error(exc.status_code, str(exc.detail))


# ── Probes ───────────────────────────────────────────────

@app.get("/health")
async def health_check(request: Request):
    """Liveness probe with provider configuration and store sizes."""
    state = request.app.state
    started_at = getattr(state, "started_at", None)
    otp_store = getattr(state, "otp_store", None)
    rate_limiter = getattr(state, "rate_limiter", None)
    gateway = getattr(state, "gateway", None)
    return {
        "status": "OK",
        "app": settings.app_name,
        "timestamp": datetime.now(UTC).isoformat(),
        "uptime": time.monotonic() - started_at if started_at is not None else 0.0,
        "provider": gateway.name if gateway is not None else settings.otp_provider,
        "environment": {
            "gupshup_api_key": "Present" if settings.gupshup_api_key else "Missing",
            "gupshup_sender": "Present" if settings.gupshup_sender else "Missing",
            "gupshup_template": settings.gupshup_template_name or "otp_verification_code",
        },
        "active_otps": otp_store.active_count if otp_store is not None else 0,
        "rate_limited_phones": rate_limiter.active_count if rate_limiter is not None else 0,
    }


@app.get("/", response_class=PlainTextResponse)
async def root():
    return "🚀 OTP Backend is live!"


def run() -> None:
    """Serve the app with uvicorn; SIGINT/SIGTERM trigger a clean lifespan shutdown."""
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
