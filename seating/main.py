"""FastAPI application entrypoint."""

import logging
from contextlib import asynccontextmanager

from asgi_correlation_id import CorrelationIdMiddleware
from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi_limiter import FastAPILimiter
import redis.asyncio as redis  # type: ignore[import-untyped]
from secure import Secure

from seating.api import api_router
from seating.core.config import get_settings
from seating.core.errors import (
    AvailabilityError,
    BookingError,
    BookingTimeout,
    ConfigurationError,
    ConflictError,
    InvalidStatusTransition,
    InvariantViolation,
    ReservationNotFound,
    ReservationValidationError,
)
from seating.db.session import get_sessionmaker
from seating.security.logging_filters import install_sensitive_filter
from seating.services import calendar_service
from seating.services.slot_service import get_booking_policy

logger = logging.getLogger(__name__)

settings = get_settings()

_ALLOWED_ORIGINS = [origin for origin in settings.cors_allow_origins if origin]
if not _ALLOWED_ORIGINS:
    _ALLOWED_ORIGINS = ["http://localhost:5173"]

_ERROR_STATUS: dict[type[BookingError], int] = {
    ReservationValidationError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    AvailabilityError: status.HTTP_409_CONFLICT,
    ConflictError: status.HTTP_409_CONFLICT,
    InvariantViolation: status.HTTP_400_BAD_REQUEST,
    InvalidStatusTransition: status.HTTP_400_BAD_REQUEST,
    ReservationNotFound: status.HTTP_404_NOT_FOUND,
    BookingTimeout: status.HTTP_503_SERVICE_UNAVAILABLE,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def error_status(exc: BookingError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in _ERROR_STATUS:
            return _ERROR_STATUS[error_type]  # type: ignore[index]
    return status.HTTP_400_BAD_REQUEST


@asynccontextmanager
async def lifespan(_: FastAPI):
    # Handlers configured by the server only exist once it is running.
    install_sensitive_filter()
    # An unusable policy must stop the service from starting.
    policy = get_booking_policy()
    logger.info(
        "Booking policy: %s-minute slots, %s-minute tables, %s%% online cap",
        policy.slot_granularity_minutes,
        policy.max_duration_minutes,
        policy.max_capacity_threshold_percent,
    )
    try:
        async with get_sessionmaker()() as session:
            await calendar_service.load_calendar(session)
    except ConfigurationError:
        logger.exception("Venue calendar configuration is invalid")
    except Exception:  # pragma: no cover - best effort, schema may not exist yet
        logger.exception("Failed to load venue calendar at startup")

    redis_pool = None
    if settings.redis_url:
        try:
            redis_pool = redis.from_url(
                settings.redis_url, encoding="utf-8", decode_responses=True
            )
            await FastAPILimiter.init(redis_pool)
        except Exception:  # pragma: no cover - limiter startup is best effort
            logger.exception("Failed to initialize rate limiter")
    else:
        logger.info("REDIS_URL not set; request rate limiting is disabled")
    try:
        yield
    finally:
        if redis_pool is not None:
            try:
                await FastAPILimiter.close()
            except Exception:  # pragma: no cover - limiter shutdown
                logger.exception("Failed to close rate limiter")
            finally:
                await redis_pool.aclose()


app = FastAPI(title=settings.app_name, lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=_ALLOWED_ORIGINS,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "X-Request-ID"],
    expose_headers=["X-Request-ID"],
)
app.add_middleware(CorrelationIdMiddleware, header_name="X-Request-ID")

_secure_headers = Secure.with_default_headers()


@app.middleware("http")
async def _apply_security_headers(request, call_next):
    response = await call_next(request)
    _secure_headers.set_headers(response)
    return response


@app.exception_handler(BookingError)
async def _booking_error_handler(request: Request, exc: BookingError) -> JSONResponse:
    status_code = error_status(exc)
    reason = getattr(exc, "reason", None)
    if status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    else:
        logger.warning(
            "%s %s rejected (%s): %s",
            request.method,
            request.url.path,
            exc.code,
            exc.message,
        )
    return JSONResponse(
        status_code=status_code,
        content={
            "detail": exc.message,
            "code": exc.code,
            "reason": reason.value if reason is not None else None,
        },
    )


install_sensitive_filter()

app.include_router(api_router)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    """Return a simple welcome message."""
    return {"message": f"{settings.venue_name} reservations API"}
