"""
FastAPI application entry point for the Legal Practice Management API.

This module provides the FastAPI application with:
- Health and readiness endpoints
- Authentication, role-gated feature routers and the compliance API
- Request/response logging with correlation IDs
- OpenTelemetry distributed tracing
- Prometheus metrics
- CORS, security headers, and rate limiting
- Graceful startup and shutdown
"""

import asyncio
import time
import uuid
from contextlib import asynccontextmanager
from typing import Any, AsyncGenerator, Dict, Optional

import structlog
import uvicorn
from fastapi import FastAPI, Request, Response, status
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from prometheus_client import CONTENT_TYPE_LATEST
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from slowapi.middleware import SlowAPIMiddleware
from slowapi.util import get_remote_address
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware

from practice_api.src.config import Settings, get_settings
from practice_api.src.dependencies import AppState
from practice_api.src.features.catalog import FEATURE_CATALOG
from practice_api.src.middleware.audit import log_rate_limit_exceeded
from practice_api.src.routers import compliance
from practice_api.src.routers.admin import admin_router, auth_router
from practice_api.src.routers.features import catalog_router, feature_routers
from practice_api.src.validators import PayloadValidationError
from shared.logging import bind_context, configure_logging, unbind_context
from shared.metrics import ApiMetrics, get_metrics_handler
from shared.models import HealthStatus
from shared.tracing import configure_tracing, create_exporter, current_trace_id

# Initialize logger
logger = structlog.get_logger(__name__)

# Paths excluded from request metrics and logs
QUIET_PATHS = ("/health", "/ready", "/metrics")


# ============================================================================
# Middleware
# ============================================================================


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Middleware for request logging, correlation IDs and HTTP metrics."""

    def __init__(self, app, metrics: ApiMetrics):
        super().__init__(app)
        self.metrics = metrics

    async def dispatch(self, request: Request, call_next):
        """Process request and log details."""
        # Trace ID of the request span unless the caller sent its own
        correlation_id = (
            request.headers.get("X-Correlation-ID")
            or current_trace_id()
            or str(uuid.uuid4())
        )
        request.state.correlation_id = correlation_id

        method = request.method
        path = request.url.path
        quiet = path.startswith(QUIET_PATHS)

        # Label by the raw path until routing resolves the template
        endpoint = path
        self.metrics.http_requests_in_progress.labels(method=method, endpoint="all").inc()
        start_time = time.perf_counter()

        bind_context(correlation_id=correlation_id)
        if not quiet:
            logger.info(
                "request_started",
                method=method,
                path=path,
                client_ip=request.client.host if request.client else "unknown",
            )

        try:
            response = await call_next(request)
            duration = time.perf_counter() - start_time

            route = request.scope.get("route")
            if route is not None:
                endpoint = getattr(route, "path", path)

            self.metrics.http_requests_total.labels(
                method=method,
                endpoint=endpoint,
                status=response.status_code
            ).inc()
            self.metrics.http_request_duration_seconds.labels(
                method=method,
                endpoint=endpoint
            ).observe(duration)

            if not quiet:
                logger.info(
                    "request_completed",
                    method=method,
                    path=path,
                    status_code=response.status_code,
                    duration=f"{duration:.3f}s",
                )

            response.headers["X-Correlation-ID"] = correlation_id
            return response

        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.error(
                "request_failed",
                method=method,
                path=path,
                error=str(e),
                duration=f"{duration:.3f}s",
                exc_info=True
            )
            raise

        finally:
            self.metrics.http_requests_in_progress.labels(method=method, endpoint="all").dec()
            unbind_context("correlation_id")


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Middleware to add security headers to responses."""

    def __init__(self, app, settings: Settings):
        super().__init__(app)
        self.settings = settings

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)

        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-XSS-Protection"] = "1; mode=block"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        if self.settings.security_require_https:
            response.headers["Strict-Transport-Security"] = (
                f"max-age={self.settings.security_hsts_max_age}; includeSubDomains"
            )

        return response


# ============================================================================
# Lifespan Management
# ============================================================================


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Application lifespan manager for startup and shutdown events.

    Handles:
    - Logging configuration
    - Bootstrap admin account creation
    - Graceful shutdown, flushing pending spans
    """
    state: AppState = app.state.services
    settings = state.settings

    configure_logging(
        log_level=settings.log_level,
        json_logs=settings.log_format == "json",
        service_name=settings.app_name,
        environment=settings.environment,
    )
    logger.info(
        "application_starting",
        app_name=settings.app_name,
        version=settings.app_version,
        environment=settings.environment
    )

    try:
        admin = await state.auth_service.ensure_bootstrap_admin()
        if admin:
            state.metrics.registered_users.set(await state.user_repo.count_users())

        logger.info(
            "application_started",
            app_name=settings.app_name,
            features=len(FEATURE_CATALOG),
            bootstrap_admin=admin.username if admin else None,
        )

        yield

    except Exception as e:
        logger.error("application_startup_failed", error=str(e), exc_info=True)
        raise

    finally:
        if state.tracer_provider is not None:
            logger.info("shutting_down_tracing")
            state.tracer_provider.shutdown()

        logger.info(
            "application_shutdown_complete",
            repositories_loaded=len(state.feature_registry.loaded()),
            audit_entries=state.audit_repo.count(),
        )


# ============================================================================
# Exception Handlers
# ============================================================================


async def payload_validation_handler(request: Request, exc: PayloadValidationError) -> JSONResponse:
    """Handle compliance payload validation errors."""
    logger.warning(
        "payload_validation_error",
        path=request.url.path,
        errors=exc.errors
    )
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "message": exc.message, "errors": exc.errors}
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handle request validation errors."""
    logger.warning(
        "validation_error",
        path=request.url.path,
        errors=exc.errors()
    )
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={"detail": jsonable_encoder(exc.errors())}
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        path=request.url.path,
        status_code=exc.status_code,
        detail=exc.detail
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
        headers=getattr(exc, "headers", None)
    )


async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unexpected_exception",
        path=request.url.path,
        error=str(exc),
        exc_info=True
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": "Internal server error"}
    )


def rate_limit_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Answer with slowapi's 429 response; the audit entry is written in the background."""
    state: AppState = request.app.state.services
    if state.settings.audit_enabled:
        asyncio.get_running_loop().create_task(
            log_rate_limit_exceeded(state.audit_repo, request, limit=str(exc.detail))
        )
    return _rate_limit_exceeded_handler(request, exc)


# ============================================================================
# FastAPI Application
# ============================================================================


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application.

    Each call wires fresh repositories, services and metrics, so tests can
    create isolated applications.

    Args:
        settings: Settings to use (defaults to the cached settings)

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    tracer_provider = None
    if settings.tracing_enabled:
        tracer_provider = configure_tracing(
            service_name=settings.app_name,
            service_version=settings.app_version,
            environment=settings.environment,
            exporter=create_exporter(settings.tracing_exporter, settings.tracing_otlp_endpoint),
            sampling_rate=settings.tracing_sample_rate,
        )
    services = AppState.build(settings, tracer_provider=tracer_provider)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description=(
            "Legal practice management API. Provides CRUD endpoints for every "
            "practice feature, compliance and risk management, and authentication."
        ),
        docs_url="/docs",
        redoc_url="/redoc",
        openapi_url="/openapi.json",
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.services = services

    # ========================================================================
    # Middleware Configuration
    # ========================================================================

    # Rate limiting
    app.state.limiter = Limiter(
        key_func=get_remote_address,
        default_limits=[settings.rate_limit_default],
        enabled=settings.rate_limit_enabled,
    )
    app.add_middleware(SlowAPIMiddleware)
    app.add_exception_handler(RateLimitExceeded, rate_limit_handler)

    if settings.security_headers_enabled:
        app.add_middleware(SecurityHeadersMiddleware, settings=settings)

    # GZip Compression Middleware
    app.add_middleware(GZipMiddleware, minimum_size=1000)

    app.add_middleware(RequestLoggingMiddleware, metrics=services.metrics)

    # CORS Middleware (outermost, so preflight requests are answered first)
    if settings.cors_enabled:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.cors_origins,
            allow_credentials=settings.cors_allow_credentials,
            allow_methods=settings.cors_allow_methods,
            allow_headers=settings.cors_allow_headers,
        )

    # OpenTelemetry Instrumentation (added last, so request spans wrap every middleware)
    if tracer_provider is not None:
        FastAPIInstrumentor.instrument_app(
            app,
            tracer_provider=tracer_provider,
            excluded_urls="/health,/ready,/metrics",
        )

    # ========================================================================
    # Exception Handlers
    # ========================================================================

    app.add_exception_handler(PayloadValidationError, payload_validation_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(Exception, general_exception_handler)

    # ========================================================================
    # Health, Readiness and Metrics Endpoints
    # ========================================================================

    render_metrics = get_metrics_handler(services.metrics.registry)

    @app.get("/health", tags=["Health"])
    async def health_check() -> Dict[str, Any]:
        """
        Health check endpoint.

        Returns basic health status without checking dependencies.
        Use for container health checks.
        """
        return {
            "status": HealthStatus.HEALTHY.value,
            "service": settings.app_name,
            "version": settings.app_version,
            "environment": settings.environment
        }

    @app.get("/ready", tags=["Health"])
    async def readiness_check() -> JSONResponse:
        """
        Readiness check endpoint.

        Reports the in-memory stores and the number of registered routers.
        """
        checks = {
            "users": HealthStatus.HEALTHY.value,
            "audit": HealthStatus.HEALTHY.value,
            "features": HealthStatus.HEALTHY.value if FEATURE_CATALOG else HealthStatus.UNHEALTHY.value,
        }
        all_healthy = all(value == HealthStatus.HEALTHY.value for value in checks.values())

        return JSONResponse(
            status_code=status.HTTP_200_OK if all_healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
            content={
                "status": "ready" if all_healthy else "not_ready",
                "service": settings.app_name,
                "version": settings.app_version,
                "checks": checks,
                "registeredUsers": await services.user_repo.count_users(),
            }
        )

    if settings.metrics_enabled:
        @app.get("/metrics", tags=["Monitoring"], response_class=PlainTextResponse)
        async def metrics() -> Response:
            """Prometheus metrics endpoint."""
            return Response(content=render_metrics(), media_type=CONTENT_TYPE_LATEST)

    # ========================================================================
    # API Router Registration
    # ========================================================================

    prefix = settings.api_prefix
    app.include_router(auth_router, prefix=prefix)
    app.include_router(admin_router, prefix=prefix)
    app.include_router(catalog_router, prefix=prefix)
    # Compliance sub-features before the generic /compliance/{id} routes
    app.include_router(compliance.router, prefix=prefix)
    for router in feature_routers():
        app.include_router(router, prefix=prefix)

    logger.info(
        "application_configured",
        environment=settings.environment,
        features=len(FEATURE_CATALOG),
        rate_limit=settings.rate_limit_default if settings.rate_limit_enabled else None,
    )
    return app


app = create_app()


# ============================================================================
# Application Entry Point
# ============================================================================

if __name__ == "__main__":
    settings = get_settings()
    logger.info(
        "starting_uvicorn_server",
        host=settings.host,
        port=settings.port,
        reload=settings.debug
    )

    uvicorn.run(
        "practice_api.src.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
        access_log=True,
    )
