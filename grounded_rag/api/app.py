"""FastAPI application entry point.

Configures the application with logging, service wiring, exception handling,
health checks and metrics.
"""

import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import UTC, datetime
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from grounded_rag import __version__
from grounded_rag.api.dependencies import Services, build_services
from grounded_rag.api.routes import router
from grounded_rag.config import Settings, get_settings
from grounded_rag.exceptions import ErrorCode, RAGServiceError
from grounded_rag.ingestion.service import ingest_file
from grounded_rag.logging_config import get_logger, setup_logging
from grounded_rag.observability.metrics import (
    MetricsMiddleware,
    get_metrics,
    get_metrics_content_type,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan manager.

    Builds the services, prepares the collection and runs the optional
    knowledge ingestion on startup; closes network clients on shutdown.
    """
    settings: Settings = app.state.settings
    setup_logging(level=settings.log_level)
    logger.info(
        "Starting Grounded RAG",
        extra={
            "version": __version__,
            "environment": settings.environment.value,
        },
    )

    services = build_services(settings)
    try:
        await services.vector_store.init_collection(settings.embedding.dimension)
        if settings.knowledge_path is not None:
            await _ingest_on_startup(services)
        app.state.services = services

        yield

    finally:
        logger.info("Shutting down Grounded RAG")
        app.state.services = None
        await services.close()


async def _ingest_on_startup(services: Services) -> None:
    path = services.settings.knowledge_path
    try:
        await ingest_file(
            path,
            services.cache,
            services.vector_store,
            services.settings.embedding.dimension,
        )
    except RAGServiceError as e:
        logger.warning(
            f"Startup ingestion skipped: {e.message}",
            extra={"path": str(path), "error_code": e.code.value},
        )


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application.

    Args:
        settings: Application settings. Loaded from the environment if omitted.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()

    app = FastAPI(
        title="Grounded RAG",
        description="Retrieval-augmented question answering with cited sources",
        version=__version__,
        lifespan=lifespan,
        debug=settings.debug,
    )
    app.state.settings = settings
    app.state.services = None

    app.add_middleware(MetricsMiddleware)

    # Register exception handlers
    app.add_exception_handler(RAGServiceError, rag_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)

    # Register routes
    app.include_router(router)
    app.add_api_route("/health", health_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/ready", readiness_check, methods=["GET"], tags=["Health"])
    app.add_api_route("/health/live", liveness_check, methods=["GET"], tags=["Health"])
    app.add_api_route(
        "/metrics",
        metrics_endpoint,
        methods=["GET"],
        tags=["Observability"],
        include_in_schema=False,
    )

    return app


def new_trace_id() -> str:
    return str(uuid.uuid4())


def error_response(exc: RAGServiceError) -> JSONResponse:
    """Render a service error as the canonical error envelope."""
    return JSONResponse(
        status_code=exc.code.http_status,
        content=exc.to_dict(trace_id=new_trace_id()),
    )


async def rag_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Handle RAGServiceError exceptions.

    Converts exceptions to structured JSON responses.
    """
    if not isinstance(exc, RAGServiceError):
        return await unhandled_exception_handler(request, exc)

    logger.error(
        f"Request failed: {exc.message}",
        extra={
            "error_code": exc.code.value,
            "path": request.url.path,
            "details": exc.details,
        },
    )
    return error_response(exc)


async def validation_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Map request validation failures to 400 with per-field details."""
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    details: dict[str, str] = {}
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if error.get("type") == "json_invalid" or len(loc) < 2:
            field = "body"
        elif loc[0] == "body":
            field = ".".join(loc[1:])
        else:
            field = ".".join(loc)
        details[field] = error.get("msg", "invalid value")

    logger.info(
        "Request validation failed",
        extra={"path": request.url.path, "fields": sorted(details)},
    )
    return error_response(
        RAGServiceError(
            "Request validation failed",
            code=ErrorCode.VALIDATION_ERROR,
            details=details,
        )
    )


async def unhandled_exception_handler(
    request: Request,
    exc: Exception,
) -> JSONResponse:
    """Map unclassified errors to 500 without exposing internals."""
    logger.exception(
        f"Unhandled error: {type(exc).__name__}",
        extra={"path": request.url.path},
    )
    return error_response(RAGServiceError("Internal server error"))


async def health_check() -> dict[str, Any]:
    """Basic health check endpoint.

    Returns:
        Health status with version and timestamp.
    """
    return {
        "status": "healthy",
        "version": __version__,
        "timestamp": datetime.now(UTC).isoformat(),
    }


async def readiness_check(request: Request) -> dict[str, Any]:
    """Readiness probe.

    Ready once the services are wired and the collection is prepared.
    Provider modes are reported for information only.
    """
    services: Services | None = getattr(request.app.state, "services", None)
    checks: dict[str, str] = {
        "config": "ok",
        "services": "ok" if services is not None else "unavailable",
    }
    all_ok = all(v == "ok" for v in checks.values())

    body: dict[str, Any] = {
        "status": "ready" if all_ok else "not_ready",
        "checks": checks,
        "timestamp": datetime.now(UTC).isoformat(),
    }
    if services is not None:
        body["providers"] = {
            "embedding": (
                "configured" if services.embedding_client.provider_configured else "synthetic"
            ),
            "llm": "configured" if services.llm_client.configured else "extractive",
            "vector_store": services.settings.vector_backend.value,
        }
    return body


async def liveness_check() -> dict[str, str]:
    """Liveness probe.

    Returns:
        Liveness status.
    """
    return {"status": "alive"}


async def metrics_endpoint() -> Response:
    """Prometheus exposition of the process metrics."""
    return Response(content=get_metrics(), media_type=get_metrics_content_type())


# Create the application instance
app = create_app()
