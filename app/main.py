"""FastAPI application entry point for the Portwatch prober.

Define the FastAPI application instance, register middleware and configure the
application lifespan. The lifespan owns every side effect: logging setup, alert
template validation, and the background task running the poll scheduler. The
HTTP side only reads the metrics registry the scheduler writes to.
"""

import asyncio
import contextlib
import os
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import uvicorn
from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse

from app.api.middleware import RequestCorrelationMiddleware
from app.config import Settings, get_settings
from app.portwatch.core.logging_config import configure_logging, get_logger
from app.portwatch.metrics import HealthMetrics
from app.portwatch.notifier import AlertRenderer, WebhookNotifier
from app.portwatch.scheduler import PollScheduler


def build_notifier(settings: Settings) -> WebhookNotifier | None:
    """Build the webhook notifier, validating the alert template up front.

    The template is validated whenever one is configured, even with alerts
    switched off, so a broken file is reported at startup.

    Raises:
        AlertTemplateError: If the template cannot be loaded or rendered.
    """
    if not (settings.alerts_enabled or settings.ALERT_TEMPLATE_PATH):
        return None

    renderer = AlertRenderer.from_path(settings.ALERT_TEMPLATE_PATH)
    renderer.validate()

    if not settings.alerts_enabled:
        return None
    return WebhookNotifier(
        settings.WEBHOOKURL, renderer=renderer, timeout=settings.WEBHOOK_TIMEOUT
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application startup and shutdown lifecycle events.

    Start the poll scheduler as a background task on startup and cancel it on
    shutdown. Settings are resolved through the dependency overrides so tests
    can inject their own configuration.

    Args:
        app: FastAPI application instance.

    Yields:
        None: Control returns to the application after startup completes.

    Raises:
        AlertTemplateError: When the configured alert template is invalid.
    """
    # === STARTUP SEQUENCE ===

    settings = app.dependency_overrides.get(get_settings, get_settings)()
    configure_logging(settings)

    logger = get_logger("lifespan")
    logger.info(
        "Portwatch startup initiated",
        env=settings.ENVIRONMENT,
        rescan=settings.RESCAN,
        timeout=settings.TIMEOUT,
        endpoints=len(settings.endpoints),
    )

    app.state.is_ready = False
    try:
        notifier = build_notifier(settings)
    except Exception as e:
        logger.critical(f"Failed to initialize resources: {e}")
        raise e

    metrics = HealthMetrics(settings.METRICS_NAMESPACE, settings.METRICS_NAME)
    scheduler = PollScheduler(settings, metrics, notifier=notifier)
    task = asyncio.create_task(scheduler.run_forever(), name="poll-scheduler")

    app.state.metrics = metrics
    app.state.scheduler = scheduler
    app.state.poll_task = task
    app.state.is_ready = True
    logger.info("Poll scheduler started", alerts=notifier is not None)

    yield

    # === SHUTDOWN SEQUENCE ===

    logger.info("Portwatch shutdown initiated")
    app.state.is_ready = False
    task.cancel()
    with contextlib.suppress(asyncio.CancelledError):
        await task
    logger.info("Poll scheduler stopped")


app = FastAPI(
    title=os.getenv("PROJECT_NAME", "Portwatch"),
    version=os.getenv("VERSION", "0.1.0"),
    description="TCP liveness prober exporting Prometheus gauges",
    lifespan=lifespan,
)

app.add_middleware(RequestCorrelationMiddleware)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unhandled exceptions globally.

    Log the error with its traceback and the bound request id, and return a
    generic 500 JSON response that does not leak internal details.
    """
    logger = get_logger("exception_handler")
    logger.error(
        "Unhandled exception occurred",
        error=str(exc),
        path=request.url.path,
        method=request.method,
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "detail": "Internal Server Error",
            "request_id": request.headers.get("X-Request-ID"),
        },
    )


@app.get("/metrics", include_in_schema=False)
async def metrics_endpoint(request: Request) -> Response:
    """Serve the health gauges in the Prometheus text exposition format.

    Scraping never triggers a probe; it reports whatever the last cycle left in
    the registry.

    Raises:
        HTTPException: 503 Service Unavailable before the scheduler has started.
    """
    metrics: HealthMetrics | None = getattr(request.app.state, "metrics", None)
    if metrics is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Metrics are not initialized yet",
        )
    metrics.record_scrape()
    return Response(content=metrics.render(), media_type=metrics.content_type)


@app.get("/health/live", status_code=status.HTTP_200_OK)
async def liveness_probe() -> dict[str, str]:
    """Return liveness status for container orchestration.

    This probe does not look at the probed endpoints: their state is reported
    through `/metrics`.

    Returns:
        dict[str, str]: Status indicator confirming the process is alive.
    """
    return {"status": "alive"}


@app.get("/health/ready", status_code=status.HTTP_200_OK)
async def readiness_probe(request: Request) -> dict[str, str]:
    """Return readiness status once the poll scheduler is running.

    Args:
        request: Incoming HTTP request object.

    Returns:
        dict[str, str]: Status indicator confirming readiness.

    Raises:
        HTTPException: 503 Service Unavailable while starting up or after the
            poll task has stopped.
    """
    task = getattr(request.app.state, "poll_task", None)
    if not getattr(request.app.state, "is_ready", False) or task is None or task.done():
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="System is starting up or the poll scheduler is not running",
        )

    return {"status": "ready"}


@app.get("/health", include_in_schema=False)
async def legacy_health() -> dict[str, str]:
    """Return health status for backward compatibility.

    .. deprecated::
        Use ``/health/live`` or ``/health/ready`` instead.
    """
    return {"status": "ok", "note": "deprecated: use /health/live or /health/ready"}


def run() -> None:
    """Console entry point: serve the app with uvicorn on HOST:PORT."""
    settings = get_settings()
    # log_config=None keeps uvicorn from replacing the structlog handlers.
    uvicorn.run(app, host=settings.HOST, port=settings.PORT, log_config=None)


if __name__ == "__main__":
    run()
