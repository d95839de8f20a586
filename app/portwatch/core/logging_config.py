"""Logging configuration for the Portwatch prober.

Keep configuration generation separate from execution:

    - `get_logging_config`: Build a standard `logging.config.dictConfig`
      dictionary from application settings. Output goes to stdout so the
      container runtime collects it.
    - `configure_structlog_wrapper`: Configure structlog's logger factory and
      processor chain.
    - `configure_logging`: Apply both, in order.
    - `add_node_identity`: Tag every entry with `node` and `cluster`.
    - Context helpers from `structlog.contextvars` used to tag log entries with
      the request id (HTTP layer) or the poll cycle number (scheduler).
"""

import logging.config
from typing import TYPE_CHECKING, Any

import structlog
from structlog.types import Processor

if TYPE_CHECKING:
    from app.config import Settings


# =============================================================================
# CONFIGURATION GENERATORS
# =============================================================================


def add_node_identity(settings: "Settings") -> Processor:
    """Build a processor stamping every entry with the probing node and cluster."""
    node = settings.NODEIP
    cluster = settings.CLUSTERNAME

    def processor(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
        event_dict.setdefault("node", node)
        event_dict.setdefault("cluster", cluster)
        return event_dict

    return processor


def get_common_processors(settings: "Settings | None" = None) -> list[Processor]:
    """Return the processor chain shared by the JSON and console outputs.

    Args:
        settings: When given, entries are tagged with `node` and `cluster`.

    Returns:
        list[Processor]: Ordered list of structlog processors.
    """
    identity = [add_node_identity(settings)] if settings is not None else []
    return [
        structlog.contextvars.merge_contextvars,
        *identity,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def get_logging_config(settings: "Settings") -> dict[str, Any]:
    """Generate a logging configuration dictionary for `logging.config.dictConfig`.

    Production and staging emit one JSON object per line for the log pipeline;
    development uses the colored console renderer.

    Note:
        This is a pure function that does not modify global state.

    Args:
        settings: Application settings containing LOG_LEVEL and ENVIRONMENT.

    Returns:
        dict[str, Any]: Configuration dictionary compatible with dictConfig.
    """
    log_level = settings.LOG_LEVEL.upper()

    if settings.ENVIRONMENT.lower() in ("production", "staging"):
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "default": {
                "()": "structlog.stdlib.ProcessorFormatter",
                "processor": renderer,
                "foreign_pre_chain": get_common_processors(settings),
            },
        },
        "handlers": {
            "console": {
                "level": log_level,
                "class": "logging.StreamHandler",
                "formatter": "default",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": {
            "": {
                "handlers": ["console"],
                "level": log_level,
                "propagate": True,
            },
            **{
                lib: {"level": "WARNING", "propagate": False}
                for lib in settings.LOGGING_NOISY_MODULES
            },
        },
    }


def configure_structlog_wrapper(settings: "Settings") -> None:
    """Configure the structlog wrapper and processor chain.

    Args:
        settings: Application settings supplying the node identity.
    """
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *get_common_processors(settings),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def configure_logging(settings: "Settings") -> None:
    """Apply the stdlib handler configuration, then the structlog chain."""
    logging.config.dictConfig(get_logging_config(settings))
    configure_structlog_wrapper(settings)


# =============================================================================
# LOGGER RETRIEVAL
# =============================================================================


def get_logger(name: str | None = None) -> Any:
    """Retrieve a configured structlog logger instance.

    Args:
        name: Optional logger name. If omitted, return the root logger.

    Returns:
        A bound structlog logger instance.
    """
    if name:
        return structlog.get_logger(name)
    return structlog.get_logger()


# =============================================================================
# CONTEXT VARIABLE EXPORTS
# =============================================================================

bind_contextvars = structlog.contextvars.bind_contextvars
bound_contextvars = structlog.contextvars.bound_contextvars
unbind_contextvars = structlog.contextvars.unbind_contextvars
clear_contextvars = structlog.contextvars.clear_contextvars
