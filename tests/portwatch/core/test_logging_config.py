"""Test suite for structured logging configuration.

Validate that the logging system picks the right renderer per environment, keeps
noisy libraries quiet and exposes working context variable helpers.
"""
import structlog

from app.config import Settings
from app.portwatch.core.logging_config import (
    add_node_identity,
    bind_contextvars,
    bound_contextvars,
    clear_contextvars,
    get_common_processors,
    get_logging_config,
)


def test_config_generates_json_in_production():
    """Verify production uses the JSON renderer for the log pipeline."""
    settings = Settings(ENVIRONMENT="production", _env_file=None)
    config = get_logging_config(settings)

    processor = config["formatters"]["default"]["processor"]
    assert isinstance(processor, structlog.processors.JSONRenderer)


def test_config_generates_console_in_development():
    settings = Settings(ENVIRONMENT="development", _env_file=None)
    config = get_logging_config(settings)

    processor = config["formatters"]["default"]["processor"]
    assert isinstance(processor, structlog.dev.ConsoleRenderer)


def test_log_level_and_stdout_handler():
    settings = Settings(LOG_LEVEL="warning", _env_file=None)
    config = get_logging_config(settings)

    assert config["handlers"]["console"]["level"] == "WARNING"
    assert config["handlers"]["console"]["stream"] == "ext://sys.stdout"
    assert config["loggers"][""]["level"] == "WARNING"


def test_noisy_modules_are_capped_at_warning():
    config = get_logging_config(Settings(_env_file=None))

    assert config["loggers"]["httpx"] == {"level": "WARNING", "propagate": False}
    assert config["loggers"]["uvicorn.access"]["level"] == "WARNING"


def test_common_processors_include_context_merge():
    """Verify merge_contextvars is present, so request ids and cycle numbers reach log entries."""
    assert structlog.contextvars.merge_contextvars in get_common_processors()


def test_contextvars_binding_and_clearing():
    bind_contextvars(request_id="test-123")
    assert structlog.contextvars.get_contextvars()["request_id"] == "test-123"

    clear_contextvars()
    assert "request_id" not in structlog.contextvars.get_contextvars()


def test_bound_contextvars_is_scoped():
    """Verify the scheduler's per-cycle binding is removed on exit."""
    clear_contextvars()
    with bound_contextvars(cycle=7):
        assert structlog.contextvars.get_contextvars()["cycle"] == 7
    assert "cycle" not in structlog.contextvars.get_contextvars()


def test_node_identity_is_added_to_every_entry():
    """Verify entries carry the probing node and cluster unless set explicitly."""
    settings = Settings(NODEIP="10.2.0.7", CLUSTERNAME="prod-east", _env_file=None)
    processor = add_node_identity(settings)

    assert processor(None, "info", {"event": "Checking"}) == {
        "event": "Checking",
        "node": "10.2.0.7",
        "cluster": "prod-east",
    }
    assert processor(None, "info", {"event": "x", "node": "other"})["node"] == "other"


def test_logging_config_chain_includes_node_identity():
    settings = Settings(NODEIP="10.2.0.7", _env_file=None)
    chain = get_logging_config(settings)["formatters"]["default"]["foreign_pre_chain"]

    assert len(chain) == len(get_common_processors()) + 1
