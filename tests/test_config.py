"""Configuration settings test suite.

Validate environment variable names, defaults, the silent integer fallback and
endpoint list parsing performed by the configuration module.
"""
import os
from unittest import mock

import pytest
from pydantic import ValidationError

from app.config import Settings, load_settings


def test_defaults_when_environment_is_empty():
    """Verify every probing field has its documented default."""
    with mock.patch.dict(os.environ, {}, clear=True):
        settings = Settings(_env_file=None)

    assert settings.TIMEOUT == 1
    assert settings.RESCAN == 30
    assert settings.NODEIP == ""
    assert settings.CLUSTERNAME == ""
    assert settings.WEBHOOKURL == ""
    assert settings.PORT == 8080
    assert settings.endpoints == ()


def test_values_are_read_from_environment():
    """Verify the original environment variable names are honoured."""
    env_vars = {
        "TIMEOUT": "3",
        "NODEIP": "10.2.0.7",
        "CLUSTERNAME": "prod-east",
        "WEBHOOKURL": "https://hooks.example.com/abc",
        "RESCAN": "15",
        "ENDPOINTS": "10.0.0.5:9042 seed\n10.0.0.6:9042\n",
    }
    with mock.patch.dict(os.environ, env_vars, clear=True):
        settings = load_settings(_env_file=None)

    assert settings.TIMEOUT == 3
    assert settings.NODEIP == "10.2.0.7"
    assert settings.CLUSTERNAME == "prod-east"
    assert settings.WEBHOOKURL == "https://hooks.example.com/abc"
    assert settings.RESCAN == 15
    assert settings.endpoints == ("10.0.0.5:9042", "10.0.0.6:9042")


@pytest.mark.parametrize("raw", ["abc", "1.5", "", "ten"])
def test_invalid_integers_fall_back_to_defaults(raw):
    """Verify malformed integers never fail loading and use the default."""
    env_vars = {"TIMEOUT": raw, "RESCAN": raw, "MAX_CONCURRENT_PROBES": raw}
    with mock.patch.dict(os.environ, env_vars, clear=True):
        settings = Settings(_env_file=None)

    assert settings.TIMEOUT == 1
    assert settings.RESCAN == 30
    assert settings.MAX_CONCURRENT_PROBES == 10


def test_endpoint_comments_and_blank_lines_are_skipped():
    """Verify comment and blank lines are excluded and order is preserved."""
    raw = "\n".join([
        "# primary ring",
        "10.0.0.5:1234 some comment",
        "",
        "   ",
        "  # indented comment",
        "db.internal:5432",
        "10.0.0.7:1234\tseed c",
    ])
    settings = Settings(ENDPOINTS=raw, _env_file=None)

    assert settings.endpoints == ("10.0.0.5:1234", "db.internal:5432", "10.0.0.7:1234")
    assert settings.endpoint_entries[0].comment == "some comment"
    assert settings.endpoint_entries[1].comment == ""


def test_settings_are_immutable():
    """Verify configuration cannot be mutated after load."""
    settings = Settings(_env_file=None)
    with pytest.raises(ValidationError):
        settings.RESCAN = 5


def test_alerts_require_flag_and_webhook():
    """Verify alerting stays off unless explicitly switched on with a URL."""
    assert not Settings(WEBHOOKURL="https://hooks.example.com", _env_file=None).alerts_enabled
    assert not Settings(NOTIFY_ON_FAILURE=True, _env_file=None).alerts_enabled
    assert Settings(
        NOTIFY_ON_FAILURE=True, WEBHOOKURL="https://hooks.example.com", _env_file=None
    ).alerts_enabled


@pytest.mark.parametrize(
    ("env_vars", "field", "expected"),
    [
        ({"LOG_LEVEL": "INFO"}, "LOG_LEVEL", "info"),
        ({"LOG_LEVEL": " Warning "}, "LOG_LEVEL", "warning"),
        ({"LOG_LEVEL": "verbose"}, "LOG_LEVEL", "info"),
        ({"ENVIRONMENT": "PRODUCTION"}, "ENVIRONMENT", "production"),
        ({"ENVIRONMENT": "prod"}, "ENVIRONMENT", "development"),
        ({"NOTIFY_ON_FAILURE": "maybe"}, "NOTIFY_ON_FAILURE", False),
        ({"NOTIFY_ON_FAILURE": "TRUE"}, "NOTIFY_ON_FAILURE", True),
        ({"NOTIFY_ON_FAILURE": "yes"}, "NOTIFY_ON_FAILURE", True),
        ({"NOTIFY_ON_FAILURE": "0"}, "NOTIFY_ON_FAILURE", False),
    ],
)
def test_choices_and_flags_never_fail_loading(env_vars, field, expected):
    """Verify case variants are normalized and unknown values use the default."""
    with mock.patch.dict(os.environ, env_vars, clear=True):
        settings = load_settings(_env_file=None)

    assert getattr(settings, field) == expected
