import logging

import pytest
from rich.logging import RichHandler

from paymentflow.exceptions import ConfigurationError
from paymentflow.settings import Settings, get_settings
from paymentflow.utilities.logging import LOG_LEVELS, configure_logging, get_logger, parse_level


def test_defaults():
    settings = Settings.from_env({})
    assert settings.storage_slot == "workflow"
    assert settings.notification_ttl == 5.0
    assert settings.history_limit is None
    assert settings.viewport_center == (640.0, 360.0)


def test_from_env_reads_prefixed_variables():
    settings = Settings.from_env({
        "PAYMENTFLOW_STORAGE_SLOT": "draft",
        "PAYMENTFLOW_HISTORY_LIMIT": "50",
        "PAYMENTFLOW_LOG_LEVEL": "debug",
        "OTHER_SETTING": "ignored",
    })
    assert settings.storage_slot == "draft"
    assert settings.history_limit == 50
    assert settings.log_level == "DEBUG"


@pytest.mark.parametrize("env", [
    {"PAYMENTFLOW_NOTIFICATION_TTL": "-1"},
    {"PAYMENTFLOW_HISTORY_LIMIT": "0"},
    {"PAYMENTFLOW_LOG_LEVEL": "LOUD"},
    {"PAYMENTFLOW_STORAGE_SLOT": "   "},
])
def test_invalid_values_raise_configuration_error(env):
    with pytest.raises(ConfigurationError):
        Settings.from_env(env)


def test_get_settings_reads_environment(isolated_env, monkeypatch):
    monkeypatch.setenv("PAYMENTFLOW_STORAGE_SLOT", "from-env")
    get_settings.cache_clear()
    settings = get_settings()
    assert settings.storage_slot == "from-env"
    assert settings.storage_dir == str(isolated_env)
    assert get_settings() is settings


def test_logger_namespace():
    assert get_logger("builder").name == "PaymentFlow.builder"


def test_configure_logging(isolated_env):
    root = configure_logging("warning")
    assert root.name == "PaymentFlow"
    assert root.level == logging.WARNING
    assert len(root.handlers) == 1
    configure_logging(logging.DEBUG)
    assert root.level == logging.DEBUG
    assert len(root.handlers) == 1


def test_configure_logging_defaults_to_settings_level(isolated_env, monkeypatch):
    monkeypatch.setenv("PAYMENTFLOW_LOG_LEVEL", "error")
    get_settings.cache_clear()
    assert configure_logging().level == logging.ERROR


def test_test_mode_uses_plain_output(isolated_env):
    assert get_settings().test_mode is True
    handler = configure_logging("INFO").handlers[0]
    assert isinstance(handler, RichHandler)
    assert handler.rich_tracebacks is False


def test_unknown_log_level_is_configuration_error(isolated_env):
    with pytest.raises(ConfigurationError) as excinfo:
        configure_logging("LOUD")
    assert excinfo.value.details["allowed"] == list(LOG_LEVELS)
    assert parse_level(" Info ") == logging.INFO
