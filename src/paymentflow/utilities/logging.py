"""
Logging utilities for PaymentFlow.

Every module logs under the ``PaymentFlow`` namespace. ``configure_logging``
installs a single Rich handler on that namespace; called without a level it
takes ``PAYMENTFLOW_LOG_LEVEL`` from the settings. Test runs
(``PAYMENTFLOW_TEST_MODE``) get plain, timestamp-free lines so captured output
stays stable.
"""

import logging
from typing import Optional, Union

from rich.console import Console
from rich.logging import RichHandler

from paymentflow.exceptions import ConfigurationError

_LOG_NAMESPACE = "PaymentFlow"

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

def get_logger(name: str) -> logging.Logger:
    """
    Get a logger nested under PaymentFlow namespace.

    Args:
        name: Module path below the namespace, e.g. ``"builder.history"``.
    """
    return logging.getLogger(f"{_LOG_NAMESPACE}.{name}")

def parse_level(level: Union[str, int]) -> int:
    """
    Numeric level for a level name (any case) or an int.

    Raises:
        ConfigurationError: If the name is not one of LOG_LEVELS.
    """
    if isinstance(level, int):
        return level
    name = level.strip().upper()
    if name not in LOG_LEVELS:
        raise ConfigurationError(
            f"Invalid log level: {level}",
            details={"allowed": list(LOG_LEVELS)},
        )
    return getattr(logging, name)

def configure_logging(
    level: Optional[Union[str, int]] = None,
    *,
    console: Optional[Console] = None,
) -> logging.Logger:
    """
    Configure the PaymentFlow logger. Safe to call again; the handler is replaced.

    Args:
        level: Level name or number. Defaults to the configured ``log_level``.
        console: Rich console to write to; stderr when omitted.

    Raises:
        ConfigurationError: For an unknown level name.
    """
    from paymentflow.settings import get_settings

    settings = get_settings()
    resolved = parse_level(settings.log_level if level is None else level)

    logger = logging.getLogger(_LOG_NAMESPACE)
    for hdlr in logger.handlers[:]:
        logger.removeHandler(hdlr)

    handler = RichHandler(
        console=console or Console(stderr=True),
        rich_tracebacks=not settings.test_mode,
        show_time=not settings.test_mode,
        show_level=True,
        show_path=False,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    logger.addHandler(handler)
    logger.setLevel(resolved)
    return logger
