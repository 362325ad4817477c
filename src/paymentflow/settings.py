"""
PaymentFlow settings.

Values come from environment variables prefixed with ``PAYMENTFLOW_``; a ``.env``
file in the working directory is loaded first so local overrides do not need to
be exported by hand.
"""

import os
from functools import lru_cache
from typing import Dict, Optional, Tuple

import dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

from paymentflow.exceptions import ConfigurationError
from paymentflow.utilities.logging import LOG_LEVELS

ENV_PREFIX = "PAYMENTFLOW_"

class Settings(BaseModel):
    """Runtime configuration for the editing engine and its surfaces."""

    storage_dir: str = Field(default="./.paymentflow_storage", description="Directory holding key-value slots")
    storage_slot: str = Field(default="workflow", description="Slot the workflow is saved to")
    notification_ttl: float = Field(default=5.0, gt=0, description="Seconds before a notification clears")
    history_limit: Optional[int] = Field(default=None, ge=1, description="Maximum undo entries, unbounded if unset")
    viewport_width: float = Field(default=1280.0, gt=0)
    viewport_height: float = Field(default=720.0, gt=0)
    log_level: str = Field(default="INFO")
    test_mode: bool = Field(default=False, description="Set by the test suite; plain log output")

    @field_validator("storage_slot")
    @classmethod
    def slot_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Storage slot must not be empty")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_known(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}")
        return v

    @property
    def viewport_center(self) -> Tuple[float, float]:
        return self.viewport_width / 2, self.viewport_height / 2

    @classmethod
    def from_env(cls, environ: Optional[Dict[str, str]] = None) -> "Settings":
        """
        Build settings from ``PAYMENTFLOW_*`` variables.

        Args:
            environ: Mapping to read instead of ``os.environ``.

        Raises:
            ConfigurationError: If a variable holds an invalid value.
        """
        source = os.environ if environ is None else environ
        values = {
            key[len(ENV_PREFIX):].lower(): value
            for key, value in source.items()
            if key.startswith(ENV_PREFIX) and value != ""
        }
        try:
            return cls(**values)
        except ValidationError as e:
            raise ConfigurationError.from_exception(e) from e

@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load ``.env`` once and return the process-wide settings."""
    dotenv.load_dotenv()
    return Settings.from_env()
