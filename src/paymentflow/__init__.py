"""PaymentFlow - an editing engine for payment routing workflow graphs."""

from importlib.metadata import version as _version

from paymentflow.builder.editing_engine import EditingEngine, EventBus
from paymentflow.builder.types import Edge, GraphSnapshot
from paymentflow.settings import Settings, get_settings
from . import exceptions

__version__: str = _version("paymentflow")

__all__ = [
    "EditingEngine",
    "EventBus",
    "Edge",
    "GraphSnapshot",
    "Settings",
    "get_settings",
    "exceptions",
]
