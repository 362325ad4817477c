"""
PaymentFlow Builder

Graph model, connection validation, history, layout and the editing engine
that ties them together.
"""

from paymentflow.builder.editing_engine import EditingEngine
from paymentflow.builder.graph_model import GraphModel, default_workflow
from paymentflow.builder.graph_validator import GraphValidator, validate_connection
from paymentflow.builder.history import HistoryStack

__all__ = [
    "EditingEngine",
    "GraphModel",
    "GraphValidator",
    "HistoryStack",
    "default_workflow",
    "validate_connection",
]
