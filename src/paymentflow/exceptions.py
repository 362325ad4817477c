"""Custom exceptions for PaymentFlow.

All custom exceptions inherit from PaymentFlowError.

Every error raised by the editing engine is recoverable: it is reported through
the transient error notification and leaves the graph and its history exactly
as they were before the failed operation.

Error codes are unique per exception type and can be used for logging,
API responses, and client-side error handling.
"""

from typing import Any, Optional, Dict, TypeVar, Type

# --- Exception Type Variable for type-safe factory methods ---
E = TypeVar("E", bound="PaymentFlowError")

class PaymentFlowError(Exception):
    """
    Base error for PaymentFlow.

    Args:
        message: Human-readable error message.
        code: Unique error code for programmatic handling.
        details: Optional structured data for debugging or client use.
    """

    error_code: str = "paymentflow.error"

    def __init__(
        self: "PaymentFlowError",
        message: Optional[str] = None,
        *,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message: str = message or self.__class__.__doc__ or "PaymentFlow error"
        self.code: str = code or self.error_code
        self.details: Dict[str, Any] = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the exception for logging or API responses."""
        return {
            "error": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }

    @classmethod
    def from_exception(cls: Type[E], exc: Exception, *, code: Optional[str] = None, details: Optional[Dict[str, Any]] = None) -> E:
        """
        Factory to wrap an arbitrary exception as a PaymentFlowError subclass.
        Preserves the original message and attaches original exception as detail.
        """
        return cls(
            message=str(exc),
            code=code,
            details={**(details or {}), "original_exception": repr(exc)},
        )

# --- Connection validation ---

class ValidationRejected(PaymentFlowError):
    """Raised when a proposed edge is rejected."""
    error_code: str = "paymentflow.connection_rejected"

class TopologyViolation(ValidationRejected):
    """Raised when an edge between the payment initializer and a country is attempted."""
    error_code: str = "paymentflow.topology_violation"

class InvalidConnection(ValidationRejected):
    """Raised for self-loops and edges whose endpoints do not resolve."""
    error_code: str = "paymentflow.invalid_connection"

# --- Graph conflicts ---

class ConflictError(PaymentFlowError):
    """Raised when a node conflicts with one already in the graph."""
    error_code: str = "paymentflow.conflict_error"

class DuplicateLabel(ConflictError):
    """Raised when a node with the same label is already present."""
    error_code: str = "paymentflow.duplicate_label"

class DuplicateNodeId(ConflictError):
    """Raised when a node with the same id is already present."""
    error_code: str = "paymentflow.duplicate_node_id"

# --- Persistence ---

class NoSavedWorkflow(PaymentFlowError):
    """Raised when loading and nothing usable is stored in the workflow slot."""
    error_code: str = "paymentflow.no_saved_workflow"

class InvalidWorkflowFile(PaymentFlowError):
    """Raised when an imported or stored workflow payload is malformed."""
    error_code: str = "paymentflow.invalid_workflow_file"

class SerializationError(PaymentFlowError):
    """Raised when a graph cannot be encoded as a workflow document."""
    error_code: str = "paymentflow.serialization_error"

class ConfigurationError(PaymentFlowError):
    """Raised for configuration or environment errors."""
    error_code: str = "paymentflow.configuration_error"

# --- Canvas changes ---

class InvalidCanvasChange(PaymentFlowError):
    """Raised when a batch of canvas change records cannot be decoded."""
    error_code: str = "paymentflow.invalid_change"
