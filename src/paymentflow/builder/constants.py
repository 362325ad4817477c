"""
PaymentFlow Shared Constants & Type-Safe Enumerations

This module centralizes node kinds, the payment provider catalog, layout
geometry, and user-facing messages so the graph model, validator, layout
engine, and surfaces agree on a single source of truth.
"""

from enum import Enum, unique
from typing import Dict, List, TypedDict

# --- Node Kinds ---

@unique
class NodeKind(str, Enum):
    """Document tags for the three node variants."""
    PAYMENT_PROVIDER = "paymentProvider"
    COUNTRY = "countryNode"
    PAYMENT_INITIALIZER = "paymentInitializer"

NODE_KIND_LABELS: Dict[NodeKind, str] = {
    NodeKind.PAYMENT_PROVIDER: "Payment Provider",
    NodeKind.COUNTRY: "Country",
    NodeKind.PAYMENT_INITIALIZER: "Payment Initializer",
}

# --- Payment Initializer ---

PAYMENT_INITIALIZER_ID: str = "payment-initialized"
PAYMENT_INITIALIZER_LABEL: str = "Payment Initialized"
PAYMENT_INITIALIZER_DEFAULT_AMOUNT: float = 10
PAYMENT_INITIALIZER_POSITION = (600.0, 150.0)

# --- Provider Catalog ---

class ProviderEntry(TypedDict):
    name: str
    icon: str

PAYMENT_PROVIDERS: List[ProviderEntry] = [
    {"name": "Google Pay", "icon": "google.png"},
    {"name": "Apple Pay", "icon": "apple.webp"},
    {"name": "Stripe", "icon": "stripe.jpg"},
    {"name": "Paypal", "icon": "paypal.png"},
    {"name": "Amazon Pay", "icon": "amazon.webp"},
]

PROVIDER_ICONS: Dict[str, str] = {p["name"]: p["icon"] for p in PAYMENT_PROVIDERS}

# New providers land in this column, one row per existing node.
PROVIDER_COLUMN_X: float = 400.0
PROVIDER_ROW_HEIGHT: float = 100.0

# --- Edge Style (view concern only) ---

EDGE_STYLE: Dict[str, object] = {
    "stroke": "#000",
    "strokeDasharray": "5,5",
    "strokeDashoffset": 0,
}

# --- Layout Geometry ---

LAYOUT_ROW_HEIGHT: float = 100.0
AUTO_LAYOUT_ANCHOR = (100.0, 100.0)
AUTO_LAYOUT_COUNTRY_Y: float = 200.0
AUTO_LAYOUT_PROVIDER_X: float = 300.0
AUTO_LAYOUT_GAP: float = 30.0
CENTER_COLUMN_WIDTH: float = 200.0
CENTER_COLUMN_GAP: float = 100.0

# --- Persistence ---

DEFAULT_STORAGE_SLOT: str = "workflow"
EXPORT_FILENAME: str = "workflow.json"
EXPORT_MEDIA_TYPE: str = "application/json"

# --- User-Facing Messages ---

MSG_TOPOLOGY_VIOLATION: str = (
    "Unable to connect to payment initializer. Please ensure the payment "
    "initializer only connects to payment providers and try again!"
)
MSG_INVALID_CONNECTION: str = "Invalid connection"
MSG_DUPLICATE_LABEL: str = "{label} already added"
MSG_DUPLICATE_NODE_ID: str = "A node with this id already exists"
MSG_NO_SAVED_WORKFLOW: str = "No saved workflow found"
MSG_INVALID_WORKFLOW_FILE: str = "Invalid workflow file"
MSG_INVALID_CHANGE: str = "Invalid canvas change"
MSG_WORKFLOW_SAVED: str = "Workflow saved successfully"

NOTIFICATION_TTL_SECONDS: float = 5.0

# --- Viewport ---

DEFAULT_VIEWPORT_CENTER = (640.0, 360.0)
