"""
json_graph.py

JSON workflow document serialization/deserialization for PaymentFlow graphs.

A workflow document is a JSON object with exactly two top-level fields:

    {"nodes": [{"id", "type", "data": {"label", ...}, "position": {"x", "y"}}, ...],
     "edges": [{"id", "source", "target", ...}, ...]}

There is no version field; a missing ``nodes`` or ``edges`` field is the only
shape check. Node and edge order is preserved and nothing is coerced, so
``deserialize_graph(serialize_graph(s)) == s`` for every snapshot.

Documents written by the first release of the editor tagged the payment
initializer as a ``paymentProvider`` labelled "Payment Initialized". Those
nodes are upgraded to the ``paymentInitializer`` tag when read.
"""

from typing import Any, Dict, List, Sequence, Union
import json
import os
import shutil
import tempfile

from pydantic import ValidationError

from paymentflow.builder.constants import (
    MSG_INVALID_CHANGE,
    MSG_INVALID_WORKFLOW_FILE,
    NodeKind,
    PAYMENT_INITIALIZER_LABEL,
)
from paymentflow.builder.types import (
    EdgeChange,
    GraphSnapshot,
    NodeChange,
    edge_changes_adapter,
    node_changes_adapter,
)
from paymentflow.exceptions import InvalidCanvasChange, InvalidWorkflowFile, SerializationError

RawDocument = Union[str, bytes, bytearray]

# --- Serialization ---

def serialize_graph(snapshot: GraphSnapshot) -> str:
    """
    Serialize a snapshot to a workflow document string.

    Raises:
        SerializationError: If a node or edge carries a value JSON cannot hold.
    """
    try:
        return json.dumps(snapshot.to_document(), indent=2, ensure_ascii=False)
    except (TypeError, ValueError) as e:
        raise SerializationError(f"Failed to serialize graph: {e}") from e

def encode_graph(snapshot: GraphSnapshot) -> bytes:
    """UTF-8 bytes of ``serialize_graph``; what export hands to a download sink."""
    return serialize_graph(snapshot).encode("utf-8")

# --- Deserialization ---

def parse_document(raw: RawDocument) -> Any:
    """
    Parse raw JSON text or bytes.

    Raises:
        InvalidWorkflowFile: If the payload is not valid UTF-8 JSON.
    """
    try:
        if isinstance(raw, (bytes, bytearray)):
            raw = raw.decode("utf-8")
        return json.loads(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise InvalidWorkflowFile(MSG_INVALID_WORKFLOW_FILE, details={"reason": str(e)}) from e

def has_workflow_shape(data: Any) -> bool:
    """True when ``data`` is an object carrying both ``nodes`` and ``edges``."""
    return (
        isinstance(data, dict)
        and data.get("nodes") is not None
        and data.get("edges") is not None
    )

def snapshot_from_document(data: Dict[str, Any]) -> GraphSnapshot:
    """
    Decode a shape-checked document into a snapshot.

    Raises:
        InvalidWorkflowFile: If nodes or edges do not match the node variants.
    """
    nodes = data["nodes"]
    if isinstance(nodes, list):
        nodes = [_upgrade_legacy_node(node) for node in nodes]
    try:
        return GraphSnapshot.model_validate({"nodes": nodes, "edges": data["edges"]})
    except ValidationError as e:
        raise InvalidWorkflowFile(
            MSG_INVALID_WORKFLOW_FILE,
            details={"errors": _summarize(e)},
        ) from e

def deserialize_graph(raw: RawDocument) -> GraphSnapshot:
    """
    Parse, shape-check and decode a workflow document.

    Raises:
        InvalidWorkflowFile: On any parse, shape or decode failure.
    """
    data = parse_document(raw)
    if not has_workflow_shape(data):
        raise InvalidWorkflowFile(
            MSG_INVALID_WORKFLOW_FILE,
            details={"reason": "document must contain 'nodes' and 'edges'"},
        )
    return snapshot_from_document(data)

def _upgrade_legacy_node(node: Any) -> Any:
    if not isinstance(node, dict):
        return node
    data = node.get("data")
    if (
        node.get("type") == NodeKind.PAYMENT_PROVIDER.value
        and isinstance(data, dict)
        and data.get("label") == PAYMENT_INITIALIZER_LABEL
    ):
        return {**node, "type": NodeKind.PAYMENT_INITIALIZER.value}
    return node

def _summarize(error: ValidationError) -> List[str]:
    return [
        f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}"
        for err in error.errors()
    ]

# --- Canvas Change Batches ---

def decode_node_changes(changes: Sequence[Any]) -> List[NodeChange]:
    """
    Decode a whole batch of node change records before any of it is applied.

    Raises:
        InvalidCanvasChange: If any record is malformed.
    """
    return _decode_changes(node_changes_adapter, changes)

def decode_edge_changes(changes: Sequence[Any]) -> List[EdgeChange]:
    return _decode_changes(edge_changes_adapter, changes)

def _decode_changes(adapter: Any, changes: Sequence[Any]) -> List[Any]:
    try:
        return adapter.validate_python(list(changes))
    except (ValidationError, TypeError) as e:
        details: Dict[str, Any] = {"reason": str(e)}
        if isinstance(e, ValidationError):
            details = {"errors": _summarize(e)}
        raise InvalidCanvasChange(MSG_INVALID_CHANGE, details=details) from e

# --- File I/O Utilities ---

def load_graph_from_file(path: str) -> GraphSnapshot:
    """
    Load a snapshot from a workflow JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
        InvalidWorkflowFile: If the file contents are invalid.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"File not found: {path}")
    with open(path, "rb") as f:
        return deserialize_graph(f.read())

def save_graph_to_file(snapshot: GraphSnapshot, path: str) -> None:
    """Write ``snapshot`` to ``path`` atomically."""
    write_atomic(path, encode_graph(snapshot))

def write_atomic(path: str, payload: bytes) -> None:
    """
    Write bytes through a temp file in the target directory, then move into place.

    Raises:
        OSError: If the file cannot be written.
    """
    dir_name = os.path.dirname(os.path.abspath(path))
    os.makedirs(dir_name, exist_ok=True)
    with tempfile.NamedTemporaryFile("wb", dir=dir_name, delete=False) as tmp_file:
        tmp_file.write(payload)
        temp_path = tmp_file.name
    try:
        shutil.move(temp_path, path)
    except Exception as e:
        if os.path.exists(temp_path):
            os.remove(temp_path)
        raise OSError(f"Failed to write {path} atomically: {e}") from e
