"""
Connection validation and integrity checks for payment workflow graphs.

``validate_connection`` is the gate every connect attempt goes through. It is a
pure function of the current snapshot and the proposed endpoints and is run
fresh on every attempt; nothing is cached between calls.

``GraphValidator`` reports structural problems in a snapshot (duplicate ids,
dangling edges, self-loops, more than one initializer). It never blocks a load
or an import; the CLI and the API use it to surface warnings.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Union

from paymentflow.builder.constants import (
    NodeKind,
    MSG_INVALID_CONNECTION,
    MSG_TOPOLOGY_VIOLATION,
)
from paymentflow.builder.types import GraphSnapshot, NodeId
from paymentflow.exceptions import (
    InvalidConnection,
    TopologyViolation,
    ValidationRejected,
)

# --- Verdicts ---

@dataclass(frozen=True)
class Accept:
    source: NodeId
    target: NodeId

@dataclass(frozen=True)
class Reject:
    error: ValidationRejected

ConnectionVerdict = Union[Accept, Reject]

_INITIALIZER_COUNTRY = {NodeKind.PAYMENT_INITIALIZER, NodeKind.COUNTRY}

def validate_connection(
    snapshot: GraphSnapshot,
    source: Optional[NodeId],
    target: Optional[NodeId],
) -> ConnectionVerdict:
    """
    Decide whether ``source -> target`` may be added to ``snapshot``.

    The payment initializer may only be wired to payment providers: an edge
    between it and a country, in either direction, is a topology violation.
    Any other pair is accepted as long as both ids resolve and differ.

    Returns:
        Accept, or Reject carrying the error to report.
    """
    source_node = snapshot.get_node(source) if source else None
    target_node = snapshot.get_node(target) if target else None

    if source_node is not None and target_node is not None:
        if {source_node.kind, target_node.kind} == _INITIALIZER_COUNTRY:
            return Reject(TopologyViolation(
                MSG_TOPOLOGY_VIOLATION,
                details={"source": source, "target": target},
            ))

    if source_node is None or target_node is None or source == target:
        return Reject(InvalidConnection(
            MSG_INVALID_CONNECTION,
            details={"source": source, "target": target},
        ))
    return Accept(source=source_node.id, target=target_node.id)

# --- Integrity Report ---

class GraphValidator:
    """
    Analyzes a snapshot for structural problems.

    Checks:
      - Node ids are unique
      - Edge ids are unique
      - Edges reference existing nodes
      - No self-loops
      - At most one payment initializer
      - No initializer/country edges
    """

    def __init__(self, snapshot: GraphSnapshot) -> None:
        self.snapshot = snapshot

    def issues(self) -> List[str]:
        """Run every check and return human-readable findings, empty when clean."""
        found: List[str] = []
        found.extend(self._check_unique_node_ids())
        found.extend(self._check_unique_edge_ids())
        found.extend(self._check_edges())
        found.extend(self._check_single_initializer())
        return found

    def is_valid(self) -> bool:
        return not self.issues()

    def _check_unique_node_ids(self) -> List[str]:
        counts: Dict[str, int] = {}
        for node in self.snapshot.nodes:
            counts[node.id] = counts.get(node.id, 0) + 1
        return [f"Duplicate node id '{node_id}'" for node_id, n in counts.items() if n > 1]

    def _check_unique_edge_ids(self) -> List[str]:
        counts: Dict[str, int] = {}
        for edge in self.snapshot.edges:
            counts[edge.id] = counts.get(edge.id, 0) + 1
        return [f"Duplicate edge id '{edge_id}'" for edge_id, n in counts.items() if n > 1]

    def _check_edges(self) -> List[str]:
        found: List[str] = []
        kinds = {node.id: node.kind for node in self.snapshot.nodes}
        for edge in self.snapshot.edges:
            if edge.source not in kinds:
                found.append(f"Edge '{edge.id}' references missing source '{edge.source}'")
            if edge.target not in kinds:
                found.append(f"Edge '{edge.id}' references missing target '{edge.target}'")
            if edge.source == edge.target:
                found.append(f"Edge '{edge.id}' is a self-loop on '{edge.source}'")
            elif {kinds.get(edge.source), kinds.get(edge.target)} == _INITIALIZER_COUNTRY:
                found.append(f"Edge '{edge.id}' connects the payment initializer to a country")
        return found

    def _check_single_initializer(self) -> List[str]:
        initializers = [n.id for n in self.snapshot.nodes if n.kind is NodeKind.PAYMENT_INITIALIZER]
        if len(initializers) > 1:
            return [f"More than one payment initializer: {', '.join(initializers)}"]
        return []
