"""
Graph Model for payment workflows.

Holds the live ``GraphSnapshot`` and the structural rules for changing it:
unique labels and ids on insert, cascading edge removal on delete, and
validator-gated edge creation. Every operation swaps in a new frozen snapshot;
the previous one is never modified.
"""

from typing import Optional, Sequence

from paymentflow.builder.constants import (
    EDGE_STYLE,
    MSG_DUPLICATE_LABEL,
    MSG_DUPLICATE_NODE_ID,
    PAYMENT_PROVIDERS,
)
from paymentflow.builder.graph_validator import Reject, validate_connection
from paymentflow.builder.types import (
    AnyNode,
    Edge,
    EdgeId,
    EdgeStyle,
    GraphSnapshot,
    NodeId,
    make_country,
    make_payment_provider,
)
from paymentflow.exceptions import DuplicateLabel, DuplicateNodeId
from paymentflow.utilities.logging import get_logger

logger = get_logger("builder.graph_model")

class GraphModel:
    """Canonical node/edge collections of one editing session."""

    def __init__(self, snapshot: Optional[GraphSnapshot] = None) -> None:
        self._snapshot: GraphSnapshot = snapshot or GraphSnapshot()

    @property
    def snapshot(self) -> GraphSnapshot:
        return self._snapshot

    def get_node(self, node_id: NodeId) -> Optional[AnyNode]:
        return self._snapshot.get_node(node_id)

    # --- Mutations ---

    def add_node(self, node: AnyNode) -> GraphSnapshot:
        """
        Append ``node``.

        Raises:
            DuplicateLabel: If a node with the same label exists.
            DuplicateNodeId: If a node with the same id exists.
        """
        if any(existing.label == node.label for existing in self._snapshot.nodes):
            raise DuplicateLabel(MSG_DUPLICATE_LABEL.format(label=node.label), details={"label": node.label})
        if self._snapshot.get_node(node.id) is not None:
            raise DuplicateNodeId(MSG_DUPLICATE_NODE_ID, details={"id": node.id})
        self._snapshot = GraphSnapshot(
            nodes=self._snapshot.nodes + (node,),
            edges=self._snapshot.edges,
        )
        return self._snapshot

    def delete_node(self, node_id: NodeId) -> GraphSnapshot:
        """Remove a node and every edge touching it. Unknown ids are a no-op."""
        if self._snapshot.get_node(node_id) is None:
            logger.debug("delete_node: %s not in graph", node_id)
            return self._snapshot
        self._snapshot = GraphSnapshot(
            nodes=tuple(n for n in self._snapshot.nodes if n.id != node_id),
            edges=tuple(e for e in self._snapshot.edges if not e.touches(node_id)),
        )
        return self._snapshot

    def delete_edge(self, edge_id: EdgeId) -> GraphSnapshot:
        """Remove one edge by id. Unknown ids are a no-op."""
        if edge_id not in self._snapshot.edge_ids():
            return self._snapshot
        self._snapshot = GraphSnapshot(
            nodes=self._snapshot.nodes,
            edges=tuple(e for e in self._snapshot.edges if e.id != edge_id),
        )
        return self._snapshot

    def connect(self, source: Optional[NodeId], target: Optional[NodeId]) -> Edge:
        """
        Add ``source -> target`` if the connection validator accepts it.

        An identical edge that already exists is returned unchanged.

        Raises:
            TopologyViolation: Initializer/country edge in either direction.
            InvalidConnection: Self-loop or unresolved endpoint.
        """
        verdict = validate_connection(self._snapshot, source, target)
        if isinstance(verdict, Reject):
            raise verdict.error
        for edge in self._snapshot.edges:
            if edge.source == verdict.source and edge.target == verdict.target:
                logger.debug("connect: %s -> %s already exists as %s", source, target, edge.id)
                return edge
        edge = Edge(
            id=self.next_edge_id(verdict.source, verdict.target),
            source=verdict.source,
            target=verdict.target,
            style=EdgeStyle(**EDGE_STYLE),
        )
        self._snapshot = GraphSnapshot(
            nodes=self._snapshot.nodes,
            edges=self._snapshot.edges + (edge,),
        )
        return edge

    def move_node(self, node_id: NodeId, x: float, y: float) -> GraphSnapshot:
        """Reposition one node. Unknown ids are a no-op."""
        if self._snapshot.get_node(node_id) is None:
            return self._snapshot
        self._snapshot = GraphSnapshot(
            nodes=tuple(n.moved_to(x, y) if n.id == node_id else n for n in self._snapshot.nodes),
            edges=self._snapshot.edges,
        )
        return self._snapshot

    def set_nodes(self, nodes: Sequence[AnyNode]) -> GraphSnapshot:
        """Swap the node sequence, keeping edges. Used to apply layout results."""
        self._snapshot = GraphSnapshot(nodes=tuple(nodes), edges=self._snapshot.edges)
        return self._snapshot

    def replace(self, snapshot: GraphSnapshot) -> GraphSnapshot:
        """Wholesale substitution for load, import, undo and redo."""
        self._snapshot = snapshot
        return self._snapshot

    # --- Helpers ---

    def next_edge_id(self, source: NodeId, target: NodeId) -> EdgeId:
        """``xy-edge__{source}-{target}``, suffixed when that id is taken."""
        base = f"xy-edge__{source}-{target}"
        taken = set(self._snapshot.edge_ids())
        if base not in taken:
            return base
        n = 1
        while f"{base}-{n}" in taken:
            n += 1
        return f"{base}-{n}"

# --- Default Workflow ---

def default_workflow() -> GraphSnapshot:
    """Five catalog providers in the right column, the US and England on the left, no edges."""
    ys = {"Google Pay": 100.0, "Stripe": 200.0, "Paypal": 300.0, "Apple Pay": 400.0, "Amazon Pay": 400.0}
    order = ["Google Pay", "Stripe", "Paypal", "Apple Pay", "Amazon Pay"]
    icons = {p["name"]: p["icon"] for p in PAYMENT_PROVIDERS}
    providers = [
        make_payment_provider(name, icons[name], 400.0, ys[name], node_id=str(i + 1))
        for i, name in enumerate(order)
    ]
    countries = [
        make_country("us", "United States", "$", 50.0, 200.0),
        make_country("gb", "England", "£", 50.0, 300.0, node_id="uk"),
    ]
    return GraphSnapshot(nodes=tuple(providers + countries), edges=())
