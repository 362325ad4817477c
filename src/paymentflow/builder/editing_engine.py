"""
PaymentFlow Editing Engine

The EditingEngine owns the live graph and its undo history and is the only
surface allowed to change either. Every mutating operation runs to completion
before returning: it validates against the current graph, swaps in the new
snapshot, then pushes that snapshot onto history, so the graph on screen is
always ``history.entries[history.cursor]``.

A failed operation leaves graph and history untouched, posts its message to the
transient error slot, and re-raises. Renderer callbacks (``on_connect``,
``on_nodes_change``...) swallow that re-raise and return False instead, since
the rendering layer only needs to re-read state.

Features:
- Add/delete/connect/move with domain rules (unique labels, initializer topology).
- Auto-layout and pan-to-center as single undoable steps.
- Save/load to a key-value slot, export/import of workflow documents.
- Drag previews that never touch history until the drag completes.
- Event hooks (``graph_changed``, ``notification``, ...) for re-rendering.
"""

from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from paymentflow.builder.constants import (
    DEFAULT_STORAGE_SLOT,
    DEFAULT_VIEWPORT_CENTER,
    EXPORT_FILENAME,
    MSG_NO_SAVED_WORKFLOW,
    MSG_WORKFLOW_SAVED,
    PAYMENT_INITIALIZER_DEFAULT_AMOUNT,
    PROVIDER_COLUMN_X,
    PROVIDER_ICONS,
    PROVIDER_ROW_HEIGHT,
)
from paymentflow.builder.graph_model import GraphModel, default_workflow
from paymentflow.builder.history import HistoryStack
from paymentflow.builder.json_graph import (
    RawDocument,
    decode_edge_changes,
    decode_node_changes,
    deserialize_graph,
    encode_graph,
    has_workflow_shape,
    parse_document,
    serialize_graph,
    snapshot_from_document,
)
from paymentflow.builder.layout import DEFAULT_LAYOUT, LayoutConfig, auto_layout, pan_to_center
from paymentflow.builder.notifications import NotificationCenter, NotificationKind
from paymentflow.builder.storage import FileStorage, KeyValueStore, MemoryStorage
from paymentflow.builder.types import (
    AnyNode,
    Edge,
    EdgeId,
    GraphSnapshot,
    NodeId,
    Position,
    PositionChange,
    RemoveChange,
    make_country,
    make_payment_initializer,
    make_payment_provider,
)
from paymentflow.exceptions import NoSavedWorkflow, PaymentFlowError
from paymentflow.utilities.logging import get_logger

logger = get_logger("builder.editing_engine")

DownloadSink = Callable[[str, bytes], None]
EventCallback = Callable[[str, Dict[str, Any]], Any]

# --- Event Bus ---
class EventBus:
    """
    Simple synchronous event bus. A failing subscriber is logged and skipped.
    """
    def __init__(self) -> None:
        self._subscribers: Dict[str, List[EventCallback]] = {}

    def subscribe(self, event_type: str, callback: EventCallback) -> None:
        self._subscribers.setdefault(event_type, []).append(callback)

    def unsubscribe(self, event_type: str, callback: EventCallback) -> None:
        callbacks = self._subscribers.get(event_type, [])
        if callback in callbacks:
            callbacks.remove(callback)

    def publish(self, event_type: str, payload: Dict[str, Any]) -> None:
        for cb in list(self._subscribers.get(event_type, [])):
            try:
                cb(event_type, payload)
            except Exception as e:
                logger.error("EventBus callback error on %s: %s", event_type, e)

class EditingEngine:
    """
    Single-session editor for one payment routing workflow.

    Args:
        initial: Graph to start from; pushed as history entry 0.
        storage: Key-value store for save/load. Defaults to in-memory.
        slot: Storage slot name.
        history_limit: Optional cap on undo entries.
        notifications: Error/success slots. A default center is created if omitted.
        event_bus: Bus for ``graph_changed`` and related events.
        layout_config: Geometry for the layout algorithms.
        viewport_center: Default centre for ``pan_to_center``.
    """

    def __init__(
        self,
        initial: Optional[GraphSnapshot] = None,
        *,
        storage: Optional[KeyValueStore] = None,
        slot: str = DEFAULT_STORAGE_SLOT,
        history_limit: Optional[int] = None,
        notifications: Optional[NotificationCenter] = None,
        event_bus: Optional[EventBus] = None,
        layout_config: LayoutConfig = DEFAULT_LAYOUT,
        viewport_center: Tuple[float, float] = DEFAULT_VIEWPORT_CENTER,
    ) -> None:
        self._storage: KeyValueStore = storage if storage is not None else MemoryStorage()
        self._slot = slot
        self._events = event_bus or EventBus()
        self._notifications = notifications or NotificationCenter()
        self._notifications.on_change = self._on_notification
        self._layout_config = layout_config
        self._viewport_center = viewport_center
        self._graph = GraphModel(initial)
        self._history = HistoryStack(history_limit)
        self._history.push(self._graph.snapshot)
        self._drag_preview: Dict[NodeId, Position] = {}

    @classmethod
    def with_default_workflow(cls, **kwargs: Any) -> "EditingEngine":
        """Start from the stock providers and countries."""
        return cls(default_workflow(), **kwargs)

    @classmethod
    def from_settings(cls, settings: Any, initial: Optional[GraphSnapshot] = None) -> "EditingEngine":
        """Build an engine backed by ``FileStorage`` as configured in ``settings``."""
        return cls(
            initial,
            storage=FileStorage(settings.storage_dir),
            slot=settings.storage_slot,
            history_limit=settings.history_limit,
            notifications=NotificationCenter(ttl=settings.notification_ttl),
            viewport_center=settings.viewport_center,
        )

    # --- State ---

    @property
    def snapshot(self) -> GraphSnapshot:
        return self._graph.snapshot

    @property
    def nodes(self) -> Tuple[AnyNode, ...]:
        return self._graph.snapshot.nodes

    @property
    def edges(self) -> Tuple[Edge, ...]:
        return self._graph.snapshot.edges

    @property
    def history(self) -> HistoryStack:
        return self._history

    @property
    def notifications(self) -> NotificationCenter:
        return self._notifications

    @property
    def events(self) -> EventBus:
        return self._events

    @property
    def storage(self) -> KeyValueStore:
        return self._storage

    def view(self) -> GraphSnapshot:
        """Current graph with in-flight drag positions applied, for rendering."""
        if not self._drag_preview:
            return self._graph.snapshot
        return GraphSnapshot(
            nodes=tuple(
                n.moved_to(self._drag_preview[n.id].x, self._drag_preview[n.id].y)
                if n.id in self._drag_preview else n
                for n in self._graph.snapshot.nodes
            ),
            edges=self._graph.snapshot.edges,
        )

    def can_undo(self) -> bool:
        return self._history.can_undo()

    def can_redo(self) -> bool:
        return self._history.can_redo()

    # --- Node Operations ---

    def add_node(self, node: AnyNode) -> AnyNode:
        """
        Append a node.

        Raises:
            DuplicateLabel: A node with the same label exists.
            DuplicateNodeId: A node with the same id exists.
        """
        with self._reported("add_node"):
            self._commit("add_node", self._graph.add_node(node), node_id=node.id)
        return node

    def add_payment_provider(self, name: str, icon: Optional[str] = None) -> AnyNode:
        """Add a provider from the catalog (or a custom one) below the existing nodes."""
        node = make_payment_provider(
            name,
            icon if icon is not None else PROVIDER_ICONS.get(name),
            PROVIDER_COLUMN_X,
            len(self.nodes) * PROVIDER_ROW_HEIGHT,
        )
        return self.add_node(node)

    def add_country(self, code: str, label: str, currency: str, node_id: Optional[NodeId] = None) -> AnyNode:
        node = make_country(code, label, currency, 50.0, len(self.nodes) * PROVIDER_ROW_HEIGHT, node_id=node_id)
        return self.add_node(node)

    def add_payment_initializer(self, amount: float = PAYMENT_INITIALIZER_DEFAULT_AMOUNT) -> AnyNode:
        return self.add_node(make_payment_initializer(amount))

    def delete_node(self, node_id: NodeId) -> bool:
        """Delete a node and its edges. Returns False when the id is unknown."""
        before = self._graph.snapshot
        after = self._graph.delete_node(node_id)
        if after is before:
            return False
        self._commit("delete_node", after, node_id=node_id)
        return True

    def delete_edge(self, edge_id: EdgeId) -> bool:
        before = self._graph.snapshot
        after = self._graph.delete_edge(edge_id)
        if after is before:
            return False
        self._commit("delete_edge", after, edge_id=edge_id)
        return True

    def move_node(self, node_id: NodeId, x: float, y: float) -> bool:
        """Commit a node position as one history entry."""
        before = self._graph.snapshot
        after = self._graph.move_node(node_id, x, y)
        if after is before:
            self._drag_preview.pop(node_id, None)
            return False
        self._commit("move_node", after, node_id=node_id, x=x, y=y)
        return True

    # --- Edge Operations ---

    def connect(self, source: Optional[NodeId], target: Optional[NodeId]) -> Edge:
        """
        Connect ``source -> target`` through the connection validator.

        Reconnecting an existing pair returns the existing edge and adds no
        history entry.

        Raises:
            TopologyViolation: Initializer/country edge in either direction.
            InvalidConnection: Self-loop or unknown endpoint.
        """
        with self._reported("connect"):
            before = self._graph.snapshot
            edge = self._graph.connect(source, target)
        if self._graph.snapshot is not before:
            self._commit("connect", self._graph.snapshot, edge_id=edge.id, source=edge.source, target=edge.target)
        return edge

    # --- Layout ---

    def auto_layout(self) -> GraphSnapshot:
        """Grid layout; one undoable step."""
        snapshot = self._graph.set_nodes(auto_layout(self.nodes, self._layout_config))
        self._commit("auto_layout", snapshot)
        return snapshot

    def pan_to_center(self, center_x: Optional[float] = None, center_y: Optional[float] = None) -> GraphSnapshot:
        """Re-centre the columns on the viewport; one undoable step."""
        default_x, default_y = self._viewport_center
        cx = default_x if center_x is None else center_x
        cy = default_y if center_y is None else center_y
        snapshot = self._graph.set_nodes(pan_to_center(self.nodes, cx, cy, self._layout_config))
        self._commit("pan_to_center", snapshot, center_x=cx, center_y=cy)
        return snapshot

    # --- History Navigation ---

    def undo(self) -> Optional[GraphSnapshot]:
        """Step back. Returns None at the oldest entry."""
        snapshot = self._history.undo()
        if snapshot is not None:
            self._navigate("undo", snapshot)
        return snapshot

    def redo(self) -> Optional[GraphSnapshot]:
        """Step forward. Returns None at the newest entry."""
        snapshot = self._history.redo()
        if snapshot is not None:
            self._navigate("redo", snapshot)
        return snapshot

    # --- Persistence ---

    def save(self) -> None:
        """Write the current graph to the storage slot and post the success message."""
        self._storage.set(self._slot, serialize_graph(self.snapshot))
        self._notifications.clear_error()
        self._notifications.post_success(MSG_WORKFLOW_SAVED)
        self._events.publish("workflow_saved", {"slot": self._slot})
        logger.info("Workflow saved to slot %s (%d nodes, %d edges)", self._slot, len(self.nodes), len(self.edges))

    def load(self) -> GraphSnapshot:
        """
        Replace the graph with the one stored in the slot.

        Raises:
            NoSavedWorkflow: Slot empty, or its document lacks nodes/edges.
            InvalidWorkflowFile: Slot holds unparseable or undecodable data.
        """
        with self._reported("load"):
            raw = self._storage.get(self._slot)
            if raw is None:
                raise NoSavedWorkflow(MSG_NO_SAVED_WORKFLOW, details={"slot": self._slot})
            data = parse_document(raw)
            if not has_workflow_shape(data):
                raise NoSavedWorkflow(MSG_NO_SAVED_WORKFLOW, details={"slot": self._slot})
            snapshot = snapshot_from_document(data)
        self._commit("load", self._graph.replace(snapshot), slot=self._slot)
        return snapshot

    def export_workflow(self, sink: Optional[DownloadSink] = None) -> bytes:
        """Encode the current graph; hand ``("workflow.json", bytes)`` to ``sink`` if given."""
        payload = encode_graph(self.snapshot)
        if sink is not None:
            sink(EXPORT_FILENAME, payload)
        self._events.publish("workflow_exported", {"filename": EXPORT_FILENAME, "size": len(payload)})
        logger.info("Workflow exported (%d bytes)", len(payload))
        return payload

    def import_workflow(self, raw: RawDocument) -> GraphSnapshot:
        """
        Replace the graph with an imported document.

        Raises:
            InvalidWorkflowFile: On any parse, shape or decode failure.
        """
        with self._reported("import"):
            snapshot = deserialize_graph(raw)
        self._commit("import", self._graph.replace(snapshot))
        return snapshot

    # --- Rendering Collaborator Callbacks ---

    def on_connect(self, source: Optional[NodeId], target: Optional[NodeId]) -> bool:
        try:
            self.connect(source, target)
        except PaymentFlowError:
            return False
        return True

    def on_delete_request(self, node_id: NodeId) -> bool:
        return self.delete_node(node_id)

    def on_nodes_change(self, changes: Sequence[Any]) -> bool:
        """
        Fold canvas node changes into the graph.

        ``position`` changes with ``dragging`` true only move the drag preview.
        A position change with ``dragging`` false (or absent) commits one move.
        ``remove`` deletes the node. Selection and dimension changes are ignored.
        The batch is decoded as a whole first: one malformed record rejects it
        and nothing in it is applied.
        """
        try:
            with self._reported("nodes_change"):
                decoded = decode_node_changes(changes)
        except PaymentFlowError:
            return False
        changed = False
        for change in decoded:
            if isinstance(change, PositionChange):
                changed = self._fold_position(change) or changed
            elif isinstance(change, RemoveChange):
                changed = self.delete_node(change.id) or changed
        return changed

    def on_edges_change(self, changes: Sequence[Any]) -> bool:
        """Apply ``remove`` edge changes, one history entry each; ignore the rest."""
        try:
            with self._reported("edges_change"):
                decoded = decode_edge_changes(changes)
        except PaymentFlowError:
            return False
        changed = False
        for change in decoded:
            if isinstance(change, RemoveChange):
                changed = self.delete_edge(change.id) or changed
        return changed

    def _fold_position(self, change: PositionChange) -> bool:
        node_id = change.id
        if self._graph.get_node(node_id) is None:
            return False
        position = change.position or self._drag_preview.get(node_id)
        if change.dragging:
            if position is None:
                return False
            self._drag_preview[node_id] = position
            self._events.publish("drag_preview", {"node_id": node_id, "x": position.x, "y": position.y})
            return True
        if position is None:
            return False
        return self.move_node(node_id, position.x, position.y)

    # --- Event Hooks ---

    def subscribe_to_event(self, event_type: str, callback: EventCallback) -> None:
        self._events.subscribe(event_type, callback)

    def on_graph_changed(self, callback: EventCallback) -> None:
        self.subscribe_to_event("graph_changed", callback)

    def on_notification(self, callback: EventCallback) -> None:
        self.subscribe_to_event("notification", callback)

    # --- Internals ---

    def _commit(self, action: str, snapshot: GraphSnapshot, **details: Any) -> None:
        self._drag_preview.clear()
        self._history.push(snapshot)
        self._notifications.clear_error()
        self._events.publish("graph_changed", {"action": action, "snapshot": snapshot, **details})
        logger.info("%s: %d nodes, %d edges (history %d/%d) %s",
                    action, len(snapshot.nodes), len(snapshot.edges),
                    self._history.cursor + 1, len(self._history), details or "")

    def _navigate(self, action: str, snapshot: GraphSnapshot) -> None:
        self._drag_preview.clear()
        self._graph.replace(snapshot)
        self._events.publish("graph_changed", {"action": action, "snapshot": snapshot})
        logger.info("%s: history %d/%d", action, self._history.cursor + 1, len(self._history))

    @contextmanager
    def _reported(self, action: str) -> Iterator[None]:
        try:
            yield
        except PaymentFlowError as e:
            self._notifications.post_error(e.message)
            self._events.publish("operation_failed", {"action": action, "error": e.to_dict()})
            logger.warning("%s failed: %s", action, e.message)
            raise

    def _on_notification(self, kind: NotificationKind, message: Optional[str]) -> None:
        self._events.publish("notification", {"kind": kind, "message": message})
