"""
Layout engine for payment workflow graphs.

Two deterministic position-assignment algorithms over the node sequence:

- ``auto_layout``: initializer at a fixed anchor, countries in a left column
  below it, providers in a right column offset from the anchor.
- ``pan_to_center``: the same three columns placed around a viewport centre.

Both are O(n), keep node ids, kinds, data and order, and only replace
positions. Nodes outside the three classes keep their position. When more than
one initializer is present only the first is placed; the rest are left alone.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

from paymentflow.builder.constants import (
    AUTO_LAYOUT_ANCHOR,
    AUTO_LAYOUT_COUNTRY_Y,
    AUTO_LAYOUT_GAP,
    AUTO_LAYOUT_PROVIDER_X,
    CENTER_COLUMN_GAP,
    CENTER_COLUMN_WIDTH,
    LAYOUT_ROW_HEIGHT,
    NodeKind,
)
from paymentflow.builder.types import AnyNode, NodeId

# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LayoutConfig:
    """Geometry shared by both layout algorithms."""
    row_height: float = LAYOUT_ROW_HEIGHT
    anchor_x: float = AUTO_LAYOUT_ANCHOR[0]
    anchor_y: float = AUTO_LAYOUT_ANCHOR[1]
    country_top: float = AUTO_LAYOUT_COUNTRY_Y
    provider_x: float = AUTO_LAYOUT_PROVIDER_X
    gap: float = AUTO_LAYOUT_GAP
    column_width: float = CENTER_COLUMN_WIDTH
    column_gap: float = CENTER_COLUMN_GAP

DEFAULT_LAYOUT = LayoutConfig()

# ---------------------------------------------------------------------------
# Partition
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Partition:
    """Index of each node within its layout class, in node-sequence order."""
    initializer: Optional[NodeId]
    countries: Dict[NodeId, int]
    providers: Dict[NodeId, int]

def partition_nodes(nodes: Sequence[AnyNode]) -> Partition:
    initializer: Optional[NodeId] = None
    countries: Dict[NodeId, int] = {}
    providers: Dict[NodeId, int] = {}
    for node in nodes:
        if node.kind is NodeKind.PAYMENT_INITIALIZER:
            if initializer is None:
                initializer = node.id
        elif node.kind is NodeKind.COUNTRY:
            countries.setdefault(node.id, len(countries))
        elif node.kind is NodeKind.PAYMENT_PROVIDER:
            providers.setdefault(node.id, len(providers))
    return Partition(initializer=initializer, countries=countries, providers=providers)

def _apply(nodes: Sequence[AnyNode], positions: Dict[NodeId, Tuple[float, float]]) -> Tuple[AnyNode, ...]:
    placed: List[AnyNode] = []
    for node in nodes:
        if node.id in positions:
            x, y = positions[node.id]
            placed.append(node.moved_to(x, y))
        else:
            placed.append(node)
    return tuple(placed)

# ---------------------------------------------------------------------------
# Algorithms
# ---------------------------------------------------------------------------

def auto_layout(nodes: Sequence[AnyNode], config: LayoutConfig = DEFAULT_LAYOUT) -> Tuple[AnyNode, ...]:
    """
    Arrange nodes on a fixed grid.

    Args:
        nodes: Current node sequence.
        config: Layout geometry.

    Returns:
        New node sequence in the same order with updated positions.
    """
    part = partition_nodes(nodes)
    positions: Dict[NodeId, Tuple[float, float]] = {}
    if part.initializer is not None:
        positions[part.initializer] = (config.anchor_x, config.anchor_y)
    for node_id, index in part.countries.items():
        positions[node_id] = (config.anchor_x, config.country_top + index * config.row_height)
    for node_id, index in part.providers.items():
        positions[node_id] = (config.provider_x + config.gap, config.anchor_y + index * config.row_height)
    return _apply(nodes, positions)

def pan_to_center(
    nodes: Sequence[AnyNode],
    center_x: float,
    center_y: float,
    config: LayoutConfig = DEFAULT_LAYOUT,
) -> Tuple[AnyNode, ...]:
    """
    Arrange nodes in two columns around ``(center_x, center_y)``.

    The initializer heads the left column with the countries stacked beneath
    it; providers form the right column. Each column is vertically centred on
    ``center_y`` regardless of where the nodes were before.
    """
    part = partition_nodes(nodes)
    left_x = center_x - config.column_width - config.column_gap / 2
    right_x = center_x + config.column_gap / 2
    left_top = center_y - (len(part.countries) * config.row_height) / 2
    right_top = center_y - (len(part.providers) * config.row_height) / 2

    positions: Dict[NodeId, Tuple[float, float]] = {}
    if part.initializer is not None:
        positions[part.initializer] = (left_x, left_top)
    for node_id, index in part.countries.items():
        positions[node_id] = (left_x, left_top + (index + 1) * config.row_height)
    for node_id, index in part.providers.items():
        positions[node_id] = (right_x, right_top + index * config.row_height)
    return _apply(nodes, positions)
