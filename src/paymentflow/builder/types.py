"""
Centralized type definitions for the PaymentFlow builder.

Nodes are a tagged variant over ``type``: payment providers, countries, and the
payment initializer each carry their own typed ``data`` bag. The variants are
combined into a pydantic discriminated union so the validator and the layout
engine can switch on the kind exhaustively instead of comparing labels.
A node whose ``type`` is missing or unknown decodes as a ``GenericNode``: it
round-trips untouched and belongs to no layout class.

Every model here is frozen. A ``GraphSnapshot`` can therefore be shared between
the live graph and the history stack without a later mutation leaking into a
stored entry. Keys the canvas adds that we do not model (``sourceHandle``,
``selected``, ``width``...) are kept as extras so documents round-trip intact.
"""

from typing import Annotated, Any, ClassVar, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field, Tag, TypeAdapter, model_serializer

from paymentflow.builder.constants import (
    NodeKind,
    PAYMENT_INITIALIZER_DEFAULT_AMOUNT,
    PAYMENT_INITIALIZER_ID,
    PAYMENT_INITIALIZER_LABEL,
    PAYMENT_INITIALIZER_POSITION,
)

# --- Core Type Aliases ---
NodeId = str
EdgeId = str

# Numbers keep the JSON type they arrived with: 400 stays 400, 400.5 stays 400.5.
Number = Union[int, float]

class _DocumentModel(BaseModel):
    """Base for document models. Optional fields listed in ``_omit_when_none`` are left out of dumps while None."""
    _omit_when_none: ClassVar[Tuple[str, ...]] = ()

    @model_serializer(mode="wrap")
    def _drop_absent_optionals(self, handler: Any) -> Dict[str, Any]:
        dumped = handler(self)
        for name in self._omit_when_none:
            if getattr(self, name, None) is None:
                dumped.pop(name, None)
        return dumped

# --- Geometry ---

class Position(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: Number
    y: Number

# --- Node Data Bags ---

class NodeData(_DocumentModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    label: str

class PaymentProviderData(NodeData):
    _omit_when_none: ClassVar[Tuple[str, ...]] = ("icon",)

    icon: Optional[str] = None

class CountryData(NodeData):
    country: str
    currency: str

class PaymentInitializerData(NodeData):
    label: str = PAYMENT_INITIALIZER_LABEL
    amount: Number = 0

# --- Node Variants ---

class _BaseNode(_DocumentModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    id: NodeId
    position: Position

    @property
    def kind(self) -> Optional[NodeKind]:
        return NodeKind(self.type)  # type: ignore[attr-defined]

    @property
    def label(self) -> str:
        return self.data.label  # type: ignore[attr-defined]

    def moved_to(self, x: float, y: float) -> "AnyNode":
        """Return a copy of this node at ``(x, y)``."""
        return self.model_copy(update={"position": Position(x=x, y=y)})  # type: ignore[return-value]

class PaymentProviderNode(_BaseNode):
    type: Literal["paymentProvider"] = "paymentProvider"
    data: PaymentProviderData

class CountryNode(_BaseNode):
    type: Literal["countryNode"] = "countryNode"
    data: CountryData

class PaymentInitializerNode(_BaseNode):
    type: Literal["paymentInitializer"] = "paymentInitializer"
    data: PaymentInitializerData = Field(default_factory=PaymentInitializerData)

class GenericNode(_BaseNode):
    """
    A node of no recognized kind: ``type`` missing or unknown to this editor.
    It is kept as-is, ignored by layout and never an initializer or a country.
    """
    _omit_when_none: ClassVar[Tuple[str, ...]] = ("type",)

    type: Optional[str] = None
    data: NodeData

    @property
    def kind(self) -> Optional[NodeKind]:
        return None

AnyNode = Union[PaymentProviderNode, CountryNode, PaymentInitializerNode, GenericNode]

_KNOWN_TAGS = frozenset(kind.value for kind in NodeKind)
_GENERIC_TAG = "generic"

def _node_tag(value: Any) -> str:
    if isinstance(value, GenericNode):
        return _GENERIC_TAG
    tag = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return tag if isinstance(tag, str) and tag in _KNOWN_TAGS else _GENERIC_TAG

Node = Annotated[
    Union[
        Annotated[PaymentProviderNode, Tag(NodeKind.PAYMENT_PROVIDER.value)],
        Annotated[CountryNode, Tag(NodeKind.COUNTRY.value)],
        Annotated[PaymentInitializerNode, Tag(NodeKind.PAYMENT_INITIALIZER.value)],
        Annotated[GenericNode, Tag(_GENERIC_TAG)],
    ],
    Discriminator(_node_tag),
]


# --- Edges ---

class EdgeStyle(_DocumentModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    stroke: str = "#000"
    strokeDasharray: str = "5,5"
    strokeDashoffset: Number = 0

class Edge(_DocumentModel):
    model_config = ConfigDict(frozen=True, extra="allow")
    _omit_when_none: ClassVar[Tuple[str, ...]] = ("style",)

    id: EdgeId
    source: NodeId
    target: NodeId
    style: Optional[EdgeStyle] = None

    def touches(self, node_id: NodeId) -> bool:
        return self.source == node_id or self.target == node_id

# --- Snapshot ---

class GraphSnapshot(BaseModel):
    """
    Immutable (nodes, edges) pair: the unit stored in history and the unit serialized.
    Node and edge order is significant and preserved.
    """
    model_config = ConfigDict(frozen=True)

    nodes: Tuple[Node, ...] = ()
    edges: Tuple[Edge, ...] = ()

    def get_node(self, node_id: NodeId) -> Optional[AnyNode]:
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def node_ids(self) -> List[NodeId]:
        return [node.id for node in self.nodes]

    def edge_ids(self) -> List[EdgeId]:
        return [edge.id for edge in self.edges]

    def to_document(self) -> Dict[str, list]:
        """Plain JSON-ready ``{"nodes": [...], "edges": [...]}`` mapping."""
        return self.model_dump(mode="json")

# --- Node Factories ---

def make_payment_provider(name: str, icon: Optional[str], x: float, y: float, node_id: Optional[NodeId] = None) -> PaymentProviderNode:
    return PaymentProviderNode(
        id=node_id or name,
        data=PaymentProviderData(label=name, icon=icon),
        position=Position(x=x, y=y),
    )

def make_country(code: str, label: str, currency: str, x: float, y: float, node_id: Optional[NodeId] = None) -> CountryNode:
    return CountryNode(
        id=node_id or code,
        data=CountryData(label=label, country=code, currency=currency),
        position=Position(x=x, y=y),
    )

def make_payment_initializer(amount: float = PAYMENT_INITIALIZER_DEFAULT_AMOUNT) -> PaymentInitializerNode:
    x, y = PAYMENT_INITIALIZER_POSITION
    return PaymentInitializerNode(
        id=PAYMENT_INITIALIZER_ID,
        data=PaymentInitializerData(amount=amount),
        position=Position(x=x, y=y),
    )

# --- Canvas Changes ---
# Change records the rendering layer sends for nodes and edges. ``position``
# and ``remove`` are acted on; every other type (select, dimensions...) is
# view state and only needs to be well-formed.

class PositionChange(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    type: Literal["position"] = "position"
    id: NodeId
    position: Optional[Position] = None
    dragging: Optional[bool] = None

class RemoveChange(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    type: Literal["remove"] = "remove"
    id: str

class ViewChange(BaseModel):
    model_config = ConfigDict(frozen=True, extra="allow")

    type: str
    id: Optional[str] = None

def _change_tag(value: Any) -> str:
    tag = value.get("type") if isinstance(value, dict) else getattr(value, "type", None)
    return tag if tag in ("position", "remove") else "view"

NodeChange = Annotated[
    Union[
        Annotated[PositionChange, Tag("position")],
        Annotated[RemoveChange, Tag("remove")],
        Annotated[ViewChange, Tag("view")],
    ],
    Discriminator(_change_tag),
]

# Edges have no position; a position record for an edge is view state.
EdgeChange = Annotated[
    Union[
        Annotated[RemoveChange, Tag("remove")],
        Annotated[ViewChange, Tag("view")],
    ],
    Discriminator(lambda value: "remove" if _change_tag(value) == "remove" else "view"),
]

node_changes_adapter: TypeAdapter = TypeAdapter(List[NodeChange])
edge_changes_adapter: TypeAdapter = TypeAdapter(List[EdgeChange])
