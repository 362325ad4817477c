import pytest

from paymentflow.builder.constants import EDGE_STYLE, PAYMENT_INITIALIZER_ID
from paymentflow.builder.graph_model import GraphModel, default_workflow
from paymentflow.builder.types import make_country, make_payment_initializer, make_payment_provider
from paymentflow.exceptions import DuplicateLabel, DuplicateNodeId, InvalidConnection, TopologyViolation


@pytest.fixture
def model():
    return GraphModel(default_workflow())


def test_default_workflow_contents():
    snapshot = default_workflow()
    assert [n.id for n in snapshot.nodes] == ["1", "2", "3", "4", "5", "us", "uk"]
    assert [n.label for n in snapshot.nodes[:5]] == ["Google Pay", "Stripe", "Paypal", "Apple Pay", "Amazon Pay"]
    assert snapshot.get_node("uk").data.currency == "£"
    assert snapshot.edges == ()


def test_add_node_appends_and_keeps_previous_snapshot(model):
    before = model.snapshot
    after = model.add_node(make_payment_initializer())
    assert after.nodes[-1].id == PAYMENT_INITIALIZER_ID
    assert len(before.nodes) == 7
    assert len(after.nodes) == 8


def test_add_duplicate_label_rejected(model):
    before = model.snapshot
    with pytest.raises(DuplicateLabel) as exc:
        model.add_node(make_payment_provider("Stripe", "stripe.jpg", 0, 0, node_id="other"))
    assert exc.value.message == "Stripe already added"
    assert model.snapshot is before


def test_add_duplicate_id_rejected(model):
    with pytest.raises(DuplicateNodeId):
        model.add_node(make_country("fr", "France", "€", 0, 0, node_id="us"))


def test_delete_node_cascades_edges(model):
    model.add_node(make_payment_initializer())
    model.connect(PAYMENT_INITIALIZER_ID, "2")
    model.connect("us", "2")
    model.connect("uk", "3")
    snapshot = model.delete_node("2")
    assert "2" not in snapshot.node_ids()
    assert [(e.source, e.target) for e in snapshot.edges] == [("uk", "3")]


def test_delete_unknown_is_noop(model):
    before = model.snapshot
    assert model.delete_node("nope") is before
    assert model.delete_edge("nope") is before
    assert model.move_node("nope", 1, 2) is before


def test_connect_creates_styled_edge(model):
    edge = model.connect("us", "1")
    assert edge.id == "xy-edge__us-1"
    assert edge.style.model_dump() == EDGE_STYLE
    assert model.snapshot.edges == (edge,)


def test_connect_same_pair_returns_existing(model):
    first = model.connect("us", "1")
    snapshot = model.snapshot
    assert model.connect("us", "1") is first
    assert model.snapshot is snapshot


def test_edge_id_suffixed_when_taken(model):
    model.connect("us", "1")
    model.delete_edge("xy-edge__us-1")
    model.connect("us", "1")
    assert model.next_edge_id("us", "1") == "xy-edge__us-1-1"


def test_connect_rejections_leave_graph_unchanged(model):
    model.add_node(make_payment_initializer())
    before = model.snapshot
    with pytest.raises(TopologyViolation):
        model.connect(PAYMENT_INITIALIZER_ID, "us")
    with pytest.raises(InvalidConnection):
        model.connect("1", "1")
    assert model.snapshot is before


def test_move_node(model):
    snapshot = model.move_node("us", 12.5, 40)
    assert snapshot.get_node("us").position.x == 12.5
    assert snapshot.get_node("us").position.y == 40
