import pytest  # type: ignore[reportMissingImports]

from paymentflow.builder.constants import MSG_INVALID_CONNECTION, MSG_TOPOLOGY_VIOLATION
from paymentflow.builder.graph_validator import Accept, GraphValidator, Reject, validate_connection
from paymentflow.builder.types import (
    Edge,
    GenericNode,
    GraphSnapshot,
    make_country,
    make_payment_initializer,
    make_payment_provider,
)
from paymentflow.exceptions import InvalidConnection, TopologyViolation


def make_snapshot(edges=()):
    nodes = (
        make_payment_initializer(),
        make_payment_provider("Stripe", "stripe.jpg", 400, 100),
        make_payment_provider("Paypal", "paypal.png", 400, 200),
        make_country("us", "United States", "$", 50, 200),
    )
    return GraphSnapshot(nodes=nodes, edges=tuple(edges))


def test_initializer_to_provider_is_accepted():
    verdict = validate_connection(make_snapshot(), "payment-initialized", "Stripe")
    assert verdict == Accept(source="payment-initialized", target="Stripe")


def test_country_to_provider_is_accepted():
    assert isinstance(validate_connection(make_snapshot(), "us", "Paypal"), Accept)


def test_provider_to_provider_is_accepted():
    assert isinstance(validate_connection(make_snapshot(), "Stripe", "Paypal"), Accept)


def test_generic_node_connects_to_anything():
    note = GenericNode(id="note", data={"label": "Remember fees"}, position={"x": 0, "y": 0})
    snapshot = GraphSnapshot(nodes=make_snapshot().nodes + (note,))
    assert isinstance(validate_connection(snapshot, "note", "Stripe"), Accept)
    assert isinstance(validate_connection(snapshot, "payment-initialized", "note"), Accept)


@pytest.mark.parametrize("source,target", [
    ("payment-initialized", "us"),
    ("us", "payment-initialized"),
])
def test_initializer_country_is_topology_violation(source, target):
    verdict = validate_connection(make_snapshot(), source, target)
    assert isinstance(verdict, Reject)
    assert isinstance(verdict.error, TopologyViolation)
    assert verdict.error.message == MSG_TOPOLOGY_VIOLATION


@pytest.mark.parametrize("source,target", [
    ("Stripe", "Stripe"),
    ("Stripe", "missing"),
    ("missing", "Stripe"),
    (None, "Stripe"),
    ("Stripe", None),
])
def test_invalid_connection(source, target):
    verdict = validate_connection(make_snapshot(), source, target)
    assert isinstance(verdict, Reject)
    assert isinstance(verdict.error, InvalidConnection)
    assert verdict.error.message == MSG_INVALID_CONNECTION


def test_validate_connection_does_not_touch_snapshot():
    snapshot = make_snapshot()
    validate_connection(snapshot, "payment-initialized", "us")
    assert snapshot.edges == ()


def test_clean_graph_has_no_issues():
    snapshot = make_snapshot([Edge(id="e1", source="payment-initialized", target="Stripe")])
    validator = GraphValidator(snapshot)
    assert validator.issues() == []
    assert validator.is_valid()


def test_dangling_and_self_loop_edges_reported():
    snapshot = make_snapshot([
        Edge(id="e1", source="Stripe", target="ghost"),
        Edge(id="e2", source="Paypal", target="Paypal"),
    ])
    issues = GraphValidator(snapshot).issues()
    assert any("missing target 'ghost'" in i for i in issues)
    assert any("self-loop" in i for i in issues)


def test_initializer_country_edge_reported():
    snapshot = make_snapshot([Edge(id="e1", source="us", target="payment-initialized")])
    issues = GraphValidator(snapshot).issues()
    assert issues == ["Edge 'e1' connects the payment initializer to a country"]


def test_duplicate_ids_and_second_initializer_reported():
    base = make_snapshot([Edge(id="e1", source="Stripe", target="Paypal"), Edge(id="e1", source="us", target="Stripe")])
    snapshot = GraphSnapshot(nodes=base.nodes + (make_payment_initializer(),), edges=base.edges)
    issues = GraphValidator(snapshot).issues()
    assert "Duplicate node id 'payment-initialized'" in issues
    assert "Duplicate edge id 'e1'" in issues
    assert any(i.startswith("More than one payment initializer") for i in issues)
