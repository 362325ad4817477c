import json

import pytest

from paymentflow.builder.graph_model import GraphModel, default_workflow
from paymentflow.builder.json_graph import (
    deserialize_graph,
    encode_graph,
    load_graph_from_file,
    save_graph_to_file,
    serialize_graph,
)
from paymentflow.builder.types import GenericNode, PaymentInitializerNode, make_payment_initializer
from paymentflow.exceptions import InvalidWorkflowFile


@pytest.fixture
def wired_snapshot():
    model = GraphModel(default_workflow())
    model.add_node(make_payment_initializer(25))
    model.connect("payment-initialized", "1")
    model.connect("us", "2")
    return model.snapshot


def test_round_trip_preserves_snapshot(wired_snapshot):
    assert deserialize_graph(serialize_graph(wired_snapshot)) == wired_snapshot
    assert deserialize_graph(encode_graph(wired_snapshot)) == wired_snapshot


def test_document_shape(wired_snapshot):
    doc = json.loads(serialize_graph(wired_snapshot))
    assert set(doc) == {"nodes", "edges"}
    assert doc["nodes"][-1] == {
        "id": "payment-initialized",
        "type": "paymentInitializer",
        "data": {"label": "Payment Initialized", "amount": 25},
        "position": {"x": 600, "y": 150},
    }
    assert doc["edges"][0]["id"] == "xy-edge__payment-initialized-1"
    assert doc["edges"][0]["style"]["strokeDasharray"] == "5,5"


def test_unknown_fields_survive_round_trip():
    raw = json.dumps({
        "nodes": [{
            "id": "1", "type": "paymentProvider",
            "data": {"label": "Stripe", "icon": "stripe.jpg", "tier": "gold"},
            "position": {"x": 1, "y": 2}, "width": 180, "selected": False,
        }],
        "edges": [],
    })
    doc = json.loads(serialize_graph(deserialize_graph(raw)))
    assert doc["nodes"][0]["width"] == 180
    assert doc["nodes"][0]["selected"] is False
    assert doc["nodes"][0]["data"]["tier"] == "gold"


def test_legacy_initializer_upgraded():
    raw = json.dumps({
        "nodes": [{
            "id": "payment-initialized", "type": "paymentProvider",
            "data": {"label": "Payment Initialized", "amount": 10},
            "position": {"x": 600, "y": 150},
        }],
        "edges": [],
    })
    node = deserialize_graph(raw).nodes[0]
    assert isinstance(node, PaymentInitializerNode)
    assert node.data.amount == 10


def test_editor_document_reexported_unchanged():
    original = {
        "nodes": [
            {"id": "1", "type": "paymentProvider", "data": {"label": "Stripe", "icon": "stripe.jpg"},
             "position": {"x": 400, "y": 100}},
            {"id": "Adyen", "type": "paymentProvider", "data": {"label": "Adyen"},
             "position": {"x": 400.5, "y": 200}},
            {"id": "us", "type": "countryNode", "data": {"label": "United States", "country": "us", "currency": "$"},
             "position": {"x": 50, "y": 100}},
        ],
        "edges": [{"id": "xy-edge__us-1", "source": "us", "target": "1"}],
    }
    doc = json.loads(serialize_graph(deserialize_graph(json.dumps(original))))
    assert doc == original
    assert "style" not in doc["edges"][0]
    assert "icon" not in doc["nodes"][1]["data"]
    assert isinstance(doc["nodes"][0]["position"]["x"], int)


def test_untyped_and_unknown_nodes_kept_as_generic():
    original = {
        "nodes": [
            {"id": "note", "data": {"label": "Remember fees"}, "position": {"x": 0, "y": 0}},
            {"id": "hook", "type": "webhook", "data": {"label": "Notify", "url": "https://example.test"},
             "position": {"x": 10, "y": 20}},
        ],
        "edges": [{"id": "xy-edge__note-hook", "source": "note", "target": "hook"}],
    }
    snapshot = deserialize_graph(json.dumps(original))
    assert all(isinstance(node, GenericNode) for node in snapshot.nodes)
    assert snapshot.get_node("note").kind is None
    assert snapshot.get_node("hook").type == "webhook"
    assert json.loads(serialize_graph(snapshot)) == original


@pytest.mark.parametrize("raw", [
    "not json",
    b"\xff\xfe",
    "[]",
    '{"nodes": []}',
    '{"edges": []}',
    '{"nodes": null, "edges": []}',
    '{"nodes": [{"id": "x", "type": "countryNode", "position": {"x": 0, "y": 0}, "data": {"label": "x"}}], "edges": []}',
    '{"nodes": [{"id": "x", "position": {"x": 0, "y": 0}, "data": {}}], "edges": []}',
    '{"nodes": [], "edges": [{"id": "e"}]}',
])
def test_invalid_documents_rejected(raw):
    with pytest.raises(InvalidWorkflowFile):
        deserialize_graph(raw)


def test_file_round_trip(tmp_path, wired_snapshot):
    path = tmp_path / "nested" / "workflow.json"
    save_graph_to_file(wired_snapshot, str(path))
    assert load_graph_from_file(str(path)) == wired_snapshot
