import pytest
from fastapi.testclient import TestClient

from paymentflow.builder.editing_engine import EditingEngine
from paymentflow.builder.storage import MemoryStorage
from paymentflow.server import create_app


@pytest.fixture
def client(engine):
    return TestClient(create_app(engine))


def node_ids(body):
    return [n["id"] for n in body["graph"]["nodes"]]


def test_get_graph(client):
    body = client.get("/graph").json()
    assert node_ids(body) == ["1", "2", "3", "4", "5", "us", "uk"]
    assert body["can_undo"] is False
    assert body["notifications"] == {"error": None, "success": None}


def test_add_nodes(client):
    assert client.post("/nodes/providers", json={"name": "Adyen", "icon": "adyen.png"}).status_code == 201
    assert client.post("/nodes/countries", json={"code": "fr", "label": "France", "currency": "€"}).status_code == 201
    response = client.post("/nodes/initializer")
    assert response.status_code == 201
    assert node_ids(response.json())[-3:] == ["Adyen", "fr", "payment-initialized"]


def test_duplicate_provider_is_conflict(client):
    response = client.post("/nodes/providers", json={"name": "Stripe"})
    assert response.status_code == 409
    assert response.json()["detail"]["code"] == "paymentflow.duplicate_label"
    assert client.get("/notifications").json()["error"] == "Stripe already added"


def test_empty_provider_name_rejected(client):
    assert client.post("/nodes/providers", json={"name": " "}).status_code == 422


def test_connect_and_topology_violation(client):
    response = client.post("/connect", json={"source": "us", "target": "1"})
    assert response.status_code == 201
    assert response.json()["edge"]["id"] == "xy-edge__us-1"

    client.post("/nodes/initializer", json={"amount": 15})
    response = client.post("/connect", json={"source": "payment-initialized", "target": "uk"})
    assert response.status_code == 422
    assert response.json()["detail"]["error"] == "TopologyViolation"
    assert len(client.get("/graph").json()["graph"]["edges"]) == 1


def test_delete_node(client):
    assert client.delete("/nodes/us").status_code == 200
    assert client.delete("/nodes/us").status_code == 404


def test_canvas_events(client):
    client.post("/events/nodes", json={"changes": [
        {"type": "position", "id": "us", "position": {"x": 1, "y": 2}, "dragging": True},
    ]})
    preview = client.get("/graph").json()
    assert preview["graph"]["nodes"][5]["position"] == {"x": 1, "y": 2}
    assert preview["can_undo"] is False

    body = client.post("/events/nodes", json={"changes": [{"type": "position", "id": "us", "dragging": False}]}).json()
    assert body["changed"] is True
    assert body["can_undo"] is True

    edge_id = client.post("/connect", json={"source": "uk", "target": "2"}).json()["edge"]["id"]
    body = client.post("/events/edges", json={"changes": [{"type": "remove", "id": edge_id}]}).json()
    assert body["graph"]["edges"] == []


def test_malformed_canvas_event_is_unprocessable(client):
    response = client.post("/events/nodes", json={"changes": [
        {"type": "remove", "id": "uk"},
        {"type": "position", "id": "us", "position": {"x": "left", "y": 0}},
    ]})
    assert response.status_code == 422
    assert "uk" in node_ids(client.get("/graph").json())


def test_layout_undo_redo(client):
    client.post("/layout/auto")
    body = client.post("/layout/center", json={"center_x": 500, "center_y": 300}).json()
    assert body["graph"]["nodes"][5]["position"] == {"x": 250, "y": 300}
    assert client.get("/history").json() == {"cursor": 2, "length": 3, "can_undo": True, "can_redo": False}

    assert client.post("/undo").json()["moved"] is True
    assert client.post("/redo").json()["moved"] is True
    assert client.post("/redo").json()["moved"] is False


def test_save_load(client):
    assert client.post("/load").status_code == 404
    assert client.post("/save").json()["notifications"]["success"] == "Workflow saved successfully"
    client.delete("/nodes/us")
    body = client.post("/load").json()
    assert "us" in node_ids(body)


def test_export_import(client):
    response = client.get("/export")
    assert response.headers["content-type"].startswith("application/json")
    assert 'filename="workflow.json"' in response.headers["content-disposition"]

    other = TestClient(create_app(EditingEngine(storage=MemoryStorage())))
    body = other.post("/import", content=response.content).json()
    assert node_ids(body) == ["1", "2", "3", "4", "5", "us", "uk"]
    assert other.post("/import", content=b"not json").status_code == 422


def test_validate_endpoint(client):
    assert client.get("/validate").json() == {"valid": True, "issues": []}
