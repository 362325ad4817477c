"""
PaymentFlow HTTP API

This FastAPI server exposes one EditingEngine session over HTTP so a canvas
front end can drive it: node and edge operations, renderer change events,
layout, undo/redo, save/load and export/import.

- Request bodies are Pydantic models, documented for OpenAPI.
- Engine errors map onto HTTP status codes with ``to_dict()`` as the detail.
- Every successful call returns the resulting graph so the client can re-render.
"""

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, Field, field_validator

from paymentflow.builder.constants import EXPORT_FILENAME, EXPORT_MEDIA_TYPE, PAYMENT_INITIALIZER_DEFAULT_AMOUNT
from paymentflow.builder.editing_engine import EditingEngine
from paymentflow.builder.graph_validator import GraphValidator
from paymentflow.builder.types import EdgeChange, NodeChange
from paymentflow.exceptions import (
    ConflictError,
    InvalidCanvasChange,
    InvalidWorkflowFile,
    NoSavedWorkflow,
    PaymentFlowError,
    ValidationRejected,
)
from paymentflow.utilities.logging import get_logger

logger = get_logger("server")

# --- Pydantic Models ---

class ProviderRequest(BaseModel):
    name: str = Field(..., description="Provider name, e.g. 'Stripe'")
    icon: Optional[str] = Field(default=None, description="Icon file; catalog icon used when omitted")

    @field_validator("name")
    @classmethod
    def name_must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Provider name must not be empty")
        return v

class CountryRequest(BaseModel):
    code: str = Field(..., description="ISO country code, e.g. 'us'")
    label: str = Field(..., description="Display name")
    currency: str = Field(..., description="Currency symbol")
    id: Optional[str] = Field(default=None, description="Node id; defaults to the country code")

    @field_validator("code", "label")
    @classmethod
    def must_not_be_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Value must not be empty")
        return v

class InitializerRequest(BaseModel):
    amount: float = Field(default=PAYMENT_INITIALIZER_DEFAULT_AMOUNT, description="Initial payment amount")

class ConnectRequest(BaseModel):
    source: Optional[str] = Field(default=None, description="Source node id")
    target: Optional[str] = Field(default=None, description="Target node id")

class NodeChangesRequest(BaseModel):
    changes: List[NodeChange] = Field(..., description="Canvas node change records")

class EdgeChangesRequest(BaseModel):
    changes: List[EdgeChange] = Field(..., description="Canvas edge change records")

class CenterRequest(BaseModel):
    center_x: Optional[float] = Field(default=None, description="Viewport centre x; configured default if omitted")
    center_y: Optional[float] = Field(default=None, description="Viewport centre y; configured default if omitted")

# --- Error Mapping ---

def status_for(error: PaymentFlowError) -> int:
    if isinstance(error, ConflictError):
        return status.HTTP_409_CONFLICT
    if isinstance(error, NoSavedWorkflow):
        return status.HTTP_404_NOT_FOUND
    if isinstance(error, (ValidationRejected, InvalidWorkflowFile, InvalidCanvasChange)):
        return 422
    return status.HTTP_500_INTERNAL_SERVER_ERROR

# --- App Factory ---

def create_app(engine: Optional[EditingEngine] = None) -> FastAPI:
    """
    Build the API around ``engine``.

    Args:
        engine: Session to serve. A default-workflow engine configured from
            the environment is created when omitted.
    """
    if engine is None:
        from paymentflow.settings import get_settings
        from paymentflow.builder.graph_model import default_workflow
        engine = EditingEngine.from_settings(get_settings(), default_workflow())

    app = FastAPI(
        title="PaymentFlow",
        version="0.1.0",
        description="Editing API for payment routing workflow graphs.",
        openapi_tags=[
            {"name": "Graph", "description": "Current graph, history and notifications."},
            {"name": "Node Operations", "description": "Add and delete nodes."},
            {"name": "Edge Operations", "description": "Connect nodes."},
            {"name": "Canvas Events", "description": "Change records from the rendering layer."},
            {"name": "Layout", "description": "Auto layout and pan to center."},
            {"name": "History", "description": "Undo and redo."},
            {"name": "Persistence", "description": "Save, load, export and import."},
        ],
    )
    app.state.engine = engine

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(PaymentFlowError)
    async def paymentflow_error_handler(request: Request, exc: PaymentFlowError) -> JSONResponse:
        code = status_for(exc)
        logger.warning("%s %s -> %d %s", request.method, request.url.path, code, exc.code)
        return JSONResponse(status_code=code, content={"detail": exc.to_dict()})

    def graph_response() -> Dict[str, Any]:
        return {
            "graph": engine.view().to_document(),
            "can_undo": engine.can_undo(),
            "can_redo": engine.can_redo(),
            "notifications": engine.notifications.snapshot(),
        }

    # --- Graph ---

    @app.get("/graph", tags=["Graph"])
    def get_graph() -> Dict[str, Any]:
        return graph_response()

    @app.get("/notifications", tags=["Graph"])
    def get_notifications() -> Dict[str, Optional[str]]:
        return engine.notifications.snapshot()

    @app.get("/history", tags=["Graph"])
    def get_history() -> Dict[str, Any]:
        return {
            "cursor": engine.history.cursor,
            "length": len(engine.history),
            "can_undo": engine.can_undo(),
            "can_redo": engine.can_redo(),
        }

    @app.get("/validate", tags=["Graph"])
    def validate_graph() -> Dict[str, Any]:
        issues = GraphValidator(engine.snapshot).issues()
        return {"valid": not issues, "issues": issues}

    # --- Node Operations ---

    @app.post("/nodes/providers", status_code=status.HTTP_201_CREATED, tags=["Node Operations"])
    def add_provider(req: ProviderRequest) -> Dict[str, Any]:
        engine.add_payment_provider(req.name, req.icon)
        return graph_response()

    @app.post("/nodes/countries", status_code=status.HTTP_201_CREATED, tags=["Node Operations"])
    def add_country(req: CountryRequest) -> Dict[str, Any]:
        engine.add_country(req.code, req.label, req.currency, node_id=req.id)
        return graph_response()

    @app.post("/nodes/initializer", status_code=status.HTTP_201_CREATED, tags=["Node Operations"])
    def add_initializer(req: Optional[InitializerRequest] = None) -> Dict[str, Any]:
        req = req or InitializerRequest()
        engine.add_payment_initializer(req.amount)
        return graph_response()

    @app.delete("/nodes/{node_id}", tags=["Node Operations"])
    def delete_node(node_id: str) -> Dict[str, Any]:
        if not engine.delete_node(node_id):
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Node not found: {node_id}")
        return graph_response()

    # --- Edge Operations ---

    @app.post("/connect", status_code=status.HTTP_201_CREATED, tags=["Edge Operations"])
    def connect(req: ConnectRequest) -> Dict[str, Any]:
        edge = engine.connect(req.source, req.target)
        return {"edge": edge.model_dump(mode="json"), **graph_response()}

    # --- Canvas Events ---

    @app.post("/events/nodes", tags=["Canvas Events"])
    def nodes_changed(req: NodeChangesRequest) -> Dict[str, Any]:
        return {"changed": engine.on_nodes_change(req.changes), **graph_response()}

    @app.post("/events/edges", tags=["Canvas Events"])
    def edges_changed(req: EdgeChangesRequest) -> Dict[str, Any]:
        return {"changed": engine.on_edges_change(req.changes), **graph_response()}

    # --- Layout ---

    @app.post("/layout/auto", tags=["Layout"])
    def layout_auto() -> Dict[str, Any]:
        engine.auto_layout()
        return graph_response()

    @app.post("/layout/center", tags=["Layout"])
    def layout_center(req: Optional[CenterRequest] = None) -> Dict[str, Any]:
        req = req or CenterRequest()
        engine.pan_to_center(req.center_x, req.center_y)
        return graph_response()

    # --- History ---

    @app.post("/undo", tags=["History"])
    def undo() -> Dict[str, Any]:
        return {"moved": engine.undo() is not None, **graph_response()}

    @app.post("/redo", tags=["History"])
    def redo() -> Dict[str, Any]:
        return {"moved": engine.redo() is not None, **graph_response()}

    # --- Persistence ---

    @app.post("/save", tags=["Persistence"])
    def save() -> Dict[str, Any]:
        engine.save()
        return graph_response()

    @app.post("/load", tags=["Persistence"])
    def load() -> Dict[str, Any]:
        engine.load()
        return graph_response()

    @app.get("/export", tags=["Persistence"])
    def export() -> Response:
        return Response(
            content=engine.export_workflow(),
            media_type=EXPORT_MEDIA_TYPE,
            headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
        )

    @app.post("/import", tags=["Persistence"])
    async def import_workflow(request: Request) -> Dict[str, Any]:
        engine.import_workflow(await request.body())
        return graph_response()

    return app
