"""PaymentFlow CLI tools.

Every command works against the configured storage slot: mutating commands
load the saved workflow, apply one engine operation, and save it back.
"""

import importlib.metadata
import platform
import sys
from pathlib import Path
from typing import Annotated, Optional

import dotenv
import typer
from rich.console import Console
from rich.table import Table

import paymentflow
from paymentflow.builder.constants import (
    NODE_KIND_LABELS,
    PAYMENT_INITIALIZER_DEFAULT_AMOUNT,
    PAYMENT_PROVIDERS,
)
from paymentflow.builder.editing_engine import EditingEngine
from paymentflow.builder.graph_model import default_workflow
from paymentflow.builder.graph_validator import GraphValidator
from paymentflow.builder.json_graph import deserialize_graph, save_graph_to_file
from paymentflow.builder.types import GraphSnapshot
from paymentflow.exceptions import PaymentFlowError
from paymentflow.settings import Settings, get_settings
from paymentflow.utilities.logging import configure_logging, get_logger

logger = get_logger("cli")
console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    name="paymentflow",
    help="PaymentFlow CLI",
    add_completion=False,
    no_args_is_help=True,
)

@app.callback()
def main(
    env_file: Annotated[
        Optional[Path],
        typer.Option("--env-file", help="Load environment variables from this file"),
    ] = None,
    log_level: Annotated[
        Optional[str],
        typer.Option("--log-level", "-l", help="Override PAYMENTFLOW_LOG_LEVEL"),
    ] = None,
) -> None:
    if env_file:
        dotenv.load_dotenv(env_file, override=True)
        get_settings.cache_clear()
    _settings()
    try:
        configure_logging(log_level)
    except PaymentFlowError as e:
        _fail(e)

# --- Helpers ---

def _settings() -> Settings:
    try:
        return get_settings()
    except PaymentFlowError as e:
        _fail(e)

def _fail(error: PaymentFlowError) -> None:
    err_console.print(f"[red]Error:[/red] {error.message}")
    raise typer.Exit(1)

def _open_engine() -> EditingEngine:
    """Engine holding the saved workflow. Fails when nothing is saved yet."""
    engine = EditingEngine.from_settings(_settings())
    try:
        engine.load()
    except PaymentFlowError as e:
        if engine.storage.get(_settings().storage_slot) is None:
            err_console.print("[yellow]Run 'paymentflow init' to create a workflow first.[/yellow]")
        _fail(e)
    return engine

def _apply(operation) -> EditingEngine:
    engine = _open_engine()
    try:
        operation(engine)
    except PaymentFlowError as e:
        _fail(e)
    engine.save()
    return engine

def _render(snapshot: GraphSnapshot) -> None:
    nodes = Table(title="Nodes")
    nodes.add_column("ID", style="cyan")
    nodes.add_column("Kind")
    nodes.add_column("Label", style="bold")
    nodes.add_column("Position", justify="right")
    for node in snapshot.nodes:
        nodes.add_row(
            node.id,
            NODE_KIND_LABELS.get(node.kind, node.type or "Unknown"),
            node.label,
            f"({node.position.x:g}, {node.position.y:g})",
        )
    console.print(nodes)

    edges = Table(title="Edges")
    edges.add_column("ID", style="cyan")
    edges.add_column("Source")
    edges.add_column("Target")
    for edge in snapshot.edges:
        edges.add_row(edge.id, edge.source, edge.target)
    console.print(edges)

# --- Commands ---

@app.command()
def version() -> None:
    """Show version information and platform details."""
    info = {
        "PaymentFlow version": importlib.metadata.version("paymentflow"),
        "Python version": platform.python_version(),
        "Platform": platform.platform(),
        "PaymentFlow root path": Path(paymentflow.__file__).resolve().parents[1],
    }

    g = Table.grid(padding=(0, 1))
    g.add_column(style="bold", justify="left")
    g.add_column(style="cyan", justify="right")
    for k, v in info.items():
        g.add_row(k + ":", str(v).replace("\n", " "))
    console.print(g)

@app.command()
def init(
    empty: Annotated[bool, typer.Option("--empty", help="Start with no nodes instead of the default workflow")] = False,
    force: Annotated[bool, typer.Option("--force", "-f", help="Overwrite an existing saved workflow")] = False,
) -> None:
    """Save a fresh workflow to the storage slot."""
    settings = _settings()
    engine = EditingEngine.from_settings(settings, None if empty else default_workflow())
    if engine.storage.get(settings.storage_slot) is not None and not force:
        err_console.print("[red]Error:[/red] A workflow is already saved. Use --force to overwrite it.")
        raise typer.Exit(1)
    engine.save()
    console.print(f"[green]{engine.notifications.success}[/green] ({len(engine.nodes)} nodes)")

@app.command()
def show() -> None:
    """Print the saved workflow's nodes and edges."""
    _render(_open_engine().snapshot)

@app.command()
def providers() -> None:
    """List the payment provider catalog."""
    table = Table(title="Payment Providers")
    table.add_column("Name", style="bold")
    table.add_column("Icon")
    for entry in PAYMENT_PROVIDERS:
        table.add_row(entry["name"], entry["icon"])
    console.print(table)

@app.command("add-provider")
def add_provider(
    name: Annotated[str, typer.Argument(help="Provider name, e.g. 'Stripe'")],
    icon: Annotated[Optional[str], typer.Option("--icon", help="Icon file; catalog icon used when omitted")] = None,
) -> None:
    """Add a payment provider node."""
    _apply(lambda engine: engine.add_payment_provider(name, icon))
    console.print(f"[green]Added provider[/green] {name}")

@app.command("add-country")
def add_country(
    code: Annotated[str, typer.Argument(help="Country code, e.g. 'us'")],
    label: Annotated[str, typer.Argument(help="Display name")],
    currency: Annotated[str, typer.Argument(help="Currency symbol")],
    node_id: Annotated[Optional[str], typer.Option("--id", help="Node id; defaults to the country code")] = None,
) -> None:
    """Add a country node."""
    _apply(lambda engine: engine.add_country(code, label, currency, node_id=node_id))
    console.print(f"[green]Added country[/green] {label}")

@app.command("add-initializer")
def add_initializer(
    amount: Annotated[float, typer.Option("--amount", help="Initial payment amount")] = PAYMENT_INITIALIZER_DEFAULT_AMOUNT,
) -> None:
    """Add the payment initializer node."""
    _apply(lambda engine: engine.add_payment_initializer(amount))
    console.print("[green]Added payment initializer[/green]")

@app.command()
def connect(
    source: Annotated[str, typer.Argument(help="Source node id")],
    target: Annotated[str, typer.Argument(help="Target node id")],
) -> None:
    """Connect two nodes."""
    engine = _apply(lambda engine: engine.connect(source, target))
    console.print(f"[green]Connected[/green] {source} -> {target} ({len(engine.edges)} edges)")

@app.command()
def delete(
    node_id: Annotated[str, typer.Argument(help="Node id")],
) -> None:
    """Delete a node and every edge touching it."""
    engine = _open_engine()
    if not engine.delete_node(node_id):
        err_console.print(f"[red]Error:[/red] Node not found: {node_id}")
        raise typer.Exit(1)
    engine.save()
    console.print(f"[green]Deleted[/green] {node_id}")

@app.command()
def layout(
    center: Annotated[bool, typer.Option("--center", help="Center the columns on the viewport instead")] = False,
    center_x: Annotated[Optional[float], typer.Option("--x", help="Viewport centre x")] = None,
    center_y: Annotated[Optional[float], typer.Option("--y", help="Viewport centre y")] = None,
) -> None:
    """Re-arrange the nodes in columns."""
    if center:
        engine = _apply(lambda engine: engine.pan_to_center(center_x, center_y))
    else:
        engine = _apply(lambda engine: engine.auto_layout())
    _render(engine.snapshot)

@app.command()
def validate() -> None:
    """Check the saved workflow for structural problems."""
    issues = GraphValidator(_open_engine().snapshot).issues()
    if not issues:
        console.print("[green]Workflow is valid[/green]")
        return
    for issue in issues:
        err_console.print(f"[red]-[/red] {issue}")
    raise typer.Exit(1)

@app.command("export")
def export_workflow(
    output: Annotated[
        Optional[Path],
        typer.Option("--output", "-o", help="Write to this file instead of stdout"),
    ] = None,
) -> None:
    """Export the saved workflow as a JSON document."""
    engine = _open_engine()
    if output is None:
        sys.stdout.write(engine.export_workflow().decode("utf-8") + "\n")
        return
    save_graph_to_file(engine.snapshot, str(output))
    console.print(f"[green]Exported[/green] to {output}")

@app.command("import")
def import_workflow(
    path: Annotated[Path, typer.Argument(help="Workflow JSON file", exists=True, dir_okay=False)],
) -> None:
    """Replace the saved workflow with an imported document."""
    engine = EditingEngine.from_settings(_settings())
    try:
        engine.import_workflow(path.read_bytes())
    except PaymentFlowError as e:
        _fail(e)
    engine.save()
    console.print(f"[green]Imported[/green] {len(engine.nodes)} nodes, {len(engine.edges)} edges")

@app.command()
def serve(
    host: Annotated[str, typer.Option("--host", help="Bind address")] = "127.0.0.1",
    port: Annotated[int, typer.Option("--port", "-p", help="Port")] = 8000,
) -> None:
    """Serve the HTTP editing API with uvicorn."""
    import uvicorn

    from paymentflow.server import create_app

    settings = _settings()
    initial = default_workflow()
    raw = EditingEngine.from_settings(settings).storage.get(settings.storage_slot)
    if raw is not None:
        try:
            initial = deserialize_graph(raw)
        except PaymentFlowError as e:
            logger.warning("Starting from the default workflow: %s", e.message)
    engine = EditingEngine.from_settings(settings, initial)
    logger.info("Serving on %s:%d", host, port)
    uvicorn.run(create_app(engine), host=host, port=port, log_level=settings.log_level.lower())
