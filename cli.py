from __future__ import annotations

from typing import Optional

import typer
import uvicorn

from tracechain.config import get_config
from tracechain.display import (
    render_history,
    render_lot,
    render_lot_table,
    render_queue_status,
    render_tree,
)
from tracechain.errors import TraceChainError
from tracechain.logging_config import configure_logging, get_logger
from tracechain.models import Disposition, Region
from tracechain.routing import RoutingHierarchy, demand_level
from tracechain.service import IdGenerator, SupplyChainService

logger = get_logger(__name__)

app = typer.Typer(help="Provenance tracking and routing for harvested lots")

REGIONS = list(Region)
DISPOSITIONS = list(Disposition)

MENU = """
===== AGRICULTURAL SUPPLY CHAIN =====
1. Producer: Enter New Lot
2. Intermediary: Process Lot
3. View Lot History
4. View Queue Status
5. View Routing Tree
6. List All Lots
7. Exit"""


def setup_run(log_level: Optional[str] = None):
    """Load configuration and configure logging for a command."""
    cfg = get_config()
    configure_logging(
        level=log_level or cfg.LOG_LEVEL,
        json_format=cfg.LOG_JSON,
        log_file=cfg.LOG_FILE,
    )
    return cfg


def _heading(title: str) -> None:
    typer.echo(f"\n===== {title} =====")


def enter_lot(service: SupplyChainService) -> None:
    """Collect a new lot from the producer and route it."""
    category = typer.prompt("Enter crop type")
    quantity = typer.prompt("Enter quantity (kg)", type=float)
    freshness = typer.prompt("Enter freshness (1-10)", type=float)
    organic = typer.confirm("Is organic?", default=False)
    producer_id = typer.prompt("Enter producer ID")
    origin = typer.prompt("Enter location")

    typer.echo("Select area code:")
    for i, region in enumerate(REGIONS, start=1):
        typer.echo(f"{i}. {region.value}")
    choice = typer.prompt(f"Choice (1-{len(REGIONS)})", type=int)
    region = REGIONS[choice - 1] if 1 <= choice <= len(REGIONS) else Region.NORTH

    lot = service.create_lot(
        category=category,
        quantity=quantity,
        metrics={"freshness": freshness},
        producer_id=producer_id,
        origin=origin,
        region=region,
        certifications=["Organic"] if organic else [],
    )
    intake = service.register_harvest(lot)

    typer.echo("\nLot entered successfully!")
    typer.echo(f"Lot ID: {lot.lot_id} (save this for tracking)")
    typer.echo(f"Destination node: {intake.leaf.node_id} - {intake.leaf.description}")


def process_lot(service: SupplyChainService) -> None:
    """Let an intermediary pick the oldest lot from a queue and decide its route."""
    pending = service.pending_queues()

    _heading("AVAILABLE QUEUES WITH LOTS")
    if not pending:
        typer.echo("No lots available in any queue.")
        return

    for i, queue_status in enumerate(pending, start=1):
        typer.echo(f"{i}. {queue_status.label} - Items: {queue_status.size}")

    choice = typer.prompt(f"Select node to process (1-{len(pending)})", type=int)
    if not 1 <= choice <= len(pending):
        typer.echo("Invalid node selection.")
        return
    leaf_id = pending[choice - 1].node_id

    waiting = service.hierarchy.queue(leaf_id).peek()
    _heading("LOT DETAILS")
    typer.echo(render_lot(waiting.lot))

    handler_id = typer.prompt("\nEnter intermediary ID")
    location = typer.prompt("Enter current location")

    typer.echo("Select decision:")
    for i, disposition in enumerate(DISPOSITIONS, start=1):
        typer.echo(f"{i}. {disposition.value}")
    code = typer.prompt("Choice", type=int)
    disposition = DISPOSITIONS[code - 1] if 1 <= code <= len(DISPOSITIONS) else Disposition.EXPORT

    record = service.process_next(leaf_id, handler_id, location, disposition)
    typer.echo("\nDecision processed successfully!")
    typer.echo(f"Handoff ID: {record.record_id}")


def view_history(service: SupplyChainService) -> None:
    list_lots(service)
    lot_id = typer.prompt("\nEnter lot ID to trace")
    history = service.history(lot_id)
    if history:
        _heading("LOT HISTORY")
    typer.echo(render_history(history))


def list_lots(service: SupplyChainService) -> None:
    _heading("AVAILABLE LOTS")
    typer.echo(render_lot_table(service.available_lots()))


def view_queues(service: SupplyChainService) -> None:
    _heading("QUEUE STATUS")
    typer.echo(render_queue_status(service.queue_status()))


def view_tree(service: SupplyChainService) -> None:
    _heading("ROUTING TREE STRUCTURE")
    typer.echo(render_tree(service.hierarchy))


ACTIONS = {
    1: enter_lot,
    2: process_lot,
    3: view_history,
    4: view_queues,
    5: view_tree,
    6: list_lots,
}


def run_shell(service: SupplyChainService) -> None:
    """Menu loop; refused operations are reported and the loop continues."""
    while True:
        typer.echo(MENU)
        choice = typer.prompt("Choice", type=int)
        if choice == 7:
            typer.echo("Exiting program.")
            return

        action = ACTIONS.get(choice)
        if action is None:
            typer.echo("Invalid choice. Please try again.")
            continue
        try:
            action(service)
        except TraceChainError as e:
            logger.warning("Operation refused: %s", e)
            typer.echo(f"Error: {e.message}", err=True)


@app.command()
def shell(
    log_level: Optional[str] = typer.Option(None, "--log-level", "-l", help="Override LOG_LEVEL"),
) -> None:
    """Run the interactive supply chain shell."""
    cfg = setup_run(log_level)
    run_shell(SupplyChainService(ids=IdGenerator(cfg.ID_START)))


@app.command()
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind address (default: HOST)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="Port (default: PORT)"),
) -> None:
    """Serve the HTTP API."""
    from tracechain.api import create_app

    cfg = setup_run()
    service = SupplyChainService(ids=IdGenerator(cfg.ID_START))
    bind_host, bind_port = host or cfg.HOST, port or cfg.PORT

    typer.echo(f"Server: http://{bind_host}:{bind_port}")
    uvicorn.run(create_app(service), host=bind_host, port=bind_port, log_level="info")


@app.command()
def tree() -> None:
    """Print the routing hierarchy."""
    typer.echo(render_tree(RoutingHierarchy()))


@app.command()
def demand(
    region: Region = typer.Argument(..., help="Region of the lot"),
    category: str = typer.Argument(..., help="Crop category, e.g. Wheat"),
) -> None:
    """Print the regional demand used to annotate routed lots."""
    value = RoutingHierarchy().demand_for(region, category)
    typer.echo(f"{region.value} / {category}: {value:.1f}/10 ({demand_level(value)})")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
