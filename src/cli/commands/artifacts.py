"""Artifact listing command."""

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_pipeline
from shared_types import ArtifactStatus

console = Console()

_STATUS_STYLE = {
    ArtifactStatus.PENDING: "yellow",
    ArtifactStatus.ACCEPTED: "green",
    ArtifactStatus.EDITED: "cyan",
    ArtifactStatus.REJECTED: "red",
}


@click.command()
@click.argument("customer_id")
@click.option("--pending", is_flag=True, help="Only pending artifacts")
@click.option("-n", "--limit", default=50, help="Max artifacts to show")
def artifacts(customer_id: str, pending: bool, limit: int):
    """List suggested changes recorded for a customer."""
    pipeline = get_pipeline()
    status = ArtifactStatus.PENDING if pending else None
    rows = pipeline.artifacts.list_by_customer(customer_id, status=status, limit=limit)
    if not rows:
        console.print("[yellow]No artifacts found.[/]")
        return

    table = Table(show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Type")
    table.add_column("Item")
    table.add_column("Status")
    table.add_column("Batch", style="dim")
    for a in rows:
        item = a.payload.get("field_display_name") or a.payload.get("label") or ""
        style = _STATUS_STYLE[a.status]
        table.add_row(a.id, a.artifact_type.value, item, f"[{style}]{a.status.value}[/]", a.batch_id[:8])
    console.print(table)
