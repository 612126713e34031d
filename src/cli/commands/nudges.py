"""Nudge preview command."""

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_pipeline
from nudges.scoring import score_empty_fields
from nudges.selection import score_threshold, select_nudge_fields

console = Console()


@click.command()
@click.argument("customer_id")
@click.option("--extracted", default="", help="Comma-separated field keys already extracted")
@click.option("--max", "max_questions", type=int, default=None, help="Max questions to select")
def nudges(customer_id: str, extracted: str, max_questions: int | None):
    """Rank empty fields and show which ones would be asked about."""
    pipeline = get_pipeline()
    customer = pipeline.profiles.get_customer(customer_id)
    if customer is None:
        console.print(f"[red]Customer not found:[/] {customer_id}")
        raise SystemExit(1)

    keys = [k.strip() for k in extracted.split(",") if k.strip()]
    scored = score_empty_fields(customer.fields)
    selected = select_nudge_fields(
        scored,
        keys,
        max_questions=pipeline.max_questions if max_questions is None else max_questions,
        quota_percent=pipeline.quota_percent,
    )

    if not selected:
        console.print("[green]Nothing to ask about.[/]")
        return

    table = Table(title=f"Nudges ({len(selected)} of {len(scored)} empty fields)")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Field")
    table.add_column("Section")
    table.add_column("Priority")
    table.add_column("Section %", justify="right")
    table.add_column("Score", justify="right")
    for i, s in enumerate(selected, 1):
        table.add_row(
            str(i),
            s.label,
            s.section_label,
            s.priority.value,
            str(s.section_completeness),
            f"{s.score:.2f}",
        )
    console.print(table)
    console.print(f"[dim]Last selected score: {score_threshold(selected):.2f}[/]")
