"""Customer CLI commands."""

import click
from rich.console import Console
from rich.table import Table

from cli.utils import get_pipeline
from customers.fields import registry
from customers.sections import (
    PROFILE_SECTIONS,
    is_empty,
    profile_completeness,
    section_completeness,
)

console = Console()


@click.group()
def customers():
    """Add, list and inspect customer profiles."""
    pass


@customers.command("add")
@click.argument("full_name")
@click.option("--field", "fields", multiple=True, help="key=value, repeatable")
def customers_add(full_name: str, fields: tuple[str, ...]):
    """Create a customer profile."""
    values = {}
    for item in fields:
        key, sep, raw = item.partition("=")
        if not sep:
            raise click.BadParameter(f"Expected key=value, got {item}", param_hint="--field")
        result = registry.validate(key.strip(), raw.strip())
        if not result.valid:
            raise click.BadParameter(result.error, param_hint="--field")
        values[key.strip()] = result.value

    pipeline = get_pipeline()
    customer = pipeline.profiles.create_customer(full_name, values)
    console.print(f"[green]Created:[/] {customer.full_name} [dim]({customer.id})[/]")


@customers.command("list")
def customers_list():
    """List customers with overall profile completeness."""
    pipeline = get_pipeline()
    rows = pipeline.profiles.list_customers()
    if not rows:
        console.print("[yellow]No customers yet.[/] Add one with [cyan]clientbook customers add[/].")
        return

    table = Table(show_header=True)
    table.add_column("ID", style="dim")
    table.add_column("Name")
    table.add_column("Completeness", justify="right")
    table.add_column("Level")
    for c in rows:
        pc = profile_completeness(c.fields)
        table.add_row(c.id, c.full_name, f"{pc.percentage}%", pc.level)
    console.print(table)


@customers.command("show")
@click.argument("customer_id")
def customers_show(customer_id: str):
    """Show a profile section by section."""
    pipeline = get_pipeline()
    customer = pipeline.profiles.get_customer(customer_id)
    if customer is None:
        console.print(f"[red]Customer not found:[/] {customer_id}")
        raise SystemExit(1)

    pc = profile_completeness(customer.fields)
    console.print(f"\n[cyan bold]{customer.full_name}[/] [dim]{customer.id}[/]")
    console.print(f"Profile completeness: [bold]{pc.percentage}%[/] ({pc.level})\n")

    table = Table(title="Sections", show_header=True)
    table.add_column("Section")
    table.add_column("Filled", justify="right")
    table.add_column("%", justify="right")
    for section in PROFILE_SECTIONS:
        sc = section_completeness(customer.fields, section)
        table.add_row(section.label, f"{sc.filled}/{sc.total}", str(sc.percentage))
    console.print(table)

    for section in PROFILE_SECTIONS:
        filled = [f for f in section.fields if not is_empty(customer.fields.get(f.key))]
        if not filled:
            continue
        console.print(f"\n[bold]{section.label}[/]")
        for f in filled:
            shown = registry.format_for_display(f.key, customer.fields[f.key])
            console.print(f"  {f.label}: {shown}")

    if customer.additional_data:
        console.print("\n[bold]Additional data[/]")
        for item in customer.additional_data:
            console.print(f"  {item.get('label') or item['key']}: {item.get('value')}")
