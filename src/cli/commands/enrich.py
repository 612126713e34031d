"""Interactive enrichment: note -> follow-up questions -> review -> apply."""

import click
from rich.console import Console
from rich.table import Table

from cli.utils import confidence_style, get_pipeline
from customers.errors import CustomerNotFoundError
from nudges.models import NudgeAnswer
from observability import log_run_summary
from proposals.models import ProfileUpdateProposal
from proposals.review import ReviewState
from shared_types import NoteSource

console = Console()


def _show_proposal(proposal: ProfileUpdateProposal) -> None:
    if proposal.field_updates:
        table = Table(title="Proposed field updates", show_header=True)
        table.add_column("Field")
        table.add_column("Current")
        table.add_column("Proposed")
        table.add_column("Confidence")
        for f in proposal.field_updates:
            style = confidence_style(f.confidence)
            current = "-" if f.current_value is None else str(f.current_value)
            table.add_row(f.label, current, str(f.proposed_value), f"[{style}]{f.confidence}[/]")
        console.print(table)

    for d in proposal.additional_data:
        console.print(f"[bold]+ {d.label}:[/] {d.value} [dim]({d.confidence})[/]")
    for i in proposal.interest_proposals:
        console.print(f"[bold]Interest ({i.category}):[/] {i.label}")
    console.print(f"\n[bold]Note:[/] {proposal.note.content}")


def _review(proposal: ProfileUpdateProposal, accept_all: bool) -> ReviewState:
    review = ReviewState.for_proposal(proposal)
    if accept_all:
        review.accept_all()
        return review

    choices = click.Choice(["y", "n", "e"])
    for f in proposal.field_updates:
        answer = click.prompt(f"{f.label} = {f.proposed_value}  accept/reject/edit", type=choices, default="y")
        if answer == "y":
            review.accept(f.id)
        elif answer == "n":
            review.reject(f.id)
        else:
            review.edit(f.id, click.prompt(f"New value for {f.label}"))
    for d in proposal.additional_data:
        if click.confirm(f"Keep {d.label} = {d.value}?", default=True):
            review.accept(d.id)
        else:
            review.reject(d.id)
    for i in proposal.interest_proposals:
        if click.confirm(f"Confirm interest '{i.label}'?", default=True):
            review.accept(i.id)
        else:
            review.reject(i.id)
    if click.confirm("Save the note?", default=True):
        review.accept(proposal.note.id)
    else:
        review.reject(proposal.note.id)
    return review


@click.command()
@click.argument("customer_id")
@click.argument("content")
@click.option(
    "-s",
    "--source",
    default="meeting",
    type=click.Choice([s.value for s in NoteSource]),
    help="Interaction type",
)
@click.option("--no-questions", is_flag=True, help="Skip follow-up questions")
@click.option("-y", "--yes", "accept_all", is_flag=True, help="Accept every suggestion")
@click.option("--rm", "rm_id", default=None, help="Acting RM id recorded on artifacts")
def enrich(customer_id: str, content: str, source: str, no_questions: bool, accept_all: bool, rm_id):
    """Turn an RM note into reviewed profile updates."""
    pipeline = get_pipeline()
    try:
        draft = pipeline.start(customer_id, content, NoteSource(source))
    except CustomerNotFoundError:
        console.print(f"[red]Customer not found:[/] {customer_id}")
        raise SystemExit(1)

    console.print(
        f"[dim]Extracted {len(draft.extraction.fields)} fields, "
        f"{len(draft.extraction.interests)} interests[/]"
    )

    answers = []
    if draft.nudges and not no_questions:
        console.print(f"\n[bold]{len(draft.nudges)} follow-up questions[/] [dim](blank to skip)[/]")
        for q in draft.nudges:
            console.print(f"[dim]{q.why}[/]")
            text = click.prompt(q.question, default="", show_default=False)
            answers.append(
                NudgeAnswer(
                    question_id=q.id,
                    field_key=q.field_key,
                    answer=text or None,
                    skipped=not text.strip(),
                )
            )

    proposal = pipeline.finalize(customer_id, draft, answers, rm_id=rm_id)
    console.print()
    _show_proposal(proposal)
    console.print()

    review = _review(proposal, accept_all)
    # applying an all-rejected review still resolves the batch's pending artifacts
    result = pipeline.apply(customer_id, review.to_apply_request(), actor_id=rm_id)
    if not review.has_any_accepted:
        console.print("[yellow]Nothing accepted; profile unchanged.[/]")
        for err in result.errors or []:
            console.print(f"  [red]-[/] {err}")
        return

    colour = "green" if result.success else "yellow"
    console.print(
        f"[{colour}]Applied:[/] {result.fields_updated} fields, "
        f"{result.additional_data_added} additional items, "
        f"{result.interests_confirmed or 0} interests, "
        f"note {'saved' if result.note_created else 'not saved'}"
    )
    for err in result.errors or []:
        console.print(f"  [red]-[/] {err}")
    log_run_summary()
