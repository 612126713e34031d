"""CLI command tests using Click CliRunner.

Strategy: patch get_pipeline at each command module's import point so every
command shares the tmp-SQLite, no-LLM test pipeline. Config loading and
logging setup in the group callback are patched out too.
"""

import importlib
from contextlib import ExitStack
from unittest.mock import patch

import pytest
from click.testing import CliRunner
from rich.console import Console

from cli.config_models import ClientbookConfig
from cli.main import cli
from shared_types import ArtifactStatus

_COMMAND_MODULES = ("customers", "nudges", "enrich", "artifacts")


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def cli_pipeline(pipeline):
    """Route every command to ``pipeline`` and widen consoles so tables don't wrap."""
    with ExitStack() as stack:
        stack.enter_context(patch("cli.main.load_config_model", return_value=ClientbookConfig()))
        stack.enter_context(patch("cli.main.setup_logging"))
        for name in _COMMAND_MODULES:
            # cli.commands re-exports the click objects under the module names
            module = importlib.import_module(f"cli.commands.{name}")
            stack.enter_context(patch.object(module, "get_pipeline", return_value=pipeline))
            stack.enter_context(patch.object(module, "console", Console(width=200)))
        yield pipeline


class TestGroup:
    def test_help_lists_commands(self, runner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for name in _COMMAND_MODULES:
            assert name in result.output

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])
        assert result.exit_code == 0
        assert "0.1.0" in result.output

    def test_verbose_sets_debug(self, runner, cli_pipeline):
        with patch("cli.main.setup_logging") as setup:
            result = runner.invoke(cli, ["-v", "customers", "list"])
        assert result.exit_code == 0
        setup.assert_called_once_with(json_mode=False, level="DEBUG")


class TestCustomers:
    def test_add(self, runner, cli_pipeline):
        result = runner.invoke(
            cli,
            ["customers", "add", "Ravi Menon", "--field", "city_of_residence=Kochi", "--field", "dependents_count=3"],
        )
        assert result.exit_code == 0
        assert "Created:" in result.output

        [customer] = cli_pipeline.profiles.list_customers()
        assert customer.full_name == "Ravi Menon"
        assert customer.fields["city_of_residence"] == "Kochi"
        assert customer.fields["dependents_count"] == 3

    def test_add_rejects_invalid_value(self, runner, cli_pipeline):
        result = runner.invoke(cli, ["customers", "add", "Ravi Menon", "--field", "dependents_count=two"])
        assert result.exit_code == 2
        assert "Invalid number: two" in result.output
        assert cli_pipeline.profiles.list_customers() == []

    def test_add_rejects_unknown_field(self, runner, cli_pipeline):
        result = runner.invoke(cli, ["customers", "add", "Ravi Menon", "--field", "shoe_size=9"])
        assert result.exit_code == 2
        assert "Unknown field: shoe_size" in result.output

    def test_add_rejects_missing_equals(self, runner, cli_pipeline):
        result = runner.invoke(cli, ["customers", "add", "Ravi Menon", "--field", "city_of_residence"])
        assert result.exit_code == 2
        assert "Expected key=value" in result.output

    def test_list(self, runner, cli_pipeline, customer):
        result = runner.invoke(cli, ["customers", "list"])
        assert result.exit_code == 0
        assert "Anita Rao" in result.output
        assert customer.id in result.output

    def test_list_empty(self, runner, cli_pipeline):
        result = runner.invoke(cli, ["customers", "list"])
        assert result.exit_code == 0
        assert "No customers yet." in result.output

    def test_show(self, runner, cli_pipeline, customer):
        result = runner.invoke(cli, ["customers", "show", customer.id])
        assert result.exit_code == 0
        assert "Anita Rao" in result.output
        assert "Profile completeness:" in result.output
        assert "City: Pune" in result.output

    def test_show_missing(self, runner, cli_pipeline):
        result = runner.invoke(cli, ["customers", "show", "nope"])
        assert result.exit_code == 1
        assert "Customer not found:" in result.output


class TestNudges:
    def test_ranks_empty_fields(self, runner, cli_pipeline, customer):
        result = runner.invoke(cli, ["nudges", customer.id])
        assert result.exit_code == 0
        assert "Nudges (10 of 88 empty fields)" in result.output
        assert "Date of Birth" in result.output
        assert "Last selected score:" in result.output

    def test_extracted_and_max(self, runner, cli_pipeline, customer):
        result = runner.invoke(cli, ["nudges", customer.id, "--extracted", "dob", "--max", "3"])
        assert result.exit_code == 0
        assert "Nudges (3 of 88 empty fields)" in result.output
        assert "Date of Birth" not in result.output

    def test_zero_max(self, runner, cli_pipeline, customer):
        result = runner.invoke(cli, ["nudges", customer.id, "--max", "0"])
        assert result.exit_code == 0
        assert "Nothing to ask about." in result.output

    def test_missing_customer(self, runner, cli_pipeline):
        result = runner.invoke(cli, ["nudges", "nope"])
        assert result.exit_code == 1


class TestArtifacts:
    def test_lists_pending(self, runner, cli_pipeline, built_proposal):
        result = runner.invoke(cli, ["artifacts", built_proposal.customer_id, "--pending"])
        assert result.exit_code == 0
        assert "profile_edit" in result.output
        assert "interest_proposal" in result.output
        assert "Risk Bucket" in result.output
        assert "pending" in result.output

    def test_none(self, runner, cli_pipeline, customer):
        result = runner.invoke(cli, ["artifacts", customer.id])
        assert result.exit_code == 0
        assert "No artifacts found." in result.output


class TestEnrich:
    def test_accept_all_without_questions(self, runner, cli_pipeline, customer):
        result = runner.invoke(
            cli,
            ["enrich", customer.id, "Coffee with Anita, talked about SIPs.", "--no-questions", "--yes"],
        )
        assert result.exit_code == 0
        assert "Extracted 0 fields, 0 interests" in result.output
        assert "Applied:" in result.output
        assert "note saved" in result.output

        [note] = cli_pipeline.profiles.list_notes(customer.id)
        assert note.content == "Coffee with Anita, talked about SIPs."

    def test_interactive_answers_and_review(self, runner, cli_pipeline, customer):
        # answer the first question (date of birth), skip the other nine,
        # then accept the proposed field and the note
        answers = "1984-03-12\n" + "\n" * 9 + "\n\n"
        result = runner.invoke(
            cli,
            ["enrich", customer.id, "Met Anita for coffee.", "--source", "call", "--rm", "rm-3"],
            input=answers,
        )
        assert result.exit_code == 0, result.output
        assert "10 follow-up questions" in result.output
        assert "1 fields" in result.output
        assert "note saved" in result.output

        updated = cli_pipeline.profiles.get_customer(customer.id)
        assert updated.fields["dob"] == "1984-03-12"
        [artifact] = cli_pipeline.artifacts.list_by_customer(customer.id)
        assert artifact.status == ArtifactStatus.ACCEPTED

    def test_reject_everything(self, runner, cli_pipeline, customer):
        answers = "1984-03-12\n" + "\n" * 9 + "n\nn\n"
        result = runner.invoke(cli, ["enrich", customer.id, "Met Anita for coffee."], input=answers)
        assert result.exit_code == 0, result.output
        assert "Nothing accepted; profile unchanged." in result.output
        assert "dob" not in cli_pipeline.profiles.get_customer(customer.id).fields
        assert cli_pipeline.profiles.list_notes(customer.id) == []
        # the proposed edit is resolved, not left pending
        [artifact] = cli_pipeline.artifacts.list_by_customer(customer.id)
        assert artifact.status == ArtifactStatus.REJECTED

    def test_edit_field_value(self, runner, cli_pipeline, customer):
        answers = "12 March 1984\n" + "\n" * 9 + "e\n1984-03-12\n\n"
        result = runner.invoke(cli, ["enrich", customer.id, "Met Anita for coffee."], input=answers)
        assert result.exit_code == 0, result.output
        assert cli_pipeline.profiles.get_customer(customer.id).fields["dob"] == "1984-03-12"
        [artifact] = cli_pipeline.artifacts.list_by_customer(customer.id)
        assert artifact.status == ArtifactStatus.EDITED

    def test_unknown_customer(self, runner, cli_pipeline):
        result = runner.invoke(cli, ["enrich", "nope", "Some note", "--yes"])
        assert result.exit_code == 1
        assert "Customer not found:" in result.output
