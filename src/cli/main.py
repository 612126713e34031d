"""clientbook command line entry point."""

import click

from cli.commands import artifacts, customers, enrich, nudges
from cli.config import load_config_model
from cli.logging_config import setup_logging


@click.group()
@click.version_option(version="0.1.0")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def cli(verbose: bool):
    """clientbook - client profile enrichment for relationship managers."""
    config = load_config_model()
    level = "DEBUG" if verbose else config.logging.level
    setup_logging(json_mode=config.logging.json_mode, level=level)


cli.add_command(customers)
cli.add_command(nudges)
cli.add_command(enrich)
cli.add_command(artifacts)


if __name__ == "__main__":
    cli()
