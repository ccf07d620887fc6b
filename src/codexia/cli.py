"""Root CLI group and version flag."""

import click

from codexia import __version__
from codexia.commands.run import run
from codexia.commands.version import version


@click.group()
@click.version_option(version=__version__, prog_name="codexia")
def cli() -> None:
    """codexia — drive the codex agent over its JSONL protocol."""


cli.add_command(run)
cli.add_command(version)
