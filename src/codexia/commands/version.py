"""codexia version — report the version of the codex binary."""

from __future__ import annotations

import asyncio

import click

from codexia.errors import VersionCheckFailed
from codexia.process.discovery import check_codex_version


@click.command()
@click.option(
    "--codex-path",
    type=click.Path(dir_okay=False),
    default=None,
    help="Explicit codex binary (default: discovered).",
)
def version(codex_path: str | None) -> None:
    """Print the version reported by `codex -V`."""
    try:
        result = asyncio.run(check_codex_version(codex_path))
    except VersionCheckFailed as exc:
        click.echo(f"Error: {exc}", err=True)
        raise SystemExit(1) from exc
    click.echo(result)
