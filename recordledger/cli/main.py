"""Click commands: run the gateway, canonicalize JSON documents."""

from __future__ import annotations

import asyncio
import json
from typing import TextIO

import click

from recordledger import __version__
from recordledger.canonical import canonical_json_text
from recordledger.errors import CanonicalEncodingError


@click.group()
@click.version_option(__version__, prog_name="recordledger")
def cli() -> None:
    """Deterministic record registry over a replicated ledger."""


@cli.command()
def serve() -> None:
    """Start the in-memory ledger and REST gateway (configured via RECORDLEDGER_* env vars)."""
    from recordledger.app import main

    asyncio.run(main())


@cli.command()
@click.argument("source", type=click.File("r", encoding="utf-8"), default="-")
def canonicalize(source: TextIO) -> None:
    """Print the canonical encoding of the JSON document in SOURCE ('-' for stdin)."""
    try:
        document = json.load(source)
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"invalid JSON: {exc}") from exc
    try:
        text = canonical_json_text(document)
    except CanonicalEncodingError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(text)
