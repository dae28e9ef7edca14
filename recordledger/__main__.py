"""Entry point for `python -m recordledger`.

Usage:
    python -m recordledger serve
    python -m recordledger canonicalize record.json
"""

from __future__ import annotations

from recordledger.cli import cli

cli()
