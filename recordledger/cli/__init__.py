"""recordledger command-line interface.

Exposes:
    cli -- Click group entry point (registered as ``recordledger`` script).
"""

from recordledger.cli.main import cli

__all__ = ["cli"]
