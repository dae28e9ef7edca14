"""recordledger: deterministic record registry for replicated ledger state."""

__version__ = "0.1.0"
