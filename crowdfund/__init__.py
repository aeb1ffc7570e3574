"""
crowdfund — a pooled-funding escrow with a claim-token ledger.

Packages
--------
- crowdfund.runtime    : deterministic contract host (state, frames, receipts)
- crowdfund.stdlib     : contract-facing runtime APIs
- crowdfund.contracts  : the escrow, claim token and governor contracts
- crowdfund.cli        : `crowdfund` command-line simulator
"""

from .version import __version__

__all__ = ["__version__"]
