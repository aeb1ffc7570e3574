"""
crowdfund.cli — command-line simulator for a single campaign.

Entry point: `crowdfund` (see crowdfund.cli.main:app).
"""

from .main import app, main

__all__ = ["app", "main"]
