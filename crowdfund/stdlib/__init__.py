"""
crowdfund.stdlib — the only runtime surface contract code imports.

    from crowdfund.stdlib import abi, events, storage, treasury
    from crowdfund.stdlib import hash as _hash

Each module resolves the executing contract from the active call frame, so a
contract module holds no state of its own and can back any number of deployed
instances.
"""

from __future__ import annotations

from ..runtime import abi
from ..runtime import events_api as events
from ..runtime import hash_api as hash  # noqa: A001 (mirrors the contract-facing name)
from ..runtime import storage_api as storage
from ..runtime import treasury_api as treasury

__all__ = ["abi", "events", "storage", "treasury", "hash"]
