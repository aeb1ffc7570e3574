"""
crowdfund.runtime — a small deterministic host for Python contracts.

Modules
-------
- context      : BlockEnv and the per-thread call-frame stack
- journal      : WorldState with nested journaled checkpoints
- storage_api  : contract key/value storage
- events_api   : validated event emission
- treasury_api : native value custody and transfers
- hash_api     : sha3/keccak wrappers
- abi          : call environment, reverts, cross-contract calls
- result       : TxStatus / ApplyResult receipts
- host         : Host (deploy/apply/view) and ContractHandle
"""

from __future__ import annotations

from .context import BlockEnv, Frame
from .events_api import Event
from .host import ZERO_ADDRESS, ContractHandle, Host, account_address, contract_address
from .journal import WorldState
from .result import ApplyResult, TxStatus

__all__ = [
    "BlockEnv",
    "Frame",
    "Event",
    "WorldState",
    "ApplyResult",
    "TxStatus",
    "Host",
    "ContractHandle",
    "ZERO_ADDRESS",
    "account_address",
    "contract_address",
]
