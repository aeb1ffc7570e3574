"""
Governor
========

Proposal-and-vote tally weighted by claim-token voting power. The governor
only *reads* the ledger (past votes and past total supply at a proposal's
snapshot block); it has no write access to the escrow or the ledger.

Lifecycle (by block height `h`):

    h <= snapshot              Pending
    snapshot < h <= end        Active      (votes accepted)
    h > end                    Succeeded | Defeated

A proposal succeeds iff `for > against` and `for + abstain >= quorum`, where
`quorum = past_total_supply(snapshot) * quorum_numerator / 100`.

Storage layout
--------------
    b"gov:cfg:*"                 -> token, delay, period, quorum, threshold
    b"gov:p:" + id + b":snap"    -> u256
    b"gov:p:" + id + b":end"     -> u256
    b"gov:p:" + id + b":who"     -> proposer
    b"gov:p:" + id + b":0|1|2"   -> against/for/abstain tallies
    b"gov:v:" + id + voter       -> b"\\x01" once voted

Events
------
- b"ProposalCreated" {"proposal_id", "proposer", "snapshot", "end"}
- b"VoteCast"        {"voter", "proposal_id", "support", "weight"}
"""

from __future__ import annotations

from typing import Dict, Final

from crowdfund.stdlib import abi, events, storage
from crowdfund.stdlib import hash as _hash

from .stdlib.math import apply_pct
from .stdlib.math.safe_uint import u256_add

AGAINST: Final[int] = 0
FOR: Final[int] = 1
ABSTAIN: Final[int] = 2

PENDING: Final[bytes] = b"Pending"
ACTIVE: Final[bytes] = b"Active"
DEFEATED: Final[bytes] = b"Defeated"
SUCCEEDED: Final[bytes] = b"Succeeded"

ERR_BELOW_THRESHOLD: Final[bytes] = b"GOV:BELOW_THRESHOLD"
ERR_DUPLICATE: Final[bytes] = b"GOV:DUPLICATE"
ERR_UNKNOWN: Final[bytes] = b"GOV:UNKNOWN_PROPOSAL"
ERR_NOT_ACTIVE: Final[bytes] = b"GOV:NOT_ACTIVE"
ERR_ALREADY_VOTED: Final[bytes] = b"GOV:ALREADY_VOTED"
ERR_NO_WEIGHT: Final[bytes] = b"GOV:NO_WEIGHT"
ERR_BAD_SUPPORT: Final[bytes] = b"GOV:BAD_SUPPORT"
ERR_BAD_CONFIG: Final[bytes] = b"GOV:BAD_CONFIG"

K_TOKEN: Final[bytes] = b"gov:cfg:token"
K_DELAY: Final[bytes] = b"gov:cfg:delay"
K_PERIOD: Final[bytes] = b"gov:cfg:period"
K_QUORUM: Final[bytes] = b"gov:cfg:quorum"
K_THRESHOLD: Final[bytes] = b"gov:cfg:threshold"


def _pk(pid: bytes, field: bytes) -> bytes:
    return b"gov:p:" + pid + b":" + field


def init(
    token: bytes,
    voting_delay: int,
    voting_period: int,
    quorum_numerator: int,
    proposal_threshold: int,
) -> None:
    if not isinstance(token, (bytes, bytearray)) or not any(token):
        abi.revert(ERR_BAD_CONFIG)
    if voting_delay < 0 or voting_period <= 0 or proposal_threshold < 0:
        abi.revert(ERR_BAD_CONFIG)
    if not (0 <= quorum_numerator <= 100):
        abi.revert(ERR_BAD_CONFIG)
    storage.set(K_TOKEN, bytes(token))
    storage.set_int(K_DELAY, voting_delay)
    storage.set_int(K_PERIOD, voting_period)
    storage.set_int(K_QUORUM, quorum_numerator)
    storage.set_int(K_THRESHOLD, proposal_threshold)


# ------------------------------------------------------------------------------
# Configuration views
# ------------------------------------------------------------------------------


def token() -> bytes:
    return storage.get(K_TOKEN) or b""


def voting_delay() -> int:
    return storage.get_int(K_DELAY)


def voting_period() -> int:
    return storage.get_int(K_PERIOD)


def quorum_numerator() -> int:
    return storage.get_int(K_QUORUM)


def proposal_threshold() -> int:
    return storage.get_int(K_THRESHOLD)


def quorum(height: int) -> int:
    supply = abi.static_call(token(), "get_past_total_supply", height)
    return apply_pct(supply, quorum_numerator())


# ------------------------------------------------------------------------------
# Proposals
# ------------------------------------------------------------------------------


def proposal_id(description: bytes) -> bytes:
    return _hash.keccak256(bytes(description))


def _require_exists(pid: bytes) -> None:
    if not storage.exists(_pk(pid, b"snap")):
        abi.revert(ERR_UNKNOWN)


def proposal_snapshot(pid: bytes) -> int:
    _require_exists(pid)
    return storage.get_int(_pk(pid, b"snap"))


def proposal_deadline(pid: bytes) -> int:
    _require_exists(pid)
    return storage.get_int(_pk(pid, b"end"))


def proposal_proposer(pid: bytes) -> bytes:
    _require_exists(pid)
    return storage.get(_pk(pid, b"who")) or b""


def proposal_votes(pid: bytes) -> Dict[str, int]:
    _require_exists(pid)
    return {
        "against": storage.get_int(_pk(pid, b"0")),
        "for": storage.get_int(_pk(pid, b"1")),
        "abstain": storage.get_int(_pk(pid, b"2")),
    }


def has_voted(pid: bytes, account: bytes) -> bool:
    return storage.exists(b"gov:v:" + pid + bytes(account))


def state(pid: bytes) -> bytes:
    snapshot = proposal_snapshot(pid)
    h = abi.block_height()
    if h <= snapshot:
        return PENDING
    if h <= proposal_deadline(pid):
        return ACTIVE
    tally = proposal_votes(pid)
    if tally["for"] > tally["against"] and tally["for"] + tally["abstain"] >= quorum(snapshot):
        return SUCCEEDED
    return DEFEATED


def propose(description: bytes) -> bytes:
    proposer = abi.sender()
    h = abi.block_height()
    weight = abi.static_call(token(), "get_past_votes", proposer, h - 1) if h > 0 else 0
    if weight < proposal_threshold():
        abi.revert(ERR_BELOW_THRESHOLD)

    pid = proposal_id(description)
    if storage.exists(_pk(pid, b"snap")):
        abi.revert(ERR_DUPLICATE)

    snapshot = h + voting_delay()
    end = snapshot + voting_period()
    storage.set_int(_pk(pid, b"snap"), snapshot)
    storage.set_int(_pk(pid, b"end"), end)
    storage.set(_pk(pid, b"who"), proposer)
    events.emit(
        b"ProposalCreated",
        {"proposal_id": pid, "proposer": proposer, "snapshot": snapshot, "end": end},
    )
    return pid


def cast_vote(pid: bytes, support: int) -> int:
    """Record the caller's vote; weight is their voting power at the snapshot."""
    if state(pid) != ACTIVE:
        abi.revert(ERR_NOT_ACTIVE)
    if isinstance(support, bool) or support not in (AGAINST, FOR, ABSTAIN):
        abi.revert(ERR_BAD_SUPPORT)

    voter = abi.sender()
    if has_voted(pid, voter):
        abi.revert(ERR_ALREADY_VOTED)
    weight = abi.static_call(token(), "get_past_votes", voter, proposal_snapshot(pid))
    if weight == 0:
        abi.revert(ERR_NO_WEIGHT)

    storage.set(b"gov:v:" + pid + voter, b"\x01")
    key = _pk(pid, str(support).encode("ascii"))
    storage.set_int(key, u256_add(storage.get_int(key), weight))
    events.emit(
        b"VoteCast",
        {"voter": voter, "proposal_id": pid, "support": support, "weight": weight},
    )
    return weight


__all__ = [
    "token",
    "voting_delay",
    "voting_period",
    "quorum_numerator",
    "proposal_threshold",
    "quorum",
    "proposal_id",
    "proposal_snapshot",
    "proposal_deadline",
    "proposal_proposer",
    "proposal_votes",
    "has_voted",
    "state",
    "propose",
    "cast_vote",
]
