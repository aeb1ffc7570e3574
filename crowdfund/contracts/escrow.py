"""
Funding Escrow
==============

Pooled-funding campaign with exactly two terminal outcomes. Contributions are
accepted while the campaign is Funding and each one mints claim tokens in
lock-step (`shares = amount * SHARE_SCALE`). Funding ends either early, when
the operator closes a campaign that met its goal, or after the deadline via
`finalize()`:

    Funding --close_funding()--------------------> Succeeded
    Funding --finalize(), raised >= goal---------> Succeeded
    Funding --finalize(), raised <  goal---------> Failed

Succeeded lets the operator withdraw custody; Failed lets holders burn claim
tokens for refunds. No transition leaves a terminal phase. Reaching the goal
never changes the phase by itself.

Money movement
--------------
Every mutating entrypoint runs under one non-reentrancy scope. Withdrawals and
refunds finish all bookkeeping (counters, burns, events) before the outward
transfer, which is always the last step; a transfer the recipient rejects
fails the call with ESCROW:TRANSFER_FAILED and the host rolls everything back.

Custody is the contract's real balance, never a separate counter:

    balance == total_raised - total_withdrawn - total_refunded

Unsolicited value is rejected (`receive` reverts).

Storage layout
--------------
    b"escrow:operator" -> bytes
    b"escrow:goal"     -> u256
    b"escrow:deadline" -> u256 (timestamp)
    b"escrow:phase"    -> u256 (0 Funding, 1 Succeeded, 2 Failed)
    b"escrow:raised"   -> u256
    b"escrow:withdrawn"-> u256
    b"escrow:refunded" -> u256
    b"escrow:token"    -> bytes (claim-token address)

Events
------
- b"Contributed"   {"contributor", "amount", "shares"}
- b"FundingClosed" {"total_raised"}
- b"Finalized"     {"outcome", "total_raised"}
- b"Withdrawn"     {"to", "amount"}
- b"Refunded"      {"contributor", "amount"}
"""

from __future__ import annotations

from typing import Any, Dict, Final, FrozenSet

from crowdfund.stdlib import abi, events, storage, treasury

from .stdlib.control import non_reentrant
from .stdlib.math.safe_uint import u256_add, u256_mul

CLAIM_TOKEN_CODE: Final[str] = "crowdfund.contracts.claim_token"

NATIVE_DECIMALS: Final[int] = 8
TOKEN_DECIMALS: Final[int] = 18
SHARE_SCALE: Final[int] = 10 ** (TOKEN_DECIMALS - NATIVE_DECIMALS)

FUNDING: Final[int] = 0
SUCCEEDED: Final[int] = 1
FAILED: Final[int] = 2

PHASE_NAMES: Final[Dict[int, bytes]] = {
    FUNDING: b"Funding",
    SUCCEEDED: b"Succeeded",
    FAILED: b"Failed",
}

# Reason codes
ERR_NOT_OPERATOR: Final[bytes] = b"ESCROW:NOT_OPERATOR"
ERR_NOT_FUNDING: Final[bytes] = b"ESCROW:NOT_FUNDING"
ERR_NOT_SUCCEEDED: Final[bytes] = b"ESCROW:NOT_SUCCEEDED"
ERR_NOT_FAILED: Final[bytes] = b"ESCROW:NOT_FAILED"
ERR_DEADLINE_PASSED: Final[bytes] = b"ESCROW:DEADLINE_PASSED"
ERR_DEADLINE_NOT_PASSED: Final[bytes] = b"ESCROW:DEADLINE_NOT_PASSED"
ERR_ZERO_AMOUNT: Final[bytes] = b"ESCROW:ZERO_AMOUNT"
ERR_GOAL_NOT_MET: Final[bytes] = b"ESCROW:GOAL_NOT_MET"
ERR_INSUFFICIENT_FUNDS: Final[bytes] = b"ESCROW:INSUFFICIENT_FUNDS"
ERR_INSUFFICIENT_SHARES: Final[bytes] = b"ESCROW:INSUFFICIENT_SHARES"
ERR_TRANSFER_FAILED: Final[bytes] = b"ESCROW:TRANSFER_FAILED"
ERR_REENTRANT: Final[bytes] = b"ESCROW:REENTRANT"
ERR_UNSOLICITED: Final[bytes] = b"ESCROW:UNSOLICITED_TRANSFER"
ERR_BAD_DEADLINE: Final[bytes] = b"ESCROW:BAD_DEADLINE"
ERR_BAD_GOAL: Final[bytes] = b"ESCROW:BAD_GOAL"
ERR_ZERO_ADDR: Final[bytes] = b"ESCROW:ZERO_ADDR"

AUTH_ERRORS: Final[FrozenSet[bytes]] = frozenset({ERR_NOT_OPERATOR})
PHASE_ERRORS: Final[FrozenSet[bytes]] = frozenset(
    {ERR_NOT_FUNDING, ERR_NOT_SUCCEEDED, ERR_NOT_FAILED}
)

EVT_CONTRIBUTED: Final[bytes] = b"Contributed"
EVT_FUNDING_CLOSED: Final[bytes] = b"FundingClosed"
EVT_FINALIZED: Final[bytes] = b"Finalized"
EVT_WITHDRAWN: Final[bytes] = b"Withdrawn"
EVT_REFUNDED: Final[bytes] = b"Refunded"

K_OPERATOR: Final[bytes] = b"escrow:operator"
K_GOAL: Final[bytes] = b"escrow:goal"
K_DEADLINE: Final[bytes] = b"escrow:deadline"
K_PHASE: Final[bytes] = b"escrow:phase"
K_RAISED: Final[bytes] = b"escrow:raised"
K_WITHDRAWN: Final[bytes] = b"escrow:withdrawn"
K_REFUNDED: Final[bytes] = b"escrow:refunded"
K_TOKEN: Final[bytes] = b"escrow:token"

_GUARD_SCOPE: Final[bytes] = b"escrow"

PAYABLE = frozenset({"contribute", "receive"})


def error_class(reason: bytes) -> str:
    """Classify a revert reason as "auth", "phase" or "other"."""
    if reason in AUTH_ERRORS:
        return "auth"
    if reason in PHASE_ERRORS:
        return "phase"
    return "other"


# ------------------------------------------------------------------------------
# Construction
# ------------------------------------------------------------------------------


def init(name: bytes, symbol: bytes, operator: bytes, goal: int, deadline: int) -> None:
    if not isinstance(operator, (bytes, bytearray)) or not any(operator):
        abi.revert(ERR_ZERO_ADDR)
    if not isinstance(goal, int) or goal <= 0:
        abi.revert(ERR_BAD_GOAL)
    if not isinstance(deadline, int) or deadline <= abi.block_timestamp():
        abi.revert(ERR_BAD_DEADLINE)

    storage.set(K_OPERATOR, bytes(operator))
    storage.set_int(K_GOAL, goal)
    storage.set_int(K_DEADLINE, deadline)
    storage.set_int(K_PHASE, FUNDING)
    storage.set(K_TOKEN, abi.deploy(CLAIM_TOKEN_CODE, name, symbol, TOKEN_DECIMALS))


# ------------------------------------------------------------------------------
# Read-only surface
# ------------------------------------------------------------------------------


def operator() -> bytes:
    return storage.get(K_OPERATOR) or b""


def goal() -> int:
    return storage.get_int(K_GOAL)


def deadline() -> int:
    return storage.get_int(K_DEADLINE)


def phase() -> bytes:
    return PHASE_NAMES[storage.get_int(K_PHASE)]


def total_raised() -> int:
    return storage.get_int(K_RAISED)


def total_withdrawn() -> int:
    return storage.get_int(K_WITHDRAWN)


def total_refunded() -> int:
    return storage.get_int(K_REFUNDED)


def held_balance() -> int:
    return treasury.balance()


def token() -> bytes:
    return storage.get(K_TOKEN) or b""


def shares_for(amount: int) -> int:
    return u256_mul(amount, SHARE_SCALE)


def status() -> Dict[str, Any]:
    return {
        "phase": phase(),
        "total_raised": total_raised(),
        "deadline": deadline(),
        "goal": goal(),
        "held_balance": held_balance(),
        "operator": operator(),
        "token": token(),
        "total_withdrawn": total_withdrawn(),
        "total_refunded": total_refunded(),
    }


# ------------------------------------------------------------------------------
# Internals
# ------------------------------------------------------------------------------


def _guard():
    return non_reentrant(_GUARD_SCOPE, reason=ERR_REENTRANT)


def _require_phase(expected: int, reason: bytes) -> None:
    if storage.get_int(K_PHASE) != expected:
        abi.revert(reason)


def _require_operator() -> bytes:
    op = operator()
    if abi.sender() != op:
        abi.revert(ERR_NOT_OPERATOR)
    return op


def _require_amount(amount: int) -> None:
    if not isinstance(amount, int) or isinstance(amount, bool) or amount <= 0:
        abi.revert(ERR_ZERO_AMOUNT)


def _pay(to: bytes, amount: int) -> None:
    if not treasury.try_transfer(to, amount):
        abi.revert(ERR_TRANSFER_FAILED)


def _withdraw(op: bytes, amount: int) -> None:
    _require_amount(amount)
    if amount > treasury.balance():
        abi.revert(ERR_INSUFFICIENT_FUNDS)
    storage.set_int(K_WITHDRAWN, u256_add(total_withdrawn(), amount))
    events.emit(EVT_WITHDRAWN, {"to": op, "amount": amount})
    _pay(op, amount)


# ------------------------------------------------------------------------------
# Phase machine
# ------------------------------------------------------------------------------


def contribute() -> int:
    """Accept the attached value and mint `value * SHARE_SCALE` claim tokens."""
    with _guard():
        _require_phase(FUNDING, ERR_NOT_FUNDING)
        if abi.block_timestamp() > deadline():
            abi.revert(ERR_DEADLINE_PASSED)
        amount = abi.value()
        if amount <= 0:
            abi.revert(ERR_ZERO_AMOUNT)

        contributor = abi.sender()
        shares = shares_for(amount)
        storage.set_int(K_RAISED, u256_add(total_raised(), amount))
        abi.call(token(), "mint", contributor, shares)
        events.emit(
            EVT_CONTRIBUTED,
            {"contributor": contributor, "amount": amount, "shares": shares},
        )
        return shares


def close_funding() -> None:
    with _guard():
        _require_operator()
        _require_phase(FUNDING, ERR_NOT_FUNDING)
        raised = total_raised()
        if raised < goal():
            abi.revert(ERR_GOAL_NOT_MET)
        storage.set_int(K_PHASE, SUCCEEDED)
        events.emit(EVT_FUNDING_CLOSED, {"total_raised": raised})


def finalize() -> bytes:
    with _guard():
        _require_phase(FUNDING, ERR_NOT_FUNDING)
        if abi.block_timestamp() <= deadline():
            abi.revert(ERR_DEADLINE_NOT_PASSED)
        raised = total_raised()
        outcome = SUCCEEDED if raised >= goal() else FAILED
        storage.set_int(K_PHASE, outcome)
        events.emit(
            EVT_FINALIZED, {"outcome": PHASE_NAMES[outcome], "total_raised": raised}
        )
        return PHASE_NAMES[outcome]


def withdraw(amount: int) -> None:
    with _guard():
        op = _require_operator()
        _require_phase(SUCCEEDED, ERR_NOT_SUCCEEDED)
        _withdraw(op, amount)


def sweep_all() -> int:
    with _guard():
        op = _require_operator()
        _require_phase(SUCCEEDED, ERR_NOT_SUCCEEDED)
        amount = treasury.balance()
        _withdraw(op, amount)
        return amount


def refund(amount: int) -> None:
    """Burn `amount * SHARE_SCALE` of the caller's claim tokens for `amount`."""
    with _guard():
        _require_phase(FAILED, ERR_NOT_FAILED)
        _require_amount(amount)

        holder = abi.sender()
        shares = shares_for(amount)
        tok = token()
        if abi.static_call(tok, "balance_of", holder) < shares:
            abi.revert(ERR_INSUFFICIENT_SHARES)

        abi.call(tok, "burn", holder, shares)
        storage.set_int(K_REFUNDED, u256_add(total_refunded(), amount))
        events.emit(EVT_REFUNDED, {"contributor": holder, "amount": amount})
        _pay(holder, amount)


def receive() -> None:
    abi.revert(ERR_UNSOLICITED)


__all__ = [
    "operator",
    "goal",
    "deadline",
    "phase",
    "total_raised",
    "total_withdrawn",
    "total_refunded",
    "held_balance",
    "token",
    "shares_for",
    "status",
    "contribute",
    "close_funding",
    "finalize",
    "withdraw",
    "sweep_all",
    "refund",
    "receive",
]
