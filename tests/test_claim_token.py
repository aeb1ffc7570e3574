"""
Claim-token ledger: minter capability, balances/allowances and vote
checkpoints.
"""

from __future__ import annotations

import pytest

from crowdfund.contracts.stdlib.token import ZERO_ADDR
from crowdfund.errors import Revert

TOKEN = "crowdfund.contracts.claim_token"


@pytest.fixture
def token(host, accounts):
    """A ledger deployed directly by the `operator` account (its minter)."""
    res = host.deploy(accounts["operator"], TOKEN, b"Claim Token", b"clm", 18)
    return host.at(res.unwrap())


def test_metadata_and_minter(token, accounts):
    assert token.view("name") == b"Claim Token"
    assert token.view("symbol") == b"clm"
    assert token.view("decimals") == 18
    assert token.view("minter") == accounts["operator"]
    assert token.view("total_supply") == 0


def test_decimals_are_clamped(host, accounts):
    res = host.deploy(accounts["operator"], TOKEN, b"Big", b"BIG", 99)
    assert host.view(res.unwrap(), "decimals") == 36


@pytest.mark.parametrize(
    "name,symbol,reason",
    [
        (b"", b"OK", b"TOKEN:BAD_NAME"),
        (b"x" * 65, b"OK", b"TOKEN:BAD_NAME"),
        (b"Fine", b"", b"TOKEN:BAD_SYMBOL"),
        (b"Fine", b"S" * 17, b"TOKEN:BAD_SYMBOL"),
        (b"Fine", b"BAD\x01", b"TOKEN:BAD_SYMBOL"),
    ],
)
def test_bad_metadata_rejected(host, accounts, name, symbol, reason):
    res = host.deploy(accounts["operator"], TOKEN, name, symbol, 18)
    assert res.reason == reason


def test_only_minter_can_mint_and_burn(token, accounts):
    alice = accounts["alice"]
    for fn, args in (("mint", (alice, 10)), ("burn", (alice, 1))):
        res = token.apply(fn, *args, sender=alice)
        assert res.reason == b"TOKEN:NOT_MINTER"
    assert token.view("total_supply") == 0


def test_mint_then_burn(token, accounts):
    op, alice = accounts["operator"], accounts["alice"]
    res = token.apply("mint", alice, 100, sender=op)
    transfer = [e for e in res.logs if e.name == b"Transfer"][0]
    assert transfer.args == {"from": ZERO_ADDR, "to": alice, "value": 100}

    token.transact("burn", alice, 40, sender=op)
    assert token.view("balance_of", alice) == 60
    assert token.view("total_supply") == 60

    res = token.apply("burn", alice, 61, sender=op)
    assert res.reason == b"TOKEN:INSUFFICIENT_BALANCE"
    assert token.view("balance_of", alice) == 60


def test_transfer_and_allowances(token, accounts):
    op, alice, bob, carol = (accounts[n] for n in ("operator", "alice", "bob", "carol"))
    token.transact("mint", alice, 100, sender=op)

    token.transact("transfer", bob, 30, sender=alice)
    assert token.view("balance_of", alice) == 70
    assert token.view("balance_of", bob) == 30

    assert token.apply("transfer", bob, 71, sender=alice).reason == b"TOKEN:INSUFFICIENT_BALANCE"
    assert token.apply("transfer", ZERO_ADDR, 1, sender=alice).reason == b"TOKEN:BAD_ADDR"

    token.transact("approve", carol, 20, sender=alice)
    token.transact("increase_allowance", carol, 5, sender=alice)
    assert token.view("allowance", alice, carol) == 25
    token.transact("decrease_allowance", carol, 10, sender=alice)
    assert token.view("allowance", alice, carol) == 15

    assert token.apply("transfer_from", alice, carol, 16, sender=carol).reason == (
        b"TOKEN:ALLOWANCE_LOW"
    )
    token.transact("transfer_from", alice, carol, 15, sender=carol)
    assert token.view("allowance", alice, carol) == 0
    assert token.view("balance_of", carol) == 15
    assert token.view("total_supply") == 100


def test_votes_default_to_self_and_follow_balances(token, accounts):
    op, alice, bob = accounts["operator"], accounts["alice"], accounts["bob"]
    token.transact("mint", alice, 100, sender=op)
    assert token.view("delegates", alice) == alice
    assert token.view("get_votes", alice) == 100

    token.transact("transfer", bob, 25, sender=alice)
    assert token.view("get_votes", alice) == 75
    assert token.view("get_votes", bob) == 25


def test_delegation_moves_whole_balance(token, accounts):
    op, alice, bob = accounts["operator"], accounts["alice"], accounts["bob"]
    token.transact("mint", alice, 100, sender=op)
    token.transact("mint", bob, 10, sender=op)

    res = token.apply("delegate", bob, sender=alice)
    changed = [e for e in res.logs if e.name == b"DelegateChanged"][0]
    assert changed.args == {"delegator": alice, "from_delegate": alice, "to_delegate": bob}
    assert token.view("get_votes", alice) == 0
    assert token.view("get_votes", bob) == 110

    # new units of a delegating holder go to its delegate
    token.transact("mint", alice, 5, sender=op)
    assert token.view("get_votes", bob) == 115

    # delegating back to self restores the default
    token.transact("delegate", alice, sender=alice)
    assert token.view("get_votes", alice) == 105
    assert token.view("get_votes", bob) == 10


def test_past_votes_are_fixed_once_the_block_closes(host, token, accounts):
    op, alice = accounts["operator"], accounts["alice"]
    h0 = host.block.height
    token.transact("mint", alice, 50, sender=op)

    with pytest.raises(Revert) as ei:
        token.view("get_past_votes", alice, h0)
    assert ei.value.reason == b"VOTES:FUTURE_LOOKUP"

    host.advance(blocks=1)
    token.transact("mint", alice, 25, sender=op)
    token.transact("burn", alice, 10, sender=op)
    host.advance(blocks=1)

    assert token.view("get_past_votes", alice, h0 - 1) == 0
    assert token.view("get_past_votes", alice, h0) == 50
    assert token.view("get_past_votes", alice, h0 + 1) == 65
    assert token.view("get_past_total_supply", h0) == 50
    assert token.view("get_past_total_supply", h0 + 1) == 65
    assert token.view("get_votes", alice) == 65


def test_same_block_writes_share_one_checkpoint(host, token, accounts):
    op, alice = accounts["operator"], accounts["alice"]
    h = host.block.height
    for _ in range(3):
        token.transact("mint", alice, 1, sender=op)
    host.advance()
    assert token.view("get_past_votes", alice, h) == 3
