# -*- coding: utf-8 -*-
"""
Property tests for the escrow and its claim-token ledger.

1) Arbitrary operation sequences against one campaign
   - claim-token supply == (raised - refunded) * SHARE_SCALE
   - held balance == raised - withdrawn - refunded == real contract balance
   - native value is conserved across accounts + escrow
   - a terminal phase never changes
   - every holder's shares match a simple model of its net contribution

2) Vote accounting
   - sum of current votes over all delegates == total supply

3) Fixed-point helpers
   - mul_div_down is the exact floor; apply_pct never exceeds the amount
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Tuple

from hypothesis import HealthCheck, given, settings, strategies as st

from crowdfund.config import RuntimeConfig
from crowdfund.contracts import escrow
from crowdfund.contracts.escrow import SHARE_SCALE as K
from crowdfund.contracts.stdlib.math import apply_pct, mul_div_down
from crowdfund.runtime import ContractHandle, Host, account_address
from crowdfund.runtime.context import BlockEnv

from tests.conftest import CHAIN_ID, GENESIS_TS

NAMES = ("alice", "bob", "carol")
START = 10_000
GOAL = 1_000
DURATION = 100

PROPS = settings(
    max_examples=60,
    deadline=None,
    suppress_health_check=[HealthCheck.function_scoped_fixture, HealthCheck.too_slow],
)


def _fresh() -> Tuple[Host, Dict[str, bytes], ContractHandle, ContractHandle]:
    cfg = RuntimeConfig(
        chain_id=CHAIN_ID,
        max_call_depth=64,
        max_storage_key_bytes=128,
        max_storage_value_bytes=65_536,
        genesis_timestamp=GENESIS_TS,
        state_path=Path(".crowdfund/state.json"),
        log_level="WARNING",
    )
    host = Host(config=cfg, block=BlockEnv(height=1, timestamp=GENESIS_TS, chain_id=CHAIN_ID))
    accts = {n: account_address(n) for n in NAMES + ("operator",)}
    for addr in accts.values():
        host.fund(addr, START)
    op = accts["operator"]
    addr = host.deploy(
        op, escrow, b"Prop", b"PROP", op, GOAL, GENESIS_TS + DURATION
    ).unwrap()
    esc = host.at(addr)
    return host, accts, esc, host.at(esc.view("token"))


# -----------------------------------------------------------------------------
# Strategies
# -----------------------------------------------------------------------------

ACTIONS = st.lists(
    st.one_of(
        st.tuples(st.just("contribute"), st.sampled_from(NAMES), st.integers(0, 500)),
        st.tuples(st.just("advance"), st.integers(0, 60)),
        st.tuples(st.just("close")),
        st.tuples(st.just("finalize")),
        st.tuples(st.just("withdraw"), st.integers(0, 800)),
        st.tuples(st.just("refund"), st.sampled_from(NAMES), st.integers(0, 500)),
    ),
    max_size=30,
)


def _apply(host, accts, esc, action):
    kind = action[0]
    op = accts["operator"]
    if kind == "contribute":
        return esc.apply("contribute", sender=accts[action[1]], value=action[2])
    if kind == "advance":
        host.advance(seconds=action[1])
        return None
    if kind == "close":
        return esc.apply("close_funding", sender=op)
    if kind == "finalize":
        return esc.apply("finalize", sender=accts["alice"])
    if kind == "withdraw":
        return esc.apply("withdraw", action[1], sender=op)
    return esc.apply("refund", action[2], sender=accts[action[1]])


@PROPS
@given(actions=ACTIONS)
def test_escrow_invariants_hold_for_any_sequence(actions):
    host, accts, esc, tok = _fresh()
    total_native = START * len(accts)
    net: Dict[str, int] = {n: 0 for n in NAMES}
    terminal = None

    for action in actions:
        before = esc.view("phase")
        res = _apply(host, accts, esc, action)
        st_ = esc.view("status")

        if res is not None and res.is_success:
            kind = action[0]
            if kind == "contribute":
                assert before == b"Funding"
                net[action[1]] += action[2]
            elif kind == "refund":
                assert before == b"Failed"
                net[action[1]] -= action[2]
            elif kind == "withdraw":
                assert before == b"Succeeded"

        assert tok.view("total_supply") == (st_["total_raised"] - st_["total_refunded"]) * K
        assert st_["held_balance"] == esc.balance
        assert esc.balance == st_["total_raised"] - st_["total_withdrawn"] - st_["total_refunded"]
        assert sum(host.balance_of(a) for a in accts.values()) + esc.balance == total_native
        for name in NAMES:
            assert tok.view("balance_of", accts[name]) == net[name] * K

        if terminal is not None:
            assert st_["phase"] == terminal
        elif st_["phase"] != b"Funding":
            terminal = st_["phase"]
            assert terminal == (b"Succeeded" if st_["total_raised"] >= GOAL else b"Failed")


TRANSFERS = st.lists(
    st.one_of(
        st.tuples(
            st.just("transfer"),
            st.sampled_from(NAMES),
            st.sampled_from(NAMES),
            st.integers(0, 300 * K),
        ),
        st.tuples(st.just("delegate"), st.sampled_from(NAMES), st.sampled_from(NAMES)),
        st.tuples(st.just("advance")),
    ),
    max_size=25,
)


@PROPS
@given(ops=TRANSFERS)
def test_votes_always_sum_to_supply(ops):
    host, accts, esc, tok = _fresh()
    for name in NAMES:
        esc.apply("contribute", sender=accts[name], value=300).unwrap()

    for op in ops:
        if op[0] == "transfer":
            tok.apply("transfer", accts[op[2]], op[3], sender=accts[op[1]])
        elif op[0] == "delegate":
            tok.apply("delegate", accts[op[2]], sender=accts[op[1]])
        else:
            host.advance()

        supply = tok.view("total_supply")
        assert sum(tok.view("get_votes", a) for a in accts.values()) == supply
        assert sum(tok.view("balance_of", accts[n]) for n in NAMES) == supply


@PROPS
@given(
    x=st.integers(0, 2**128),
    y=st.integers(0, 2**64),
    d=st.integers(1, 2**64),
)
def test_mul_div_down_is_floor(x, y, d):
    q = mul_div_down(x, y, d)
    assert q * d <= x * y
    assert x * y < (q + 1) * d


@PROPS
@given(amount=st.integers(0, 2**200), pct=st.integers(0, 100))
def test_apply_pct_bounded(amount, pct):
    out = apply_pct(amount, pct)
    assert 0 <= out <= amount
    assert out == amount * pct // 100
