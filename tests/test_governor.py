"""
Governor reading claim-token voting power at proposal snapshots.
"""

from __future__ import annotations

import pytest

from crowdfund.contracts import governor
from crowdfund.contracts.escrow import SHARE_SCALE as K
from crowdfund.errors import Revert
from crowdfund.runtime.hash_api import keccak256

GOVERNOR = "crowdfund.contracts.governor"


@pytest.fixture
def funded(host, accounts, deploy_campaign):
    c = deploy_campaign(goal=10_000)
    c.contribute(accounts["alice"], 600).unwrap()
    c.contribute(accounts["bob"], 300).unwrap()
    host.advance()
    return c


@pytest.fixture
def make_governor(host, accounts, funded):
    def _make(delay=1, period=5, quorum=50, threshold=0):
        res = host.deploy(
            accounts["operator"], GOVERNOR, funded.token.address, delay, period, quorum, threshold
        )
        return host.at(res.unwrap())

    return _make


def _vote_window(host, gov, pid):
    snapshot = gov.view("proposal_snapshot", pid)
    while host.block.height <= snapshot:
        host.advance()


def test_config_views(make_governor, funded):
    gov = make_governor(delay=2, period=7, quorum=40, threshold=3)
    assert gov.view("token") == funded.token.address
    assert gov.view("voting_delay") == 2
    assert gov.view("voting_period") == 7
    assert gov.view("quorum_numerator") == 40
    assert gov.view("proposal_threshold") == 3


@pytest.mark.parametrize(
    "kwargs", [dict(period=0), dict(quorum=101), dict(delay=-1), dict(threshold=-1)]
)
def test_bad_config(make_governor, kwargs):
    with pytest.raises(Revert) as ei:
        make_governor(**kwargs)
    assert ei.value.reason == b"GOV:BAD_CONFIG"


def test_proposal_lifecycle(host, accounts, make_governor):
    gov = make_governor(delay=1, period=5, quorum=50)
    alice, bob = accounts["alice"], accounts["bob"]
    h = host.block.height

    res = gov.apply("propose", b"Buy a second battery bank", sender=alice)
    pid = res.unwrap()
    assert pid == keccak256(b"Buy a second battery bank")
    assert gov.view("proposal_id", b"Buy a second battery bank") == pid
    assert res.logs[0].args == {
        "proposal_id": pid,
        "proposer": alice,
        "snapshot": h + 1,
        "end": h + 6,
    }
    assert gov.view("proposal_proposer", pid) == alice
    assert gov.view("state", pid) == governor.PENDING

    assert gov.apply("cast_vote", pid, governor.FOR, sender=alice).reason == b"GOV:NOT_ACTIVE"

    _vote_window(host, gov, pid)
    assert gov.view("state", pid) == governor.ACTIVE
    assert gov.transact("cast_vote", pid, governor.FOR, sender=alice) == 600 * K
    assert gov.transact("cast_vote", pid, governor.AGAINST, sender=bob) == 300 * K
    assert gov.view("has_voted", pid, alice)
    assert gov.view("proposal_votes", pid) == {"against": 300 * K, "for": 600 * K, "abstain": 0}

    while host.block.height <= gov.view("proposal_deadline", pid):
        host.advance()
    assert gov.view("state", pid) == governor.SUCCEEDED
    assert gov.view("quorum", h + 1) == 450 * K
    assert gov.apply("cast_vote", pid, governor.FOR, sender=accounts["carol"]).reason == (
        b"GOV:NOT_ACTIVE"
    )


def test_vote_errors(host, accounts, make_governor):
    gov = make_governor()
    alice = accounts["alice"]
    pid = gov.transact("propose", b"p", sender=alice)
    _vote_window(host, gov, pid)

    assert gov.apply("cast_vote", pid, 3, sender=alice).reason == b"GOV:BAD_SUPPORT"
    for flag in (True, False):
        assert gov.apply("cast_vote", pid, flag, sender=alice).reason == b"GOV:BAD_SUPPORT"
    assert not gov.view("has_voted", pid, alice)
    gov.transact("cast_vote", pid, governor.ABSTAIN, sender=alice)
    assert gov.apply("cast_vote", pid, governor.FOR, sender=alice).reason == b"GOV:ALREADY_VOTED"
    assert gov.apply("cast_vote", pid, governor.FOR, sender=accounts["carol"]).reason == (
        b"GOV:NO_WEIGHT"
    )
    assert gov.apply("propose", b"p", sender=alice).reason == b"GOV:DUPLICATE"


def test_weights_are_fixed_at_snapshot(host, accounts, funded, make_governor):
    gov = make_governor()
    alice, carol = accounts["alice"], accounts["carol"]
    pid = gov.transact("propose", b"snapshot", sender=alice)
    _vote_window(host, gov, pid)

    # tokens moved after the snapshot carry no weight on this proposal
    funded.token.transact("transfer", carol, 600 * K, sender=alice)
    assert gov.apply("cast_vote", pid, governor.FOR, sender=carol).reason == b"GOV:NO_WEIGHT"
    assert gov.transact("cast_vote", pid, governor.FOR, sender=alice) == 600 * K


def test_quorum_not_reached_is_defeated(host, accounts, make_governor):
    gov = make_governor(quorum=90)
    pid = gov.transact("propose", b"q", sender=accounts["alice"])
    _vote_window(host, gov, pid)
    gov.transact("cast_vote", pid, governor.FOR, sender=accounts["alice"])
    host.advance(blocks=10)
    assert gov.view("state", pid) == governor.DEFEATED


def test_tie_is_defeated(host, accounts, funded, make_governor):
    funded.contribute(accounts["carol"], 300).unwrap()
    host.advance()
    gov = make_governor(quorum=0)
    pid = gov.transact("propose", b"tie", sender=accounts["bob"])
    _vote_window(host, gov, pid)
    gov.transact("cast_vote", pid, governor.FOR, sender=accounts["bob"])
    gov.transact("cast_vote", pid, governor.AGAINST, sender=accounts["carol"])
    host.advance(blocks=10)
    assert gov.view("state", pid) == governor.DEFEATED


def test_proposal_threshold(accounts, make_governor):
    gov = make_governor(threshold=500 * K)
    assert gov.apply("propose", b"x", sender=accounts["bob"]).reason == b"GOV:BELOW_THRESHOLD"
    assert gov.apply("propose", b"x", sender=accounts["alice"]).is_success


def test_unknown_proposal(make_governor):
    gov = make_governor()
    with pytest.raises(Revert) as ei:
        gov.view("state", b"\x01" * 32)
    assert ei.value.reason == b"GOV:UNKNOWN_PROPOSAL"
