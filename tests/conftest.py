"""
tests.conftest
==============

Pytest fixtures for the crowdfund contracts.

- `host`: a fresh in-process Host at a fixed genesis time and chain id.
- `accounts`: named, funded accounts with stable addresses.
- `deploy_campaign`: factory deploying an escrow (which deploys its claim
  token) and returning a `Campaign` bundle of handles.

Usage (inside a test file):
    def test_contribute(host, accounts, deploy_campaign):
        c = deploy_campaign(goal=1_000, duration=100)
        c.escrow.transact("contribute", sender=accounts["alice"], value=600)
        assert c.token.view("balance_of", accounts["alice"]) == 600 * SHARE_SCALE
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, Optional

import pytest

from crowdfund.config import RuntimeConfig, load_config
from crowdfund.contracts import escrow as escrow_contract
from crowdfund.runtime import ApplyResult, ContractHandle, Host, account_address
from crowdfund.runtime.context import BlockEnv

# Prefer UTC and a stable hash seed for any incidental ordering.
os.environ.setdefault("PYTHONHASHSEED", "0")
os.environ.setdefault("TZ", "UTC")

GENESIS_TS = 1_700_000_000
CHAIN_ID = 1337
STARTING_BALANCE = 1_000_000

ACCOUNT_NAMES = ("operator", "alice", "bob", "carol", "dave", "mallory")


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch):
    """Each test sees defaults unless it sets CROWDFUND_* itself."""
    for key in list(os.environ):
        if key.startswith("CROWDFUND_"):
            monkeypatch.delenv(key, raising=False)
    load_config.cache_clear()
    yield
    load_config.cache_clear()


@pytest.fixture
def config() -> RuntimeConfig:
    return RuntimeConfig(
        chain_id=CHAIN_ID,
        max_call_depth=64,
        max_storage_key_bytes=128,
        max_storage_value_bytes=65_536,
        genesis_timestamp=GENESIS_TS,
        state_path=Path(".crowdfund/state.json"),
        log_level="WARNING",
    )


@pytest.fixture
def host(config: RuntimeConfig) -> Host:
    return Host(
        config=config,
        block=BlockEnv(height=1, timestamp=GENESIS_TS, chain_id=CHAIN_ID),
    )


@pytest.fixture
def accounts(host: Host) -> Dict[str, bytes]:
    out: Dict[str, bytes] = {}
    for name in ACCOUNT_NAMES:
        addr = account_address(name)
        host.fund(addr, STARTING_BALANCE)
        out[name] = addr
    return out


@dataclass
class Campaign:
    host: Host
    escrow: ContractHandle
    token: ContractHandle
    operator: bytes
    goal: int
    deadline: int

    def contribute(self, sender: bytes, amount: int) -> ApplyResult:
        return self.escrow.apply("contribute", sender=sender, value=amount)

    def status(self) -> dict:
        return self.escrow.view("status")

    def shares(self, holder: bytes) -> int:
        return self.token.view("balance_of", holder)


@pytest.fixture
def deploy_campaign(host: Host, accounts: Dict[str, bytes]) -> Callable[..., Campaign]:
    def _deploy(
        *,
        goal: int = 1_000,
        duration: int = 100,
        operator: Optional[bytes] = None,
        name: bytes = b"Mamu Village Micro Station",
        symbol: bytes = b"MAMU-IIIENERGY",
    ) -> Campaign:
        op = operator if operator is not None else accounts["operator"]
        deadline = host.block.timestamp + duration
        res = host.deploy(accounts["operator"], escrow_contract, name, symbol, op, goal, deadline)
        addr = res.unwrap()
        escrow = host.at(addr)
        token = host.at(escrow.view("token"))
        return Campaign(host, escrow, token, op, goal, deadline)

    return _deploy
