"""
crowdfund.runtime.host — deploy contracts and apply transactions atomically.

A contract is a plain Python module:

- `__all__` lists its callable entrypoints (names starting with "_" and
  `init` are never callable from outside).
- `init(...)`, if present, runs once at deployment.
- `PAYABLE` (optional) names the entrypoints that accept native value. A
  payable `receive` entrypoint accepts plain value transfers.
- Contract code reaches the runtime only through crowdfund.stdlib
  (storage/events/treasury/abi/hash), which resolves the active frame.

Semantics
---------
- Every top-level transaction runs under the Host lock and inside one journal
  checkpoint. Any ExecError rolls back balances, storage, code, nonces and
  events, and the transaction reports status REVERT.
- Nested calls, deployments and value transfers open their own checkpoints,
  so a nested failure that a contract catches leaves no partial effects.
- Time is whatever `self.block` says; it only changes via `advance()` or
  `set_timestamp()`.

Usage
-----
    host = Host()
    alice = account_address("alice")
    host.fund(alice, 10_000)
    res = host.deploy(alice, "crowdfund.contracts.escrow", b"Name", b"SYM", alice, 1_000, deadline)
    escrow = host.at(res.unwrap())
    escrow.transact("contribute", sender=alice, value=600)
"""

from __future__ import annotations

import importlib
import logging
import threading
from dataclasses import dataclass
from types import ModuleType
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Union

from ..config import RuntimeConfig, load_config
from ..errors import ExecError, InvalidAccess, Revert
from .context import BlockEnv, Frame, call_depth, pop_frame, push_frame, to_hex
from .events_api import Event
from .hash_api import keccak256, sha3_256
from .journal import WorldState
from .result import ApplyResult, TxStatus

log = logging.getLogger(__name__)

CodeRef = Union[str, ModuleType]

ZERO_ADDRESS = b"\x00" * 32


def account_address(tag: str) -> bytes:
    """Stable 32-byte account address for a human-readable tag."""
    return sha3_256(tag.encode("utf-8"), domain=b"account")


def contract_address(deployer: bytes, nonce: int) -> bytes:
    """Address of the contract created by `deployer` at `nonce`."""
    return keccak256(bytes(deployer) + int(nonce).to_bytes(8, "big"), domain=b"create")


def _code_name(code: CodeRef) -> str:
    if isinstance(code, ModuleType):
        return code.__name__
    if isinstance(code, str) and code:
        return code
    raise InvalidAccess(f"bad code reference {code!r}", op="deploy")


def _short(addr: bytes) -> str:
    return to_hex(addr[:6]) + ".."


class Host:
    def __init__(
        self,
        *,
        config: Optional[RuntimeConfig] = None,
        block: Optional[BlockEnv] = None,
        state: Optional[WorldState] = None,
    ) -> None:
        self.config = config or load_config()
        self.block = block or BlockEnv(
            height=1,
            timestamp=self.config.genesis_timestamp,
            chain_id=self.config.chain_id,
        )
        self.state = state or WorldState()
        self._lock = threading.RLock()
        self._modules: Dict[str, ModuleType] = {}

    # ------------------------------------------------------------------ #
    # Block environment
    # ------------------------------------------------------------------ #

    def advance(self, seconds: int = 0, blocks: int = 1) -> BlockEnv:
        """Move to a later block, `seconds` later in time."""
        with self._lock:
            self.block = self.block.advanced(seconds=seconds, blocks=blocks)
            return self.block

    def set_timestamp(self, timestamp: int) -> BlockEnv:
        """Move to the next block at an absolute `timestamp` (never backwards)."""
        with self._lock:
            if timestamp < self.block.timestamp:
                raise ValueError(
                    f"timestamp {timestamp} is before current block time {self.block.timestamp}"
                )
            return self.advance(seconds=timestamp - self.block.timestamp)

    # ------------------------------------------------------------------ #
    # Accounts
    # ------------------------------------------------------------------ #

    def fund(self, addr: bytes, amount: int) -> int:
        """Credit native value out of thin air (genesis allocation / faucet)."""
        if amount < 0:
            raise ValueError("amount must be non-negative")
        with self._lock:
            new = self.state.balance_of(addr) + amount
            self.state.set_balance(addr, new)
            return new

    def balance_of(self, addr: bytes) -> int:
        return self.state.balance_of(addr)

    def code_of(self, addr: bytes) -> Optional[str]:
        return self.state.code_of(addr)

    def at(self, address: bytes) -> "ContractHandle":
        if self.state.code_of(address) is None:
            raise InvalidAccess("no contract at address", op="at", address=to_hex(address))
        return ContractHandle(self, bytes(address))

    def events(
        self, *, address: Optional[bytes] = None, name: Optional[bytes] = None
    ) -> List[Event]:
        return [
            ev
            for ev in self.state.iter_events()
            if (address is None or ev.address == address)
            and (name is None or ev.name == name)
        ]

    # ------------------------------------------------------------------ #
    # Transactions
    # ------------------------------------------------------------------ #

    def deploy(
        self, sender: bytes, code: CodeRef, *args: Any, value: int = 0
    ) -> ApplyResult:
        """Deploy `code` with `sender` as deployer; returns the new address."""
        return self._run_tx(
            f"deploy {_code_name(code)}",
            lambda: self._create(sender, code, args, value, depth=0),
        )

    def apply(
        self, sender: bytes, to: bytes, fn: str, *args: Any, value: int = 0
    ) -> ApplyResult:
        """Call entrypoint `fn` of the contract at `to` as a transaction."""
        return self._run_tx(
            f"call {fn}@{_short(to)}",
            lambda: self._invoke(sender, to, fn, args, value, static=False, depth=0),
        )

    def transfer(self, sender: bytes, to: bytes, amount: int) -> ApplyResult:
        """Plain value transfer; contracts must accept it via `receive()`."""
        return self._run_tx(
            f"transfer {amount}->{_short(to)}",
            lambda: self.send_value(sender, to, amount, depth=0),
        )

    def view(
        self, address: bytes, fn: str, *args: Any, caller: bytes = ZERO_ADDRESS
    ) -> Any:
        """Read-only call. Raises on failure; never changes state."""
        with self._lock:
            cp = self.state.begin()
            try:
                return self._invoke(caller, address, fn, args, 0, static=True, depth=0)
            finally:
                self.state.revert(cp)

    def _run_tx(self, label: str, thunk: Callable[[], Any]) -> ApplyResult:
        with self._lock:
            if call_depth() != 0:
                raise InvalidAccess("host entered from contract code; use abi.call", op="tx")
            start = self.state.event_count()
            cp = self.state.begin()
            try:
                ret = thunk()
            except ExecError as exc:
                self.state.revert(cp)
                log.info("tx reverted: %s (%s)", label, exc)
                return ApplyResult(status=TxStatus.REVERT, error=exc)
            except Exception:
                self.state.revert(cp)
                raise
            logs = tuple(self.state.events_since(start))
            self.state.commit(cp)
            log.debug("tx ok: %s events=%d", label, len(logs))
            return ApplyResult(status=TxStatus.SUCCESS, return_value=ret, logs=logs)

    # ------------------------------------------------------------------ #
    # Nested execution (called by runtime APIs inside a frame)
    # ------------------------------------------------------------------ #

    def _scoped(self, thunk: Callable[[], Any]) -> Any:
        cp = self.state.begin()
        try:
            out = thunk()
        except Exception:
            self.state.revert(cp)
            raise
        self.state.commit(cp)
        return out

    def nested_call(
        self,
        *,
        caller: bytes,
        address: bytes,
        fn: str,
        args: Sequence[Any],
        value: int,
        static: bool,
        depth: int,
    ) -> Any:
        return self._scoped(
            lambda: self._invoke(caller, address, fn, args, value, static=static, depth=depth)
        )

    def nested_deploy(
        self,
        *,
        deployer: bytes,
        code_ref: CodeRef,
        args: Sequence[Any],
        value: int,
        depth: int,
    ) -> bytes:
        return self._scoped(lambda: self._create(deployer, code_ref, args, value, depth=depth))

    def send_value(self, frm: bytes, to: bytes, amount: int, *, depth: int) -> None:
        """Move value; a contract recipient must accept it in `receive()`."""

        def _send() -> None:
            code_ref = self.state.code_of(to)
            if code_ref is None:
                self.state.move_balance(frm, to, amount)
                return
            module = self._load(code_ref)
            if "receive" not in getattr(module, "PAYABLE", ()):
                raise Revert(reason=b"TREASURY:REJECTED")
            self._invoke(frm, to, "receive", (), amount, static=False, depth=depth)

        self._scoped(_send)

    # ------------------------------------------------------------------ #
    # Core
    # ------------------------------------------------------------------ #

    def _load(self, code_ref: str) -> ModuleType:
        module = self._modules.get(code_ref)
        if module is None:
            try:
                module = importlib.import_module(code_ref)
            except ImportError as e:
                raise InvalidAccess(f"cannot load contract code {code_ref!r}", op="load") from e
            self._modules[code_ref] = module
        return module

    def _check_depth(self, depth: int) -> None:
        if depth > self.config.max_call_depth:
            raise InvalidAccess(
                f"max call depth {self.config.max_call_depth} exceeded", op="call"
            )

    def _exec(self, frame: Frame, func: Callable[..., Any], args: Sequence[Any]) -> Any:
        push_frame(frame)
        try:
            return func(*args)
        finally:
            pop_frame()

    def _take_value(
        self, module: ModuleType, fn: str, caller: bytes, address: bytes, value: int, static: bool
    ) -> None:
        if value == 0:
            return
        if static:
            raise InvalidAccess("value attached to static call", op="call")
        if fn not in getattr(module, "PAYABLE", ()):
            raise Revert(reason=b"VM:NOT_PAYABLE")
        self.state.move_balance(caller, address, value)

    def _invoke(
        self,
        caller: bytes,
        address: bytes,
        fn: str,
        args: Sequence[Any],
        value: int,
        *,
        static: bool,
        depth: int,
    ) -> Any:
        self._check_depth(depth)
        code_ref = self.state.code_of(address)
        if code_ref is None:
            raise InvalidAccess("no contract at address", op="call", address=to_hex(address))
        module = self._load(code_ref)
        if fn.startswith("_") or fn == "init" or fn not in getattr(module, "__all__", ()):
            raise InvalidAccess(f"unknown entrypoint {fn!r}", op="call", address=to_hex(address))
        self._take_value(module, fn, caller, address, value, static)
        frame = Frame(self, address, caller, value, static, depth)
        return self._exec(frame, getattr(module, fn), args)

    def _create(
        self, deployer: bytes, code: CodeRef, args: Sequence[Any], value: int, *, depth: int
    ) -> bytes:
        self._check_depth(depth)
        ref = _code_name(code)
        module = self._load(ref)
        addr = contract_address(deployer, self.state.bump_nonce(deployer))
        if self.state.code_of(addr) is not None:
            raise InvalidAccess("contract address collision", op="deploy", address=to_hex(addr))
        self.state.set_code(addr, ref)
        self._take_value(module, "init", deployer, addr, value, False)
        init = getattr(module, "init", None)
        if init is not None:
            self._exec(Frame(self, addr, deployer, value, False, depth), init, args)
        log.debug("deployed %s at %s by %s", ref, _short(addr), _short(deployer))
        return addr

    # ------------------------------------------------------------------ #
    # Persistence
    # ------------------------------------------------------------------ #

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "block": self.block.to_dict(),
                "state": self.state.to_dict(),
                "events": [ev.to_dict() for ev in self.state.iter_events()],
            }

    @classmethod
    def from_dict(
        cls, d: Mapping[str, Any], *, config: Optional[RuntimeConfig] = None
    ) -> "Host":
        state = WorldState.from_dict(d.get("state", {}))
        state.restore_events([Event.from_dict(ev) for ev in d.get("events", [])])
        return cls(config=config, block=BlockEnv.from_dict(d["block"]), state=state)


@dataclass(frozen=True)
class ContractHandle:
    """
    A deployed contract bound to its Host, for Python callers and tests.
    """

    host: Host
    address: bytes

    def apply(self, fn: str, *args: Any, sender: bytes, value: int = 0) -> ApplyResult:
        return self.host.apply(sender, self.address, fn, *args, value=value)

    def transact(self, fn: str, *args: Any, sender: bytes, value: int = 0) -> Any:
        """Apply `fn` as a transaction; raise the error if it reverted."""
        return self.apply(fn, *args, sender=sender, value=value).unwrap()

    def view(self, fn: str, *args: Any) -> Any:
        return self.host.view(self.address, fn, *args)

    @property
    def balance(self) -> int:
        return self.host.balance_of(self.address)

    def events(self, name: Optional[bytes] = None) -> List[Event]:
        return self.host.events(address=self.address, name=name)


__all__ = [
    "ZERO_ADDRESS",
    "Host",
    "ContractHandle",
    "account_address",
    "contract_address",
]
