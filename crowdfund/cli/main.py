"""
crowdfund — local command-line simulator for a Funding Escrow campaign.

The whole chain (balances, contracts, events, block time) lives in one JSON
state file. Accounts are named (`alice`, `operator`, ...) and map to fixed
addresses, so scripted runs are reproducible.

Global options:
  --state PATH             State file (env CROWDFUND_STATE_PATH)
  --json                   Output JSON instead of human-readable text
  --verbose / -v           Log runtime activity (env CROWDFUND_LOG_LEVEL)

Examples:
  crowdfund init --goal 1000 --duration 3600
  crowdfund fund alice 5000
  crowdfund contribute alice 600
  crowdfund advance --seconds 3601
  crowdfund finalize
  crowdfund refund alice 600
  crowdfund status
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

import typer

from ..config import load_config
from ..contracts import escrow as escrow_contract
from ..runtime import ApplyResult, ContractHandle, Host, account_address
from ..runtime.context import to_hex
from ..version import __version__

log = logging.getLogger(__name__)

DEFAULT_GOAL = 50_000 * 10**8
DEFAULT_DURATION = 60 * 24 * 3600
DEFAULT_NAME = "Mamu Village Micro Station"
DEFAULT_SYMBOL = "MAMU-IIIENERGY"

app = typer.Typer(
    name="crowdfund",
    help="Crowdfund escrow simulator",
    no_args_is_help=True,
    add_completion=False,
)


class GlobalContext:
    def __init__(self) -> None:
        self.state_path: Path = load_config().state_path
        self.json_output: bool = False


_ctx = GlobalContext()


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, load_config().log_level)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        force=True,
    )


@app.callback()
def main_callback(
    state: Optional[Path] = typer.Option(
        None,
        "--state",
        help="Path to the JSON state file",
        envvar="CROWDFUND_STATE_PATH",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Output JSON instead of human-readable text",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log runtime activity at DEBUG",
    ),
) -> None:
    """
    Crowdfund CLI: deploy a campaign, contribute, then resolve and settle it.
    """
    _configure_logging(verbose)
    _ctx.state_path = state or load_config().state_path
    _ctx.json_output = json_output


# ----------------------------------------------------------------------------
# State file
# ----------------------------------------------------------------------------


class Session:
    """A Host loaded from the state file plus the campaign address."""

    def __init__(self, host: Host, escrow: Optional[bytes]) -> None:
        self.host = host
        self.escrow = escrow

    @property
    def campaign(self) -> ContractHandle:
        if self.escrow is None:
            _fail("no campaign deployed; run `crowdfund init` first")
        return self.host.at(self.escrow)

    @property
    def token(self) -> ContractHandle:
        return self.host.at(self.campaign.view("token"))

    def save(self, path: Path) -> None:
        data = {
            "version": __version__,
            "escrow": self.escrow.hex() if self.escrow else None,
            "host": self.host.to_dict(),
        }
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(path.suffix + ".tmp")
        tmp.write_text(json.dumps(data, indent=2, sort_keys=True))
        tmp.replace(path)
        log.debug("state saved to %s", path)

    @classmethod
    def load(cls, path: Path) -> "Session":
        if not path.exists():
            return cls(Host(), None)
        data = json.loads(path.read_text())
        escrow = data.get("escrow")
        return cls(Host.from_dict(data["host"]), bytes.fromhex(escrow) if escrow else None)


def _session() -> Session:
    return Session.load(_ctx.state_path)


def _fail(msg: str) -> None:
    typer.echo(f"Error: {msg}", err=True)
    raise typer.Exit(1)


def _jsonable(obj: Any) -> Any:
    if isinstance(obj, (bytes, bytearray)):
        raw = bytes(obj)
        if raw.isascii() and raw.decode("ascii").isprintable() and len(raw) < 32:
            return raw.decode("ascii")
        return to_hex(raw)
    if isinstance(obj, dict):
        return {k: _jsonable(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_jsonable(v) for v in obj]
    return obj


def _emit(obj: Dict[str, Any]) -> None:
    obj = _jsonable(obj)
    if _ctx.json_output:
        typer.echo(json.dumps(obj, indent=2))
        return
    for k, v in obj.items():
        typer.echo(f"{k}: {v}")


def _commit(session: Session, res: ApplyResult, **extra: Any) -> None:
    """Persist a successful transaction or exit 1 with its reason."""
    if not res.is_success:
        reason = res.reason.decode("ascii", errors="replace") or str(res.error)
        if _ctx.json_output:
            typer.echo(json.dumps({"status": "revert", "reason": reason}))
        else:
            typer.echo(f"reverted: {reason}", err=True)
        raise typer.Exit(1)
    session.save(_ctx.state_path)
    out: Dict[str, Any] = {"status": "success"}
    out.update(extra)
    if res.return_value is not None:
        out.setdefault("result", res.return_value)
    out["events"] = [ev.name.decode("ascii") for ev in res.logs]
    _emit(out)


# ----------------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------------


@app.command()
def init(
    operator: str = typer.Option("operator", "--operator", help="Operator account name"),
    goal: int = typer.Option(DEFAULT_GOAL, "--goal", help="Goal in native units"),
    duration: int = typer.Option(
        DEFAULT_DURATION, "--duration", help="Funding window in seconds"
    ),
    name: str = typer.Option(DEFAULT_NAME, "--name", help="Claim-token name"),
    symbol: str = typer.Option(DEFAULT_SYMBOL, "--symbol", help="Claim-token symbol"),
    force: bool = typer.Option(False, "--force", help="Replace an existing state file"),
) -> None:
    """Start a fresh chain and deploy a campaign (escrow + claim token)."""
    if _ctx.state_path.exists() and not force:
        _fail(f"{_ctx.state_path} exists; pass --force to replace it")
    if not (name.isascii() and symbol.isascii()):
        _fail("--name and --symbol must be ASCII")
    session = Session(Host(), None)
    op = account_address(operator)
    deadline = session.host.block.timestamp + duration
    res = session.host.deploy(
        op,
        escrow_contract,
        name.encode("ascii"),
        symbol.encode("ascii"),
        op,
        goal,
        deadline,
    )
    if res.is_success:
        session.escrow = res.return_value
    _commit(session, res, escrow=res.return_value, deadline=deadline)


@app.command()
def fund(
    account: str = typer.Argument(..., help="Account name"),
    amount: int = typer.Argument(..., help="Native units to credit"),
) -> None:
    """Credit an account with native value (local faucet)."""
    if amount < 0:
        _fail("amount must be non-negative")
    session = _session()
    new = session.host.fund(account_address(account), amount)
    session.save(_ctx.state_path)
    _emit({"account": account, "balance": new})


@app.command()
def contribute(
    account: str = typer.Argument(..., help="Contributor account name"),
    amount: int = typer.Argument(..., help="Native units to contribute"),
) -> None:
    """Contribute native value and receive claim tokens."""
    session = _session()
    res = session.campaign.apply("contribute", sender=account_address(account), value=amount)
    _commit(session, res)


@app.command()
def close(
    sender: str = typer.Option("operator", "--sender", help="Caller account name"),
) -> None:
    """Close funding early (operator only, goal must be met)."""
    session = _session()
    _commit(session, session.campaign.apply("close_funding", sender=account_address(sender)))


@app.command()
def finalize(
    sender: str = typer.Option("operator", "--sender", help="Caller account name"),
) -> None:
    """Resolve the campaign after its deadline."""
    session = _session()
    _commit(session, session.campaign.apply("finalize", sender=account_address(sender)))


@app.command()
def withdraw(
    amount: int = typer.Argument(..., help="Native units to withdraw"),
    sender: str = typer.Option("operator", "--sender", help="Caller account name"),
) -> None:
    """Withdraw raised funds to the operator (after success)."""
    session = _session()
    _commit(session, session.campaign.apply("withdraw", amount, sender=account_address(sender)))


@app.command()
def sweep(
    sender: str = typer.Option("operator", "--sender", help="Caller account name"),
) -> None:
    """Withdraw everything the escrow holds (after success)."""
    session = _session()
    _commit(session, session.campaign.apply("sweep_all", sender=account_address(sender)))


@app.command()
def refund(
    account: str = typer.Argument(..., help="Holder account name"),
    amount: int = typer.Argument(..., help="Native units to refund"),
) -> None:
    """Burn claim tokens for a refund (after failure)."""
    session = _session()
    _commit(session, session.campaign.apply("refund", amount, sender=account_address(account)))


@app.command()
def advance(
    seconds: int = typer.Option(0, "--seconds", help="Seconds to move forward"),
    blocks: int = typer.Option(1, "--blocks", help="Blocks to move forward"),
) -> None:
    """Move block time forward."""
    if seconds < 0 or blocks < 0:
        _fail("seconds and blocks must be non-negative")
    session = _session()
    block = session.host.advance(seconds=seconds, blocks=blocks)
    session.save(_ctx.state_path)
    _emit(block.to_dict())


@app.command()
def status() -> None:
    """Show the campaign status."""
    session = _session()
    out = session.campaign.view("status")
    out["now"] = session.host.block.timestamp
    out["height"] = session.host.block.height
    _emit(out)


@app.command()
def balance(account: str = typer.Argument(..., help="Account name")) -> None:
    """Show an account's native balance and claim-token holdings."""
    session = _session()
    addr = account_address(account)
    token = session.token
    _emit(
        {
            "account": account,
            "address": addr,
            "native": session.host.balance_of(addr),
            "shares": token.view("balance_of", addr),
            "votes": token.view("get_votes", addr),
        }
    )


@app.command()
def events(
    name: Optional[str] = typer.Option(None, "--name", help="Only events with this name"),
) -> None:
    """List campaign and claim-token events."""
    session = _session()
    wanted = {session.campaign.address, session.token.address}
    evs = [
        ev.to_dict()
        for ev in session.host.events(name=name.encode("ascii") if name else None)
        if ev.address in wanted
    ]
    if _ctx.json_output:
        typer.echo(json.dumps(evs, indent=2))
        return
    for ev in evs:
        args = ", ".join(f"{a['k']}={a['v']}" for a in ev["args"])
        typer.echo(f"{ev['name']}({args})")


def main() -> None:
    """Entry point for the crowdfund CLI."""
    app()


if __name__ == "__main__":
    main()
