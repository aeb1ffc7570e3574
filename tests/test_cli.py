import json
from pathlib import Path

from typer.testing import CliRunner

from crowdfund.cli import app
from crowdfund.contracts.escrow import SHARE_SCALE as K

runner = CliRunner()


def run_cli(args: list, state_file: Path, *, ok: bool = True):
    result = runner.invoke(app, ["--state", str(state_file), "--json"] + args)
    if ok:
        assert result.exit_code == 0, result.output
    return result


def as_json(result) -> dict:
    return json.loads(result.output)


def test_failed_campaign_flow(tmp_path: Path) -> None:
    state = tmp_path / "chain.json"
    out = as_json(run_cli(["init", "--goal", "1000", "--duration", "100"], state))
    assert out["status"] == "success"
    assert out["escrow"].startswith("0x")
    assert state.exists()

    run_cli(["fund", "alice", "5000"], state)
    out = as_json(run_cli(["contribute", "alice", "600"], state))
    assert out["result"] == 600 * K
    assert "Contributed" in out["events"]

    status = as_json(run_cli(["status"], state))
    assert status["phase"] == "Funding"
    assert status["total_raised"] == 600
    assert status["held_balance"] == 600
    assert status["deadline"] == status["now"] + 100

    out = as_json(run_cli(["advance", "--seconds", "101"], state))
    assert out["timestamp"] == status["now"] + 101

    out = as_json(run_cli(["finalize", "--sender", "bob"], state))
    assert out["result"] == "Failed"

    run_cli(["refund", "alice", "600"], state)
    bal = as_json(run_cli(["balance", "alice"], state))
    assert bal["native"] == 5000
    assert bal["shares"] == 0
    assert bal["votes"] == 0

    evs = json.loads(run_cli(["events", "--name", "Refunded"], state).output)
    assert len(evs) == 1
    assert evs[0]["name"] == "Refunded"


def test_successful_campaign_flow(tmp_path: Path) -> None:
    state = tmp_path / "chain.json"
    run_cli(["init", "--goal", "500"], state)
    run_cli(["fund", "alice", "500"], state)
    run_cli(["contribute", "alice", "500"], state)
    out = as_json(run_cli(["close"], state))
    assert out["events"] == ["FundingClosed"]

    run_cli(["withdraw", "200"], state)
    out = as_json(run_cli(["sweep"], state))
    assert out["result"] == 300
    assert as_json(run_cli(["balance", "operator"], state))["native"] == 500
    assert as_json(run_cli(["status"], state))["phase"] == "Succeeded"


def test_revert_exits_with_reason(tmp_path: Path) -> None:
    state = tmp_path / "chain.json"
    run_cli(["init", "--goal", "500"], state)
    before = state.read_text()

    result = run_cli(["close", "--sender", "mallory"], state, ok=False)
    assert result.exit_code == 1
    assert as_json(result) == {"status": "revert", "reason": "ESCROW:NOT_OPERATOR"}
    assert state.read_text() == before


def test_human_output_on_revert(tmp_path: Path) -> None:
    state = tmp_path / "chain.json"
    runner.invoke(app, ["--state", str(state), "init"])
    result = runner.invoke(app, ["--state", str(state), "contribute", "alice", "1"])
    assert result.exit_code == 1
    assert "reverted: VM:INSUFFICIENT_BALANCE" in result.output


def test_init_refuses_to_overwrite(tmp_path: Path) -> None:
    state = tmp_path / "chain.json"
    run_cli(["init"], state)
    result = run_cli(["init"], state, ok=False)
    assert result.exit_code == 1
    assert "--force" in result.output
    run_cli(["init", "--force", "--symbol", "NEW"], state)


def test_commands_need_a_campaign(tmp_path: Path) -> None:
    result = run_cli(["status"], tmp_path / "missing.json", ok=False)
    assert result.exit_code == 1
    assert "crowdfund init" in result.output


def test_state_path_from_environment(tmp_path: Path, monkeypatch) -> None:
    state = tmp_path / "env-state.json"
    monkeypatch.setenv("CROWDFUND_STATE_PATH", str(state))
    result = runner.invoke(app, ["init", "--goal", "10"])
    assert result.exit_code == 0, result.output
    assert state.exists()


def test_fund_rejects_negative_amount(tmp_path: Path) -> None:
    state = tmp_path / "chain.json"
    run_cli(["init"], state)
    before = state.read_text()
    result = run_cli(["fund", "--", "alice", "-5"], state, ok=False)
    assert result.exit_code == 1
    assert "non-negative" in result.output
    assert result.exception is None or isinstance(result.exception, SystemExit)
    assert state.read_text() == before


def test_init_rejects_non_ascii_metadata(tmp_path: Path) -> None:
    state = tmp_path / "chain.json"
    result = run_cli(["init", "--symbol", "ÉNERGIE"], state, ok=False)
    assert result.exit_code == 1
    assert "must be ASCII" in result.output
    assert not state.exists()
