"""Functional tests: run `testwarden analyze` and the pylint plugin over sample suites.

The samples under source-data/ are never collected by pytest; each one is
written to trip a known set of rules (or none).
"""

import os
import subprocess
import sys
from pathlib import Path

from typer.testing import CliRunner

from testwarden.domain.config import ConfigurationLoader
from testwarden.infrastructure.di.container import TestwardenContainer
from testwarden.infrastructure.reporters import ReportEmitter
from testwarden.interface.cli import CLIAppFactory, CLIDependencies

SOURCE_DATA = Path(__file__).resolve().parent / "source-data"
PLUGIN_SRC = Path(__file__).resolve().parents[2] / "src"

runner = CliRunner()


def _deps() -> CLIDependencies:
    container = TestwardenContainer(ConfigurationLoader())
    return CLIDependencies(
        config_loader=container.get_config_loader(),
        telemetry=container.get_telemetry_port(),
        filesystem=container.get_filesystem_gateway(),
        model_builder=container.get_model_builder(),
        rule_registry=container.get_rule_registry(),
        rule_catalog=container.get_rule_catalog(),
        report_emitter=container.get_report_emitter(),
    )


def _analyze(*paths: Path, extra: tuple[str, ...] = ()):
    app = CLIAppFactory.create_app(_deps())
    return runner.invoke(app, ["analyze", *(str(p) for p in paths), "-q", "--format", "json", *extra])


def _findings(sample: str) -> tuple[int, list[tuple[str, str, str]]]:
    result = _analyze(SOURCE_DATA / sample)
    report = ReportEmitter().parse(result.stdout)
    return result.exit_code, [(f.unit, f.rule_id, f.severity.value) for f in report.findings()]


def test_shared_class_state_is_reported_on_the_reader() -> None:
    exit_code, findings = _findings("cart-shared-state.py")
    assert findings == [("TestCart.test_count_is_zero_when_cart_new", "INDEPENDENT", "ERROR")]
    assert exit_code == 1


def test_clock_randomness_and_environment_are_not_repeatable() -> None:
    exit_code, findings = _findings("flaky-sources.py")
    assert findings == [
        ("test_pick_winner_returns_member_when_drawn", "REPEATABLE", "ERROR"),
        ("test_report_date_is_today_when_generated", "REPEATABLE", "ERROR"),
        ("test_read_region_returns_eu_when_unset", "REPEATABLE", "ERROR"),
    ]
    assert exit_code == 1


def test_real_collaborators_are_slow_and_unmocked() -> None:
    exit_code, findings = _findings("external-collaborators.py")
    assert ("test_fetch_user_returns_name_when_found", "FAST", "WARN") in findings
    assert ("test_fetch_user_returns_name_when_found", "REPEATABLE", "ERROR") in findings
    assert ("test_charge_card_succeeds_when_funds_available", "MOCK_EXTERNAL", "ERROR") in findings
    assert len(findings) == 3
    assert exit_code == 1


def test_manual_exception_check_and_loop_are_warnings() -> None:
    exit_code, findings = _findings("manual-expectations.py")
    rule_ids = {(unit, rule_id) for unit, rule_id, _severity in findings}
    assert ("TestAccount.test_withdraw_raises_when_overdrawn", "EXPECTED_EXCEPTION") in rule_ids
    assert ("TestAccount.test_deposit_increases_balance_for_each_amount", "NO_LOGIC_IN_TEST") in rule_ids
    assert all(severity != "ERROR" for _unit, _rule_id, severity in findings)
    assert exit_code == 0


def test_well_written_suite_is_clean() -> None:
    exit_code, findings = _findings("well-written.py")
    assert findings == []
    assert exit_code == 0


def test_fail_on_warn_turns_warnings_into_failure() -> None:
    result = _analyze(SOURCE_DATA / "manual-expectations.py", extra=("--fail-on", "warn"))
    assert result.exit_code == 1


def test_whole_sample_directory_is_order_independent() -> None:
    files = sorted(SOURCE_DATA.glob("*.py"))
    forward = _analyze(*files, extra=("--jobs", "1"))
    backward = _analyze(*reversed(files), extra=("--jobs", "4"))
    assert forward.exit_code == backward.exit_code == 1
    assert ReportEmitter().parse(forward.stdout) == ReportEmitter().parse(backward.stdout)


def test_unparseable_file_exits_two(tmp_path: Path) -> None:
    broken = tmp_path / "test_broken.py"
    broken.write_text("def test_broken(:\n    pass\n", encoding="utf-8")
    result = _analyze(broken, SOURCE_DATA / "well-written.py")
    assert result.exit_code == 2


def test_pylint_plugin_reports_shared_state(tmp_path: Path) -> None:
    target = tmp_path / "test_cart.py"
    target.write_text((SOURCE_DATA / "cart-shared-state.py").read_text(encoding="utf-8"), encoding="utf-8")
    env = os.environ.copy()
    env["PYTHONPATH"] = str(PLUGIN_SRC)
    cmd = [
        sys.executable,
        "-m",
        "pylint",
        str(target),
        "--load-plugins=testwarden.infrastructure.checker",
        "--disable=all",
        "--enable=testwarden-independent",
        "--msg-template={path}:{line}: {msg_id} ({symbol})",
        "--score=n",
        "--persistent=n",
    ]
    result = subprocess.run(cmd, cwd=tmp_path, capture_output=True, text=True, env=env)
    assert "W9702 (testwarden-independent)" in result.stdout
