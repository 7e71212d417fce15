"""Tests for code_health/cli.py"""

import pytest
from click.testing import CliRunner

from code_health import checks
from code_health.cli import cli
from code_health.grading import build_report
from code_health.models import CheckResult, Issue, Severity
from code_health.render import JSON_FILE, MARKDOWN_FILE, decode_report


def _fake_run(issues):
    def run(runner, config, quick=False, fix=False):
        run.calls.append({"quick": quick, "fix": fix, "launcher": runner.launcher})
        check = CheckResult.from_issues("Linting (oxlint)", issues, 5, "summary")
        return build_report([check], 5, timestamp="2026-01-01T00:00:00+00:00")

    run.calls = []
    return run


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("CODE_HEALTH_SOURCE", raising=False)
    monkeypatch.delenv("CODE_HEALTH_REPORT_DIR", raising=False)
    return tmp_path


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------

def test_clean_run_exits_zero_and_writes_reports(workdir, monkeypatch):
    fake = _fake_run([])
    monkeypatch.setattr(checks, "run", fake)
    result = CliRunner().invoke(cli, ["run", "--report-dir", "out"])
    assert result.exit_code == 0, result.output
    assert "Grade: A" in result.output
    assert (workdir / "out" / MARKDOWN_FILE).exists()
    report = decode_report((workdir / "out" / JSON_FILE).read_text(encoding="utf-8"))
    assert report.grade.value == "A"
    assert fake.calls == [{"quick": False, "fix": False, "launcher": ["bunx"]}]


def test_errors_exit_one(workdir, monkeypatch):
    monkeypatch.setattr(checks, "run", _fake_run([Issue(Severity.ERROR, "bad")]))
    result = CliRunner().invoke(cli, ["run", "--report-dir", "out"])
    assert result.exit_code == 1
    assert "Total: 1 errors, 0 warnings, 0 info" in result.output


def test_quick_and_fix_are_forwarded(workdir, monkeypatch):
    fake = _fake_run([])
    monkeypatch.setattr(checks, "run", fake)
    CliRunner().invoke(cli, ["run", "--quick", "--fix", "--report-dir", "out"])
    assert fake.calls[0]["quick"] is True
    assert fake.calls[0]["fix"] is True


def test_report_dir_defaults_to_config(workdir, monkeypatch):
    monkeypatch.setattr(checks, "run", _fake_run([]))
    result = CliRunner().invoke(cli, ["run"])
    assert result.exit_code == 0
    assert (workdir / "logs" / JSON_FILE).exists()


def test_default_config_file_is_picked_up(workdir, monkeypatch):
    (workdir / "code-health.yaml").write_text('tools:\n  launcher: "pnpm exec"\n')
    fake = _fake_run([])
    monkeypatch.setattr(checks, "run", fake)
    result = CliRunner().invoke(cli, ["run", "--report-dir", "out"])
    assert result.exit_code == 0
    assert fake.calls[0]["launcher"] == ["pnpm", "exec"]


def test_unwritable_report_dir_exits_two(workdir, monkeypatch):
    (workdir / "blocked").write_text("")
    monkeypatch.setattr(checks, "run", _fake_run([]))
    result = CliRunner().invoke(cli, ["run", "--report-dir", "blocked"])
    assert result.exit_code == 2
    assert "Failed to write reports" in result.output


def test_config_error_exits_one(workdir):
    result = CliRunner().invoke(cli, ["--config", "missing.yaml", "run"])
    assert result.exit_code == 1
    assert "Configuration error" in result.output


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

def test_init_writes_template(workdir):
    result = CliRunner().invoke(cli, ["init"])
    assert result.exit_code == 0
    assert (workdir / "code-health.yaml").exists()


def test_init_refuses_to_overwrite(workdir):
    (workdir / "custom.yaml").write_text("keep me")
    result = CliRunner().invoke(cli, ["init", "--output", "custom.yaml"])
    assert result.exit_code == 1
    assert "already exists" in result.output
    assert (workdir / "custom.yaml").read_text() == "keep me"


def test_version():
    result = CliRunner().invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "code-health" in result.output
