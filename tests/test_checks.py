"""Tests for code_health/checks.py"""

import json
from pathlib import Path

import pytest

from code_health import checks
from code_health.config import Config
from code_health.models import Severity, Status
from code_health.runner import ToolNotFoundError, ToolOutput

CLEAN = ToolOutput("", "", 0)


class StubRunner:
    """Stands in for ToolRunner; answers by tool name or 'tool first-arg'."""

    def __init__(self, outputs=None, error=None):
        self.outputs = outputs or {}
        self.error = error
        self.calls: list[list[str]] = []

    def run(self, tool, args):
        self.calls.append([tool, *args])
        if self.error is not None:
            raise self.error
        key = f"{tool} {args[0]}" if args and f"{tool} {args[0]}" in self.outputs else tool
        return self.outputs.get(key, CLEAN)

    def tools(self) -> list[str]:
        return [call[0] for call in self.calls]


@pytest.fixture
def config(tmp_path) -> Config:
    return Config(root=str(tmp_path), source="src")


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------

def test_runs_all_checks_in_report_order(config):
    results = checks.run_checks(StubRunner(), config)
    assert [r.name for r in results] == [
        "Linting (oxlint)",
        "Import & Complexity (ESLint)",
        "Dead Code (knip)",
        "Duplicate Code (jscpd)",
        "Dependency Graph (madge)",
        "TypeScript Types",
        "Complexity Analysis",
        "Architecture Boundaries",
        "Structure Analysis",
    ]


def test_quick_mode_skips_slow_checks(config):
    runner = StubRunner()
    results = {r.name: r for r in checks.run_checks(runner, config, quick=True)}
    for name in ("Duplicate Code (jscpd)", "Dependency Graph (madge)", "Architecture Boundaries"):
        assert results[name].status is Status.SKIP
        assert results[name].summary == checks.QUICK_SKIP_REASON
    assert runner.tools() == ["oxlint", "eslint", "knip", "turbo"]


def test_clean_run_report(config):
    report = checks.run(StubRunner(), config, quick=True)
    assert report.grade.value == "A"
    assert report.exit_code == 0
    assert len(report.checks) == 9


def test_fix_flag_reaches_oxlint(config):
    runner = StubRunner()
    checks.check_oxlint(runner, config, fix=True)
    assert runner.calls == [["oxlint", "--format", "json", "--fix"]]


# ---------------------------------------------------------------------------
# Failure handling
# ---------------------------------------------------------------------------

def test_missing_tool_degrades_to_failed_check(config):
    runner = StubRunner(error=ToolNotFoundError("Executable 'bunx' was not found on PATH"))
    result = checks.check_knip(runner, config)
    assert result.name == "Dead Code (knip)"
    assert result.status is Status.FAIL
    assert result.summary == "Check failed to run"
    (issue,) = result.issues
    assert issue.severity is Severity.ERROR
    assert issue.rule == "internal/check-crashed"
    assert "not found on PATH" in issue.message


def test_crashing_check_does_not_stop_the_run(config):
    results = checks.run_checks(StubRunner(error=ToolNotFoundError("gone")), config)
    assert len(results) == 9
    crashed = [r.name for r in results if r.summary == "Check failed to run"]
    assert crashed == [
        "Linting (oxlint)",
        "Import & Complexity (ESLint)",
        "Dead Code (knip)",
        "Duplicate Code (jscpd)",
        "Dependency Graph (madge)",
        "TypeScript Types",
    ]


def test_guarded_wraps_arbitrary_exceptions():
    @checks.guarded("Boom")
    def explode():
        raise RuntimeError("kaput")

    result = explode()
    assert result.name == "Boom"
    assert result.status is Status.FAIL
    assert result.issues[0].message == "Check crashed: RuntimeError: kaput"


# ---------------------------------------------------------------------------
# Individual checks
# ---------------------------------------------------------------------------

def test_architecture_without_config_is_skipped(config):
    runner = StubRunner()
    result = checks.check_architecture(runner, config)
    assert result.status is Status.SKIP
    assert result.summary == "Config not found"
    assert [i.severity for i in result.issues] == [Severity.INFO]
    assert runner.calls == []


def test_architecture_with_config(config, tmp_path):
    (tmp_path / ".dependency-cruiser.cjs").write_text("module.exports = {};")
    payload = json.dumps({"summary": {"violations": [
        {"from": "a.ts", "to": "b.ts", "rule": {"name": "no-cross-feature", "severity": "error"}},
    ]}})
    runner = StubRunner({"dependency-cruiser": ToolOutput(payload, "", 1)})
    result = checks.check_architecture(runner, config)
    assert result.status is Status.FAIL
    assert runner.calls == [[
        "dependency-cruiser", "--config", ".dependency-cruiser.cjs",
        "--output-type", "json", "./apps/web/src",
    ]]


def test_jscpd_includes_statistics(config, tmp_path):
    stats = tmp_path / "report" / "jscpd-report.json"
    stats.parent.mkdir()
    stats.write_text(json.dumps({"statistics": {"total": {"percentage": 2.5}}}))
    clone = (
        "Clone found (tsx):\n"
        " - a.tsx [1:1 - 20:1] (19 lines, 100 tokens)\n"
        "   b.tsx [5:1 - 24:1]\n"
    )
    runner = StubRunner({"jscpd": ToolOutput(clone, "", 0)})
    result = checks.check_jscpd(runner, config)
    assert [i.rule for i in result.issues] == ["jscpd/duplicate", "jscpd/stats"]
    assert result.summary == "1 duplicate blocks found"
    assert runner.calls[0][:3] == ["jscpd", "./packages", "./apps"]


def test_madge_runs_orphans_then_circular(config):
    runner = StubRunner({
        "madge --orphans": ToolOutput("users.ts\n", "", 0),
        "madge --circular": ToolOutput("1) a.ts > b.ts\n", "", 1),
    })
    result = checks.check_madge(runner, config)
    assert [call[1] for call in runner.calls] == ["--orphans", "--circular"]
    assert result.summary == "1 circular deps, 1 orphan files"
    assert result.issues[0].file == "packages/backend/convex/users.ts"


def test_complexity_and_structure_read_the_source_tree(config, tmp_path):
    src = tmp_path / "src" / "crowded"
    src.mkdir(parents=True)
    (src / "big.ts").write_text("x;\n" * 600)
    for n in range(29):
        (src / f"f{n}.ts").write_text("x;\n")

    complexity = checks.check_complexity(config)
    assert [i.file for i in complexity.issues] == ["src/crowded/big.ts"]

    structure = checks.check_structure(config)
    assert [i.rule for i in structure.issues] == ["structure/crowded-folder"]
    assert structure.issues[0].file == "src/crowded"


def test_unreadable_features_folder_keeps_folder_findings(config, tmp_path, monkeypatch):
    src = tmp_path / "src"
    (src / "features").mkdir(parents=True)
    crowded = src / "crowded"
    crowded.mkdir()
    for n in range(30):
        (crowded / f"f{n}.ts").write_text("x;\n")
    features = src / "features"
    real_iterdir = Path.iterdir

    def iterdir(self):
        if self == features:
            raise PermissionError(f"Permission denied: '{self}'")
        return real_iterdir(self)

    monkeypatch.setattr(Path, "iterdir", iterdir)
    result = checks.check_structure(config)
    assert [i.rule for i in result.issues] == ["structure/crowded-folder"]
    assert result.summary != "Check failed to run"
