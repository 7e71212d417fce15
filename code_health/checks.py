"""Check driver: run every check in a fixed order, one at a time.

Functions:
    run_checks(runner, config, quick, fix)   -> list[CheckResult]
    run(runner, config, quick, fix)          -> HealthReport

Each ``check_*`` function is wrapped by ``guarded`` so an unexpected failure
inside one check becomes a degraded result instead of aborting the run.
"""

import functools
import logging
import time
from pathlib import Path

from code_health.adapters import (
    ArchitectureAdapter,
    EslintAdapter,
    JscpdAdapter,
    KnipAdapter,
    OxlintAdapter,
    TypeScriptAdapter,
    dependency_graph_result,
)
from code_health.adapters.dependencies import NAME as DEPENDENCY_GRAPH
from code_health.analysis import source, structure
from code_health.config import Config
from code_health.grading import build_report
from code_health.models import CheckResult, HealthReport, Issue, Severity, skipped
from code_health.runner import ToolRunner

logger = logging.getLogger(__name__)

QUICK_SKIP_REASON = "Skipped (--quick mode)"

_JSCPD_IGNORE = "**/node_modules/**,**/*.test.*,**/_generated/**,**/routeTree.gen.ts"


def _elapsed(start: float) -> int:
    return int((time.monotonic() - start) * 1000)


def guarded(name: str):
    """Decorator that turns any exception raised by a check into a Fail result."""

    def decorator(func):
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> CheckResult:
            start = time.monotonic()
            try:
                return func(*args, **kwargs)
            except Exception as exc:
                logger.warning("%s failed: %s", name, exc)
                logger.debug("Traceback for %s", name, exc_info=True)
                issue = Issue(
                    severity=Severity.ERROR,
                    message=f"Check crashed: {type(exc).__name__}: {exc}",
                    rule="internal/check-crashed",
                )
                return CheckResult.from_issues(
                    name=name,
                    issues=[issue],
                    duration_ms=_elapsed(start),
                    summary="Check failed to run",
                )

        return wrapper

    return decorator


# ---------------------------------------------------------------------------
# Tool-backed checks
# ---------------------------------------------------------------------------

@guarded(OxlintAdapter.name)
def check_oxlint(runner: ToolRunner, config: Config, fix: bool = False) -> CheckResult:
    logger.info("Running oxlint...")
    start = time.monotonic()
    args = ["--format", "json"] + (["--fix"] if fix else [])
    output = runner.run("oxlint", args)
    return OxlintAdapter(config.root).to_result(output.stdout, output.stderr, _elapsed(start))


@guarded(EslintAdapter.name)
def check_eslint(runner: ToolRunner, config: Config) -> CheckResult:
    logger.info("Running ESLint (import/complexity rules)...")
    start = time.monotonic()
    output = runner.run(
        "eslint", [".", "--ext", ".ts,.tsx", "--format", "json", "--max-warnings", "0"]
    )
    return EslintAdapter(config.root).to_result(output.stdout, output.stderr, _elapsed(start))


@guarded(KnipAdapter.name)
def check_knip(runner: ToolRunner, config: Config) -> CheckResult:
    logger.info("Running knip (dead code detection)...")
    start = time.monotonic()
    output = runner.run("knip", ["--reporter", "json"])
    return KnipAdapter(config.root).to_result(output.stdout, output.stderr, _elapsed(start))


@guarded(JscpdAdapter.name)
def check_jscpd(runner: ToolRunner, config: Config, quick: bool = False) -> CheckResult:
    if quick:
        return skipped(JscpdAdapter.name, QUICK_SKIP_REASON)

    logger.info("Running jscpd (duplicate detection)...")
    start = time.monotonic()
    output = runner.run("jscpd", [
        *config.duplicate_targets,
        "--min-lines", str(config.duplicate_min_lines),
        "--reporters", "json,console",
        "--ignore", _JSCPD_IGNORE,
    ])
    adapter = JscpdAdapter(config.root)
    issues = adapter.normalize(output.stdout, output.stderr)
    issues += adapter.statistics(_read_optional(config.root_path / config.duplicate_stats_file))
    return CheckResult.from_issues(
        name=adapter.name,
        issues=issues,
        duration_ms=_elapsed(start),
        summary=adapter.summarize(issues),
        raw_output=output.combined,
    )


@guarded(DEPENDENCY_GRAPH)
def check_madge(runner: ToolRunner, config: Config, quick: bool = False) -> CheckResult:
    if quick:
        return skipped(DEPENDENCY_GRAPH, QUICK_SKIP_REASON)

    logger.info("Running madge (orphans & circular deps)...")
    start = time.monotonic()
    common = ["--json", "--extensions", "ts,tsx", config.dependency_target]
    orphans = runner.run("madge", ["--orphans", *common])
    circular = runner.run("madge", ["--circular", *common])
    return dependency_graph_result(
        orphans.stdout,
        circular.stdout,
        _elapsed(start),
        base=config.dependency_target,
        root=config.root,
    )


@guarded(TypeScriptAdapter.name)
def check_typescript(runner: ToolRunner, config: Config) -> CheckResult:
    logger.info("Running TypeScript type check...")
    start = time.monotonic()
    output = runner.run("turbo", ["check-types", "--output-logs=errors-only"])
    return TypeScriptAdapter(config.root).to_result(output.stdout, output.stderr, _elapsed(start))


@guarded(ArchitectureAdapter.name)
def check_architecture(runner: ToolRunner, config: Config, quick: bool = False) -> CheckResult:
    if quick:
        return skipped(ArchitectureAdapter.name, QUICK_SKIP_REASON)

    start = time.monotonic()
    if not (config.root_path / config.architecture_config).is_file():
        return skipped(
            ArchitectureAdapter.name,
            "Config not found",
            issues=[Issue(
                severity=Severity.INFO,
                message=(
                    f"No {config.architecture_config} config found - "
                    "skipping architecture check"
                ),
                fix=f"Create {config.architecture_config} to define module boundaries",
            )],
            duration_ms=_elapsed(start),
        )

    logger.info("Running architecture boundary check...")
    output = runner.run("dependency-cruiser", [
        "--config", config.architecture_config,
        "--output-type", "json",
        config.architecture_target,
    ])
    return ArchitectureAdapter(config.root).to_result(output.stdout, output.stderr, _elapsed(start))


# ---------------------------------------------------------------------------
# Source-backed checks
# ---------------------------------------------------------------------------

@guarded(source.NAME)
def check_complexity(config: Config) -> CheckResult:
    logger.info("Running complexity analysis...")
    start = time.monotonic()
    analyses = source.analyze_tree(config.source_path, config.root_path)
    logger.debug("Analyzed %d source files", len(analyses))
    return source.complexity_result(analyses, _elapsed(start))


@guarded(structure.NAME)
def check_structure(config: Config) -> CheckResult:
    logger.info("Running structure analysis...")
    start = time.monotonic()
    folders = structure.walk_folders(config.source_path, config.root_path)
    features = structure.feature_issues(config.source_path, config.root_path)
    return structure.structure_result(folders, features, _elapsed(start))


def _read_optional(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as exc:
        logger.debug("No jscpd statistics at %s: %s", path, exc)
        return ""


# ---------------------------------------------------------------------------
# Driver
# ---------------------------------------------------------------------------

def run_checks(runner: ToolRunner, config: Config, quick: bool = False,
               fix: bool = False) -> list[CheckResult]:
    """Run all checks sequentially in report order."""
    if quick:
        logger.info("Quick mode: skipping jscpd, madge, and architecture checks")
    return [
        check_oxlint(runner, config, fix=fix),
        check_eslint(runner, config),
        check_knip(runner, config),
        check_jscpd(runner, config, quick=quick),
        check_madge(runner, config, quick=quick),
        check_typescript(runner, config),
        check_complexity(config),
        check_architecture(runner, config, quick=quick),
        check_structure(config),
    ]


def run(runner: ToolRunner, config: Config, quick: bool = False,
        fix: bool = False) -> HealthReport:
    start = time.monotonic()
    checks = run_checks(runner, config, quick=quick, fix=fix)
    return build_report(checks, _elapsed(start))
