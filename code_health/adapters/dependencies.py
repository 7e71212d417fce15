"""Dependency graph adapters for madge: orphan files and circular imports.

madge is invoked twice (``--orphans`` and ``--circular``); each output has its
own adapter and ``dependency_graph_result`` merges them into one check.
"""

import re
from typing import Any

from code_health.adapters.base import Adapter, Structured, as_list
from code_health.models import CheckResult, Issue, Severity, count_severity

NAME = "Dependency Graph (madge)"

_SOURCE_SUFFIXES = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")
_NOISE_PREFIXES = ("Using", "Processed", "Finding", "Skipped")
_NUMBERED_RE = re.compile(r"^\s*\d+\)\s+(.+?)\s*$")


def _is_expected_orphan(path: str) -> bool:
    return "config." in path.rsplit("/", 1)[-1] or "_generated" in path


class MadgeOrphansAdapter(Adapter):
    name = NAME
    rule = "madge/orphan"

    def __init__(self, base: str = "", root=None) -> None:
        super().__init__(root)
        self.base = base.replace("\\", "/").strip("/").removeprefix("./")

    def detect_schema(self, payload: Any) -> str | None:
        if isinstance(payload, list) and all(isinstance(p, str) for p in payload):
            return "json"
        return None

    def from_structured(self, parsed: Structured) -> list[Issue]:
        return [self._issue(path) for path in parsed.payload]

    def from_text(self, text: str) -> list[Issue]:
        issues: list[Issue] = []
        for line in text.splitlines():
            line = line.strip()
            if not line or "No orphans" in line or line.startswith(_NOISE_PREFIXES):
                continue
            if "files (" in line or not line.endswith(_SOURCE_SUFFIXES):
                continue
            issues.append(self._issue(line))
        return issues

    def _issue(self, orphan: str) -> Issue:
        file = f"{self.base}/{orphan}" if self.base else orphan
        expected = _is_expected_orphan(orphan)
        return Issue(
            severity=Severity.INFO if expected else Severity.WARNING,
            file=self.path(file),
            message=(
                "Config file (expected to be standalone)" if expected
                else "Orphan file - nothing imports this"
            ),
            rule=self.rule,
        )


class MadgeCircularAdapter(Adapter):
    name = NAME
    rule = "madge/circular"
    evidence = re.compile(r"Found ([1-9]\d*) circular dependenc", re.IGNORECASE)
    evidence_message = "{count} circular dependency report(s) could not be parsed"
    synthetic_severity = Severity.ERROR

    def detect_schema(self, payload: Any) -> str | None:
        if isinstance(payload, list) and all(isinstance(c, list) for c in payload):
            return "json"
        return None

    def from_structured(self, parsed: Structured) -> list[Issue]:
        return [
            self._issue(" → ".join(str(node) for node in cycle))
            for cycle in parsed.payload
            if as_list(cycle)
        ]

    def from_text(self, text: str) -> list[Issue]:
        issues: list[Issue] = []
        for line in text.splitlines():
            if line.startswith("Processed"):
                continue
            numbered = _NUMBERED_RE.match(line)
            if numbered:
                issues.append(self._issue(numbered.group(1)))
            elif ("→" in line or "->" in line) and line.strip():
                issues.append(self._issue(line.strip()))
        return issues

    def _issue(self, cycle: str) -> Issue:
        return Issue(severity=Severity.ERROR, message=f"Circular: {cycle}", rule=self.rule)


def dependency_graph_result(
    orphans_stdout: str,
    circular_stdout: str,
    duration_ms: int,
    base: str = "",
    root=None,
) -> CheckResult:
    """Merge both madge invocations into one check result."""
    issues = MadgeOrphansAdapter(base, root).normalize(orphans_stdout)
    issues += MadgeCircularAdapter(root).normalize(circular_stdout)
    errors = count_severity(issues, Severity.ERROR)
    warnings = count_severity(issues, Severity.WARNING)
    return CheckResult.from_issues(
        name=NAME,
        issues=issues,
        duration_ms=duration_ms,
        summary=f"{errors} circular deps, {warnings} orphan files",
        raw_output=orphans_stdout + "\n---\n" + circular_stdout,
    )
