"""Architecture boundary adapter for dependency-cruiser (``--output-type json``).

Violations live under ``summary.violations`` in current releases and under
``output.violations`` in older wrappers; both are accepted.
"""

import re
from collections.abc import Mapping
from typing import Any

from code_health.adapters.base import Adapter, Structured, iter_dicts, map_severity
from code_health.models import Issue, Severity, count_severity

_SEVERITY = {"error": Severity.ERROR, "warn": Severity.WARNING}
_DEFAULT_FIX = "Review the import and consider restructuring."


class ArchitectureAdapter(Adapter):
    name = "Architecture Boundaries"
    rule = "architecture"
    evidence = re.compile(r"\b([1-9]\d*) dependency violations?\b")

    def detect_schema(self, payload: Any) -> str | None:
        if not isinstance(payload, Mapping):
            return None
        if isinstance(payload.get("summary"), Mapping):
            return "summary"
        output = payload.get("output")
        if isinstance(output, Mapping) and isinstance(output.get("violations"), list):
            return "output"
        return None

    def from_structured(self, parsed: Structured) -> list[Issue]:
        section = parsed.payload[parsed.schema]
        issues: list[Issue] = []
        for violation in iter_dicts(section.get("violations")):
            rule = violation.get("rule")
            rule = rule if isinstance(rule, Mapping) else {}
            name = rule.get("name") or "boundary-violation"
            issues.append(Issue(
                severity=map_severity(rule.get("severity") or "warn", _SEVERITY, Severity.INFO),
                file=self.path(violation.get("from")),
                message=f"{name}: imports {self.path(violation.get('to'))}",
                rule=f"architecture/{rule.get('name') or 'violation'}",
                fix=rule.get("comment") or violation.get("comment") or _DEFAULT_FIX,
            ))
        return issues

    def fallback_text(self, stdout: str, stderr: str) -> str:
        return stdout + stderr

    def from_text(self, text: str) -> list[Issue]:
        return [
            Issue(severity=Severity.WARNING, message=line.strip(), rule="architecture/unknown")
            for line in text.splitlines()
            if ("error" in line or "violation" in line) and not self.evidence.search(line)
        ]

    def summarize(self, issues: list[Issue]) -> str:
        errors = count_severity(issues, Severity.ERROR)
        warnings = count_severity(issues, Severity.WARNING)
        return f"{errors} boundary violations, {warnings} warnings"
