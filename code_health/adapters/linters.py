"""Lint adapters: oxlint (fast linter) and ESLint (import & complexity rules)."""

import re
from collections.abc import Mapping
from typing import Any

from code_health.adapters.base import (
    Adapter,
    Structured,
    as_line,
    iter_dicts,
    map_severity,
)
from code_health.models import Issue, Severity


# ---------------------------------------------------------------------------
# oxlint
# ---------------------------------------------------------------------------

_OXLINT_SEVERITY = {"error": Severity.ERROR, "deny": Severity.ERROR}
_OXLINT_SUMMARY_RE = re.compile(
    r"^\s*(?:Found \d+ warnings? and \d+ errors?|Finished in\b)", re.IGNORECASE
)


class OxlintAdapter(Adapter):
    """``oxlint --format json``; the only adapter whose tool accepts ``--fix``."""

    name = "Linting (oxlint)"
    rule = "oxlint"
    evidence = re.compile(r"\b([1-9]\d*)\s+(?:errors?|warnings?)\b", re.IGNORECASE)

    def detect_schema(self, payload: Any) -> str | None:
        if isinstance(payload, Mapping) and isinstance(payload.get("diagnostics"), list):
            return "diagnostics"
        if isinstance(payload, list):
            return "list"
        return None

    def from_structured(self, parsed: Structured) -> list[Issue]:
        items = parsed.payload["diagnostics"] if parsed.schema == "diagnostics" else parsed.payload
        issues: list[Issue] = []
        for item in iter_dicts(items):
            issues.append(Issue(
                severity=map_severity(item.get("severity"), _OXLINT_SEVERITY, Severity.WARNING),
                file=self.path(item.get("filename") or item.get("file")),
                line=as_line(item.get("line")) or _label_line(item),
                message=str(item.get("message", "")),
                rule=item.get("code") or item.get("ruleId") or item.get("rule"),
            ))
        return issues

    def from_text(self, text: str) -> list[Issue]:
        issues: list[Issue] = []
        for line in text.splitlines():
            lowered = line.lower()
            if not line.strip() or _OXLINT_SUMMARY_RE.match(line):
                continue
            if "error" in lowered or "warning" in lowered:
                issues.append(Issue(severity=Severity.WARNING, message=line.strip()))
        return issues


def _label_line(item: Mapping) -> int | None:
    for label in iter_dicts(item.get("labels")):
        span = label.get("span")
        if isinstance(span, Mapping):
            return as_line(span.get("line"))
    return None


# ---------------------------------------------------------------------------
# ESLint
# ---------------------------------------------------------------------------

_ESLINT_SEVERITY = {2: Severity.ERROR, "2": Severity.ERROR, "error": Severity.ERROR}

# stylish formatter: a path header followed by indented "line:col  severity  message  rule"
_STYLISH_FILE_RE = re.compile(r"^(\S.*\.(?:[cm]?[jt]sx?|vue|svelte))\s*$")
_STYLISH_ROW_RE = re.compile(
    r"^\s+(\d+):\d+\s+(error|warning)\s+(.+?)(?:\s{2,}(\S+))?\s*$"
)


class EslintAdapter(Adapter):
    """``eslint --format json`` with stylish/unix text fallback."""

    name = "Import & Complexity (ESLint)"
    rule = "eslint"
    evidence = re.compile(r"\b([1-9]\d*)\s+problems?\b")

    def detect_schema(self, payload: Any) -> str | None:
        if isinstance(payload, list):
            return "results"
        if isinstance(payload, Mapping) and isinstance(payload.get("results"), list):
            return "wrapped"
        return None

    def from_structured(self, parsed: Structured) -> list[Issue]:
        results = parsed.payload if parsed.schema == "results" else parsed.payload["results"]
        issues: list[Issue] = []
        for result in iter_dicts(results):
            file = self.path(result.get("filePath"))
            for message in iter_dicts(result.get("messages")):
                issues.append(Issue(
                    severity=map_severity(message.get("severity"), _ESLINT_SEVERITY, Severity.WARNING),
                    file=file,
                    line=as_line(message.get("line")),
                    message=str(message.get("message", "")),
                    rule=message.get("ruleId"),
                ))
        return issues

    def from_text(self, text: str) -> list[Issue]:
        issues: list[Issue] = []
        current_file: str | None = None
        for line in text.splitlines():
            header = _STYLISH_FILE_RE.match(line)
            if header:
                current_file = self.path(header.group(1))
                continue
            row = _STYLISH_ROW_RE.match(line)
            if row and current_file:
                issues.append(Issue(
                    severity=Severity.ERROR if row.group(2) == "error" else Severity.WARNING,
                    file=current_file,
                    line=as_line(row.group(1)),
                    message=row.group(3),
                    rule=row.group(4),
                ))
                continue
            if self.evidence.search(line):
                continue
            if "error" in line or "warning" in line:
                issues.append(_unix_issue(line, self))
        return issues


def _unix_issue(line: str, adapter: Adapter) -> Issue:
    """Best-effort ``file:line:message`` split of one text line.

    The first field is taken as a path only when the second is a line number.
    """
    severity = Severity.ERROR if "error" in line else Severity.WARNING
    parts = line.split(":", 2)
    lineno = as_line(parts[1].strip()) if len(parts) == 3 else None
    if lineno is None:
        return Issue(severity=severity, message=line.strip())
    return Issue(
        severity=severity,
        file=adapter.path(parts[0].strip()),
        line=lineno,
        message=parts[2].strip(),
    )
