"""Dead code adapter for knip (``knip --reporter json``).

Two incompatible JSON shapes are accepted:

* ``v5``     - ``{"files": [...], "issues": [{"file": ..., "exports": [...], ...}]}``
* ``legacy`` - top-level ``files``, ``exports``, ``dependencies``, ``unlisted``
"""

import re
from collections.abc import Mapping
from typing import Any

from code_health.adapters.base import (
    Adapter,
    Structured,
    as_line,
    as_list,
    iter_dicts,
)
from code_health.models import Issue, Severity, count_severity

_LEGACY_KEYS = ("files", "exports", "dependencies", "unlisted")

#: v5 per-file issue key -> (severity, message prefix, rule)
_V5_CATEGORIES = (
    ("dependencies",    Severity.WARNING, "Unused dependency",    "knip/unused-dependency"),
    ("devDependencies", Severity.INFO,    "Unused devDependency", "knip/unused-devdep"),
    ("exports",         Severity.INFO,    "Unused export",        "knip/unused-export"),
    ("types",           Severity.INFO,    "Unused type",          "knip/unused-type"),
    ("unresolved",      Severity.ERROR,   "Unresolved import",    "knip/unresolved"),
)

#: text reporter section header (lowercased) -> (severity, message prefix, rule)
_TEXT_SECTIONS = {
    "unused files":             (Severity.WARNING, "Unused file - not imported anywhere", "knip/unused-file"),
    "unused dependencies":      (Severity.WARNING, "Unused dependency",    "knip/unused-dependency"),
    "unused devdependencies":   (Severity.INFO,    "Unused devDependency", "knip/unused-devdep"),
    "unused exports":           (Severity.INFO,    "Unused export",        "knip/unused-export"),
    "unused exported types":    (Severity.INFO,    "Unused type",          "knip/unused-type"),
    "unused types":             (Severity.INFO,    "Unused type",          "knip/unused-type"),
    "unresolved imports":       (Severity.ERROR,   "Unresolved import",    "knip/unresolved"),
    "unlisted dependencies":    (Severity.ERROR,   "Unlisted dependency used", "knip/unlisted-dependency"),
}

_SECTION_RE = re.compile(r"^([A-Za-z][A-Za-z ]+?)\s+\((\d+)\)\s*$")
_LOCATION_RE = re.compile(r"^(?P<file>[^\s:]+?)(?::(?P<line>\d+)(?::\d+)?)?$")


class KnipAdapter(Adapter):
    name = "Dead Code (knip)"
    rule = "knip"
    evidence = re.compile(r"\bunused\b", re.IGNORECASE)

    def detect_schema(self, payload: Any) -> str | None:
        if not isinstance(payload, Mapping):
            return None
        if isinstance(payload.get("issues"), list):
            return "v5"
        if any(key in payload for key in _LEGACY_KEYS):
            return "legacy"
        return None

    def from_structured(self, parsed: Structured) -> list[Issue]:
        payload = parsed.payload
        issues = [
            Issue(
                severity=Severity.WARNING,
                file=self.path(file),
                message="Unused file - not imported anywhere",
                rule="knip/unused-file",
            )
            for file in as_list(payload.get("files"))
        ]
        if parsed.schema == "v5":
            issues.extend(self._v5_issues(payload["issues"]))
        else:
            issues.extend(self._legacy_issues(payload))
        return issues

    def _v5_issues(self, entries: list) -> list[Issue]:
        issues: list[Issue] = []
        for entry in iter_dicts(entries):
            file = self.path(entry.get("file"))
            for key, severity, prefix, rule in _V5_CATEGORIES:
                for item in iter_dicts(entry.get(key)):
                    issues.append(Issue(
                        severity=severity,
                        file=file,
                        line=as_line(item.get("line")),
                        message=f"{prefix}: {item.get('name')}",
                        rule=rule,
                    ))
            for group in as_list(entry.get("duplicates")):
                names = [str(d.get("name")) for d in iter_dicts(group)]
                if len(names) > 1:
                    issues.append(Issue(
                        severity=Severity.INFO,
                        file=file,
                        message=f"Duplicate exports: {', '.join(names)}",
                        rule="knip/duplicate-export",
                    ))
        return issues

    def _legacy_issues(self, payload: Mapping) -> list[Issue]:
        issues: list[Issue] = []
        for export in iter_dicts(payload.get("exports")):
            issues.append(Issue(
                severity=Severity.INFO,
                file=self.path(export.get("file") or export.get("filename")),
                message=f"Unused export: {export.get('name') or export.get('symbol')}",
                rule="knip/unused-export",
            ))
        for dependency in as_list(payload.get("dependencies")):
            issues.append(Issue(
                severity=Severity.WARNING,
                message=f"Unused dependency: {dependency}",
                rule="knip/unused-dependency",
            ))
        for dependency in as_list(payload.get("unlisted")):
            issues.append(Issue(
                severity=Severity.ERROR,
                message=f"Unlisted dependency used: {dependency}",
                rule="knip/unlisted-dependency",
            ))
        return issues

    def from_text(self, text: str) -> list[Issue]:
        sectioned = self._sectioned_text(text)
        if sectioned:
            return sectioned
        return [
            Issue(severity=Severity.WARNING, message=line.strip())
            for line in text.splitlines()
            if "unused" in line.lower()
        ]

    def _sectioned_text(self, text: str) -> list[Issue]:
        """Parse the default reporter: ``Unused files (2)`` followed by rows."""
        issues: list[Issue] = []
        section = None
        for line in text.splitlines():
            header = _SECTION_RE.match(line.strip())
            if header:
                section = _TEXT_SECTIONS.get(header.group(1).lower())
                continue
            if not line.strip():
                section = None
                continue
            if section is None:
                continue
            severity, prefix, rule = section
            columns = re.split(r"\s{2,}", line.strip())
            location = _LOCATION_RE.match(columns[-1])
            if rule == "knip/unused-file":
                issues.append(Issue(severity=severity, file=self.path(columns[0]),
                                    message=prefix, rule=rule))
            elif len(columns) > 1 and location:
                issues.append(Issue(
                    severity=severity,
                    file=self.path(location.group("file")),
                    line=as_line(location.group("line")),
                    message=f"{prefix}: {columns[0]}",
                    rule=rule,
                ))
            else:
                issues.append(Issue(severity=severity, message=f"{prefix}: {columns[0]}", rule=rule))
        return issues

    def summarize(self, issues: list[Issue]) -> str:
        errors = count_severity(issues, Severity.ERROR)
        warnings = count_severity(issues, Severity.WARNING)
        infos = count_severity(issues, Severity.INFO)
        return f"{errors} errors, {warnings} unused files/deps, {infos} unused exports"
