"""TypeScript type errors, consumed as opaque compiler text.

Recognised line shapes (an optional ``pkg:task:`` turbo prefix is allowed)::

    src/a.ts(12,5): error TS2322: Type 'string' is not assignable ...
    src/a.ts:12:5 - error TS2322: Type 'string' is not assignable ...
"""

import re

from code_health.adapters.base import Adapter, Empty, ParseResult, TextFallback, as_line
from code_health.models import Issue, Severity

_PREFIX = r"^(?:[\w@./-]+:[\w-]+:\s+)?"
_PAREN_RE = re.compile(_PREFIX + r"(.+?)\((\d+),\d+\):\s*error\s*(TS\d+):\s*(.+)$")
_PRETTY_RE = re.compile(_PREFIX + r"(.+?):(\d+):\d+\s+-\s+error\s+(TS\d+):\s*(.+)$")


class TypeScriptAdapter(Adapter):
    name = "TypeScript Types"
    rule = "typescript"
    evidence = re.compile(r"Found ([1-9]\d*) errors?")
    evidence_message = "{count} type error report(s) could not be parsed"
    synthetic_severity = Severity.ERROR

    def fallback_text(self, stdout: str, stderr: str) -> str:
        return stdout + stderr

    def parse(self, stdout: str, stderr: str = "") -> ParseResult:
        text = self.fallback_text(stdout, stderr)
        return TextFallback(text) if text.strip() else Empty()

    def from_text(self, text: str) -> list[Issue]:
        issues: list[Issue] = []
        for line in text.splitlines():
            if "error TS" not in line and ": error" not in line:
                continue
            match = _PAREN_RE.match(line) or _PRETTY_RE.match(line)
            if match:
                issues.append(Issue(
                    severity=Severity.ERROR,
                    file=self.path(match.group(1).strip()),
                    line=as_line(match.group(2)),
                    message=match.group(4).strip(),
                    rule=match.group(3),
                ))
            else:
                issues.append(Issue(severity=Severity.ERROR, message=line.strip()))
        return issues

    def summarize(self, issues: list[Issue]) -> str:
        return f"{len(issues)} type errors"
