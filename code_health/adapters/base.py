"""Shared fallback chain for tool output adapters.

Every adapter turns one tool's raw output into ``Issue`` objects in up to
three tiers:

1. ``parse`` recognises the tool's structured output and returns
   ``Structured(payload, schema)``; ``from_structured`` walks it.
2. Anything unrecognised becomes ``TextFallback(text)`` and is scanned
   line by line by ``from_text``.
3. When neither tier yields findings but the raw text still matches the
   adapter's ``evidence`` pattern, one synthetic summary issue is emitted
   so an unparseable report is never mistaken for a clean one.
"""

import json
import logging
import re
from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from code_health.models import CheckResult, Issue, Severity, count_severity

logger = logging.getLogger(__name__)

_ANSI_RE = re.compile(r"\x1b\[[0-9;]*[A-Za-z]")


# ---------------------------------------------------------------------------
# Parse results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Structured:
    payload: Any
    schema: str


@dataclass(frozen=True)
class TextFallback:
    text: str


@dataclass(frozen=True)
class Empty:
    pass


ParseResult = Structured | TextFallback | Empty


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def strip_ansi(text: str) -> str:
    """Remove terminal colour escape sequences."""
    return _ANSI_RE.sub("", text)


def load_json(text: str) -> Any | None:
    """Return the decoded JSON document in *text*, or None if it is not JSON."""
    try:
        return json.loads(text)
    except (json.JSONDecodeError, ValueError):
        return None


def iter_dicts(value: Any) -> Iterator[Mapping[str, Any]]:
    """Yield the mapping items of *value* when it is a sequence."""
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        for item in value:
            if isinstance(item, Mapping):
                yield item


def as_list(value: Any) -> list:
    if isinstance(value, Sequence) and not isinstance(value, (str, bytes, bytearray)):
        return list(value)
    return []


def as_line(value: Any) -> int | None:
    """Coerce a reported line number to a positive int, or None."""
    try:
        line = int(value)
    except (TypeError, ValueError):
        return None
    return line if line > 0 else None


def map_severity(label: Any, table: Mapping[Any, Severity], default: Severity) -> Severity:
    if isinstance(label, str):
        label = label.lower()
    return table.get(label, default)


def relative_path(path: Any, root: str | Path | None = None) -> str | None:
    """Normalise a tool-reported path to forward slashes, relative to *root*."""
    if path is None or path == "":
        return None
    text = str(path).replace("\\", "/").strip()
    if root is not None:
        prefix = str(Path(root).resolve()).replace("\\", "/").rstrip("/") + "/"
        if text.startswith(prefix):
            text = text[len(prefix):]
    return text or None


# ---------------------------------------------------------------------------
# Adapter base class
# ---------------------------------------------------------------------------

class Adapter:
    """Base class implementing the three-tier fallback chain."""

    #: Check name shown in the report
    name = ""
    #: Rule id prefix for every issue this adapter emits
    rule = ""
    #: Pattern whose matches prove the raw output reported findings; when it
    #: has a capture group, the captured integers are summed as the count
    evidence: re.Pattern | None = None
    evidence_message = "{count} findings reported but not parsed (see rawOutput in the JSON report)"
    synthetic_severity = Severity.WARNING

    def __init__(self, root: str | Path | None = None) -> None:
        self.root = root

    # ------------------------------------------------------------------
    # Tiers (override per tool)
    # ------------------------------------------------------------------

    def parse(self, stdout: str, stderr: str = "") -> ParseResult:
        text = stdout.strip()
        if not text:
            return Empty()
        payload = load_json(text)
        if payload is None:
            return TextFallback(self.fallback_text(stdout, stderr))
        schema = self.detect_schema(payload)
        if schema is None:
            logger.debug("%s: unrecognised JSON shape, scanning text", self.name)
            return TextFallback(self.fallback_text(stdout, stderr))
        return Structured(payload, schema)

    def detect_schema(self, payload: Any) -> str | None:
        return None

    def from_structured(self, parsed: Structured) -> list[Issue]:
        return []

    def from_text(self, text: str) -> list[Issue]:
        return []

    def fallback_text(self, stdout: str, stderr: str) -> str:
        return stdout

    def summarize(self, issues: list[Issue]) -> str:
        errors = count_severity(issues, Severity.ERROR)
        warnings = count_severity(issues, Severity.WARNING)
        return f"{errors} errors, {warnings} warnings"

    # ------------------------------------------------------------------
    # Chain
    # ------------------------------------------------------------------

    def normalize(self, stdout: str, stderr: str = "") -> list[Issue]:
        parsed = self.parse(stdout, stderr)
        if isinstance(parsed, Structured):
            logger.debug("%s: structured output (%s)", self.name, parsed.schema)
            return self.from_structured(parsed)

        text = self.fallback_text(stdout, stderr)
        if isinstance(parsed, TextFallback):
            issues = self.from_text(parsed.text)
            if issues:
                return issues
        return self.synthesize(text)

    def synthesize(self, text: str) -> list[Issue]:
        if self.evidence is None:
            return []
        count = sum(_evidence_count(match) for match in self.evidence.finditer(text))
        if count == 0:
            return []
        logger.debug("%s: %d findings in unparsed output", self.name, count)
        return [
            Issue(
                severity=self.synthetic_severity,
                message=self.evidence_message.format(count=count),
                rule=f"{self.rule}/unparsed",
            )
        ]

    def to_result(self, stdout: str, stderr: str = "", duration_ms: int = 0) -> CheckResult:
        issues = self.normalize(stdout, stderr)
        return CheckResult.from_issues(
            name=self.name,
            issues=issues,
            duration_ms=duration_ms,
            summary=self.summarize(issues),
            raw_output=stdout + stderr,
        )

    def path(self, value: Any) -> str | None:
        return relative_path(value, self.root)


def _evidence_count(match: re.Match) -> int:
    """Findings announced by one evidence match: the captured number, else one."""
    if match.re.groups and match.group(1) and match.group(1).isdigit():
        return int(match.group(1))
    return 1
