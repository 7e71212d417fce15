"""Duplicate code adapter for jscpd's console reporter.

jscpd prints one block per clone::

    Clone found (tsx):
     - apps/web/a.tsx [10:1 - 42:5] (32 lines, 210 tokens)
       apps/web/b.tsx [3:1 - 35:5]

The stream is ANSI-coloured and may interleave log lines, so the contiguous
block pattern is tried first and a per-block scan takes over when it does not
account for every ``Clone found`` header.
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from code_health.adapters.base import (
    Adapter,
    Empty,
    ParseResult,
    Structured,
    TextFallback,
    load_json,
    strip_ansi,
)
from code_health.models import Issue, Severity, count_severity

logger = logging.getLogger(__name__)

_HEADER = "Clone found"
_SPAN = r"\[(\d+):\d+\s*-\s*(\d+):\d+\]"

_BLOCK_RE = re.compile(
    r"Clone found \((\w+)\):\s*\n"
    r"\s*-\s*(.+?)\s*" + _SPAN + r"\s*\((\d+)\s*lines[^)]*\)\s*\n"
    r"\s*(.+?)\s*" + _SPAN
)
_FIRST_RE = re.compile(r"-\s*(.+?)\s*" + _SPAN + r"\s*\((\d+)\s*lines")
_SECOND_RE = re.compile(r"^\s*(?!-\s)(\S.*?)\s*" + _SPAN)


@dataclass(frozen=True)
class Clone:
    first: str
    first_start: int
    first_end: int
    second: str
    second_start: int
    second_end: int
    lines: int


class JscpdAdapter(Adapter):
    name = "Duplicate Code (jscpd)"
    rule = "jscpd"
    evidence = re.compile(_HEADER)
    evidence_message = "Found {count} code duplications (see rawOutput in the JSON report)"

    def fallback_text(self, stdout: str, stderr: str) -> str:
        return strip_ansi(stdout + stderr)

    def parse(self, stdout: str, stderr: str = "") -> ParseResult:
        text = self.fallback_text(stdout, stderr)
        headers = text.count(_HEADER)
        if headers == 0:
            return Empty()
        clones = [
            Clone(
                first=m.group(2), first_start=int(m.group(3)), first_end=int(m.group(4)),
                second=m.group(6), second_start=int(m.group(7)), second_end=int(m.group(8)),
                lines=int(m.group(5)),
            )
            for m in _BLOCK_RE.finditer(text)
        ]
        if len(clones) == headers:
            return Structured(clones, "console")
        logger.debug("jscpd: %d of %d blocks contiguous, scanning per block", len(clones), headers)
        return TextFallback(text)

    def from_structured(self, parsed: Structured) -> list[Issue]:
        return [self._issue(clone) for clone in parsed.payload]

    def from_text(self, text: str) -> list[Issue]:
        clones: list[Clone] = []
        for block in text.split(_HEADER)[1:]:
            clone = _scan_block(block.splitlines()[1:])
            if clone is not None:
                clones.append(clone)
        return [self._issue(clone) for clone in clones]

    def _issue(self, clone: Clone) -> Issue:
        first = self.path(clone.first)
        second = self.path(clone.second)
        return Issue(
            severity=Severity.WARNING,
            file=first,
            line=clone.first_start,
            message=(
                f"Duplicate code ({clone.lines} lines): {first} L{clone.first_start}-{clone.first_end}"
                f" also in {second} L{clone.second_start}-{clone.second_end}"
            ),
            rule="jscpd/duplicate",
        )

    def statistics(self, report_text: str) -> list[Issue]:
        """Overall duplication figure from jscpd's JSON report, if it has one."""
        report = load_json(report_text)
        stats = report.get("statistics") if isinstance(report, Mapping) else None
        total = stats.get("total") if isinstance(stats, Mapping) else None
        if not isinstance(total, Mapping):
            return []
        percentage = _number(total.get("percentage"))
        if not percentage:
            return []
        clones = total.get("clones", "?")
        duplicated = total.get("duplicatedLines", "?")
        return [Issue(
            severity=Severity.INFO,
            message=(
                f"Overall duplication: {percentage:.1f}% of codebase "
                f"({clones} clones, {duplicated} duplicated lines)"
            ),
            rule="jscpd/stats",
        )]

    def summarize(self, issues: list[Issue]) -> str:
        return f"{count_severity(issues, Severity.WARNING)} duplicate blocks found"


def _scan_block(lines: list[str]) -> Clone | None:
    """Find the two file spans of one block, skipping unrelated log lines."""
    first = None
    for line in lines:
        if first is None:
            first = _FIRST_RE.search(line)
            continue
        second = _SECOND_RE.match(line)
        if second:
            return Clone(
                first=first.group(1).strip(),
                first_start=int(first.group(2)),
                first_end=int(first.group(3)),
                second=second.group(1).strip(),
                second_start=int(second.group(2)),
                second_end=int(second.group(3)),
                lines=int(first.group(4)),
            )
    return None


def _number(value: Any) -> float | None:
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
