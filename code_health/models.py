"""Data models for code health reports.

Contains the dataclasses every check produces and the report consumes:
    - Issue            one normalized finding
    - CheckResult      one named analysis pass
    - Totals / HealthReport
    - FileAnalysis     intermediate output of the source analyzer
    - FolderAnalysis   intermediate output of the structure analyzer
"""

from dataclasses import dataclass, field
from enum import Enum


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------

class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"

    @property
    def letter(self) -> str:
        """Single-letter code used by the compact JSON report."""
        return self.value[0].upper()

    @classmethod
    def from_letter(cls, letter: str) -> "Severity":
        for severity in cls:
            if severity.letter == letter:
                return severity
        raise ValueError(f"Unknown severity letter: {letter!r}")


class Status(str, Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"
    SKIP = "skip"


class Grade(str, Enum):
    A = "A"
    B = "B"
    C = "C"
    D = "D"
    F = "F"


# ---------------------------------------------------------------------------
# Issues and check results
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Issue:
    severity: Severity
    message: str
    file: str | None = None
    line: int | None = None
    rule: str | None = None
    fix: str | None = None

    @property
    def location(self) -> str:
        """``file:line`` (or just ``file``), empty when the issue has no file."""
        if not self.file:
            return ""
        return f"{self.file}:{self.line}" if self.line else self.file


def derive_status(issues: list[Issue] | tuple[Issue, ...]) -> Status:
    """Fail on any error, warn on any warning, pass otherwise."""
    severities = {issue.severity for issue in issues}
    if Severity.ERROR in severities:
        return Status.FAIL
    if Severity.WARNING in severities:
        return Status.WARN
    return Status.PASS


def count_severity(issues, severity: Severity) -> int:
    return sum(1 for issue in issues if issue.severity is severity)


@dataclass(frozen=True)
class CheckResult:
    name: str
    status: Status
    duration_ms: int
    issues: tuple[Issue, ...] = ()
    summary: str = ""
    raw_output: str | None = None

    @classmethod
    def from_issues(
        cls,
        name: str,
        issues: list[Issue],
        duration_ms: int,
        summary: str,
        raw_output: str | None = None,
    ) -> "CheckResult":
        """Build a result whose status is derived from *issues*."""
        return cls(
            name=name,
            status=derive_status(issues),
            duration_ms=max(0, int(duration_ms)),
            issues=tuple(issues),
            summary=summary,
            raw_output=raw_output,
        )

    def count(self, severity: Severity) -> int:
        return count_severity(self.issues, severity)


def skipped(name: str, reason: str, issues: list[Issue] | None = None,
            duration_ms: int = 0) -> CheckResult:
    """Return a ``Skip`` result for a check that was deliberately not run."""
    return CheckResult(
        name=name,
        status=Status.SKIP,
        duration_ms=duration_ms,
        issues=tuple(issues or ()),
        summary=reason,
    )


@dataclass(frozen=True)
class Totals:
    errors: int = 0
    warnings: int = 0
    infos: int = 0

    @classmethod
    def of(cls, checks) -> "Totals":
        """Elementwise severity sum over every issue of every check."""
        issues = [issue for check in checks for issue in check.issues]
        return cls(
            errors=count_severity(issues, Severity.ERROR),
            warnings=count_severity(issues, Severity.WARNING),
            infos=count_severity(issues, Severity.INFO),
        )


@dataclass(frozen=True)
class HealthReport:
    timestamp: str
    duration_ms: int
    checks: tuple[CheckResult, ...]
    totals: Totals
    grade: Grade

    @property
    def exit_code(self) -> int:
        return 1 if self.totals.errors > 0 else 0


# ---------------------------------------------------------------------------
# Analyzer intermediates (never persisted)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FileAnalysis:
    path: str
    line_count: int
    markers: dict[str, int] = field(default_factory=dict)
    patterns: frozenset[str] = frozenset()
    long_functions: tuple[tuple[str, int], ...] = ()


@dataclass(frozen=True)
class FolderAnalysis:
    path: str
    depth: int
    file_count: int
    has_index_file: bool = False
    mixed_content: bool = False
