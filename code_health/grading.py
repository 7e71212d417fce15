"""Aggregation, grading and priority action items.

Functions:
    grade(errors, warnings)              -> Grade
    build_report(checks, duration_ms)    -> HealthReport
    action_items(checks)                 -> list[ActionItem]
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone

from code_health.models import CheckResult, Grade, HealthReport, Issue, Severity, Totals

NO_CRITICAL_ISSUES = "No critical issues found! Keep up the good work."


# ---------------------------------------------------------------------------
# Grade
# ---------------------------------------------------------------------------

def grade(errors: int, warnings: int) -> Grade:
    """Letter grade from error/warning totals; first matching rule wins.

    Info findings never affect the grade.
    """
    if errors == 0 and warnings == 0:
        return Grade.A
    if errors == 0 and warnings <= 5:
        return Grade.B
    if errors <= 2 and warnings <= 15:
        return Grade.C
    if errors <= 5:
        return Grade.D
    return Grade.F


def build_report(checks: Iterable[CheckResult], duration_ms: int,
                 timestamp: str | None = None) -> HealthReport:
    checks = tuple(checks)
    totals = Totals.of(checks)
    return HealthReport(
        timestamp=timestamp or datetime.now(timezone.utc).isoformat(),
        duration_ms=max(0, int(duration_ms)),
        checks=checks,
        totals=totals,
        grade=grade(totals.errors, totals.warnings),
    )


# ---------------------------------------------------------------------------
# Priority action items
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ActionItem:
    number: int | None
    icon: str
    title: str
    details: tuple[str, ...] = ()


# (icon, title, details) before numbering
_Draft = tuple[str, str, tuple[str, ...]]


def _matching(issues: list[Issue], predicate: Callable[[Issue], bool]) -> list[Issue]:
    return [issue for issue in issues if predicate(issue)]


def _is(rule: str, severity: Severity | None = None) -> Callable[[Issue], bool]:
    def predicate(issue: Issue) -> bool:
        return issue.rule == rule and (severity is None or issue.severity is severity)
    return predicate


def _complexity(issues: list[Issue]) -> list[_Draft]:
    drafts: list[_Draft] = []
    large = _matching(issues, _is("complexity/file-size", Severity.ERROR))
    if large:
        drafts.append((
            "🔴",
            f"Split {len(large)} oversized file(s) - These are too large to maintain",
            tuple(f"`{i.file}` - {i.fix or 'Split into smaller modules'}" for i in large[:5]),
        ))
    complex_components = _matching(issues, _is("complexity/too-many-hooks", Severity.ERROR))
    if complex_components:
        details: list[str] = []
        for issue in complex_components[:3]:
            details.append(f"`{issue.file}`")
            details.append(f"  - {issue.message}")
            if issue.fix:
                details.append(f"  - 💡 {issue.fix}")
        drafts.append((
            "🔴",
            f"Simplify {len(complex_components)} complex component(s) - "
            "Too many hooks indicate the component is doing too much",
            tuple(details),
        ))
    return drafts


def _structure(issues: list[Issue]) -> list[_Draft]:
    crowded = _matching(issues, _is("structure/crowded-folder"))
    if not crowded:
        return []
    return [(
        "📁",
        f"Organize {len(crowded)} crowded folder(s) - Too many files in one place",
        tuple(f"`{i.file}` - {i.fix or 'Split into subfolders'}" for i in crowded[:3]),
    )]


def _architecture(issues: list[Issue]) -> list[_Draft]:
    violations = _matching(
        issues,
        lambda i: (i.rule or "").startswith("architecture/") and i.severity is Severity.ERROR,
    )
    if not violations:
        return []
    details: list[str] = []
    for issue in violations[:3]:
        details.append(f"`{issue.file}` - {issue.message}")
        if issue.fix:
            details.append(f"  - 💡 {issue.fix}")
    return [(
        "🏗️",
        f"Fix {len(violations)} architecture violation(s) - Clean module boundaries",
        tuple(details),
    )]


def _duplicates(issues: list[Issue]) -> list[_Draft]:
    dupes = _matching(
        issues,
        lambda i: (i.rule or "").startswith("jscpd/") and i.severity is Severity.WARNING,
    )
    if not dupes:
        return []
    return [(
        "📋",
        f"Consolidate {len(dupes)} duplicate code block(s) - DRY principle",
        ("Extract shared logic into utilities or shared components",),
    )]


def _dead_code(issues: list[Issue]) -> list[_Draft]:
    drafts: list[_Draft] = []
    unused_files = _matching(issues, _is("knip/unused-file"))
    if unused_files:
        drafts.append((
            "🗑️",
            f"Delete {len(unused_files)} unused file(s) - Dead code",
            tuple(f"`{i.file}`" for i in unused_files[:5]),
        ))
    unused_exports = _matching(issues, lambda i: "unused-export" in (i.rule or ""))
    if unused_exports:
        drafts.append((
            "🧹",
            f"Clean up {len(unused_exports)} unused export(s) - Remove or use them",
            (),
        ))
    return drafts


def _circular(issues: list[Issue]) -> list[_Draft]:
    cycles = _matching(issues, lambda i: (i.rule or "").startswith("madge/circular"))
    if not cycles:
        return []
    return [(
        "🔄",
        f"Fix {len(cycles)} circular dependenc{'y' if len(cycles) == 1 else 'ies'} - "
        "These can cause bundling issues",
        tuple(i.message.removeprefix("Circular: ") for i in cycles[:3]),
    )]


#: Fixed category order; not sorted by count
_CATEGORIES = (_complexity, _structure, _architecture, _duplicates, _dead_code, _circular)


def action_items(checks: Iterable[CheckResult]) -> list[ActionItem]:
    """Numbered, deterministically ordered fixes; one placeholder item if none."""
    issues = [issue for check in checks for issue in check.issues]
    items: list[ActionItem] = []
    for category in _CATEGORIES:
        for icon, title, details in category(issues):
            items.append(ActionItem(len(items) + 1, icon, title, details))
    if not items:
        items.append(ActionItem(None, "🎉", NO_CRITICAL_ISSUES))
    return items
