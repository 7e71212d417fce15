"""Tests for code_health/grading.py"""

import pytest

from code_health.grading import NO_CRITICAL_ISSUES, ActionItem, action_items, build_report, grade
from code_health.models import CheckResult, Grade, Issue, Severity, skipped


def _check(name: str, issues: list[Issue]) -> CheckResult:
    return CheckResult.from_issues(name, issues, 0, "")


def _many(severity: Severity, count: int, **kwargs) -> list[Issue]:
    return [Issue(severity, f"m{n}", **kwargs) for n in range(count)]


# ---------------------------------------------------------------------------
# grade()
# ---------------------------------------------------------------------------

@pytest.mark.parametrize("errors,warnings,expected", [
    (0, 0, Grade.A),
    (0, 1, Grade.B),
    (0, 5, Grade.B),
    (0, 6, Grade.C),
    (2, 15, Grade.C),
    (1, 0, Grade.C),
    (2, 16, Grade.D),
    (3, 0, Grade.D),
    (5, 100, Grade.D),
    (6, 0, Grade.F),
    (6, 20, Grade.F),
])
def test_grade_table(errors, warnings, expected):
    assert grade(errors, warnings) is expected


def test_grade_never_improves_with_more_findings():
    order = [Grade.A, Grade.B, Grade.C, Grade.D, Grade.F]
    for errors in range(9):
        for warnings in range(25):
            current = order.index(grade(errors, warnings))
            assert order.index(grade(errors + 1, warnings)) >= current
            assert order.index(grade(errors, warnings + 1)) >= current


# ---------------------------------------------------------------------------
# build_report()
# ---------------------------------------------------------------------------

def test_clean_run_is_grade_a():
    checks = [_check("Linting (oxlint)", []), skipped("Duplicate Code (jscpd)", "Skipped (--quick mode)")]
    report = build_report(checks, 10)
    assert report.grade is Grade.A
    assert report.exit_code == 0
    assert action_items(report.checks) == [ActionItem(None, "🎉", NO_CRITICAL_ISSUES)]


def test_errors_and_warnings_grade_f():
    checks = [
        _check("TypeScript Types", _many(Severity.ERROR, 6)),
        _check("Linting (oxlint)", _many(Severity.WARNING, 20)),
    ]
    report = build_report(checks, 10)
    assert report.grade is Grade.F
    assert report.exit_code == 1


def test_totals_equal_sum_over_checks():
    checks = [
        _check("a", _many(Severity.ERROR, 2) + _many(Severity.INFO, 4)),
        _check("b", _many(Severity.WARNING, 3)),
        skipped("c", "Config not found", issues=_many(Severity.INFO, 1)),
    ]
    report = build_report(checks, 0)
    assert report.totals.errors == sum(c.count(Severity.ERROR) for c in checks)
    assert report.totals.warnings == 3
    assert report.totals.infos == 5


def test_infos_do_not_affect_grade():
    report = build_report([_check("a", _many(Severity.INFO, 50))], 0)
    assert report.grade is Grade.A


def test_timestamp_defaults_to_now():
    assert build_report([], 0).timestamp.endswith("+00:00")
    assert build_report([], 0, timestamp="t").timestamp == "t"


# ---------------------------------------------------------------------------
# action_items()
# ---------------------------------------------------------------------------

def test_action_items_follow_category_order():
    checks = [
        _check("Dependency Graph (madge)", [
            Issue(Severity.ERROR, "Circular: a.ts > b.ts", rule="madge/circular"),
        ]),
        _check("Dead Code (knip)", [
            Issue(Severity.WARNING, "Unused file", file="old.ts", rule="knip/unused-file"),
            Issue(Severity.INFO, "Unused export: x", file="a.ts", rule="knip/unused-export"),
        ]),
        _check("Duplicate Code (jscpd)", [
            Issue(Severity.WARNING, "dup", file="a.ts", rule="jscpd/duplicate"),
            Issue(Severity.INFO, "stats", rule="jscpd/stats"),
        ]),
        _check("Complexity Analysis", [
            Issue(Severity.ERROR, "File has 600 lines (max 500)", file="big.ts",
                  rule="complexity/file-size", fix="Split it"),
        ]),
    ]
    items = action_items(checks)
    assert [item.number for item in items] == [1, 2, 3, 4, 5]
    assert [item.icon for item in items] == ["🔴", "📋", "🗑️", "🧹", "🔄"]
    assert items[0].title.startswith("Split 1 oversized file(s)")
    assert items[0].details == ("`big.ts` - Split it",)
    assert items[1].title.startswith("Consolidate 1 duplicate code block(s)")
    assert items[4].title.startswith("Fix 1 circular dependency")
    assert items[4].details == ("a.ts > b.ts",)


def test_unparsed_circular_count_still_gets_an_item():
    checks = [_check("Dependency Graph (madge)", [
        Issue(Severity.ERROR, "Found 2 circular dependencies", rule="madge/circular/unparsed"),
    ])]
    (item,) = action_items(checks)
    assert item.icon == "🔄"


def test_architecture_and_structure_items():
    checks = [
        _check("Architecture Boundaries", [
            Issue(Severity.ERROR, "no-cross-feature: imports b.ts", file="a.ts",
                  rule="architecture/no-cross-feature", fix="Move it"),
            Issue(Severity.WARNING, "soft", file="c.ts", rule="architecture/soft"),
        ]),
        _check("Structure Analysis", [
            Issue(Severity.WARNING, "Folder has 16 files", file="src/x",
                  rule="structure/crowded-folder"),
        ]),
    ]
    items = action_items(checks)
    assert [item.icon for item in items] == ["📁", "🏗️"]
    assert items[1].title.startswith("Fix 1 architecture violation(s)")
    assert items[1].details == ("`a.ts` - no-cross-feature: imports b.ts", "  - 💡 Move it")
