"""Report serialization: markdown for people, compact JSON for machines.

Compact issue format (one string per issue)::

    E|src/a.tsx:42|File has 600 lines (max 500)|complexity/file-size
    W||Found 3 code duplications|jscpd/unparsed
    I|:7|message with a known line but no file|

The message may itself contain ``|``; the file and rule id may not.
"""

import json
from pathlib import Path

from code_health.grading import action_items
from code_health.models import (
    CheckResult,
    Grade,
    HealthReport,
    Issue,
    Severity,
    Status,
    Totals,
)

MARKDOWN_FILE = "code-health-report.md"
JSON_FILE = "code-health-report.json"

MAX_LISTED = 20
MAX_INFO_LISTED = 10

STATUS_GLYPHS = {
    Status.PASS: "✅",
    Status.WARN: "⚠️",
    Status.FAIL: "❌",
    Status.SKIP: "⏭️",
}


def format_duration(ms: int) -> str:
    if ms < 1000:
        return f"{ms}ms"
    return f"{ms / 1000:.1f}s"


# --------------------------------------------------------------------------- #
# Compact JSON
# --------------------------------------------------------------------------- #

def encode_issue(issue: Issue) -> str:
    location = issue.file or ""
    if issue.line:
        location = f"{location}:{issue.line}"
    return f"{issue.severity.letter}|{location}|{issue.message}|{issue.rule or ''}"


def decode_issue(text: str) -> Issue:
    """Inverse of ``encode_issue``; raises ValueError on malformed input."""
    letter, location, rest = text.split("|", 2)
    message, rule = rest.rsplit("|", 1)
    file, sep, line = location.rpartition(":")
    if sep and line.isdigit():
        return Issue(
            severity=Severity.from_letter(letter),
            file=file or None,
            line=int(line),
            message=message,
            rule=rule or None,
        )
    return Issue(
        severity=Severity.from_letter(letter),
        file=location or None,
        message=message,
        rule=rule or None,
    )


def to_compact(report: HealthReport) -> dict:
    return {
        "ts": report.timestamp,
        "dur": report.duration_ms,
        "checks": [
            {
                "n": check.name,
                "s": check.status.value,
                "d": check.duration_ms,
                "i": [encode_issue(issue) for issue in check.issues],
                "sum": check.summary,
            }
            for check in report.checks
        ],
        "totals": {
            "e": report.totals.errors,
            "w": report.totals.warnings,
            "i": report.totals.infos,
        },
        "grade": report.grade.value,
    }


def from_compact(data: dict) -> HealthReport:
    """Rebuild a report from ``to_compact`` output (suggested fixes are not kept)."""
    checks = tuple(
        CheckResult(
            name=check["n"],
            status=Status(check["s"]),
            duration_ms=check["d"],
            issues=tuple(decode_issue(text) for text in check["i"]),
            summary=check["sum"],
        )
        for check in data["checks"]
    )
    totals = data["totals"]
    return HealthReport(
        timestamp=data["ts"],
        duration_ms=data["dur"],
        checks=checks,
        totals=Totals(errors=totals["e"], warnings=totals["w"], infos=totals["i"]),
        grade=Grade(data["grade"]),
    )


def render_json(report: HealthReport) -> str:
    return json.dumps(to_compact(report), ensure_ascii=False, separators=(",", ":"))


def decode_report(text: str) -> HealthReport:
    return from_compact(json.loads(text))


# --------------------------------------------------------------------------- #
# Markdown
# --------------------------------------------------------------------------- #

def _issue_line(issue: Issue, with_rule: bool = True) -> str:
    location = f"`{issue.location}` " if issue.location else ""
    rule = f" [{issue.rule}]" if with_rule and issue.rule else ""
    return f"- {location}{issue.message}{rule}"


def _capped_section(title: str, noun: str, issues: list[Issue]) -> list[str]:
    lines = [f"### {title}", ""]
    for issue in issues[:MAX_LISTED]:
        lines.append(_issue_line(issue))
        if issue.fix:
            lines.append(f"  - 💡 **Fix:** {issue.fix}")
    if len(issues) > MAX_LISTED:
        lines.append(f"- ... and {len(issues) - MAX_LISTED} more {noun}")
    lines.append("")
    return lines


def _check_section(check: CheckResult) -> list[str]:
    lines = [f"## {STATUS_GLYPHS[check.status]} {check.name}", ""]
    errors = [i for i in check.issues if i.severity is Severity.ERROR]
    warnings = [i for i in check.issues if i.severity is Severity.WARNING]
    infos = [i for i in check.issues if i.severity is Severity.INFO]

    if errors:
        lines += _capped_section("❌ Errors", "errors", errors)
    if warnings:
        lines += _capped_section("⚠️ Warnings", "warnings", warnings)
    if infos and len(infos) <= MAX_INFO_LISTED:
        lines += ["### ℹ️ Info", ""]
        for issue in infos:
            lines.append(_issue_line(issue, with_rule=False))
            if issue.fix:
                lines.append(f"  - 💡 {issue.fix}")
        lines.append("")
    elif infos:
        lines += [f"### ℹ️ Info ({len(infos)} items - see JSON for full list)", ""]
    return lines


def render_markdown(report: HealthReport, json_path: str = f"logs/{JSON_FILE}") -> str:
    lines = [
        "# 🏥 Code Health Report",
        "",
        f"**Generated:** {report.timestamp}",
        f"**Duration:** {format_duration(report.duration_ms)}",
        f"**Grade:** {report.grade.value}",
        "",
        "## 📊 Summary",
        "",
        "| Check | Status | Duration | Summary |",
        "|-------|--------|----------|---------|",
    ]
    for check in report.checks:
        lines.append(
            f"| {check.name} | {STATUS_GLYPHS[check.status]} {check.status.value} "
            f"| {format_duration(check.duration_ms)} | {check.summary} |"
        )

    lines += [
        "",
        "## 📈 Totals",
        "",
        f"- **Errors:** {report.totals.errors}",
        f"- **Warnings:** {report.totals.warnings}",
        f"- **Info:** {report.totals.infos}",
        "",
    ]

    for check in report.checks:
        if check.issues:
            lines += _check_section(check)

    lines += [
        "## 🎯 Priority Action Items",
        "",
        "Based on the analysis, here are the most impactful fixes:",
        "",
    ]
    for item in action_items(report.checks):
        if item.number is None:
            lines += [f"{item.icon} **{item.title}**", ""]
            continue
        lines.append(f"{item.number}. **{item.icon} {item.title}**")
        lines += [f"   - {detail}" if not detail.startswith("  ") else f"   {detail}"
                  for detail in item.details]
        lines.append("")

    lines += ["---", f"*Full JSON report available at: {json_path}*"]
    return "\n".join(lines)


def write_reports(report: HealthReport, directory: Path) -> tuple[Path, Path]:
    """Write (overwrite) both report files into *directory*.

    Raises:
        OSError: if the directory or either file cannot be written.
    """
    directory.mkdir(parents=True, exist_ok=True)
    markdown_path = directory / MARKDOWN_FILE
    json_path = directory / JSON_FILE
    markdown_path.write_text(render_markdown(report, json_path.as_posix()), encoding="utf-8")
    json_path.write_text(render_json(report), encoding="utf-8")
    return markdown_path, json_path
