"""Heuristic source analyzer for TypeScript/React files.

Works on raw text with regular expressions and brace counting, not on a
parse tree, so every figure here is an approximation. ``analyze_source`` is
the single entry point producing a ``FileAnalysis``; a real parser could
replace it without touching the rest of the pipeline.
"""

import logging
import os
import re
from enum import Enum
from pathlib import Path

from code_health.models import CheckResult, FileAnalysis, Issue, Severity, count_severity

logger = logging.getLogger(__name__)

# --------------------------------------------------------------------------- #
# Thresholds
# --------------------------------------------------------------------------- #

FILE_LINES_WARNING = 300
FILE_LINES_ERROR = 500
COMPONENT_MARKERS_WARNING = 6
COMPONENT_MARKERS_ERROR = 10
EFFECT_MARKERS_WARNING = 4
MEMO_MARKERS_WARNING = 6
LONG_FUNCTION_LINES = 80
LONG_FUNCTIONS_REPORTED = 3
DEEP_NESTING_PAIRS = 10

NAME = "Complexity Analysis"

_SOURCE_SUFFIXES = (".ts", ".tsx")
_IGNORED = re.compile(r"node_modules|_generated|\.test\.|\.spec\.|routeTree\.gen")

# --------------------------------------------------------------------------- #
# Structural markers (hook calls)
# --------------------------------------------------------------------------- #

MARKER_KINDS = ("state", "effect", "memo", "callback", "ref", "query", "mutation", "custom")

#: Markers counted towards a component's total; query/mutation are data access
COMPONENT_MARKERS = ("state", "effect", "memo", "callback", "ref", "custom")

_NAMED_MARKERS = {
    "useState": "state",
    "useEffect": "effect",
    "useMemo": "memo",
    "useCallback": "callback",
    "useRef": "ref",
    "useQuery": "query",
    "useMutation": "mutation",
}
_HOOK_RE = re.compile(r"\b(use[A-Z][A-Za-z0-9]*)\s*[<(]")


def count_markers(content: str) -> dict[str, int]:
    """Count hook calls by kind.

    Every match of the generic ``use<Name>(`` pattern lands in exactly one
    bucket, so ``custom`` (generic total minus the named kinds) is never
    negative.
    """
    counts = dict.fromkeys(MARKER_KINDS, 0)
    for match in _HOOK_RE.finditer(content):
        counts[_NAMED_MARKERS.get(match.group(1), "custom")] += 1
    return counts


# --------------------------------------------------------------------------- #
# Function length state machine
# --------------------------------------------------------------------------- #

_FUNCTION_START_RE = re.compile(
    r"function\s+(\w+)"
    r"|const\s+(\w+)\s*=\s*(?:async\s*)?\("
    r"|const\s+(\w+)\s*=\s*(?:React\.)?memo\b"
)


class TrackerState(Enum):
    IDLE = "idle"
    IN_FUNCTION = "in_function"


class FunctionLengthTracker:
    """Track one function body at a time by brace balance.

    Declarations met while a body is open are ignored: a long outer function
    is reported once, and a long function nested in a short one may be missed.
    """

    def __init__(self, limit: int = LONG_FUNCTION_LINES) -> None:
        self.limit = limit
        self.state = TrackerState.IDLE
        self.name = ""
        self.start_line = 0
        self.depth = 0
        self.long_functions: list[tuple[str, int]] = []

    def feed(self, index: int, line: str) -> None:
        """Advance the machine by one line (``index`` is zero-based)."""
        if self.state is TrackerState.IDLE:
            match = _FUNCTION_START_RE.search(line)
            if match is None:
                return
            self.state = TrackerState.IN_FUNCTION
            self.name = next((g for g in match.groups() if g), "anonymous")
            self.start_line = index
            self.depth = 0

        self.depth += line.count("{") - line.count("}")
        if self.depth <= 0 and index > self.start_line:
            length = index - self.start_line
            if length > self.limit:
                self.long_functions.append((self.name, length))
            self.state = TrackerState.IDLE

    def run(self, lines: list[str]) -> list[tuple[str, int]]:
        for index, line in enumerate(lines):
            self.feed(index, line)
        return self.long_functions


def detect_long_functions(lines: list[str], limit: int = LONG_FUNCTION_LINES) -> list[tuple[str, int]]:
    return FunctionLengthTracker(limit).run(lines)


# --------------------------------------------------------------------------- #
# Pattern classification
# --------------------------------------------------------------------------- #

INLINE_ERROR_BOUNDARY = "inline-error-boundary"
MULTIPLE_COMPONENTS = "multiple-components"
DEEP_JSX_NESTING = "deep-jsx-nesting"
MIXED_CONCERNS = "mixed-concerns"

_ERROR_BOUNDARY_RE = re.compile(r"class\s+\w*Error\w*\s+extends\s+(?:React\.)?(?:Pure)?Component\b")
_EXPORTED_COMPONENT_RE = re.compile(
    r"export\s+(?:default\s+)?(?:const|function)\s+[A-Z][A-Za-z0-9]*\s*[=:(<]"
)
_OPEN_TAG = r"<(?:div|Fragment|React\.Fragment)?(?:\s[^<>]*)?>"
_NESTED_TAGS_RE = re.compile(_OPEN_TAG + r"(?=\s*" + _OPEN_TAG + r")")
_TAG_RE = re.compile(r"<\w+[^>]*>")
_MAP_RE = re.compile(r"\.map\s*\(")
_FILTER_RE = re.compile(r"\.filter\s*\(")
_IF_RE = re.compile(r"\bif\s*\(")


def has_mixed_concerns(content: str) -> bool:
    """Markup plus heavy logic: tags AND ((map > 3 AND filter > 2) OR if > 10)."""
    has_markup = _TAG_RE.search(content) is not None
    heavy_logic = (
        len(_MAP_RE.findall(content)) > 3 and len(_FILTER_RE.findall(content)) > 2
    ) or len(_IF_RE.findall(content)) > 10
    return has_markup and heavy_logic


def classify_patterns(content: str) -> frozenset[str]:
    patterns = set()
    if _ERROR_BOUNDARY_RE.search(content) and _FUNCTION_START_RE.search(content):
        patterns.add(INLINE_ERROR_BOUNDARY)
    if len(_EXPORTED_COMPONENT_RE.findall(content)) > 2:
        patterns.add(MULTIPLE_COMPONENTS)
    if len(_NESTED_TAGS_RE.findall(content)) > DEEP_NESTING_PAIRS:
        patterns.add(DEEP_JSX_NESTING)
    if has_mixed_concerns(content):
        patterns.add(MIXED_CONCERNS)
    return frozenset(patterns)


# --------------------------------------------------------------------------- #
# File analysis
# --------------------------------------------------------------------------- #

def split_lines(content: str) -> list[str]:
    """Lines as an editor counts them; a trailing newline adds no line."""
    if not content:
        return []
    lines = content.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def analyze_source(path: str, content: str) -> FileAnalysis:
    lines = split_lines(content)
    return FileAnalysis(
        path=path,
        line_count=len(lines),
        markers=count_markers(content),
        patterns=classify_patterns(content),
        long_functions=tuple(detect_long_functions(lines)),
    )


def analyze_file(file: Path, root: Path) -> FileAnalysis | None:
    """Analyze one file on disk; None when it cannot be read."""
    try:
        content = file.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        logger.debug("Skipping unreadable file %s: %s", file, exc)
        return None
    return analyze_source(_display_path(file, root), content)


def find_source_files(base: Path) -> list[Path]:
    files: list[Path] = []
    for directory, dirnames, filenames in os.walk(base):
        dirnames[:] = sorted(d for d in dirnames if not _IGNORED.search(d))
        for filename in sorted(filenames):
            if filename.endswith(_SOURCE_SUFFIXES) and not _IGNORED.search(filename):
                files.append(Path(directory) / filename)
    return files


def analyze_tree(base: Path, root: Path) -> list[FileAnalysis]:
    analyses = (analyze_file(file, root) for file in find_source_files(base))
    return [analysis for analysis in analyses if analysis is not None]


def _display_path(path: Path, root: Path) -> str:
    try:
        return path.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return path.as_posix()


# --------------------------------------------------------------------------- #
# Issues
# --------------------------------------------------------------------------- #

def file_issues(analysis: FileAnalysis) -> list[Issue]:
    """Translate one file's measurements into issues."""
    issues: list[Issue] = []
    path = analysis.path

    if analysis.line_count >= FILE_LINES_ERROR:
        issues.append(Issue(
            severity=Severity.ERROR,
            file=path,
            message=f"File has {analysis.line_count} lines (max {FILE_LINES_ERROR})",
            rule="complexity/file-size",
            fix="Split into smaller, focused modules. Extract hooks, utilities, and sub-components.",
        ))
    elif analysis.line_count >= FILE_LINES_WARNING:
        issues.append(Issue(
            severity=Severity.WARNING,
            file=path,
            message=f"File has {analysis.line_count} lines (consider splitting at {FILE_LINES_WARNING}+)",
            rule="complexity/file-size",
            fix="Consider extracting reusable logic into hooks or utilities.",
        ))

    if path.endswith(".tsx"):
        issues.extend(_component_issues(analysis))

    if INLINE_ERROR_BOUNDARY in analysis.patterns:
        issues.append(Issue(
            severity=Severity.WARNING,
            file=path,
            message="Inline error boundary class in component file",
            rule="pattern/inline-error-boundary",
            fix="Move error boundary to shared/components/ErrorBoundary.tsx and import it.",
        ))
    if MULTIPLE_COMPONENTS in analysis.patterns:
        issues.append(Issue(
            severity=Severity.INFO,
            file=path,
            message="Multiple exported components in one file",
            rule="pattern/multiple-components",
            fix="Consider splitting each component into its own file for better organization.",
        ))
    for name, length in analysis.long_functions[:LONG_FUNCTIONS_REPORTED]:
        issues.append(Issue(
            severity=Severity.WARNING,
            file=path,
            message=f"Long function: {name} ({length} lines)",
            rule="complexity/long-function",
            fix="Break down into smaller functions. Extract logic into utilities or hooks.",
        ))
    if DEEP_JSX_NESTING in analysis.patterns:
        issues.append(Issue(
            severity=Severity.INFO,
            file=path,
            message="Deeply nested markup",
            rule="pattern/deep-jsx-nesting",
            fix="Extract nested blocks into sub-components.",
        ))
    if MIXED_CONCERNS in analysis.patterns:
        issues.append(Issue(
            severity=Severity.INFO,
            file=path,
            message="File appears to mix business logic with UI rendering",
            rule="pattern/mixed-concerns",
            fix="Extract business logic to hooks/utilities. Keep components focused on rendering.",
        ))
    return issues


def _component_issues(analysis: FileAnalysis) -> list[Issue]:
    markers = analysis.markers
    total = sum(markers.get(kind, 0) for kind in COMPONENT_MARKERS)
    issues: list[Issue] = []

    if total >= COMPONENT_MARKERS_ERROR:
        issues.append(Issue(
            severity=Severity.ERROR,
            file=analysis.path,
            message=(
                f"Component uses {total} hooks (useState: {markers['state']}, "
                f"useEffect: {markers['effect']}, useMemo: {markers['memo']}, "
                f"useCallback: {markers['callback']}, custom: {markers['custom']})"
            ),
            rule="complexity/too-many-hooks",
            fix=(
                "Extract related hooks into a custom hook (e.g., useComponentNameState). "
                "Split component into smaller pieces."
            ),
        ))
    elif total >= COMPONENT_MARKERS_WARNING:
        issues.append(Issue(
            severity=Severity.WARNING,
            file=analysis.path,
            message=f"Component uses {total} hooks - getting complex",
            rule="complexity/too-many-hooks",
            fix="Consider extracting related state and effects into a custom hook.",
        ))

    if markers["effect"] >= EFFECT_MARKERS_WARNING:
        issues.append(Issue(
            severity=Severity.WARNING,
            file=analysis.path,
            message=f"Component has {markers['effect']} useEffect calls - side-effect sprawl",
            rule="complexity/effect-sprawl",
            fix=(
                "Consolidate related effects or extract to custom hooks. "
                "Consider if effects can be replaced with event handlers."
            ),
        ))

    if markers["memo"] + markers["callback"] >= MEMO_MARKERS_WARNING:
        issues.append(Issue(
            severity=Severity.WARNING,
            file=analysis.path,
            message=(
                f"Component has {markers['memo']} useMemo and {markers['callback']} "
                "useCallback - possible over-optimization"
            ),
            rule="complexity/over-memoization",
            fix="Review if all memos are necessary. The React compiler handles most memoization automatically.",
        ))
    return issues


def complexity_result(analyses: list[FileAnalysis], duration_ms: int) -> CheckResult:
    """Fold per-file analyses into the complexity check result."""
    issues = [issue for analysis in analyses for issue in file_issues(analysis)]
    large_files = sum(
        1 for i in issues if i.rule == "complexity/file-size" and i.severity is Severity.ERROR
    )
    complex_components = sum(
        1 for i in issues if i.rule == "complexity/too-many-hooks" and i.severity is Severity.ERROR
    )
    warnings = count_severity(issues, Severity.WARNING)
    return CheckResult.from_issues(
        name=NAME,
        issues=issues,
        duration_ms=duration_ms,
        summary=f"{large_files} oversized files, {complex_components} complex components, {warnings} warnings",
    )
