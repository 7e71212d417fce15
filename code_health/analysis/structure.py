"""Folder structure analyzer.

Walks the source tree and measures every folder below the base path: its
depth, how many files it holds directly, and whether it mixes components
with hooks or utilities without any sub-grouping.
"""

import logging
import os
from pathlib import Path

from code_health.models import CheckResult, FolderAnalysis, Issue, Severity, count_severity

logger = logging.getLogger(__name__)

FOLDER_DEPTH_WARNING = 5
FOLDER_DEPTH_ERROR = 7
FILES_PER_FOLDER_WARNING = 15
FILES_PER_FOLDER_ERROR = 25
MIXED_CONTENT_MIN_FILES = 5
FEATURE_COMPONENTS_LIMIT = 20

NAME = "Structure Analysis"

IGNORED_DIRS = frozenset({"node_modules", "_generated", ".git"})
_INDEX_FILES = frozenset({"index.ts", "index.tsx"})
_UTILITY_MARKERS = ("util", "helper", "service")


def classify_folder(path: str, depth: int, files: list[str], subdirs: list[str]) -> FolderAnalysis:
    """Measure one folder from its immediate file and subdirectory names."""
    components = [f for f in files if f.endswith(".tsx")]
    modules = [f for f in files if f.endswith(".ts") and not f.endswith(".d.ts")]
    has_utils = any(marker in f for f in modules for marker in _UTILITY_MARKERS)
    has_hooks = any(f.startswith("use") for f in modules)
    mixed = (
        bool(components)
        and (has_utils or has_hooks)
        and not subdirs
        and len(files) > MIXED_CONTENT_MIN_FILES
    )
    return FolderAnalysis(
        path=path,
        depth=depth,
        file_count=len(files),
        has_index_file=any(f in _INDEX_FILES for f in files),
        mixed_content=mixed,
    )


def walk_folders(base: Path, root: Path | None = None) -> list[FolderAnalysis]:
    """One analysis per folder below *base*; depth counts path parts from *base*."""
    root = root or base
    folders: list[FolderAnalysis] = []
    for directory, dirnames, filenames in os.walk(base, onerror=_log_walk_error):
        current = Path(directory)
        subdirs = sorted(dirnames)
        dirnames[:] = [d for d in subdirs if d not in IGNORED_DIRS]
        relative = current.relative_to(base)
        if not relative.parts:
            continue
        folders.append(classify_folder(
            path=_display_path(current, root),
            depth=len(relative.parts),
            files=sorted(filenames),
            subdirs=subdirs,
        ))
    return folders


def _log_walk_error(exc: OSError) -> None:
    logger.debug("Skipping unreadable directory: %s", exc)


def _display_path(path: Path, root: Path) -> str:
    try:
        return path.resolve().relative_to(root.resolve()).as_posix()
    except ValueError:
        return path.as_posix()


# --------------------------------------------------------------------------- #
# Issues
# --------------------------------------------------------------------------- #

def folder_issues(folder: FolderAnalysis) -> list[Issue]:
    issues: list[Issue] = []

    if folder.depth >= FOLDER_DEPTH_ERROR:
        issues.append(Issue(
            severity=Severity.ERROR,
            file=folder.path,
            message=f"Folder depth {folder.depth} exceeds maximum ({FOLDER_DEPTH_ERROR})",
            rule="structure/deep-nesting",
            fix="Flatten the structure. Consider co-locating related files or using a flatter hierarchy.",
        ))
    elif folder.depth >= FOLDER_DEPTH_WARNING:
        issues.append(Issue(
            severity=Severity.WARNING,
            file=folder.path,
            message=f"Folder depth {folder.depth} is getting deep",
            rule="structure/deep-nesting",
            fix="Consider flattening nested folders.",
        ))

    if folder.file_count >= FILES_PER_FOLDER_ERROR:
        issues.append(Issue(
            severity=Severity.ERROR,
            file=folder.path,
            message=f"Folder has {folder.file_count} files (max {FILES_PER_FOLDER_ERROR})",
            rule="structure/crowded-folder",
            fix="Split into subfolders by domain or feature (e.g., /messages, /input, /sidebar).",
        ))
    elif folder.file_count >= FILES_PER_FOLDER_WARNING:
        issues.append(Issue(
            severity=Severity.WARNING,
            file=folder.path,
            message=f"Folder has {folder.file_count} files - consider organizing",
            rule="structure/crowded-folder",
            fix="Consider grouping related files into subfolders.",
        ))

    if folder.mixed_content:
        issues.append(Issue(
            severity=Severity.INFO,
            file=folder.path,
            message="Folder mixes components, hooks, and utilities without subfolders",
            rule="structure/mixed-content",
            fix="Organize into /components, /hooks, /utils subfolders or co-locate with features.",
        ))
    return issues


def feature_issues(base: Path, root: Path | None = None) -> list[Issue]:
    """Flag ``features/<name>/components`` folders holding too many components."""
    root = root or base
    features = base / "features"
    if not features.is_dir():
        return []

    try:
        feature_dirs = sorted(p for p in features.iterdir() if p.is_dir())
    except OSError as exc:
        logger.debug("Skipping features scan of %s: %s", features, exc)
        return []

    issues: list[Issue] = []
    for feature in feature_dirs:
        components = feature / "components"
        if not components.is_dir():
            continue
        try:
            count = sum(1 for p in components.iterdir() if p.name.endswith(".tsx"))
        except OSError as exc:
            logger.debug("Skipping %s: %s", components, exc)
            continue
        if count > FEATURE_COMPONENTS_LIMIT:
            issues.append(Issue(
                severity=Severity.WARNING,
                file=_display_path(components, root),
                message=f"Feature has {count} components in one folder",
                rule="structure/feature-organization",
                fix=(
                    "Group related components: e.g., /messages, /input, /sidebar within "
                    f"features/{feature.name}/components"
                ),
            ))
    return issues


def structure_result(folders: list[FolderAnalysis], extra: list[Issue],
                     duration_ms: int) -> CheckResult:
    """Fold folder analyses (plus feature findings) into one check result."""
    issues = [issue for folder in folders for issue in folder_issues(folder)]
    issues.extend(extra)
    deep = sum(1 for f in folders if f.depth >= FOLDER_DEPTH_ERROR)
    crowded = sum(1 for f in folders if f.file_count >= FILES_PER_FOLDER_ERROR)
    warnings = count_severity(issues, Severity.WARNING)
    return CheckResult.from_issues(
        name=NAME,
        issues=issues,
        duration_ms=duration_ms,
        summary=f"{deep} deep folders, {crowded} crowded folders, {warnings} warnings",
    )
