"""Configuration loading and validation.

Usage:
    config = load("code-health.yaml")        # raises ConfigError on bad config
    config = load(None)                      # built-in defaults
    generate_template("code-health.yaml")    # writes example file to disk
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

import yaml

DEFAULT_CONFIG_FILE = "code-health.yaml"


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ConfigError(Exception):
    """Raised when the configuration is missing or invalid."""


# ---------------------------------------------------------------------------
# Config dataclass
# ---------------------------------------------------------------------------

@dataclass
class Config:
    root: str = "."
    source: str = "apps/web/src"
    report_dir: str = "logs"
    launcher: list[str] = field(default_factory=lambda: ["bunx"])
    timeout: float | None = None
    duplicate_targets: list[str] = field(default_factory=lambda: ["./packages", "./apps"])
    duplicate_min_lines: int = 10
    duplicate_stats_file: str = "report/jscpd-report.json"
    dependency_target: str = "./packages/backend/convex"
    architecture_config: str = ".dependency-cruiser.cjs"
    architecture_target: str = "./apps/web/src"

    @property
    def root_path(self) -> Path:
        return Path(self.root)

    @property
    def source_path(self) -> Path:
        return self.root_path / self.source

    @property
    def report_path(self) -> Path:
        return self.root_path / self.report_dir


# ---------------------------------------------------------------------------
# Loader
# ---------------------------------------------------------------------------

def load(config_path: str | None = None) -> Config:
    """Load and validate configuration from a YAML file.

    With no path, the built-in defaults are used. Environment variables
    CODE_HEALTH_SOURCE and CODE_HEALTH_REPORT_DIR override file values.

    Raises:
        ConfigError: if the file is missing, malformed, or fields are invalid.
    """
    raw: dict = {}
    if config_path is not None:
        raw = _read_yaml(config_path)

    paths = _section(raw, "paths")
    tools = _section(raw, "tools")
    duplicates = _section(raw, "duplicates")
    dependencies = _section(raw, "dependencies")
    architecture = _section(raw, "architecture")

    defaults = Config()
    config = Config(
        root=str(paths.get("root", defaults.root)),
        source=os.environ.get("CODE_HEALTH_SOURCE") or str(paths.get("source", defaults.source)),
        report_dir=os.environ.get("CODE_HEALTH_REPORT_DIR")
        or str(paths.get("report_dir", defaults.report_dir)),
        launcher=tools.get("launcher", defaults.launcher),
        timeout=tools.get("timeout", defaults.timeout),
        duplicate_targets=duplicates.get("targets", defaults.duplicate_targets),
        duplicate_min_lines=duplicates.get("min_lines", defaults.duplicate_min_lines),
        duplicate_stats_file=str(duplicates.get("stats_file", defaults.duplicate_stats_file)),
        dependency_target=str(dependencies.get("target", defaults.dependency_target)),
        architecture_config=str(architecture.get("config", defaults.architecture_config)),
        architecture_target=str(architecture.get("target", defaults.architecture_target)),
    )
    if isinstance(config.launcher, str):
        config.launcher = config.launcher.split()
    _validate(config)
    return config


def _read_yaml(config_path: str) -> dict:
    path = Path(config_path)

    if not path.exists():
        raise ConfigError(
            f"Config file not found: '{config_path}'\n"
            "Run `code-health init` to generate a template."
        )

    try:
        with path.open(encoding="utf-8") as f:
            raw = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Failed to parse '{config_path}': {exc}") from exc

    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"'{config_path}' must be a YAML mapping at the top level.")
    return raw


def _section(raw: dict, name: str) -> dict:
    value = raw.get(name) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{name}' must be a mapping, got {type(value).__name__}")
    return value


def _validate(config: Config) -> None:
    """Raise ConfigError if any field is unusable."""
    errors: list[str] = []

    if not config.source.strip():
        errors.append(
            "  - 'paths.source' is empty (or set the CODE_HEALTH_SOURCE environment variable)"
        )
    if not config.report_dir.strip():
        errors.append("  - 'paths.report_dir' is empty")
    if not isinstance(config.launcher, list) or not all(isinstance(p, str) for p in config.launcher):
        errors.append("  - 'tools.launcher' must be a list of strings")
    if config.timeout is not None and (
        isinstance(config.timeout, bool)
        or not isinstance(config.timeout, (int, float))
        or config.timeout <= 0
    ):
        errors.append("  - 'tools.timeout' must be a positive number of seconds or null")

    targets = config.duplicate_targets
    if (
        not isinstance(targets, list)
        or not targets
        or not all(isinstance(t, str) and t.strip() for t in targets)
    ):
        errors.append("  - 'duplicates.targets' must list at least one directory (as strings)")

    if (
        isinstance(config.duplicate_min_lines, bool)
        or not isinstance(config.duplicate_min_lines, int)
        or config.duplicate_min_lines < 1
    ):
        errors.append("  - 'duplicates.min_lines' must be a positive integer")

    if errors:
        raise ConfigError("Invalid configuration:\n" + "\n".join(errors))


# ---------------------------------------------------------------------------
# Template generator (used by `init` command)
# ---------------------------------------------------------------------------

TEMPLATE = """\
paths:
  root: "."                   # Project root; every other path is relative to it
  source: "apps/web/src"      # Analyzed by the complexity and structure checks
  report_dir: "logs"          # code-health-report.md / .json are written here

tools:
  launcher: ["bunx"]          # Prefix for every tool invocation
  timeout: null               # Seconds per tool; null waits forever

duplicates:
  targets: ["./packages", "./apps"]
  min_lines: 10
  stats_file: "report/jscpd-report.json"

dependencies:
  target: "./packages/backend/convex"

architecture:
  config: ".dependency-cruiser.cjs"
  target: "./apps/web/src"
"""


def generate_template(output_path: str = DEFAULT_CONFIG_FILE) -> None:
    """Write a template code-health.yaml to *output_path*.

    Raises:
        ConfigError: if the file already exists.
    """
    path = Path(output_path)
    if path.exists():
        raise ConfigError(
            f"'{output_path}' already exists. Remove it first or choose a different path."
        )
    path.write_text(TEMPLATE, encoding="utf-8")
