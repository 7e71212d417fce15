"""Tests for code_health/config.py"""

import textwrap
from pathlib import Path

import pytest

from code_health.config import (
    Config,
    ConfigError,
    generate_template,
    load,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def write_config(tmp_path: Path, content: str) -> Path:
    p = tmp_path / "code-health.yaml"
    p.write_text(textwrap.dedent(content), encoding="utf-8")
    return p


VALID_YAML = """\
    paths:
      root: "/repo"
      source: "web/src"
      report_dir: "out"
    tools:
      launcher: ["npx", "--yes"]
      timeout: 120
    duplicates:
      targets: ["./web"]
      min_lines: 8
    dependencies:
      target: "./server"
    architecture:
      config: ".depcruise.cjs"
    """


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    monkeypatch.delenv("CODE_HEALTH_SOURCE", raising=False)
    monkeypatch.delenv("CODE_HEALTH_REPORT_DIR", raising=False)


# ---------------------------------------------------------------------------
# load(): happy path
# ---------------------------------------------------------------------------

def test_load_valid_config(tmp_path):
    p = write_config(tmp_path, VALID_YAML)
    config = load(str(p))
    assert config.root == "/repo"
    assert config.source == "web/src"
    assert config.report_dir == "out"
    assert config.launcher == ["npx", "--yes"]
    assert config.timeout == 120
    assert config.duplicate_targets == ["./web"]
    assert config.duplicate_min_lines == 8
    assert config.dependency_target == "./server"
    assert config.architecture_config == ".depcruise.cjs"


def test_load_without_path_uses_defaults():
    config = load(None)
    assert config == Config()
    assert config.source == "apps/web/src"
    assert config.timeout is None
    assert config.launcher == ["bunx"]


def test_partial_file_keeps_other_defaults(tmp_path):
    p = write_config(tmp_path, """\
        paths:
          source: "src"
        """)
    config = load(str(p))
    assert config.source == "src"
    assert config.report_dir == "logs"
    assert config.duplicate_min_lines == 10


def test_empty_file_is_all_defaults(tmp_path):
    p = write_config(tmp_path, "")
    assert load(str(p)) == Config()


def test_launcher_string_is_split(tmp_path):
    p = write_config(tmp_path, """\
        tools:
          launcher: "pnpm exec"
        """)
    assert load(str(p)).launcher == ["pnpm", "exec"]


def test_derived_paths():
    config = Config(root="/repo", source="apps/web/src", report_dir="logs")
    assert config.source_path == Path("/repo/apps/web/src")
    assert config.report_path == Path("/repo/logs")


# ---------------------------------------------------------------------------
# load(): invalid files
# ---------------------------------------------------------------------------

def test_load_missing_file(tmp_path):
    with pytest.raises(ConfigError, match="not found"):
        load(str(tmp_path / "no-such-file.yaml"))


def test_load_malformed_yaml(tmp_path):
    p = write_config(tmp_path, "paths: [unclosed\n")
    with pytest.raises(ConfigError, match="Failed to parse"):
        load(str(p))


def test_load_top_level_not_mapping(tmp_path):
    p = write_config(tmp_path, "- a\n- b\n")
    with pytest.raises(ConfigError, match="mapping"):
        load(str(p))


def test_section_not_mapping(tmp_path):
    p = write_config(tmp_path, "paths: 3\n")
    with pytest.raises(ConfigError, match="'paths' must be a mapping"):
        load(str(p))


def test_invalid_timeout(tmp_path):
    p = write_config(tmp_path, """\
        tools:
          timeout: -5
        """)
    with pytest.raises(ConfigError, match="tools.timeout"):
        load(str(p))


def test_invalid_min_lines_and_targets_reported_together(tmp_path):
    p = write_config(tmp_path, """\
        duplicates:
          targets: []
          min_lines: zero
        """)
    with pytest.raises(ConfigError) as exc_info:
        load(str(p))
    message = str(exc_info.value)
    assert "duplicates.targets" in message
    assert "duplicates.min_lines" in message


def test_non_string_duplicate_targets_rejected(tmp_path):
    p = write_config(tmp_path, """\
        duplicates:
          targets: [1, 2]
        """)
    with pytest.raises(ConfigError, match="duplicates.targets"):
        load(str(p))


# ---------------------------------------------------------------------------
# load(): environment variable overrides
# ---------------------------------------------------------------------------

def test_env_source_overrides_config(tmp_path, monkeypatch):
    p = write_config(tmp_path, VALID_YAML)
    monkeypatch.setenv("CODE_HEALTH_SOURCE", "packages/ui/src")
    assert load(str(p)).source == "packages/ui/src"


def test_env_report_dir_overrides_defaults(monkeypatch):
    monkeypatch.setenv("CODE_HEALTH_REPORT_DIR", "reports")
    assert load(None).report_dir == "reports"


# ---------------------------------------------------------------------------
# generate_template()
# ---------------------------------------------------------------------------

def test_generate_template_creates_file(tmp_path):
    out = tmp_path / "code-health.yaml"
    generate_template(str(out))
    assert out.exists()
    content = out.read_text()
    assert "paths:" in content
    assert "duplicates:" in content


def test_generated_template_loads_as_defaults(tmp_path):
    out = tmp_path / "code-health.yaml"
    generate_template(str(out))
    assert load(str(out)) == Config()


def test_generate_template_refuses_to_overwrite(tmp_path):
    out = tmp_path / "code-health.yaml"
    out.write_text("existing content")
    with pytest.raises(ConfigError, match="already exists"):
        generate_template(str(out))
