"""CLI entry point - command definitions using Click.

Commands:
    run     Run every check and write the markdown and JSON reports
    init    Generate a template config file
"""

import logging
import sys
from pathlib import Path

import click

from code_health import __version__
from code_health.config import DEFAULT_CONFIG_FILE

SUMMARY_WIDTH = 60


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s" if verbose else "  %(message)s",
        stream=sys.stderr,
        force=True,
    )


def _load_config(ctx: click.Context):
    """Load the config named by --config (or the default file if present). Exits on error."""
    from code_health.config import ConfigError, load

    obj = ctx.obj
    config_path = obj["config_path"]
    if config_path is None and Path(DEFAULT_CONFIG_FILE).exists():
        config_path = DEFAULT_CONFIG_FILE

    try:
        config = load(config_path)
    except ConfigError as exc:
        click.echo(f"Configuration error: {exc}", err=True)
        sys.exit(1)

    if obj["verbose"]:
        source = config_path or "built-in defaults"
        click.echo(f"[verbose] Using configuration from {source}", err=True)
    return config


def _print_summary(report, markdown_path: Path, json_path: Path) -> None:
    from code_health.render import STATUS_GLYPHS, format_duration

    click.echo("")
    click.echo("=" * SUMMARY_WIDTH)
    click.echo("📊 CODE HEALTH SUMMARY")
    click.echo("=" * SUMMARY_WIDTH)
    click.echo("")
    for check in report.checks:
        click.echo(f"{STATUS_GLYPHS[check.status]} {check.name:<30} {check.summary}")
    click.echo("")
    click.echo("-" * SUMMARY_WIDTH)
    click.echo(f"Grade: {report.grade.value}")
    totals = report.totals
    click.echo(f"Total: {totals.errors} errors, {totals.warnings} warnings, {totals.infos} info")
    click.echo(f"Duration: {format_duration(report.duration_ms)}")
    click.echo("-" * SUMMARY_WIDTH)
    click.echo("")
    click.echo(f"📄 Full report: {markdown_path}")
    click.echo(f"📋 JSON data:   {json_path}")


# ---------------------------------------------------------------------------
# CLI group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--config", "config_path", default=None,
              help=f"Path to the configuration file (default: {DEFAULT_CONFIG_FILE} if present).")
@click.option("--verbose", is_flag=True, default=False,
              help="Enable verbose logging.")
@click.version_option(__version__, prog_name="code-health")
@click.pass_context
def cli(ctx: click.Context, config_path: str | None, verbose: bool) -> None:
    """Code health report: run static-analysis tools, grade the result."""
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose
    _setup_logging(verbose)


# ---------------------------------------------------------------------------
# init
# ---------------------------------------------------------------------------

@cli.command("init")
@click.option("--output", "output_path", default=DEFAULT_CONFIG_FILE, show_default=True,
              help="Path where the template config file will be written.")
def init_command(output_path: str) -> None:
    """Generate a template code-health.yaml file."""
    from code_health.config import ConfigError, generate_template
    try:
        generate_template(output_path)
        click.echo(f"Template written to '{output_path}'.")
        click.echo("Edit it with your source directory and tool targets.")
    except ConfigError as exc:
        click.echo(f"Error: {exc}", err=True)
        sys.exit(1)


# ---------------------------------------------------------------------------
# run
# ---------------------------------------------------------------------------

@cli.command("run")
@click.option("--quick", is_flag=True, default=False,
              help="Skip duplicate detection, dependency graph and architecture checks.")
@click.option("--fix", is_flag=True, default=False,
              help="Let the fast linter apply automatic fixes.")
@click.option("--report-dir", default=None,
              help="Directory for the reports (overrides config).")
@click.pass_context
def run_command(ctx: click.Context, quick: bool, fix: bool, report_dir: str | None) -> None:
    """Run all checks, write the reports, exit 1 when any error was found."""
    from code_health.checks import run
    from code_health.render import write_reports
    from code_health.runner import ToolRunner

    config = _load_config(ctx)
    runner = ToolRunner(launcher=config.launcher, cwd=config.root, timeout=config.timeout)

    click.echo("🏥 Running Code Health Check...", err=True)
    report = run(runner, config, quick=quick, fix=fix)

    directory = Path(report_dir) if report_dir else config.report_path
    try:
        markdown_path, json_path = write_reports(report, directory)
    except OSError as exc:
        click.echo(f"Failed to write reports to '{directory}': {exc}", err=True)
        sys.exit(2)

    _print_summary(report, markdown_path, json_path)
    sys.exit(report.exit_code)
