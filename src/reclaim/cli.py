"""CLI interface for Reclaim."""

from __future__ import annotations

import dataclasses
import json
import logging
import logging.handlers
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from pathlib import Path

import click

from reclaim.core.cancel import CancelToken
from reclaim.core.orchestrator import CleaningOrchestrator, selected_ids
from reclaim.core.registry import build_registry
from reclaim.core.scheduler import CleaningScheduler
from reclaim.models.options import CleaningOptions
from reclaim.models.results import CleaningResult, ServiceResult
from reclaim.reports import ReportFormat, result_to_dict, write_report
from reclaim.settings import load_options, option_names, options_from_dict, save_options, settings_path
from reclaim.utils import bytes_to_human, format_elapsed

_LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

# CLI flag -> CleaningOptions field
_CATEGORY_FLAGS = (
    ("temp", "include_temporary_files"),
    ("logs", "include_log_files"),
    ("event_logs", "include_event_logs"),
    ("old_files", "include_old_files"),
    ("history", "include_browser_history"),
    ("cookies", "include_browser_cookies"),
    ("dns", "include_dns_cache"),
)


def _setup_logging(verbosity: int, log_file: Path | None = None) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.handlers.TimedRotatingFileHandler(log_file, when="midnight", backupCount=7, encoding="utf-8")
        handler.setFormatter(logging.Formatter(_LOG_FORMAT))
        handler.setLevel(logging.DEBUG)
        root = logging.getLogger()
        root.addHandler(handler)
        root.setLevel(min(level, logging.INFO))


def _build_orchestrator() -> CleaningOrchestrator:
    return CleaningOrchestrator(build_registry)


def _run_cancellable(orchestrator: CleaningOrchestrator, options: CleaningOptions, on_result) -> CleaningResult:
    """Run a clean in a worker thread so Ctrl-C cancels it cooperatively."""
    cancel = CancelToken()
    with ThreadPoolExecutor(max_workers=1) as executor:
        future = executor.submit(orchestrator.run, options, cancel, None, on_result)
        while True:
            try:
                return future.result(timeout=0.2)
            except FutureTimeout:
                continue
            except KeyboardInterrupt:
                click.echo("\nCancelling...", err=True)
                cancel.cancel()
                return future.result()


def _echo_service(service: ServiceResult) -> None:
    if service.success:
        click.echo(
            f"  {click.style('✓', fg='green')} {service.name:20s} — "
            f"freed {click.style(bytes_to_human(service.bytes_freed), fg='green', bold=True)} "
            f"({service.files_processed:,} files)"
        )
    else:
        click.echo(
            f"  {click.style('✗', fg='red')} {service.name:20s} — "
            f"freed {bytes_to_human(service.bytes_freed)} ({service.files_processed:,} files), "
            f"{click.style(service.error or 'failed', fg='red')}"
        )


def _echo_summary(result: CleaningResult) -> None:
    elapsed = format_elapsed(result.duration.total_seconds())
    click.echo(
        f"\nTotal freed: {click.style(bytes_to_human(result.total_bytes_freed), fg='green', bold=True)} "
        f"({result.total_files_processed:,} files) in {elapsed}\n"
    )


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Also write logs to this file, rotated daily",
)
def main(verbose: int, log_file: Path | None) -> None:
    """Reclaim disk space from temporary files, logs, browser data and caches."""
    _setup_logging(verbose, log_file)


# ── list ─────────────────────────────────────────────────────────────────

@main.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def list_cmd(as_json: bool) -> None:
    """List cleaning categories."""
    registry = build_registry(load_options())

    if as_json:
        data = [
            {
                "id": c.id,
                "name": c.name,
                "description": c.description,
                "requires_root": c.requires_root,
                "available": c.is_available(),
            }
            for c in registry
        ]
        click.echo(json.dumps(data, indent=2))
        return

    for cleaner in registry:
        root_tag = click.style(" [requires root]", fg="yellow") if cleaner.requires_root else ""
        reason = cleaner.unavailable_reason
        status = click.style(f" ({reason})", fg="bright_black") if reason else ""
        click.echo(f"  {click.style(cleaner.id, fg='cyan', bold=True):30s}  {cleaner.name}{root_tag}{status}")
        click.echo(f"    {cleaner.description}")


# ── scan ─────────────────────────────────────────────────────────────────

@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def scan(as_json: bool) -> None:
    """Estimate reclaimable space (preview only, never deletes)."""
    options = load_options()
    orchestrator = _build_orchestrator()

    if not as_json:
        click.echo(f"\n{click.style('🔍', bold=True)} Estimating {len(selected_ids(options))} categories...\n")

    estimates = orchestrator.estimate(options)

    if as_json:
        click.echo(json.dumps(estimates, indent=2))
        return

    for cleaner_id, size in estimates.items():
        if size > 0:
            click.echo(
                f"  {click.style('✓', fg='green')} {cleaner_id:20s} — "
                f"{click.style(bytes_to_human(size), fg='green', bold=True)}"
            )
        else:
            click.echo(f"  {click.style('·', fg='bright_black')} {cleaner_id:20s} — nothing to reclaim")

    total = sum(estimates.values())
    click.echo(f"\nTotal reclaimable: {click.style(bytes_to_human(total), fg='green', bold=True)}\n")


# ── clean ────────────────────────────────────────────────────────────────

@main.command()
@click.option("--temp/--no-temp", default=None, help="Temporary files")
@click.option("--logs/--no-logs", default=None, help="Log files")
@click.option("--event-logs/--no-event-logs", default=None, help="System journal")
@click.option("--old-files/--no-old-files", default=None, help="Old files in temporary directories")
@click.option("--history/--no-history", default=None, help="Browser history")
@click.option("--cookies/--no-cookies", default=None, help="Browser cookies")
@click.option("--dns/--no-dns", default=None, help="DNS cache")
@click.option("--days", type=click.IntRange(min=0), default=None, help="Age in days for old files")
@click.option("--trash/--permanent", "move_to_trash", default=None, help="Move files to the trash or delete them")
@click.option("--yes", "-y", is_flag=True, help="Skip confirmation")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.option(
    "--report",
    "report_format",
    type=click.Choice([f.value for f in ReportFormat], case_sensitive=False),
    default=None,
    help="Write a report in this format",
)
@click.option("--output", "-o", type=click.Path(dir_okay=False, path_type=Path), default=None, help="Report path")
def clean(
    days: int | None,
    move_to_trash: bool | None,
    yes: bool,
    as_json: bool,
    report_format: str | None,
    output: Path | None,
    **flags: bool | None,
) -> None:
    """Clean the selected categories.

    Categories default to the saved settings; flags override them for this run.
    """
    overrides = {field: flags[flag] for flag, field in _CATEGORY_FLAGS if flags[flag] is not None}
    if days is not None:
        overrides["days_for_old_files"] = days
    if move_to_trash is not None:
        overrides["move_to_trash"] = move_to_trash
    options = dataclasses.replace(load_options(), **overrides)

    if output is not None and report_format is None:
        report_format = output.suffix.lstrip(".").lower() or None
        if report_format not in {f.value for f in ReportFormat}:
            click.echo(f"Cannot infer report format from '{output}', use --report.", err=True)
            sys.exit(2)

    ids = selected_ids(options)
    if not ids:
        if as_json:
            click.echo(json.dumps({"status": "nothing_selected"}))
        else:
            click.echo("No categories selected.")
        return

    if not as_json:
        mode = "moved to the trash" if options.move_to_trash else click.style("permanently deleted", fg="red")
        click.echo(f"\nCategories: {', '.join(ids)}")
        click.echo(f"Files will be {mode}.\n")
        if not yes and not click.confirm("Proceed?", default=False):
            click.echo("Aborted.")
            return
        click.echo(f"\n{click.style('🧹', bold=True)} Cleaning...\n")

    result = _run_cancellable(_build_orchestrator(), options, None if as_json else _echo_service)

    if report_format is not None:
        path = output or Path(f"reclaim-report-{result.started_at:%Y%m%d-%H%M%S}.{report_format}")
        try:
            write_report(result, report_format, path)
        except OSError as e:
            click.echo(f"Could not write report: {e}", err=True)
            sys.exit(1)
        if not as_json:
            click.echo(f"Report written to {path}")

    if as_json:
        click.echo(json.dumps(result_to_dict(result), indent=2))
    else:
        _echo_summary(result)

    if not result.success:
        sys.exit(1)


# ── schedule ─────────────────────────────────────────────────────────────

@main.command()
@click.option(
    "--every",
    "interval_hours",
    type=click.FloatRange(min=0, min_open=True),
    required=True,
    help="Interval between runs, in hours",
)
def schedule(interval_hours: float) -> None:
    """Clean with the saved settings periodically until interrupted."""
    options = load_options()

    def on_complete(result: CleaningResult) -> None:
        status = click.style("ok", fg="green") if result.success else click.style("with errors", fg="red")
        click.echo(
            f"[{result.started_at:%Y-%m-%d %H:%M}] freed {bytes_to_human(result.total_bytes_freed)} "
            f"({result.total_files_processed:,} files), {status}"
        )

    scheduler = CleaningScheduler(_build_orchestrator(), on_complete=on_complete)
    scheduler.schedule(options, interval_hours)
    click.echo(f"Cleaning every {interval_hours:g} hours. Press Ctrl-C to stop.")
    try:
        threading.Event().wait()
    except KeyboardInterrupt:
        pass
    finally:
        scheduler.cancel_schedule()
    click.echo("Schedule stopped.")


# ── config ───────────────────────────────────────────────────────────────

@main.group()
def config() -> None:
    """Saved cleaning settings."""


@config.command("show")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def config_show(as_json: bool) -> None:
    """Show the saved settings."""
    data = dataclasses.asdict(load_options())
    if as_json:
        click.echo(json.dumps(data, indent=2))
        return
    click.echo(f"  {click.style('File:', bold=True)} {settings_path()}")
    for key, value in data.items():
        click.echo(f"  {key:25s} {value}")


@config.command("set")
@click.argument("key", type=click.Choice(option_names()))
@click.argument("value")
def config_set(key: str, value: str) -> None:
    """Change one saved setting."""
    try:
        parsed = json.loads(value.lower() if value.lower() in ("true", "false") else value)
        options = options_from_dict({**dataclasses.asdict(load_options()), key: parsed})
    except ValueError as e:
        click.echo(f"Invalid value for {key}: {e}", err=True)
        sys.exit(1)
    path = save_options(options)
    click.echo(f"{key} = {getattr(options, key)} (saved to {path})")


@config.command("reset")
def config_reset() -> None:
    """Restore the default settings."""
    path = save_options(CleaningOptions())
    click.echo(f"Settings reset ({path})")
