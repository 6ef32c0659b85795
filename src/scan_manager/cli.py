"""CLI entry point for scan management (scan-manager command)."""

from __future__ import annotations

import json
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import click
from loguru import logger

from .config import ScanConfig
from .errors import ScanError
from .models import MatchKey, Reconciliation, SubfolderResult, SyncPlan, SyncResult

log = logger.bind(stage="cli")


@contextmanager
def _scan_errors() -> Iterator[None]:
    """Turn ScanError into a click error (exit code 1, message on stderr)."""
    try:
        yield
    except ScanError as exc:
        log.error(str(exc))
        raise click.ClickException(str(exc)) from exc


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "-c",
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to .env file.",
)
@click.pass_context
def main(ctx: click.Context, verbose: bool, config_file: str | None) -> None:
    """Check scans against harvest records and transfer scans between drives."""
    config_kwargs: dict = {"verbose": verbose}
    if config_file:
        config_kwargs["_env_file"] = config_file
    config = ScanConfig(**config_kwargs)
    config.setup_logging()
    ctx.obj = config


@main.command("check-year")
@click.argument("scan_folder", type=click.Path(exists=True, file_okay=False))
@click.argument("harvest_csv", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--write-to",
    type=click.Path(dir_okay=False),
    default=None,
    help="Summary CSV path (default: REPORT_PATH, scanSummary.csv).",
)
@click.option(
    "--json-output",
    "json_out",
    is_flag=True,
    help="Output as JSON instead of human-readable.",
)
@click.pass_obj
def check_year(
    config: ScanConfig,
    scan_folder: str,
    harvest_csv: str,
    write_to: str | None,
    json_out: bool,
) -> None:
    """Compare every batch folder in SCAN_FOLDER against HARVEST_CSV."""
    from .harvest import load_expected_csv
    from .ops.reconcile import compare_all, enumerate_scans
    from .report import reconciliation_to_dict, write_summary_csv

    with _scan_errors():
        expected = load_expected_csv(
            Path(harvest_csv),
            batch_column=config.harvest_batch_column,
            identifier_column=config.harvest_identifier_column,
        )
        roster = enumerate_scans(Path(scan_folder), exclude=config.junk_files)
        reconciliation = compare_all(roster, expected, exclude=config.junk_files)
        report_file = write_summary_csv(
            reconciliation, Path(write_to) if write_to else config.report_path
        )

    if json_out:
        output = reconciliation_to_dict(reconciliation)
        output["skipped"] = roster.skipped
        click.echo(json.dumps(output, indent=2))
        return

    _print_reconciliation(reconciliation, roster.skipped)
    click.echo(f"\nFile can be found here: {report_file}")


@main.command("check-batch")
@click.argument("scan_folder", type=click.Path(exists=True, file_okay=False))
@click.argument("harvest_csv", type=click.Path(exists=True, dir_okay=False))
@click.argument("batch")
@click.pass_obj
def check_batch(config: ScanConfig, scan_folder: str, harvest_csv: str, batch: str) -> None:
    """Compare a single BATCH folder in SCAN_FOLDER against HARVEST_CSV."""
    from .harvest import load_expected_csv
    from .ops.reconcile import compare_batch, enumerate_scans

    with _scan_errors():
        expected = load_expected_csv(
            Path(harvest_csv),
            batch_column=config.harvest_batch_column,
            identifier_column=config.harvest_identifier_column,
        )
        roster = enumerate_scans(Path(scan_folder), exclude=config.junk_files)
        comparison = compare_batch(roster, expected, batch)

    click.echo(json.dumps(comparison.to_dict(), indent=2))


@main.command("transfer")
@click.argument("from_dir", type=click.Path(exists=True, file_okay=False))
@click.argument("to_dir", type=click.Path(file_okay=False))
@click.option(
    "--show-not-in-from",
    is_flag=True,
    help="List files that are in TO_DIR but not in FROM_DIR.",
)
@click.option(
    "--match-by",
    type=click.Choice([m.value for m in MatchKey]),
    default=None,
    help="Match files by relative path (default) or bare file name.",
)
@click.option(
    "--json-output",
    "json_out",
    is_flag=True,
    help="Output as JSON instead of human-readable.",
)
@click.pass_obj
def transfer(
    config: ScanConfig,
    from_dir: str,
    to_dir: str,
    show_not_in_from: bool,
    match_by: str | None,
    json_out: bool,
) -> None:
    """Copy files in FROM_DIR that are missing from TO_DIR (created if absent)."""
    from .ops.sync import execute_sync, plan_sync

    source, dest = Path(from_dir), Path(to_dir)
    key = MatchKey(match_by) if match_by else config.match_by

    with _scan_errors():
        plan = plan_sync(source, dest, match_by=key, exclude=config.junk_files)
        if plan.to_copy:
            with click.progressbar(
                length=len(plan.to_copy),
                label="Copying",
                file=sys.stderr,
            ) as bar:
                result = execute_sync(
                    plan, source, dest, progress=lambda _path: bar.update(1)
                )
        else:
            result = SyncResult()

    if json_out:
        from .report import sync_to_dict

        click.echo(json.dumps(sync_to_dict(plan, result), indent=2))
    else:
        _print_transfer(source, dest, plan, result, show_not_in_from)
    if result.failures:
        raise click.ClickException(f"{len(result.failures)} file(s) failed to copy")


@main.command("transfer-scans")
@click.argument("from_dir", type=click.Path(exists=True, file_okay=False))
@click.argument("to_root", type=click.Path(file_okay=False))
@click.option(
    "--ask/--no-ask",
    default=None,
    help="Pause for confirmation between subfolders (default: CONFIRM_EACH).",
)
@click.option(
    "--match-by",
    type=click.Choice([m.value for m in MatchKey]),
    default=None,
    help="Match files by relative path (default) or bare file name.",
)
@click.pass_obj
def transfer_scans(
    config: ScanConfig,
    from_dir: str,
    to_root: str,
    ask: bool | None,
    match_by: str | None,
) -> None:
    """Transfer every subfolder of a cgNNNNscans collection to another drive.

    FROM_DIR must sit inside a collection folder such as C:/cg2014scans;
    the part of FROM_DIR before that folder is replaced by TO_ROOT.
    """
    from .ops.sync import sync_tree

    ask_each = config.confirm_each if ask is None else ask

    def _confirm(done: SubfolderResult) -> bool:
        _print_transfer(done.source, done.destination, done.plan, done.result, False)
        return click.confirm("Continue with the next folder?", default=True)

    with _scan_errors():
        results = sync_tree(
            Path(from_dir),
            Path(to_root),
            confirm=_confirm if ask_each else None,
            collection_pattern=config.collection_pattern,
            match_by=MatchKey(match_by) if match_by else config.match_by,
            exclude=config.junk_files,
        )

    click.echo(f"\nTransfer Summary ({len(results)} folder(s))")
    click.echo("=" * 50)
    failed = 0
    for r in results:
        failed += len(r.result.failures)
        status = "ok" if r.result.ok else f"{len(r.result.failures)} failed"
        click.echo(
            f"  {r.source.name:<20} copied {r.result.copied_count:>5}  "
            f"dest-only {len(r.plan.destination_only):>5}  {status}"
        )
    if failed:
        raise click.ClickException(f"{failed} file(s) failed to copy")


def _print_reconciliation(reconciliation: Reconciliation, skipped: list[str]) -> None:
    """Print human-readable reconciliation summary to stdout."""
    click.echo("\nScan Check Report")
    click.echo("=" * 50)
    click.echo(f"Batches scanned:      {len(reconciliation.per_batch)}")
    click.echo(f"Missing scans:        {reconciliation.total_missing}")
    click.echo(f"Unexpected scans:     {reconciliation.total_unexpected}")
    click.echo(f"Unparseable files:    {len(skipped)}")

    for c in reconciliation.per_batch:
        if not c.missing and not c.unexpected:
            continue
        click.echo(f"\n{c.batch} ({c.observed_count} scanned / {c.expected_count} harvested)")
        click.echo("-" * 50)
        if c.missing:
            click.echo(f"  missing:    {' '.join(sorted(c.missing))}")
        if c.unexpected:
            click.echo(f"  unexpected: {' '.join(sorted(c.unexpected))}")

    if reconciliation.batches_missing_entirely:
        click.echo("\nneed experiments:")
        for batch in sorted(reconciliation.batches_missing_entirely):
            click.echo(f"  {batch}")
    if reconciliation.batches_unexpected_entirely:
        click.echo("\nignore:")
        for batch in sorted(reconciliation.batches_unexpected_entirely):
            click.echo(f"  {batch}")
    if skipped:
        click.echo("\nunparseable:")
        for rel in skipped:
            click.echo(f"  {rel}")


def _print_transfer(
    source: Path,
    dest: Path,
    plan: SyncPlan,
    result: SyncResult,
    show_destination_only: bool,
) -> None:
    """Print one transfer's outcome."""
    click.echo(f"\nCopied {result.copied_count} file(s) from\n  {source}\nto\n  {dest}")
    click.echo(
        f"{len(plan.destination_only)} file(s) are in\n  {dest}\nbut not in\n  {source}"
    )
    if show_destination_only and plan.destination_only:
        click.echo(f"\nFiles not in {source}:")
        for rel in sorted(plan.destination_only):
            click.echo(f"  {rel}")
    if result.failures:
        click.echo(f"\nFailed ({len(result.failures)}):")
        for f in result.failures:
            click.echo(f"  {f.path}: {f.reason}")
