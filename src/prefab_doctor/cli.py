"""Command-line interface for prefab-doctor.

Provides commands for checking and repairing GameObject/component fileID
pairings in Unity YAML files.
"""

from __future__ import annotations

import json
import logging
import sys
from concurrent.futures import ProcessPoolExecutor, as_completed
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Callable

import click

from prefab_doctor import __version__
from prefab_doctor.config import PREFAB_DOCTOR_JOBS, PREFAB_DOCTOR_MAX_PASSES
from prefab_doctor.doctor import check_file, fix_file, write_document
from prefab_doctor.errors import (
    DocumentSkipped,
    StructuralFault,
    UnsupportedCorruption,
)
from prefab_doctor.files import collect_files
from prefab_doctor.yaml_check import verify_object_bodies

# Outcome statuses
CLEAN = "clean"
NEEDS_FIX = "needs-fix"
FIXED = "fixed"
SKIPPED = "skipped"
UNSUPPORTED = "unsupported"
FAULT = "fault"
ERROR = "error"

FAILED_STATUSES = {UNSUPPORTED, FAULT, ERROR}


@dataclass
class FileOutcome:
    """Per-file result passed back from (possibly parallel) workers."""

    path: str
    status: str
    message: str = ""
    line: int | None = None
    fixes: list[str] = field(default_factory=list)
    content: str | None = None

    def __str__(self) -> str:
        parts = [f"{self.path}: {self.status.upper()}"]
        if self.message:
            parts.append(f"- {self.message}")
        if self.line is not None:
            parts.append(f"(line {self.line})")
        return " ".join(parts)


def _run_guarded(path: Path, work: Callable[[], FileOutcome]) -> FileOutcome:
    """Map analysis failures onto outcomes so one bad file never stops a batch."""
    try:
        return work()
    except DocumentSkipped as e:
        return FileOutcome(str(path), SKIPPED, e.message)
    except UnsupportedCorruption as e:
        return FileOutcome(str(path), UNSUPPORTED, e.message, e.line)
    except StructuralFault as e:
        return FileOutcome(str(path), FAULT, e.message, e.line)
    except (OSError, UnicodeDecodeError) as e:
        return FileOutcome(str(path), ERROR, str(e))


def _check_single_file(path: Path) -> FileOutcome:
    """Check a single file (for parallel processing)."""

    def work() -> FileOutcome:
        result = check_file(path)
        if result.has_fix:
            return FileOutcome(
                str(path), NEEDS_FIX, result.anomaly.describe(), fixes=[result.anomaly.kind]
            )
        return FileOutcome(str(path), CLEAN)

    return _run_guarded(path, work)


def _fix_single_file(args: tuple) -> FileOutcome:
    """Fix a single file (for parallel processing).

    Args:
        args: Tuple of (file_path, max_passes, write, verify_yaml)
    """
    path, max_passes, write, verify_yaml = args

    def work() -> FileOutcome:
        result = fix_file(path, max_passes=max_passes, write=False)
        if not result.changed:
            return FileOutcome(str(path), CLEAN, content=result.content)

        if verify_yaml:
            verify_object_bodies(result.content)
        if write:
            write_document(path, result.content)

        message = "; ".join(a.describe() for a in result.applied)
        if not result.consistent:
            message += " (run again to look for further issues)"
        return FileOutcome(
            str(path),
            FIXED if write else NEEDS_FIX,
            message,
            fixes=[a.kind for a in result.applied],
            content=result.content,
        )

    return _run_guarded(path, work)


def _process_files(
    worker: Callable,
    tasks: list,
    parallel_jobs: int,
    progress: bool,
    label: str,
) -> list[FileOutcome]:
    outcomes: list[FileOutcome] = []

    if parallel_jobs > 1 and len(tasks) > 1:
        with ProcessPoolExecutor(max_workers=parallel_jobs) as executor:
            futures = [executor.submit(worker, task) for task in tasks]
            if progress:
                with click.progressbar(
                    length=len(tasks), label=label, show_eta=True, show_percent=True
                ) as bar:
                    for future in as_completed(futures):
                        outcomes.append(future.result())
                        bar.update(1)
            else:
                for future in as_completed(futures):
                    outcomes.append(future.result())
    else:
        if progress and len(tasks) > 1:
            with click.progressbar(
                tasks, label=label, show_eta=True, show_percent=True
            ) as bar:
                outcomes = [worker(task) for task in bar]
        else:
            outcomes = [worker(task) for task in tasks]

    return sorted(outcomes, key=lambda o: o.path)


def _report(outcomes: list[FileOutcome], output_format: str, quiet: bool) -> None:
    if output_format == "json":
        payload = []
        for outcome in outcomes:
            data = asdict(outcome)
            data.pop("content")
            payload.append(data)
        click.echo(json.dumps(payload, indent=2))
        return

    for outcome in outcomes:
        if outcome.status in FAILED_STATUSES:
            click.echo(f"Error: {outcome}", err=True)
        elif not quiet or outcome.status != CLEAN:
            click.echo(str(outcome))

    counts = {status: 0 for status in (CLEAN, NEEDS_FIX, FIXED, SKIPPED)}
    failed = 0
    for outcome in outcomes:
        if outcome.status in FAILED_STATUSES:
            failed += 1
        else:
            counts[outcome.status] += 1

    if len(outcomes) > 1 and not quiet:
        click.echo()
    click.echo(
        f"Checked {len(outcomes)} file(s): {counts[FIXED]} fixed, "
        f"{counts[NEEDS_FIX]} need fixing, "
        f"{counts[SKIPPED]} skipped, {failed} failed"
    )


def _collect_or_exit(paths: tuple[Path, ...]) -> list[Path]:
    files = collect_files(paths)
    if not files:
        click.echo("Error: No Unity YAML files found", err=True)
        sys.exit(1)
    return files


files_argument = click.argument(
    "paths", nargs=-1, type=click.Path(exists=True, path_type=Path), required=True
)
format_option = click.option(
    "--format",
    "output_format",
    type=click.Choice(["text", "json"]),
    default="text",
    help="Output format (default: text)",
)
quiet_option = click.option(
    "--quiet", "-q", is_flag=True, help="Only output files with issues and the summary"
)
parallel_option = click.option(
    "--parallel",
    "-j",
    "parallel_jobs",
    type=int,
    default=PREFAB_DOCTOR_JOBS,
    show_default=True,
    help="Number of parallel jobs for batch processing",
)
progress_option = click.option(
    "--progress", is_flag=True, help="Show progress bar for batch processing"
)


@click.group()
@click.version_option(version=__version__, prog_name="prefab-doctor")
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """Unity Prefab Doctor.

    Finds and repairs broken fileID pairings between GameObjects and their
    components in Unity YAML files, one fix per pass.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@files_argument
@format_option
@quiet_option
@parallel_option
@progress_option
def check(
    paths: tuple[Path, ...],
    output_format: str,
    quiet: bool,
    parallel_jobs: int,
    progress: bool,
) -> None:
    """Check Unity YAML files without modifying them.

    PATHS are Unity YAML files or directories to search for .prefab files.

    Exits with 1 if any file needs a fix, has corruption that cannot be
    fixed automatically, or could not be processed.

    Examples:

        # Check a single prefab
        prefab-doctor check Player.prefab

        # Check a whole folder in parallel
        prefab-doctor check Assets/Prefabs -j 4
    """
    files = _collect_or_exit(paths)
    outcomes = _process_files(
        _check_single_file, files, parallel_jobs, progress, "Checking"
    )
    _report(outcomes, output_format, quiet)

    if any(o.status in FAILED_STATUSES or o.status == NEEDS_FIX for o in outcomes):
        sys.exit(1)


@main.command()
@files_argument
@click.option(
    "--max-passes",
    type=click.IntRange(min=1),
    default=PREFAB_DOCTOR_MAX_PASSES,
    show_default=True,
    help="Maximum number of fixes applied per file (one fix per pass)",
)
@click.option(
    "--dry-run", is_flag=True, help="Show what would be fixed without writing files"
)
@click.option(
    "--stdout",
    is_flag=True,
    help="Write the repaired document to stdout instead of the file (only for single file)",
)
@click.option(
    "--verify-yaml",
    is_flag=True,
    help="Parse every object body of the repaired document before writing it",
)
@format_option
@quiet_option
@parallel_option
@progress_option
def fix(
    paths: tuple[Path, ...],
    max_passes: int,
    dry_run: bool,
    stdout: bool,
    verify_yaml: bool,
    output_format: str,
    quiet: bool,
    parallel_jobs: int,
    progress: bool,
) -> None:
    """Repair broken fileID pairings in Unity YAML files.

    PATHS are Unity YAML files or directories to search for .prefab files.
    Only one problem is fixed per pass; use --max-passes or run again to
    repair more. Files with corruption that cannot be fixed unambiguously
    are reported and left untouched.

    Examples:

        # Fix a prefab in place
        prefab-doctor fix Player.prefab

        # Preview the repaired document
        prefab-doctor fix Player.prefab --stdout

        # Apply up to 5 fixes per file
        prefab-doctor fix Assets/ --max-passes 5
    """
    files = _collect_or_exit(paths)

    if stdout and len(files) > 1:
        click.echo("Error: --stdout cannot be used with multiple files", err=True)
        sys.exit(1)

    write = not (dry_run or stdout)
    tasks = [(f, max_passes, write, verify_yaml) for f in files]
    outcomes = _process_files(_fix_single_file, tasks, parallel_jobs, progress, "Fixing")

    if stdout:
        outcome = outcomes[0]
        if outcome.status in FAILED_STATUSES:
            click.echo(f"Error: {outcome}", err=True)
            sys.exit(1)
        if outcome.content is not None:
            click.echo(outcome.content, nl=False)
        else:
            click.echo(f"{outcome}", err=True)
        return

    _report(outcomes, output_format, quiet)

    if any(o.status in FAILED_STATUSES for o in outcomes):
        sys.exit(1)


if __name__ == "__main__":
    main()
