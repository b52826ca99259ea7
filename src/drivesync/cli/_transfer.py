"""The pull and push commands."""

from __future__ import annotations

from typing import Sequence

import click

from ..entry import split_path
from ..exceptions import ConflictError
from ..execute import StepStatus, execute_plan
from ..hierarchy import Hierarchy, LocalFilesystem, Snapshot
from ..plan import DestKind, StepAction, TransferPlan, plan_transfer
from ..render import format_bytes
from ..resolve import ResolvedSelection, resolve, resolve_many
from ._helpers import (
    main,
    _complete_remote,
    _drive_errors,
    _dry_run_option,
    _open_drive,
    _overwrite_option,
    _recursive_option,
    _status,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _dest_kind(selection: ResolvedSelection, source: Snapshot, dest_argument: str,
               dest: Snapshot) -> DestKind:
    """A single file argument copied to a path that is not a directory is renamed."""
    if len(selection) != 1 or not selection.items[0].entry.is_file:
        return DestKind.DIRECTORY
    if len(selection.arguments) != 1:
        return DestKind.DIRECTORY
    if selection.items[0].entry.path != source.normalize(selection.arguments[0]):
        return DestKind.DIRECTORY
    if dest_argument.endswith(("/", "\\")):
        return DestKind.DIRECTORY
    found = dest.find(dest_argument)
    if found is not None and found.is_dir:
        return DestKind.DIRECTORY
    return DestKind.FILE


def _missing_dirs(snapshot: Snapshot, path: str) -> list[str]:
    """Return the directories to create so that *path* exists, outermost first.

    Raises:
        ConflictError: If *path* or one of its ancestors is not a directory.
    """
    missing = []
    while True:
        found = snapshot.find(path)
        if found is not None:
            if not found.is_dir:
                raise ConflictError(f"Not a directory: {path}")
            break
        missing.append(path)
        parent = split_path(path)[0]
        if parent == path:
            break
        path = parent
    missing.reverse()
    return missing


def _describe(step) -> str:
    if step.action is StepAction.MAKE_DIR:
        return f"+ {step.target}/"
    if step.action is StepAction.SKIP:
        return f"! {step.target} ({step.reason})"
    return f"{'~' if step.overwrite else '+'} {step.target}"


def _confirm_overwrites(plan: TransferPlan) -> None:
    overwrites = plan.overwrites
    if not overwrites:
        return
    click.echo("Will overwrite:")
    for step in overwrites:
        click.echo(f"  {step.target}")
    click.confirm(f"Overwrite {len(overwrites)} file(s)?", default=False, abort=True)


def _run_plan(ctx, plan: TransferPlan, source: Hierarchy, dest: Hierarchy, *,
              overwrite: bool, dry_run: bool, create_dirs: Sequence[str] = ()) -> None:
    """Print, confirm and execute *plan*; report failures as exit status 2.

    *create_dirs* are made in *dest*, in order, once the overwrites are
    confirmed and before any step runs.
    """
    if not len(plan):
        _status(ctx, "Nothing to transfer")
        return
    if dry_run:
        for path in create_dirs:
            click.echo(f"+ {path}/")
        for step in plan:
            click.echo(_describe(step))
        return
    if not overwrite:
        _confirm_overwrites(plan)
    for path in create_dirs:
        dest.make_dir(path, exist_ok=True)
        _status(ctx, f"Created {path}")

    def on_outcome(outcome):
        step = outcome.step
        if outcome.status is StepStatus.FAILED:
            click.echo(f"ERROR: {step.target}: {outcome.error}", err=True)
        elif outcome.status is StepStatus.SKIPPED:
            click.echo(f"WARNING: {step.target}: {outcome.error}", err=True)
        else:
            _status(ctx, f"{step.action} {step.target}")

    report = execute_plan(plan, source, dest, jobs=ctx.obj["jobs"], on_outcome=on_outcome)
    _status(ctx, f"Copied {report.files_copied} file(s), {format_bytes(report.bytes_copied)}")
    report.raise_for_failures()


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@main.command()
@click.argument("source", shell_complete=_complete_remote)
@click.argument("dest", default=".", type=click.Path())
@_recursive_option
@click.option("-f", "--files", "files_only", is_flag=True, default=False,
              help="Download only the files directly in a directory (no subdirectories).")
@_overwrite_option
@_dry_run_option
@click.pass_context
def pull(ctx, source, dest, recursive, files_only, overwrite, dry_run):
    """Download SOURCE from the drive into DEST (default: current directory).

    Without -r a directory downloads only its direct files.  With -r the
    directory and its whole tree are downloaded under its own name.  -f
    asks for the direct files explicitly and cannot be combined with -r.
    DEST is created with its parents if it does not exist.

    \b
    Examples:
        drivesync pull /reports/q1.pdf            # into the current directory
        drivesync pull /reports/q1.pdf q1-old.pdf # rename on download
        drivesync pull -r /photos ~/backup        # ~/backup/photos/...
        drivesync pull -f /photos ./top           # files of /photos only
        drivesync pull '/photos/*.jpg' ./jpgs
    """
    if recursive and files_only:
        raise click.UsageError("-r and -f cannot be combined")
    drive = _open_drive(ctx)
    local = LocalFilesystem()

    with _drive_errors():
        remote = Snapshot(drive)
        selection = resolve(source, recursive, remote)
        local_snap = Snapshot(local)
        dest_path = local.normalize(dest)
        dest_kind = _dest_kind(selection, remote, dest, local_snap)
        target_dir = dest_path if dest_kind is DestKind.DIRECTORY else split_path(dest_path)[0]
        create_dirs = _missing_dirs(local_snap, target_dir)

        plan = plan_transfer(selection, dest_path, dest=local_snap, dest_kind=dest_kind)
        _run_plan(ctx, plan, drive, local, overwrite=overwrite, dry_run=dry_run,
                  create_dirs=create_dirs)
        _status(ctx, f"Pulled {source} -> {dest_path}")


@main.command()
@click.argument("sources", nargs=-1, required=True, type=click.Path())
@click.argument("dest", shell_complete=_complete_remote)
@_recursive_option
@_overwrite_option
@_dry_run_option
@click.pass_context
def push(ctx, sources, dest, recursive, overwrite, dry_run):
    """Upload local SOURCES into the drive directory DEST.

    DEST and any missing parents are created on the drive.  A single
    file may instead be given a new name, and then only the parent of
    DEST is created.  Sources follow the same rules as pull.

    \b
    Examples:
        drivesync push notes.txt /docs
        drivesync push -r ./reports /archive      # /archive/reports/...
        drivesync push *.jpg /photos
    """
    drive = _open_drive(ctx)
    local = LocalFilesystem()

    with _drive_errors():
        local_snap = Snapshot(local)
        selection = resolve_many(sources, recursive, local_snap)
        remote = Snapshot(drive)
        dest_path = remote.normalize(dest)
        dest_kind = _dest_kind(selection, local_snap, dest, remote)
        target_dir = dest_path if dest_kind is DestKind.DIRECTORY else split_path(dest_path)[0]
        create_dirs = _missing_dirs(remote, target_dir)

        plan = plan_transfer(selection, dest_path, dest=remote, dest_kind=dest_kind)
        _run_plan(ctx, plan, local, drive, overwrite=overwrite, dry_run=dry_run,
                  create_dirs=create_dirs)
        _status(ctx, f"Pushed -> {dest_path}")
