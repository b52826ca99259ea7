"""Basic drive commands: tree, mkdir, rm, complete."""

from __future__ import annotations

import click

from ..complete import CompletionProvider
from ..entry import split_path
from ..exceptions import ConflictError, NotEmptyError, NotFoundError
from ..hierarchy import Snapshot
from ..render import render
from ..resolve import resolve_targets
from ._helpers import (
    main,
    _complete_remote,
    _drive_errors,
    _dry_run_option,
    _open_drive,
    _recursive_option,
    _status,
)


@main.command()
@click.argument("path", default="/", shell_complete=_complete_remote)
@click.option("-L", "--level", "max_depth", type=click.IntRange(min=0), default=None,
              help="Descend at most this many directory levels.")
@click.pass_context
def tree(ctx, path, max_depth):
    """Show PATH (default: the drive root) as a tree with dates and sizes."""
    drive = _open_drive(ctx)
    with _drive_errors():
        snapshot = Snapshot(drive)
        root = snapshot.lookup(path)
        click.echo(render(root, expand=snapshot.populate, max_depth=max_depth), nl=False)


@main.command()
@click.argument("path", shell_complete=_complete_remote)
@click.pass_context
def mkdir(ctx, path):
    """Create the directory PATH on the drive.

    The parent directory must already exist.
    """
    drive = _open_drive(ctx)
    with _drive_errors():
        snapshot = Snapshot(drive)
        path = snapshot.normalize(path)
        parent, name = split_path(path)
        if not name:
            raise ConflictError(f"Already exists: {path}")
        if not snapshot.lookup(parent).is_dir:
            raise NotFoundError(f"Not a directory: {parent}")
        if snapshot.find(path) is not None:
            raise ConflictError(f"Already exists: {path}")
        drive.make_dir(path)
    _status(ctx, f"Created {path}")


@main.command()
@click.argument("path", shell_complete=_complete_remote)
@_recursive_option
@_dry_run_option
@click.pass_context
def rm(ctx, path, recursive, dry_run):
    """Remove PATH from the drive.

    PATH may end in a glob.  Directories that are not empty need -r; if
    any of them lacks it, nothing is removed.
    """
    drive = _open_drive(ctx)
    with _drive_errors():
        snapshot = Snapshot(drive)
        targets = resolve_targets(path, snapshot)
        if not recursive:
            for entry in targets:
                if entry.is_dir and snapshot.children(entry):
                    raise NotEmptyError(f"Directory not empty: {entry.path} (use -r)")
        if not targets:
            _status(ctx, "Nothing to remove")
        for entry in targets:
            if dry_run:
                click.echo(f"- {entry.path}{'/' if entry.is_dir else ''}")
                continue
            drive.delete(entry.path, recursive=recursive)
            _status(ctx, f"Removed {entry.path}")


@main.command("complete")
@click.argument("partial", default="")
@click.pass_context
def complete_cmd(ctx, partial):
    """Print the drive paths that complete PARTIAL, one per line."""
    drive = _open_drive(ctx)
    for word in CompletionProvider(drive).complete(partial):
        click.echo(word)
