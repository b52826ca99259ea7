"""Shared helpers, option decorators, and the main CLI group."""

from __future__ import annotations

import logging
import os
import sys
from contextlib import contextmanager

import click

from ..complete import CompletionProvider
from ..drive import DirectoryDrive
from ..exceptions import DriveError, PartialFailureError
from ..execute import DEFAULT_JOBS


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class PartialTransferError(click.ClickException):
    """Some steps of a transfer were skipped or failed (exit status 2)."""
    exit_code = 2


def _status(ctx, msg):
    """Emit a status message to stderr when verbose mode (-v) is on."""
    if ctx.obj.get("verbose"):
        click.echo(msg, err=True)


def setup_logging(verbosity: int = 0) -> None:
    """Send ``drivesync`` log records to stderr.

    Args:
        verbosity: 0=WARNING, 1=INFO, 2 or more=DEBUG
    """
    if verbosity >= 2:
        level = logging.DEBUG
        fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    elif verbosity == 1:
        level = logging.INFO
        fmt = "%(levelname)s - %(message)s"
    else:
        level = logging.WARNING
        fmt = "%(levelname)s - %(message)s"

    logger = logging.getLogger("drivesync")
    # Clear existing handlers
    logger.handlers.clear()
    logger.setLevel(level)
    logger.propagate = False

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(console_handler)


@contextmanager
def _drive_errors():
    """Report library errors as click errors (exit 1, or 2 for partial failure)."""
    try:
        yield
    except PartialFailureError as exc:
        raise PartialTransferError(str(exc))
    except DriveError as exc:
        raise click.ClickException(str(exc))
    except ValueError as exc:
        raise click.ClickException(f"Invalid path: {exc}")


def _require_drive(ctx) -> str:
    """Get the drive location from context, raising a clear error if missing."""
    drive = ctx.obj.get("drive")
    if not drive:
        raise click.ClickException(
            "No drive specified. Use --drive or set DRIVESYNC_DRIVE."
        )
    return drive


def _open_drive(ctx) -> DirectoryDrive:
    with _drive_errors():
        return DirectoryDrive(_require_drive(ctx))


def _complete_remote(ctx, param, incomplete):
    """Click shell-completion callback for remote path arguments."""
    from click.shell_completion import CompletionItem

    location = ctx.find_root().params.get("drive") or os.environ.get("DRIVESYNC_DRIVE")
    if not location:
        return []
    try:
        drive = DirectoryDrive(location)
    except DriveError:
        return []
    return [CompletionItem(word) for word in CompletionProvider(drive).complete(incomplete)]


def _recursive_option(f):
    """Shared -r/--recursive flag."""
    return click.option(
        "-r", "--recursive", is_flag=True, default=False,
        help="Descend into directories.",
    )(f)


def _dry_run_option(f):
    """Shared -n/--dry-run flag."""
    return click.option(
        "-n", "--dry-run", is_flag=True, default=False,
        help="Show what would change without changing anything.",
    )(f)


def _overwrite_option(f):
    """Shared -y/--overwrite flag for transfer commands."""
    return click.option(
        "-y", "--overwrite", is_flag=True, default=False,
        help="Replace existing destination files without asking.",
    )(f)


# ---------------------------------------------------------------------------
# Main group
# ---------------------------------------------------------------------------

@click.group()
@click.option("--drive", "-D", type=click.Path(file_okay=False), envvar="DRIVESYNC_DRIVE",
              help="Directory exposed as the remote drive (or set DRIVESYNC_DRIVE).")
@click.option("--jobs", "-j", type=click.IntRange(min=1), default=DEFAULT_JOBS,
              envvar="DRIVESYNC_JOBS", show_default=True,
              help="Number of transfers to run at once (or set DRIVESYNC_JOBS).")
@click.option("-v", "--verbose", count=True, help="Verbose output on stderr (repeat for debug).")
@click.pass_context
def main(ctx, drive, jobs, verbose):
    """drivesync: browse a drive and copy files to and from it.

    \b
    Quick start:
      drivesync -D /mnt/drive tree /photos
      drivesync -D /mnt/drive pull -r /photos/2024 ./photos
      drivesync -D /mnt/drive push -r ./reports /archive
      drivesync -D /mnt/drive rm -r /archive/old

    \b
    Remote paths are rooted at '/'.  Sources follow cp rules: without -r a
    directory copies only its direct files; with -r it copies the whole
    tree under its own name.  Globs (*, ? and [...]) in the last path
    segment are expanded against the drive.
    Set DRIVESYNC_DRIVE to avoid passing --drive on every call.
    """
    ctx.ensure_object(dict)
    ctx.obj["drive"] = drive
    ctx.obj["jobs"] = jobs
    ctx.obj["verbose"] = verbose
    setup_logging(verbose)
