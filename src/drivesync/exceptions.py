"""Exceptions for drivesync.

Each error also derives from the matching built-in exception, so callers
may catch either ``NotFoundError`` or plain ``FileNotFoundError``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .execute import TransferReport


class DriveError(Exception):
    """Base class for all drivesync errors."""


class NotFoundError(DriveError, FileNotFoundError):
    """A path argument resolves to nothing."""


class ConflictError(DriveError, FileExistsError):
    """The destination already holds an entry of a different kind."""


class NotEmptyError(DriveError, OSError):
    """Non-recursive delete of a directory that still has children."""


class PermissionDeniedError(DriveError, PermissionError):
    """Access refused by the hierarchy; the message is passed through verbatim."""


class ChildrenNotFetchedError(DriveError, ValueError):
    """A directory's children were needed but never listed."""


class PartialFailureError(DriveError):
    """A plan ran to completion but one or more steps were skipped or failed.

    The full :class:`~drivesync.execute.TransferReport` is available as
    :attr:`report`.
    """

    def __init__(self, report: TransferReport):
        self.report = report
        super().__init__(
            f"{len(report.failed)} step(s) failed, {len(report.skipped)} skipped"
        )
