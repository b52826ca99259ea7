from .entry import Entry, EntryKind, Fetched, UNFETCHED
from .exceptions import (
    DriveError, NotFoundError, ConflictError, NotEmptyError,
    PermissionDeniedError, PartialFailureError, ChildrenNotFetchedError,
)
from .hierarchy import Hierarchy, LocalFilesystem, Snapshot
from .drive import DirectoryDrive
from .resolve import ResolvedSelection, SelectedEntry, resolve, resolve_many, resolve_targets
from .plan import DestKind, StepAction, TransferPlan, TransferStep, plan_transfer
from .execute import StepOutcome, StepStatus, TransferReport, execute_plan
from .render import render
from .complete import CompletionProvider

__all__ = [
    "Entry", "EntryKind", "Fetched", "UNFETCHED",
    "DriveError", "NotFoundError", "ConflictError", "NotEmptyError",
    "PermissionDeniedError", "PartialFailureError", "ChildrenNotFetchedError",
    "Hierarchy", "LocalFilesystem", "Snapshot", "DirectoryDrive",
    "ResolvedSelection", "SelectedEntry", "resolve", "resolve_many", "resolve_targets",
    "DestKind", "StepAction", "TransferPlan", "TransferStep", "plan_transfer",
    "StepOutcome", "StepStatus", "TransferReport", "execute_plan",
    "render", "CompletionProvider",
]
