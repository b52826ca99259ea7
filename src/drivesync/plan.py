"""Transfer planning: turn a resolved selection into an ordered plan of steps."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Iterator

from .entry import Entry, EntryKind, join_path, split_path
from .hierarchy import Snapshot
from .resolve import ResolvedSelection

__all__ = ["DestKind", "StepAction", "TransferPlan", "TransferStep", "plan_transfer"]

logger = logging.getLogger(__name__)


class StepAction(str, Enum):
    """Kind of plan step: ``COPY``, ``MAKE_DIR`` or ``SKIP``."""
    COPY = "copy"
    MAKE_DIR = "mkdir"
    SKIP = "skip"

    def __str__(self) -> str:          # noqa: D105
        return self.value


class DestKind(str, Enum):
    """How to interpret the destination path of a plan.

    ``DIRECTORY``: selected entries are placed inside it.
    ``FILE``: it is the exact target path of a single selected file.
    """
    DIRECTORY = "directory"
    FILE = "file"

    def __str__(self) -> str:          # noqa: D105
        return self.value


@dataclass(frozen=True, slots=True)
class TransferStep:
    """A single action of a :class:`TransferPlan`.

    Attributes:
        source: Source entry (a directory for ``MAKE_DIR`` steps).
        relpath: Destination path relative to the plan's destination.
        target: Full destination path.
        action: :class:`StepAction` value.
        reason: Why the step is skipped (``SKIP`` steps only).
        overwrite: ``True`` when a ``COPY`` replaces an existing file.
    """
    source: Entry
    relpath: str
    target: str
    action: StepAction
    reason: str | None = None
    overwrite: bool = False


@dataclass(frozen=True)
class TransferPlan:
    """Ordered, immutable list of steps.

    Running the steps in order is always valid: every ``MAKE_DIR`` comes
    before any step that writes beneath it.
    """
    destination: str
    steps: tuple[TransferStep, ...] = ()

    def __iter__(self) -> Iterator[TransferStep]:
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    def _with_action(self, action: StepAction) -> list[TransferStep]:
        return [s for s in self.steps if s.action is action]

    @property
    def copies(self) -> list[TransferStep]:
        return self._with_action(StepAction.COPY)

    @property
    def mkdirs(self) -> list[TransferStep]:
        return self._with_action(StepAction.MAKE_DIR)

    @property
    def skips(self) -> list[TransferStep]:
        return self._with_action(StepAction.SKIP)

    @property
    def overwrites(self) -> list[TransferStep]:
        """``COPY`` steps that replace an existing destination file."""
        return [s for s in self.copies if s.overwrite]

    @property
    def total_bytes(self) -> int:
        return sum(s.source.size or 0 for s in self.copies)


def _ancestors(relpath: str) -> list[str]:
    """Return the ancestor directories of *relpath*, outermost first."""
    parts = relpath.split("/")[:-1]
    return ["/".join(parts[:i]) for i in range(1, len(parts) + 1)]


def _kind_name(kind: EntryKind) -> str:
    return "directory" if kind is EntryKind.DIRECTORY else "file"


def plan_transfer(
    selection: ResolvedSelection,
    destination: str,
    *,
    dest: Snapshot | None = None,
    dest_kind: DestKind = DestKind.DIRECTORY,
) -> TransferPlan:
    """Build a :class:`TransferPlan` copying *selection* under *destination*.

    Each entry lands at ``destination/<relpath>``, where relpath strips the
    selection's base prefix, so recursive selections reproduce the source
    layout.  Conflicts never fail the plan; they become ``SKIP`` steps.

    Args:
        selection: Result of :func:`~drivesync.resolve.resolve`.
        destination: Destination directory (or file, for ``DestKind.FILE``),
            already normalized for the destination hierarchy.
        dest: Snapshot of the destination hierarchy, used to detect
            existing entries.  Without it no conflicts are detected.
        dest_kind: See :class:`DestKind`.

    Raises:
        ValueError: If ``DestKind.FILE`` is used for anything but a single
            file.
    """
    if dest_kind is DestKind.FILE:
        if len(selection) != 1 or not selection.items[0].entry.is_file:
            raise ValueError("A file destination needs exactly one source file")

    steps: list[TransferStep] = []
    planned: dict[str, EntryKind] = {}
    blocked: set[str] = set()

    def existing(target: str) -> Entry | None:
        if dest is None:
            return None
        return dest.find(target)

    def add_dir(source: Entry, rel: str) -> None:
        target = join_path(destination, rel)
        found = existing(target)
        if found is not None and not found.is_dir:
            blocked.add(rel)
            steps.append(TransferStep(
                source, rel, target, StepAction.SKIP,
                reason=f"conflict: destination is a {_kind_name(found.kind)}",
            ))
        else:
            steps.append(TransferStep(source, rel, target, StepAction.MAKE_DIR))
        planned[rel] = EntryKind.DIRECTORY

    for item in selection:
        entry = item.entry
        if dest_kind is DestKind.FILE:
            rel = split_path(destination)[1]
            target = destination
        else:
            rel = item.relpath
            target = join_path(destination, rel)

        if not rel and entry.is_dir:
            # Nameless root: its contents go straight into the destination.
            continue

        if dest_kind is DestKind.DIRECTORY:
            for ancestor in _ancestors(rel):
                if ancestor not in planned:
                    add_dir(Entry(join_path(item.base, ancestor), EntryKind.DIRECTORY), ancestor)
            if any(a in blocked for a in _ancestors(rel)):
                blocked.add(rel)
                steps.append(TransferStep(entry, rel, target, StepAction.SKIP,
                                          reason="parent directory skipped"))
                continue

        if rel in planned:
            if entry.is_dir and planned[rel] is EntryKind.DIRECTORY:
                continue
            if entry.is_dir:
                blocked.add(rel)
            steps.append(TransferStep(entry, rel, target, StepAction.SKIP,
                                      reason="duplicate destination"))
            continue

        if entry.is_dir:
            add_dir(entry, rel)
            continue

        found = existing(target)
        if found is not None and found.is_dir:
            steps.append(TransferStep(entry, rel, target, StepAction.SKIP,
                                      reason="conflict: destination is a directory"))
        else:
            steps.append(TransferStep(entry, rel, target, StepAction.COPY,
                                      overwrite=found is not None))
        planned[rel] = EntryKind.FILE

    plan = TransferPlan(destination, tuple(steps))
    logger.debug("Planned %d copies, %d mkdirs, %d skips into %s",
                 len(plan.copies), len(plan.mkdirs), len(plan.skips), destination)
    return plan
