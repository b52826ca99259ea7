"""Entry model shared by local and remote hierarchies, plus path helpers.

Paths are always written with ``/`` separators.  Remote paths are rooted at
``/`` (``/photos/2024``); local paths are OS paths, relative or absolute.
"""

from __future__ import annotations

import os
import posixpath
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Iterable

from .exceptions import ChildrenNotFetchedError

__all__ = [
    "Entry", "EntryKind", "Fetched", "Unfetched", "UNFETCHED",
    "join_path", "split_path", "relative_path",
    "normalize_remote_path", "normalize_local_path",
]


class EntryKind(str, Enum):
    """Entry kind: ``FILE`` or ``DIRECTORY``."""
    FILE = "file"
    DIRECTORY = "directory"

    def __str__(self) -> str:          # noqa: D105
        return self.value


@dataclass(frozen=True, slots=True)
class Unfetched:
    """Children of a directory that has not been listed yet."""

    def __repr__(self) -> str:
        return "UNFETCHED"


UNFETCHED = Unfetched()


@dataclass(frozen=True, slots=True)
class Fetched:
    """Children of a listed directory, sorted by name."""
    entries: tuple[Entry, ...] = ()


@dataclass(frozen=True, slots=True)
class Entry:
    """One node (file or directory) of a local or remote hierarchy.

    Attributes:
        path: Fully qualified path; the identity key of the entry.
        kind: :class:`EntryKind` of the entry.
        size: Size in bytes for files, ``None`` for directories.
        modified: Modification time, or ``None`` when unknown.
        children: ``UNFETCHED`` or :class:`Fetched`.  Always ``UNFETCHED``
            for files.
    """
    path: str
    kind: EntryKind
    size: int | None = None
    modified: datetime | None = field(default=None, compare=False)
    children: Unfetched | Fetched = field(default=UNFETCHED, compare=False)

    @property
    def name(self) -> str:
        """Last path segment (``""`` for the remote root)."""
        return posixpath.basename(self.path)

    @property
    def is_dir(self) -> bool:
        return self.kind is EntryKind.DIRECTORY

    @property
    def is_file(self) -> bool:
        return self.kind is EntryKind.FILE

    @property
    def has_name(self) -> bool:
        """False for entries that cannot be recreated by name (``/``, ``.``, ``..``)."""
        return self.name not in ("", ".", "..")

    @property
    def fetched(self) -> bool:
        return isinstance(self.children, Fetched)

    def child_entries(self) -> tuple[Entry, ...]:
        """Return the listed children.

        Raises:
            ChildrenNotFetchedError: If this directory was never listed.
            NotADirectoryError: If this entry is a file.
        """
        if not self.is_dir:
            raise NotADirectoryError(self.path)
        if not isinstance(self.children, Fetched):
            raise ChildrenNotFetchedError(f"Children of {self.path} were not listed")
        return self.children.entries

    def with_children(self, entries: Iterable[Entry]) -> Entry:
        """Return a copy of this directory with *entries* as its children.

        Children are sorted by name; duplicate names raise ``ValueError``.
        """
        if not self.is_dir:
            raise NotADirectoryError(self.path)
        ordered = tuple(sorted(entries, key=lambda e: e.name))
        for prev, cur in zip(ordered, ordered[1:]):
            if prev.name == cur.name:
                raise ValueError(f"Duplicate name {cur.name!r} in {self.path}")
        return replace(self, children=Fetched(ordered))


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

def join_path(parent: str, name: str) -> str:
    """Join *name* onto *parent* (``.`` and ``""`` parents yield *name*)."""
    if parent in ("", "."):
        return name
    return posixpath.join(parent, name)


def split_path(path: str) -> tuple[str, str]:
    """Split *path* into ``(parent, name)``.

    A bare relative name has ``.`` as its parent; roots have an empty name.
    """
    parent, name = posixpath.split(path)
    if not parent:
        parent = "."
    return parent, name


def relative_path(path: str, base: str) -> str:
    """Return *path* relative to *base* (``""`` when they are equal)."""
    if path == base:
        return ""
    if base in ("", "."):
        return path
    prefix = base if base.endswith("/") else base + "/"
    if not path.startswith(prefix):
        raise ValueError(f"{path!r} is not under {base!r}")
    return path[len(prefix):]


def normalize_remote_path(path: str) -> str:
    """Normalize a remote path to ``/``-rooted form.

    Empty and ``.`` segments are dropped; ``..`` is rejected.

    >>> normalize_remote_path("tmp//gdrive_test/")
    '/tmp/gdrive_test'
    """
    segments = []
    for seg in path.replace("\\", "/").split("/"):
        if seg in ("", "."):
            continue
        if seg == "..":
            raise ValueError(f"Invalid path segment: {seg!r}")
        segments.append(seg)
    return "/" + "/".join(segments)


def normalize_local_path(path: str) -> str:
    """Normalize a local path, writing it with ``/`` separators."""
    norm = os.path.normpath(path or ".")
    if os.sep != "/":
        norm = norm.replace(os.sep, "/")
    return norm
