"""Source resolution: turn a path argument into an ordered selection of entries.

Mirrors shell ``cp`` semantics:

- a file selects itself, with or without recursion;
- a directory without recursion selects its direct files only
  (``cp dir/* dest``: subdirectories are left out);
- a directory with recursion selects itself and its whole subtree
  (``cp -r dir dest``), keeping its name under the destination;
- a trailing ``/`` changes nothing for directories;
- a glob in the last segment (``*``, ``?``, ``[...]``) matches the direct
  children of its parent directory, and each match is expanded by the
  rules above.

Every level is ordered by name, files and directories interleaved.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator

from ._glob import _glob_match, has_glob
from .entry import Entry, relative_path, split_path
from .exceptions import ConflictError, NotFoundError
from .hierarchy import Snapshot

__all__ = [
    "ResolvedSelection", "SelectedEntry",
    "resolve", "resolve_many", "resolve_targets",
]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SelectedEntry:
    """One entry of a :class:`ResolvedSelection`.

    Attributes:
        entry: The selected entry (owned by the snapshot that listed it).
        is_root: ``True`` for the directory a recursive expansion started
            from, ``False`` for its descendants and for matched files.
        base: Path prefix stripped to get the destination-relative path.
    """
    entry: Entry
    is_root: bool
    base: str

    @property
    def relpath(self) -> str:
        """Destination-relative path (``""`` for a nameless root)."""
        return relative_path(self.entry.path, self.base)


@dataclass(frozen=True)
class ResolvedSelection:
    """Ordered result of resolving one or more path arguments."""
    arguments: tuple[str, ...]
    recursive: bool
    items: tuple[SelectedEntry, ...] = ()

    def __iter__(self) -> Iterator[SelectedEntry]:
        return iter(self.items)

    def __len__(self) -> int:
        return len(self.items)

    @property
    def entries(self) -> list[Entry]:
        return [item.entry for item in self.items]

    @property
    def paths(self) -> list[str]:
        return [item.entry.path for item in self.items]

    @property
    def files(self) -> list[Entry]:
        return [item.entry for item in self.items if item.entry.is_file]


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _has_trailing_sep(path_argument: str) -> bool:
    return path_argument.endswith(("/", "\\")) and path_argument.strip("/\\") != ""


def _match_children(snapshot: Snapshot, parent: str, pattern: str) -> list[Entry]:
    """Return the children of *parent* matching glob *pattern*.

    When nothing matches, a child literally named *pattern* is returned
    instead (the shell leaves unmatched patterns as literal words).

    Raises:
        NotFoundError: If *parent* does not exist or is not a directory.
    """
    parent_entry = snapshot.lookup(parent)
    if not parent_entry.is_dir:
        raise NotFoundError(f"Not a directory: {parent_entry.path}")
    children = snapshot.children(parent_entry)
    matches = [c for c in children if _glob_match(pattern, c.name)]
    if not matches:
        matches = [c for c in children if c.name == pattern]
    return matches


def _walk(snapshot: Snapshot, directory: Entry, base: str) -> Iterator[SelectedEntry]:
    """Yield the subtree under *directory* in pre-order, by name."""
    for child in snapshot.children(directory):
        yield SelectedEntry(child, False, base)
        if child.is_dir:
            yield from _walk(snapshot, child, base)


def _select(snapshot: Snapshot, entry: Entry, recursive: bool) -> Iterator[SelectedEntry]:
    if entry.is_file:
        yield SelectedEntry(entry, False, split_path(entry.path)[0])
        return
    if not recursive:
        for child in snapshot.children(entry):
            if child.is_file:
                yield SelectedEntry(child, False, entry.path)
        return
    # A nameless directory (drive root, ".") pours its contents instead.
    base = split_path(entry.path)[0] if entry.has_name else entry.path
    yield SelectedEntry(entry, True, base)
    yield from _walk(snapshot, entry, base)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def resolve(path_argument: str, recursive: bool, snapshot: Snapshot) -> ResolvedSelection:
    """Resolve *path_argument* into an ordered :class:`ResolvedSelection`.

    Args:
        path_argument: Path as typed by the user, possibly with a glob in
            its last segment or a trailing separator.
        recursive: Expand directories into their full subtree.
        snapshot: Snapshot of the hierarchy the path lives in.

    Raises:
        NotFoundError: If the path (or, for a glob, its parent directory)
            does not exist, or a trailing separator follows a file.
    """
    path = snapshot.normalize(path_argument)
    parent, name = split_path(path)
    items: list[SelectedEntry] = []

    if has_glob(name):
        for match in _match_children(snapshot, parent, name):
            items.extend(_select(snapshot, match, recursive))
    else:
        entry = snapshot.lookup(path)
        if entry.is_file and _has_trailing_sep(path_argument):
            raise NotFoundError(f"Not a directory: {path}")
        items.extend(_select(snapshot, entry, recursive))

    logger.debug("Resolved %s (recursive=%s) to %d entries", path_argument, recursive, len(items))
    return ResolvedSelection((path_argument,), recursive, tuple(items))


def resolve_many(path_arguments: Iterable[str], recursive: bool, snapshot: Snapshot) -> ResolvedSelection:
    """Resolve several arguments and concatenate their selections in order.

    Fails on the first argument that does not resolve.
    """
    arguments = tuple(path_arguments)
    items: list[SelectedEntry] = []
    for arg in arguments:
        items.extend(resolve(arg, recursive, snapshot))
    return ResolvedSelection(arguments, recursive, tuple(items))


def resolve_targets(path_argument: str, snapshot: Snapshot) -> list[Entry]:
    """Resolve *path_argument* to the entries it names, without expansion.

    Directories are returned as themselves rather than expanded, which is
    what deletion needs.  A glob yields its matches in name order.

    Raises:
        NotFoundError: As for :func:`resolve`.
        ConflictError: If the argument names the hierarchy root.
    """
    path = snapshot.normalize(path_argument)
    parent, name = split_path(path)
    if has_glob(name):
        return _match_children(snapshot, parent, name)
    entry = snapshot.lookup(path)
    if not entry.has_name:
        raise ConflictError(f"Refusing to operate on {path}")
    if entry.is_file and _has_trailing_sep(path_argument):
        raise NotFoundError(f"Not a directory: {path}")
    return [entry]
