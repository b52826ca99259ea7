"""Tree rendering of a populated entry hierarchy."""

from __future__ import annotations

from datetime import datetime
from typing import Callable

from .entry import Entry
from .exceptions import ChildrenNotFetchedError

__all__ = ["format_bytes", "format_date", "render"]

_BRANCH = "├── "
_LAST = "└── "
_PIPE = "│   "
_SPACE = "    "

_DATE_WIDTH = len("YYYY-MM-DD HH:MM")
_SIZE_WIDTH = 8


def format_bytes(size: int) -> str:
    """Format byte size as human-readable string."""
    value = float(size)
    for unit in ["B", "KB", "MB", "GB", "TB"]:
        if value < 1024:
            return f"{value:.1f}{unit}"
        value /= 1024
    return f"{value:.1f}PB"


def format_date(when: datetime | None) -> str:
    """Format *when* as ``YYYY-MM-DD HH:MM`` in local time (``""`` if unknown)."""
    if when is None:
        return ""
    if when.tzinfo is not None:
        when = when.astimezone()
    return when.strftime("%Y-%m-%d %H:%M")


def _label(entry: Entry, name: str) -> str:
    if entry.is_dir and not name.endswith("/"):
        return name + "/"
    return name


def _size(entry: Entry) -> str:
    # Directory sizes are left blank.
    if entry.is_dir or entry.size is None:
        return ""
    return format_bytes(entry.size)


def _plural(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"


def render(
    root: Entry,
    *,
    expand: Callable[[Entry], Entry] | None = None,
    max_depth: int | None = None,
) -> str:
    """Render *root* and its descendants as a box-drawing tree.

    Each line carries the entry name (directories end in ``/``), its
    modification date and, for files, its size.  Children are shown in
    the order they are stored, which is by name.  The last line counts
    the directories and files below *root*.

    Args:
        root: Entry to render, normally populated by the caller.
        expand: Called with each unfetched directory the traversal reaches
            and must return it with children fetched (for instance
            :meth:`Snapshot.populate <drivesync.hierarchy.Snapshot.populate>`).
        max_depth: Stop descending below this many levels (``None``: no limit).

    Raises:
        ChildrenNotFetchedError: If an unfetched directory is reached and no
            *expand* callback was given.
    """
    if max_depth is not None and max_depth < 0:
        raise ValueError(f"max_depth must not be negative, got {max_depth}")

    rows: list[tuple[str, Entry]] = [(_label(root, root.path), root)]
    counts = {"dirs": 0, "files": 0 if root.is_dir else 1}

    def children_of(entry: Entry) -> tuple[Entry, ...]:
        if not entry.fetched:
            if expand is None:
                raise ChildrenNotFetchedError(f"Children of {entry.path} were not listed")
            entry = expand(entry)
        return entry.child_entries()

    def walk(directory: Entry, prefix: str, depth: int) -> None:
        if max_depth is not None and depth > max_depth:
            return
        children = children_of(directory)
        for index, child in enumerate(children):
            last = index == len(children) - 1
            rows.append((prefix + (_LAST if last else _BRANCH) + _label(child, child.name), child))
            if child.is_dir:
                counts["dirs"] += 1
                walk(child, prefix + (_SPACE if last else _PIPE), depth + 1)
            else:
                counts["files"] += 1

    if root.is_dir:
        walk(root, "", 1)

    width = max(len(label) for label, _ in rows)
    lines = []
    for label, entry in rows:
        line = f"{label:<{width}}  {format_date(entry.modified):<{_DATE_WIDTH}}  {_size(entry):>{_SIZE_WIDTH}}"
        lines.append(line.rstrip())
    lines.append("")
    lines.append(f"{_plural(counts['dirs'], 'directory', 'directories')}, "
                 f"{_plural(counts['files'], 'file', 'files')}")
    return "\n".join(lines) + "\n"
