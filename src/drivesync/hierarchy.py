"""Hierarchy contract, the local filesystem collaborator, and snapshots.

A :class:`Hierarchy` is anything that can list one directory level and
move bytes in and out: the local disk, or a remote drive client.  A
:class:`Snapshot` wraps a hierarchy for the duration of one command and owns
the :class:`~drivesync.entry.Entry` objects its listing calls produce; each
directory is listed at most once per snapshot.
"""

from __future__ import annotations

import errno
import logging
import os
import shutil
import stat
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import BinaryIO, Iterator

from .entry import (
    Entry,
    EntryKind,
    join_path,
    normalize_local_path,
    normalize_remote_path,
    split_path,
)
from .exceptions import (
    ConflictError,
    DriveError,
    NotEmptyError,
    NotFoundError,
    PermissionDeniedError,
)

__all__ = ["Hierarchy", "LocalFilesystem", "Snapshot"]

logger = logging.getLogger(__name__)

_COPY_CHUNK_SIZE = 1024 * 1024


class Hierarchy(ABC):
    """Contract shared by the local filesystem and remote drive clients.

    Subclasses must implement :meth:`list`, :meth:`get_file`,
    :meth:`put_file`, :meth:`make_dir` and :meth:`delete`.  :meth:`stat`
    has a default implementation on top of :meth:`list`.
    """

    root = "/"

    def normalize(self, path: str) -> str:
        """Return the canonical spelling of *path* in this hierarchy."""
        return normalize_remote_path(path)

    @abstractmethod
    def list(self, path: str) -> list[Entry]:
        """List the direct children of directory *path* (one level).

        Raises:
            NotFoundError: If *path* does not exist or is not a directory.
        """

    def stat(self, path: str) -> Entry:
        """Return the entry at *path*, found by listing its parent."""
        path = self.normalize(path)
        parent, name = split_path(path)
        if name in ("", ".", ".."):
            return Entry(path, EntryKind.DIRECTORY)
        for entry in self.list(parent):
            if entry.name == name:
                return entry
        raise NotFoundError(f"Path not found: {path}")

    @abstractmethod
    def get_file(self, path: str) -> BinaryIO:
        """Open file *path* for reading; the caller closes the stream."""

    @abstractmethod
    def put_file(self, path: str, stream: BinaryIO, modified: datetime | None = None) -> Entry:
        """Write *stream* to file *path* (replacing it) and return its entry."""

    @abstractmethod
    def make_dir(self, path: str, exist_ok: bool = False) -> Entry:
        """Create directory *path*; its parent must already exist."""

    @abstractmethod
    def delete(self, path: str, recursive: bool = False) -> None:
        """Delete *path*; a non-empty directory requires *recursive*."""


# ---------------------------------------------------------------------------
# Local filesystem
# ---------------------------------------------------------------------------

@contextmanager
def _os_errors(path: str) -> Iterator[None]:
    """Translate ``OSError`` subclasses into the drivesync taxonomy."""
    try:
        yield
    except DriveError:
        raise
    except FileNotFoundError as exc:
        raise NotFoundError(f"Path not found: {path}") from exc
    except NotADirectoryError as exc:
        raise NotFoundError(f"Not a directory: {path}") from exc
    except IsADirectoryError as exc:
        raise ConflictError(f"Is a directory: {path}") from exc
    except FileExistsError as exc:
        raise ConflictError(f"Already exists: {path}") from exc
    except PermissionError as exc:
        raise PermissionDeniedError(str(exc)) from exc
    except OSError as exc:
        if exc.errno == errno.ENOTEMPTY:
            raise NotEmptyError(f"Directory not empty: {path}") from exc
        raise


def _entry_from_stat(path: str, st: os.stat_result) -> Entry:
    modified = datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)
    if stat.S_ISDIR(st.st_mode):
        return Entry(path, EntryKind.DIRECTORY, modified=modified)
    return Entry(path, EntryKind.FILE, size=st.st_size, modified=modified)


class LocalFilesystem(Hierarchy):
    """The local disk as a :class:`Hierarchy`.

    Paths are OS paths (relative to the working directory or absolute).
    Symlinks are followed; dangling symlinks are left out of listings.
    """

    root = "."

    def normalize(self, path: str) -> str:
        return normalize_local_path(path)

    def _os_path(self, path: str) -> str:
        """Map a normalized hierarchy path to an OS path."""
        return path

    def list(self, path: str) -> list[Entry]:
        path = self.normalize(path)
        entries: list[Entry] = []
        with _os_errors(path), os.scandir(self._os_path(path)) as it:
            for de in it:
                try:
                    st = de.stat()
                except FileNotFoundError:
                    logger.debug("Skipping dangling symlink %s", de.path)
                    continue
                entries.append(_entry_from_stat(join_path(path, de.name), st))
        entries.sort(key=lambda e: e.name)
        return entries

    def stat(self, path: str) -> Entry:
        path = self.normalize(path)
        with _os_errors(path):
            return _entry_from_stat(path, os.stat(self._os_path(path)))

    def get_file(self, path: str) -> BinaryIO:
        path = self.normalize(path)
        with _os_errors(path):
            if os.path.isdir(self._os_path(path)):
                raise IsADirectoryError(path)
            return open(self._os_path(path), "rb")

    def put_file(self, path: str, stream: BinaryIO, modified: datetime | None = None) -> Entry:
        path = self.normalize(path)
        out = self._os_path(path)
        with _os_errors(path):
            with open(out, "wb") as f:
                shutil.copyfileobj(stream, f, _COPY_CHUNK_SIZE)
            if modified is not None:
                ts = modified.timestamp()
                os.utime(out, (ts, ts))
        return self.stat(path)

    def make_dir(self, path: str, exist_ok: bool = False) -> Entry:
        path = self.normalize(path)
        out = self._os_path(path)
        with _os_errors(path):
            try:
                os.mkdir(out)
            except FileExistsError:
                if not (exist_ok and os.path.isdir(out)):
                    raise
        return self.stat(path)

    def delete(self, path: str, recursive: bool = False) -> None:
        path = self.normalize(path)
        target = self._os_path(path)
        with _os_errors(path):
            if os.path.isdir(target) and not os.path.islink(target):
                if recursive:
                    shutil.rmtree(target)
                else:
                    os.rmdir(target)
            else:
                os.unlink(target)


# ---------------------------------------------------------------------------
# Snapshot
# ---------------------------------------------------------------------------

class Snapshot:
    """Per-command, read-only view over a :class:`Hierarchy`.

    Listings are cached by directory path, so repeated lookups during one
    resolution (or one interactive completion session) cost one ``list``
    call per directory.
    """

    def __init__(self, hierarchy: Hierarchy):
        self.hierarchy = hierarchy
        self._listings: dict[str, tuple[Entry, ...]] = {}
        self._entries: dict[str, Entry] = {}

    def __repr__(self) -> str:
        return f"Snapshot({self.hierarchy!r}, listed={len(self._listings)})"

    def normalize(self, path: str) -> str:
        return self.hierarchy.normalize(path)

    def list(self, path: str) -> tuple[Entry, ...]:
        """Return the sorted children of directory *path* (cached)."""
        path = self.normalize(path)
        listing = self._listings.get(path)
        if listing is None:
            logger.debug("Listing %s", path)
            listing = tuple(sorted(self.hierarchy.list(path), key=lambda e: e.name))
            self._listings[path] = listing
            for entry in listing:
                self._entries.setdefault(entry.path, entry)
        return listing

    def lookup(self, path: str) -> Entry:
        """Return the entry at *path*.

        Raises:
            NotFoundError: If *path* does not exist.
        """
        path = self.normalize(path)
        entry = self._entries.get(path)
        if entry is not None:
            return entry
        parent, name = split_path(path)
        if name not in ("", ".", "..") and parent in self._listings:
            for candidate in self._listings[parent]:
                if candidate.name == name:
                    return candidate
            raise NotFoundError(f"Path not found: {path}")
        entry = self.hierarchy.stat(path)
        self._entries[path] = entry
        return entry

    def find(self, path: str) -> Entry | None:
        """Like :meth:`lookup` but return ``None`` when *path* is missing."""
        try:
            return self.lookup(path)
        except NotFoundError:
            return None

    def children(self, entry: Entry) -> tuple[Entry, ...]:
        """Return the children of directory *entry*, listing it if needed."""
        if entry.fetched:
            return entry.child_entries()
        if not entry.is_dir:
            raise NotADirectoryError(entry.path)
        return self.list(entry.path)

    def populate(self, entry: Entry) -> Entry:
        """Return *entry* with its children fetched (files are returned as-is)."""
        if not entry.is_dir or entry.fetched:
            return entry
        return entry.with_children(self.children(entry))
