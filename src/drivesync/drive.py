"""Directory-backed remote drive client."""

from __future__ import annotations

import os

from .entry import normalize_remote_path
from .exceptions import ConflictError, NotFoundError
from .hierarchy import LocalFilesystem

__all__ = ["DirectoryDrive"]


class DirectoryDrive(LocalFilesystem):
    """A local directory exposed as a remote drive with ``/``-rooted paths.

    Useful for drives that are mounted or synced to disk, and as the
    reference implementation of the remote client contract.  Paths are
    always interpreted relative to *root*; ``..`` segments are rejected.

    Raises:
        NotFoundError: If *root* is not an existing directory.
    """

    root = "/"

    def __init__(self, root: str | os.PathLike[str]):
        self._root = os.path.abspath(os.fspath(root))
        if not os.path.isdir(self._root):
            raise NotFoundError(f"Drive root is not a directory: {self._root}")

    def __repr__(self) -> str:
        return f"DirectoryDrive({self._root!r})"

    @property
    def location(self) -> str:
        """Absolute path of the directory backing this drive."""
        return self._root

    def normalize(self, path: str) -> str:
        return normalize_remote_path(path)

    def _os_path(self, path: str) -> str:
        segments = [s for s in path.split("/") if s]
        return os.path.join(self._root, *segments)

    def delete(self, path: str, recursive: bool = False) -> None:
        if self.normalize(path) == "/":
            raise ConflictError("Refusing to delete the drive root")
        super().delete(path, recursive=recursive)
