"""Tests for LocalFilesystem, DirectoryDrive and Snapshot."""

import errno
import io
import os
from datetime import datetime, timezone

import pytest

from drivesync.drive import DirectoryDrive
from drivesync.entry import Entry, EntryKind, join_path
from drivesync.exceptions import (
    ConflictError,
    NotEmptyError,
    NotFoundError,
)
from drivesync.hierarchy import Hierarchy, LocalFilesystem, Snapshot, _os_errors


class CountingDrive(DirectoryDrive):
    """DirectoryDrive that records every list() call."""

    def __init__(self, root):
        super().__init__(root)
        self.listed = []

    def list(self, path):
        self.listed.append(self.normalize(path))
        return super().list(path)


class TestLocalFilesystem:
    def test_list_sorted_with_kinds(self, tmp_path):
        (tmp_path / "b.txt").write_text("bb")
        (tmp_path / "a").mkdir()
        entries = LocalFilesystem().list(str(tmp_path))
        assert [e.name for e in entries] == ["a", "b.txt"]
        assert entries[0].kind is EntryKind.DIRECTORY
        assert entries[0].size is None
        assert entries[1].size == 2
        assert entries[1].modified.tzinfo is timezone.utc

    def test_list_missing(self, tmp_path):
        with pytest.raises(NotFoundError):
            LocalFilesystem().list(str(tmp_path / "nope"))

    def test_list_file_is_not_a_directory(self, tmp_path):
        (tmp_path / "f").write_text("x")
        with pytest.raises(NotFoundError):
            LocalFilesystem().list(str(tmp_path / "f"))

    @pytest.mark.skipif(not hasattr(os, "symlink"), reason="needs symlinks")
    def test_dangling_symlink_skipped(self, tmp_path):
        (tmp_path / "ok").write_text("x")
        os.symlink(tmp_path / "missing", tmp_path / "broken")
        assert [e.name for e in LocalFilesystem().list(str(tmp_path))] == ["ok"]

    def test_put_and_get(self, tmp_path):
        fs = LocalFilesystem()
        target = str(tmp_path / "out.bin")
        entry = fs.put_file(target, io.BytesIO(b"payload"))
        assert entry.size == 7
        with fs.get_file(target) as f:
            assert f.read() == b"payload"

    def test_put_sets_mtime(self, tmp_path):
        when = datetime(2020, 5, 17, 12, 30, tzinfo=timezone.utc)
        target = tmp_path / "out.bin"
        LocalFilesystem().put_file(str(target), io.BytesIO(b"x"), modified=when)
        assert os.path.getmtime(target) == pytest.approx(when.timestamp())

    def test_put_missing_parent(self, tmp_path):
        with pytest.raises(NotFoundError):
            LocalFilesystem().put_file(str(tmp_path / "no" / "f"), io.BytesIO(b"x"))

    def test_get_directory(self, tmp_path):
        with pytest.raises(ConflictError):
            LocalFilesystem().get_file(str(tmp_path))

    def test_make_dir(self, tmp_path):
        entry = LocalFilesystem().make_dir(str(tmp_path / "new"))
        assert entry.is_dir
        assert (tmp_path / "new").is_dir()

    def test_make_dir_exists(self, tmp_path):
        fs = LocalFilesystem()
        fs.make_dir(str(tmp_path / "new"))
        with pytest.raises(ConflictError):
            fs.make_dir(str(tmp_path / "new"))
        assert fs.make_dir(str(tmp_path / "new"), exist_ok=True).is_dir

    def test_make_dir_over_file(self, tmp_path):
        (tmp_path / "f").write_text("x")
        with pytest.raises(ConflictError):
            LocalFilesystem().make_dir(str(tmp_path / "f"), exist_ok=True)

    def test_delete_non_empty(self, tmp_path):
        (tmp_path / "d").mkdir()
        (tmp_path / "d" / "f").write_text("x")
        fs = LocalFilesystem()
        with pytest.raises(NotEmptyError):
            fs.delete(str(tmp_path / "d"))
        fs.delete(str(tmp_path / "d"), recursive=True)
        assert not (tmp_path / "d").exists()

    def test_error_mapping(self):
        with pytest.raises(NotEmptyError):
            with _os_errors("/d"):
                raise OSError(errno.ENOTEMPTY, "Directory not empty")
        with pytest.raises(ConflictError, match="Already exists"):
            with _os_errors("/d"):
                raise OSError(errno.EEXIST, "File exists")
        with pytest.raises(OSError) as info:
            with _os_errors("/d"):
                raise OSError(errno.EIO, "I/O error")
        assert not isinstance(info.value, (NotEmptyError, ConflictError))

    def test_delete_missing(self, tmp_path):
        with pytest.raises(NotFoundError):
            LocalFilesystem().delete(str(tmp_path / "nope"))


class TestDirectoryDrive:
    def test_root_must_exist(self, tmp_path):
        with pytest.raises(NotFoundError):
            DirectoryDrive(tmp_path / "nope")

    def test_paths_are_rooted(self, drive):
        entries = drive.list("/tmp/gdrive_test")
        assert [e.path for e in entries] == [
            "/tmp/gdrive_test/1", "/tmp/gdrive_test/2", "/tmp/gdrive_test/f0.zip",
        ]

    def test_relative_paths_are_rooted_too(self, drive):
        assert drive.stat("tmp/gdrive_test/f0.zip").path == "/tmp/gdrive_test/f0.zip"

    def test_stat_root(self, drive):
        root = drive.stat("/")
        assert root.is_dir
        assert root.path == "/"

    def test_dotdot_rejected(self, drive):
        with pytest.raises(ValueError):
            drive.stat("/tmp/../..")

    def test_write_stays_inside_root(self, drive, drive_root):
        drive.put_file("/tmp/new.txt", io.BytesIO(b"n"))
        assert (drive_root / "tmp" / "new.txt").read_bytes() == b"n"

    def test_refuses_to_delete_root(self, drive):
        with pytest.raises(ConflictError):
            drive.delete("/", recursive=True)


class TestSnapshot:
    def test_lists_each_directory_once(self, drive_root):
        drive = CountingDrive(drive_root)
        snap = Snapshot(drive)
        snap.list("/tmp/gdrive_test")
        snap.list("/tmp/gdrive_test/")
        snap.lookup("/tmp/gdrive_test/f0.zip")
        assert drive.listed == ["/tmp/gdrive_test"]

    def test_lookup_missing_from_cached_listing(self, snapshot):
        snapshot.list("/tmp/gdrive_test")
        with pytest.raises(NotFoundError):
            snapshot.lookup("/tmp/gdrive_test/nope")

    def test_find(self, snapshot):
        assert snapshot.find("/tmp/gdrive_test/nope") is None
        assert snapshot.find("/tmp/gdrive_test/f0.zip").size == 4

    def test_children_of_file(self, snapshot):
        with pytest.raises(NotADirectoryError):
            snapshot.children(snapshot.lookup("/tmp/gdrive_test/f0.zip"))

    def test_populate(self, snapshot):
        entry = snapshot.populate(snapshot.lookup("/tmp/gdrive_test/1"))
        assert entry.fetched
        assert [c.name for c in entry.child_entries()] == ["f1.zip", "f2.zip"]

    def test_populate_file_is_noop(self, snapshot):
        entry = snapshot.lookup("/tmp/gdrive_test/f0.zip")
        assert snapshot.populate(entry) is entry


class MemoryHierarchy(Hierarchy):
    """Read-only hierarchy over a dict of directory path -> child names."""

    def __init__(self, tree):
        self.tree = tree

    def list(self, path):
        path = self.normalize(path)
        if path not in self.tree:
            raise NotFoundError(f"Path not found: {path}")
        return [
            Entry(join_path(path, name),
                  EntryKind.DIRECTORY if join_path(path, name) in self.tree else EntryKind.FILE)
            for name in self.tree[path]
        ]

    def get_file(self, path):
        raise NotImplementedError

    def put_file(self, path, stream, modified=None):
        raise NotImplementedError

    def make_dir(self, path, exist_ok=False):
        raise NotImplementedError

    def delete(self, path, recursive=False):
        raise NotImplementedError


class TestHierarchyContract:
    @pytest.fixture
    def memory(self):
        return MemoryHierarchy({"/": ["docs"], "/docs": ["a.txt"]})

    def test_default_stat_uses_parent_listing(self, memory):
        assert memory.stat("/docs/a.txt").is_file
        assert memory.stat("docs").is_dir

    def test_default_stat_root(self, memory):
        assert memory.stat("/").is_dir

    def test_default_stat_missing(self, memory):
        with pytest.raises(NotFoundError):
            memory.stat("/docs/nope")

    def test_snapshot_over_custom_hierarchy(self, memory):
        snap = Snapshot(memory)
        assert [e.path for e in snap.list("/docs")] == ["/docs/a.txt"]
