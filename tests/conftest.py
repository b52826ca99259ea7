"""Shared fixtures for drivesync tests."""

import pytest
from click.testing import CliRunner

from drivesync.drive import DirectoryDrive
from drivesync.hierarchy import LocalFilesystem, Snapshot


@pytest.fixture
def drive_root(tmp_path):
    """Directory backing a drive.

    Tree:
        /tmp/gdrive_test/f0.zip
        /tmp/gdrive_test/1/f1.zip, /tmp/gdrive_test/1/f2.zip
        /tmp/gdrive_test/2/            (empty)
    """
    root = tmp_path / "drive"
    base = root / "tmp" / "gdrive_test"
    (base / "1").mkdir(parents=True)
    (base / "2").mkdir()
    (base / "f0.zip").write_bytes(b"zero")
    (base / "1" / "f1.zip").write_bytes(b"one")
    (base / "1" / "f2.zip").write_bytes(b"two!")
    return root


@pytest.fixture
def drive(drive_root):
    return DirectoryDrive(drive_root)


@pytest.fixture
def snapshot(drive):
    return Snapshot(drive)


@pytest.fixture
def local_snapshot():
    return Snapshot(LocalFilesystem())


@pytest.fixture
def local_tree(tmp_path):
    """Local directory with 5 files in 2 levels.

    Tree:
        localdir/a.txt, localdir/b.txt, localdir/c.txt
        localdir/sub/d.txt, localdir/sub/e.txt
    """
    root = tmp_path / "localdir"
    (root / "sub").mkdir(parents=True)
    for name in ("a.txt", "b.txt", "c.txt"):
        (root / name).write_text(name)
    for name in ("d.txt", "e.txt"):
        (root / "sub" / name).write_text(name)
    return root


# ---------------------------------------------------------------------------
# CLI fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def drive_args(drive_root):
    """Global options selecting the test drive."""
    return ["--drive", str(drive_root)]
