"""Tests for source resolution (cp-style selection rules)."""

import pytest

from drivesync.exceptions import ConflictError, NotFoundError
from drivesync.resolve import resolve, resolve_many, resolve_targets

BASE = "/tmp/gdrive_test"


class TestFile:
    def test_file_selects_itself(self, snapshot):
        sel = resolve(f"{BASE}/f0.zip", False, snapshot)
        assert sel.paths == [f"{BASE}/f0.zip"]
        assert sel.items[0].relpath == "f0.zip"
        assert sel.items[0].is_root is False

    def test_file_ignores_recursive(self, snapshot):
        assert resolve(f"{BASE}/f0.zip", True, snapshot).paths == [f"{BASE}/f0.zip"]

    def test_trailing_slash_after_file(self, snapshot):
        with pytest.raises(NotFoundError):
            resolve(f"{BASE}/f0.zip/", False, snapshot)


class TestDirectory:
    def test_non_recursive_direct_files_only(self, snapshot):
        sel = resolve(BASE, False, snapshot)
        assert sel.paths == [f"{BASE}/f0.zip"]
        assert [i.relpath for i in sel] == ["f0.zip"]

    def test_recursive_full_subtree(self, snapshot):
        sel = resolve(BASE, True, snapshot)
        assert sel.paths == [
            BASE,
            f"{BASE}/1",
            f"{BASE}/1/f1.zip",
            f"{BASE}/1/f2.zip",
            f"{BASE}/2",
            f"{BASE}/f0.zip",
        ]
        assert [i.is_root for i in sel] == [True, False, False, False, False, False]

    def test_recursive_keeps_directory_name(self, snapshot):
        sel = resolve(BASE, True, snapshot)
        assert [i.relpath for i in sel] == [
            "gdrive_test",
            "gdrive_test/1",
            "gdrive_test/1/f1.zip",
            "gdrive_test/1/f2.zip",
            "gdrive_test/2",
            "gdrive_test/f0.zip",
        ]

    def test_trailing_slash_is_same_as_plain(self, snapshot):
        assert resolve(BASE + "/", True, snapshot).paths == resolve(BASE, True, snapshot).paths
        assert resolve(BASE + "/", False, snapshot).paths == resolve(BASE, False, snapshot).paths

    def test_empty_directory(self, snapshot):
        assert len(resolve(f"{BASE}/2", False, snapshot)) == 0
        assert resolve(f"{BASE}/2", True, snapshot).paths == [f"{BASE}/2"]

    def test_missing(self, snapshot):
        with pytest.raises(NotFoundError):
            resolve(f"{BASE}/nope", False, snapshot)

    def test_root_pours_contents(self, snapshot):
        sel = resolve("/", True, snapshot)
        assert sel.items[0].relpath == ""
        assert sel.items[1].relpath == "tmp"
        assert "tmp/gdrive_test/1/f1.zip" in [i.relpath for i in sel]

    def test_files_property(self, snapshot):
        sel = resolve(BASE, True, snapshot)
        assert [e.name for e in sel.files] == ["f1.zip", "f2.zip", "f0.zip"]


class TestGlob:
    def test_glob_files(self, snapshot):
        assert resolve(f"{BASE}/*.zip", False, snapshot).paths == [f"{BASE}/f0.zip"]

    def test_glob_expands_matched_directories(self, snapshot):
        sel = resolve(f"{BASE}/*", False, snapshot)
        assert sel.paths == [f"{BASE}/1/f1.zip", f"{BASE}/1/f2.zip", f"{BASE}/f0.zip"]
        assert [i.relpath for i in sel] == ["f1.zip", "f2.zip", "f0.zip"]

    def test_glob_recursive(self, snapshot):
        sel = resolve(f"{BASE}/[12]", True, snapshot)
        assert [i.relpath for i in sel] == ["1", "1/f1.zip", "1/f2.zip", "2"]

    def test_no_match_is_empty(self, snapshot):
        assert len(resolve(f"{BASE}/*.txt", False, snapshot)) == 0

    def test_no_match_missing_parent(self, snapshot):
        with pytest.raises(NotFoundError):
            resolve("/nope/*.zip", False, snapshot)

    def test_no_match_falls_back_to_literal(self, drive_root, snapshot):
        (drive_root / "tmp" / "gdrive_test" / "[x]").write_bytes(b"literal")
        assert resolve(f"{BASE}/[x]", False, snapshot).paths == [f"{BASE}/[x]"]

    def test_glob_skips_dotfiles(self, drive_root, snapshot):
        (drive_root / "tmp" / "gdrive_test" / ".secret").write_bytes(b"s")
        assert f"{BASE}/.secret" not in resolve(f"{BASE}/*", False, snapshot).paths
        assert resolve(f"{BASE}/.*", False, snapshot).paths == [f"{BASE}/.secret"]


class TestLocal:
    def test_local_recursive(self, local_tree, local_snapshot):
        sel = resolve(str(local_tree), True, local_snapshot)
        assert [i.relpath for i in sel] == [
            "localdir",
            "localdir/a.txt",
            "localdir/b.txt",
            "localdir/c.txt",
            "localdir/sub",
            "localdir/sub/d.txt",
            "localdir/sub/e.txt",
        ]

    def test_local_dot_pours_contents(self, local_tree, local_snapshot, monkeypatch):
        monkeypatch.chdir(local_tree)
        sel = resolve(".", True, local_snapshot)
        assert [i.relpath for i in sel][:2] == ["", "a.txt"]


class TestResolveMany:
    def test_concatenates_in_order(self, snapshot):
        sel = resolve_many([f"{BASE}/f0.zip", f"{BASE}/1"], False, snapshot)
        assert sel.paths == [f"{BASE}/f0.zip", f"{BASE}/1/f1.zip", f"{BASE}/1/f2.zip"]
        assert sel.arguments == (f"{BASE}/f0.zip", f"{BASE}/1")

    def test_fails_on_first_missing(self, snapshot):
        with pytest.raises(NotFoundError):
            resolve_many([f"{BASE}/f0.zip", f"{BASE}/nope"], False, snapshot)


class TestResolveTargets:
    def test_directory_not_expanded(self, snapshot):
        assert [e.path for e in resolve_targets(f"{BASE}/1", snapshot)] == [f"{BASE}/1"]

    def test_glob(self, snapshot):
        assert [e.name for e in resolve_targets(f"{BASE}/*", snapshot)] == ["1", "2", "f0.zip"]

    def test_root_refused(self, snapshot):
        with pytest.raises(ConflictError):
            resolve_targets("/", snapshot)
