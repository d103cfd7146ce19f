"""
Tests for the archive installer.
"""

import asyncio
import os

import pytest

from modkeeper.exceptions import ArchiveError
from modkeeper.installer import ArchiveInstaller
from modkeeper.models import ProgressPhase
from tests.helpers import make_zip


def snapshot(root):
    """Relative path -> file bytes (None for directories) for a whole tree."""
    tree = {}
    for current, dirs, files in os.walk(root):
        for d in dirs:
            tree[os.path.relpath(os.path.join(current, d), root)] = None
        for f in files:
            path = os.path.join(current, f)
            with open(path, "rb") as fh:
                tree[os.path.relpath(path, root)] = fh.read()
    return tree


@pytest.fixture
def installer():
    return ArchiveInstaller()


@pytest.fixture
def target(tmp_path):
    return str(tmp_path / "game" / "@pkg")


class TestRootNormalization:
    def test_wrapper_directory_is_stripped(self, installer, target):
        data = make_zip(
            {
                "Pkg/": None,
                "Pkg/mod.cpp": b"name = \"Pkg\";",
                "Pkg/addons/": None,
                "Pkg/addons/main.pbo": b"\x00\x01\x02",
            }
        )

        installer.extract("pkg", data, target)

        assert snapshot(target) == {
            "mod.cpp": b"name = \"Pkg\";",
            "addons": None,
            os.path.join("addons", "main.pbo"): b"\x00\x01\x02",
        }

    def test_wrapper_without_directory_entries(self, installer, target):
        data = make_zip({"Pkg/a.txt": b"a", "Pkg/sub/b.txt": b"b"})

        installer.extract("pkg", data, target)

        assert os.path.isfile(os.path.join(target, "a.txt"))
        assert os.path.isfile(os.path.join(target, "sub", "b.txt"))
        assert not os.path.exists(os.path.join(target, "Pkg"))

    def test_mixed_roots_are_kept(self, installer, target):
        data = make_zip({"A/x": b"x", "B/y": b"y"})

        installer.extract("pkg", data, target)

        assert snapshot(target) == {
            "A": None,
            "B": None,
            os.path.join("A", "x"): b"x",
            os.path.join("B", "y"): b"y",
        }

    def test_single_top_level_file_is_not_stripped(self, installer, target):
        installer.extract("pkg", make_zip({"readme.txt": b"hi"}), target)

        assert snapshot(target) == {"readme.txt": b"hi"}


class TestExtraction:
    def test_install_is_idempotent(self, installer, target):
        data = make_zip({"Pkg/a.txt": b"a", "Pkg/b/c.txt": b"c"})

        installer.extract("pkg", data, target)
        first = snapshot(target)
        installer.extract("pkg", data, target)

        assert snapshot(target) == first

    def test_previous_contents_are_removed(self, installer, target):
        os.makedirs(target)
        with open(os.path.join(target, "stale.txt"), "w") as f:
            f.write("old version")

        installer.extract("pkg", make_zip({"new.txt": b"new"}), target)

        assert snapshot(target) == {"new.txt": b"new"}

    def test_file_bytes_are_copied_verbatim(self, installer, target):
        blob = os.urandom(100_000)
        installer.extract("pkg", make_zip({"data/blob.bin": blob, "other.txt": b"o"}), target)

        with open(os.path.join(target, "data", "blob.bin"), "rb") as f:
            assert f.read() == blob

    def test_corrupt_archive(self, installer, target):
        with pytest.raises(ArchiveError):
            installer.extract("pkg", b"definitely not a zip file", target)

    def test_progress_granularity(self, target):
        installer = ArchiveInstaller(progress_every=10)
        entries = {f"file{i:02d}.txt": str(i).encode() for i in range(25)}
        events = []

        installer.extract("pkg", make_zip(entries), target, events.append)

        assert [e.current for e in events] == [0, 10, 20, 24]
        assert all(e.total == 25 for e in events)
        assert all(e.phase == ProgressPhase.EXTRACTING for e in events)

    def test_failing_progress_callback_does_not_abort_extraction(self, installer, target):
        calls = []

        def callback(event):
            calls.append(event.current)
            raise RuntimeError("listener crashed")

        installer.extract("pkg", make_zip({"a.txt": b"a", "b.txt": b"b"}), target, callback)

        assert calls == [0, 1]
        assert snapshot(target) == {"a.txt": b"a", "b.txt": b"b"}


class TestContainment:
    @pytest.mark.parametrize(
        "entries",
        [
            {"../evil.txt": b"x", "ok/a.txt": b"a"},
            {"Pkg/../../evil.txt": b"x"},
            {"safe/../../../evil.txt": b"x", "other/b.txt": b"b"},
            {"/etc/evil.txt": b"x", "a.txt": b"a"},
            {"..\\evil.txt": b"x", "a.txt": b"a"},
            {"C:/evil.txt": b"x", "a.txt": b"a"},
            {"d:evil.txt": b"x"},
        ],
    )
    def test_escaping_entries_are_rejected(self, installer, tmp_path, entries):
        target = str(tmp_path / "game" / "@pkg")

        with pytest.raises(ArchiveError):
            installer.extract("pkg", make_zip(entries), target)

        assert not os.path.exists(tmp_path / "game" / "evil.txt")
        assert not os.path.exists(tmp_path / "evil.txt")

    def test_inner_parent_segments_that_stay_inside_are_allowed(self, installer, target):
        installer.extract("pkg", make_zip({"a/../b.txt": b"b", "c.txt": b"c"}), target)

        assert snapshot(target) == {"b.txt": b"b", "c.txt": b"c"}

    def test_colon_without_drive_letter_is_allowed(self, installer, target):
        entries = {"1:intro.txt": b"x", "_:notes.txt": b"y", "docs/a:b.txt": b"z"}

        installer.extract("pkg", make_zip(entries), target)

        assert snapshot(target) == {
            "1:intro.txt": b"x",
            "_:notes.txt": b"y",
            "docs": None,
            os.path.join("docs", "a:b.txt"): b"z",
        }


class TestAsyncInstall:
    @pytest.mark.asyncio
    async def test_install_runs_off_loop_and_reports_progress(self, installer, target):
        events = []
        data = make_zip({"Pkg/a.txt": b"a", "Pkg/b.txt": b"b"})

        await installer.install("pkg", data, target, events.append)
        await asyncio.sleep(0)

        assert snapshot(target) == {"a.txt": b"a", "b.txt": b"b"}
        assert events and events[-1].current == 1
