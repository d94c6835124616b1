"""End-to-end tests for Regenerator using in-memory collaborators."""

import logging

import pytest

from conftest import FakeDestination, FakeRegenerator, FakeRunner, read_tree, write_tree
from patchregen.exceptions import PatchError, ValidationError
from patchregen.file_glob import Glob
from patchregen.models import AutoPatchConfig, RegenerationRequest, StrategyKind
from patchregen.patching.autopatch import generate_patch_files
from patchregen.patching.snapshot import SnapshotPatch, generate_snapshot
from patchregen.regenerate import Regenerator, regenerate

SNAPSHOT_PATH = "meta/SNAPSHOT"


def make_request(workdir, **overrides):
    values = dict(workdir=workdir, workflow_name="wf", snapshot_patch_path=SNAPSHOT_PATH)
    values.update(overrides)
    return RegenerationRequest(**values)


def stored_patches(tmp_path, pristine, patched, autopatch):
    one = write_tree(tmp_path / "gen_one", pristine)
    other = write_tree(tmp_path / "gen_other", patched)
    out = tmp_path / "gen_out"
    generate_patch_files(
        one, other, autopatch.directory_prefix, autopatch.directory, False,
        autopatch.header, autopatch.suffix, out, False, autopatch.glob,
    )
    return read_tree(out)


class TestPatchFileRegeneration:
    def test_regenerates_patch_for_changed_file(self, tmp_path, workdir):
        autopatch = AutoPatchConfig(directory="PATCHES")
        patches = stored_patches(tmp_path, {"x.txt": "old\n"}, {"x.txt": "old\nlocal\n"}, autopatch)

        regenerator = FakeRegenerator(target="t", baseline="b")
        destination = FakeDestination(
            {
                "b": {"x.txt": "old\nlocal\n", **patches},
                "t": {"x.txt": "old\nlocal\nedited by hand\n", **patches},
            },
            regenerator,
        )

        result = Regenerator(destination).regenerate(make_request(workdir, autopatch=autopatch))

        assert result.strategy is StrategyKind.PATCH_FILES
        assert result.target == "t"
        assert result.baseline == "b"
        assert result.push_result == "pushed-t"

        patch = regenerator.pushed["PATCHES/x.txt.patch"].decode()
        assert "+local\n" in patch
        assert "+edited by hand\n" in patch
        assert regenerator.pushed["x.txt"] == b"old\nlocal\nedited by hand\n"

    def test_old_to_new_round_trip(self, tmp_path, workdir):
        autopatch = AutoPatchConfig(directory="PATCHES")
        patches = stored_patches(tmp_path, {"x.txt": "old"}, {"x.txt": "new"}, autopatch)
        regenerator = FakeRegenerator(target="t", baseline="b")
        destination = FakeDestination(
            {"b": {"x.txt": "new", **patches}, "t": {"x.txt": "new", **patches}}, regenerator
        )

        result = Regenerator(destination).regenerate(make_request(workdir, autopatch=autopatch))

        assert read_tree(result.previous_tree) == {"x.txt": b"old"}
        patch = regenerator.pushed["PATCHES/x.txt.patch"].decode()
        assert "-old\n" in patch
        assert "+new\n" in patch

    def test_update_change_receives_destination_files(self, tmp_path, workdir):
        autopatch = AutoPatchConfig(directory="PATCHES")
        destination_files = Glob.create(["**"], exclude=["BUILD"])
        regenerator = FakeRegenerator(target="t", baseline="b")
        destination = FakeDestination({"b": {"x.txt": "a\n"}, "t": {"x.txt": "b\n"}}, regenerator)

        Regenerator(destination).regenerate(
            make_request(workdir, autopatch=autopatch, destination_files=destination_files)
        )

        workflow_name, tree, selector, target = regenerator.calls[0]
        assert workflow_name == "wf"
        assert tree == workdir / "next"
        assert selector == destination_files
        assert target == "t"

    def test_no_push_when_reversal_fails(self, tmp_path, workdir):
        autopatch = AutoPatchConfig(directory="PATCHES")
        patches = stored_patches(tmp_path, {"x.txt": "old\n"}, {"x.txt": "new\n"}, autopatch)
        regenerator = FakeRegenerator(target="t", baseline="b")
        destination = FakeDestination(
            {"b": {"x.txt": "unrelated\n", **patches}, "t": {"x.txt": "new\n"}}, regenerator
        )

        with pytest.raises(PatchError):
            Regenerator(destination).regenerate(make_request(workdir, autopatch=autopatch))
        assert regenerator.calls == []


class TestSnapshotRegeneration:
    def test_first_snapshot_warns_and_pushes(self, workdir, caplog):
        regenerator = FakeRegenerator(target="t", baseline="b")
        destination = FakeDestination({"b": {"a.txt": "base\n"}, "t": {"a.txt": "base\npatched\n"}}, regenerator)

        with caplog.at_level(logging.WARNING, logger="patchregen"):
            result = Regenerator(destination).regenerate(make_request(workdir, use_single_patch_snapshot=True))

        assert "no snapshot patch file found" in caplog.text
        assert result.strategy is StrategyKind.SNAPSHOT
        # Without a stored snapshot the baseline itself is the pre-image
        snapshot = SnapshotPatch.from_bytes(regenerator.pushed[SNAPSHOT_PATH])
        assert [e.path for e in snapshot.entries] == ["a.txt"]

    def test_snapshot_reflects_new_delta(self, tmp_path, workdir):
        pristine = write_tree(tmp_path / "pristine", {"a.txt": "upstream\n"})
        patched = write_tree(tmp_path / "patched", {"a.txt": "upstream\nlocal\n"})
        old_snapshot = generate_snapshot(pristine, patched, "sha256", Glob.all_files())

        regenerator = FakeRegenerator(target="t", baseline="b")
        destination = FakeDestination(
            {
                "b": {"a.txt": "upstream\nlocal\n", SNAPSHOT_PATH: old_snapshot},
                "t": {"a.txt": "upstream\nlocal\nagain\n", SNAPSHOT_PATH: old_snapshot},
            },
            regenerator,
        )

        Regenerator(destination).regenerate(make_request(workdir, use_single_patch_snapshot=True))

        snapshot = SnapshotPatch.from_bytes(regenerator.pushed[SNAPSHOT_PATH])
        diff = snapshot.entries[0].payload
        assert "+local\n" in diff
        assert "+again\n" in diff
        assert SNAPSHOT_PATH not in snapshot.file_hashes

    def test_uses_destination_hash_function(self, workdir):
        regenerator = FakeRegenerator(target="t", baseline="b")
        destination = FakeDestination({"b": {"a.txt": "1\n"}, "t": {"a.txt": "2\n"}}, regenerator, hash_function="sha1")

        Regenerator(destination).regenerate(make_request(workdir, use_single_patch_snapshot=True))

        assert SnapshotPatch.from_bytes(regenerator.pushed[SNAPSHOT_PATH]).hash_function == "sha1"

    def test_dual_output_generates_both(self, workdir, caplog):
        autopatch = AutoPatchConfig(directory="PATCHES")
        regenerator = FakeRegenerator(target="t", baseline="b")
        destination = FakeDestination({"b": {"a.txt": "1\n"}, "t": {"a.txt": "2\n"}}, regenerator)

        with caplog.at_level(logging.WARNING, logger="patchregen"):
            result = Regenerator(destination).regenerate(
                make_request(workdir, use_single_patch_snapshot=True, autopatch=autopatch)
            )

        assert "uses both the snapshot patch and autopatch files" in caplog.text
        assert result.strategy is StrategyKind.SNAPSHOT
        assert SNAPSHOT_PATH in regenerator.pushed
        assert "PATCHES/a.txt.patch" in regenerator.pushed


class TestImportRegeneration:
    def test_import_baseline(self, workdir):
        autopatch = AutoPatchConfig(directory="PATCHES", strip_file_names_and_line_numbers=True)
        regenerator = FakeRegenerator(target="t")
        destination = FakeDestination({"t": {"a.txt": "imported\nlocal\n"}}, regenerator)
        runner = FakeRunner(workdir / "previous", {"o2": {"a.txt": "imported\n"}})

        result = regenerate(make_request(workdir, autopatch=autopatch), destination, runner)

        assert result.strategy is StrategyKind.IMPORT
        assert result.baseline is None
        patch = regenerator.pushed["PATCHES/a.txt.patch"].decode()
        assert patch.startswith("@@\n")
        assert "+local\n" in patch


class TestValidation:
    def test_destination_without_capability(self, workdir):
        destination = FakeDestination({}, regenerator=None)
        with pytest.raises(ValidationError, match="does not support regenerating patch files"):
            Regenerator(destination).regenerate(make_request(workdir))
        assert not workdir.exists()

    def test_missing_target(self, workdir):
        destination = FakeDestination({}, FakeRegenerator())
        with pytest.raises(ValidationError, match="--regen-target"):
            Regenerator(destination).regenerate(make_request(workdir, use_single_patch_snapshot=True))
        assert not workdir.exists()

    def test_missing_baseline(self, workdir):
        destination = FakeDestination({}, FakeRegenerator(target="t"))
        with pytest.raises(ValidationError, match="--regen-baseline"):
            Regenerator(destination).regenerate(make_request(workdir, use_single_patch_snapshot=True))
        assert not workdir.exists()

    def test_second_run_in_same_workdir_is_refused(self, workdir):
        regenerator = FakeRegenerator(target="t1", baseline="b")
        destination = FakeDestination(
            {
                "b": {"a.txt": "1\n", "gone.txt": "x\n"},
                "t1": {"a.txt": "2\n", "gone.txt": "x\n"},
                "t2": {"a.txt": "3\n"},
            },
            regenerator,
        )
        Regenerator(destination).regenerate(make_request(workdir, use_single_patch_snapshot=True))
        assert "gone.txt" in regenerator.pushed
        regenerator.calls.clear()

        with pytest.raises(ValidationError, match="Use a fresh --workdir"):
            Regenerator(destination).regenerate(
                make_request(workdir, use_single_patch_snapshot=True, regen_target="t2")
            )
        assert regenerator.calls == []
