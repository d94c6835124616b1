"""Tests for StagingAreaManager."""

import pytest

from patchregen.exceptions import ValidationError
from patchregen.models import StagingRole
from patchregen.staging import StagingAreaManager


def test_prepare_creates_three_directories(workdir):
    staging = StagingAreaManager(workdir).prepare()

    assert staging.root == workdir
    assert staging.previous == workdir / "previous"
    assert staging.next == workdir / "next"
    assert staging.patch_holding == workdir / "patchHolding"
    for path in (staging.previous, staging.next, staging.patch_holding):
        assert path.is_dir()


def test_prepare_is_idempotent(workdir):
    manager = StagingAreaManager(workdir)
    first = manager.prepare()
    second = manager.prepare()
    assert first == second


def test_path_for_role(workdir):
    manager = StagingAreaManager(workdir)
    staging = manager.prepare()
    for role in StagingRole:
        assert manager.path_for(role) == staging.path_for(role)


def test_reusing_non_empty_directory_is_refused(workdir):
    manager = StagingAreaManager(workdir)
    staging = manager.prepare()
    (staging.next / "leftover.txt").write_text("x")

    with pytest.raises(ValidationError, match="not empty"):
        manager.prepare()
    assert (staging.next / "leftover.txt").exists()
