"""Tests for environment-driven settings."""

import tempfile
from pathlib import Path

from patchregen import config
from patchregen.config import Settings, get_workdir


def test_env_prefix(monkeypatch):
    monkeypatch.setenv("PATCHREGEN_WORKDIR", "/tmp/regen-work")
    monkeypatch.setenv("PATCHREGEN_DIFF_CONTEXT_LINES", "5")

    settings = Settings()

    assert settings.workdir == "/tmp/regen-work"
    assert settings.diff_context_lines == 5


def test_defaults(monkeypatch):
    monkeypatch.delenv("PATCHREGEN_SNAPSHOT_PATCH_PATH", raising=False)
    settings = Settings(_env_file=None)
    assert settings.git_binary == "git"
    assert settings.snapshot_patch_path == ".patchregen/SNAPSHOT_PATCH"


def test_get_workdir_override(tmp_path):
    assert get_workdir(str(tmp_path / "w")) == (tmp_path / "w").resolve()
    assert isinstance(get_workdir(), Path)


def test_get_workdir_appends_sanitized_run_id(tmp_path):
    assert get_workdir(str(tmp_path / "w"), "regen 1/x") == (tmp_path / "w" / "regen-1-x").resolve()
    assert get_workdir(str(tmp_path / "w"), "a") != get_workdir(str(tmp_path / "w"), "b")


def test_get_workdir_defaults_to_temp_dir(monkeypatch):
    monkeypatch.setattr(config.settings, "workdir", None)
    expected = (Path(tempfile.gettempdir()) / "patchregen" / "r1").resolve()
    assert get_workdir(None, "r1") == expected
