"""Configuration module for patchregen settings.

Settings come from the environment (prefix ``PATCHREGEN_``) or a local ``.env``
file. Workflow-specific configuration (globs, autopatch options) lives in the
workflow YAML file instead, see ``patchregen.workflow_config``.
"""

from __future__ import annotations

import tempfile
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_prefix="PATCHREGEN_", env_file=".env", env_file_encoding="utf-8", extra="ignore"
    )

    # Root under which per-run staging directories are created when --workdir is not
    # given (default: <system temp dir>/patchregen, outside any checkout)
    workdir: Optional[str] = None

    log_level: str = "INFO"
    log_dir: Optional[str] = None

    git_binary: str = "git"
    git_timeout_seconds: int = 120

    # Context lines for generated per-file and snapshot diffs
    diff_context_lines: int = 3

    # Tree-relative location of the snapshot patch when the workflow does not set one
    snapshot_patch_path: str = ".patchregen/SNAPSHOT_PATCH"

    # Identity used for commits created by the local git destination
    git_author_name: str = "patchregen"
    git_author_email: str = "patchregen@localhost"


settings = Settings()


def get_workdir(override: Optional[str] = None, run_id: Optional[str] = None) -> Path:
    """Get the staging root for a regeneration run.

    Priority:
    1. Explicit override (e.g. --workdir)
    2. settings.workdir
    3. <system temp dir>/patchregen

    With run_id the root is <base>/<run_id>, so runs never share staging
    directories.
    """
    base = Path(override or settings.workdir or Path(tempfile.gettempdir()) / "patchregen")
    if run_id:
        # Sanitize run_id for filesystem safety
        base = base / run_id.replace("/", "-").replace("\\", "-").replace(" ", "-")
    return base.resolve()
