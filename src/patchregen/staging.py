"""Staging directories for a regeneration run.

Each run works in three fixed directories under its workdir:

- ``previous/``: reconstructed pre-image (baseline without patches)
- ``next/``: target content, later extended with regenerated artifacts
- ``patchHolding/``: scratch space for artifacts being reversed

Directories are created idempotently and never removed here; the caller owns
the workdir. Staging copies only add or overwrite files, so a directory left
over from an earlier run is refused: its stale files would end up in the push.
The CLI gives every run its own root (``<workdir>/<run_id>``).
"""

import logging
from pathlib import Path

from .exceptions import ValidationError
from .models import StagingArea, StagingRole

logger = logging.getLogger(__name__)


class StagingAreaManager:
    """Creates the staging directories of a run."""

    def __init__(self, workdir: Path):
        """
        Args:
            workdir: Root the staging directories are created under
        """
        self.workdir = Path(workdir)

    def path_for(self, role: StagingRole) -> Path:
        return self.workdir / role.value

    def prepare(self) -> StagingArea:
        """Create the staging directories (existing empty ones are reused).

        Returns:
            StagingArea with the three directory paths

        Raises:
            ValidationError: If a staging directory already holds files
        """
        for role in StagingRole:
            path = self.path_for(role)
            if path.exists() and any(path.iterdir()):
                raise ValidationError(
                    f"Staging directory {path} is not empty, probably left over from an earlier run. "
                    f"Use a fresh --workdir for every regeneration"
                )

        for role in StagingRole:
            self.path_for(role).mkdir(parents=True, exist_ok=True)

        logger.debug(f"[Staging] Prepared staging area under {self.workdir}")
        return StagingArea(
            root=self.workdir,
            previous=self.path_for(StagingRole.PREVIOUS),
            next=self.path_for(StagingRole.NEXT),
            patch_holding=self.path_for(StagingRole.PATCH_HOLDING),
        )
