"""
Local git origin with an identity import.

Imports origin files at a revision into an output directory, optionally under
a destination prefix. The last imported revision is read from the
``GitOrigin-RevId`` label that migrations leave in destination commit
messages.
"""

import logging
from pathlib import Path
from typing import Dict, Optional

from ..exceptions import ValidationError
from ..file_glob import Glob
from ..interfaces import ReaderSupplier
from ..destinations.local_git import GitDestinationReader, LocalGitDestination
from ..patching.git_tools import rev_parse

logger = logging.getLogger(__name__)

DEFAULT_ORIGIN_LABEL = "GitOrigin-RevId"


class GitOriginImportRunner:
    """Origin repository plus the (identity) import pipeline."""

    def __init__(
        self,
        origin_repo: Path,
        output_dir: Path,
        destination: LocalGitDestination,
        origin_files: Optional[Glob] = None,
        destination_prefix: str = "",
        default_ref: str = "HEAD",
        label: str = DEFAULT_ORIGIN_LABEL,
        env: Optional[Dict[str, str]] = None,
    ):
        """
        Args:
            origin_repo: Origin repository root
            output_dir: Directory the imported tree is written to
            destination: Destination whose history records the last import
            origin_files: Origin files taking part in the import
            destination_prefix: Directory imported files are placed under
            default_ref: Reference resolved when no source ref is given
            label: Commit message label holding the imported origin revision
            env: Environment for git commands
        """
        self.origin_repo = Path(origin_repo)
        self.output_dir = Path(output_dir)
        self.destination = destination
        self.origin_files = origin_files or Glob.all_files()
        self.destination_prefix = destination_prefix.strip("/")
        self.default_ref = default_ref
        self.label = label
        self.env = env

    def resolve(self, source_ref: Optional[str]) -> str:
        ref = source_ref or self.default_ref
        revision = rev_parse(self.origin_repo, ref, self.env)
        if revision is None:
            raise ValidationError(f"Cannot resolve origin reference '{ref}'. Check --source-ref")
        return revision

    def supports_history(self) -> bool:
        return True

    def last_imported_revision(self) -> Optional[str]:
        return self.destination.last_label_value(self.label)

    def import_and_transform(
        self, last_revision: Optional[str], current_revision: str, reader_supplier: ReaderSupplier
    ) -> Path:
        """Write origin files at current_revision into output_dir (identity transform)."""
        logger.info(
            f"[Import] Importing {self.origin_repo} at {current_revision} "
            f"(previous import {last_revision}) into {self.output_dir}"
        )

        self.output_dir.mkdir(parents=True, exist_ok=True)
        target_dir = self.output_dir / self.destination_prefix if self.destination_prefix else self.output_dir
        target_dir.mkdir(parents=True, exist_ok=True)

        reader = GitDestinationReader(self.origin_repo, current_revision, self.env)
        reader.copy_destination_files_to_directory(self.origin_files, target_dir)
        return self.output_dir
