"""
Collaborator protocols consumed by the regeneration core.

The core never depends on a concrete destination or origin type. Destinations
expose patch regeneration as an optional capability: ``get_patch_regenerator()``
returns ``None`` when unsupported.

Implementations:
- patchregen.destinations.local_git.LocalGitDestination
- patchregen.origins.local_git.GitOriginImportRunner
"""

from pathlib import Path
from typing import Any, Callable, Optional, Protocol

from .file_glob import Glob


class DestinationReader(Protocol):
    """Read access to destination content at one revision."""

    def copy_destination_files_to_directory(self, selector: Glob, directory: Path) -> None:
        """
        Copy files matching selector into directory, keeping relative paths.

        Args:
            selector: Files to copy
            directory: Existing target directory
        """
        ...


class PatchRegenerator(Protocol):
    """Patch regeneration capability of a destination."""

    def infer_regen_target(self) -> Optional[str]:
        """Revision to regenerate patches for, when the destination can tell."""
        ...

    def infer_regen_baseline(self) -> Optional[str]:
        """Revision holding the last known-good patch artifacts, if known."""
        ...

    def update_change(self, workflow_name: str, tree: Path, selector: Glob, target: str) -> Any:
        """
        Push the regenerated tree as a new change on top of target.

        Args:
            workflow_name: Workflow the change belongs to
            tree: Fully populated next tree
            selector: Destination files owned by the workflow
            target: Target revision identifier

        Returns:
            Destination specific result (e.g. the new commit id)
        """
        ...


class DestinationWriter(Protocol):
    """Destination entry point used by the regenerator."""

    hash_function: str

    def get_patch_regenerator(self) -> Optional[PatchRegenerator]:
        ...

    def get_destination_reader(self, revision: str) -> DestinationReader:
        ...


ReaderSupplier = Callable[[], DestinationReader]


class MigrationRunner(Protocol):
    """Origin side of the workflow: resolves revisions and replays the import."""

    def resolve(self, source_ref: Optional[str]) -> str:
        """Resolve a source reference (None means the default ref) to a revision id."""
        ...

    def supports_history(self) -> bool:
        ...

    def last_imported_revision(self) -> Optional[str]:
        """Origin revision last imported into the destination, if recorded."""
        ...

    def import_and_transform(
        self, last_revision: Optional[str], current_revision: str, reader_supplier: ReaderSupplier
    ) -> Path:
        """
        Import current_revision through the workflow transforms.

        Args:
            last_revision: Previously imported origin revision
            current_revision: Origin revision to import
            reader_supplier: Returns a destination reader at the last import

        Returns:
            Directory holding the transformed tree
        """
        ...
