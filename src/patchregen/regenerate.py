"""
Patch regeneration.

Checks out the right versions of the destination (and origin, for the import
baseline) into staging directories, recomputes the patch artifacts describing
their delta and pushes the result back to the destination.

Example:
    >>> destination = LocalGitDestination(repo_path)
    >>> result = Regenerator(destination).regenerate(request)
    >>> result.push_result  # new commit id

Failure semantics: every error raised before the push aborts the run, so the
destination never receives a partially regenerated tree. Staging directories
are left on disk for inspection.
"""

import logging
from pathlib import Path
from typing import List, Optional

from .exceptions import ValidationError
from .interfaces import DestinationWriter, MigrationRunner
from .models import RegenerationRequest, RegenerationResult
from .patching.autopatch import generate_patch_files
from .patching.snapshot import generate_snapshot
from .resolver import BaselineResolver
from .staging import StagingAreaManager
from .strategies import strategy_for_plan
from .strategies.common import content_selector

logger = logging.getLogger(__name__)


class Regenerator:
    """Runs patch regeneration against one destination."""

    def __init__(self, destination: DestinationWriter, runner: Optional[MigrationRunner] = None):
        """
        Args:
            destination: Destination holding the migrated tree and its patch artifacts
            runner: Origin import runner (required only for the import baseline)
        """
        self.destination = destination
        self.runner = runner

    def regenerate(self, request: RegenerationRequest) -> RegenerationResult:
        """
        Regenerate patch artifacts for request and push them.

        Raises:
            ValidationError: Missing capability, revisions or configuration
            RegenError: Collaborator failures, propagated unchanged
        """
        regenerator = self.destination.get_patch_regenerator()
        if regenerator is None:
            raise ValidationError("this destination does not support regenerating patch files")

        resolver = BaselineResolver(regenerator, self.runner)
        target = resolver.resolve_target(request)
        plan = resolver.plan(request)

        if request.use_single_patch_snapshot and request.autopatch is not None:
            logger.warning(
                f"[Regenerate] Workflow {request.workflow_name} uses both the snapshot patch and "
                f"autopatch files; regenerating both"
            )

        staging = StagingAreaManager(request.workdir).prepare()
        strategy = strategy_for_plan(plan, request, self.destination, self.runner)
        previous = strategy.prepare(staging, target)

        written = self._regenerate_artifacts(request, previous, staging.next)

        logger.info(f"[Regenerate] Pushing {staging.next} for target {target}")
        push_result = regenerator.update_change(
            request.workflow_name, staging.next, request.destination_files, target
        )

        return RegenerationResult(
            strategy=plan.kind,
            target=target,
            baseline=plan.baseline,
            staging=staging,
            previous_tree=previous,
            written_artifacts=written,
            push_result=push_result,
        )

    def _regenerate_artifacts(
        self, request: RegenerationRequest, previous: Path, next_tree: Path
    ) -> List[Path]:
        snapshot_bytes: Optional[bytes] = None
        if request.use_single_patch_snapshot:
            snapshot_bytes = generate_snapshot(
                previous, next_tree, self.destination.hash_function, content_selector(request)
            )

        written: List[Path] = []
        autopatch = request.autopatch
        if autopatch is not None:
            written.extend(
                generate_patch_files(
                    previous,
                    next_tree,
                    autopatch.directory_prefix,
                    autopatch.directory,
                    request.verbose,
                    autopatch.header,
                    autopatch.suffix,
                    next_tree,
                    autopatch.strip_file_names_and_line_numbers,
                    autopatch.glob,
                )
            )

        if snapshot_bytes is not None:
            snapshot_path = next_tree / request.snapshot_patch_path.strip("/")
            snapshot_path.parent.mkdir(parents=True, exist_ok=True)
            snapshot_path.write_bytes(snapshot_bytes)
            written.append(snapshot_path)
            logger.info(f"[Regenerate] Wrote snapshot patch to {snapshot_path}")

        return written


def regenerate(
    request: RegenerationRequest,
    destination: DestinationWriter,
    runner: Optional[MigrationRunner] = None,
) -> RegenerationResult:
    """Convenience wrapper around Regenerator."""
    return Regenerator(destination, runner).regenerate(request)
