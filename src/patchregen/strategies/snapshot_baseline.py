"""Snapshot baseline: rebuild the pristine tree by reversing the stored snapshot patch."""

import logging
from pathlib import Path

from ..interfaces import DestinationWriter
from ..models import RegenerationRequest, SnapshotBaselinePlan, StagingArea, StrategyKind
from ..patching.snapshot import SnapshotPatch
from .common import content_selector, snapshot_glob, staging_conflicts_as_validation

logger = logging.getLogger(__name__)


class SnapshotBaselineStrategy:
    """Populate previous from the baseline minus its snapshot patch, next from the target."""

    kind = StrategyKind.SNAPSHOT

    def __init__(
        self,
        request: RegenerationRequest,
        destination: DestinationWriter,
        plan: SnapshotBaselinePlan,
    ):
        self.request = request
        self.destination = destination
        self.plan = plan

    def prepare(self, staging: StagingArea, target: str) -> Path:
        selector = content_selector(self.request)

        previous_reader = self.destination.get_destination_reader(self.plan.baseline)
        previous_reader.copy_destination_files_to_directory(selector, staging.previous)

        next_reader = self.destination.get_destination_reader(target)
        next_reader.copy_destination_files_to_directory(selector, staging.next)

        previous_reader.copy_destination_files_to_directory(
            snapshot_glob(self.request), staging.patch_holding
        )

        snapshot_path = staging.patch_holding / self.request.snapshot_patch_path.strip("/")
        if snapshot_path.is_file():
            snapshot = SnapshotPatch.from_bytes(snapshot_path.read_bytes())
            with staging_conflicts_as_validation("reverse the snapshot patch"):
                snapshot.reverse(staging.previous, self.request.environment)
            logger.info(f"[SnapshotBaseline] Reversed snapshot patch from baseline {self.plan.baseline}")
        else:
            logger.warning(
                f"[SnapshotBaseline] Snapshot patch enabled but no snapshot patch file found "
                f"at {self.request.snapshot_patch_path} in baseline {self.plan.baseline}"
            )

        return staging.previous
