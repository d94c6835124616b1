"""Per-file patch baseline: rebuild the pristine tree by reversing stored autopatch files."""

import logging
from pathlib import Path

from ..interfaces import DestinationWriter
from ..models import PatchFileBaselinePlan, RegenerationRequest, StagingArea, StrategyKind
from ..patching.autopatch import autopatch_glob, reverse_patch_files
from .common import content_selector, staging_conflicts_as_validation

logger = logging.getLogger(__name__)


class PatchFileBaselineStrategy:
    """Populate previous from the baseline minus its patch files, next from the target."""

    kind = StrategyKind.PATCH_FILES

    def __init__(
        self,
        request: RegenerationRequest,
        destination: DestinationWriter,
        plan: PatchFileBaselinePlan,
    ):
        self.request = request
        self.destination = destination
        self.plan = plan

    def prepare(self, staging: StagingArea, target: str) -> Path:
        autopatch = self.plan.autopatch
        patch_files = autopatch_glob(autopatch.directory_prefix, autopatch.directory)
        selector = content_selector(self.request)

        previous_reader = self.destination.get_destination_reader(self.plan.baseline)
        previous_reader.copy_destination_files_to_directory(selector, staging.previous)

        next_reader = self.destination.get_destination_reader(target)
        next_reader.copy_destination_files_to_directory(selector, staging.next)

        previous_reader.copy_destination_files_to_directory(patch_files, staging.patch_holding)

        with staging_conflicts_as_validation("reverse patch files"):
            reversed_files = reverse_patch_files(
                staging.previous,
                staging.patch_holding,
                autopatch.suffix,
                self.request.environment,
            )

        logger.info(
            f"[PatchFileBaseline] Reversed {len(reversed_files)} patch file(s) from baseline {self.plan.baseline}"
        )
        return staging.previous
