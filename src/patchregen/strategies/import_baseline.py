"""Import baseline: rebuild the pristine tree by replaying the import.

Used when stored patches cannot be reversed (no positions in them), or when
forced with --regen-import-baseline.
"""

import logging
from pathlib import Path

from ..interfaces import DestinationReader, DestinationWriter, MigrationRunner
from ..models import ImportBaselinePlan, RegenerationRequest, StagingArea, StrategyKind
from .common import content_selector

logger = logging.getLogger(__name__)


class ImportBaselineStrategy:
    """Populate previous from the import pipeline and next from the destination."""

    kind = StrategyKind.IMPORT

    def __init__(
        self,
        request: RegenerationRequest,
        destination: DestinationWriter,
        runner: MigrationRunner,
        plan: ImportBaselinePlan,
    ):
        self.request = request
        self.destination = destination
        self.runner = runner
        self.plan = plan

    def prepare(self, staging: StagingArea, target: str) -> Path:
        """
        Populate the staging trees.

        Args:
            staging: Staging directories of the run
            target: Destination target revision

        Returns:
            Path of the populated previous tree (the import output)
        """
        selector = content_selector(self.request)

        resolved = self.runner.resolve(self.request.source_ref)
        last_rev = self.plan.last_imported
        current = last_rev if self.request.import_same_version else resolved

        logger.info(
            f"[ImportBaseline] Importing origin revision {current} (last imported: {last_rev})"
        )

        def previous_reader() -> DestinationReader:
            return self.destination.get_destination_reader(last_rev)

        import_path = self.runner.import_and_transform(last_rev, current, previous_reader)

        next_reader = self.destination.get_destination_reader(target)
        next_reader.copy_destination_files_to_directory(selector, staging.next)

        logger.info(f"[ImportBaseline] previous={import_path} next={staging.next}")
        return import_path
