"""Baseline selection for patch regeneration.

Picks exactly one reconstruction strategy per request and resolves the
revision identifiers it needs:

1. Import baseline when forced, or when per-file patches carry no positions
   (no autopatch config, or file names and line numbers stripped) and the
   snapshot patch is not in use. Such patches cannot be reversed reliably, so
   the import pipeline is replayed instead.
2. Snapshot baseline when the workflow uses the snapshot patch.
3. Per-file patch baseline otherwise.

All validation happens here, before any staging directory is touched.
"""

import logging
from typing import Optional

from .exceptions import ValidationError, check_condition
from .interfaces import MigrationRunner, PatchRegenerator
from .models import (
    BaselinePlan,
    ImportBaselinePlan,
    PatchFileBaselinePlan,
    RegenerationRequest,
    SnapshotBaselinePlan,
    StrategyKind,
)

logger = logging.getLogger(__name__)


def select_strategy(
    force_import_baseline: bool,
    use_single_patch_snapshot: bool,
    autopatch_present: bool,
    strip_file_names_and_line_numbers: bool,
) -> StrategyKind:
    """Decision table for the baseline strategy. Pure function of the four flags."""
    no_line_numbers = not autopatch_present or strip_file_names_and_line_numbers
    if force_import_baseline or (not use_single_patch_snapshot and no_line_numbers):
        return StrategyKind.IMPORT
    if use_single_patch_snapshot:
        return StrategyKind.SNAPSHOT
    return StrategyKind.PATCH_FILES


def strategy_for_request(request: RegenerationRequest) -> StrategyKind:
    autopatch = request.autopatch
    return select_strategy(
        request.force_import_baseline,
        request.use_single_patch_snapshot,
        autopatch is not None,
        autopatch is not None and autopatch.strip_file_names_and_line_numbers,
    )


class BaselineResolver:
    """Resolves target/baseline revisions and the reconstruction plan."""

    def __init__(self, regenerator: PatchRegenerator, runner: Optional[MigrationRunner] = None):
        """
        Args:
            regenerator: Patch regeneration capability of the destination
            runner: Origin import runner, only needed for the import baseline
        """
        self.regenerator = regenerator
        self.runner = runner

    def resolve_target(self, request: RegenerationRequest) -> str:
        target = request.regen_target or self.regenerator.infer_regen_target()
        if not target:
            raise ValidationError(
                "Regen target was neither supplied nor able to be inferred. "
                "Supply with --regen-target parameter"
            )
        return target

    def resolve_baseline(self, request: RegenerationRequest) -> str:
        baseline = request.regen_baseline or self.regenerator.infer_regen_baseline()
        if not baseline:
            raise ValidationError(
                "Regen baseline was neither supplied nor able to be inferred. "
                "Supply with --regen-baseline parameter"
            )
        return baseline

    def plan(self, request: RegenerationRequest) -> BaselinePlan:
        kind = strategy_for_request(request)
        logger.info(f"[Resolver] Selected {kind.value} baseline for workflow {request.workflow_name}")
        return self.plan_for(kind, request)

    def plan_for(self, kind: StrategyKind, request: RegenerationRequest) -> BaselinePlan:
        """Build the plan for kind, validating its preconditions."""
        if kind is StrategyKind.IMPORT:
            return ImportBaselinePlan(last_imported=self._last_imported_revision())

        if kind is StrategyKind.PATCH_FILES:
            check_condition(
                request.autopatch is not None,
                "Autopatch config required to regenerate from patch files. "
                "Add an 'autopatch' section to the workflow config or use --regen-import-baseline",
            )
            return PatchFileBaselinePlan(
                baseline=self.resolve_baseline(request), autopatch=request.autopatch
            )

        return SnapshotBaselinePlan(baseline=self.resolve_baseline(request))

    def _last_imported_revision(self) -> str:
        check_condition(
            self.runner is not None,
            "Import baseline requires an origin. Supply --origin-repo, or disable "
            "--regen-import-baseline and supply --regen-baseline",
        )
        check_condition(
            self.runner.supports_history(),
            "Origin does not support history, so the last imported revision is unknown. "
            "Disable --regen-import-baseline and supply --regen-baseline",
        )
        last = self.runner.last_imported_revision()
        check_condition(
            last is not None,
            "No previously imported origin revision found in the destination. "
            "Disable --regen-import-baseline and supply --regen-baseline",
        )
        return last
