"""Baseline reconstruction strategies.

One strategy runs per request, chosen by ``patchregen.resolver``:
- import_baseline: replay the import pipeline
- snapshot_baseline: reverse the stored snapshot patch
- patch_file_baseline: reverse the stored per-file patches
"""

from typing import Optional, Union

from ..interfaces import DestinationWriter, MigrationRunner
from ..models import (
    BaselinePlan,
    ImportBaselinePlan,
    PatchFileBaselinePlan,
    RegenerationRequest,
    SnapshotBaselinePlan,
)
from .import_baseline import ImportBaselineStrategy
from .patch_file_baseline import PatchFileBaselineStrategy
from .snapshot_baseline import SnapshotBaselineStrategy

BaselineStrategy = Union[ImportBaselineStrategy, SnapshotBaselineStrategy, PatchFileBaselineStrategy]


def strategy_for_plan(
    plan: BaselinePlan,
    request: RegenerationRequest,
    destination: DestinationWriter,
    runner: Optional[MigrationRunner] = None,
) -> BaselineStrategy:
    """Instantiate the strategy matching a resolved plan."""
    if isinstance(plan, ImportBaselinePlan):
        return ImportBaselineStrategy(request, destination, runner, plan)
    if isinstance(plan, SnapshotBaselinePlan):
        return SnapshotBaselineStrategy(request, destination, plan)
    if isinstance(plan, PatchFileBaselinePlan):
        return PatchFileBaselineStrategy(request, destination, plan)
    raise TypeError(f"Unknown baseline plan: {plan!r}")


__all__ = [
    "BaselineStrategy",
    "ImportBaselineStrategy",
    "PatchFileBaselineStrategy",
    "SnapshotBaselineStrategy",
    "strategy_for_plan",
]
