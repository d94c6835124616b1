"""Request, configuration and result models for patch regeneration."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .config import settings
from .file_glob import Glob


class AutoPatchConfig(BaseModel):
    """Per-file patch (autopatch) settings of a workflow."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    directory: str = Field(..., description="Patch directory, relative to directory_prefix")
    directory_prefix: str = Field(default="", description="Tree prefix the patched files live under")
    header: Optional[str] = Field(None, description="Text written at the top of every patch file")
    suffix: str = Field(default=".patch")
    strip_file_names_and_line_numbers: bool = Field(
        default=False, description="Drop file names and hunk positions from generated patches"
    )
    glob: Glob = Field(default_factory=Glob.all_files, description="Files patches are generated for")


class RegenerationRequest(BaseModel):
    """Everything one regeneration run needs, resolved at invocation start."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    workdir: Path
    workflow_name: str
    destination_files: Glob = Field(default_factory=Glob.all_files)

    regen_target: Optional[str] = Field(None, description="Explicit target revision (--regen-target)")
    regen_baseline: Optional[str] = Field(None, description="Explicit baseline revision (--regen-baseline)")
    source_ref: Optional[str] = Field(None, description="Origin reference override")

    use_single_patch_snapshot: bool = False
    force_import_baseline: bool = False
    import_same_version: bool = False

    autopatch: Optional[AutoPatchConfig] = None
    snapshot_patch_path: str = Field(default_factory=lambda: settings.snapshot_patch_path)

    verbose: bool = False
    environment: Optional[Dict[str, str]] = None


class StagingRole(str, Enum):
    """Role of a staging directory; the value is the directory name."""

    PREVIOUS = "previous"
    NEXT = "next"
    PATCH_HOLDING = "patchHolding"


@dataclass(frozen=True)
class StagingArea:
    """The three staging directories of one run."""

    root: Path
    previous: Path
    next: Path
    patch_holding: Path

    def path_for(self, role: StagingRole) -> Path:
        if role is StagingRole.PREVIOUS:
            return self.previous
        if role is StagingRole.NEXT:
            return self.next
        return self.patch_holding


class StrategyKind(str, Enum):
    """Baseline reconstruction strategies."""

    IMPORT = "import"
    SNAPSHOT = "snapshot"
    PATCH_FILES = "patch_files"


@dataclass(frozen=True)
class ImportBaselinePlan:
    """Rebuild previous by replaying the import pipeline (no destination baseline)."""

    last_imported: Optional[str] = None
    baseline: Optional[str] = field(default=None, init=False)
    kind: StrategyKind = field(default=StrategyKind.IMPORT, init=False)


@dataclass(frozen=True)
class SnapshotBaselinePlan:
    """Rebuild previous by reversing the snapshot patch stored at baseline."""

    baseline: str
    kind: StrategyKind = field(default=StrategyKind.SNAPSHOT, init=False)


@dataclass(frozen=True)
class PatchFileBaselinePlan:
    """Rebuild previous by reversing the per-file patches stored at baseline."""

    baseline: str
    autopatch: AutoPatchConfig
    kind: StrategyKind = field(default=StrategyKind.PATCH_FILES, init=False)


BaselinePlan = Union[ImportBaselinePlan, SnapshotBaselinePlan, PatchFileBaselinePlan]


@dataclass
class RegenerationResult:
    """Outcome of a successful regeneration."""

    strategy: StrategyKind
    target: str
    baseline: Optional[str]
    staging: StagingArea
    previous_tree: Path
    written_artifacts: List[Path] = field(default_factory=list)
    push_result: Any = None
